"""
Utils module for I2Localizer
============================
"""

from .config import ConfigManager, ExtractionSettings, RtlSettings, TranslationSettings, ApiKeys, AppSettings

__all__ = [
    'ConfigManager', 'ExtractionSettings', 'RtlSettings', 'TranslationSettings', 'ApiKeys', 'AppSettings'
]
