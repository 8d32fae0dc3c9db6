"""
Configuration Manager
====================

Manages application settings and configuration.
"""

import json
import logging
import os
from dataclasses import asdict, dataclass, fields
from pathlib import Path
from typing import Any, Dict, Optional, Type

from ..core.exceptions import ConfigError
from ..core.rtl_formatter import RtlOptions

API_KEY_ENV = "I2LOCALIZER_API_KEY"


@dataclass
class ExtractionSettings:
    """Scanner-related settings."""
    language_index: int = 0
    fallback_window: int = 25  # clamped to 20..30 by the fallback extractor
    expected_indent: int = 3
    normalize_input: bool = True  # strip BOM / CRLF before scanning


@dataclass
class RtlSettings:
    """RTL output shaping."""
    presentation_forms: bool = False
    directional_override: bool = False
    strip_zwnj: bool = True
    persian_digits: bool = False

    def to_options(self) -> RtlOptions:
        return RtlOptions(**asdict(self))


@dataclass
class TranslationSettings:
    """Translation service settings."""
    service_url: str = ""
    source_language: str = "en"
    target_language: str = "fa"
    batch_size: int = 10
    batch_delay: float = 0.5
    timeout: int = 30
    preserve_placeholders: bool = True


@dataclass
class ApiKeys:
    """API keys for the translation service."""
    translation_service_api_key: str = ""


@dataclass
class AppSettings:
    """General application settings."""
    output_directory: str = "output"
    export_format: str = "csv"
    worker_threads: int = 2
    worker_timeout: float = 10.0
    auto_save_settings: bool = False


_SECTIONS = {
    'extraction': 'extraction_settings',
    'rtl': 'rtl_settings',
    'translation': 'translation_settings',
    'app': 'app_settings',
}


def _build_section(cls: Type, data: Dict[str, Any], logger: logging.Logger):
    known = {f.name for f in fields(cls)}
    unknown = set(data) - known
    if unknown:
        logger.warning(f"Ignoring unknown {cls.__name__} keys: {sorted(unknown)}")
    return cls(**{k: v for k, v in data.items() if k in known})


class ConfigManager:
    """Manages application configuration."""

    def __init__(self, config_file: str = "i2localizer_config.json"):
        self.logger = logging.getLogger(__name__)
        self.config_file = Path(config_file)

        # Default configuration
        self.extraction_settings = ExtractionSettings()
        self.rtl_settings = RtlSettings()
        self.translation_settings = TranslationSettings()
        self.api_keys = ApiKeys()
        self.app_settings = AppSettings()

        self.load_config()

    def load_config(self) -> bool:
        """Load configuration from file."""
        if not self.config_file.exists():
            self.logger.info("Config file doesn't exist, using defaults")
            return False
        try:
            with open(self.config_file, 'r', encoding='utf-8') as f:
                config_data = json.load(f)
        except (OSError, ValueError) as e:
            self.logger.error(f"Error loading configuration: {e}")
            return False

        if not isinstance(config_data, dict):
            self.logger.error("Configuration root must be a JSON object")
            return False

        if 'extraction_settings' in config_data:
            self.extraction_settings = _build_section(ExtractionSettings, config_data['extraction_settings'], self.logger)
        if 'rtl_settings' in config_data:
            self.rtl_settings = _build_section(RtlSettings, config_data['rtl_settings'], self.logger)
        if 'translation_settings' in config_data:
            self.translation_settings = _build_section(TranslationSettings, config_data['translation_settings'], self.logger)
        if 'api_keys' in config_data:
            self.api_keys = _build_section(ApiKeys, config_data['api_keys'], self.logger)
        if 'app_settings' in config_data:
            self.app_settings = _build_section(AppSettings, config_data['app_settings'], self.logger)

        self.logger.info("Configuration loaded successfully")
        return True

    def save_config(self) -> bool:
        """Save configuration to file, keeping the previous file as ``.json.bak``."""
        config_data = {
            'extraction_settings': asdict(self.extraction_settings),
            'rtl_settings': asdict(self.rtl_settings),
            'translation_settings': asdict(self.translation_settings),
            'api_keys': asdict(self.api_keys),
            'app_settings': asdict(self.app_settings),
        }
        try:
            if self.config_file.exists():
                backup_file = self.config_file.with_suffix('.json.bak')
                try:
                    self.config_file.replace(backup_file)
                except OSError as e:
                    self.logger.warning(f"Could not create backup: {e}")

            self.config_file.parent.mkdir(parents=True, exist_ok=True)
            with open(self.config_file, 'w', encoding='utf-8') as f:
                json.dump(config_data, f, indent=4, ensure_ascii=False)

            self.logger.info("Configuration saved successfully")
            return True
        except OSError as e:
            self.logger.error(f"Error saving configuration: {e}")
            return False

    def get_api_key(self, service: str = "translation_service") -> str:
        """API key for a service. The environment variable takes precedence."""
        env_value = os.environ.get(API_KEY_ENV)
        if env_value:
            return env_value
        return getattr(self.api_keys, f"{service}_api_key", "")

    def set_api_key(self, service: str, api_key: str) -> None:
        attr = f"{service}_api_key"
        if not hasattr(self.api_keys, attr):
            raise ConfigError(f"Unknown API key: {service}")
        setattr(self.api_keys, attr, api_key)
        if self.app_settings.auto_save_settings:
            self.save_config()

    def _resolve(self, key: str):
        parts = key.split('.')
        if len(parts) != 2 or parts[0] not in _SECTIONS:
            raise ConfigError(f"Invalid setting key: {key}")
        section = getattr(self, _SECTIONS[parts[0]])
        if not hasattr(section, parts[1]):
            raise ConfigError(f"Unknown setting: {key}")
        return section, parts[1]

    def get_setting(self, key: str, default: Any = None) -> Any:
        """Get a setting value using dot notation (e.g., 'rtl.strip_zwnj')."""
        try:
            section, name = self._resolve(key)
        except ConfigError:
            return default
        return getattr(section, name)

    def set_setting(self, key: str, value: Any) -> None:
        """Set a setting value using dot notation (e.g., 'translation.batch_size')."""
        section, name = self._resolve(key)
        setattr(section, name, value)
        if self.app_settings.auto_save_settings:
            self.save_config()

    def reset_to_defaults(self) -> None:
        """Reset configuration to defaults."""
        self.extraction_settings = ExtractionSettings()
        self.rtl_settings = RtlSettings()
        self.translation_settings = TranslationSettings()
        self.api_keys = ApiKeys()
        self.app_settings = AppSettings()
        self.logger.info("Configuration reset to defaults")

    def apply_overrides(self, overrides: Optional[Dict[str, Dict[str, Any]]]) -> None:
        """Apply ``{"translation": {"batch_size": 5}}`` style overrides."""
        for section, values in (overrides or {}).items():
            for name, value in values.items():
                self.set_setting(f"{section}.{name}", value)
