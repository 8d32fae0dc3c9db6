"""
Core module for I2Localizer
===========================
"""

from .parser import I2LanguagesParser, Record, extract_terms
from .fallback_parser import FallbackExtractor, FlatShape, NestedShape, extract_with_fallback
from .translation_map import TranslationMap, parse_translations
from .substitution import SubstitutionResult, apply_translations, generate_reversed_content
from .rtl_formatter import RtlOptions, apply_rtl_formatting
from .structure_validator import AnalysisResult, StructureIssue, StructureValidator
from .output_formatter import UnityOutputFormatter, infer_category

__all__ = [
    'I2LanguagesParser', 'Record', 'extract_terms',
    'FallbackExtractor', 'FlatShape', 'NestedShape', 'extract_with_fallback',
    'TranslationMap', 'parse_translations',
    'SubstitutionResult', 'apply_translations', 'generate_reversed_content',
    'RtlOptions', 'apply_rtl_formatting',
    'AnalysisResult', 'StructureIssue', 'StructureValidator',
    'UnityOutputFormatter', 'infer_category',
]
