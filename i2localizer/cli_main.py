# -*- coding: utf-8 -*-
"""
I2Localizer CLI Main Module
"""

import argparse
import asyncio
import json
import logging
import sys
from pathlib import Path
from typing import List, Optional

from .core.diagnostics import DiagnosticReport
from .core.exceptions import I2LocalizerError, ParseError, QuotaExceededError, RateLimitError
from .core.fallback_parser import extract_with_fallback
from .core.output_formatter import EXPORT_FORMATS, UnityOutputFormatter, generate_output_file_name
from .core.parser import diff_unity_files, get_available_languages
from .core.rtl_formatter import RtlOptions, apply_rtl_formatting
from .core.structure_filter import FilterOptions, filter_structure
from .core.structure_validator import StructureValidator
from .core.substitution import apply_translations, generate_reversed_content
from .core.translation_map import import_from_po, import_from_xliff, parse_translations, quick_report
from .core.translator import ServiceTranslator, TranslationManager
from .utils.config import ConfigManager
from .utils.encoding import read_text_safely, write_text
from .utils.hashing import find_duplicate_groups
from .version import VERSION

logger = logging.getLogger(__name__)


def setup_logging(verbose: bool):
    level = logging.DEBUG if verbose else logging.INFO
    logging.basicConfig(
        level=level,
        format='%(asctime)s - %(name)s - %(levelname)s - %(message)s',
        handlers=[logging.StreamHandler()]
    )


def _read_input(path: str, config: ConfigManager) -> str:
    text = read_text_safely(Path(path), normalize=config.extraction_settings.normalize_input)
    if text is None:
        raise I2LocalizerError(f"Could not read file: {path}")
    return text


def _write_output(path: str, text: str):
    if not write_text(Path(path), text):
        raise I2LocalizerError(f"Could not write file: {path}")
    print(f"  Written: {path}")


def _language(args, config: ConfigManager) -> int:
    if getattr(args, 'language', None) is not None:
        return args.language
    return config.extraction_settings.language_index


def _rtl_options(args, config: ConfigManager) -> RtlOptions:
    options = config.rtl_settings.to_options()
    if getattr(args, 'presentation_forms', False):
        options.presentation_forms = True
    if getattr(args, 'override', False):
        options.directional_override = True
    if getattr(args, 'persian_digits', False):
        options.persian_digits = True
    return options


def _extract(text: str, language: int, config: ConfigManager):
    return extract_with_fallback(text, language, config.extraction_settings.fallback_window)


def _load_translations(path: str, config: ConfigManager, required: bool = False):
    content = _read_input(path, config)
    suffix = Path(path).suffix.lower()
    if suffix == ".po":
        translations = import_from_po(content)
    elif suffix in (".xlf", ".xliff"):
        translations = import_from_xliff(content)
    else:
        translations = parse_translations(content)
    if required and not translations:
        raise ParseError(f"No translations found in {path}")
    return translations


# ============================================================================
# COMMAND HANDLERS
# ============================================================================

def run_extract_command(args, config: ConfigManager) -> int:
    text = _read_input(args.input_path, config)
    records = _extract(text, _language(args, config), config)

    fmt = args.format or config.app_settings.export_format
    formatter = UnityOutputFormatter(
        config.translation_settings.source_language, config.translation_settings.target_language)
    content = formatter.export(fmt, records, {})
    if args.output:
        _write_output(args.output, content)
        print(f"  Extracted {len(records)} records ({sum(1 for r in records if r.has_value)} with values)")
    else:
        print(content)
    return 0 if records else 2


def run_apply_command(args, config: ConfigManager) -> int:
    text = _read_input(args.input_path, config)
    translations = _load_translations(args.translations, config, required=True)
    language = _language(args, config)
    records = _extract(text, language, config)

    if args.rtl:
        result = generate_reversed_content(text, records, translations, _rtl_options(args, config))
    else:
        result = apply_translations(text, records, translations)

    output = args.output or str(Path(args.input_path).with_name(generate_output_file_name(Path(args.input_path).name)))
    _write_output(output, result.text)
    print(f"  Substituted {result.count} lines")
    print(quick_report(records, translations))

    if args.report:
        report = DiagnosticReport(config.translation_settings.target_language, language)
        report.record_extraction(args.input_path, records)
        report.record_substitution(args.input_path, records, translations, result.count)
        report.write(args.report)
    return 0


def run_rtl_command(args, config: ConfigManager) -> int:
    text = args.text if args.text is not None else _read_input(args.file, config)
    print(apply_rtl_formatting(text, _rtl_options(args, config)))
    return 0


def run_validate_command(args, config: ConfigManager) -> int:
    text = _read_input(args.input_path, config)
    validator = StructureValidator(expected_indent=config.extraction_settings.expected_indent)
    result = validator.analyze(text)
    if args.json:
        print(json.dumps(result.to_dict(), ensure_ascii=False, indent=2))
    else:
        print(f"  Items: {result.total_items}  Valid: {result.valid_items}")
        for issue in result.issues:
            print(f"  [{issue.severity.value.upper()}] line {issue.line}: {issue.message}")
        print("  VALID" if result.is_valid else "  INVALID")
    return 0 if result.is_valid else 1


def run_fix_command(args, config: ConfigManager) -> int:
    text = _read_input(args.input_path, config)
    fixed = StructureValidator(expected_indent=config.extraction_settings.expected_indent).auto_fix(text)
    _write_output(args.output, fixed)
    return 0


def run_export_command(args, config: ConfigManager) -> int:
    text = _read_input(args.input_path, config)
    translations = _load_translations(args.translations, config) if args.translations else {}
    records = _extract(text, _language(args, config), config)
    formatter = UnityOutputFormatter(
        config.translation_settings.source_language, config.translation_settings.target_language)

    if args.categorized:
        files = formatter.categorized_files(records, translations)
        if args.output.endswith('.zip'):
            formatter.bundle_files(files, Path(args.output))
            print(f"  Written: {args.output}")
        else:
            for name, content in files.items():
                _write_output(str(Path(args.output) / name), content)
        return 0

    fmt = args.format or config.app_settings.export_format
    _write_output(args.output, formatter.export(fmt, records, translations))
    return 0


def run_translate_command(args, config: ConfigManager) -> int:
    settings = config.translation_settings
    endpoint = args.service_url or settings.service_url
    if not endpoint:
        print("  Error: no translation service URL configured (use --service-url)")
        return 1

    text = _read_input(args.input_path, config)
    records = _extract(text, _language(args, config), config)
    existing = _load_translations(args.translations, config) if args.translations else {}

    translator = ServiceTranslator(
        endpoint,
        api_key=args.api_key or config.get_api_key(),
        timeout=settings.timeout,
        batch_size=settings.batch_size,
        batch_delay=settings.batch_delay,
        preserve_placeholders=settings.preserve_placeholders,
    )
    manager = TranslationManager(translator)

    async def run():
        try:
            return await manager.translate_records(records, existing, only_missing=not args.all)
        finally:
            await manager.close()

    try:
        outcome = asyncio.run(run())
    except RateLimitError as e:
        print(f"  Rate limited: {e}")
        return 3
    except QuotaExceededError as e:
        print(f"  Quota exceeded: {e}")
        return 4

    for term, warnings in outcome.warnings.items():
        for warning in warnings:
            print(f"  [WARNING] {term}: {warning}")
    _write_output(args.output, json.dumps(outcome.translations.to_dict(), ensure_ascii=False, indent=2))
    return 0


def run_filter_command(args, config: ConfigManager) -> int:
    text = _read_input(args.input_path, config)
    languages = None
    if args.languages:
        languages = frozenset(int(part) for part in args.languages.split(',') if part.strip())
    options = FilterOptions(
        include_term_data=not args.no_term_data,
        include_term=not args.no_term,
        include_term_type=args.term_type,
        language_indices=languages,
    )
    result = filter_structure(text, options)
    _write_output(args.output, result.text)
    print(f"  Kept {result.item_count} items")
    return 0


def run_languages_command(args, config: ConfigManager) -> int:
    text = _read_input(args.input_path, config)
    languages = get_available_languages(text)
    print("  Languages: " + (", ".join(str(i) for i in languages) if languages else "none"))
    return 0


def run_diff_command(args, config: ConfigManager) -> int:
    diff = diff_unity_files(_read_input(args.old_path, config), _read_input(args.new_path, config),
                            _language(args, config))
    print(f"  Added: {len(diff.added)}  Removed: {len(diff.removed)}  "
          f"Changed: {len(diff.changed)}  Unchanged: {diff.unchanged}")
    for label, terms in (('+', diff.added), ('-', diff.removed), ('~', diff.changed)):
        for term in terms:
            print(f"  {label} {term}")
    return 0 if diff.is_identical else 1


def run_duplicates_command(args, config: ConfigManager) -> int:
    groups = find_duplicate_groups(Path(p) for p in args.paths)
    if not groups:
        print("  No duplicates found")
    for group in groups:
        print(f"  {group.digest[:12]}: " + ", ".join(str(p) for p in group.paths))
    return 0


# ============================================================================
# ARGUMENT PARSING
# ============================================================================

def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="i2localizer",
        description="Extract, translate and rebuild Unity I2Languages text dumps",
    )
    parser.add_argument("--version", action="version", version=f"%(prog)s {VERSION}")
    parser.add_argument("-v", "--verbose", action="store_true", help="Enable debug logging")
    parser.add_argument("--config", default="i2localizer_config.json", help="Path to config JSON")
    sub = parser.add_subparsers(dest="command")

    def language_arg(p):
        p.add_argument("-l", "--language", type=int, default=None, help="Language slot index")

    def rtl_args(p):
        p.add_argument("--presentation-forms", action="store_true", help="Map letters to isolated forms")
        p.add_argument("--override", action="store_true", help="Prefix RIGHT-TO-LEFT OVERRIDE")
        p.add_argument("--persian-digits", action="store_true", help="Convert ASCII digits")

    p = sub.add_parser("extract", help="Extract terms from a dump")
    p.add_argument("input_path")
    p.add_argument("-f", "--format", choices=EXPORT_FORMATS)
    p.add_argument("-o", "--output")
    language_arg(p)
    p.set_defaults(func=run_extract_command)

    p = sub.add_parser("apply", help="Write translations back into a dump")
    p.add_argument("input_path")
    p.add_argument("translations")
    p.add_argument("-o", "--output")
    p.add_argument("--rtl", action="store_true", help="RTL-format translations before writing")
    p.add_argument("--report", help="Write a JSON coverage report")
    language_arg(p)
    rtl_args(p)
    p.set_defaults(func=run_apply_command)

    p = sub.add_parser("rtl", help="RTL-format a string or file")
    group = p.add_mutually_exclusive_group(required=True)
    group.add_argument("text", nargs="?")
    group.add_argument("--file")
    rtl_args(p)
    p.set_defaults(func=run_rtl_command)

    p = sub.add_parser("validate", help="Check dump structure")
    p.add_argument("input_path")
    p.add_argument("--json", action="store_true")
    p.set_defaults(func=run_validate_command)

    p = sub.add_parser("fix", help="Canonicalize dump indentation")
    p.add_argument("input_path")
    p.add_argument("-o", "--output", required=True)
    p.set_defaults(func=run_fix_command)

    p = sub.add_parser("export", help="Export records and translations")
    p.add_argument("input_path")
    p.add_argument("-t", "--translations")
    p.add_argument("-f", "--format", choices=EXPORT_FORMATS)
    p.add_argument("--categorized", action="store_true", help="One file per category (directory or .zip)")
    p.add_argument("-o", "--output", required=True)
    language_arg(p)
    p.set_defaults(func=run_export_command)

    p = sub.add_parser("translate", help="Machine-translate values through the translation service")
    p.add_argument("input_path")
    p.add_argument("-o", "--output", required=True)
    p.add_argument("-t", "--translations", help="Existing translations to keep")
    p.add_argument("--service-url")
    p.add_argument("--api-key")
    p.add_argument("--all", action="store_true", help="Retranslate terms that already have a translation")
    language_arg(p)
    p.set_defaults(func=run_translate_command)

    p = sub.add_parser("filter", help="Rebuild a reduced dump")
    p.add_argument("input_path")
    p.add_argument("-o", "--output", required=True)
    p.add_argument("--languages", help="Comma separated language slots to keep")
    p.add_argument("--term-type", action="store_true")
    p.add_argument("--no-term-data", action="store_true")
    p.add_argument("--no-term", action="store_true")
    p.set_defaults(func=run_filter_command)

    p = sub.add_parser("languages", help="List language slots present in a dump")
    p.add_argument("input_path")
    p.set_defaults(func=run_languages_command)

    p = sub.add_parser("diff", help="Compare two dumps term by term")
    p.add_argument("old_path")
    p.add_argument("new_path")
    language_arg(p)
    p.set_defaults(func=run_diff_command)

    p = sub.add_parser("duplicates", help="Find byte-identical files")
    p.add_argument("paths", nargs="+")
    p.set_defaults(func=run_duplicates_command)

    return parser


def main(argv: Optional[List[str]] = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)
    if not getattr(args, "func", None):
        parser.print_help()
        return 1

    setup_logging(args.verbose)
    config = ConfigManager(args.config)

    try:
        return args.func(args, config)
    except (I2LocalizerError, ValueError) as e:
        logger.debug("Command failed", exc_info=True)
        print(f"  Error: {e}")
        return 1


if __name__ == "__main__":
    sys.exit(main())
