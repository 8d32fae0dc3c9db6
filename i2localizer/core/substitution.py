"""
Substitution Engine
===================

Rewrites the value lines addressed by records. Only addressed lines change;
the line count of the document is never altered.
"""

import logging
from dataclasses import dataclass
from typing import Callable, Iterable, Mapping, Optional

from .line_model import VALUE_RE, escape_value, join_lines, split_lines
from .parser import Record
from .rtl_formatter import RtlOptions, apply_rtl_formatting

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class SubstitutionResult:
    text: str
    count: int


def build_value_line(line_prefix: str, value: str, tail: str = "") -> str:
    """``<prefix>data = "<escaped value>"`` followed by any original tail."""
    return f'{line_prefix}data = "{escape_value(value)}"{tail}'


def apply_translations(text: str,
                       records: Iterable[Record],
                       translations: Mapping[str, str],
                       transform: Optional[Callable[[str], str]] = None) -> SubstitutionResult:
    """Write translations into the value lines of ``text``.

    Records without ``data_line_index`` or with a missing or empty
    translation are skipped.
    ``transform`` is applied to each translation before escaping.
    ``count`` is the number of lines rewritten.
    """
    lines = split_lines(text)
    count = 0

    for record in records:
        if record.data_line_index is None or not translations.get(record.term):
            continue
        index = record.data_line_index
        if index >= len(lines):
            logger.warning(f"Line {index} for term '{record.term}' is out of range, skipping")
            continue

        current = lines[index]
        match = VALUE_RE.match(current)
        if not match:
            logger.warning(f"Line {index} for term '{record.term}' is no longer a data line, skipping")
            continue

        value = translations[record.term]
        if transform is not None:
            value = transform(value)
        lines[index] = build_value_line(record.line_prefix, value, current[match.end():])
        count += 1

    logger.debug(f"Substituted {count} lines")
    return SubstitutionResult(text=join_lines(lines), count=count)


def generate_reversed_content(text: str,
                              records: Iterable[Record],
                              translations: Mapping[str, str],
                              options: Optional[RtlOptions] = None) -> SubstitutionResult:
    """Substitute translations after RTL formatting them for legacy renderers."""
    return apply_translations(
        text, records, translations,
        transform=lambda value: apply_rtl_formatting(value, options),
    )
