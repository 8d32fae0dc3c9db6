"""
I2Languages Parser
==================

Primary record scanner for Unity I2Languages text dumps plus a handful of
helpers that operate on whole dumps (language discovery, comparison).
"""

import logging
import re
from dataclasses import dataclass, field
from typing import Dict, List, Optional

from .line_model import LineKind, classify_text, unescape_value


@dataclass(frozen=True)
class Record:
    """One term discovered in a dump.

    ``original_text`` is unescaped. ``line_prefix`` is the exact text in front
    of the ``data`` token on line ``data_line_index`` (e.g. ``"  1 string "``).
    """
    term: str
    original_text: str = ""
    data_line_index: Optional[int] = None
    line_prefix: str = ""
    item_index: Optional[int] = None

    @property
    def has_value(self) -> bool:
        return self.data_line_index is not None


@dataclass
class _OpenRecord:
    term: str
    item_index: Optional[int]
    original_text: str = ""
    data_line_index: Optional[int] = None
    line_prefix: str = ""

    def freeze(self) -> Record:
        return Record(
            term=self.term,
            original_text=self.original_text,
            data_line_index=self.data_line_index,
            line_prefix=self.line_prefix,
            item_index=self.item_index,
        )


@dataclass
class DumpDiff:
    """Term-level comparison between two dumps."""
    added: List[str] = field(default_factory=list)
    removed: List[str] = field(default_factory=list)
    changed: List[str] = field(default_factory=list)
    unchanged: int = 0

    @property
    def is_identical(self) -> bool:
        return not (self.added or self.removed or self.changed)


class I2LanguagesParser:
    """Sequential term/value scanner.

    A ``Term`` declaration opens a record, flushes the previous one and
    clears the current language slot. A ``[n]`` marker sets the slot; while it
    equals the target index and nothing was captured yet, the line after each
    line is tested for a ``data`` declaration. First match wins.
    """

    def __init__(self, language_index: int = 0):
        self.logger = logging.getLogger(__name__)
        self.language_index = language_index

    def extract_terms(self, text: str, language_index: Optional[int] = None) -> List[Record]:
        target = self.language_index if language_index is None else language_index
        lines = classify_text(text)
        records: List[Record] = []
        current: Optional[_OpenRecord] = None
        item_index: Optional[int] = None
        slot: Optional[int] = None

        for pos, line in enumerate(lines):
            if line.kind is LineKind.ITEM_HEADER:
                item_index = line.number

            if line.kind is LineKind.TERM:
                if current is not None:
                    records.append(current.freeze())
                current = _OpenRecord(term=line.value, item_index=item_index)
                slot = None
                continue

            if current is None:
                continue

            if line.is_marker:
                slot = line.number

            if slot == target and current.data_line_index is None and pos + 1 < len(lines):
                candidate = lines[pos + 1]
                if candidate.kind is LineKind.VALUE:
                    current.original_text = unescape_value(candidate.value)
                    current.data_line_index = candidate.index
                    current.line_prefix = candidate.prefix

        if current is not None:
            records.append(current.freeze())

        usable = sum(1 for r in records if r.has_value)
        self.logger.debug(f"Primary scan: {len(records)} records, {usable} with values (language {target})")
        return records


def extract_terms(text: str, language_index: int = 0) -> List[Record]:
    return I2LanguagesParser(language_index).extract_terms(text)


def get_available_languages(text: str) -> List[int]:
    """Sorted distinct language slots that carry a value declaration."""
    indices = {line.number for line in classify_text(text) if line.kind is LineKind.ARRAY_MARKER}
    return sorted(indices)


def is_valid_unity_file(text: str) -> bool:
    """Cheap sniff: the text contains at least one Term and one data line."""
    kinds = {line.kind for line in classify_text(text)}
    return LineKind.TERM in kinds and LineKind.VALUE in kinds


_BLOCK_COMMENT_RE = re.compile(r'/\*.*?\*/', re.DOTALL)
_LINE_COMMENT_RE = re.compile(r'^[ \t]*//.*$', re.MULTILINE)


def strip_comments(text: str) -> str:
    """Remove ``/* ... */`` blocks and whole-line ``//`` comments."""
    text = _BLOCK_COMMENT_RE.sub('', text)
    return _LINE_COMMENT_RE.sub('', text)


def _term_values(text: str, language_index: int) -> Dict[str, str]:
    # Late import: the fallback module depends on this one.
    from .fallback_parser import extract_with_fallback
    values: Dict[str, str] = {}
    for record in extract_with_fallback(text, language_index):
        values.setdefault(record.term, record.original_text)
    return values


def diff_unity_files(old_text: str, new_text: str, language_index: int = 0) -> DumpDiff:
    old_values = _term_values(old_text, language_index)
    new_values = _term_values(new_text, language_index)
    diff = DumpDiff()
    for term, value in new_values.items():
        if term not in old_values:
            diff.added.append(term)
        elif old_values[term] != value:
            diff.changed.append(term)
        else:
            diff.unchanged += 1
    diff.removed = [term for term in old_values if term not in new_values]
    return diff


def are_translations_equal(first: str, second: str, language_index: int = 0) -> bool:
    return _term_values(first, language_index) == _term_values(second, language_index)
