"""
Line Model
==========

Line-level view of an I2Languages text dump. Every line is classified once
into a :class:`LineKind`; scanners, the validator and the filter all work on
the classified sequence instead of re-running their own regexes.
"""

import re
from dataclasses import dataclass
from enum import Enum
from typing import List, Optional, Sequence


# [12]
BRACKET_RE = re.compile(r'^\s*\[(\d+)\]\s*$')
# 0 TermData data
TERM_DATA_RE = re.compile(r'^\s*(?:\d+\s+)?TermData\s+data\b')
# 1 string Term = "Menu/Start"
TERM_RE = re.compile(r'^\s*(?:\d+\s+)?string\s+Term\s*=\s*"((?:[^"\\]|\\.)+)"')
# 0 int TermType = 0
TERM_TYPE_RE = re.compile(r'^\s*(?:\d+\s+)?int\s+TermType\s*=\s*(-?\d+)')
# 1 string data = "Start game"
VALUE_RE = re.compile(r'^(?P<prefix>\s*(?:\d+\s+)?string\s+)data\s*=\s*"(?P<value>(?:[^"\\]|\\.)*)"')

BOM = '\ufeff'

_ESCAPES = (
    ('\\', '\\\\'),
    ('"', '\\"'),
    ('\n', '\\n'),
    ('\r', '\\r'),
    ('\t', '\\t'),
)
_UNESCAPES = {'\\': '\\', '"': '"', 'n': '\n', 'r': '\r', 't': '\t'}
_UNESCAPE_RE = re.compile(r'\\(.)', re.DOTALL)


class LineKind(Enum):
    BLANK = "blank"
    ITEM_HEADER = "item_header"
    ARRAY_MARKER = "array_marker"
    TERM_DATA = "term_data"
    TERM = "term"
    TERM_TYPE = "term_type"
    VALUE = "value"
    OTHER = "other"


@dataclass(frozen=True)
class ClassifiedLine:
    index: int
    text: str
    kind: LineKind
    number: Optional[int] = None   # bracket index or TermType
    value: Optional[str] = None    # raw (escaped) quoted content
    prefix: str = ""               # text before the `data` token of value lines

    @property
    def is_marker(self) -> bool:
        return self.kind in (LineKind.ITEM_HEADER, LineKind.ARRAY_MARKER)


def normalize_file_content(text: str) -> str:
    """Strip a leading BOM and convert CRLF line endings to LF.

    A lone CR is left alone so line indices match the file on disk.
    """
    if text.startswith(BOM):
        text = text[1:]
    return text.replace('\r\n', '\n')


def split_lines(text: str) -> List[str]:
    return text.split('\n')


def join_lines(lines: Sequence[str]) -> str:
    return '\n'.join(lines)


def escape_value(text: str) -> str:
    """Escape a value for a quoted dump string (backslash first)."""
    for raw, escaped in _ESCAPES:
        text = text.replace(raw, escaped)
    return text


def unescape_value(text: str) -> str:
    """Inverse of :func:`escape_value`. Unknown escapes are kept verbatim."""
    def _replace(match: re.Match) -> str:
        ch = match.group(1)
        return _UNESCAPES.get(ch, match.group(0))
    return _UNESCAPE_RE.sub(_replace, text)


def _classify_single(index: int, line: str) -> ClassifiedLine:
    if not line.strip():
        return ClassifiedLine(index, line, LineKind.BLANK)

    m = BRACKET_RE.match(line)
    if m:
        # Header vs array marker is decided by the caller with lookahead.
        return ClassifiedLine(index, line, LineKind.ITEM_HEADER, number=int(m.group(1)))

    m = VALUE_RE.match(line)
    if m:
        return ClassifiedLine(index, line, LineKind.VALUE, value=m.group('value'), prefix=m.group('prefix'))

    m = TERM_RE.match(line)
    if m:
        return ClassifiedLine(index, line, LineKind.TERM, value=m.group(1))

    if TERM_DATA_RE.match(line):
        return ClassifiedLine(index, line, LineKind.TERM_DATA)

    m = TERM_TYPE_RE.match(line)
    if m:
        return ClassifiedLine(index, line, LineKind.TERM_TYPE, number=int(m.group(1)))

    return ClassifiedLine(index, line, LineKind.OTHER)


def classify_lines(lines: Sequence[str]) -> List[ClassifiedLine]:
    """Classify every line of a dump.

    A ``[n]`` marker whose next non-blank line is a value declaration is an
    ARRAY_MARKER (a language slot); any other marker is an ITEM_HEADER.
    """
    classified = [_classify_single(i, line) for i, line in enumerate(lines)]

    next_kind: Optional[LineKind] = None
    for i in range(len(classified) - 1, -1, -1):
        current = classified[i]
        if current.kind is LineKind.BLANK:
            continue
        if current.kind is LineKind.ITEM_HEADER and next_kind is LineKind.VALUE:
            current = ClassifiedLine(current.index, current.text, LineKind.ARRAY_MARKER, number=current.number)
            classified[i] = current
        next_kind = current.kind
    return classified


def classify_text(text: str) -> List[ClassifiedLine]:
    return classify_lines(split_lines(text))


def next_non_blank(lines: Sequence[ClassifiedLine], start: int, stop: Optional[int] = None) -> Optional[ClassifiedLine]:
    """Return the first non-blank line at or after ``start`` (before ``stop``)."""
    end = len(lines) if stop is None else min(stop, len(lines))
    for i in range(start, end):
        if lines[i].kind is not LineKind.BLANK:
            return lines[i]
    return None
