"""Tolerant multi-shape extractor.

Used only when the primary scanner finds no record with a value. Each item
header opens a bounded window; inside it the term line is located and the
record shape is chosen per record:

* ``NestedShape`` - the value sits right under a ``[n]`` language slot;
* ``FlatShape``   - the value line directly follows the term line.

Dumps without any item header are anchored on term lines instead and get
synthetic sequential item ids.
"""
import logging
from dataclasses import dataclass
from typing import List, Optional, Sequence, Union

from .line_model import ClassifiedLine, LineKind, classify_text, next_non_blank, unescape_value
from .parser import I2LanguagesParser, Record

DEFAULT_WINDOW = 25
MIN_WINDOW = 20
MAX_WINDOW = 30

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class NestedShape:
    array_index: int
    value_line: ClassifiedLine


@dataclass(frozen=True)
class FlatShape:
    value_line: ClassifiedLine


RecordShape = Union[NestedShape, FlatShape]


def clamp_window(window: int) -> int:
    return max(MIN_WINDOW, min(MAX_WINDOW, int(window)))


def classify_shape(block: Sequence[ClassifiedLine], language_index: int = 0) -> Optional[RecordShape]:
    """Pick the record shape from the lines following a term declaration.

    ``block`` starts right after the term line and is already bounded by the
    caller. Scanning stops at the next term or item header.
    """
    first = next_non_blank(block, 0)
    if first is not None and first.kind is LineKind.VALUE:
        return FlatShape(value_line=first)

    for pos, line in enumerate(block):
        if line.kind in (LineKind.TERM, LineKind.ITEM_HEADER):
            break
        if line.kind is LineKind.ARRAY_MARKER and line.number == language_index:
            value = next_non_blank(block, pos + 1)
            if value is not None and value.kind is LineKind.VALUE:
                return NestedShape(array_index=line.number, value_line=value)
    return None


def _record_from(term: ClassifiedLine, shape: Optional[RecordShape], item_index: int) -> Record:
    if shape is None:
        return Record(term=term.value, item_index=item_index)
    value = shape.value_line
    return Record(
        term=term.value,
        original_text=unescape_value(value.value),
        data_line_index=value.index,
        line_prefix=value.prefix,
        item_index=item_index,
    )


class FallbackExtractor:
    """Header-anchored, window-bounded extraction."""

    def __init__(self, window: int = DEFAULT_WINDOW):
        self.logger = logging.getLogger(__name__)
        self.window = clamp_window(window)

    def extract(self, text: str, language_index: int = 0) -> List[Record]:
        lines = classify_text(text)
        headers = [line for line in lines if line.kind is LineKind.ITEM_HEADER]
        if headers:
            records = self._extract_by_headers(lines, headers, language_index)
        else:
            records = self._extract_by_terms(lines, language_index)
        self.logger.info(f"Fallback extraction produced {len(records)} records")
        return records

    def _extract_by_headers(self, lines, headers, language_index) -> List[Record]:
        records: List[Record] = []
        for header in headers:
            start = header.index + 1
            stop = min(start + self.window, len(lines))
            term: Optional[ClassifiedLine] = None
            for line in lines[start:stop]:
                if line.kind is LineKind.ITEM_HEADER:
                    break
                if line.kind is LineKind.TERM:
                    term = line
                    break
            if term is None:
                continue
            block = lines[term.index + 1:stop]
            records.append(_record_from(term, classify_shape(block, language_index), header.number))
        return records

    def _extract_by_terms(self, lines, language_index) -> List[Record]:
        records: List[Record] = []
        terms = [line for line in lines if line.kind is LineKind.TERM]
        for synthetic_id, term in enumerate(terms):
            start = term.index + 1
            block = lines[start:min(start + self.window, len(lines))]
            records.append(_record_from(term, classify_shape(block, language_index), synthetic_id))
        return records


def extract_with_fallback(text: str, language_index: int = 0, window: int = DEFAULT_WINDOW) -> List[Record]:
    """Primary scan first; fall back only when it yields no record with a value."""
    records = I2LanguagesParser(language_index).extract_terms(text)
    if any(r.has_value for r in records):
        return records
    logger.warning("Primary scanner found no values, switching to fallback extraction")
    return FallbackExtractor(window).extract(text, language_index)
