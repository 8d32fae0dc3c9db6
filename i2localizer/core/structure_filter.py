"""
Structure Filter
================

Rebuilds a reduced dump that keeps only selected parts of every item
(TermData, Term, TermType and a subset of language slots). Output uses the
canonical indentation of :mod:`structure_validator`.
"""

import logging
from dataclasses import dataclass, field
from typing import FrozenSet, List, Optional

from .line_model import ClassifiedLine, LineKind, classify_text, join_lines, next_non_blank
from .structure_validator import ITEM_INDENT, TERM_DATA_INDENT, TERM_INDENT, canonicalize_line


@dataclass(frozen=True)
class FilterOptions:
    include_term_data: bool = True
    include_term: bool = True
    include_term_type: bool = False
    # None keeps every language slot
    language_indices: Optional[FrozenSet[int]] = None

    def keeps_language(self, index: int) -> bool:
        return self.language_indices is None or index in self.language_indices


@dataclass
class FilterResult:
    text: str
    item_count: int
    synthetic_ids: bool = False
    terms: List[str] = field(default_factory=list)


class StructureFilter:

    def __init__(self, options: Optional[FilterOptions] = None):
        self.logger = logging.getLogger(__name__)
        self.options = options or FilterOptions()

    def filter(self, text: str) -> FilterResult:
        lines = classify_text(text)
        headers = [line for line in lines if line.kind is LineKind.ITEM_HEADER]
        if headers:
            result = self._filter_items(lines, headers)
        else:
            result = self._filter_by_terms(lines)
        self.logger.info(f"Filtered {result.item_count} items (synthetic ids: {result.synthetic_ids})")
        return result

    def _render_block(self, item_id: int, block: List[ClassifiedLine], term_anchored: bool = False) -> List[str]:
        out = [f"{ITEM_INDENT}[{item_id}]"]
        if term_anchored and self.options.include_term_data:
            # TermData of a term-anchored block sits above its anchor
            out.append(f"{TERM_DATA_INDENT}0 TermData data")
        for pos, line in enumerate(block):
            if line.kind is LineKind.TERM_DATA and self.options.include_term_data and not term_anchored:
                out.append(canonicalize_line(line))
            elif line.kind is LineKind.TERM and self.options.include_term:
                out.append(canonicalize_line(line))
            elif line.kind is LineKind.TERM_TYPE and self.options.include_term_type:
                out.append(f"{TERM_INDENT}0 int TermType = {line.number}")
            elif line.kind is LineKind.ARRAY_MARKER and self.options.keeps_language(line.number):
                value = next_non_blank(block, pos + 1)
                if value is not None and value.kind is LineKind.VALUE:
                    out.append(canonicalize_line(line))
                    out.append(canonicalize_line(value))
        return out

    def _filter_items(self, lines, headers) -> FilterResult:
        output: List[str] = []
        terms: List[str] = []
        bounds = [h.index for h in headers] + [len(lines)]
        for header, end in zip(headers, bounds[1:]):
            block = lines[header.index + 1:end]
            term = next((l.value for l in block if l.kind is LineKind.TERM), None)
            if term is not None:
                terms.append(term)
            output.extend(self._render_block(header.number, block))
        return FilterResult(join_lines(output), len(headers), False, terms)

    def _filter_by_terms(self, lines) -> FilterResult:
        output: List[str] = []
        terms: List[str] = []
        anchors = [l.index for l in lines if l.kind is LineKind.TERM]
        bounds = anchors + [len(lines)]
        for synthetic_id, (start, end) in enumerate(zip(anchors, bounds[1:])):
            block = lines[start:end]
            terms.append(block[0].value)
            output.extend(self._render_block(synthetic_id, block, term_anchored=True))
        return FilterResult(join_lines(output), len(anchors), True, terms)


def filter_structure(text: str, options: Optional[FilterOptions] = None) -> FilterResult:
    return StructureFilter(options).filter(text)
