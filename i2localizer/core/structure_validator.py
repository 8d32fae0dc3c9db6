"""
Structure Validator
===================

Diagnostics for the layout of an I2Languages dump and a blind
canonicalization pass (``auto_fix``) that rewrites indentation of the
constructs it recognizes.
"""

import logging
import re
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Optional, Tuple

from .line_model import ClassifiedLine, LineKind, classify_text, join_lines

DEFAULT_EXPECTED_INDENT = 3
DEFAULT_LOOKAHEAD = 20

ITEM_INDENT = ' ' * 3
TERM_DATA_INDENT = ' ' * 5
TERM_INDENT = ' ' * 6
ARRAY_INDENT = ' ' * 8
VALUE_INDENT = ' ' * 9

_ESCAPED_CHAR_RE = re.compile(r'\\.')


class Severity(Enum):
    ERROR = "error"
    WARNING = "warning"


@dataclass(frozen=True)
class StructureIssue:
    severity: Severity
    line: int  # 1-based
    message: str
    item_index: Optional[int] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            'severity': self.severity.value,
            'line': self.line,
            'message': self.message,
            'item_index': self.item_index,
        }


@dataclass
class AnalysisResult:
    is_valid: bool
    issues: List[StructureIssue] = field(default_factory=list)
    total_items: int = 0
    valid_items: int = 0

    @property
    def errors(self) -> List[StructureIssue]:
        return [i for i in self.issues if i.severity is Severity.ERROR]

    @property
    def warnings(self) -> List[StructureIssue]:
        return [i for i in self.issues if i.severity is Severity.WARNING]

    def to_dict(self) -> Dict[str, Any]:
        return {
            'is_valid': self.is_valid,
            'total_items': self.total_items,
            'valid_items': self.valid_items,
            'issues': [i.to_dict() for i in self.issues],
        }


def canonicalize_line(line: ClassifiedLine) -> Optional[str]:
    """Canonical rendering of a recognized construct, None for anything else."""
    if line.kind is LineKind.ITEM_HEADER:
        return f"{ITEM_INDENT}[{line.number}]"
    if line.kind is LineKind.TERM_DATA:
        return f"{TERM_DATA_INDENT}0 TermData data"
    if line.kind is LineKind.TERM:
        return f'{TERM_INDENT}1 string Term = "{line.value}"'
    if line.kind is LineKind.ARRAY_MARKER:
        return f"{ARRAY_INDENT}[{line.number}]"
    if line.kind is LineKind.VALUE:
        return f'{VALUE_INDENT}1 string data = "{line.value}"'
    return None


def has_unmatched_quotes(text: str) -> bool:
    return _ESCAPED_CHAR_RE.sub('', text).count('"') % 2 == 1


class StructureValidator:
    """Checks item layout and quote balance of a dump."""

    def __init__(self, expected_indent: int = DEFAULT_EXPECTED_INDENT, lookahead: int = DEFAULT_LOOKAHEAD):
        self.logger = logging.getLogger(__name__)
        self.expected_indent = expected_indent
        self.lookahead = lookahead

    def analyze(self, text: str) -> AnalysisResult:
        lines = classify_text(text)
        issues: List[StructureIssue] = []
        total_items = 0
        valid_items = 0

        for line in lines:
            if line.kind is not LineKind.ITEM_HEADER:
                continue
            total_items += 1
            item_issues, complete = self._check_item(lines, line)
            issues.extend(item_issues)
            if complete:
                valid_items += 1

        issues.extend(self._check_quotes(lines))
        issues.sort(key=lambda i: i.line)

        result = AnalysisResult(
            is_valid=not any(i.severity is Severity.ERROR for i in issues),
            issues=issues,
            total_items=total_items,
            valid_items=valid_items,
        )
        self.logger.info(
            f"Structure analysis: {total_items} items, {valid_items} valid, "
            f"{len(result.errors)} errors, {len(result.warnings)} warnings"
        )
        return result

    def _check_item(self, lines: List[ClassifiedLine], header: ClassifiedLine) -> Tuple[List[StructureIssue], bool]:
        issues: List[StructureIssue] = []
        item = header.number
        line_no = header.index + 1

        indent = header.text[:len(header.text) - len(header.text.lstrip())]
        if indent != ' ' * self.expected_indent:
            issues.append(StructureIssue(
                Severity.WARNING, line_no,
                f"Item [{item}] indented with {len(indent)} spaces, expected {self.expected_indent}",
                item,
            ))

        has_term_data = has_term = has_array = has_data = False
        for line in lines[header.index + 1:header.index + 1 + self.lookahead]:
            if line.kind is LineKind.ITEM_HEADER:
                break
            if line.kind is LineKind.TERM_DATA:
                has_term_data = True
            elif line.kind is LineKind.TERM:
                has_term = True
            elif line.kind is LineKind.ARRAY_MARKER and line.number == 0:
                has_array = True
            elif line.kind is LineKind.VALUE:
                has_data = True

        if not has_term_data:
            issues.append(StructureIssue(Severity.ERROR, line_no, f"Missing TermData in item [{item}]", item))
        if not has_term:
            issues.append(StructureIssue(Severity.ERROR, line_no, f"Missing Term in item [{item}]", item))
        if not has_array:
            issues.append(StructureIssue(Severity.WARNING, line_no, f"Missing nested [0] array in item [{item}]", item))
        if not has_data:
            issues.append(StructureIssue(Severity.WARNING, line_no, f"Missing data in item [{item}]", item))
        return issues, has_term_data and has_term and has_array and has_data

    def _check_quotes(self, lines: List[ClassifiedLine]) -> List[StructureIssue]:
        issues = []
        item: Optional[int] = None
        for line in lines:
            if line.kind is LineKind.ITEM_HEADER:
                item = line.number
            if 'string' in line.text and '=' in line.text and has_unmatched_quotes(line.text):
                issues.append(StructureIssue(Severity.ERROR, line.index + 1, "Unmatched quotes", item))
        return issues

    def auto_fix(self, text: str) -> str:
        """Rewrite recognized constructs with canonical indentation.

        Unknown non-empty lines are kept as they are; empty lines are dropped.
        """
        fixed: List[str] = []
        for line in classify_text(text):
            if line.kind is LineKind.BLANK:
                continue
            canonical = canonicalize_line(line)
            fixed.append(line.text if canonical is None else canonical)
        self.logger.info(f"Auto-fix produced {len(fixed)} lines")
        return join_lines(fixed)
