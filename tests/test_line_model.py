import pytest

from i2localizer.core.line_model import (
    LineKind, classify_text, escape_value, normalize_file_content, unescape_value,
)
from dumps import MULTI, SCENARIO


def test_classify_scenario_lines():
    kinds = [line.kind for line in classify_text(SCENARIO)]
    assert kinds == [
        LineKind.BLANK,
        LineKind.ITEM_HEADER,
        LineKind.TERM_DATA,
        LineKind.TERM,
        LineKind.ARRAY_MARKER,
        LineKind.VALUE,
        LineKind.BLANK,
    ]


def test_value_line_keeps_prefix_and_raw_value():
    value = classify_text(MULTI)[12]
    assert value.kind is LineKind.VALUE
    assert value.prefix == '         1 string '
    assert value.value == 'Quit \\"now\\"'


def test_term_type_line():
    line = classify_text(MULTI)[3]
    assert line.kind is LineKind.TERM_TYPE
    assert line.number == 0


def test_marker_followed_by_value_is_array_marker():
    lines = classify_text(MULTI)
    assert lines[0].kind is LineKind.ITEM_HEADER
    assert lines[4].kind is LineKind.ARRAY_MARKER
    assert lines[6].kind is LineKind.ARRAY_MARKER
    assert lines[8].kind is LineKind.ITEM_HEADER


def test_tolerates_missing_field_numbers():
    lines = classify_text('string Term = "A"\n[0]\nstring data = "x"')
    assert [l.kind for l in lines] == [LineKind.TERM, LineKind.ARRAY_MARKER, LineKind.VALUE]
    assert lines[2].prefix == 'string '


def test_escape_order_backslash_first():
    assert escape_value('\\"') == '\\\\\\"'
    assert escape_value('a\nb\r\tc') == 'a\\nb\\r\\tc'


@pytest.mark.parametrize("text", [
    "",
    "plain",
    'He said "hi"',
    "C:\\path\\n",
    "line1\nline2\r\n\ttab",
    "سلام \"دنیا\"\n",
])
def test_unescape_inverts_escape(text):
    assert unescape_value(escape_value(text)) == text


def test_normalize_file_content():
    assert normalize_file_content('\ufeffa\r\nb\r\nc') == 'a\nb\nc'
    assert normalize_file_content('a\r\nb\rc') == 'a\nb\rc'
    assert normalize_file_content('plain') == 'plain'


def test_lone_cr_does_not_add_lines():
    text = '[0]\n  1 string data = "a\rb"\n'
    assert len(classify_text(normalize_file_content(text))) == len(text.split("\n"))
