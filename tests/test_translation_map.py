import pytest

from i2localizer.core.exceptions import ParseError
from i2localizer.core.parser import Record
from i2localizer.core.translation_map import (
    TranslationMap,
    filter_records,
    import_from_po,
    import_from_xliff,
    merge_translations,
    one_line_csv_report,
    parse_translations,
    quick_report,
)


RECORDS = [
    Record(term="Menu/Start", original_text="Start"),
    Record(term="Menu/Quit", original_text="Quit"),
    Record(term="Intro", original_text="Welcome"),
]


def test_map_updates_return_new_maps():
    base = TranslationMap({"A": "1"})
    updated = base.with_entry("B", "2")
    assert dict(base) == {"A": "1"}
    assert dict(updated) == {"A": "1", "B": "2"}
    assert dict(updated.without("A")) == {"B": "2"}
    with pytest.raises(TypeError):
        base["C"] = "3"


def test_merge_later_maps_win():
    merged = merge_translations({"A": "1", "B": "2"}, TranslationMap({"B": "x"}))
    assert merged.to_dict() == {"A": "1", "B": "x"}


def test_parse_json_array():
    content = '[{"term": "A", "translation": "x"}, {"term": "B", "translation": ""}, 5]'
    assert parse_translations(content).to_dict() == {"A": "x"}


def test_parse_json_object():
    assert parse_translations('{"A": "x", "B": 1}').to_dict() == {"A": "x"}


def test_parse_json_object_drops_empty_translations():
    assert parse_translations('{"Hello": ""}').to_dict() == {}


def test_invalid_json_falls_through_to_text():
    assert parse_translations('{not json').to_dict() == {}


def test_parse_term_original_pairs():
    content = "#Term: Hello\n#Original: سلام\n#Term: Orphan\n"
    assert parse_translations(content).to_dict() == {"Hello": "سلام"}


def test_parse_csv_pairs():
    content = '"A","x"\n"B" , "y"\n'
    assert parse_translations(content).to_dict() == {"A": "x", "B": "y"}


def test_parse_two_line_pairs_with_crlf_and_bom():
    content = "\ufeffHello\r\nسلام\r\n\r\nBye\r\nخداحافظ\r\n"
    assert parse_translations(content).to_dict() == {"Hello": "سلام", "Bye": "خداحافظ"}


def test_import_po_with_continuations():
    content = "\n".join([
        '#: Hello',
        'msgid "Hi"',
        'msgstr "سلام"',
        '',
        '#: Bye',
        'msgid "Bye"',
        'msgstr ""',
        '',
        '#: Long',
        'msgid "Long"',
        'msgstr "a"',
        '"b\\n"',
    ])
    assert import_from_po(content).to_dict() == {"Hello": "سلام", "Long": "ab\n"}


def test_import_po_term_priority():
    content = "\n".join([
        '#: Ignored',
        'msgctxt "Menu/Start"',
        'msgid "Start"',
        'msgstr "شروع"',
        '',
        'msgid "Quit"',
        'msgstr "خروج"',
    ])
    assert import_from_po(content).to_dict() == {"Menu/Start": "شروع", "Quit": "خروج"}


def test_import_po_plural_uses_first_form():
    content = "\n".join([
        'msgctxt "Files"',
        'msgid "One file"',
        'msgid_plural "%d files"',
        'msgstr[0] "یک فایل"',
        'msgstr[1] "%d فایل"',
    ])
    assert import_from_po(content).to_dict() == {"Files": "یک فایل"}


def test_import_po_invalid_raises():
    with pytest.raises(ParseError):
        import_from_po('msgid "a"\nthis is not po\n')


XLIFF = """<?xml version="1.0" encoding="UTF-8"?>
<xliff xmlns="urn:oasis:names:tc:xliff:document:1.2" version="1.2">
  <file original="unity" datatype="plaintext" source-language="en" target-language="fa">
    <body>
      <trans-unit id="Menu/Start"><source>Start</source><target>شروع</target></trans-unit>
      <trans-unit id="2" resname="Menu/Quit"><source>Quit</source><target>خروج</target></trans-unit>
      <trans-unit id="Intro"><source>Welcome</source><target/></trans-unit>
      <trans-unit id="NoTarget"><source>x</source></trans-unit>
    </body>
  </file>
</xliff>
"""


def test_import_xliff():
    assert import_from_xliff(XLIFF).to_dict() == {"Menu/Start": "شروع", "Menu/Quit": "خروج"}


def test_import_xliff_invalid_raises():
    with pytest.raises(ParseError):
        import_from_xliff("<xliff><file>")


def test_reports():
    translations = {"Menu/Start": "شروع", "Menu/Quit": "خروج"}
    assert one_line_csv_report(RECORDS, translations) == "Total,3,Translated,2,Percent,67%"
    assert quick_report(RECORDS, translations).split("\n") == [
        "Total terms: 3",
        "Translated: 2",
        "Untranslated: 1",
        "Progress: 67%",
    ]
    assert one_line_csv_report([], {}) == "Total,0,Translated,0,Percent,0%"


def test_filter_records():
    translations = {"Menu/Start": "شروع", "Menu/Quit": ""}
    assert [r.term for r in filter_records(RECORDS, translations, status="translated")] == ["Menu/Start"]
    assert [r.term for r in filter_records(RECORDS, translations, status="untranslated")] == ["Menu/Quit", "Intro"]
    assert [r.term for r in filter_records(RECORDS, translations, query="WELC")] == ["Intro"]
    assert [r.term for r in filter_records(RECORDS, translations, query="شروع")] == ["Menu/Start"]
    with pytest.raises(ValueError):
        filter_records(RECORDS, translations, status="bogus")
