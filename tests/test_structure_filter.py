from i2localizer.core.structure_filter import FilterOptions, filter_structure
from dumps import MULTI, NO_HEADERS


def test_filter_keeps_selected_language():
    result = filter_structure(MULTI, FilterOptions(language_indices=frozenset({1})))
    assert result.text.split("\n") == [
        '   [0]',
        '     0 TermData data',
        '      1 string Term = "Menu/Start"',
        '        [1]',
        '         1 string data = "شروع"',
        '   [1]',
        '     0 TermData data',
        '      1 string Term = "Game/Quit"',
        '        [1]',
        '         1 string data = "خروج"',
    ]
    assert result.item_count == 2
    assert not result.synthetic_ids
    assert result.terms == ["Menu/Start", "Game/Quit"]


def test_filter_term_type_and_drop_term_data():
    options = FilterOptions(include_term_data=False, include_term_type=True, language_indices=frozenset())
    lines = filter_structure(MULTI, options).text.split("\n")
    assert lines[:3] == [
        '   [0]',
        '      1 string Term = "Menu/Start"',
        '      0 int TermType = 0',
    ]
    assert not any("data =" in line for line in lines)


def test_filter_all_languages_by_default():
    result = filter_structure(MULTI)
    assert result.text.count("string data =") == 4


def test_filter_without_headers_uses_synthetic_ids():
    result = filter_structure(NO_HEADERS)
    assert result.synthetic_ids
    assert result.terms == ["A", "B"]
    assert result.text.split("\n")[:3] == [
        '   [0]',
        '     0 TermData data',
        '      1 string Term = "A"',
    ]
    assert '   [1]' in result.text.split("\n")
