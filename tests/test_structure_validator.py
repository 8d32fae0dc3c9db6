from i2localizer.core.structure_validator import Severity, StructureValidator
from dumps import MULTI, SCENARIO


def test_well_formed_dump_is_valid():
    result = StructureValidator().analyze(MULTI)
    assert result.is_valid
    assert result.total_items == 2
    assert result.valid_items == 2
    assert result.issues == []


def test_missing_term_is_single_error():
    text = "\n".join([
        '   [0]',
        '     0 TermData data',
        '        [0]',
        '         1 string data = "Hi"',
    ])
    result = StructureValidator().analyze(text)
    assert not result.is_valid
    assert len(result.errors) == 1
    error = result.errors[0]
    assert error.message == "Missing Term in item [0]"
    assert error.item_index == 0
    assert error.line == 1
    assert result.valid_items == 0


def test_indentation_is_a_warning():
    result = StructureValidator().analyze(SCENARIO)
    assert result.is_valid
    assert result.total_items == 1
    assert len(result.warnings) == 1
    assert result.warnings[0].line == 2
    assert "expected 3" in result.warnings[0].message


def test_missing_value_is_a_warning():
    text = '   [0]\n     0 TermData data\n      1 string Term = "A"\n'
    result = StructureValidator().analyze(text)
    assert result.is_valid
    messages = [w.message for w in result.warnings]
    assert "Missing nested [0] array in item [0]" in messages
    assert "Missing data in item [0]" in messages


def test_unmatched_quotes():
    text = "\n".join([
        '   [0]',
        '     0 TermData data',
        '      1 string Term = "A"',
        '        [0]',
        '         1 string data = "broken',
    ])
    result = StructureValidator().analyze(text)
    assert not result.is_valid
    quotes = [e for e in result.errors if e.message == "Unmatched quotes"]
    assert [e.line for e in quotes] == [5]


def test_issues_are_sorted_and_serializable():
    text = '[0]\n0 TermData data\n[1]\n0 TermData data\n'
    result = StructureValidator().analyze(text)
    lines = [i.line for i in result.issues]
    assert lines == sorted(lines)
    data = result.to_dict()
    assert data['total_items'] == 2
    assert data['issues'][0]['severity'] in (Severity.ERROR.value, Severity.WARNING.value)


def test_auto_fix_canonicalizes_indentation():
    text = '[0]\n0 TermData data\n\n 1 string Term = "Hello"\n  0 int TermType = 0\n[0]\n1 string data = "Hi"\n'
    fixed = StructureValidator().auto_fix(text)
    assert fixed.split("\n") == [
        '   [0]',
        '     0 TermData data',
        '      1 string Term = "Hello"',
        '  0 int TermType = 0',
        '        [0]',
        '         1 string data = "Hi"',
    ]


def test_auto_fix_output_validates():
    fixed = StructureValidator().auto_fix(SCENARIO)
    result = StructureValidator().analyze(fixed)
    assert result.is_valid
    assert result.warnings == []
