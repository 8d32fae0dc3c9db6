import asyncio

import pytest

from i2localizer.core import translator as translator_module
from i2localizer.core.exceptions import QuotaExceededError, RateLimitError, TranslationServiceError
from i2localizer.core.parser import Record
from i2localizer.core.translator import (
    ServiceTranslator,
    TranslationManager,
    items_from_payload,
    validate_translation,
)


class DummyResp:
    def __init__(self, status, data):
        self.status = status
        self._data = data

    async def __aenter__(self):
        return self

    async def __aexit__(self, exc_type, exc, tb):
        return False

    async def json(self, content_type=None):
        return self._data


class DummySession:
    """Echoes every text back as ``fa:<text>``, or empty for ``blank`` texts."""

    def __init__(self, status=200, blank=()):
        self.status = status
        self.blank = set(blank)
        self.calls = []
        self.closed = False

    def post(self, url, json=None, headers=None):
        self.calls.append((url, json, headers))
        data = {'translations': [{'english': t, 'persian': "" if t in self.blank else f"fa:{t}"} for t in json['texts']]}
        return DummyResp(self.status, data)

    async def close(self):
        self.closed = True


def _translator(monkeypatch, session, **kwargs):
    t = ServiceTranslator("https://dummy/translate", api_key="secret", **kwargs)

    async def fake_get_session():
        return session

    monkeypatch.setattr(t, "_get_session", fake_get_session)
    return t


def test_batch_request_shape(monkeypatch):
    session = DummySession()
    t = _translator(monkeypatch, session)
    items = asyncio.run(t.translate_batch(["Start", "Quit"]))

    url, payload, headers = session.calls[0]
    assert url == "https://dummy/translate"
    assert payload == {'texts': ["Start", "Quit"], 'preservePlaceholders': True}
    assert headers['Authorization'] == "Bearer secret"
    assert [(i.english, i.persian) for i in items] == [("Start", "fa:Start"), ("Quit", "fa:Quit")]
    assert not any(i.missing for i in items)


def test_texts_are_sent_in_batches_with_delay(monkeypatch):
    session = DummySession()
    t = _translator(monkeypatch, session, batch_size=5, batch_delay=0.25)
    delays = []

    async def fake_sleep(delay):
        delays.append(delay)

    monkeypatch.setattr(translator_module.asyncio, "sleep", fake_sleep)
    items = asyncio.run(t.translate_texts([f"t{i}" for i in range(12)]))

    assert [len(call[1]['texts']) for call in session.calls] == [5, 5, 2]
    assert delays == [0.25, 0.25]
    assert len(items) == 12
    assert items[11].persian == "fa:t11"


@pytest.mark.parametrize("status,error", [
    (429, RateLimitError),
    (402, QuotaExceededError),
    (500, TranslationServiceError),
])
def test_http_errors(monkeypatch, status, error):
    t = _translator(monkeypatch, DummySession(status=status))
    with pytest.raises(error) as excinfo:
        asyncio.run(t.translate_batch(["x"]))
    assert excinfo.value.status == status


def test_missing_entries_keep_source_text():
    payload = {'translations': [{'english': 'A', 'persian': 'الف'}, {'english': 'B', 'persian': ''}]}
    items = items_from_payload(["A", "B", "C"], payload)
    assert items[0].persian == "الف"
    assert items[1].persian == "B" and items[1].missing
    assert items[2].persian == "C" and items[2].missing
    assert items[2].warnings == ["Missing translation, kept original text"]


def test_service_warnings_are_passed_through():
    payload = {'translations': [{'persian': 'x', 'warnings': ['Too long']}]}
    assert items_from_payload(["a"], payload)[0].warnings == ["Too long"]
    assert items_from_payload(["a"], None)[0].missing


def test_validate_translation():
    assert validate_translation("Hello {0}", "سلام {0}") == []
    assert "Placeholder count mismatch" in validate_translation("Hi %s\\n", "سلام")
    assert "Translation is more than 150% of the source length" in validate_translation("Hi", "سلام دنیا")
    assert "Translation exceeds 200 characters" in validate_translation("x" * 190, "y" * 201)


def test_manager_translates_only_missing(monkeypatch):
    session = DummySession()
    manager = TranslationManager(_translator(monkeypatch, session))
    records = [
        Record(term="Menu/Start", original_text="Start"),
        Record(term="Menu/Quit", original_text="Quit"),
        Record(term="Empty"),
    ]
    existing = {"Menu/Start": "شروع"}
    outcome = asyncio.run(manager.translate_records(records, existing))

    assert session.calls[0][1]['texts'] == ["Quit"]
    assert outcome.translations.to_dict() == {"Menu/Start": "شروع", "Menu/Quit": "fa:Quit"}
    assert existing == {"Menu/Start": "شروع"}
    assert outcome.missing == 0


def test_manager_does_not_store_missing_items(monkeypatch):
    session = DummySession(blank=["Quit"])
    manager = TranslationManager(_translator(monkeypatch, session))
    records = [
        Record(term="Menu/Start", original_text="Start"),
        Record(term="Menu/Quit", original_text="Quit"),
    ]
    outcome = asyncio.run(manager.translate_records(records, {}))

    assert outcome.translations.to_dict() == {"Menu/Start": "fa:Start"}
    assert outcome.missing == 1
    assert outcome.warnings["Menu/Quit"] == ["Missing translation, kept original text"]


def test_manager_nothing_to_translate(monkeypatch):
    session = DummySession()
    manager = TranslationManager(_translator(monkeypatch, session))
    outcome = asyncio.run(manager.translate_records([Record(term="A", original_text="a")], {"A": "x"}))
    assert session.calls == []
    assert outcome.translations.to_dict() == {"A": "x"}


def test_close_releases_session():
    t = ServiceTranslator("https://dummy")
    session = DummySession()
    t._session = session
    asyncio.run(t.close())
    assert session.closed
    assert t._session is None
