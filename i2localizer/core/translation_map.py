"""
Translation Map
===============

Immutable term -> translation snapshot plus importers for the translation
file shapes users bring back from translators and tools.
"""

import json
import logging
import re
from typing import Dict, Iterable, Iterator, List, Mapping, Optional, Tuple

import polib
from lxml import etree

from .exceptions import ParseError
from .line_model import normalize_file_content
from .parser import Record

logger = logging.getLogger(__name__)

CSV_PAIR_RE = re.compile(r'^"(.+)"\s*,\s*"(.+)"$')
CSV_LIKE_RE = re.compile(r'^".*",".*"$')
XLIFF_NAMESPACES = {'xliff': 'urn:oasis:names:tc:xliff:document:1.2'}


class TranslationMap(Mapping):
    """Read-only mapping of term to translated text.

    Updates return new maps, the receiver is never modified.
    """

    __slots__ = ('_data',)

    def __init__(self, data: Optional[Mapping[str, str]] = None):
        self._data: Dict[str, str] = dict(data or {})

    def __getitem__(self, term: str) -> str:
        return self._data[term]

    def __iter__(self) -> Iterator[str]:
        return iter(self._data)

    def __len__(self) -> int:
        return len(self._data)

    def __repr__(self) -> str:
        return f"TranslationMap({len(self._data)} entries)"

    def merged(self, other: Mapping[str, str]) -> 'TranslationMap':
        """New map with ``other`` layered on top (``other`` wins)."""
        data = dict(self._data)
        data.update(other)
        return TranslationMap(data)

    def with_entry(self, term: str, translation: str) -> 'TranslationMap':
        return self.merged({term: translation})

    def without(self, term: str) -> 'TranslationMap':
        data = dict(self._data)
        data.pop(term, None)
        return TranslationMap(data)

    def to_dict(self) -> Dict[str, str]:
        return dict(self._data)


def merge_translations(*maps: Mapping[str, str]) -> TranslationMap:
    result = TranslationMap()
    for m in maps:
        result = result.merged(m)
    return result


def has_translation(translations: Mapping[str, str], term: str) -> bool:
    return bool(translations.get(term))


def _parse_json(content: str) -> Optional[Dict[str, str]]:
    try:
        data = json.loads(content)
    except ValueError:
        logger.debug("Translation file looks like JSON but does not parse, trying text formats")
        return None

    pairs: Dict[str, str] = {}
    if isinstance(data, list):
        for item in data:
            if not isinstance(item, dict):
                continue
            term, translation = item.get('term'), item.get('translation')
            if term and translation:
                pairs[str(term)] = str(translation)
    elif isinstance(data, dict):
        for term, translation in data.items():
            if isinstance(translation, str) and translation:
                pairs[term] = translation
    return pairs


def _parse_text(content: str) -> Dict[str, str]:
    lines = [line.strip() for line in content.split('\n')]
    pairs: Dict[str, str] = {}
    i = 0
    while i < len(lines):
        line = lines[i]
        following = lines[i + 1] if i + 1 < len(lines) else None

        if line.startswith('#Term:'):
            if following is not None and following.startswith('#Original:'):
                pairs[line[len('#Term:'):].strip()] = following[len('#Original:'):].strip()
                i += 2
                continue
            i += 1
            continue

        match = CSV_PAIR_RE.match(line)
        if match:
            pairs[match.group(1)] = match.group(2)
            i += 1
            continue

        if (line and not line.startswith('#') and following
                and not following.startswith('#') and not CSV_LIKE_RE.match(following)):
            pairs[line] = following
            i += 2
            continue

        i += 1
    return pairs


def parse_translations(content: str) -> TranslationMap:
    """Sniff the format of a translation file and parse it.

    Priority: JSON (array of ``{term, translation}`` or flat object),
    ``#Term:``/``#Original:`` pairs, ``"term","translation"`` lines and
    finally two consecutive plain lines. Unrecognized lines are skipped.
    """
    content = normalize_file_content(content)
    stripped = content.strip()
    pairs: Optional[Dict[str, str]] = None
    if stripped.startswith('{') or stripped.startswith('['):
        pairs = _parse_json(stripped)
    if pairs is None:
        pairs = _parse_text(content)
    logger.info(f"Parsed {len(pairs)} translations")
    return TranslationMap(pairs)


def import_from_po(content: str) -> TranslationMap:
    """Read a Gettext catalog.

    The term is taken from ``msgctxt``, then the first ``#:`` reference,
    then ``msgid``. Plural entries use their first form. Empty and obsolete
    entries are skipped.
    """
    try:
        po = polib.pofile(normalize_file_content(content))
    except (OSError, ValueError) as e:
        raise ParseError(f"Invalid PO content: {e}") from e

    pairs: Dict[str, str] = {}
    for entry in po:
        if entry.obsolete:
            continue
        translation = entry.msgstr or entry.msgstr_plural.get(0, '')
        if not translation:
            continue
        if entry.msgctxt:
            term = entry.msgctxt
        elif entry.occurrences:
            term = entry.occurrences[0][0]
        else:
            term = entry.msgid
        if term:
            pairs[term] = translation
    logger.info(f"Imported {len(pairs)} translations from PO")
    return TranslationMap(pairs)


def import_from_xliff(content: str) -> TranslationMap:
    """Read ``trans-unit`` targets of an XLIFF 1.2 file, keyed by ``resname`` or ``id``."""
    try:
        root = etree.fromstring(normalize_file_content(content).encode('utf-8'))
    except etree.XMLSyntaxError as e:
        raise ParseError(f"Invalid XLIFF content: {e}") from e

    pairs: Dict[str, str] = {}
    for unit in root.findall('.//xliff:trans-unit', XLIFF_NAMESPACES):
        term = unit.get('resname') or unit.get('id')
        target = unit.find('xliff:target', XLIFF_NAMESPACES)
        if not term or target is None:
            continue
        translation = ''.join(target.itertext())
        if translation:
            pairs[term] = translation
    logger.info(f"Imported {len(pairs)} translations from XLIFF")
    return TranslationMap(pairs)


def import_from_json(content: str) -> Tuple[List[Record], TranslationMap]:
    """Read a JSON export (``[{term, originalText, translation}]``)."""
    try:
        data = json.loads(normalize_file_content(content))
    except ValueError as e:
        logger.warning(f"JSON import failed: {e}")
        return [], TranslationMap()

    records: List[Record] = []
    pairs: Dict[str, str] = {}
    if isinstance(data, list):
        for item in data:
            if not isinstance(item, dict) or not item.get('term'):
                continue
            term = str(item['term'])
            records.append(Record(term=term, original_text=str(item.get('originalText', ''))))
            if item.get('translation'):
                pairs[term] = str(item['translation'])
    return records, TranslationMap(pairs)


def count_translated(records: Iterable[Record], translations: Mapping[str, str]) -> int:
    return sum(1 for r in records if has_translation(translations, r.term))


def _stats(records: List[Record], translations: Mapping[str, str]) -> Tuple[int, int, int]:
    total = len(records)
    translated = count_translated(records, translations)
    percent = round(translated / total * 100) if total else 0
    return total, translated, percent


def quick_report(records: Iterable[Record], translations: Mapping[str, str]) -> str:
    total, translated, percent = _stats(list(records), translations)
    return (
        f"Total terms: {total}\n"
        f"Translated: {translated}\n"
        f"Untranslated: {total - translated}\n"
        f"Progress: {percent}%"
    )


def one_line_csv_report(records: Iterable[Record], translations: Mapping[str, str]) -> str:
    total, translated, percent = _stats(list(records), translations)
    return f"Total,{total},Translated,{translated},Percent,{percent}%"


def filter_records(records: Iterable[Record],
                   translations: Mapping[str, str],
                   query: str = "",
                   status: str = "all") -> List[Record]:
    """Filter by case-insensitive substring and translation status.

    ``status`` is one of ``all``, ``translated`` or ``untranslated``.
    """
    if status not in ('all', 'translated', 'untranslated'):
        raise ValueError(f"Unknown status filter: {status}")
    needle = query.lower()
    result = []
    for record in records:
        translated = has_translation(translations, record.term)
        if status == 'translated' and not translated:
            continue
        if status == 'untranslated' and translated:
            continue
        if needle:
            haystack = (record.term, record.original_text, translations.get(record.term, ''))
            if not any(needle in value.lower() for value in haystack):
                continue
        result.append(record)
    return result
