"""Batch client for the remote AI translation service (aiohttp)."""

from __future__ import annotations

import asyncio
import aiohttp
import logging
import re
from dataclasses import dataclass, field
from typing import Any, Dict, Iterable, List, Mapping, Optional

from .exceptions import QuotaExceededError, RateLimitError, TranslationServiceError
from .parser import Record
from .translation_map import TranslationMap


# {0}, %d, %s, %f, %x and literal \n / \t escapes
PLACEHOLDER_PATTERN = re.compile(r'\{\d+\}|%[dsfx]|\\n|\\t')
MAX_LENGTH_RATIO = 1.5
MAX_TRANSLATION_LENGTH = 200

DEFAULT_BATCH_SIZE = 10
DEFAULT_BATCH_DELAY = 0.5


def count_placeholders(text: str) -> int:
    return len(PLACEHOLDER_PATTERN.findall(text))


def validate_translation(source: str, translation: str) -> List[str]:
    """Quality warnings for a single translated string."""
    warnings = []
    if count_placeholders(source) != count_placeholders(translation):
        warnings.append("Placeholder count mismatch")
    if source and len(translation) > len(source) * MAX_LENGTH_RATIO:
        warnings.append("Translation is more than 150% of the source length")
    if len(translation) > MAX_TRANSLATION_LENGTH:
        warnings.append(f"Translation exceeds {MAX_TRANSLATION_LENGTH} characters")
    return warnings


@dataclass
class TranslationRequest:
    texts: List[str]
    preserve_placeholders: bool = True

    def to_payload(self) -> Dict[str, Any]:
        return {'texts': list(self.texts), 'preservePlaceholders': self.preserve_placeholders}


@dataclass
class TranslationItem:
    english: str
    persian: str
    warnings: List[str] = field(default_factory=list)
    missing: bool = False


def items_from_payload(texts: List[str], payload: Any) -> List[TranslationItem]:
    """Align a service response with the request texts.

    A missing or empty translation keeps the source text and is flagged.
    """
    entries = payload.get('translations') if isinstance(payload, dict) else None
    if not isinstance(entries, list):
        entries = []
    items = []
    for i, text in enumerate(texts):
        entry = entries[i] if i < len(entries) and isinstance(entries[i], dict) else {}
        persian = entry.get('persian')
        if not isinstance(persian, str) or not persian:
            items.append(TranslationItem(text, text, ["Missing translation, kept original text"], missing=True))
            continue
        warnings = entry.get('warnings')
        if not isinstance(warnings, list):
            warnings = validate_translation(text, persian)
        items.append(TranslationItem(text, persian, [str(w) for w in warnings]))
    return items


class ServiceTranslator:
    """POSTs fixed-size batches to the translation endpoint."""

    def __init__(self,
                 endpoint: str,
                 api_key: Optional[str] = None,
                 timeout: float = 30,
                 batch_size: int = DEFAULT_BATCH_SIZE,
                 batch_delay: float = DEFAULT_BATCH_DELAY,
                 preserve_placeholders: bool = True):
        self.endpoint = endpoint
        self.api_key = api_key
        self.timeout = timeout
        self.batch_size = max(1, int(batch_size))
        self.batch_delay = batch_delay
        self.preserve_placeholders = preserve_placeholders
        self.logger = logging.getLogger(self.__class__.__name__)
        self._session: Optional[aiohttp.ClientSession] = None

    async def _get_session(self) -> aiohttp.ClientSession:
        if self._session is None or self._session.closed:
            timeout = aiohttp.ClientTimeout(total=self.timeout)
            self._session = aiohttp.ClientSession(timeout=timeout)
        return self._session

    async def close(self):
        if self._session:
            try:
                await self._session.close()
            except Exception as e:
                self.logger.debug(f"Session close failed: {e}")
            self._session = None

    def _headers(self) -> Dict[str, str]:
        headers = {'Content-Type': 'application/json'}
        if self.api_key:
            headers['Authorization'] = f"Bearer {self.api_key}"
        return headers

    async def translate_batch(self, texts: List[str]) -> List[TranslationItem]:
        """One service call. Raises on non-200 responses."""
        if not texts:
            return []
        request = TranslationRequest(texts, self.preserve_placeholders)
        session = await self._get_session()
        try:
            async with session.post(self.endpoint, json=request.to_payload(), headers=self._headers()) as resp:
                if resp.status == 429:
                    raise RateLimitError("Translation service rate limit exceeded, try again later", 429)
                if resp.status == 402:
                    raise QuotaExceededError("Translation service credits exhausted, payment required", 402)
                if resp.status != 200:
                    raise TranslationServiceError(f"Translation service failed: HTTP {resp.status}", resp.status)
                payload = await resp.json(content_type=None)
        except aiohttp.ClientError as e:
            raise TranslationServiceError(f"Translation service unreachable: {e}") from e
        return items_from_payload(texts, payload)

    async def translate_texts(self, texts: List[str]) -> List[TranslationItem]:
        """Translate in fixed-size batches with a delay between batches."""
        items: List[TranslationItem] = []
        for start in range(0, len(texts), self.batch_size):
            if start:
                await asyncio.sleep(self.batch_delay)
            batch = texts[start:start + self.batch_size]
            self.logger.info(f"Translating batch {start // self.batch_size + 1} ({len(batch)} texts)")
            items.extend(await self.translate_batch(batch))
        return items


@dataclass
class TranslationOutcome:
    translations: TranslationMap
    items: List[TranslationItem] = field(default_factory=list)
    warnings: Dict[str, List[str]] = field(default_factory=dict)

    @property
    def missing(self) -> int:
        return sum(1 for item in self.items if item.missing)


class TranslationManager:
    """Feeds record values to a translator and merges results into a new map.

    Items the service left untranslated are reported in ``items`` and
    ``warnings`` only, so a later run retries them.
    """

    def __init__(self, translator: ServiceTranslator):
        self.translator = translator
        self.logger = logging.getLogger(__name__)

    async def translate_records(self,
                                records: Iterable[Record],
                                translations: Optional[Mapping[str, str]] = None,
                                only_missing: bool = True) -> TranslationOutcome:
        base = TranslationMap(translations or {})
        pending: Dict[str, str] = {}
        for record in records:
            if not record.original_text or record.term in pending:
                continue
            if only_missing and base.get(record.term):
                continue
            pending[record.term] = record.original_text

        if not pending:
            self.logger.info("Nothing to translate")
            return TranslationOutcome(base)

        terms = list(pending)
        items = await self.translator.translate_texts([pending[t] for t in terms])
        updates = {term: item.persian for term, item in zip(terms, items) if not item.missing}
        warnings = {term: item.warnings for term, item in zip(terms, items) if item.warnings}
        outcome = TranslationOutcome(base.merged(updates), items, warnings)
        self.logger.info(
            f"Translated {len(items) - outcome.missing}/{len(items)} texts, "
            f"{len(warnings)} with warnings"
        )
        return outcome

    async def close(self):
        await self.translator.close()
