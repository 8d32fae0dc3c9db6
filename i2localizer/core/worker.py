"""
Processing Worker
=================

Runs engine operations off the event loop. Callers exchange explicit
request/response messages keyed by a correlation id; every id resolves
exactly once (result, error, timeout or cancellation).
"""

import asyncio
import logging
import uuid
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Callable, Dict, Optional

from .exceptions import WorkerError
from .fallback_parser import extract_with_fallback
from .rtl_formatter import RtlOptions, apply_rtl_formatting
from .structure_filter import FilterOptions, filter_structure
from .structure_validator import StructureValidator
from .substitution import apply_translations, generate_reversed_content
from .translation_map import TranslationMap


class WorkerOperation(Enum):
    EXTRACT = "extract"
    APPLY = "apply"
    APPLY_RTL = "apply_rtl"
    RTL_FORMAT = "rtl_format"
    VALIDATE = "validate"
    AUTO_FIX = "auto_fix"
    FILTER = "filter"


class WorkerStatus(Enum):
    SUCCESS = "success"
    ERROR = "error"
    CANCELLED = "cancelled"


@dataclass(frozen=True)
class WorkerRequest:
    operation: WorkerOperation
    content: str
    language_index: int = 0
    correlation_id: str = field(default_factory=lambda: uuid.uuid4().hex)
    payload: Dict[str, Any] = field(default_factory=dict)


@dataclass(frozen=True)
class WorkerResponse:
    correlation_id: str
    status: WorkerStatus
    result: Any = None
    error: Optional[str] = None

    @property
    def ok(self) -> bool:
        return self.status is WorkerStatus.SUCCESS


def _records_for(request: WorkerRequest):
    records = request.payload.get('records')
    if records is None:
        records = extract_with_fallback(request.content, request.language_index)
    return records


def _apply(request: WorkerRequest):
    translations = TranslationMap(request.payload.get('translations', {}))
    return apply_translations(request.content, _records_for(request), translations)


def _apply_rtl(request: WorkerRequest):
    translations = TranslationMap(request.payload.get('translations', {}))
    return generate_reversed_content(
        request.content, _records_for(request), translations, request.payload.get('rtl_options'))


def _rtl_format(request: WorkerRequest):
    return apply_rtl_formatting(request.content, request.payload.get('rtl_options') or RtlOptions())


def _validate(request: WorkerRequest):
    return StructureValidator(**request.payload.get('validator', {})).analyze(request.content)


def _auto_fix(request: WorkerRequest):
    return StructureValidator().auto_fix(request.content)


def _filter(request: WorkerRequest):
    return filter_structure(request.content, request.payload.get('filter_options') or FilterOptions())


DEFAULT_HANDLERS: Dict[WorkerOperation, Callable[[WorkerRequest], Any]] = {
    WorkerOperation.EXTRACT: lambda r: extract_with_fallback(r.content, r.language_index),
    WorkerOperation.APPLY: _apply,
    WorkerOperation.APPLY_RTL: _apply_rtl,
    WorkerOperation.RTL_FORMAT: _rtl_format,
    WorkerOperation.VALIDATE: _validate,
    WorkerOperation.AUTO_FIX: _auto_fix,
    WorkerOperation.FILTER: _filter,
}


class ProcessingWorker:
    """Thread-pool backed executor for engine operations."""

    def __init__(self, max_workers: int = 2, timeout: float = 10.0):
        self.logger = logging.getLogger(__name__)
        self.timeout = timeout
        self.handlers: Dict[WorkerOperation, Callable[[WorkerRequest], Any]] = dict(DEFAULT_HANDLERS)
        self._executor = ThreadPoolExecutor(max_workers=max_workers, thread_name_prefix="i2l-worker")
        self._pending: Dict[str, asyncio.Future] = {}

    @classmethod
    def from_settings(cls, app_settings) -> "ProcessingWorker":
        """Build a worker from the ``app`` config section."""
        return cls(max_workers=app_settings.worker_threads, timeout=app_settings.worker_timeout)

    @property
    def pending_count(self) -> int:
        return len(self._pending)

    def _execute(self, request: WorkerRequest) -> WorkerResponse:
        handler = self.handlers.get(request.operation)
        if handler is None:
            raise WorkerError(f"No handler for operation {request.operation}")
        return WorkerResponse(request.correlation_id, WorkerStatus.SUCCESS, result=handler(request))

    def _on_done(self, correlation_id: str, waiter: asyncio.Future, future: asyncio.Future):
        if waiter.done():
            self.logger.debug(f"Dropping late result for {correlation_id}")
            if not future.cancelled():
                future.exception()  # mark retrieved
            return
        if future.cancelled():
            waiter.set_result(WorkerResponse(correlation_id, WorkerStatus.CANCELLED))
            return
        exc = future.exception()
        if exc is not None:
            self.logger.error(f"Operation {correlation_id} failed: {exc}")
            waiter.set_result(WorkerResponse(correlation_id, WorkerStatus.ERROR, error=str(exc)))
        else:
            waiter.set_result(future.result())

    async def submit(self, request: WorkerRequest, timeout: Optional[float] = None) -> WorkerResponse:
        cid = request.correlation_id
        if cid in self._pending:
            raise WorkerError(f"Correlation id already pending: {cid}")

        loop = asyncio.get_running_loop()
        waiter = loop.create_future()
        self._pending[cid] = waiter
        future = loop.run_in_executor(self._executor, self._execute, request)
        future.add_done_callback(lambda f: self._on_done(cid, waiter, f))

        limit = self.timeout if timeout is None else timeout
        try:
            return await asyncio.wait_for(waiter, limit)
        except asyncio.TimeoutError:
            self.logger.warning(f"Operation {request.operation.value} ({cid}) timed out after {limit}s")
            return WorkerResponse(cid, WorkerStatus.ERROR, error=f"Timed out after {limit}s")
        finally:
            self._pending.pop(cid, None)

    def cancel(self, correlation_id: str) -> bool:
        """Forget a pending request. The awaiting caller receives CANCELLED."""
        waiter = self._pending.pop(correlation_id, None)
        if waiter is None or waiter.done():
            return False
        waiter.set_result(WorkerResponse(correlation_id, WorkerStatus.CANCELLED))
        return True

    def shutdown(self, wait: bool = True):
        self._executor.shutdown(wait=wait)

    async def __aenter__(self):
        return self

    async def __aexit__(self, exc_type, exc, tb):
        self.shutdown(wait=False)
        return False
