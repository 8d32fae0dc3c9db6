import asyncio
import time

import pytest

from i2localizer.core.exceptions import WorkerError
from i2localizer.core.worker import (
    ProcessingWorker,
    WorkerOperation,
    WorkerRequest,
    WorkerStatus,
)
from i2localizer.utils.config import AppSettings
from dumps import SCENARIO


def _slow(request):
    time.sleep(0.3)
    return "late"


def test_extract_round_trip():
    async def run():
        async with ProcessingWorker() as worker:
            request = WorkerRequest(WorkerOperation.EXTRACT, SCENARIO)
            response = await worker.submit(request)
            return request, response, worker.pending_count

    request, response, pending = asyncio.run(run())
    assert response.ok
    assert response.correlation_id == request.correlation_id
    assert [r.term for r in response.result] == ["Hello"]
    assert pending == 0


def test_apply_operation_uses_payload():
    async def run():
        async with ProcessingWorker() as worker:
            request = WorkerRequest(WorkerOperation.APPLY, SCENARIO, payload={'translations': {"Hello": "سلام"}})
            return await worker.submit(request)

    response = asyncio.run(run())
    assert response.ok
    assert response.result.count == 1
    assert 'data = "سلام"' in response.result.text


def test_handler_error_becomes_error_response():
    def boom(request):
        raise ValueError("bad input")

    async def run():
        async with ProcessingWorker() as worker:
            worker.handlers[WorkerOperation.VALIDATE] = boom
            return await worker.submit(WorkerRequest(WorkerOperation.VALIDATE, ""))

    response = asyncio.run(run())
    assert response.status is WorkerStatus.ERROR
    assert response.error == "bad input"


def test_unknown_operation():
    async def run():
        async with ProcessingWorker() as worker:
            worker.handlers.pop(WorkerOperation.FILTER)
            return await worker.submit(WorkerRequest(WorkerOperation.FILTER, SCENARIO))

    response = asyncio.run(run())
    assert response.status is WorkerStatus.ERROR
    assert "No handler" in response.error


def test_timeout_resolves_once_and_drops_late_result():
    async def run():
        worker = ProcessingWorker()
        worker.handlers[WorkerOperation.EXTRACT] = _slow
        response = await worker.submit(WorkerRequest(WorkerOperation.EXTRACT, ""), timeout=0.05)
        pending = worker.pending_count
        await asyncio.sleep(0.5)
        worker.shutdown()
        return response, pending, worker.pending_count

    response, pending, after = asyncio.run(run())
    assert response.status is WorkerStatus.ERROR
    assert response.error == "Timed out after 0.05s"
    assert pending == 0
    assert after == 0


def test_cancel_pending_request():
    async def run():
        worker = ProcessingWorker()
        worker.handlers[WorkerOperation.EXTRACT] = _slow
        request = WorkerRequest(WorkerOperation.EXTRACT, "")
        task = asyncio.ensure_future(worker.submit(request))
        await asyncio.sleep(0.05)
        cancelled = worker.cancel(request.correlation_id)
        response = await task
        unknown = worker.cancel("missing")
        await asyncio.sleep(0.5)
        worker.shutdown()
        return cancelled, response, unknown, worker.pending_count

    cancelled, response, unknown, pending = asyncio.run(run())
    assert cancelled
    assert response.status is WorkerStatus.CANCELLED
    assert not unknown
    assert pending == 0


def test_duplicate_correlation_id_is_rejected():
    async def run():
        worker = ProcessingWorker()
        worker.handlers[WorkerOperation.EXTRACT] = _slow
        request = WorkerRequest(WorkerOperation.EXTRACT, "", correlation_id="fixed")
        task = asyncio.ensure_future(worker.submit(request))
        await asyncio.sleep(0.05)
        with pytest.raises(WorkerError):
            await worker.submit(request)
        response = await task
        worker.shutdown()
        return response

    response = asyncio.run(run())
    assert response.ok
    assert response.result == "late"


def test_from_settings():
    worker = ProcessingWorker.from_settings(AppSettings(worker_threads=1, worker_timeout=2.5))
    try:
        assert worker.timeout == 2.5
    finally:
        worker.shutdown()
