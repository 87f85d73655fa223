"""
Unit tests for the HTTP execution worker client.

Requests are served by httpx.MockTransport; no worker process is started.
"""

import json

import httpx
import pytest

from extension.playground_runner.worker.base import (
    ExecutionWorker,
    OutputRecord,
    WorkerConnectionError,
    WorkerError,
    WorkerProtocolError,
    WorkerTimeoutError,
)
from extension.playground_runner.worker.http import HttpWorker


def make_worker(handler):
    return HttpWorker("http://worker.test/", transport=httpx.MockTransport(handler))


class TestHttpWorker:
    """Tests for HttpWorker."""

    @pytest.mark.asyncio
    async def test_implements_protocol(self):
        async with make_worker(lambda request: httpx.Response(200, json={})) as worker:
            assert isinstance(worker, ExecutionWorker)

    @pytest.mark.asyncio
    async def test_connect_payload(self):
        seen = []

        def handler(request):
            seen.append((request.url.path, json.loads(request.content)))
            return httpx.Response(200, json={"ok": True})

        async with make_worker(handler) as worker:
            assert await worker.connect("mongodb://localhost", {"appname": "x"}, "/opt/ext")
            assert await worker.disconnect()

        assert seen == [
            (
                "/connect",
                {
                    "connectionString": "mongodb://localhost",
                    "connectionOptions": {"appname": "x"},
                    "extensionPath": "/opt/ext",
                },
            ),
            ("/disconnect", {}),
        ]

    @pytest.mark.asyncio
    async def test_connect_refused(self):
        async with make_worker(lambda request: httpx.Response(200, json={"ok": False})) as worker:
            assert await worker.connect("mongodb://localhost", {}, "/opt/ext") is False

    @pytest.mark.asyncio
    async def test_execute_all(self):
        def handler(request):
            assert json.loads(request.content) == {"codeToEvaluate": "db.a.find()"}
            return httpx.Response(
                200,
                json={"result": [{"type": "Cursor", "content": "[]"}, {"content": "ok"}]},
            )

        async with make_worker(handler) as worker:
            result = await worker.execute_all("db.a.find()")

        assert result == [OutputRecord("[]", "Cursor"), OutputRecord("ok")]

    @pytest.mark.asyncio
    async def test_execute_all_null_result(self):
        """A script failure comes back as no result."""
        async with make_worker(lambda request: httpx.Response(200, json={"result": None})) as worker:
            assert await worker.execute_all("bad(") is None

    @pytest.mark.asyncio
    async def test_execute_all_empty_result(self):
        async with make_worker(lambda request: httpx.Response(200, json={"result": []})) as worker:
            assert await worker.execute_all("use('x')") == []

    @pytest.mark.asyncio
    async def test_non_list_result(self):
        async with make_worker(lambda request: httpx.Response(200, json={"result": "1"})) as worker:
            with pytest.raises(WorkerProtocolError):
                await worker.execute_all("1")

    @pytest.mark.asyncio
    async def test_non_object_records(self):
        async with make_worker(lambda request: httpx.Response(200, json={"result": [1, 2]})) as worker:
            with pytest.raises(WorkerProtocolError):
                await worker.execute_all("1")

    @pytest.mark.asyncio
    async def test_invalid_json(self):
        async with make_worker(lambda request: httpx.Response(200, text="not json")) as worker:
            with pytest.raises(WorkerProtocolError):
                await worker.execute_all("1")

    @pytest.mark.asyncio
    async def test_http_status_error(self):
        async with make_worker(lambda request: httpx.Response(500)) as worker:
            with pytest.raises(WorkerError):
                await worker.execute_all("1")

    @pytest.mark.asyncio
    async def test_unreachable_worker(self):
        def handler(request):
            raise httpx.ConnectError("connection refused", request=request)

        async with make_worker(handler) as worker:
            with pytest.raises(WorkerConnectionError):
                await worker.disconnect()

    @pytest.mark.asyncio
    async def test_timeout(self):
        def handler(request):
            raise httpx.ReadTimeout("timed out", request=request)

        async with make_worker(handler) as worker:
            with pytest.raises(WorkerTimeoutError):
                await worker.execute_all("sleep(1000)")

    @pytest.mark.asyncio
    async def test_cancel_all_is_fire_and_forget(self):
        """cancel_all() returns at once; close() waits for the request."""
        paths = []

        def handler(request):
            paths.append(request.url.path)
            return httpx.Response(200, json={})

        worker = make_worker(handler)
        assert worker.cancel_all() is None
        await worker.close()

        assert paths == ["/cancel"]

    @pytest.mark.asyncio
    async def test_cancel_failure_is_logged(self, caplog):
        def handler(request):
            raise httpx.ConnectError("connection refused", request=request)

        worker = make_worker(handler)
        worker.cancel_all()
        await worker.close()

        assert "Cancel request failed" in caplog.text
