"""Tests for ASGITraceIDMiddleware and the traced httpx client."""

import httpx
from fastapi import FastAPI
from fastapi.testclient import TestClient

from libs.common.logging import (
    TRACE_ID_HEADER,
    ASGITraceIDMiddleware,
    LogContext,
    get_trace_id,
    get_traced_sync_client,
)


def _app() -> FastAPI:
    app = FastAPI()
    app.add_middleware(ASGITraceIDMiddleware)

    @app.get("/trace")
    async def trace() -> dict:
        return {"trace_id": get_trace_id()}

    return app


def test_uses_inbound_trace_id():
    client = TestClient(_app())

    response = client.get("/trace", headers={TRACE_ID_HEADER: "req-42"})

    assert response.json() == {"trace_id": "req-42"}
    assert response.headers[TRACE_ID_HEADER] == "req-42"


def test_generates_trace_id_when_missing():
    client = TestClient(_app())

    response = client.get("/trace")

    generated = response.json()["trace_id"]
    assert generated
    assert response.headers[TRACE_ID_HEADER] == generated


def test_trace_id_cleared_after_request():
    TestClient(_app()).get("/trace", headers={TRACE_ID_HEADER: "req-42"})

    assert get_trace_id() is None


def test_traced_client_forwards_trace_id(respx_mock):
    route = respx_mock.get("https://ranges.test/ips-v4").mock(return_value=httpx.Response(200))

    with get_traced_sync_client(timeout=1.0) as client, LogContext("fetch-1"):
        client.get("https://ranges.test/ips-v4")

    assert route.calls.last.request.headers[TRACE_ID_HEADER] == "fetch-1"


def test_traced_client_without_trace_id(respx_mock):
    route = respx_mock.get("https://ranges.test/ips-v4").mock(return_value=httpx.Response(200))

    with get_traced_sync_client(timeout=1.0) as client:
        client.get("https://ranges.test/ips-v4")

    assert TRACE_ID_HEADER not in route.calls.last.request.headers
