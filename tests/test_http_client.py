"""Tests for the shared HTTP helpers."""

import asyncio

import pytest

aiohttp_mod = pytest.importorskip("aiohttp")

import aiohttp
import aiohttp.test_utils
from aiohttp import web

from common.http_client import backoff_delay, fetch_text
from constants import Constants


def _serve(statuses, retry_max=None):
    """Answer successive requests with `statuses`, then 200; return (result, count)."""
    calls = []

    async def handler(request):
        calls.append(request.path)
        index = len(calls) - 1
        status = statuses[index] if index < len(statuses) else 200
        return web.Response(status=status, text=f"body-{status}")

    async def _run():
        app = web.Application()
        app.router.add_get("/{tail:.*}", handler)
        async with aiohttp.test_utils.TestServer(app) as ts:
            async with aiohttp.ClientSession() as session:
                url = f"http://{ts.host}:{ts.port}/metadata.xml"
                return await fetch_text(session, url, retry_max=retry_max, base_delay=0)

    return asyncio.run(_run()), len(calls)


class TestFetchText:
    """Retry behavior of fetch_text."""

    def test_success(self):
        (status, text), calls = _serve([])
        assert (status, text, calls) == (200, "body-200", 1)

    def test_retries_transient_status(self):
        (status, text), calls = _serve([503])
        assert status == 200
        assert text == "body-200"
        assert calls == 2

    def test_not_found_is_not_retried(self):
        (status, _), calls = _serve([404])
        assert status == 404
        assert calls == 1

    def test_gives_up_after_retry_max(self):
        (status, _), calls = _serve([500, 502, 503, 504], retry_max=2)
        assert status == 502
        assert calls == 2

    def test_connection_refused_returns_zero(self):
        async def _run():
            async with aiohttp.ClientSession() as session:
                # Port 1 on localhost refuses connections.
                return await fetch_text(session, "http://127.0.0.1:1/x", retry_max=2, base_delay=0)

        status, text = asyncio.run(_run())
        assert status == 0
        assert "connection error" in text


class TestBackoff:
    """Exponential backoff schedule."""

    def test_backoff_doubles(self):
        assert backoff_delay(0, 0.5) == 0.5
        assert backoff_delay(2, 0.5) == 2.0

    def test_backoff_uses_constants(self):
        Constants.HTTP_RETRY_BASE_DELAY_SEC = 0.25
        assert backoff_delay(1) == 0.5
