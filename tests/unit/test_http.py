"""
Unit tests for the shared HTTP helpers.

WHAT: Error translation and connectivity probes
WHY: Every adapter relies on these to surface failures the same way
HOW: Mock HTTP with respx
"""

import httpx
import pytest
import respx

from infill.llm.http import compact, probe, request_json
from infill.utils.exceptions import BackendError, ConnectivityTestFailedError, NetworkError

URL = "http://backend.test/endpoint"


@pytest.mark.unit
class TestRequestJson:
    """Status and transport error mapping."""

    @pytest.mark.asyncio
    @respx.mock
    async def test_returns_decoded_body(self):
        respx.post(URL).mock(return_value=httpx.Response(200, json={"ok": True}))

        assert await request_json("POST", URL, action="call", payload={}) == {"ok": True}

    @pytest.mark.asyncio
    @respx.mock
    async def test_non_2xx_carries_status_and_body(self):
        respx.post(URL).mock(return_value=httpx.Response(502, text="upstream down"))

        with pytest.raises(BackendError) as exc_info:
            await request_json("POST", URL, action="call backend", payload={})

        error = exc_info.value
        assert error.status_code == 502
        assert error.body == "upstream down"
        assert error.code == "BACKEND_ERROR"
        assert error.message.startswith("Failed to call backend: 502 Bad Gateway")

    @pytest.mark.asyncio
    @respx.mock
    async def test_invalid_json_raises_backend_error(self):
        respx.post(URL).mock(return_value=httpx.Response(200, text="<html>"))

        with pytest.raises(BackendError, match="invalid response format"):
            await request_json("POST", URL, action="call", payload={})
    @pytest.mark.asyncio
    @pytest.mark.parametrize("body", ["null", "[1, 2]", "\"text\""])
    @respx.mock
    async def test_non_object_json_raises_backend_error(self, body):
        respx.post(URL).mock(return_value=httpx.Response(200, text=body))

        with pytest.raises(BackendError, match="invalid response format"):
            await request_json("POST", URL, action="call", payload={})

    @pytest.mark.asyncio
    @respx.mock
    async def test_timeout_raises_network_error(self):
        respx.post(URL).mock(side_effect=httpx.ReadTimeout("timeout"))

        with pytest.raises(NetworkError, match="timed out"):
            await request_json("POST", URL, action="call", payload={})

    @pytest.mark.asyncio
    @respx.mock
    async def test_connect_error_raises_network_error(self):
        respx.get(URL).mock(side_effect=httpx.ConnectError("connection refused"))

        with pytest.raises(NetworkError) as exc_info:
            await request_json("GET", URL, action="call")
        assert exc_info.value.details == {"url": URL}


@pytest.mark.unit
class TestProbe:
    """Configure-time connectivity test."""

    @pytest.mark.asyncio
    @respx.mock
    async def test_success(self):
        route = respx.post(URL).mock(return_value=httpx.Response(200, json={}))

        await probe(URL, {"prompt": "Hello"}, headers={"Authorization": "Bearer k"})

        assert route.calls.last.request.headers["Authorization"] == "Bearer k"

    @pytest.mark.asyncio
    @respx.mock
    async def test_non_2xx_fails(self):
        respx.post(URL).mock(return_value=httpx.Response(401))

        with pytest.raises(ConnectivityTestFailedError, match="401 Unauthorized") as exc_info:
            await probe(URL, {})
        assert exc_info.value.status_code == 401

    @pytest.mark.asyncio
    @respx.mock
    async def test_unreachable_fails(self):
        respx.post(URL).mock(side_effect=httpx.ConnectError("refused"))

        with pytest.raises(ConnectivityTestFailedError):
            await probe(URL, {})


@pytest.mark.unit
def test_compact_drops_none_only():
    assert compact({"a": None, "b": 0, "c": "", "d": []}) == {"b": 0, "c": "", "d": []}
