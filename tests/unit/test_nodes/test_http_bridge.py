"""Tests for the HTTP node bridge client."""

from __future__ import annotations

import json

import httpx
import pytest

from hostlink.domain.errors import CollaboratorError
from hostlink.nodes.http_bridge import HttpBridgeClient


def _bridge(handler) -> HttpBridgeClient:
    client = httpx.AsyncClient(transport=httpx.MockTransport(handler), base_url="http://bridge")
    return HttpBridgeClient(client=client)


class TestHttpBridgeClient:
    @pytest.mark.asyncio
    async def test_connected_node_ids(self) -> None:
        def handler(request: httpx.Request) -> httpx.Response:
            assert request.url.path == "/nodes"
            return httpx.Response(200, json={"connectedNodeIds": ["a", "b"]})

        assert await _bridge(handler).connected_node_ids() == ["a", "b"]

    @pytest.mark.asyncio
    async def test_invoke(self) -> None:
        seen: list[tuple[str, dict]] = []

        def handler(request: httpx.Request) -> httpx.Response:
            seen.append((request.url.raw_path.decode(), json.loads(request.content)))
            return httpx.Response(200, json={"ok": True, "payloadJSON": '{"pong":1}'})

        result = await _bridge(handler).invoke("node/1", "ping", '{"n": 2}')

        assert result.ok
        assert result.payload_json == '{"pong":1}'
        assert seen == [("/nodes/node%2F1/invoke", {"command": "ping", "params": {"n": 2}})]

    @pytest.mark.asyncio
    async def test_invoke_error_result(self) -> None:
        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(200, json={"ok": False, "error": {"code": "TIMEOUT", "message": "node timed out"}})

        result = await _bridge(handler).invoke("n", "ping")
        assert result.ok is False
        assert result.error.message == "node timed out"

    @pytest.mark.asyncio
    async def test_bad_params_json(self) -> None:
        with pytest.raises(CollaboratorError, match="paramsJSON"):
            await _bridge(lambda r: httpx.Response(200, json={})).invoke("n", "c", "{nope")

    @pytest.mark.asyncio
    async def test_http_failure(self) -> None:
        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(503, text="down")

        with pytest.raises(CollaboratorError, match="bridge request to /nodes failed"):
            await _bridge(handler).connected_node_ids()
