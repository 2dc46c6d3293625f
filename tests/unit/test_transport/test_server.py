"""End-to-end tests for the asyncio control server."""

from __future__ import annotations

import asyncio
import socket
import stat
from pathlib import Path

import pytest

from hostlink.domain.models import NotifyRequest, RequestVariant, Response, StatusRequest
from hostlink.transport.client import call
from hostlink.transport.codec import decode_response
from hostlink.transport.server import ControlServer


def _raw_exchange(path: Path, data: bytes) -> bytes:
    with socket.socket(socket.AF_UNIX, socket.SOCK_STREAM) as sock:
        sock.settimeout(5)
        sock.connect(str(path))
        sock.sendall(data)
        sock.shutdown(socket.SHUT_WR)
        chunks = []
        while True:
            try:
                chunk = sock.recv(4096)
            except ConnectionResetError:
                chunk = b""
            if not chunk:
                return b"".join(chunks)
            chunks.append(chunk)


class TestControlServer:
    @pytest.mark.asyncio
    async def test_dispatches_and_replies(self, short_socket_path: Path) -> None:
        seen: list[RequestVariant] = []

        async def handler(request: RequestVariant) -> Response:
            seen.append(request)
            return Response(ok=True, message=request.type)

        async with ControlServer(short_socket_path, handler):
            response = await asyncio.to_thread(
                call, short_socket_path, NotifyRequest(title="t", body="b"), 5
            )

        assert response == Response(ok=True, message="notify")
        assert seen == [NotifyRequest(title="t", body="b")]

    @pytest.mark.asyncio
    async def test_socket_is_private_and_removed_on_stop(self, short_socket_path: Path) -> None:
        server = ControlServer(short_socket_path, lambda r: None)  # type: ignore[arg-type,return-value]
        await server.start()
        assert server.is_serving
        assert stat.S_IMODE(short_socket_path.stat().st_mode) == 0o600
        await server.stop()
        assert not short_socket_path.exists()
        assert not server.is_serving

    @pytest.mark.asyncio
    async def test_replaces_stale_socket(self, short_socket_path: Path) -> None:
        short_socket_path.write_text("stale")

        async def handler(request: RequestVariant) -> Response:
            return Response(ok=True)

        async with ControlServer(short_socket_path, handler):
            response = await asyncio.to_thread(call, short_socket_path, StatusRequest(), 5)
        assert response.ok

    @pytest.mark.asyncio
    async def test_malformed_request(self, short_socket_path: Path) -> None:
        async def handler(request: RequestVariant) -> Response:
            raise AssertionError("handler must not run")

        async with ControlServer(short_socket_path, handler):
            raw = await asyncio.to_thread(_raw_exchange, short_socket_path, b'{"type": "reboot"}')

        response = decode_response(raw)
        assert response is not None
        assert response.ok is False
        assert response.message.startswith("invalid request")

    @pytest.mark.asyncio
    async def test_oversized_request(self, short_socket_path: Path) -> None:
        async def handler(request: RequestVariant) -> Response:
            raise AssertionError("handler must not run")

        async with ControlServer(short_socket_path, handler, max_request_bytes=64):
            raw = await asyncio.to_thread(_raw_exchange, short_socket_path, b"x" * 1000)

        response = decode_response(raw)
        assert response == Response(ok=False, message="request exceeds 64 bytes")

    @pytest.mark.asyncio
    async def test_slow_request_does_not_block_others(self, short_socket_path: Path) -> None:
        release = asyncio.Event()

        async def handler(request: RequestVariant) -> Response:
            if isinstance(request, NotifyRequest):
                await release.wait()
            return Response(ok=True, message=request.type)

        async with ControlServer(short_socket_path, handler):
            slow = asyncio.create_task(
                asyncio.to_thread(call, short_socket_path, NotifyRequest(title="t", body="b"), 5)
            )
            fast = await asyncio.to_thread(call, short_socket_path, StatusRequest(), 5)
            assert fast.message == "status"
            assert not slow.done()
            release.set()
            assert (await slow).message == "notify"
