"""Asyncio Unix-socket server for the control plane.

Each accepted connection is an independent task on the shared event
loop: read until the client half-closes, decode one request, hand it to
the dispatcher, write one response, close. A slow handler only holds up
its own connection.
"""

from __future__ import annotations

import asyncio
import logging
import os
from pathlib import Path
from typing import Awaitable, Callable

from pydantic import ValidationError

from hostlink.domain.models import RequestVariant, Response
from hostlink.transport.codec import decode_request, encode_response

logger = logging.getLogger(__name__)

RequestHandler = Callable[[RequestVariant], Awaitable[Response]]

DEFAULT_MAX_REQUEST_BYTES = 4 * 1024 * 1024
SOCKET_MODE = 0o600


class ControlServer:
    """Listens on a filesystem socket and answers one request per connection.

    Usage::

        server = ControlServer("/tmp/hostlink.sock", dispatcher.handle)
        await server.start()
        await server.serve_forever()
    """

    def __init__(
        self,
        socket_path: str | Path,
        handler: RequestHandler,
        max_request_bytes: int = DEFAULT_MAX_REQUEST_BYTES,
    ) -> None:
        self._socket_path = Path(socket_path).expanduser()
        self._handler = handler
        self._max_request_bytes = max_request_bytes
        self._server: asyncio.AbstractServer | None = None
        self._connections: set[asyncio.Task[None]] = set()

    @property
    def socket_path(self) -> Path:
        return self._socket_path

    @property
    def is_serving(self) -> bool:
        return self._server is not None and self._server.is_serving()

    async def start(self) -> None:
        """Bind the socket (replacing a stale one) and start accepting."""
        self._socket_path.parent.mkdir(parents=True, exist_ok=True)
        if self._socket_path.exists() or self._socket_path.is_symlink():
            self._socket_path.unlink()
        self._server = await asyncio.start_unix_server(
            self._on_connection, path=str(self._socket_path)
        )
        # Reachability of the socket file is the only access control
        os.chmod(self._socket_path, SOCKET_MODE)
        logger.info("Control server listening on %s", self._socket_path)

    async def serve_forever(self) -> None:
        if self._server is None:
            raise RuntimeError("Control server is not started. Call start() first.")
        await self._server.serve_forever()

    async def stop(self) -> None:
        """Stop accepting, let in-flight connections finish, remove the socket."""
        if self._server is not None:
            self._server.close()
            await self._server.wait_closed()
            self._server = None
        if self._connections:
            await asyncio.gather(*self._connections, return_exceptions=True)
        try:
            self._socket_path.unlink()
        except FileNotFoundError:
            pass
        logger.info("Control server stopped")

    async def __aenter__(self) -> ControlServer:
        await self.start()
        return self

    async def __aexit__(self, exc_type: type | None, exc_val: Exception | None, exc_tb: object) -> None:
        await self.stop()

    async def _on_connection(self, reader: asyncio.StreamReader, writer: asyncio.StreamWriter) -> None:
        task = asyncio.current_task()
        if task is not None:
            self._connections.add(task)
        try:
            response = await self._respond(reader)
            writer.write(encode_response(response))
            await writer.drain()
        except (ConnectionResetError, BrokenPipeError) as e:
            # Client gave up (usually its own deadline); the work is done regardless
            logger.debug("Client went away before the response was sent: %s", e)
        finally:
            writer.close()
            try:
                await writer.wait_closed()
            except (ConnectionResetError, BrokenPipeError):
                pass
            if task is not None:
                self._connections.discard(task)

    async def _respond(self, reader: asyncio.StreamReader) -> Response:
        data = await self._read_request(reader)
        if data is None:
            return Response.failure(f"request exceeds {self._max_request_bytes} bytes")
        try:
            request = decode_request(data)
        except ValidationError as e:
            logger.warning("Rejected malformed request (%d bytes)", len(data))
            return Response.failure(f"invalid request: {_first_error(e)}")
        logger.debug("Received %s request", request.type)
        return await self._handler(request)

    async def _read_request(self, reader: asyncio.StreamReader) -> bytes | None:
        """Read until the client half-closes. Returns None if the size cap is hit."""
        chunks: list[bytes] = []
        size = 0
        while True:
            chunk = await reader.read(65536)
            if not chunk:
                return b"".join(chunks)
            size += len(chunk)
            if size > self._max_request_bytes:
                return None
            chunks.append(chunk)


def _first_error(exc: ValidationError) -> str:
    errors = exc.errors()
    if not errors:
        return str(exc)
    first = errors[0]
    loc = ".".join(str(part) for part in first.get("loc", ()))
    return f"{loc}: {first['msg']}" if loc else first["msg"]
