"""Blocking control-socket client.

A short-lived process makes exactly one call and exits, so the client is
single-threaded and blocking, but every wait (connect, write, read) is
bounded by one shared Deadline. On expiry the socket is simply closed;
the host may still finish the request.
"""

from __future__ import annotations

import errno
import logging
import os
import select
import socket
from pathlib import Path

from hostlink.domain.errors import (
    ConnectionRefused,
    ConnectionReset,
    ControlConnectionError,
    ProtocolError,
)
from hostlink.domain.models import RequestVariant, Response, RunShellRequest
from hostlink.transport.codec import decode_response, encode_request
from hostlink.transport.deadline import Deadline

logger = logging.getLogger(__name__)

READ_CHUNK = 8192
DEFAULT_TIMEOUT = 10.0
SHELL_TIMEOUT_CAP = 300.0
# Extra room on top of a shell command's own timeout for the reply to arrive
SHELL_TIMEOUT_SLACK = 2.0

_REFUSED_ERRNOS = {errno.ECONNREFUSED, errno.ENOENT}
_RESET_ERRNOS = {errno.ECONNRESET, errno.EPIPE}


def call(endpoint_path: str | Path, request: RequestVariant, timeout: float) -> Response:
    """Send one request to the host and wait for its response.

    Args:
        endpoint_path: Filesystem path of the host's control socket.
        request: The request variant to send.
        timeout: Overall bound in seconds for connect, write and read.

    Returns:
        The decoded Response.

    Raises:
        ConnectionRefused: Nothing is listening at the endpoint.
        ConnectionReset: The host closed the connection without replying.
        ControlTimeoutError: The overall bound was exceeded.
        ControlConnectionError: Any other socket failure.
        ProtocolError: The host replied with bytes that are not a Response.
    """
    endpoint = str(endpoint_path)
    deadline = Deadline.after(timeout)
    payload = encode_request(request)

    with socket.socket(socket.AF_UNIX, socket.SOCK_STREAM) as sock:
        sock.setblocking(False)
        _connect(sock, endpoint, deadline)
        _send_all(sock, payload, endpoint, deadline)
        # Half-close: tells the host the request is complete
        sock.shutdown(socket.SHUT_WR)
        logger.debug("Sent %s (%d bytes) to %s", request.type, len(payload), endpoint)
        return _read_response(sock, endpoint, deadline)


def timeout_for(
    request: RequestVariant,
    default: float = DEFAULT_TIMEOUT,
    shell_cap: float = SHELL_TIMEOUT_CAP,
) -> float:
    """Overall timeout for a request.

    Shell commands get their own timeout plus slack, never less than the
    default and never more than the cap. Everything else fails fast.
    """
    if isinstance(request, RunShellRequest):
        requested = request.timeout_sec if request.timeout_sec is not None else default
        return min(shell_cap, max(default, requested + SHELL_TIMEOUT_SLACK))
    return default


class ControlClient:
    """Sends requests to a host at a fixed socket path."""

    def __init__(
        self,
        socket_path: str | Path,
        default_timeout: float = DEFAULT_TIMEOUT,
        shell_timeout_cap: float = SHELL_TIMEOUT_CAP,
    ) -> None:
        self._socket_path = Path(socket_path).expanduser()
        self._default_timeout = default_timeout
        self._shell_timeout_cap = shell_timeout_cap

    @property
    def socket_path(self) -> Path:
        return self._socket_path

    def send(self, request: RequestVariant, timeout: float | None = None) -> Response:
        """Send a request using the per-request timeout policy."""
        if timeout is None:
            timeout = timeout_for(request, self._default_timeout, self._shell_timeout_cap)
        return call(self._socket_path, request, timeout)


# ---------------------------------------------------------------------------
# Socket phases
# ---------------------------------------------------------------------------


def _connect(sock: socket.socket, endpoint: str, deadline: Deadline) -> None:
    try:
        sock.connect(endpoint)
        return
    except (BlockingIOError, InterruptedError):
        pass
    except OSError as e:
        raise _connect_error(e.errno, endpoint, str(e)) from e

    _wait(sock, select.POLLOUT, endpoint, deadline)
    err = sock.getsockopt(socket.SOL_SOCKET, socket.SO_ERROR)
    if err:
        raise _connect_error(err, endpoint, os.strerror(err))


def _send_all(sock: socket.socket, payload: bytes, endpoint: str, deadline: Deadline) -> None:
    view = memoryview(payload)
    written = 0
    while written < len(view):
        deadline.check(endpoint)
        try:
            written += sock.send(view[written:])
        except BlockingIOError:
            _wait(sock, select.POLLOUT, endpoint, deadline)
        except InterruptedError:
            continue
        except OSError as e:
            if e.errno in _RESET_ERRNOS:
                raise ConnectionReset(f"connection reset while writing to {endpoint}", endpoint) from e
            raise ControlConnectionError(f"write to {endpoint} failed: {e}", endpoint) from e


def _read_response(sock: socket.socket, endpoint: str, deadline: Deadline) -> Response:
    buffer = bytearray()
    while True:
        deadline.check(endpoint)
        _wait(sock, select.POLLIN, endpoint, deadline)
        try:
            chunk = sock.recv(READ_CHUNK)
        except (BlockingIOError, InterruptedError):
            continue
        except OSError as e:
            if e.errno in _RESET_ERRNOS:
                raise ConnectionReset(f"connection reset by {endpoint}", endpoint) from e
            raise ControlConnectionError(f"read from {endpoint} failed: {e}", endpoint) from e
        if not chunk:
            break
        buffer += chunk
        response = decode_response(bytes(buffer))
        if response is not None:
            return response

    if not buffer:
        raise ConnectionReset(f"{endpoint} closed the connection without a response", endpoint)
    raise ProtocolError(f"malformed response from {endpoint} ({len(buffer)} bytes)")


def _wait(sock: socket.socket, events: int, endpoint: str, deadline: Deadline) -> None:
    """Block until the socket is ready for ``events`` or the deadline passes."""
    poller = select.poll()
    poller.register(sock, events)
    while True:
        deadline.check(endpoint)
        timeout_ms = max(1, int(deadline.poll_slice() * 1000))
        if poller.poll(timeout_ms):
            return


def _connect_error(err: int | None, endpoint: str, detail: str) -> ControlConnectionError:
    if err in _REFUSED_ERRNOS:
        return ConnectionRefused(f"connection refused: {endpoint}", endpoint)
    return ControlConnectionError(f"connect to {endpoint} failed: {detail}", endpoint)
