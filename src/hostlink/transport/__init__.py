"""Control socket transport for hostlink.

Public API:
    call -- One blocking request/response round trip
    ControlClient -- Client bound to a socket path and timeout policy
    ControlServer -- Asyncio host-side listener
"""

from hostlink.transport.client import ControlClient, call, timeout_for
from hostlink.transport.server import ControlServer

__all__ = ["ControlClient", "ControlServer", "call", "timeout_for"]
