"""Error taxonomy for hostlink.

Transport errors abort a client invocation. Everything a request handler
raises is caught by the dispatcher and turned into a failed Response, so
the remaining classes only ever surface as response messages.
"""

from __future__ import annotations


class HostlinkError(Exception):
    """Base class for all hostlink errors."""


class ControlConnectionError(HostlinkError):
    """Raised when the control socket cannot be reached or used."""

    def __init__(self, message: str, endpoint: str = "") -> None:
        super().__init__(message)
        self.endpoint = endpoint


class ConnectionRefused(ControlConnectionError):
    """No listener is accepting connections at the endpoint."""


class ConnectionReset(ControlConnectionError):
    """The peer closed the connection without sending a response."""


class ControlTimeoutError(ControlConnectionError):
    """A named operation exceeded its configured bound."""

    def __init__(self, seconds: float, endpoint: str = "") -> None:
        self.seconds = seconds
        super().__init__(f"timed out after {max(1, round(seconds))}s", endpoint=endpoint)


class ProtocolError(HostlinkError):
    """Bytes received do not decode into a known message shape."""


class RequestValidationError(HostlinkError):
    """A request field is malformed or missing."""


class A2UIValidationError(RequestValidationError):
    """An A2UI JSONL batch violates the accepted message vocabulary."""

    def __init__(self, message: str, line_number: int) -> None:
        super().__init__(message)
        self.line_number = line_number


class CapabilityError(HostlinkError):
    """A required capability has not been granted."""

    def __init__(self, message: str, capability: str = "") -> None:
        super().__init__(message)
        self.capability = capability


class CollaboratorError(HostlinkError):
    """Opaque failure reported by an external subsystem.

    The message is surfaced to the client verbatim.
    """

    def __init__(self, message: str, collaborator: str = "") -> None:
        super().__init__(message)
        self.collaborator = collaborator
