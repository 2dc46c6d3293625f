"""Host side of hostlink: state, request dispatch and process wiring.

Public API:
    HostState -- Paused flag and canvas session store
    Dispatcher -- Request routing and gating
    HostApp -- Process wiring and lifecycle
"""

from hostlink.host.dispatcher import Dispatcher
from hostlink.host.state import HostState

__all__ = ["Dispatcher", "HostApp", "HostState"]


def __getattr__(name: str) -> type:
    """Lazy import for the app, which pulls in every concrete collaborator."""
    if name == "HostApp":
        from hostlink.host.app import HostApp
        return HostApp
    raise AttributeError(f"module {__name__!r} has no attribute {name!r}")
