"""Sub-node bridge access for hostlink."""

from hostlink.nodes.base import BridgeServer, NodeError, NodeInvokeResult

__all__ = ["BridgeServer", "HttpBridgeClient", "NodeError", "NodeInvokeResult"]


def __getattr__(name: str) -> type:
    """Lazy import for concrete implementations that require external deps."""
    if name == "HttpBridgeClient":
        from hostlink.nodes.http_bridge import HttpBridgeClient
        return HttpBridgeClient
    raise AttributeError(f"module {__name__!r} has no attribute {name!r}")
