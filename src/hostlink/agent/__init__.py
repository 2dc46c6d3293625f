"""Agent gateway access for hostlink.

Public API:
    AgentRPC -- Abstract gateway client
    AgentResult -- Call outcome
    HttpAgentRPC -- httpx implementation
"""

from hostlink.agent.base import AgentResult, AgentRPC

__all__ = ["AgentRPC", "AgentResult", "HttpAgentRPC"]


def __getattr__(name: str) -> type:
    """Lazy import for concrete implementations that require external deps."""
    if name == "HttpAgentRPC":
        from hostlink.agent.http_rpc import HttpAgentRPC
        return HttpAgentRPC
    raise AttributeError(f"module {__name__!r} has no attribute {name!r}")
