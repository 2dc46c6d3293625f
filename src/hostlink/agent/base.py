"""Abstract base class for the agent gateway RPC."""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod

from pydantic import BaseModel, ConfigDict

logger = logging.getLogger(__name__)


class AgentResult(BaseModel):
    """Outcome of an agent gateway call."""

    model_config = ConfigDict(frozen=True, extra="ignore")

    ok: bool
    text: str | None = None
    error: str | None = None


class AgentRPC(ABC):
    """Client for the agent gateway.

    Implementations report failures in the returned AgentResult rather
    than raising, so gateway errors reach the caller verbatim.
    """

    @abstractmethod
    async def send(
        self,
        text: str,
        thinking: str | None = None,
        session_key: str = "main",
        deliver: bool = False,
        to: str | None = None,
    ) -> AgentResult:
        """Send a message to the agent in the given session."""
        ...

    @abstractmethod
    async def status(self) -> AgentResult:
        """Report whether the gateway is reachable and healthy."""
        ...

    async def aclose(self) -> None:
        """Release any resources held by the client."""
