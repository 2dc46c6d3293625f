"""Abstract base class for the sub-node bridge."""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod

from pydantic import BaseModel, ConfigDict, Field

logger = logging.getLogger(__name__)


class NodeError(BaseModel):
    model_config = ConfigDict(frozen=True, extra="ignore")

    code: str | None = None
    message: str | None = None


class NodeInvokeResult(BaseModel):
    """Outcome of invoking a command on a connected node."""

    model_config = ConfigDict(frozen=True, extra="ignore", populate_by_name=True)

    ok: bool
    payload_json: str | None = Field(default=None, alias="payloadJSON")
    error: NodeError | None = None


class BridgeServer(ABC):
    """Access to the nodes connected through the bridge."""

    @abstractmethod
    async def connected_node_ids(self) -> list[str]:
        ...

    @abstractmethod
    async def invoke(
        self, node_id: str, command: str, params_json: str | None = None
    ) -> NodeInvokeResult:
        """Invoke ``command`` on a node.

        Raises:
            CollaboratorError: If the bridge itself cannot be reached.
        """
        ...

    async def aclose(self) -> None:
        """Release any resources held by the bridge client."""
