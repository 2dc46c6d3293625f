"""Bridge client over HTTP."""

from __future__ import annotations

import json
import logging
from typing import Any
from urllib.parse import quote

import httpx
from pydantic import ValidationError

from hostlink.domain.errors import CollaboratorError
from hostlink.nodes.base import BridgeServer, NodeInvokeResult

logger = logging.getLogger(__name__)


class HttpBridgeClient(BridgeServer):
    """Talks to a node bridge's ``/nodes`` endpoints."""

    def __init__(
        self,
        base_url: str = "http://127.0.0.1:18790",
        timeout: float = 30.0,
        client: httpx.AsyncClient | None = None,
    ) -> None:
        self._base_url = base_url.rstrip("/")
        self._client = client or httpx.AsyncClient(base_url=self._base_url, timeout=timeout)

    async def aclose(self) -> None:
        await self._client.aclose()

    async def connected_node_ids(self) -> list[str]:
        data = await self._call("GET", "/nodes")
        ids = data.get("connectedNodeIds") if isinstance(data, dict) else data
        if not isinstance(ids, list):
            raise CollaboratorError("bridge returned an unexpected node list", collaborator="bridge")
        return [str(node_id) for node_id in ids]

    async def invoke(
        self, node_id: str, command: str, params_json: str | None = None
    ) -> NodeInvokeResult:
        body: dict[str, Any] = {"command": command}
        if params_json is not None:
            try:
                body["params"] = json.loads(params_json)
            except ValueError as e:
                raise CollaboratorError(f"paramsJSON is not valid JSON: {e}", collaborator="bridge") from e

        data = await self._call("POST", f"/nodes/{quote(node_id, safe='')}/invoke", json=body)
        try:
            return NodeInvokeResult.model_validate(data)
        except ValidationError as e:
            raise CollaboratorError(f"bridge returned an unexpected invoke result: {e}", collaborator="bridge") from e

    async def _call(self, method: str, path: str, **kwargs: Any) -> Any:
        try:
            resp = await self._client.request(method, path, **kwargs)
            resp.raise_for_status()
            return resp.json()
        except httpx.HTTPError as e:
            raise CollaboratorError(f"bridge request to {path} failed: {e}", collaborator="bridge") from e
        except ValueError as e:
            raise CollaboratorError(f"bridge returned invalid JSON from {path}", collaborator="bridge") from e
