"""Agent gateway client over HTTP."""

from __future__ import annotations

import logging
from typing import Any

import httpx
from pydantic import ValidationError

from hostlink.agent.base import AgentResult, AgentRPC

logger = logging.getLogger(__name__)


class HttpAgentRPC(AgentRPC):
    """Talks to an agent gateway's ``/agent`` and ``/status`` endpoints."""

    def __init__(
        self,
        base_url: str = "http://127.0.0.1:18789",
        timeout: float = 30.0,
        client: httpx.AsyncClient | None = None,
    ) -> None:
        self._base_url = base_url.rstrip("/")
        self._client = client or httpx.AsyncClient(base_url=self._base_url, timeout=timeout)

    async def aclose(self) -> None:
        await self._client.aclose()

    async def send(
        self,
        text: str,
        thinking: str | None = None,
        session_key: str = "main",
        deliver: bool = False,
        to: str | None = None,
    ) -> AgentResult:
        body: dict[str, Any] = {"message": text, "sessionKey": session_key, "deliver": deliver}
        if thinking is not None:
            body["thinking"] = thinking
        if to is not None:
            body["to"] = to
        logger.debug("Sending agent message to session %s", session_key)
        return await self._request("POST", "/agent", json=body)

    async def status(self) -> AgentResult:
        return await self._request("GET", "/status")

    async def _request(self, method: str, path: str, **kwargs: Any) -> AgentResult:
        try:
            resp = await self._client.request(method, path, **kwargs)
        except httpx.HTTPError as e:
            logger.warning("Agent gateway %s %s failed: %s", method, path, e)
            return AgentResult(ok=False, error=f"agent gateway unreachable: {e}")

        try:
            data = resp.json()
        except ValueError:
            data = None

        if isinstance(data, dict):
            try:
                result = AgentResult.model_validate(data)
            except ValidationError:
                result = None
            if result is not None:
                if not resp.is_success and result.ok:
                    return AgentResult(ok=False, error=result.error or f"HTTP {resp.status_code}")
                return result

        if resp.is_success:
            return AgentResult(ok=True, text=resp.text.strip() or None)
        return AgentResult(ok=False, error=resp.text.strip() or f"HTTP {resp.status_code}")
