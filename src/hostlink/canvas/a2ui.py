"""A2UI batch ingestion for canvas sessions.

A push takes newline-delimited JSON (one A2UI v0.8 server-to-client
message per line), validates the whole batch, and hands it to the
session's page in a single ``applyMessages`` call. Validation is pure
and happens before the surface is touched; any bad line rejects the
entire batch.

Per push::

    NotReady --poll--> Ready --> Applying --> Applied | Failed
    NotReady --readiness timeout--> Failed   (nothing is applied)
"""

from __future__ import annotations

import asyncio
import json
import logging
from dataclasses import dataclass
from typing import Any

from hostlink.canvas.manager import CanvasManager
from hostlink.domain.errors import A2UIValidationError
from hostlink.domain.models import Response

logger = logging.getLogger(__name__)

# The v0.8 message vocabulary. Each message carries exactly one of these.
A2UI_MESSAGE_KEYS = frozenset({"beginRendering", "surfaceUpdate", "dataModelUpdate", "deleteSurface"})
# Belongs to the v0.9 protocol, which the canvas does not speak.
A2UI_V09_KEY = "createSurface"

DEFAULT_READY_TIMEOUT = 2.0
DEFAULT_POLL_INTERVAL = 0.06

# Global the canvas page installs once its A2UI renderer is ready
A2UI_HOOK = "globalThis.hostlinkA2UI"

READY_SCRIPT = f"(() => {A2UI_HOOK} ? 'ready' : '')()"

_CALL_TEMPLATE = """(() => {{
  try {{
    if (!{hook}) {{ return JSON.stringify({{ ok: false, error: "missing hostlinkA2UI" }}); }}
    {body}
  }} catch (e) {{
    return JSON.stringify({{ ok: false, error: String(e?.message ?? e), stack: e?.stack }});
  }}
}})()"""

RESET_SCRIPT = _CALL_TEMPLATE.format(hook=A2UI_HOOK, body=f"return JSON.stringify({A2UI_HOOK}.reset());")


@dataclass(frozen=True)
class ParsedJSONLItem:
    """One parsed JSONL line, kept only while a batch is validated."""

    line_number: int
    value: Any


def parse_jsonl(text: str) -> list[ParsedJSONLItem]:
    """Parse every non-blank line as an independent JSON value.

    Line numbers are 1-based and count blank lines.

    Raises:
        A2UIValidationError: On the first line that is not valid JSON.
    """
    items: list[ParsedJSONLItem] = []
    for line_number, raw_line in enumerate(text.splitlines(), start=1):
        line = raw_line.strip()
        if not line:
            continue
        try:
            value = json.loads(line)
        except json.JSONDecodeError as e:
            raise A2UIValidationError(f"invalid jsonl: line {line_number}: {e.msg}", line_number) from e
        items.append(ParsedJSONLItem(line_number=line_number, value=value))
    return items


def validate_messages(items: list[ParsedJSONLItem]) -> None:
    """Check every item against the v0.8 message vocabulary.

    Raises:
        A2UIValidationError: On the first offending line.
    """
    for item in items:
        n = item.line_number
        if not isinstance(item.value, dict):
            raise A2UIValidationError(f"A2UI JSONL line {n}: expected a JSON object", n)

        keys = item.value.keys()
        if A2UI_V09_KEY in keys:
            raise A2UIValidationError(
                f"A2UI JSONL line {n}: looks like A2UI v0.9 (`{A2UI_V09_KEY}`).\n"
                "Canvas currently supports A2UI v0.8 server-to-client messages "
                "(`beginRendering`, `surfaceUpdate`, `dataModelUpdate`, `deleteSurface`).",
                n,
            )

        matched = [key for key in keys if key in A2UI_MESSAGE_KEYS]
        if len(matched) != 1:
            found = ", ".join(sorted(keys)) or "(none)"
            raise A2UIValidationError(
                f"A2UI JSONL line {n}: expected exactly one of "
                f"{', '.join(sorted(A2UI_MESSAGE_KEYS))}; found: {found}",
                n,
            )


def build_batch(text: str) -> list[Any]:
    """Parse and validate a JSONL batch, returning its messages in line order."""
    items = parse_jsonl(text)
    validate_messages(items)
    return [item.value for item in items]


def apply_script(messages: list[Any]) -> str:
    """Script that applies ``messages`` as one array, in order."""
    encoded = json.dumps(messages, ensure_ascii=True)
    body = f"const messages = {encoded};\n    return JSON.stringify({A2UI_HOOK}.applyMessages(messages));"
    return _CALL_TEMPLATE.format(hook=A2UI_HOOK, body=body)


def unwrap_result(raw: str) -> Response:
    """Turn the page's ``{ok, error?, stack?}`` reply into a Response.

    The raw reply is always kept as the payload. Replies that are not a
    JSON object with a boolean ``ok`` count as success.
    """
    payload = raw.encode("utf-8")
    try:
        obj = json.loads(raw)
    except ValueError:
        return Response(ok=True, payload=payload)
    if not isinstance(obj, dict) or not isinstance(obj.get("ok"), bool):
        return Response(ok=True, payload=payload)
    if obj["ok"]:
        return Response(ok=True, payload=payload)
    if obj.get("stack"):
        logger.debug("A2UI apply failed with stack: %s", obj["stack"])
    error = obj.get("error")
    message = error if isinstance(error, str) and error else "A2UI error"
    return Response(ok=False, message=message, payload=payload)


class A2UIPipeline:
    """Readiness-gated delivery of A2UI batches to canvas sessions."""

    def __init__(
        self,
        canvas: CanvasManager,
        ready_timeout: float = DEFAULT_READY_TIMEOUT,
        poll_interval: float = DEFAULT_POLL_INTERVAL,
    ) -> None:
        self._canvas = canvas
        self._ready_timeout = ready_timeout
        self._poll_interval = poll_interval

    async def push(self, session_key: str, jsonl: str | None) -> Response:
        """Validate a JSONL batch and apply it to the session's page."""
        if jsonl is None or not jsonl.strip():
            return Response.failure("missing jsonl")
        try:
            messages = build_batch(jsonl)
        except A2UIValidationError as e:
            logger.info("Rejected A2UI batch for %s at line %d", session_key, e.line_number)
            return Response.failure(str(e))
        logger.debug("Applying %d A2UI messages to %s", len(messages), session_key)
        return await self._apply(session_key, apply_script(messages))

    async def reset(self, session_key: str) -> Response:
        """Clear the session's A2UI surface."""
        return await self._apply(session_key, RESET_SCRIPT)

    async def wait_until_ready(self, session_key: str) -> bool:
        """Poll the page until the A2UI hook exists or the wait times out.

        The timeout bounds the whole wait, so an eval the page never
        answers is cancelled rather than awaited past it.
        """
        try:
            async with asyncio.timeout(self._ready_timeout):
                while True:
                    try:
                        if await self._canvas.eval(session_key, READY_SCRIPT) == "ready":
                            return True
                    except Exception as e:
                        # The page may still be loading
                        logger.debug("A2UI readiness check failed for %s: %s", session_key, e)
                    await asyncio.sleep(self._poll_interval)
        except TimeoutError:
            return False

    async def _apply(self, session_key: str, script: str) -> Response:
        await self._canvas.show(session_key, "/")
        if not await self.wait_until_ready(session_key):
            logger.warning(
                "A2UI not ready for %s after %.1fs", session_key, self._ready_timeout
            )
            return Response.failure("A2UI not ready")
        raw = await self._canvas.eval(session_key, script)
        return unwrap_result(raw)
