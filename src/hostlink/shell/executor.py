"""Shell command execution for ``runShell`` requests."""

from __future__ import annotations

import asyncio
import json
import logging
import os
import signal
from abc import ABC, abstractmethod

from hostlink.domain.models import Response

logger = logging.getLogger(__name__)

DEFAULT_TIMEOUT = 10.0
# Grace period between SIGTERM and SIGKILL for a timed-out command
KILL_GRACE = 1.0
MESSAGE_TAIL = 4000


class ShellExecutor(ABC):
    @abstractmethod
    async def run(
        self,
        command: list[str],
        cwd: str | None = None,
        env: dict[str, str] | None = None,
        timeout: float | None = None,
    ) -> Response:
        """Run ``command`` (argv form) and report its outcome."""
        ...


class SubprocessShellExecutor(ShellExecutor):
    """Runs commands as asyncio subprocesses in their own session.

    The response payload is JSON ``{exitCode, stdout, stderr, timedOut}``.
    The message is the tail of stdout, or of stderr when stdout is empty.
    """

    def __init__(self, default_timeout: float = DEFAULT_TIMEOUT) -> None:
        self._default_timeout = default_timeout

    async def run(
        self,
        command: list[str],
        cwd: str | None = None,
        env: dict[str, str] | None = None,
        timeout: float | None = None,
    ) -> Response:
        limit = timeout if timeout is not None else self._default_timeout
        merged_env = None
        if env:
            merged_env = os.environ.copy()
            merged_env.update(env)

        logger.debug("Running %s (timeout %.0fs)", command[0], limit)
        try:
            proc = await asyncio.create_subprocess_exec(
                *command,
                cwd=cwd,
                env=merged_env,
                stdin=asyncio.subprocess.DEVNULL,
                stdout=asyncio.subprocess.PIPE,
                stderr=asyncio.subprocess.PIPE,
                start_new_session=True,
            )
        except OSError as e:
            return Response.failure(f"failed to start {command[0]}: {e.strerror or e}")

        timed_out = False
        try:
            stdout, stderr = await asyncio.wait_for(proc.communicate(), timeout=limit)
        except asyncio.TimeoutError:
            timed_out = True
            stdout, stderr = await self._terminate(proc)

        out = stdout.decode("utf-8", errors="replace")
        err = stderr.decode("utf-8", errors="replace")
        payload = json.dumps(
            {"exitCode": proc.returncode, "stdout": out, "stderr": err, "timedOut": timed_out}
        ).encode("utf-8")

        if timed_out:
            logger.warning("%s timed out after %.0fs", command[0], limit)
            return Response(ok=False, message=f"timed out after {max(1, round(limit))}s", payload=payload)

        text = (out.strip() or err.strip())[-MESSAGE_TAIL:]
        ok = proc.returncode == 0
        if not ok and not text:
            text = f"exit code {proc.returncode}"
        return Response(ok=ok, message=text or None, payload=payload)

    async def _terminate(self, proc: asyncio.subprocess.Process) -> tuple[bytes, bytes]:
        """Stop a timed-out process group and collect whatever it wrote."""
        for sig in (signal.SIGTERM, signal.SIGKILL):
            try:
                os.killpg(proc.pid, sig)
            except ProcessLookupError:
                break
            try:
                return await asyncio.wait_for(proc.communicate(), timeout=KILL_GRACE)
            except asyncio.TimeoutError:
                continue
        stdout, stderr = await proc.communicate()
        return stdout, stderr
