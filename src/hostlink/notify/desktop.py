"""Desktop notification delivery via ``notify-send``."""

from __future__ import annotations

import asyncio
import logging
import shutil

from hostlink.domain.models import NotificationPriority
from hostlink.notify.base import Notifier, OverlayPresenter

logger = logging.getLogger(__name__)

_URGENCY = {
    NotificationPriority.PASSIVE: "low",
    NotificationPriority.ACTIVE: "normal",
    NotificationPriority.TIME_SENSITIVE: "critical",
}


class DesktopNotifier(Notifier):
    """Posts notifications through a freedesktop ``notify-send`` binary.

    A missing binary or a non-zero exit counts as a refusal, so the
    caller can fall back to the overlay.
    """

    def __init__(self, command: str = "notify-send", timeout: float = 5.0) -> None:
        self._command = command
        self._timeout = timeout

    def build_argv(
        self,
        title: str,
        body: str,
        sound: str | None = None,
        priority: NotificationPriority | None = None,
    ) -> list[str]:
        argv = [self._command, "--app-name=hostlink"]
        if priority is not None:
            argv.append(f"--urgency={_URGENCY[priority]}")
        if sound:
            argv.append(f"--hint=string:sound-name:{sound}")
        argv.extend([title, body])
        return argv

    async def send(
        self,
        title: str,
        body: str,
        sound: str | None = None,
        priority: NotificationPriority | None = None,
    ) -> bool:
        if shutil.which(self._command) is None:
            logger.warning("Notification command %s not found", self._command)
            return False

        argv = self.build_argv(title, body, sound, priority)
        proc = await asyncio.create_subprocess_exec(
            *argv,
            stdout=asyncio.subprocess.DEVNULL,
            stderr=asyncio.subprocess.PIPE,
        )
        try:
            _, stderr = await asyncio.wait_for(proc.communicate(), timeout=self._timeout)
        except asyncio.TimeoutError:
            proc.kill()
            await proc.wait()
            logger.warning("%s timed out after %.0fs", self._command, self._timeout)
            return False

        if proc.returncode != 0:
            logger.warning(
                "%s exited with %d: %s",
                self._command, proc.returncode, stderr.decode(errors="replace").strip(),
            )
            return False
        logger.debug("Posted notification: %s", title)
        return True


class LogOverlayPresenter(OverlayPresenter):
    """Overlay delivery for hosts without a drawing surface: logs it."""

    async def present(self, title: str, body: str) -> None:
        logger.info("Notification overlay: %s: %s", title, body)
