"""Canvas session manager.

Owns everything about a canvas session that is not rendering: the
session directory on disk, target resolution, the merge of requested
placement over remembered geometry, and persistence of the result.
Rendering is delegated to a CanvasSurface.
"""

from __future__ import annotations

import asyncio
import logging
import tempfile
import time
from pathlib import Path
from typing import TYPE_CHECKING
from urllib.parse import quote, urlparse

from hostlink.canvas.base import CanvasSurface
from hostlink.canvas.geometry import GeometryStore, PanelFrame, apply_placement, sanitize_session_key
from hostlink.domain.errors import CollaboratorError
from hostlink.domain.models import CanvasPlacement, CanvasShowResult, CanvasShowStatus

if TYPE_CHECKING:
    from hostlink.host.state import HostState

logger = logging.getLogger(__name__)

CANVAS_SCHEME = "hostlink-canvas"


class CanvasManager:
    """Shows, hides, scripts and snapshots per-session canvas panels."""

    def __init__(
        self,
        root: str | Path,
        state: HostState,
        geometry: GeometryStore,
        surface: CanvasSurface | None = None,
    ) -> None:
        self._root = Path(root).expanduser()
        self._state = state
        self._geometry = geometry
        self._surface = surface

    @property
    def has_surface(self) -> bool:
        return self._surface is not None

    def session_dir(self, session_key: str) -> Path:
        return self._root / sanitize_session_key(session_key)

    async def show(
        self,
        session_key: str,
        target: str | None = None,
        placement: CanvasPlacement | None = None,
    ) -> CanvasShowResult:
        """Present the session's panel and optionally navigate it.

        The panel frame is the remembered frame (or the surface default)
        with the fields present in ``placement`` overriding it. The frame
        the surface applies is remembered for the next show.
        """
        surface = self._require_surface()
        directory = self.session_dir(session_key)
        directory.mkdir(parents=True, exist_ok=True)

        session = self._state.session(session_key)

        remembered = self._geometry.load(session_key)
        frame = apply_placement(remembered or surface.default_frame(session_key), placement)
        applied = await surface.present(session_key, frame)
        self._geometry.save(session_key, applied)

        status, url = CanvasShowStatus.SHOWN, None
        if target is not None and target.strip():
            status, url = resolve_target(target, session_key)
            await surface.load(session_key, url)
            session.target = target

        session.visible = True
        logger.info("Canvas %s shown (%s)", session_key, status.value)
        return CanvasShowResult(directory=str(directory), target=target, url=url, status=status)

    async def hide(self, session_key: str) -> None:
        """Hide the session's panel, remembering its last frame."""
        session = self._state.session(session_key)
        if self._surface is not None:
            frame = await self._surface.dismiss(session_key)
            if frame is not None:
                self._geometry.save(session_key, frame)
        session.visible = False
        logger.info("Canvas %s hidden", session_key)

    async def eval(self, session_key: str, script: str) -> str:
        return await self._require_surface().eval(session_key, script)

    async def snapshot(self, session_key: str, out_path: str | None = None) -> str:
        """Write a PNG snapshot of the session's panel and return its path."""
        png = await self._require_surface().snapshot_png(session_key)
        if out_path and out_path.strip():
            path = Path(out_path).expanduser()
        else:
            ts = int(time.time())
            name = f"hostlink-canvas-{sanitize_session_key(session_key)}-{ts}.png"
            path = Path(tempfile.gettempdir()) / name
        loop = asyncio.get_running_loop()
        await loop.run_in_executor(None, path.write_bytes, png)
        return str(path)

    def _require_surface(self) -> CanvasSurface:
        if self._surface is None:
            raise CollaboratorError("no canvas surface attached", collaborator="canvas")
        return self._surface


def resolve_target(target: str, session_key: str) -> tuple[CanvasShowStatus, str]:
    """Classify a show target and turn it into a loadable URL.

    - ``http``/``https`` URLs load as-is.
    - ``file`` URLs, and absolute paths to existing files, load as files.
    - Anything else is a route inside the session's canvas directory
      (``/`` is the session's index, not the filesystem root).
    """
    trimmed = target.strip()
    scheme = urlparse(trimmed).scheme.lower()
    if scheme in ("http", "https"):
        return CanvasShowStatus.WEB, trimmed
    if scheme == "file":
        return CanvasShowStatus.FILE, trimmed
    if trimmed.startswith("/"):
        path = Path(trimmed)
        if path.is_file():
            return CanvasShowStatus.FILE, path.as_uri()
    route = quote(trimmed.lstrip("/"), safe="/?=&#%")
    return CanvasShowStatus.SHOWN, f"{CANVAS_SCHEME}://{sanitize_session_key(session_key)}/{route}"
