"""Abstract base class for scriptable canvas surfaces.

A surface is whatever actually renders a canvas session (a webview
panel, a headless browser page, ...). The host never draws anything
itself; it asks the surface to present, load, evaluate scripts and take
snapshots.
"""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod

from hostlink.canvas.geometry import DEFAULT_PANEL_HEIGHT, DEFAULT_PANEL_WIDTH, PanelFrame

logger = logging.getLogger(__name__)


class CanvasSurface(ABC):
    """Abstract interface for a rendering backend for canvas sessions."""

    def default_frame(self, session_key: str) -> PanelFrame:
        """Frame used when nothing has been remembered for a session.

        Backends that know the screen layout should override this to
        anchor the panel somewhere sensible.
        """
        return PanelFrame(x=0.0, y=0.0, width=DEFAULT_PANEL_WIDTH, height=DEFAULT_PANEL_HEIGHT)

    @abstractmethod
    async def present(self, session_key: str, frame: PanelFrame) -> PanelFrame:
        """Show the session's panel at ``frame``.

        Returns:
            The frame actually applied (a backend may constrain it to the
            visible screen area).
        """
        ...

    @abstractmethod
    async def dismiss(self, session_key: str) -> PanelFrame | None:
        """Hide the session's panel.

        Returns:
            The panel's last frame, so it can be remembered, or None if
            the session was never presented.
        """
        ...

    @abstractmethod
    async def load(self, session_key: str, url: str) -> None:
        """Navigate the session's panel to ``url``."""
        ...

    @abstractmethod
    async def eval(self, session_key: str, script: str) -> str:
        """Evaluate a script in the session's page and return its result as text.

        Raises:
            CollaboratorError: If evaluation fails.
        """
        ...

    @abstractmethod
    async def snapshot_png(self, session_key: str) -> bytes:
        """Render the session's panel to PNG bytes."""
        ...
