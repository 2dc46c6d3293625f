"""Process-wide mutable state of the host.

The paused flag and per-session canvas state live in one store owned by
the host's event loop thread. Every handler runs on that loop, so access
is serialized by ownership rather than by locks; a call from any other
thread is a programming error and is refused.
"""

from __future__ import annotations

import logging
import threading
from dataclasses import dataclass

logger = logging.getLogger(__name__)


@dataclass
class SessionState:
    """What the host remembers about one canvas session."""

    visible: bool = False
    target: str | None = None


class HostState:
    """Paused flag and session map, bound to a single owning thread.

    The owner is the thread that first touches the store (normally the
    event loop thread), unless one is bound explicitly.
    """

    def __init__(self, paused: bool = False) -> None:
        self._paused = paused
        self._sessions: dict[str, SessionState] = {}
        self._owner: int | None = None

    def bind(self) -> None:
        """Make the current thread the owner of this store."""
        self._owner = threading.get_ident()

    def _check_owner(self) -> None:
        ident = threading.get_ident()
        if self._owner is None:
            self._owner = ident
        elif self._owner != ident:
            raise RuntimeError("HostState accessed outside its owning thread")

    @property
    def paused(self) -> bool:
        self._check_owner()
        return self._paused

    def set_paused(self, paused: bool) -> None:
        self._check_owner()
        if paused != self._paused:
            logger.info("Host %s", "paused" if paused else "resumed")
        self._paused = paused

    def session(self, session_key: str) -> SessionState:
        """State for a session, created on first use."""
        self._check_owner()
        return self._sessions.setdefault(session_key, SessionState())

    def visible_sessions(self) -> list[str]:
        self._check_owner()
        return sorted(key for key, state in self._sessions.items() if state.visible)
