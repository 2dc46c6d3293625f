"""Canvas panel geometry: session keys, placement merging, persistence.

Remembered frames are stored per sanitized session key in a YAML file,
last write wins. There is no cross-process locking.
"""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass
from pathlib import Path

import yaml

from hostlink.domain.models import CanvasPlacement

logger = logging.getLogger(__name__)

MIN_PANEL_WIDTH = 360.0
MIN_PANEL_HEIGHT = 360.0
DEFAULT_PANEL_WIDTH = 520.0
DEFAULT_PANEL_HEIGHT = 680.0

_UNSAFE_KEY_CHARS = re.compile(r"[^A-Za-z0-9_+\-]")


@dataclass(frozen=True)
class PanelFrame:
    """Panel origin and size in screen coordinates."""

    x: float
    y: float
    width: float
    height: float

    def as_list(self) -> list[float]:
        return [float(self.x), float(self.y), float(self.width), float(self.height)]

    @property
    def meets_minimum(self) -> bool:
        return self.width >= MIN_PANEL_WIDTH and self.height >= MIN_PANEL_HEIGHT


def sanitize_session_key(key: str) -> str:
    """Map a session key to a filesystem- and storage-safe identifier.

    Blank keys become ``main``; every character outside letters, digits,
    ``_``, ``-`` and ``+`` is replaced by ``_``.
    """
    trimmed = key.strip()
    if not trimmed:
        return "main"
    return _UNSAFE_KEY_CHARS.sub("_", trimmed)


def apply_placement(frame: PanelFrame, placement: CanvasPlacement | None) -> PanelFrame:
    """Overlay the fields present in ``placement`` onto ``frame``.

    Origin fields replace the remembered origin; size fields replace the
    remembered size, clamped to the minimum panel size. Absent fields keep
    the remembered value.
    """
    if placement is None:
        return frame
    return PanelFrame(
        x=placement.x if placement.x is not None else frame.x,
        y=placement.y if placement.y is not None else frame.y,
        width=max(MIN_PANEL_WIDTH, placement.width) if placement.width is not None else frame.width,
        height=max(MIN_PANEL_HEIGHT, placement.height) if placement.height is not None else frame.height,
    )


class GeometryStore:
    """Remembered panel frames keyed by sanitized session key."""

    def __init__(self, path: str | Path) -> None:
        self._path = Path(path).expanduser()

    @property
    def path(self) -> Path:
        return self._path

    def load(self, session_key: str) -> PanelFrame | None:
        """The remembered frame for a session, or None.

        Frames that are malformed or smaller than the minimum panel size
        are ignored.
        """
        raw = self._read_all().get(sanitize_session_key(session_key))
        if not isinstance(raw, list) or len(raw) != 4:
            return None
        try:
            frame = PanelFrame(*(float(v) for v in raw))
        except (TypeError, ValueError):
            return None
        return frame if frame.meets_minimum else None

    def save(self, session_key: str, frame: PanelFrame) -> None:
        data = self._read_all()
        data[sanitize_session_key(session_key)] = frame.as_list()
        self._path.parent.mkdir(parents=True, exist_ok=True)
        tmp = self._path.with_suffix(self._path.suffix + ".tmp")
        with open(tmp, "w") as f:
            yaml.safe_dump(data, f, default_flow_style=None, sort_keys=True)
        tmp.replace(self._path)
        logger.debug("Saved canvas frame for %s: %s", session_key, frame)

    def _read_all(self) -> dict:
        if not self._path.exists():
            return {}
        try:
            with open(self._path) as f:
                data = yaml.safe_load(f) or {}
        except (OSError, yaml.YAMLError) as e:
            logger.warning("Ignoring unreadable canvas geometry file %s: %s", self._path, e)
            return {}
        return data if isinstance(data, dict) else {}
