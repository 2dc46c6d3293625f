"""Canvas module for hostlink.

Per-session scriptable panels: session directories and geometry, target
resolution, and A2UI batch delivery. Rendering itself belongs to a
pluggable CanvasSurface backend.

Public API:
    CanvasSurface -- Abstract rendering backend
    CanvasManager -- Session manager
    A2UIPipeline -- Readiness-gated A2UI delivery
"""

from hostlink.canvas.a2ui import A2UIPipeline
from hostlink.canvas.base import CanvasSurface
from hostlink.canvas.manager import CanvasManager

__all__ = ["A2UIPipeline", "CanvasManager", "CanvasSurface"]
