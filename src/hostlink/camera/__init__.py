"""Camera capture module for hostlink.

Public API:
    CameraCapture -- Abstract base class
    CameraError -- Capture failure
    WebcamCapture -- OpenCV webcam implementation
"""

from hostlink.camera.base import CameraCapture, CameraError

__all__ = ["CameraCapture", "CameraError", "WebcamCapture"]


def __getattr__(name: str) -> type:
    """Lazy import for concrete implementations that require external deps."""
    if name == "WebcamCapture":
        from hostlink.camera.webcam import WebcamCapture
        return WebcamCapture
    raise AttributeError(f"module {__name__!r} has no attribute {name!r}")
