"""Abstract base class for camera capture.

All camera implementations must conform to this interface so the host
can swap between a local webcam and other capture sources without
changing request handling.
"""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod

from hostlink.domain.errors import CollaboratorError
from hostlink.domain.models import CameraFacing

logger = logging.getLogger(__name__)


class CameraCapture(ABC):
    """Abstract interface for still and video capture."""

    @abstractmethod
    async def snap(
        self,
        facing: CameraFacing | None = None,
        max_width: int | None = None,
        quality: float | None = None,
    ) -> bytes:
        """Capture a single still image.

        Args:
            facing: Which camera to use; None picks the default.
            max_width: Downscale so the image is at most this wide.
            quality: JPEG quality in ``0..1``.

        Returns:
            JPEG-encoded image bytes.

        Raises:
            CameraError: If the device cannot be opened or read.
        """
        ...

    @abstractmethod
    async def clip(
        self,
        facing: CameraFacing | None = None,
        duration_ms: int | None = None,
        include_audio: bool = True,
        out_path: str | None = None,
    ) -> str:
        """Record a short video clip.

        Returns:
            Path of the written video file.

        Raises:
            CameraError: If recording fails.
        """
        ...


class CameraError(CollaboratorError):
    """Raised when camera capture fails."""

    def __init__(self, message: str) -> None:
        super().__init__(message, collaborator="camera")
