"""Webcam capture implementation using OpenCV.

Blocking OpenCV calls run in the default thread pool executor so the
event loop keeps serving other connections while the camera works.
"""

from __future__ import annotations

import asyncio
import logging
import tempfile
import time
import uuid
from pathlib import Path

import cv2
import numpy as np

from hostlink.camera.base import CameraCapture, CameraError
from hostlink.domain.models import CameraFacing
from hostlink.utils.imaging import encode_jpeg, resize_to_max_width

logger = logging.getLogger(__name__)

DEFAULT_CLIP_MS = 3000
MAX_CLIP_MS = 60_000
DEFAULT_FPS = 30.0
# Frames discarded after opening so auto exposure can settle
WARMUP_FRAMES = 3


class WebcamCapture(CameraCapture):
    """Captures stills and clips from local webcams.

    The front camera is ``device_index``. A back camera is only
    available when ``back_device_index`` is configured.
    """

    def __init__(
        self,
        device_index: int = 0,
        back_device_index: int | None = None,
        default_clip_ms: int = DEFAULT_CLIP_MS,
        max_clip_ms: int = MAX_CLIP_MS,
        default_quality: float = 0.9,
    ) -> None:
        self._device_index = device_index
        self._back_device_index = back_device_index
        self._default_clip_ms = default_clip_ms
        self._max_clip_ms = max_clip_ms
        self._default_quality = default_quality

    def device_for(self, facing: CameraFacing | None) -> int:
        if facing is CameraFacing.BACK:
            if self._back_device_index is None:
                raise CameraError("no back camera configured")
            return self._back_device_index
        return self._device_index

    def clip_duration_ms(self, duration_ms: int | None) -> int:
        """Requested clip length, defaulted and capped."""
        return min(duration_ms or self._default_clip_ms, self._max_clip_ms)

    async def snap(
        self,
        facing: CameraFacing | None = None,
        max_width: int | None = None,
        quality: float | None = None,
    ) -> bytes:
        device = self.device_for(facing)
        q = self._default_quality if quality is None else quality
        loop = asyncio.get_running_loop()
        frame = await loop.run_in_executor(None, self._snap_sync, device)
        frame = resize_to_max_width(frame, max_width)
        data = await loop.run_in_executor(None, encode_jpeg, frame, q)
        logger.info("Captured %dx%d still from device %d", frame.shape[1], frame.shape[0], device)
        return data

    async def clip(
        self,
        facing: CameraFacing | None = None,
        duration_ms: int | None = None,
        include_audio: bool = True,
        out_path: str | None = None,
    ) -> str:
        device = self.device_for(facing)
        duration = self.clip_duration_ms(duration_ms)
        if include_audio:
            logger.info("Audio capture is not supported by the webcam backend; recording video only")
        if out_path and out_path.strip():
            path = Path(out_path).expanduser()
        else:
            path = Path(tempfile.gettempdir()) / f"hostlink-camera-clip-{uuid.uuid4()}.mp4"

        loop = asyncio.get_running_loop()
        await loop.run_in_executor(None, self._record_sync, device, duration, path)
        logger.info("Recorded %d ms clip from device %d to %s", duration, device, path)
        return str(path)

    def _open(self, device: int) -> cv2.VideoCapture:
        cap = cv2.VideoCapture(device)
        if not cap.isOpened():
            cap.release()
            raise CameraError(f"Failed to open webcam device {device}")
        return cap

    def _snap_sync(self, device: int) -> np.ndarray:
        """Synchronous still capture (runs in thread pool)."""
        cap = self._open(device)
        try:
            frame = None
            for _ in range(WARMUP_FRAMES + 1):
                ret, frame = cap.read()
                if not ret:
                    frame = None
            if frame is None:
                raise CameraError(f"Failed to read frame from webcam device {device}")
            return frame
        finally:
            cap.release()

    def _record_sync(self, device: int, duration_ms: int, path: Path) -> None:
        """Synchronous clip recording (runs in thread pool)."""
        cap = self._open(device)
        writer: cv2.VideoWriter | None = None
        try:
            fps = cap.get(cv2.CAP_PROP_FPS) or DEFAULT_FPS
            width = int(cap.get(cv2.CAP_PROP_FRAME_WIDTH))
            height = int(cap.get(cv2.CAP_PROP_FRAME_HEIGHT))
            path.parent.mkdir(parents=True, exist_ok=True)
            writer = cv2.VideoWriter(str(path), cv2.VideoWriter_fourcc(*"mp4v"), fps, (width, height))
            if not writer.isOpened():
                raise CameraError(f"Failed to open video writer for {path}")

            frames = 0
            end = time.monotonic() + duration_ms / 1000.0
            while time.monotonic() < end:
                ret, frame = cap.read()
                if not ret:
                    break
                writer.write(frame)
                frames += 1
            if frames == 0:
                raise CameraError(f"Failed to read frames from webcam device {device}")
        finally:
            if writer is not None:
                writer.release()
            cap.release()
