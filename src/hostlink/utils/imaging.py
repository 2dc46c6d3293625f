"""Image processing utilities for hostlink.

Shared resize and encoding helpers used by the camera module.
"""

from __future__ import annotations

import io
import logging

import cv2
import numpy as np
from PIL import Image

logger = logging.getLogger(__name__)


def numpy_to_pil(image: np.ndarray) -> Image.Image:
    """Convert a numpy image array (BGR) to a PIL Image (RGB)."""
    rgb = cv2.cvtColor(image, cv2.COLOR_BGR2RGB)
    return Image.fromarray(rgb)


def resize_to_max_width(image: np.ndarray, max_width: int | None) -> np.ndarray:
    """Downscale an image so it is at most ``max_width`` pixels wide.

    Preserves aspect ratio. Images already narrow enough are returned
    unchanged; nothing is ever upscaled.
    """
    if max_width is None or max_width <= 0:
        return image
    h, w = image.shape[:2]
    if w <= max_width:
        return image
    scale = max_width / w
    new_h = max(1, int(round(h * scale)))
    return cv2.resize(image, (max_width, new_h), interpolation=cv2.INTER_AREA)


def encode_jpeg(image: np.ndarray, quality: float = 0.9) -> bytes:
    """Encode a BGR image as JPEG.

    Args:
        image: BGR image array.
        quality: Compression quality in ``0..1``.
    """
    pil_quality = max(1, min(95, int(round(quality * 100))))
    buffer = io.BytesIO()
    numpy_to_pil(image).save(buffer, format="JPEG", quality=pil_quality)
    return buffer.getvalue()
