"""Image decoding and preprocessing utilities for pulselog.

Conversion helpers used by the recognition backends.
"""

from __future__ import annotations

import logging

import cv2
import numpy as np

logger = logging.getLogger(__name__)


def decode_image(data: bytes) -> np.ndarray | None:
    """Decode encoded image bytes (PNG/JPEG/...) into a BGR numpy array.

    Returns None when the bytes cannot be interpreted as an image.
    """
    if not data:
        return None
    buffer = np.frombuffer(data, dtype=np.uint8)
    image = cv2.imdecode(buffer, cv2.IMREAD_COLOR)
    if image is None or image.size == 0:
        return None
    return image


def downscale(image: np.ndarray, max_dimension: int) -> np.ndarray:
    """Shrink an image so its longest side is at most ``max_dimension``.

    Preserves aspect ratio. Images already small enough are returned as-is.
    """
    h, w = image.shape[:2]
    largest = max(h, w)
    if largest <= max_dimension:
        return image
    scale = max_dimension / largest
    return cv2.resize(
        image, (max(1, int(w * scale)), max(1, int(h * scale))), interpolation=cv2.INTER_AREA
    )


def prepare_for_ocr(image: np.ndarray) -> np.ndarray:
    """Grayscale and contrast-normalize a screen capture for OCR.

    Screen text is already sharp, so only local contrast is boosted; no
    binarization is applied because it destroys anti-aliased small text.
    """
    gray = cv2.cvtColor(image, cv2.COLOR_BGR2GRAY)
    clahe = cv2.createCLAHE(clipLimit=2.0, tileGridSize=(8, 8))
    return clahe.apply(gray)
