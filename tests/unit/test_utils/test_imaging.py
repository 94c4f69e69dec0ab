"""Tests for image decoding and preprocessing helpers."""

from __future__ import annotations

import cv2
import numpy as np

from pulselog.utils.imaging import decode_image, downscale, prepare_for_ocr


class TestImaging:
    def test_decode_png(self) -> None:
        success, buffer = cv2.imencode(".png", np.zeros((20, 30, 3), dtype=np.uint8))
        assert success
        decoded = decode_image(buffer.tobytes())
        assert decoded is not None
        assert decoded.shape == (20, 30, 3)

    def test_decode_garbage_returns_none(self) -> None:
        assert decode_image(b"not an image") is None
        assert decode_image(b"") is None

    def test_downscale_keeps_aspect_ratio(self) -> None:
        image = np.zeros((1000, 2000), dtype=np.uint8)
        small = downscale(image, 500)
        assert small.shape == (250, 500)

    def test_downscale_small_image_untouched(self) -> None:
        image = np.zeros((10, 10), dtype=np.uint8)
        assert downscale(image, 500) is image

    def test_prepare_for_ocr_is_grayscale(self) -> None:
        image = np.full((32, 32, 3), 128, dtype=np.uint8)
        prepared = prepare_for_ocr(image)
        assert prepared.ndim == 2
        assert prepared.shape == (32, 32)
