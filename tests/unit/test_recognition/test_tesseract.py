"""Tests for the Tesseract backend with pytesseract patched."""

from __future__ import annotations

from unittest.mock import patch

import numpy as np
import pytest
import pytesseract

from pulselog.domain.models import RecognitionQuality
from pulselog.recognition.base import RecognitionFailure
from pulselog.recognition.tesseract import TesseractBackend, group_lines, tesseract_languages


def _data() -> dict:
    return {
        "text": ["", "Hello", "world", "Next"],
        "conf": ["-1", "90", "80", "60"],
        "block_num": [1, 1, 1, 1],
        "par_num": [1, 1, 1, 1],
        "line_num": [0, 1, 1, 2],
        "left": [0, 10, 40, 10],
        "top": [0, 5, 5, 25],
        "width": [0, 25, 30, 20],
        "height": [0, 10, 10, 10],
    }


class TestTesseractLanguages:
    def test_maps_iso_codes(self) -> None:
        assert tesseract_languages(["en", "de"]) == "eng+deu"

    def test_region_subtags_and_duplicates(self) -> None:
        assert tesseract_languages(["en-US", "en"]) == "eng"

    def test_unknown_hints_ignored(self) -> None:
        assert tesseract_languages(["xx"]) is None
        assert tesseract_languages([]) is None

    def test_tesseract_names_pass_through(self) -> None:
        assert tesseract_languages(["fin"]) == "fin"


class TestGroupLines:
    def test_groups_words_into_lines(self) -> None:
        regions = group_lines(_data(), width=100, height=50)
        assert len(regions) == 2
        first, second = regions
        assert first.top.text == "Hello world"
        assert first.top.confidence == pytest.approx(0.85)
        assert second.top.text == "Next"
        assert second.top.confidence == pytest.approx(0.6)

    def test_boxes_are_normalized_bottom_left(self) -> None:
        first, second = group_lines(_data(), width=100, height=50)
        box = first.bounding_box
        assert box.x == pytest.approx(0.1)
        assert box.y == pytest.approx(0.7)
        assert box.width == pytest.approx(0.6)
        assert box.height == pytest.approx(0.2)
        # The lower line on screen has the smaller y
        assert second.bounding_box.y < box.y

    def test_empty_data(self) -> None:
        assert group_lines({"text": []}, width=10, height=10) == []


class TestTesseractBackend:
    def test_recognize_regions_calls_pytesseract(self) -> None:
        image = np.full((50, 100, 3), 255, dtype=np.uint8)
        backend = TesseractBackend()
        with patch("pulselog.recognition.tesseract.pytesseract.image_to_data", return_value=_data()) as mock:
            regions = backend.recognize_regions(image, RecognitionQuality.ACCURATE, ["en"])
        assert [r.top.text for r in regions] == ["Hello world", "Next"]
        kwargs = mock.call_args.kwargs
        assert kwargs["lang"] == "eng"
        assert kwargs["config"] == "--oem 1 --psm 3"

    def test_fast_quality_uses_sparse_mode(self) -> None:
        image = np.full((50, 100, 3), 255, dtype=np.uint8)
        with patch("pulselog.recognition.tesseract.pytesseract.image_to_data", return_value=_data()) as mock:
            TesseractBackend().recognize_regions(image, RecognitionQuality.FAST, [])
        assert mock.call_args.kwargs["config"] == "--oem 1 --psm 11"
        assert mock.call_args.kwargs["lang"] is None

    def test_missing_binary_raises_recognition_failure(self) -> None:
        image = np.full((50, 100, 3), 255, dtype=np.uint8)
        with patch(
            "pulselog.recognition.tesseract.pytesseract.image_to_data",
            side_effect=pytesseract.TesseractNotFoundError(),
        ):
            with pytest.raises(RecognitionFailure):
                TesseractBackend().recognize_regions(image, RecognitionQuality.ACCURATE, ["en"])
