"""Tesseract OCR backend.

Runs ``pytesseract.image_to_data`` over a screen capture and groups the
word-level output into line regions. Tesseract reports pixel boxes with a
top-left origin; they are converted to normalized bottom-left boxes here.
"""

from __future__ import annotations

import logging
from typing import Sequence

import numpy as np
import pytesseract
from PIL import Image

from pulselog.domain.models import BoundingBox, RecognitionQuality
from pulselog.recognition.base import (
    RecognitionBackend,
    RecognitionFailure,
    RegionCandidates,
    TextCandidate,
)
from pulselog.utils.imaging import downscale, prepare_for_ocr

logger = logging.getLogger(__name__)

# Longest image side used for the fast quality level
FAST_MAX_DIMENSION = 1280

_CONFIG_BY_QUALITY = {
    # Automatic page segmentation, LSTM engine
    RecognitionQuality.ACCURATE: "--oem 1 --psm 3",
    # Sparse text: finds as much text as possible in no particular order
    RecognitionQuality.FAST: "--oem 1 --psm 11",
}

# ISO 639-1 tags to Tesseract traineddata names
_TESSERACT_LANGUAGES = {
    "en": "eng",
    "de": "deu",
    "fr": "fra",
    "es": "spa",
    "it": "ita",
    "pt": "por",
    "nl": "nld",
    "sv": "swe",
    "pl": "pol",
    "ru": "rus",
    "uk": "ukr",
    "ja": "jpn",
    "ko": "kor",
    "zh": "chi_sim",
    "zh-hans": "chi_sim",
    "zh-hant": "chi_tra",
}


def tesseract_languages(language_hints: Sequence[str]) -> str | None:
    """Map language hints to a Tesseract ``lang`` argument such as ``eng+deu``.

    Unknown hints are ignored. Three-letter Tesseract names pass through.
    Returns None when nothing maps, letting Tesseract use its default.
    """
    codes: list[str] = []
    for hint in language_hints:
        tag = hint.strip().lower()
        code = _TESSERACT_LANGUAGES.get(tag) or _TESSERACT_LANGUAGES.get(tag.split("-")[0])
        if code is None and len(tag) == 3 and tag.isalpha():
            code = tag
        if code and code not in codes:
            codes.append(code)
    return "+".join(codes) if codes else None


class TesseractBackend(RecognitionBackend):
    """Recognizes screen text with a local Tesseract installation."""

    def __init__(self, tesseract_cmd: str | None = None) -> None:
        if tesseract_cmd:
            pytesseract.pytesseract.tesseract_cmd = tesseract_cmd
            logger.info("Using tesseract binary at %s", tesseract_cmd)

    def recognize_regions(
        self,
        image: np.ndarray,
        quality: RecognitionQuality,
        language_hints: Sequence[str],
    ) -> list[RegionCandidates]:
        prepared = prepare_for_ocr(image)
        if quality == RecognitionQuality.FAST:
            prepared = downscale(prepared, FAST_MAX_DIMENSION)
        height, width = prepared.shape[:2]

        try:
            data = pytesseract.image_to_data(
                Image.fromarray(prepared),
                lang=tesseract_languages(language_hints),
                config=_CONFIG_BY_QUALITY[quality],
                output_type=pytesseract.Output.DICT,
            )
        except (pytesseract.TesseractError, pytesseract.TesseractNotFoundError) as exc:
            raise RecognitionFailure(f"tesseract failed: {exc}") from exc
        return group_lines(data, width, height)


def group_lines(data: dict, width: int, height: int) -> list[RegionCandidates]:
    """Group ``image_to_data`` word rows into one region per text line."""
    lines: dict[tuple[int, int, int], dict] = {}
    for i, raw_text in enumerate(data.get("text", [])):
        word = (raw_text or "").strip()
        conf = float(data["conf"][i])
        # Tesseract reports -1 for layout rows that carry no text
        if not word or conf < 0:
            continue
        key = (int(data["block_num"][i]), int(data["par_num"][i]), int(data["line_num"][i]))
        left = int(data["left"][i])
        top = int(data["top"][i])
        right = left + int(data["width"][i])
        bottom = top + int(data["height"][i])
        line = lines.get(key)
        if line is None:
            lines[key] = {
                "words": [word], "confs": [conf],
                "left": left, "top": top, "right": right, "bottom": bottom,
            }
        else:
            line["words"].append(word)
            line["confs"].append(conf)
            line["left"] = min(line["left"], left)
            line["top"] = min(line["top"], top)
            line["right"] = max(line["right"], right)
            line["bottom"] = max(line["bottom"], bottom)

    regions: list[RegionCandidates] = []
    for line in lines.values():
        confidence = sum(line["confs"]) / len(line["confs"]) / 100.0
        regions.append(
            RegionCandidates(
                bounding_box=_normalize_box(
                    line["left"], line["top"], line["right"], line["bottom"], width, height
                ),
                candidates=(
                    TextCandidate(text=" ".join(line["words"]), confidence=_clamp(confidence)),
                ),
            )
        )
    return regions


def _normalize_box(
    left: int, top: int, right: int, bottom: int, width: int, height: int
) -> BoundingBox:
    """Convert a top-left-origin pixel box into a normalized bottom-left box."""
    return BoundingBox(
        x=_clamp(left / width),
        y=_clamp(1.0 - bottom / height),
        width=_clamp((right - left) / width),
        height=_clamp((bottom - top) / height),
    )


def _clamp(value: float) -> float:
    return max(0.0, min(1.0, value))
