"""OCR engines for the combat log region."""

import time

import cv2
import numpy as np
import pytesseract
from loguru import logger

from bosscycle.exceptions import OcrInitializationError
from bosscycle.models import OcrLine


def _now_ms() -> int:
    return int(time.time() * 1000)


class StubOcrEngine:
    """Engine that never recognizes anything.

    Running with this engine is a valid configuration: the pipeline still
    tracks HP, icons and phases, only log driven events are missing.
    """

    def __init__(self):
        self._ready = False

    def init(self) -> None:
        self._ready = True

    def recognize(self, log_image: np.ndarray) -> list[OcrLine]:
        return []

    def terminate(self) -> None:
        self._ready = False

    def is_ready(self) -> bool:
        return self._ready


class TesseractOcrEngine:
    """pytesseract backed engine.

    The crop is converted to grayscale, upscaled and binarized with Otsu's
    threshold before recognition. Words are grouped into lines by tesseract's
    block/paragraph/line numbering.
    """

    def __init__(
        self,
        lang: str = "jpn+eng",
        scale: float = 2.0,
        min_confidence: float = 0.3,
        psm: int = 6,
        clock=_now_ms,
    ):
        self._lang = lang
        self._scale = scale
        self._min_confidence = min_confidence
        self._psm = psm
        self._clock = clock
        self._ready = False

    def init(self) -> None:
        try:
            version = pytesseract.get_tesseract_version()
        except (pytesseract.TesseractNotFoundError, OSError) as e:
            raise OcrInitializationError(f"Tesseract is not available: {e}") from e

        logger.info(f"Tesseract {version} ready (lang={self._lang})")
        self._ready = True

    def is_ready(self) -> bool:
        return self._ready

    def terminate(self) -> None:
        self._ready = False

    def preprocess(self, log_image: np.ndarray) -> np.ndarray:
        if log_image.ndim == 3:
            gray = cv2.cvtColor(log_image, cv2.COLOR_BGR2GRAY)
        else:
            gray = log_image

        if self._scale != 1.0:
            gray = cv2.resize(
                gray,
                None,
                fx=self._scale,
                fy=self._scale,
                interpolation=cv2.INTER_CUBIC,
            )

        _, thresh = cv2.threshold(gray, 0, 255, cv2.THRESH_BINARY + cv2.THRESH_OTSU)
        return thresh

    def recognize(self, log_image: np.ndarray) -> list[OcrLine]:
        if not self._ready:
            logger.warning("recognize() called before init()")
            return []
        if log_image is None or log_image.size == 0:
            return []

        timestamp = self._clock()
        data = pytesseract.image_to_data(
            self.preprocess(log_image),
            lang=self._lang,
            config=f"--psm {self._psm}",
            output_type=pytesseract.Output.DICT,
        )
        return self._group_lines(data, timestamp)

    def _group_lines(self, data: dict, timestamp: int) -> list[OcrLine]:
        words: dict[tuple[int, int, int], list[tuple[str, float]]] = {}
        for i, text in enumerate(data["text"]):
            text = text.strip()
            conf = float(data["conf"][i])
            # tesseract reports -1 for layout rows without text
            if not text or conf < 0:
                continue
            key = (data["block_num"][i], data["par_num"][i], data["line_num"][i])
            words.setdefault(key, []).append((text, conf / 100))

        lines = []
        for key in sorted(words):
            parts = words[key]
            confidence = sum(conf for _, conf in parts) / len(parts)
            if confidence < self._min_confidence:
                continue
            text = " ".join(part for part, _ in parts)
            lines.append(
                OcrLine(text=text, confidence=round(confidence, 2), timestamp_ms=timestamp)
            )
        return lines


def create_ocr_engine(name: str = "stub", **kwargs):
    """Build an OCR engine by name ("stub" or "tesseract")."""
    if name == "stub":
        return StubOcrEngine()
    if name == "tesseract":
        return TesseractOcrEngine(**kwargs)
    raise ValueError(f"Unknown OCR engine {name!r}, expected 'stub' or 'tesseract'")
