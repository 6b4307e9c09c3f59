"""Unit tests for OCR engines."""

from unittest.mock import patch

import numpy as np
import pytest
import pytesseract

from bosscycle.exceptions import OcrInitializationError
from bosscycle.ocr.engine import StubOcrEngine, TesseractOcrEngine, create_ocr_engine
from bosscycle.ocr.similarity import levenshtein_ratio
from bosscycle.protocols import OcrEngineProtocol


def test_stub_engine_lifecycle():
    engine = StubOcrEngine()
    assert isinstance(engine, OcrEngineProtocol)
    assert engine.is_ready() is False

    engine.init()

    assert engine.is_ready() is True
    assert engine.recognize(np.zeros((10, 10, 3), dtype=np.uint8)) == []

    engine.terminate()
    assert engine.is_ready() is False


def test_factory():
    assert isinstance(create_ocr_engine("stub"), StubOcrEngine)
    assert isinstance(create_ocr_engine("tesseract", lang="jpn"), TesseractOcrEngine)
    with pytest.raises(ValueError):
        create_ocr_engine("cloud")


def test_tesseract_init_failure_raises():
    engine = TesseractOcrEngine()
    with patch(
        "bosscycle.ocr.engine.pytesseract.get_tesseract_version",
        side_effect=pytesseract.TesseractNotFoundError(),
    ):
        with pytest.raises(OcrInitializationError):
            engine.init()

    assert engine.is_ready() is False


def test_tesseract_groups_words_into_lines():
    engine = TesseractOcrEngine(clock=lambda: 4200)
    data = {
        "text": ["", "デルメゼは", "コバルトウェーブを", "放った", "ノイズ"],
        "conf": ["-1", "90", "80", "70", "10"],
        "block_num": [1, 1, 1, 1, 2],
        "par_num": [1, 1, 1, 1, 1],
        "line_num": [0, 1, 1, 1, 1],
    }

    with patch("bosscycle.ocr.engine.pytesseract.get_tesseract_version", return_value="5.3"):
        engine.init()
    with patch("bosscycle.ocr.engine.pytesseract.image_to_data", return_value=data) as ocr:
        lines = engine.recognize(np.full((40, 120, 3), 200, dtype=np.uint8))

    ocr.assert_called_once()
    assert len(lines) == 1
    assert lines[0].text == "デルメゼは コバルトウェーブを 放った"
    assert lines[0].confidence == pytest.approx(0.8)
    assert lines[0].timestamp_ms == 4200


def test_tesseract_recognize_before_init_returns_empty():
    engine = TesseractOcrEngine()
    with patch("bosscycle.ocr.engine.pytesseract.image_to_data") as ocr:
        assert engine.recognize(np.zeros((10, 10, 3), dtype=np.uint8)) == []
    ocr.assert_not_called()


def test_preprocess_upscales_and_binarizes():
    engine = TesseractOcrEngine(scale=2.0)
    image = np.zeros((10, 20, 3), dtype=np.uint8)
    image[:, 10:] = 255

    result = engine.preprocess(image)

    assert result.shape == (20, 40)
    assert set(np.unique(result)) <= {0, 255}


@pytest.mark.parametrize(
    "a,b,expected",
    [
        ("abc", "abc", 1.0),
        ("", "abc", 0.0),
        ("abc", "", 0.0),
        ("abcd", "abce", 0.75),
        ("コバルト", "コバルド", 0.75),
    ],
)
def test_levenshtein_ratio(a, b, expected):
    assert levenshtein_ratio(a, b) == pytest.approx(expected)
