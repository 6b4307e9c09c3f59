"""Combat log OCR and event parsing."""

from bosscycle.ocr.engine import StubOcrEngine, TesseractOcrEngine, create_ocr_engine
from bosscycle.ocr.log_parser import LogParserConfig, LogTextParser, normalize
from bosscycle.ocr.similarity import levenshtein_ratio

__all__ = [
    "StubOcrEngine",
    "TesseractOcrEngine",
    "create_ocr_engine",
    "LogParserConfig",
    "LogTextParser",
    "normalize",
    "levenshtein_ratio",
]
