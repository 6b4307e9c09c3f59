"""Pixel-level analysis of HP bars and status icons."""

from bosscycle.vision.hp_bar_analyzer import HpBarAnalyzer, HpBarConfig
from bosscycle.vision.icon_detector import IconDetector, IconTemplate

__all__ = [
    "HpBarAnalyzer",
    "HpBarConfig",
    "IconDetector",
    "IconTemplate",
]
