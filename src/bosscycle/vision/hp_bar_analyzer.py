"""Stateless analyzer for the boss HP bar from ROI images."""

from dataclasses import dataclass, replace

import numpy as np
from loguru import logger

from bosscycle.models import HpColor, HpResult
from bosscycle.vision.color import (
    LABEL_GREEN,
    LABEL_NONE,
    LABEL_RED,
    LABEL_TO_COLOR,
    LABEL_YELLOW,
    bgr_image_to_hsv,
    classify_hp_colors,
    image_luminance,
)

MIN_BAR_WIDTH = 10
MIN_BAR_HEIGHT = 3
MIN_COLORED_PIXELS = 5
EMPTY_BAR_CONFIDENCE = 0.3

# Bar color encodes a coarse HP band for this boss: red at or below 25%,
# yellow at or below 50%.
COLOR_CAPS = {
    HpColor.RED: (25.0, 0.8),
    HpColor.YELLOW: (50.0, 0.9),
}


@dataclass(frozen=True)
class HpBarConfig:
    """Tuning parameters for HP bar analysis."""

    min_brightness: float = 40.0  # luminance below this is background
    color_sample_rows: int = 3  # rows sampled on each side of the center row
    # Overshoot allowed before a color cap applies. Earlier builds used 5, which
    # capped a 60% yellow reading; 15 keeps it.
    color_cap_tolerance: float = 15.0


class HpBarAnalyzer:
    """
    Analyzer for HP percentage and color from a cropped HP bar image.
    """

    def __init__(self, config: HpBarConfig | None = None):
        self._config = config or HpBarConfig()
        self._background_bgr: tuple[float, float, float] | None = None

    @property
    def config(self) -> HpBarConfig:
        return self._config

    @property
    def background_bgr(self) -> tuple[float, float, float] | None:
        """Mean left-edge color recorded by calibrate(), if any."""
        return self._background_bgr

    def analyze(self, hp_bar_image: np.ndarray | None) -> HpResult:
        """Estimate HP percent, dominant bar color and confidence.

        Never raises: malformed or too-small input yields percent 0, red,
        confidence 0.
        """
        if not self._is_valid(hp_bar_image):
            return HpResult(percent=0.0, color=HpColor.RED, confidence=0.0)

        height, width = hp_bar_image.shape[:2]
        center = height // 2
        sample_range = min(self._config.color_sample_rows, height // 2)
        top = max(0, center - sample_range)
        bottom = min(height, center + sample_range + 1)
        band = hp_bar_image[top:bottom]

        bright = image_luminance(band) >= self._config.min_brightness
        labels = classify_hp_colors(*bgr_image_to_hsv(band))
        labels = np.where(bright, labels, LABEL_NONE)

        counts = {
            label: int(np.count_nonzero(labels == label))
            for label in (LABEL_GREEN, LABEL_YELLOW, LABEL_RED)
        }
        total_colored = sum(counts.values())

        dominant = HpColor.GREEN
        max_count = 0
        for label, count in counts.items():
            if count > max_count:
                max_count = count
                dominant = LABEL_TO_COLOR[label]

        if total_colored < MIN_COLORED_PIXELS:
            percent = 0.0
            confidence = EMPTY_BAR_CONFIDENCE
        else:
            columns = np.flatnonzero(np.any(labels != LABEL_NONE, axis=0))
            first_x = int(columns[0])
            last_x = int(columns[-1])
            bar_length = last_x - first_x + 1
            max_bar_length = width - first_x * 2  # symmetric margin
            percent = bar_length / max(1, max_bar_length) * 100
            percent = min(100.0, max(0.0, percent))

            expected_pixels = bar_length * sample_range * 2
            confidence = min(1.0, total_colored / max(1, expected_pixels) * 1.2)

        percent, confidence = self._apply_color_cap(dominant, percent, confidence)

        return HpResult(
            percent=round(percent, 1),
            color=dominant,
            confidence=round(confidence, 2),
        )

    def _apply_color_cap(
        self, color: HpColor, percent: float, confidence: float
    ) -> tuple[float, float]:
        if color not in COLOR_CAPS:
            return percent, confidence

        cap, confidence_scale = COLOR_CAPS[color]
        if percent > cap + self._config.color_cap_tolerance:
            logger.debug(
                f"{color.value} bar reads {percent:.1f}%, capping to {cap:.0f}%"
            )
            return cap, confidence * confidence_scale
        return percent, confidence

    def calibrate(self, sample: np.ndarray) -> None:
        """Record the background color from the left edge of a sample bar."""
        if not self._is_valid(sample):
            logger.warning("Calibration sample rejected: image too small")
            return

        edge = sample[:, :5, :3].reshape(-1, 3).astype(np.float64)
        self._background_bgr = tuple(float(c) for c in edge.mean(axis=0))
        logger.debug(f"HP bar background calibrated to BGR {self._background_bgr}")

    def update_config(self, **changes) -> None:
        self._config = replace(self._config, **changes)

    @staticmethod
    def _is_valid(image: np.ndarray | None) -> bool:
        if image is None or not isinstance(image, np.ndarray):
            return False
        if image.ndim != 3 or image.shape[2] < 3:
            return False
        height, width = image.shape[:2]
        return width >= MIN_BAR_WIDTH and height >= MIN_BAR_HEIGHT
