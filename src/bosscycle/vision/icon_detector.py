"""Color-histogram detector for buff and debuff icons.

Icons are not template-matched: each grid cell of the buff/debuff bar is
reduced to a hue histogram plus mean saturation/value and compared against
named color templates. False positives and negatives are an accepted
tradeoff of this heuristic.
"""

import math
from dataclasses import dataclass

import numpy as np
from loguru import logger

from bosscycle.vision.color import bgr_image_to_hsv, image_luminance

HUE_BINS = 36  # 10 degree bins
MIN_CELL_PIXELS = 50
MIN_HUE_RATIO = 0.3
LUMINANCE_RANGE = (20, 250)


@dataclass(frozen=True)
class IconTemplate:
    id: str
    name: str
    dominant_hue: int  # 0-360
    hue_range: int
    min_saturation: float
    min_value: float


@dataclass(frozen=True)
class CellProfile:
    hue_histogram: np.ndarray
    avg_saturation: float
    avg_value: float
    pixel_count: int


BUFF_TEMPLATES: tuple[IconTemplate, ...] = (
    IconTemplate("buff_attack", "攻撃力UP", 0, 20, 50, 50),
    IconTemplate("buff_defense", "守備力UP", 210, 30, 40, 40),
    IconTemplate("buff_holy", "聖女の守り", 45, 20, 30, 60),
    IconTemplate("buff_phalanx", "ファランクス", 200, 30, 50, 50),
    IconTemplate("buff_aigis", "アイギスの守り", 180, 30, 40, 50),
)

DEBUFF_TEMPLATES: tuple[IconTemplate, ...] = (
    IconTemplate("debuff_poison", "毒", 280, 30, 40, 30),
    IconTemplate("debuff_curse", "呪い", 270, 30, 30, 20),
    IconTemplate("debuff_seal", "封印", 0, 180, 10, 20),
)


class IconDetector:
    """Detects buff/debuff icon names in a cropped status bar region."""

    def __init__(
        self,
        icon_size: int = 32,
        buff_templates: tuple[IconTemplate, ...] = BUFF_TEMPLATES,
        debuff_templates: tuple[IconTemplate, ...] = DEBUFF_TEMPLATES,
    ):
        if icon_size <= 0:
            raise ValueError(f"icon_size must be positive, got {icon_size}")

        self._icon_size = icon_size
        self._buff_templates = list(buff_templates)
        self._debuff_templates = list(debuff_templates)

    def detect_buffs(self, region: np.ndarray | None) -> list[str]:
        return self._detect_icons(region, self._buff_templates)

    def detect_debuffs(self, region: np.ndarray | None) -> list[str]:
        return self._detect_icons(region, self._debuff_templates)

    def add_buff_template(self, template: IconTemplate) -> None:
        self._buff_templates.append(template)

    def add_debuff_template(self, template: IconTemplate) -> None:
        self._debuff_templates.append(template)

    def _detect_icons(
        self, region: np.ndarray | None, templates: list[IconTemplate]
    ) -> list[str]:
        if region is None or region.ndim != 3 or region.size == 0:
            return []

        height, width = region.shape[:2]
        size = self._icon_size
        detected: list[str] = []

        for top in range(0, height - size + 1, size):
            for left in range(0, width - size + 1, size):
                profile = self.analyze_cell(region[top : top + size, left : left + size])
                for template in templates:
                    if template.name not in detected and self.matches(profile, template):
                        detected.append(template.name)

        if detected:
            logger.debug(f"Icons detected: {detected}")
        return detected

    @staticmethod
    def analyze_cell(cell: np.ndarray) -> CellProfile:
        """Build the hue histogram and mean S/V of one grid cell."""
        lum = image_luminance(cell)
        keep = (lum >= LUMINANCE_RANGE[0]) & (lum <= LUMINANCE_RANGE[1])

        hue, saturation, value = bgr_image_to_hsv(cell)
        hue, saturation, value = hue[keep], saturation[keep], value[keep]

        count = int(hue.size)
        bins = (hue // 10) % HUE_BINS
        histogram = np.bincount(bins, minlength=HUE_BINS)

        return CellProfile(
            hue_histogram=histogram,
            avg_saturation=float(saturation.mean()) if count else 0.0,
            avg_value=float(value.mean()) if count else 0.0,
            pixel_count=count,
        )

    @staticmethod
    def matches(profile: CellProfile, template: IconTemplate) -> bool:
        if profile.pixel_count < MIN_CELL_PIXELS:
            return False
        if profile.avg_saturation < template.min_saturation:
            return False
        if profile.avg_value < template.min_value:
            return False

        center_bin = (template.dominant_hue // 10) % HUE_BINS
        range_bins = math.ceil(template.hue_range / 10)
        # A range of 18+ bins covers the whole wheel; count each bin once.
        bins = {
            (center_bin + offset) % HUE_BINS
            for offset in range(-range_bins, range_bins + 1)
        }
        target_count = int(sum(profile.hue_histogram[b] for b in bins))

        return target_count / profile.pixel_count >= MIN_HUE_RATIO
