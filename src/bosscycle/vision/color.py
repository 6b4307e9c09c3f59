"""Color conversion helpers for HP bar and icon classification.

Scalar functions mirror the per-pixel math; the ``*_image`` variants apply
the same math to whole BGR images with numpy so analyzers never loop over
pixels in Python. Hue is reported in degrees (0-360), saturation, value and
lightness in percent (0-100), all rounded half-up to integers.
"""

import math

import numpy as np

from bosscycle.models import HpColor

# Band thresholds for HP bar colors. Red wraps around hue 0/360 and is
# checked as two disjoint bands.
HP_COLOR_THRESHOLDS = {
    "green": {"h_min": 80, "h_max": 160, "s_min": 30, "v_min": 30},
    "yellow": {"h_min": 40, "h_max": 70, "s_min": 30, "v_min": 40},
    "red": {"h_min": 0, "h_max": 30, "s_min": 40, "v_min": 30},
    "red_alt": {"h_min": 340, "h_max": 360, "s_min": 40, "v_min": 30},
}

# Below these, a pixel is treated as gray/black and left unclassified.
MIN_CHROMA_SATURATION = 20
MIN_CHROMA_VALUE = 20

# Integer labels returned by classify_hp_colors().
LABEL_NONE = 0
LABEL_GREEN = 1
LABEL_YELLOW = 2
LABEL_RED = 3

LABEL_TO_COLOR = {
    LABEL_GREEN: HpColor.GREEN,
    LABEL_YELLOW: HpColor.YELLOW,
    LABEL_RED: HpColor.RED,
}


def _round_half_up(value: float) -> int:
    return int(math.floor(value + 0.5))


def _hue_fraction(r: float, g: float, b: float, max_c: float, d: float) -> float:
    if d == 0:
        return 0.0
    if max_c == r:
        return ((g - b) / d + (6 if g < b else 0)) / 6
    if max_c == g:
        return ((b - r) / d + 2) / 6
    return ((r - g) / d + 4) / 6


def rgb_to_hsl(r: int, g: int, b: int) -> tuple[int, int, int]:
    """Convert 0-255 RGB to (h 0-360, s 0-100, l 0-100)."""
    r, g, b = r / 255, g / 255, b / 255
    max_c = max(r, g, b)
    min_c = min(r, g, b)
    lightness = (max_c + min_c) / 2
    d = max_c - min_c

    saturation = 0.0
    if d != 0:
        if lightness > 0.5:
            saturation = d / (2 - max_c - min_c)
        else:
            saturation = d / (max_c + min_c)

    hue = _hue_fraction(r, g, b, max_c, d)
    return (
        _round_half_up(hue * 360),
        _round_half_up(saturation * 100),
        _round_half_up(lightness * 100),
    )


def rgb_to_hsv(r: int, g: int, b: int) -> tuple[int, int, int]:
    """Convert 0-255 RGB to (h 0-360, s 0-100, v 0-100)."""
    r, g, b = r / 255, g / 255, b / 255
    max_c = max(r, g, b)
    min_c = min(r, g, b)
    d = max_c - min_c

    saturation = 0.0 if max_c == 0 else d / max_c
    hue = _hue_fraction(r, g, b, max_c, d)
    return (
        _round_half_up(hue * 360),
        _round_half_up(saturation * 100),
        _round_half_up(max_c * 100),
    )


def color_distance(c1: tuple[int, int, int], c2: tuple[int, int, int]) -> float:
    """Euclidean distance between two RGB colors."""
    return math.sqrt(sum((a - b) ** 2 for a, b in zip(c1, c2)))


def luminance(r: float, g: float, b: float) -> float:
    return 0.299 * r + 0.587 * g + 0.114 * b


def _in_band(h: int, s: int, v: int, band: dict) -> bool:
    return (
        band["h_min"] <= h <= band["h_max"]
        and s >= band["s_min"]
        and v >= band["v_min"]
    )


def classify_hp_color(hsv: tuple[int, int, int]) -> HpColor | None:
    """Classify one HSV pixel into an HP bar color, or None if unclassified."""
    h, s, v = hsv
    if s < MIN_CHROMA_SATURATION or v < MIN_CHROMA_VALUE:
        return None

    t = HP_COLOR_THRESHOLDS
    if _in_band(h, s, v, t["green"]):
        return HpColor.GREEN
    if _in_band(h, s, v, t["yellow"]):
        return HpColor.YELLOW
    if _in_band(h, s, v, t["red"]) or _in_band(h, s, v, t["red_alt"]):
        return HpColor.RED
    return None


def bgr_image_to_hsv(image: np.ndarray) -> tuple[np.ndarray, np.ndarray, np.ndarray]:
    """Vectorized rgb_to_hsv() over a BGR image.

    Returns:
        Tuple of integer arrays (hue, saturation, value) shaped like the image
        without its channel axis.
    """
    pixels = image[..., :3].astype(np.float64) / 255.0
    b, g, r = pixels[..., 0], pixels[..., 1], pixels[..., 2]

    max_c = np.max(pixels, axis=-1)
    min_c = np.min(pixels, axis=-1)
    d = max_c - min_c
    safe_d = np.where(d == 0, 1.0, d)

    hue_r = ((g - b) / safe_d + np.where(g < b, 6.0, 0.0)) / 6
    hue_g = ((b - r) / safe_d + 2) / 6
    hue_b = ((r - g) / safe_d + 4) / 6
    hue = np.select([max_c == r, max_c == g], [hue_r, hue_g], default=hue_b)
    hue = np.where(d == 0, 0.0, hue)

    safe_max = np.where(max_c == 0, 1.0, max_c)
    saturation = np.where(max_c == 0, 0.0, d / safe_max)

    return (
        np.floor(hue * 360 + 0.5).astype(np.int32),
        np.floor(saturation * 100 + 0.5).astype(np.int32),
        np.floor(max_c * 100 + 0.5).astype(np.int32),
    )


def image_luminance(image: np.ndarray) -> np.ndarray:
    """Per-pixel luminance of a BGR image."""
    pixels = image[..., :3].astype(np.float64)
    return luminance(pixels[..., 2], pixels[..., 1], pixels[..., 0])


def classify_hp_colors(
    hue: np.ndarray, saturation: np.ndarray, value: np.ndarray
) -> np.ndarray:
    """Vectorized classify_hp_color(); returns a LABEL_* array."""

    def band(name: str) -> np.ndarray:
        t = HP_COLOR_THRESHOLDS[name]
        return (
            (hue >= t["h_min"])
            & (hue <= t["h_max"])
            & (saturation >= t["s_min"])
            & (value >= t["v_min"])
        )

    chromatic = (saturation >= MIN_CHROMA_SATURATION) & (value >= MIN_CHROMA_VALUE)
    labels = np.select(
        [band("green"), band("yellow"), band("red") | band("red_alt")],
        [LABEL_GREEN, LABEL_YELLOW, LABEL_RED],
        default=LABEL_NONE,
    )
    return np.where(chromatic, labels, LABEL_NONE).astype(np.int8)
