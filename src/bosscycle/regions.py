"""Regions of interest on the captured frame.

A region is either a percentage-of-frame rectangle or an absolute pixel
rectangle. RegionConfig names the regions the pipeline reads each tick and
can be replaced at runtime when the layout is recalibrated.
"""

from dataclasses import dataclass, field, replace
from enum import Enum

from bosscycle.exceptions import RegionConfigError


class RegionUnit(str, Enum):
    PERCENT = "percent"
    PIXEL = "pixel"


@dataclass(frozen=True)
class Region:
    x: float
    y: float
    width: float
    height: float
    unit: RegionUnit = RegionUnit.PIXEL

    def to_dict(self) -> dict:
        return {
            "x": self.x,
            "y": self.y,
            "width": self.width,
            "height": self.height,
            "unit": self.unit.value,
        }

    @classmethod
    def from_dict(cls, data: dict) -> "Region":
        try:
            return cls(
                x=data["x"],
                y=data["y"],
                width=data["width"],
                height=data["height"],
                unit=RegionUnit(data.get("unit", RegionUnit.PIXEL.value)),
            )
        except (KeyError, ValueError, TypeError) as e:
            raise RegionConfigError(f"Invalid region definition {data!r}: {e}") from e


@dataclass(frozen=True)
class RegionConfig:
    """Named regions read by the analysis pipeline."""

    enemy_hp_bar: Region
    buff_area: Region
    debuff_area: Region
    log_area: Region
    ally_hp_bars: tuple[Region, ...] = field(default_factory=tuple)

    REQUIRED_KEYS = ("enemy_hp_bar", "buff_area", "debuff_area", "log_area")

    def replace(self, **changes) -> "RegionConfig":
        return replace(self, **changes)

    def to_dict(self) -> dict:
        data = {key: getattr(self, key).to_dict() for key in self.REQUIRED_KEYS}
        data["ally_hp_bars"] = [region.to_dict() for region in self.ally_hp_bars]
        return data

    @classmethod
    def from_dict(cls, data: dict) -> "RegionConfig":
        missing = [key for key in cls.REQUIRED_KEYS if key not in data]
        if missing:
            raise RegionConfigError(f"Region config is missing keys: {missing}")

        return cls(
            **{key: Region.from_dict(data[key]) for key in cls.REQUIRED_KEYS},
            ally_hp_bars=tuple(
                Region.from_dict(item) for item in data.get("ally_hp_bars", [])
            ),
        )


def _pixels(x, y, width, height) -> Region:
    return Region(x, y, width, height, RegionUnit.PIXEL)


def _percent(x, y, width, height) -> Region:
    return Region(x, y, width, height, RegionUnit.PERCENT)


_PRESETS = {
    "1080p": RegionConfig(
        enemy_hp_bar=_pixels(100, 80, 400, 30),
        buff_area=_pixels(300, 130, 600, 40),
        debuff_area=_pixels(300, 180, 600, 40),
        log_area=_pixels(10, 400, 500, 180),
        ally_hp_bars=(
            _pixels(60, 600, 200, 20),
            _pixels(60, 650, 200, 20),
            _pixels(60, 700, 200, 20),
            _pixels(60, 750, 200, 20),
        ),
    ),
    "720p": RegionConfig(
        enemy_hp_bar=_pixels(67, 53, 267, 20),
        buff_area=_pixels(200, 87, 400, 27),
        debuff_area=_pixels(200, 120, 400, 27),
        log_area=_pixels(7, 267, 333, 120),
        ally_hp_bars=(
            _pixels(40, 400, 133, 13),
            _pixels(40, 433, 133, 13),
            _pixels(40, 467, 133, 13),
            _pixels(40, 500, 133, 13),
        ),
    ),
}


def default_regions(resolution: str = "1080p") -> RegionConfig:
    """Pixel region preset for a known capture resolution."""
    if resolution not in _PRESETS:
        raise RegionConfigError(
            f"Unknown resolution preset {resolution!r}, expected one of {sorted(_PRESETS)}"
        )
    return _PRESETS[resolution]


def percent_regions() -> RegionConfig:
    """Resolution independent layout in percent of the frame."""
    return RegionConfig(
        enemy_hp_bar=_percent(5, 7, 25, 3),
        buff_area=_percent(15, 12, 35, 4),
        debuff_area=_percent(15, 16, 35, 4),
        log_area=_percent(0, 35, 30, 20),
    )


def detect_resolution(width: int, height: int) -> str:
    return "1080p" if height >= 1080 else "720p"
