import json
import sys
from pathlib import Path

import click
from dependency_injector.wiring import inject, Provide
from loguru import logger
from rich.console import Console
from rich.table import Table

from bosscycle.container import Container
from bosscycle.exceptions import RegionConfigError
from bosscycle.protocols import RegionCacheProtocol
from bosscycle.regions import RegionConfig, default_regions, detect_resolution


def parse_frame_size(value: str) -> tuple[int, int]:
    try:
        width, height = (int(part) for part in value.lower().split("x"))
    except ValueError as e:
        raise click.BadParameter(f"Expected WIDTHxHEIGHT, got {value!r}") from e
    return width, height


frame_size_option = click.option(
    "--size",
    "-s",
    "frame_size",
    default="1920x1080",
    show_default=True,
    help="Capture frame size as WIDTHxHEIGHT.",
)


@click.group()
def regions():
    """Manage calibrated regions of interest per capture resolution."""
    pass


def display_regions(console: Console, config: RegionConfig, title: str) -> None:
    table = Table(title=title)
    table.add_column("Region", style="cyan")
    table.add_column("X", style="green")
    table.add_column("Y", style="green")
    table.add_column("Width", style="yellow")
    table.add_column("Height", style="yellow")
    table.add_column("Unit", style="blue")

    rows = [(key, getattr(config, key)) for key in RegionConfig.REQUIRED_KEYS]
    rows += [(f"ally_hp_bar_{i + 1}", r) for i, r in enumerate(config.ally_hp_bars)]
    for name, region in rows:
        table.add_row(
            name,
            f"{region.x:g}",
            f"{region.y:g}",
            f"{region.width:g}",
            f"{region.height:g}",
            region.unit.value,
        )

    console.print(table)


@regions.command()
@frame_size_option
@inject
def show(
    frame_size: str,
    cache_service: RegionCacheProtocol = Provide[Container.cache_service],
):
    """Show calibrated regions, or the preset used when none are cached."""
    size = parse_frame_size(frame_size)
    config = cache_service.get_regions(size)
    if config is None:
        preset = detect_resolution(*size)
        display_regions(Console(), default_regions(preset), f"Preset {preset} (not calibrated)")
    else:
        display_regions(Console(), config, f"Calibrated {size[0]}x{size[1]}")


@regions.command(name="set")
@click.argument("regions_file", type=click.Path(exists=True, dir_okay=False))
@frame_size_option
@inject
def set_regions(
    regions_file: str,
    frame_size: str,
    cache_service: RegionCacheProtocol = Provide[Container.cache_service],
):
    """Store regions from a JSON file for a capture frame size."""
    size = parse_frame_size(frame_size)
    try:
        data = json.loads(Path(regions_file).read_text(encoding="utf-8"))
        config = RegionConfig.from_dict(data)
    except (json.JSONDecodeError, RegionConfigError) as e:
        logger.error(f"Invalid regions file: {e}")
        sys.exit(1)

    cache_service.set_regions(size, config)
    logger.info(f"Regions saved for {size[0]}x{size[1]}")


@regions.command()
@frame_size_option
@inject
def clear(
    frame_size: str,
    cache_service=Provide[Container.cache_service],
):
    """Delete calibrated regions for a capture frame size."""
    size = parse_frame_size(frame_size)
    if cache_service.clear_regions(size):
        logger.info(f"Regions cleared for {size[0]}x{size[1]}")
    else:
        logger.info(f"No regions cached for {size[0]}x{size[1]}")
