import json
import sys
from pathlib import Path

import click
from dependency_injector.wiring import inject, Provide
from loguru import logger
from rich.console import Console
from rich.table import Table

from bosscycle.capture.frame_source import FrameSource
from bosscycle.capture.surfaces import ImageDirectorySurface, VideoCaptureSurface
from bosscycle.container import Container
from bosscycle.exceptions import BossDataError, VideoSourceError
from bosscycle.models import AnalysisTickResult
from bosscycle.orchestration.debug_tick_logger import DebugTickLogger
from bosscycle.orchestration.stop_conditions import (
    BossDefeatedCondition,
    MaxDurationCondition,
    MaxTicksCondition,
    StopConditionChain,
)
from bosscycle.protocols import RegionCacheProtocol
from bosscycle.regions import default_regions, detect_resolution


def open_surface(source: str):
    """Open a directory of frames, a capture device index or a video path/URL."""
    if Path(source).is_dir():
        return ImageDirectorySurface(Path(source))
    if source.isdigit():
        return VideoCaptureSurface(int(source))
    return VideoCaptureSurface(source)


def format_tick(result: AnalysisTickResult) -> str:
    top = result.predictions[0] if result.predictions else None
    prediction = f"{top.move} {top.probability:.0%}" if top else "-"
    return (
        f"HP {result.hp.percent:5.1f}% ({result.hp.color.value}) | "
        f"{result.cycle_state.phase} {result.label} | next: {prediction} | "
        f"bombs: {len(result.bombs)}"
    )


def display_predictions(console: Console, result: AnalysisTickResult) -> None:
    table = Table(title=f"Next action ({result.cycle_state.phase} {result.label})")
    table.add_column("Action", style="green")
    table.add_column("Probability", style="cyan")
    table.add_column("Severity", style="magenta")
    table.add_column("Reason", style="yellow")

    for item in result.predictions:
        table.add_row(item.move, f"{item.probability:.0%}", item.severity.value, item.reason)

    console.print(table)


@click.command()
@click.argument("source")
@click.option(
    "--ocr",
    type=click.Choice(["stub", "tesseract"]),
    default="stub",
    show_default=True,
    help="OCR engine for the combat log.",
)
@click.option(
    "--interval",
    "-i",
    type=float,
    default=0.2,
    show_default=True,
    help="Seconds between ticks.",
)
@click.option("--max-ticks", "-m", type=int, default=None, help="Stop after this many ticks.")
@click.option("--max-seconds", type=float, default=None, help="Stop after this many seconds.")
@click.option(
    "--json",
    "as_json",
    is_flag=True,
    help="Print every tick as a JSON line on stdout.",
)
@inject
def analyze(
    source: str,
    ocr: str,
    interval: float,
    max_ticks: int | None,
    max_seconds: float | None,
    as_json: bool,
    cache_service: RegionCacheProtocol = Provide[Container.cache_service],
):
    """Analyze a video file, capture device index or directory of frames.

    Regions calibrated with `regions set` for the source's frame size are
    used; otherwise the preset for its resolution.
    """
    ctx = click.get_current_context()
    container: Container = ctx.obj["container"]
    app_data = ctx.obj["app_data"]

    container.config.ocr_engine.from_value(ocr)
    container.config.tick_interval.from_value(interval)

    try:
        surface = open_surface(source)
    except VideoSourceError as e:
        logger.error(str(e))
        sys.exit(1)

    frame_size = (surface.width, surface.height)
    regions = cache_service.get_regions(frame_size)
    if regions is None:
        preset = detect_resolution(*frame_size)
        logger.info(f"No calibrated regions for {frame_size}, using {preset} preset")
        regions = default_regions(preset)

    try:
        pipeline = container.analysis_pipeline(
            frame_source=FrameSource(surface),
            regions=regions,
        )
    except BossDataError as e:
        logger.error(f"Could not load boss data: {e}")
        sys.exit(1)

    debug_logger = None
    if app_data.debug_dir is not None:
        debug_logger = DebugTickLogger(output_dir=app_data.debug_dir)

    session = container.analysis_session(pipeline=pipeline, debug_logger=debug_logger)

    def on_tick(result: AnalysisTickResult) -> None:
        if as_json:
            click.echo(json.dumps(result.to_dict(), ensure_ascii=False))
        else:
            logger.info(format_tick(result))

    session.set_tick_callback(on_tick)
    session.set_error_callback(lambda e: logger.warning(f"Session error: {e}"))

    conditions = []
    if max_ticks is not None:
        conditions.append(MaxTicksCondition(max_ticks))
    if max_seconds is not None:
        conditions.append(MaxDurationCondition(max_seconds))
    conditions.append(BossDefeatedCondition())

    try:
        result = session.run(StopConditionChain(conditions))
    except KeyboardInterrupt:
        logger.info("Interrupted")
        session.destroy()
        sys.exit(130)

    session.destroy()
    logger.info(f"Analyzed {result.ticks} ticks. Stop reason: {result.stop_reason.name}")

    if result.last_result is not None and not as_json:
        display_predictions(Console(), result.last_result)
