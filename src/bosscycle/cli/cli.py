import click

from bosscycle.cli.analyze_cli import analyze
from bosscycle.cli.model_cli import model
from bosscycle.cli.regions_cli import regions
from bosscycle.container import Container
from bosscycle.logging_config import configure_logging
from bosscycle.services.app_data import AppData


@click.group()
@click.option(
    "--debug",
    "-d",
    is_flag=True,
    default=False,
    help="Save frames, ROI crops and tick snapshots to debug directory within cache directory.",
)
@click.option(
    "--boss-data",
    type=click.Path(exists=True, dir_okay=False),
    default=None,
    help="Boss reference data JSON. Defaults to the bundled Delmeze IV data.",
)
def bosscycle(debug: bool, boss_data: str | None):
    """Delmeze IV boss cycle analyzer.

    Reads a video feed of the encounter and tracks the boss's HP, AI slot
    rotation, cooldowns and bombs, predicting its next action.
    """

    container = Container()
    container.config.cache_dir.from_value(AppData.DEFAULT_CACHE_DIR)
    container.config.debug.from_value(debug)
    container.config.boss_data_path.from_value(boss_data)
    container.config.ocr_engine.from_value("stub")
    container.config.tick_interval.from_value(0.2)
    container.wire()

    app_data = container.app_data()
    app_data.ensure_directories()

    ctx = click.get_current_context()
    ctx.obj = {
        "container": container,
        "app_data": app_data,
        "debug": debug,
    }

    configure_logging(debug, app_data.get_log_file_path())


bosscycle.add_command(analyze)
bosscycle.add_command(regions)
bosscycle.add_command(model)
