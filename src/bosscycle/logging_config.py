"""Loguru setup for the bosscycle CLI.

INFO output is one short line per event with a millisecond clock, since
ticks arrive several times a second. DEBUG output adds level and source
location for every record.
"""

from pathlib import Path

import click
from loguru import logger

DEBUG_FORMAT = (
    "{time:YYYY-MM-DD HH:mm:ss.SSS} | {level: <8} | {name}:{function}:{line} - {message}"
)
DEBUG_FORMAT_COLOR = (
    "<green>{time:YYYY-MM-DD HH:mm:ss.SSS}</green> | <level>{level: <8}</level> | "
    "<cyan>{name}</cyan>:<cyan>{function}</cyan>:<cyan>{line}</cyan> - <level>{message}</level>"
)
INFO_FORMAT = "{time:HH:mm:ss.SSS} | {extra[short_name]: <32} | {message}"
INFO_FORMAT_COLOR = (
    "<green>{time:HH:mm:ss.SSS}</green> | <cyan>{extra[short_name]: <32}</cyan> | "
    "<level>{message}</level>"
)

LOG_FILE_ROTATION = "10 MB"


def format_short_name(record):
    """Add a "module.function" short_name extra, e.g. analysis_session.run."""
    module_name = record["name"].split(".")[-1]
    record["extra"]["short_name"] = f"{module_name}.{record['function']}"


def add_logger_sink(debug: bool, sink, colorize: bool = False, **kwargs) -> int:
    """Add a sink using the DEBUG or INFO format.

    Args:
        debug: Detailed DEBUG format and level if True, short INFO format otherwise
        sink: Anything logger.add() accepts (callable, path or stream)
        colorize: Use color tags, for terminals only
        **kwargs: Passed through to logger.add() (e.g. rotation)

    Returns:
        Handler id returned by logger.add()
    """
    if debug:
        return logger.add(
            sink=sink,
            format=DEBUG_FORMAT_COLOR if colorize else DEBUG_FORMAT,
            level="DEBUG",
            colorize=colorize,
            **kwargs,
        )

    return logger.add(
        sink=sink,
        format=INFO_FORMAT_COLOR if colorize else INFO_FORMAT,
        level="INFO",
        colorize=colorize,
        filter=lambda record: format_short_name(record) or True,
        **kwargs,
    )


def configure_logging(debug: bool, log_file: Path | None = None) -> list[int]:
    """Replace all sinks with a stderr console sink and an optional log file.

    stdout stays free for `analyze --json` output.
    """
    logger.remove()

    def console_sink(msg):
        click.echo(msg, err=True, nl=False)

    handler_ids = [add_logger_sink(debug, console_sink, colorize=True)]
    if log_file is not None:
        handler_ids.append(
            add_logger_sink(debug, log_file, colorize=False, rotation=LOG_FILE_ROTATION)
        )
        logger.debug(f"Debug mode enabled. Logging to {log_file}")
    return handler_ids
