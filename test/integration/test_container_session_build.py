"""Building a session from the DI container the way the analyze command does."""

import numpy as np

from bosscycle.capture.frame_source import FrameSource
from bosscycle.capture.surfaces import ArraySurface
from bosscycle.container import Container
from bosscycle.orchestration.stop_conditions import MaxTicksCondition, StopConditionChain
from bosscycle.regions import default_regions


def test_container_builds_session_around_caller_surface(tmp_path):
    container = Container()
    container.config.cache_dir.from_value(tmp_path)
    container.config.debug.from_value(False)
    container.config.boss_data_path.from_value(None)
    container.config.ocr_engine.from_value("stub")
    container.config.tick_interval.from_value(0)

    surface = ArraySurface([np.zeros((1080, 1920, 3), dtype=np.uint8)], loop=True)
    pipeline = container.analysis_pipeline(
        frame_source=FrameSource(surface),
        regions=default_regions("1080p"),
    )
    session = container.analysis_session(pipeline=pipeline)

    result = session.run(StopConditionChain([MaxTicksCondition(2)]))

    assert result.ticks == 2
    assert pipeline.ocr_engine.is_ready() is True
    assert not hasattr(Container, "frame_source")
