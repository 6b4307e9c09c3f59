"""Unit tests for DebugTickLogger."""

import json
import tempfile
from pathlib import Path

import numpy as np

from bosscycle.models import AnalysisTickResult, CycleState, HpColor, HpResult
from bosscycle.orchestration.debug_tick_logger import DebugTickLogger


def make_result(timestamp: int = 1_000) -> AnalysisTickResult:
    return AnalysisTickResult(
        timestamp=timestamp,
        hp=HpResult(60.0, HpColor.YELLOW, 0.9),
        cycle_state=CycleState(phase="PHASE_2", cycle_active=True, current_slot=2),
        cooldowns={},
        predictions=(),
    )


class TestDebugTickLogger:
    """Tests for DebugTickLogger class."""

    def test_session_directory_creation(self):
        with tempfile.TemporaryDirectory() as tmpdir:
            debug_logger = DebugTickLogger(output_dir=Path(tmpdir), session_name="fight")

            assert debug_logger.session_dir.is_dir()
            assert debug_logger.session_dir.name == "fight"
            assert debug_logger.tick_count == 0

    def test_log_tick_writes_frame_and_rois(self):
        with tempfile.TemporaryDirectory() as tmpdir:
            debug_logger = DebugTickLogger(output_dir=Path(tmpdir), session_name="fight")

            debug_logger.log_tick(
                tick_number=3,
                result=make_result(),
                frame=np.zeros((100, 200, 3), dtype=np.uint8),
                rois={
                    "hp_bar": np.zeros((10, 50, 3), dtype=np.uint8),
                    "log": None,
                },
            )

            rois = [f.name for f in debug_logger.session_dir.glob("*.png")]
            frames = [f.name for f in (debug_logger.session_dir / "frames").glob("*.png")]
            assert rois == ["000003_hp_bar.png"]
            assert frames == ["000003.png"]
            assert debug_logger.tick_count == 1

    def test_log_tick_without_images(self):
        with tempfile.TemporaryDirectory() as tmpdir:
            debug_logger = DebugTickLogger(output_dir=Path(tmpdir), session_name="fight")

            debug_logger.log_tick(tick_number=0, result=make_result())

            assert list(debug_logger.session_dir.rglob("*.png")) == []
            assert debug_logger.tick_count == 1

    def test_save_summary_creates_json_file(self):
        with tempfile.TemporaryDirectory() as tmpdir:
            debug_logger = DebugTickLogger(output_dir=Path(tmpdir), session_name="fight")
            debug_logger.log_tick(
                tick_number=0,
                result=make_result(),
                frame=np.zeros((10, 10, 3), dtype=np.uint8),
            )

            summary_path = debug_logger.save_summary({"stop_reason": "max_ticks"})

            with open(summary_path, encoding="utf-8") as f:
                summary = json.load(f)

            assert summary["session_name"] == "fight"
            assert summary["total_ticks"] == 1
            assert summary["stop_reason"] == "max_ticks"
            tick = summary["ticks"][0]
            assert tick["label"] == "AI2"
            assert tick["frame_file"] == "frames/000000.png"
            assert tick["result"]["hp"]["color"] == "yellow"
            assert tick["result"]["cycle_state"]["phase"] == "PHASE_2"
