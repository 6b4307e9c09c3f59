"""Unit tests for AnalysisPipeline."""

import numpy as np
import pytest
from unittest.mock import Mock

from bosscycle.boss.bomb_timer_tracker import BombTimerTracker
from bosscycle.boss.cooldown_estimator import CooldownEstimator
from bosscycle.boss.model import BossModel
from bosscycle.boss.next_action_predictor import NextActionPredictor
from bosscycle.boss.state_machine import BossCycleStateMachine
from bosscycle.capture.frame_source import FrameSource
from bosscycle.capture.surfaces import ArraySurface
from bosscycle.exceptions import OcrInitializationError, VideoSourceEndedError
from bosscycle.models import (
    EnemyEvent,
    EventKind,
    FrameInfo,
    HpColor,
    HpResult,
    OcrLine,
)
from bosscycle.ocr.engine import StubOcrEngine
from bosscycle.ocr.log_parser import LogTextParser
from bosscycle.orchestration.analysis_pipeline import ICON_CONFIDENCE, AnalysisPipeline
from bosscycle.regions import Region, default_regions
from bosscycle.vision.hp_bar_analyzer import HpBarAnalyzer
from bosscycle.vision.icon_detector import IconDetector

SCRAMBLE_LINE = "デルメゼはスクランブルサファイアを唱えた"


class FakeClock:
    def __init__(self, now: int = 10_000):
        self.now = now

    def __call__(self) -> int:
        return self.now


@pytest.fixture(scope="module")
def model():
    return BossModel.load()


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def mocks():
    frame_source = Mock(spec=FrameSource)
    frame_source.capture_frame.return_value = FrameInfo(1920, 1080, 0)
    frame_source.crop.return_value = np.zeros((30, 400, 3), dtype=np.uint8)

    hp_analyzer = Mock(spec=HpBarAnalyzer)
    hp_analyzer.analyze.return_value = HpResult(60.0, HpColor.YELLOW, 0.9)

    icon_detector = Mock(spec=IconDetector)
    icon_detector.detect_buffs.return_value = []
    icon_detector.detect_debuffs.return_value = []

    ocr_engine = Mock(spec=StubOcrEngine)
    ocr_engine.is_ready.return_value = True
    ocr_engine.recognize.return_value = []

    return {
        "frame_source": frame_source,
        "hp_analyzer": hp_analyzer,
        "icon_detector": icon_detector,
        "ocr_engine": ocr_engine,
    }


def build_pipeline(model, clock, mocks, **kwargs) -> AnalysisPipeline:
    parser = LogTextParser(
        known_actions=model.known_actions(),
        reset_phrases=model.reset_trigger_phrases(),
        aliases=model.action_aliases(),
        clock=clock,
    )
    return AnalysisPipeline(
        **mocks,
        parser=parser,
        model=model,
        state_machine=BossCycleStateMachine(model),
        cooldown_estimator=CooldownEstimator(model),
        predictor=NextActionPredictor(model),
        bomb_tracker=BombTimerTracker(),
        regions=default_regions("1080p"),
        clock=clock,
        **kwargs,
    )


class TestTick:
    def test_tick_reads_hp_and_predicts(self, model, clock, mocks):
        pipeline = build_pipeline(model, clock, mocks)

        result = pipeline.tick()

        assert result.timestamp == 10_000
        assert result.frame_captured is True
        assert result.hp.percent == 60.0
        assert result.cycle_state.phase == "PHASE_2"
        assert result.label == "ANALYZING"
        assert result.predictions
        assert sum(p.probability for p in result.predictions) == pytest.approx(1.0)
        mocks["frame_source"].crop.assert_any_call(default_regions("1080p").enemy_hp_bar)

    def test_icons_are_reported_with_fixed_confidence(self, model, clock, mocks):
        mocks["icon_detector"].detect_buffs.return_value = ["攻撃力アップ"]
        mocks["icon_detector"].detect_debuffs.return_value = ["毒", "スタン"]
        pipeline = build_pipeline(model, clock, mocks)

        result = pipeline.tick()

        assert [b.name for b in result.buffs] == ["攻撃力アップ"]
        assert [d.name for d in result.debuffs] == ["毒", "スタン"]
        assert all(icon.confidence == ICON_CONFIDENCE for icon in result.buffs + result.debuffs)

    def test_log_action_drives_cycle_cooldowns_and_bombs(self, model, clock, mocks):
        mocks["ocr_engine"].recognize.return_value = [OcrLine(SCRAMBLE_LINE, 0.9, 9_500)]
        pipeline = build_pipeline(model, clock, mocks)

        result = pipeline.tick()

        assert [e.name for e in result.events] == ["スクランブルサファイア"]
        assert result.cycle_state.cycle_active is True
        assert result.cycle_state.current_slot == 2
        assert result.cooldowns["スクランブルサファイア"].last_used_timestamp == 9_500
        assert [b.spawned_at for b in result.bombs] == [9_500]
        assert result.predictions[0].move == "スクランブルサファイア"

    def test_same_log_line_is_not_counted_twice(self, model, clock, mocks):
        mocks["ocr_engine"].recognize.return_value = [OcrLine(SCRAMBLE_LINE, 0.9, 9_500)]
        pipeline = build_pipeline(model, clock, mocks)

        pipeline.tick()
        clock.now += 200
        result = pipeline.tick()

        assert result.events == ()
        assert result.cycle_state.current_slot == 2

    def test_missing_frame_keeps_previous_hp(self, model, clock, mocks):
        pipeline = build_pipeline(model, clock, mocks)
        first = pipeline.tick()
        mocks["frame_source"].capture_frame.return_value = None
        mocks["hp_analyzer"].analyze.reset_mock()

        result = pipeline.tick()

        assert result.frame_captured is False
        assert result.hp == first.hp
        assert result.buffs == ()
        mocks["hp_analyzer"].analyze.assert_not_called()
        mocks["ocr_engine"].recognize.assert_called_once()

    def test_missing_first_frame_reports_unknown_hp(self, model, clock, mocks):
        mocks["frame_source"].capture_frame.return_value = None
        pipeline = build_pipeline(model, clock, mocks)

        result = pipeline.tick()

        assert result.hp == HpResult.unknown()
        assert result.cycle_state.phase == "PHASE_1"

    def test_source_end_propagates(self, model, clock, mocks):
        mocks["frame_source"].capture_frame.side_effect = VideoSourceEndedError("ended")
        pipeline = build_pipeline(model, clock, mocks)

        with pytest.raises(VideoSourceEndedError):
            pipeline.tick()


class TestDegradedSteps:
    def test_hp_failure_degrades_to_unknown(self, model, clock, mocks):
        mocks["hp_analyzer"].analyze.side_effect = RuntimeError("boom")
        pipeline = build_pipeline(model, clock, mocks)

        result = pipeline.tick()

        assert result.hp == HpResult.unknown()
        assert result.frame_captured is True

    def test_icon_failure_degrades_to_empty(self, model, clock, mocks):
        mocks["icon_detector"].detect_buffs.side_effect = RuntimeError("boom")
        pipeline = build_pipeline(model, clock, mocks)

        result = pipeline.tick()

        assert result.buffs == ()
        assert result.debuffs == ()
        assert result.hp.percent == 60.0

    def test_ocr_failure_degrades_to_no_lines(self, model, clock, mocks):
        mocks["ocr_engine"].recognize.side_effect = RuntimeError("boom")
        pipeline = build_pipeline(model, clock, mocks)

        result = pipeline.tick()

        assert result.ocr_lines == ()
        assert result.events == ()

    def test_ocr_skipped_when_engine_not_ready(self, model, clock, mocks):
        mocks["ocr_engine"].is_ready.return_value = False
        pipeline = build_pipeline(model, clock, mocks)

        pipeline.tick()

        mocks["ocr_engine"].recognize.assert_not_called()

    def test_ocr_is_throttled(self, model, clock, mocks):
        pipeline = build_pipeline(model, clock, mocks, ocr_interval_ms=1_000)

        for now in (10_000, 10_500, 11_000, 11_200):
            clock.now = now
            pipeline.tick()

        assert mocks["ocr_engine"].recognize.call_count == 2


class TestControl:
    def test_manual_ai_reset_applies_on_next_tick(self, model, clock, mocks):
        pipeline = build_pipeline(model, clock, mocks)
        pipeline.tick()

        pipeline.trigger_ai_reset()
        result = pipeline.tick()

        assert result.events[0].kind == EventKind.AI_RESET
        assert result.label == "AI1"
        assert pipeline.tick().events == ()

    def test_manual_events_precede_parsed_events(self, model, clock, mocks):
        mocks["ocr_engine"].recognize.return_value = [OcrLine(SCRAMBLE_LINE, 0.9, 9_500)]
        pipeline = build_pipeline(model, clock, mocks)

        pipeline.process_manual_event(EnemyEvent(EventKind.ACTION, 9_000, name="通常攻撃"))
        result = pipeline.tick()

        assert [e.name for e in result.events] == ["通常攻撃", "スクランブルサファイア"]
        assert result.cycle_state.current_slot == 3
        assert result.cooldowns["通常攻撃"].last_used_timestamp == 9_000

    def test_update_regions_takes_effect_next_tick(self, model, clock, mocks):
        pipeline = build_pipeline(model, clock, mocks)
        new_bar = Region(0, 0, 50, 10)

        pipeline.update_regions(default_regions("1080p").replace(enemy_hp_bar=new_bar))
        pipeline.tick()

        assert pipeline.regions.enemy_hp_bar == new_bar
        mocks["frame_source"].crop.assert_any_call(new_bar)

    def test_reset_clears_combat_state(self, model, clock, mocks):
        mocks["ocr_engine"].recognize.return_value = [OcrLine(SCRAMBLE_LINE, 0.9, 9_500)]
        pipeline = build_pipeline(model, clock, mocks)
        pipeline.tick()

        pipeline.reset()
        mocks["ocr_engine"].recognize.return_value = []
        mocks["frame_source"].capture_frame.return_value = None
        result = pipeline.tick()

        assert result.cycle_state.cycle_active is False
        assert result.bombs == ()
        assert result.hp == HpResult.unknown()
        assert result.cooldowns["スクランブルサファイア"].last_used_timestamp is None

    def test_destroy_releases_resources(self, model, clock, mocks):
        pipeline = build_pipeline(model, clock, mocks)

        pipeline.destroy()

        mocks["ocr_engine"].terminate.assert_called_once()
        mocks["frame_source"].surface.release.assert_called_once()

    def test_model_info(self, model, clock, mocks):
        info = build_pipeline(model, clock, mocks).model_info()

        assert info["boss_id"] == model.boss_id
        assert [p["id"] for p in info["phases"]] == ["PHASE_1", "PHASE_2", "PHASE_3", "PHASE_4"]
        assert info["phases"][1]["ai_slot_count"] == 3
        assert "スクランブルサファイア" in info["phases"][1]["actions"]


def test_create_builds_default_pipeline():
    surface = ArraySurface([np.zeros((1080, 1920, 3), dtype=np.uint8)], loop=True)

    pipeline = AnalysisPipeline.create(surface, clock=FakeClock())

    assert isinstance(pipeline.ocr_engine, StubOcrEngine)
    assert pipeline.ocr_engine.is_ready() is False
    assert pipeline.regions == default_regions("1080p")
    result = pipeline.tick()
    assert result.frame_captured is True
    assert result.cycle_state.cycle_active is False


def test_create_leaves_ocr_start_to_the_session():
    ocr_engine = Mock(spec=StubOcrEngine)
    ocr_engine.is_ready.return_value = False
    ocr_engine.init.side_effect = OcrInitializationError("no tesseract")
    surface = ArraySurface([np.zeros((1080, 1920, 3), dtype=np.uint8)], loop=True)

    pipeline = AnalysisPipeline.create(surface, ocr_engine=ocr_engine, clock=FakeClock())

    ocr_engine.init.assert_not_called()
    assert pipeline.tick().ocr_lines == ()
