"""Per-tick analysis pipeline.

Coordinates frame capture, vision, OCR and the boss model state objects.
One call to tick() turns the current frame into one AnalysisTickResult.
"""

import time
from typing import Callable

from loguru import logger

from bosscycle.boss.bomb_timer_tracker import BombTimerTracker
from bosscycle.boss.cooldown_estimator import CooldownEstimator
from bosscycle.boss.model import BossModel
from bosscycle.boss.next_action_predictor import NextActionPredictor
from bosscycle.boss.state_machine import BossCycleStateMachine
from bosscycle.capture.frame_source import FrameSource
from bosscycle.models import (
    AnalysisTickResult,
    EnemyEvent,
    EventKind,
    HpResult,
    IconResult,
    OcrLine,
)
from bosscycle.ocr.engine import create_ocr_engine
from bosscycle.ocr.log_parser import LogParserConfig, LogTextParser
from bosscycle.protocols import OcrEngineProtocol, VideoSurfaceProtocol
from bosscycle.regions import RegionConfig, default_regions, detect_resolution
from bosscycle.vision.hp_bar_analyzer import HpBarAnalyzer
from bosscycle.vision.icon_detector import IconDetector

# Icon matching is a histogram heuristic without a per-match score.
ICON_CONFIDENCE = 0.8


def _now_ms() -> int:
    return int(time.time() * 1000)


class AnalysisPipeline:
    """Runs one analysis step per tick() over injected collaborators.

    Vision and OCR failures degrade to their empty result for the tick and
    are logged as warnings. Only VideoSourceEndedError propagates.
    """

    def __init__(
        self,
        frame_source: FrameSource,
        hp_analyzer: HpBarAnalyzer,
        icon_detector: IconDetector,
        ocr_engine: OcrEngineProtocol,
        parser: LogTextParser,
        model: BossModel,
        state_machine: BossCycleStateMachine,
        cooldown_estimator: CooldownEstimator,
        predictor: NextActionPredictor,
        bomb_tracker: BombTimerTracker,
        regions: RegionConfig,
        ocr_interval_ms: int = 0,
        clock: Callable[[], int] = _now_ms,
    ):
        self._frame_source = frame_source
        self._hp_analyzer = hp_analyzer
        self._icon_detector = icon_detector
        self._ocr_engine = ocr_engine
        self._parser = parser
        self._model = model
        self._state_machine = state_machine
        self._cooldown_estimator = cooldown_estimator
        self._predictor = predictor
        self._bomb_tracker = bomb_tracker
        self._regions = regions
        self._ocr_interval_ms = ocr_interval_ms
        self._clock = clock

        self._last_hp: HpResult | None = None
        self._last_ocr_at: int | None = None
        self._pending_events: list[EnemyEvent] = []

    @classmethod
    def create(
        cls,
        surface: VideoSurfaceProtocol,
        regions: RegionConfig | None = None,
        ocr_engine: OcrEngineProtocol | str = "stub",
        model: BossModel | None = None,
        ocr_interval_ms: int = 0,
        clock: Callable[[], int] = _now_ms,
    ) -> "AnalysisPipeline":
        """Build a pipeline with default collaborators around a surface.

        Args:
            surface: Video surface to analyze
            regions: Regions to read; defaults to the preset for the surface resolution
            ocr_engine: Engine instance or engine name for create_ocr_engine()
            model: Boss model; defaults to the bundled data
            ocr_interval_ms: Minimum time between OCR passes
            clock: Callable returning the current time in milliseconds

        Raises:
            BossDataError: If the boss data cannot be loaded
        """
        model = model or BossModel.load()
        if isinstance(ocr_engine, str):
            ocr_engine = create_ocr_engine(ocr_engine)
        if regions is None:
            regions = default_regions(detect_resolution(surface.width, surface.height))

        parser = LogTextParser(
            known_actions=model.known_actions(),
            reset_phrases=model.reset_trigger_phrases(),
            config=LogParserConfig(),
            aliases=model.action_aliases(),
            clock=clock,
        )

        pipeline = cls(
            frame_source=FrameSource(surface, clock=clock),
            hp_analyzer=HpBarAnalyzer(),
            icon_detector=IconDetector(),
            ocr_engine=ocr_engine,
            parser=parser,
            model=model,
            state_machine=BossCycleStateMachine(model),
            cooldown_estimator=CooldownEstimator(model),
            predictor=NextActionPredictor(model),
            bomb_tracker=BombTimerTracker(),
            regions=regions,
            ocr_interval_ms=ocr_interval_ms,
            clock=clock,
        )
        return pipeline

    @property
    def regions(self) -> RegionConfig:
        return self._regions

    @property
    def frame_source(self) -> FrameSource:
        return self._frame_source

    @property
    def ocr_engine(self) -> OcrEngineProtocol:
        return self._ocr_engine

    def tick(self) -> AnalysisTickResult:
        """Analyze the current frame.

        Raises:
            VideoSourceEndedError: If the video source has permanently ended
        """
        now = self._clock()
        frame_info = self._frame_source.capture_frame()
        regions = self._regions

        buffs: tuple[IconResult, ...] = ()
        debuffs: tuple[IconResult, ...] = ()
        ocr_lines: list[OcrLine] = []

        if frame_info is None:
            hp = self._last_hp or HpResult.unknown()
        else:
            hp = self._analyze_hp(regions)
            self._last_hp = hp
            buffs, debuffs = self._detect_icons(regions)
            ocr_lines = self._recognize_log(regions, now)

        events = self._parse(ocr_lines, now)
        if self._pending_events:
            events = self._pending_events + events
            self._pending_events = []

        for event in events:
            if event.kind == EventKind.ACTION and event.name:
                self._cooldown_estimator.on_action(event.name, event.timestamp_ms)

        cycle_state = self._state_machine.update(hp=hp, events=events, now=now)
        bombs = self._bomb_tracker.process_tick(now, hp.percent, events)
        cooldowns = self._cooldown_estimator.estimate(now)
        predictions = self._predictor.predict(hp.percent, cycle_state, cooldowns)

        return AnalysisTickResult(
            timestamp=now,
            hp=hp,
            cycle_state=cycle_state,
            cooldowns=cooldowns,
            predictions=tuple(predictions),
            buffs=buffs,
            debuffs=debuffs,
            ocr_lines=tuple(ocr_lines),
            events=tuple(events),
            bombs=tuple(bombs),
            frame_captured=frame_info is not None,
        )

    def _analyze_hp(self, regions: RegionConfig) -> HpResult:
        try:
            return self._hp_analyzer.analyze(self._frame_source.crop(regions.enemy_hp_bar))
        except Exception as e:
            logger.warning(f"HP analysis failed: {e}")
            return HpResult.unknown()

    def _detect_icons(
        self, regions: RegionConfig
    ) -> tuple[tuple[IconResult, ...], tuple[IconResult, ...]]:
        try:
            buff_names = self._icon_detector.detect_buffs(
                self._frame_source.crop(regions.buff_area)
            )
            debuff_names = self._icon_detector.detect_debuffs(
                self._frame_source.crop(regions.debuff_area)
            )
        except Exception as e:
            logger.warning(f"Icon detection failed: {e}")
            return (), ()

        return (
            tuple(IconResult(name, ICON_CONFIDENCE) for name in buff_names),
            tuple(IconResult(name, ICON_CONFIDENCE) for name in debuff_names),
        )

    def _recognize_log(self, regions: RegionConfig, now: int) -> list[OcrLine]:
        if not self._ocr_engine.is_ready():
            return []
        if (
            self._last_ocr_at is not None
            and now - self._last_ocr_at < self._ocr_interval_ms
        ):
            return []

        self._last_ocr_at = now
        try:
            log_image = self._frame_source.crop(regions.log_area)
            if log_image is None:
                return []
            return list(self._ocr_engine.recognize(log_image))
        except Exception as e:
            logger.warning(f"OCR failed: {e}")
            return []

    def _parse(self, ocr_lines: list[OcrLine], now: int) -> list[EnemyEvent]:
        if not ocr_lines:
            return []
        try:
            return self._parser.parse(ocr_lines, now=now)
        except Exception as e:
            logger.warning(f"Log parsing failed: {e}")
            return []

    def update_regions(self, regions: RegionConfig) -> None:
        """Replace the region layout; takes effect on the next tick."""
        logger.info("Regions updated")
        self._regions = regions

    def trigger_ai_reset(self) -> None:
        """Queue a manual AI reset signal for the next tick."""
        self.process_manual_event(EnemyEvent(EventKind.AI_RESET, self._clock(), raw="manual"))

    def process_manual_event(self, event: EnemyEvent) -> None:
        """Queue an externally sourced event; applied before next tick's parsed events."""
        logger.debug(f"Manual event queued: {event.kind.value} {event.name or ''}")
        self._pending_events.append(event)

    def model_info(self) -> dict:
        return {
            "boss_id": self._model.boss_id,
            "boss_name": self._model.boss_name,
            "version": self._model.version,
            "phases": [
                {
                    "id": phase.id,
                    "name": phase.name,
                    "hp_min": phase.hp_min,
                    "hp_max": phase.hp_max,
                    "ai_slot_count": phase.ai_slot_count,
                    "actions": [action.name for action in phase.actions],
                }
                for phase in self._model.phases
            ],
        }

    def reset(self) -> None:
        """Clear all combat state; the model and regions are kept."""
        logger.info("Pipeline reset")
        self._state_machine.reset()
        self._cooldown_estimator.reset()
        self._bomb_tracker.reset()
        self._parser.reset()
        self._last_hp = None
        self._last_ocr_at = None
        self._pending_events = []

    def destroy(self) -> None:
        self._ocr_engine.terminate()
        self._frame_source.surface.release()
        logger.info("Pipeline destroyed")
