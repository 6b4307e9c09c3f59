"""Fixed-cadence analysis session.

Drives an AnalysisPipeline on a fixed tick interval, forwards every tick
result to a callback and stops on a stop condition, a manual stop or the
end of the video source.
"""

from dataclasses import dataclass
import time
from typing import Callable

from loguru import logger

from bosscycle.exceptions import OcrInitializationError, VideoSourceEndedError
from bosscycle.models import AnalysisTickResult
from bosscycle.orchestration.analysis_pipeline import AnalysisPipeline
from bosscycle.orchestration.debug_tick_logger import DebugTickLogger
from bosscycle.orchestration.stop_conditions import (
    SessionProgress,
    StopConditionChain,
    StopReason,
)
from bosscycle.regions import RegionConfig

TickCallback = Callable[[AnalysisTickResult], None]
ErrorCallback = Callable[[Exception], None]


@dataclass(frozen=True)
class SessionResult:
    """Result from a single analysis session."""

    ticks: int
    stop_reason: StopReason
    last_result: AnalysisTickResult | None = None


class AnalysisSession:
    """Runs the pipeline tick by tick until told to stop.

    Ticks never overlap: the next tick starts only after the previous one
    and its callback have returned. Callbacks must be registered before
    run().
    """

    def __init__(
        self,
        pipeline: AnalysisPipeline,
        tick_interval: float = 0.2,
        debug_logger: DebugTickLogger | None = None,
    ):
        if tick_interval < 0:
            raise ValueError(f"tick_interval must not be negative, got {tick_interval}")

        self._pipeline = pipeline
        self._tick_interval = tick_interval
        self._debug_logger = debug_logger
        self._on_tick: TickCallback | None = None
        self._on_error: ErrorCallback | None = None
        self._running = False
        self._paused = False
        self._stop_requested = False

    def set_tick_callback(self, callback: TickCallback) -> None:
        self._on_tick = callback

    def set_error_callback(self, callback: ErrorCallback) -> None:
        self._on_error = callback

    def is_running(self) -> bool:
        return self._running

    @property
    def paused(self) -> bool:
        return self._paused

    def run(self, stop_conditions: StopConditionChain | None = None) -> SessionResult:
        """Tick until a stop condition, stop() or the source ends.

        Args:
            stop_conditions: Optional conditions evaluated after every tick

        Returns:
            SessionResult with the number of completed ticks and stop reason
        """
        stop_conditions = stop_conditions or StopConditionChain([])
        stop_conditions.reset()

        self._running = True
        self._stop_requested = False
        self._start_ocr()

        logger.info(f"Analysis session started (interval={self._tick_interval}s)")
        started = time.monotonic()
        ticks = 0
        last_result = None

        try:
            while True:
                if self._stop_requested:
                    stop_reason = StopReason.MANUAL_STOP
                    break

                if self._paused:
                    time.sleep(self._tick_interval)
                    continue

                try:
                    result = self._pipeline.tick()
                except VideoSourceEndedError:
                    logger.info("Video source ended")
                    stop_reason = StopReason.SOURCE_ENDED
                    break
                except Exception as e:
                    logger.warning(f"Tick failed: {e}")
                    self._report_error(e)
                    time.sleep(self._tick_interval)
                    continue

                last_result = result
                self._log_debug(ticks, result)
                ticks += 1

                if self._on_tick is not None:
                    self._on_tick(result)

                progress = SessionProgress(
                    ticks=ticks,
                    elapsed_seconds=time.monotonic() - started,
                    last_result=result,
                )
                stop_reason = stop_conditions.check(progress)
                if stop_reason is not None:
                    logger.debug(f"Stop condition met: {stop_reason.value}")
                    break

                time.sleep(self._tick_interval)
        finally:
            self._running = False

        if self._debug_logger is not None:
            self._debug_logger.save_summary(
                {"stop_reason": stop_reason.value, "tick_interval": self._tick_interval}
            )

        logger.info(f"Session complete: ticks={ticks}, reason={stop_reason.value}")
        return SessionResult(ticks=ticks, stop_reason=stop_reason, last_result=last_result)

    def _start_ocr(self) -> None:
        engine = self._pipeline.ocr_engine
        if engine.is_ready():
            return
        try:
            engine.init()
        except OcrInitializationError as e:
            # Analysis continues without log events.
            logger.error(f"OCR unavailable: {e}")
            self._report_error(e)

    def _report_error(self, error: Exception) -> None:
        if self._on_error is not None:
            self._on_error(error)

    def _log_debug(self, tick_number: int, result: AnalysisTickResult) -> None:
        if self._debug_logger is None:
            return

        source = self._pipeline.frame_source
        regions = self._pipeline.regions
        self._debug_logger.log_tick(
            tick_number=tick_number,
            result=result,
            frame=source.full_frame() if result.frame_captured else None,
            rois={
                "hp_bar": source.crop(regions.enemy_hp_bar),
                "log": source.crop(regions.log_area),
            }
            if result.frame_captured
            else None,
        )

    def stop(self) -> None:
        self._stop_requested = True

    def pause(self) -> None:
        logger.info("Session paused")
        self._paused = True

    def resume(self) -> None:
        logger.info("Session resumed")
        self._paused = False

    def reset(self) -> None:
        """Clear the pipeline's combat state without stopping the session."""
        self._pipeline.reset()

    def calibrate_regions(self, regions: RegionConfig) -> None:
        self._pipeline.update_regions(regions)

    def destroy(self) -> None:
        self.stop()
        self._pipeline.destroy()
