"""Stop condition strategies for analysis sessions.

This module provides composable stop conditions that can be used
to determine when to halt an analysis session.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from enum import Enum

from loguru import logger

from bosscycle.models import AnalysisTickResult
from bosscycle.vision.hp_bar_analyzer import EMPTY_BAR_CONFIDENCE


class StopReason(Enum):
    """Reasons for stopping an analysis session."""

    MAX_TICKS = "max_ticks"
    MAX_DURATION = "max_duration"
    BOSS_DEFEATED = "boss_defeated"
    SOURCE_ENDED = "source_ended"
    MANUAL_STOP = "manual_stop"


@dataclass(frozen=True)
class SessionProgress:
    """What stop conditions see after each completed tick."""

    ticks: int
    elapsed_seconds: float
    last_result: AnalysisTickResult | None = None


class StopCondition(ABC):
    """Abstract base for stop condition strategies.

    Each concrete condition implements a single stop criterion.
    Conditions are checked in order by AnalysisSession.
    """

    @abstractmethod
    def check(self, progress: SessionProgress) -> bool:
        pass

    @abstractmethod
    def get_reason(self) -> StopReason:
        pass

    def reset(self) -> None:
        """Forget any state accumulated across ticks."""


@dataclass
class MaxTicksCondition(StopCondition):
    """Stop when the number of completed ticks reaches a maximum."""

    max_ticks: int

    def __post_init__(self):
        if self.max_ticks <= 0:
            raise ValueError(f"max_ticks must be positive, got {self.max_ticks}")

    def check(self, progress: SessionProgress) -> bool:
        if progress.ticks >= self.max_ticks:
            logger.info(f"Max ticks reached: {progress.ticks}/{self.max_ticks}")
            return True
        return False

    def get_reason(self) -> StopReason:
        return StopReason.MAX_TICKS


@dataclass
class MaxDurationCondition(StopCondition):
    """Stop when the session has run for a maximum number of seconds."""

    max_seconds: float

    def __post_init__(self):
        if self.max_seconds <= 0:
            raise ValueError(f"max_seconds must be positive, got {self.max_seconds}")

    def check(self, progress: SessionProgress) -> bool:
        if progress.elapsed_seconds >= self.max_seconds:
            logger.info(f"Max duration reached: {progress.elapsed_seconds:.1f}s")
            return True
        return False

    def get_reason(self) -> StopReason:
        return StopReason.MAX_DURATION


@dataclass
class BossDefeatedCondition(StopCondition):
    """Stop when the HP bar reads 0 on consecutive captured ticks.

    A single empty reading is common while the bar is covered by effects,
    so several in a row are required. An empty bar reads with
    EMPTY_BAR_CONFIDENCE; unreadable crops read with confidence 0 and do
    not count.
    """

    consecutive_ticks: int = 5
    min_confidence: float = EMPTY_BAR_CONFIDENCE
    _streak: int = field(default=0, init=False, repr=False)

    def check(self, progress: SessionProgress) -> bool:
        result = progress.last_result
        if (
            result is not None
            and result.frame_captured
            and result.hp.percent <= 0
            and result.hp.confidence >= self.min_confidence
        ):
            self._streak += 1
        else:
            self._streak = 0

        if self._streak >= self.consecutive_ticks:
            logger.info(f"Boss defeated: HP 0% for {self._streak} ticks")
            return True
        return False

    def get_reason(self) -> StopReason:
        return StopReason.BOSS_DEFEATED

    def reset(self) -> None:
        self._streak = 0


class StopConditionChain:
    """Manages ordered list of stop conditions and evaluates them.

    Conditions are checked in the order they're added. First matching
    condition determines the stop reason.
    """

    def __init__(self, conditions: list[StopCondition]):
        self._conditions = conditions

    def check(self, progress: SessionProgress) -> StopReason | None:
        for condition in self._conditions:
            if condition.check(progress):
                return condition.get_reason()
        return None

    def should_stop(self, progress: SessionProgress) -> bool:
        return self.check(progress) is not None

    def reset(self) -> None:
        for condition in self._conditions:
            condition.reset()
