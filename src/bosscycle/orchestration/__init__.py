"""Application-layer coordination logic."""

from bosscycle.orchestration.analysis_pipeline import AnalysisPipeline
from bosscycle.orchestration.analysis_session import AnalysisSession, SessionResult
from bosscycle.orchestration.stop_conditions import (
    StopReason,
    SessionProgress,
    StopCondition,
    MaxTicksCondition,
    MaxDurationCondition,
    BossDefeatedCondition,
    StopConditionChain,
)
from bosscycle.orchestration.debug_tick_logger import DebugTick, DebugTickLogger

__all__ = [
    "AnalysisPipeline",
    "AnalysisSession",
    "SessionResult",
    "StopReason",
    "SessionProgress",
    "StopCondition",
    "MaxTicksCondition",
    "MaxDurationCondition",
    "BossDefeatedCondition",
    "StopConditionChain",
    "DebugTick",
    "DebugTickLogger",
]
