"""Boss domain logic: reference data, AI cycle, cooldowns, bombs, prediction."""

from bosscycle.boss.model import BossModel
from bosscycle.boss.state_machine import AdvanceRule, BossCycleStateMachine
from bosscycle.boss.cooldown_estimator import CooldownConfig, CooldownEstimator
from bosscycle.boss.bomb_timer_tracker import BombTimerTracker
from bosscycle.boss.next_action_predictor import NextActionPredictor, PredictorConfig

__all__ = [
    "BossModel",
    "AdvanceRule",
    "BossCycleStateMachine",
    "CooldownConfig",
    "CooldownEstimator",
    "BombTimerTracker",
    "NextActionPredictor",
    "PredictorConfig",
]
