"""Per-action cooldown estimation from observed action timestamps."""

from collections import deque
from dataclasses import dataclass, replace

from loguru import logger

from bosscycle.boss.model import BossModel
from bosscycle.models import ActionRecord, CooldownEntry


@dataclass(frozen=True)
class CooldownConfig:
    max_tracked_actions: int = 20


class CooldownEstimator:
    """Estimates remaining cooldown for every known boss action.

    Keeps one bounded history of observed actions across all action names;
    when it is full the oldest observation is dropped.
    """

    def __init__(self, model: BossModel, config: CooldownConfig | None = None):
        self._model = model
        self._config = config or CooldownConfig()
        self._history: deque[ActionRecord] = deque(maxlen=self._config.max_tracked_actions)

    @property
    def config(self) -> CooldownConfig:
        return self._config

    def update_config(self, **kwargs) -> None:
        self._config = replace(self._config, **kwargs)
        if self._history.maxlen != self._config.max_tracked_actions:
            self._history = deque(self._history, maxlen=self._config.max_tracked_actions)

    def on_action(self, action_name: str, timestamp_ms: int) -> None:
        self._history.append(ActionRecord(action_name, timestamp_ms))
        logger.debug(f"Cooldown started for {action_name} at {timestamp_ms}")

    def last_used_time(self, action_name: str) -> int | None:
        for record in reversed(self._history):
            if record.name == action_name:
                return record.timestamp_ms
        return None

    def estimate(self, now: int) -> dict[str, CooldownEntry]:
        """Remaining cooldown per known action at time now.

        Actions without a cooldown or never seen are ready (0 s). Otherwise
        remaining = max(0, cooldown - elapsed), rounded to 0.1 s.
        """
        estimates = {}
        for name in self._model.known_actions():
            action = self._model.find_action(name)
            last_used = self.last_used_time(name)

            if action.cooldown_seconds <= 0 or last_used is None:
                estimates[name] = CooldownEntry(0.0, last_used)
                continue

            elapsed = (now - last_used) / 1000
            remaining = max(0.0, action.cooldown_seconds - elapsed)
            estimates[name] = CooldownEntry(round(remaining, 1), last_used)

        return estimates

    def ready_actions(self, now: int) -> list[str]:
        return [
            name for name, entry in self.estimate(now).items() if entry.ready_in_seconds <= 0
        ]

    def next_ready_action(self, now: int) -> tuple[str, float] | None:
        """The cooling action that becomes ready soonest, if any."""
        cooling = [
            (name, entry.ready_in_seconds)
            for name, entry in self.estimate(now).items()
            if entry.ready_in_seconds > 0
        ]
        if not cooling:
            return None
        return min(cooling, key=lambda item: item[1])

    def reset(self) -> None:
        self._history.clear()
