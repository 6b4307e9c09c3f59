"""State machine tracking the boss's AI slot rotation."""

from collections import deque
from dataclasses import dataclass, field

from loguru import logger

from bosscycle.boss.model import BossModel
from bosscycle.models import (
    ActionRecord,
    CycleState,
    EnemyEvent,
    EventKind,
    HpResult,
    SpecialFlag,
)

HISTORY_LIMIT = 100
RECENT_EVENT_LIMIT = 100


@dataclass(frozen=True)
class AdvanceRule:
    """How far an action moves the AI slot pointer.

    If the current slot is in collapse_from_slots the cycle is treated as
    complete and the pointer lands on slot 1 instead of advancing.
    """

    advance: int
    collapse_from_slots: frozenset[int] = field(default_factory=frozenset)


DEFAULT_ADVANCE_RULE = AdvanceRule(1)

ADVANCE_RULES: dict[SpecialFlag | None, AdvanceRule] = {
    SpecialFlag.AI_ADVANCE_2: AdvanceRule(2, frozenset({1})),
    # Consumes an AI count but not the wait; the slot still moves by one.
    SpecialFlag.NO_TURN_CONSUME: DEFAULT_ADVANCE_RULE,
    None: DEFAULT_ADVANCE_RULE,
}


class BossCycleStateMachine:
    """Stateful tracker for the boss's phase and AI slot.

    The cycle starts inactive ("ANALYZING") and only becomes active on an
    AI reset signal or the first recognized action. Phase follows the HP
    reading; a phase change keeps the slot and activity.
    """

    def __init__(self, model: BossModel, min_hp_confidence: float = 0.3):
        self._model = model
        self._min_hp_confidence = min_hp_confidence
        self._history: deque[ActionRecord] = deque(maxlen=HISTORY_LIMIT)
        self._recent_events: deque[EnemyEvent] = deque(maxlen=RECENT_EVENT_LIMIT)
        self._phase = model.first_phase.id
        self._cycle_active = False
        self._slot = 1
        self._last_action: str | None = None
        self._last_action_timestamp: int | None = None
        logger.debug(f"BossCycleStateMachine initialized in {self._phase}")

    def update(
        self,
        hp: HpResult | None = None,
        events: list[EnemyEvent] | tuple = (),
        now: int | None = None,
    ) -> CycleState:
        """Apply one tick's HP reading and events.

        Args:
            hp: HP reading; ignored unless its confidence exceeds min_hp_confidence
            events: Parsed events, applied in order
            now: Tick timestamp in milliseconds

        Returns:
            Snapshot of the state after the update
        """
        if hp is not None and hp.confidence > self._min_hp_confidence:
            self._update_phase(hp.percent)

        for event in events:
            self._apply_event(event)

        return self.state

    def _update_phase(self, hp_percent: float) -> None:
        phase = self._model.phase_for_hp(hp_percent)
        if phase.id == self._phase:
            return

        logger.debug(f"Phase change: {self._phase} → {phase.id} at HP {hp_percent}%")
        self._phase = phase.id
        if self._slot > phase.ai_slot_count:
            wrapped = ((self._slot - 1) % phase.ai_slot_count) + 1
            logger.debug(f"Slot AI{self._slot} wrapped to AI{wrapped}")
            self._slot = wrapped

    def _apply_event(self, event: EnemyEvent) -> None:
        if event.kind == EventKind.AI_RESET:
            logger.debug("AI reset signal: cycle restarts at AI1")
            self.reset_cycle()
            return

        if event.kind == EventKind.ACTION and event.name:
            self._advance(event.name)
            self._last_action = event.name
            self._last_action_timestamp = event.timestamp_ms
            self._history.append(ActionRecord(event.name, event.timestamp_ms))
            return

        self._recent_events.append(event)

    def _advance(self, action_name: str) -> None:
        if not self._cycle_active:
            logger.debug(f"Cycle activated by {action_name}")
            self._cycle_active = True

        action = self._model.find_action(action_name)
        rule = ADVANCE_RULES.get(action.special if action else None, DEFAULT_ADVANCE_RULE)
        slot_count = self._current_slot_count()

        previous = self._slot
        if previous in rule.collapse_from_slots:
            self._slot = 1
        else:
            self._slot = ((previous - 1 + rule.advance) % slot_count) + 1

        logger.debug(f"{action_name}: AI{previous} → AI{self._slot}")

    def _current_slot_count(self) -> int:
        phase = self._model.phase_by_id(self._phase)
        return phase.ai_slot_count if phase else self._model.first_phase.ai_slot_count

    def reset_cycle(self) -> None:
        """Mark the cycle active and return to slot 1."""
        self._cycle_active = True
        self._slot = 1

    def reset(self) -> None:
        """Return to the initial state and clear all history."""
        self._phase = self._model.first_phase.id
        self._cycle_active = False
        self._slot = 1
        self._last_action = None
        self._last_action_timestamp = None
        self._history.clear()
        self._recent_events.clear()

    @property
    def state(self) -> CycleState:
        return CycleState(
            phase=self._phase,
            cycle_active=self._cycle_active,
            current_slot=self._slot,
            last_action=self._last_action,
            last_action_timestamp=self._last_action_timestamp,
            action_history=tuple(self._history),
        )

    @property
    def label(self) -> str:
        return f"AI{self._slot}" if self._cycle_active else "ANALYZING"

    def recent_actions(self, count: int = 10) -> list[ActionRecord]:
        if count <= 0:
            return []
        return list(self._history)[-count:]

    def recent_events(self, count: int = 10) -> list[EnemyEvent]:
        if count <= 0:
            return []
        return list(self._recent_events)[-count:]

    def last_action_time(self, action_name: str) -> int | None:
        for record in reversed(self._history):
            if record.name == action_name:
                return record.timestamp_ms
        return None
