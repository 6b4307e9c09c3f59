"""Shared value types for the analysis pipeline.

Every type here is an immutable snapshot: analyzers produce them, the
pipeline aggregates them into one AnalysisTickResult per tick, and consumers
only ever read them. Timestamps are integer milliseconds.
"""

from dataclasses import dataclass, field, asdict
from enum import Enum


class HpColor(str, Enum):
    """Color of the boss HP bar; the game encodes coarse HP bands in it."""

    GREEN = "green"
    YELLOW = "yellow"
    RED = "red"


class EventKind(str, Enum):
    """Kind of event parsed from a combat log line."""

    ACTION = "ACTION"
    MODE = "MODE"
    AI_RESET = "AI_RESET"
    SUMMON = "SUMMON"
    UNKNOWN = "UNKNOWN"


class SpecialFlag(str, Enum):
    """Per-action annotation marking non-default AI slot behavior."""

    AI_ADVANCE_2 = "ai_advance_2"
    NO_TURN_CONSUME = "no_turn_consume"


class BombKind(str, Enum):
    """Origin of a sapphire bomb.

    SCRAMBLE_A is the 15 s scramble loop (HP above 25%), SCRAMBLE_B the
    12.5 s loop (HP at or below 25%).
    """

    CALL = "CALL"
    SCRAMBLE_A = "SCRAMBLE_A"
    SCRAMBLE_B = "SCRAMBLE_B"


class Severity(str, Enum):
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"


@dataclass(frozen=True)
class HpResult:
    """HP bar reading for one tick."""

    percent: float  # 0-100
    color: HpColor
    confidence: float  # 0-1

    @classmethod
    def unknown(cls) -> "HpResult":
        """Zero-confidence reading used when no frame could be analyzed."""
        return cls(percent=0.0, color=HpColor.GREEN, confidence=0.0)


@dataclass(frozen=True)
class IconResult:
    name: str
    confidence: float


@dataclass(frozen=True)
class OcrLine:
    text: str
    confidence: float
    timestamp_ms: int


@dataclass(frozen=True)
class EnemyEvent:
    kind: EventKind
    timestamp_ms: int
    name: str | None = None
    raw: str | None = None


@dataclass(frozen=True)
class ActionDefinition:
    """Static reference data for one boss action within a phase."""

    name: str
    ai_slot: int
    cooldown_seconds: float
    damage: int = 0
    damage_type: str = "physical"
    special: SpecialFlag | None = None
    aliases: tuple[str, ...] = ()
    note: str | None = None


@dataclass(frozen=True)
class PhaseDefinition:
    """HP band (hp_min exclusive, hp_max inclusive) with its own action roster."""

    id: str
    name: str
    hp_min: float
    hp_max: float
    ai_slot_count: int
    actions: tuple[ActionDefinition, ...]
    description: str = ""

    def contains(self, hp_percent: float) -> bool:
        return self.hp_min < hp_percent <= self.hp_max


@dataclass(frozen=True)
class ActionRecord:
    name: str
    timestamp_ms: int


@dataclass(frozen=True)
class CycleState:
    """Immutable snapshot of the boss AI cycle tracker."""

    phase: str
    cycle_active: bool
    current_slot: int
    last_action: str | None = None
    last_action_timestamp: int | None = None
    action_history: tuple[ActionRecord, ...] = ()

    @property
    def label(self) -> str:
        return f"AI{self.current_slot}" if self.cycle_active else "ANALYZING"


@dataclass(frozen=True)
class CooldownEntry:
    ready_in_seconds: float
    last_used_timestamp: int | None = None


@dataclass(frozen=True)
class BombTimerEntry:
    id: str
    kind: BombKind
    spawned_at: int
    explodes_at: int

    def remaining_ms(self, now: int) -> int:
        return max(0, self.explodes_at - now)


@dataclass(frozen=True)
class PredictionItem:
    move: str
    probability: float
    severity: Severity
    reason: str


@dataclass(frozen=True)
class FrameInfo:
    width: int
    height: int
    timestamp_ms: int


@dataclass(frozen=True)
class AnalysisTickResult:
    """Aggregate snapshot produced by one pipeline tick."""

    timestamp: int
    hp: HpResult
    cycle_state: CycleState
    cooldowns: dict[str, CooldownEntry]
    predictions: tuple[PredictionItem, ...]
    buffs: tuple[IconResult, ...] = ()
    debuffs: tuple[IconResult, ...] = ()
    ocr_lines: tuple[OcrLine, ...] = ()
    events: tuple[EnemyEvent, ...] = ()
    bombs: tuple[BombTimerEntry, ...] = ()
    frame_captured: bool = True
    label: str = field(default="")

    def __post_init__(self):
        if not self.label:
            object.__setattr__(self, "label", self.cycle_state.label)

    def to_dict(self) -> dict:
        """Convert to plain JSON-serializable structures."""
        data = asdict(self)
        return _enum_values(data)


def _enum_values(value):
    if isinstance(value, Enum):
        return value.value
    if isinstance(value, dict):
        return {key: _enum_values(item) for key, item in value.items()}
    if isinstance(value, (list, tuple)):
        return [_enum_values(item) for item in value]
    return value
