"""Static boss reference data.

The model is loaded once from a versioned JSON document and is read-only
afterwards. Phases partition HP 0-100 into contiguous (min, max] bands,
each with its own AI slot count and action roster.
"""

import json
from importlib import resources
from pathlib import Path

from loguru import logger

from bosscycle.exceptions import BossDataError
from bosscycle.models import ActionDefinition, PhaseDefinition, SpecialFlag

DEFAULT_DATA_FILE = "delmeze_iv.json"


def _load_default_document() -> dict:
    text = resources.files("bosscycle.data").joinpath(DEFAULT_DATA_FILE).read_text(
        encoding="utf-8"
    )
    return json.loads(text)


class BossModel:
    """Read-only access to one boss's phases, actions and trigger phrases."""

    def __init__(
        self,
        boss_id: str,
        boss_name: str,
        version: str,
        phases: list[PhaseDefinition],
        reset_phrases: list[str] | None = None,
        special_mechanics: dict | None = None,
    ):
        self._boss_id = boss_id
        self._boss_name = boss_name
        self._version = version
        self._phases = tuple(sorted(phases, key=lambda p: p.hp_max, reverse=True))
        self._reset_phrases = tuple(reset_phrases or ())
        self._special_mechanics = dict(special_mechanics or {})
        self._validate()

        self._actions_by_name: dict[str, ActionDefinition] = {}
        for phase in self._phases:
            for action in phase.actions:
                self._actions_by_name.setdefault(action.name, action)

    @classmethod
    def load(cls, path: Path | str | None = None) -> "BossModel":
        """Load a model from a JSON file, or the bundled Delmeze IV data.

        Raises:
            BossDataError: If the file is unreadable or the document is invalid
        """
        try:
            if path is None:
                document = _load_default_document()
            else:
                document = json.loads(Path(path).read_text(encoding="utf-8"))
        except (OSError, json.JSONDecodeError) as e:
            raise BossDataError(f"Could not read boss data {path or DEFAULT_DATA_FILE}: {e}") from e

        model = cls.from_dict(document)
        logger.debug(
            f"Loaded boss model {model.boss_id} v{model.version} "
            f"with {len(model.phases)} phases"
        )
        return model

    @classmethod
    def from_dict(cls, document: dict) -> "BossModel":
        if not isinstance(document, dict):
            raise BossDataError("Boss data must be a JSON object")

        if "phases" in document:
            raw_phases = document["phases"]
        elif "modes" in document:
            raw_phases = document["modes"]
        else:
            raise BossDataError("Boss data has neither 'phases' nor 'modes'")

        try:
            phases = [_parse_phase(raw) for raw in raw_phases]
            return cls(
                boss_id=str(document["boss_id"]),
                boss_name=str(document.get("boss_name", document["boss_id"])),
                version=str(document.get("version", "0")),
                phases=phases,
                reset_phrases=list(document.get("chat_triggers", {}).get("reset", [])),
                special_mechanics=document.get("special_mechanics", {}),
            )
        except (KeyError, TypeError, ValueError) as e:
            raise BossDataError(f"Invalid boss data: {e!r}") from e

    def _validate(self) -> None:
        if not self._phases:
            raise BossDataError("Boss data defines no phases")

        if self._phases[0].hp_max != 100:
            raise BossDataError(
                f"Highest phase must end at 100% HP, got {self._phases[0].hp_max}"
            )
        if self._phases[-1].hp_min != 0:
            raise BossDataError(
                f"Lowest phase must start at 0% HP, got {self._phases[-1].hp_min}"
            )

        for upper, lower in zip(self._phases, self._phases[1:]):
            if upper.hp_min != lower.hp_max:
                raise BossDataError(
                    f"Phases {lower.id} and {upper.id} leave a gap or overlap "
                    f"at {lower.hp_max}/{upper.hp_min}"
                )

        for phase in self._phases:
            if phase.ai_slot_count < 1:
                raise BossDataError(f"Phase {phase.id} has no AI slots")
            for action in phase.actions:
                if not 1 <= action.ai_slot <= phase.ai_slot_count:
                    raise BossDataError(
                        f"Action {action.name} in {phase.id} uses slot {action.ai_slot} "
                        f"outside 1..{phase.ai_slot_count}"
                    )
                if action.cooldown_seconds < 0:
                    raise BossDataError(f"Action {action.name} has a negative cooldown")

    @property
    def boss_id(self) -> str:
        return self._boss_id

    @property
    def boss_name(self) -> str:
        return self._boss_name

    @property
    def version(self) -> str:
        return self._version

    @property
    def phases(self) -> tuple[PhaseDefinition, ...]:
        """Phases ordered from full HP down."""
        return self._phases

    @property
    def first_phase(self) -> PhaseDefinition:
        return self._phases[0]

    @property
    def lowest_phase(self) -> PhaseDefinition:
        return self._phases[-1]

    def phase_for_hp(self, hp_percent: float) -> PhaseDefinition:
        if hp_percent <= 0:
            return self.lowest_phase
        for phase in self._phases:
            if phase.contains(hp_percent):
                return phase
        # above 100 only
        return self.first_phase

    def phase_by_id(self, phase_id: str) -> PhaseDefinition | None:
        for phase in self._phases:
            if phase.id == phase_id:
                return phase
        return None

    def actions_for_phase(self, phase_id: str) -> tuple[ActionDefinition, ...]:
        phase = self.phase_by_id(phase_id)
        return phase.actions if phase else ()

    def actions_for_slot(self, phase_id: str, slot: int) -> tuple[ActionDefinition, ...]:
        return tuple(a for a in self.actions_for_phase(phase_id) if a.ai_slot == slot)

    def find_action(self, name: str) -> ActionDefinition | None:
        return self._actions_by_name.get(name)

    def is_special_action(self, name: str) -> bool:
        action = self.find_action(name)
        return action is not None and action.special is not None

    def is_no_turn_consume(self, name: str) -> bool:
        action = self.find_action(name)
        return action is not None and action.special == SpecialFlag.NO_TURN_CONSUME

    def special_advance_amount(self, name: str) -> int:
        action = self.find_action(name)
        if action is not None and action.special == SpecialFlag.AI_ADVANCE_2:
            return 2
        return 1

    def reset_trigger_phrases(self) -> list[str]:
        return list(self._reset_phrases)

    def known_actions(self) -> list[str]:
        """Every action name across all phases, in first-seen order."""
        return list(self._actions_by_name)

    def action_aliases(self) -> dict[str, list[str]]:
        return {
            name: list(action.aliases)
            for name, action in self._actions_by_name.items()
            if action.aliases
        }

    def special_mechanics(self) -> dict:
        return json.loads(json.dumps(self._special_mechanics))


def _parse_special(value) -> SpecialFlag | None:
    if value is None:
        return None
    try:
        return SpecialFlag(value)
    except ValueError as e:
        raise BossDataError(f"Unknown special flag {value!r}") from e


def _parse_action(raw: dict) -> ActionDefinition:
    return ActionDefinition(
        name=raw["name"],
        ai_slot=int(raw["ai_slot"]),
        cooldown_seconds=float(raw.get("ct_value", raw.get("cooldown_seconds", 0))),
        damage=int(raw.get("damage", 0)),
        damage_type=raw.get("damage_type", "physical"),
        special=_parse_special(raw.get("special")),
        aliases=tuple(raw.get("aliases", ())),
        note=raw.get("note"),
    )


def _parse_phase(raw: dict) -> PhaseDefinition:
    # Legacy documents call phases "modes" and the slot count "actions_per_cycle".
    phase_id = raw.get("phase_id") or raw["mode_id"]
    slot_count = raw.get("ai_count", raw.get("actions_per_cycle"))
    if slot_count is None:
        raise BossDataError(f"Phase {phase_id} has no AI slot count")

    return PhaseDefinition(
        id=phase_id,
        name=raw.get("phase_name", raw.get("mode_name", "")),
        hp_min=float(raw["hp_threshold_min"]),
        hp_max=float(raw["hp_threshold_max"]),
        ai_slot_count=int(slot_count),
        actions=tuple(_parse_action(action) for action in raw.get("actions", [])),
        description=raw.get("description", ""),
    )
