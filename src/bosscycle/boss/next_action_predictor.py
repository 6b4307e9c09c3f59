"""Next action prediction from the cycle state, cooldowns and HP."""

from dataclasses import dataclass, replace

from bosscycle.boss.model import BossModel
from bosscycle.models import CooldownEntry, CycleState, PredictionItem, Severity

BASELINE_ACTION = "通常攻撃"
ANALYZING_MOVE = "解析中..."

SEVERITY_MAP = {
    "通常攻撃": Severity.LOW,
    "ターコイズブラスト": Severity.MEDIUM,
    "ファントムボール": Severity.MEDIUM,
    "スタンバースト": Severity.MEDIUM,
    "コールサファイア": Severity.HIGH,
    "スクランブルサファイア": Severity.HIGH,
    "分散する災禍": Severity.HIGH,
    "ターミネイトレイ": Severity.HIGH,
    "ジャッジメントブルー": Severity.HIGH,
    "ダブルジャッジメント": Severity.HIGH,
    "ファイナルレイ": Severity.HIGH,
    "コバルトウェーブ": Severity.HIGH,
    "ブリリアントサファイア": Severity.HIGH,
    "サファイアボム起爆": Severity.HIGH,
    "凶禍の分散": Severity.HIGH,
}

# (action, hp at or below, bonus, reason)
SITUATIONAL_BONUSES = (
    ("ブリリアントサファイア", 25, 0.3, "HP25%以下"),
    ("ジャッジメントブルー", 50, 0.2, "HP50%以下"),
)


@dataclass(frozen=True)
class PredictorConfig:
    max_predictions: int = 5
    ai_match_bonus: float = 0.4
    cooldown_ready_bonus: float = 0.3
    cooldown_soon_seconds: float = 5.0
    cooldown_penalty: float = 0.2
    base_probability: float = 0.3
    baseline_floor: float = 0.4


class NextActionPredictor:
    """Ranks the current phase's actions by how likely they are next.

    Each action gets a raw score from additive factors (AI slot match,
    cooldown state, HP thresholds), clamped to [0, 1]. Scores are then
    normalized over every candidate so they sum to 1, and the top
    max_predictions are returned.
    """

    def __init__(self, model: BossModel, config: PredictorConfig | None = None):
        self._model = model
        self._config = config or PredictorConfig()

    @property
    def config(self) -> PredictorConfig:
        return self._config

    def update_config(self, **kwargs) -> None:
        self._config = replace(self._config, **kwargs)

    def predict(
        self,
        hp_percent: float,
        cycle_state: CycleState,
        cooldowns: dict[str, CooldownEntry],
    ) -> list[PredictionItem]:
        phase = self._model.phase_by_id(cycle_state.phase)
        if phase is None:
            return [PredictionItem(ANALYZING_MOVE, 1.0, Severity.LOW, "フェーズ不明")]

        candidates = [
            self._score(action.name, action.ai_slot, hp_percent, cycle_state, cooldowns)
            for action in phase.actions
        ]
        # sorted() is stable, ties keep roster order
        candidates = sorted(candidates, key=lambda item: item[1], reverse=True)

        total = sum(score for _, score, _ in candidates)
        predictions = [
            PredictionItem(
                move=name,
                probability=score / total if total > 0 else 0.0,
                severity=SEVERITY_MAP.get(name, Severity.MEDIUM),
                reason=reason,
            )
            for name, score, reason in candidates
        ]
        return predictions[: self._config.max_predictions]

    def _score(
        self,
        name: str,
        ai_slot: int,
        hp_percent: float,
        cycle_state: CycleState,
        cooldowns: dict[str, CooldownEntry],
    ) -> tuple[str, float, str]:
        config = self._config
        score = config.base_probability
        reasons = []

        if cycle_state.cycle_active and ai_slot == cycle_state.current_slot:
            score += config.ai_match_bonus
            reasons.append(f"AI{cycle_state.current_slot}一致")

        entry = cooldowns.get(name)
        if entry is not None:
            ready_in = entry.ready_in_seconds
            if ready_in <= 0:
                score += config.cooldown_ready_bonus
                reasons.append("CT完了")
            elif ready_in <= config.cooldown_soon_seconds:
                score += config.cooldown_ready_bonus * 0.5
                reasons.append(f"CT残{ready_in:.1f}s")
            else:
                score -= config.cooldown_penalty
                reasons.append(f"CT中({ready_in:.0f}s)")

        for action_name, hp_limit, bonus, reason in SITUATIONAL_BONUSES:
            if name == action_name and hp_percent <= hp_limit:
                score += bonus
                reasons.append(reason)

        score = min(1.0, max(0.0, score))
        if name == BASELINE_ACTION:
            score = max(score, config.baseline_floor)

        return name, score, ", ".join(reasons) if reasons else "ベース確率"

    def most_likely(
        self,
        hp_percent: float,
        cycle_state: CycleState,
        cooldowns: dict[str, CooldownEntry],
    ) -> PredictionItem | None:
        predictions = self.predict(hp_percent, cycle_state, cooldowns)
        return predictions[0] if predictions else None

    def high_severity(
        self,
        hp_percent: float,
        cycle_state: CycleState,
        cooldowns: dict[str, CooldownEntry],
    ) -> list[PredictionItem]:
        predictions = self.predict(hp_percent, cycle_state, cooldowns)
        return [p for p in predictions if p.severity == Severity.HIGH]
