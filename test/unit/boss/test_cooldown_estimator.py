"""Unit tests for CooldownEstimator."""

import pytest

from bosscycle.boss.cooldown_estimator import CooldownConfig, CooldownEstimator
from bosscycle.boss.model import BossModel


@pytest.fixture(scope="module")
def model():
    return BossModel.load()


@pytest.fixture
def estimator(model):
    return CooldownEstimator(model)


def test_every_known_action_is_ready_initially(estimator, model):
    estimates = estimator.estimate(now=0)

    assert set(estimates) == set(model.known_actions())
    assert all(entry.ready_in_seconds == 0.0 for entry in estimates.values())
    assert all(entry.last_used_timestamp is None for entry in estimates.values())


@pytest.mark.parametrize(
    "elapsed_ms,expected",
    [
        (0, 30.0),
        (10_000, 20.0),
        (29_000, 1.0),
        (30_000, 0.0),
        (45_000, 0.0),
        (12_340, 17.7),
    ],
)
def test_remaining_decreases_linearly_and_clamps(estimator, elapsed_ms, expected):
    estimator.on_action("コバルトウェーブ", 1_000)

    entry = estimator.estimate(now=1_000 + elapsed_ms)["コバルトウェーブ"]

    assert entry.ready_in_seconds == pytest.approx(expected)
    assert entry.last_used_timestamp == 1_000


def test_action_without_cooldown_is_always_ready(estimator):
    estimator.on_action("通常攻撃", 1_000)

    entry = estimator.estimate(now=1_000)["通常攻撃"]

    assert entry.ready_in_seconds == 0.0
    assert entry.last_used_timestamp == 1_000


def test_latest_use_wins(estimator):
    estimator.on_action("ファントムボール", 0)
    estimator.on_action("ファントムボール", 15_000)

    assert estimator.last_used_time("ファントムボール") == 15_000
    assert estimator.estimate(now=20_000)["ファントムボール"].ready_in_seconds == 15.0


def test_unknown_action_is_recorded_but_not_estimated(estimator):
    estimator.on_action("謎の技", 0)

    assert estimator.last_used_time("謎の技") == 0
    assert "謎の技" not in estimator.estimate(now=0)


def test_history_is_bounded_across_actions(model):
    estimator = CooldownEstimator(model, CooldownConfig(max_tracked_actions=3))
    estimator.on_action("コバルトウェーブ", 0)
    for ts in (1, 2, 3):
        estimator.on_action("通常攻撃", ts)

    assert estimator.last_used_time("コバルトウェーブ") is None
    assert estimator.estimate(now=10)["コバルトウェーブ"].ready_in_seconds == 0.0


def test_shrinking_history_keeps_newest(estimator):
    for ts in range(5):
        estimator.on_action("通常攻撃", ts)
    estimator.on_action("ファントムボール", 100)

    estimator.update_config(max_tracked_actions=1)

    assert estimator.config.max_tracked_actions == 1
    assert estimator.last_used_time("通常攻撃") is None
    assert estimator.last_used_time("ファントムボール") == 100


def test_ready_and_next_ready_actions(estimator):
    estimator.on_action("コバルトウェーブ", 0)
    estimator.on_action("ファントムボール", 0)

    ready = estimator.ready_actions(now=10_000)

    assert "コバルトウェーブ" not in ready
    assert "ファントムボール" not in ready
    assert "通常攻撃" in ready
    assert estimator.next_ready_action(now=10_000) == ("ファントムボール", 10.0)


def test_next_ready_action_none_when_all_ready(estimator):
    assert estimator.next_ready_action(now=0) is None


def test_reset_clears_history(estimator):
    estimator.on_action("コバルトウェーブ", 0)

    estimator.reset()

    assert estimator.last_used_time("コバルトウェーブ") is None
    assert estimator.estimate(now=0)["コバルトウェーブ"].ready_in_seconds == 0.0


def test_update_config_rejects_unknown_options(estimator):
    with pytest.raises(TypeError):
        estimator.update_config(variance_seconds=1.0)

    assert estimator.config == CooldownConfig()
