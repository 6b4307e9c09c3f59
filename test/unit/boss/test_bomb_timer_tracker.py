"""Unit tests for BombTimerTracker."""

import pytest

from bosscycle.boss.bomb_timer_tracker import (
    FUSE_MS,
    PURGE_GRACE_MS,
    BombTimerTracker,
)
from bosscycle.models import BombKind, EnemyEvent, EventKind


@pytest.fixture
def tracker():
    return BombTimerTracker()


def action(name: str, ts: int) -> EnemyEvent:
    return EnemyEvent(EventKind.ACTION, ts, name=name)


def test_call_sapphire_places_single_bomb(tracker):
    bombs = tracker.process_tick(1_000, 60, [action("コールサファイア", 1_000)])

    assert len(bombs) == 1
    bomb = bombs[0]
    assert bomb.kind == BombKind.CALL
    assert bomb.spawned_at == 1_000
    assert bomb.explodes_at == 1_000 + FUSE_MS
    assert bomb.remaining_ms(11_000) == FUSE_MS - 10_000
    assert tracker.scramble_active is False


def test_bomb_is_kept_through_grace_then_purged(tracker):
    tracker.process_tick(0, 60, [action("コールサファイア", 0)])

    assert len(tracker.process_tick(FUSE_MS, 60)) == 1
    assert len(tracker.process_tick(FUSE_MS + PURGE_GRACE_MS, 60)) == 1
    assert tracker.process_tick(FUSE_MS + PURGE_GRACE_MS + 1, 60) == []


def test_remaining_never_negative(tracker):
    bomb = tracker.process_tick(0, 60, [action("コールサファイア", 0)])[0]

    assert bomb.remaining_ms(FUSE_MS + 1_000) == 0


@pytest.mark.parametrize(
    "hp_percent,kind,interval",
    [
        (60, BombKind.SCRAMBLE_A, 15_000),
        (26, BombKind.SCRAMBLE_A, 15_000),
        (25, BombKind.SCRAMBLE_B, 12_500),
        (10, BombKind.SCRAMBLE_B, 12_500),
    ],
)
def test_scramble_interval_depends_on_hp(tracker, hp_percent, kind, interval):
    bombs = tracker.process_tick(0, hp_percent, [action("スクランブルサファイア", 0)])

    assert [b.kind for b in bombs] == [kind]
    assert tracker.scramble_active is True
    assert tracker.next_scramble_at == interval

    bombs = tracker.process_tick(interval, hp_percent)

    assert [b.spawned_at for b in bombs] == [0, interval]
    assert tracker.next_scramble_at == 2 * interval


def test_scramble_catches_up_missed_spawns(tracker):
    tracker.process_tick(0, 60, [action("スクランブルサファイア", 0)])

    bombs = tracker.process_tick(46_000, 60)

    assert [b.spawned_at for b in bombs] == [0, 15_000, 30_000, 45_000]
    assert tracker.next_scramble_at == 60_000


def test_scramble_uses_event_timestamp(tracker):
    bombs = tracker.process_tick(5_000, 60, [action("スクランブルサファイア", 2_000)])

    assert bombs[0].spawned_at == 2_000
    assert tracker.next_scramble_at == 17_000


def test_scramble_bombs_expire_while_loop_continues(tracker):
    tracker.process_tick(0, 60, [action("スクランブルサファイア", 0)])

    bombs = tracker.process_tick(FUSE_MS + PURGE_GRACE_MS, 60)

    assert bombs[0].spawned_at == 15_000
    assert all(b.explodes_at > FUSE_MS for b in bombs)


def test_bombs_sorted_by_spawn_time(tracker):
    tracker.process_tick(0, 60, [action("スクランブルサファイア", 0)])
    bombs = tracker.process_tick(20_000, 60, [action("コールサファイア", 10_000)])

    assert [b.spawned_at for b in bombs] == [0, 10_000, 15_000]


def test_ids_are_deterministic_and_unique(tracker):
    bombs = tracker.process_tick(
        0, 60, [action("コールサファイア", 0), action("コールサファイア", 0)]
    )

    ids = [b.id for b in bombs]
    assert ids == ["CALL_0_0", "CALL_0_1"]
    assert BombTimerTracker().process_tick(0, 60, [action("コールサファイア", 0)])[0].id == "CALL_0_0"


def test_other_events_are_ignored(tracker):
    bombs = tracker.process_tick(
        0,
        60,
        [
            action("通常攻撃", 0),
            EnemyEvent(EventKind.SUMMON, 0, raw="サファイアを召喚"),
            EnemyEvent(EventKind.ACTION, 0),
        ],
    )

    assert bombs == []
    assert tracker.scramble_active is False


def test_reset_stops_scramble_and_clears_bombs(tracker):
    tracker.process_tick(0, 60, [action("スクランブルサファイア", 0)])

    tracker.reset()

    assert tracker.bombs() == []
    assert tracker.scramble_active is False
    assert tracker.next_scramble_at is None
    assert tracker.process_tick(60_000, 60) == []
