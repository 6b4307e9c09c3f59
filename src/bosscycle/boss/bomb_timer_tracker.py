"""Sapphire bomb fuse tracking.

Call Sapphire places one bomb. Scramble Sapphire places one bomb and then
keeps placing more on a fixed interval until the tracker is reset. Every
bomb explodes FUSE_MS after it was placed.
"""

import itertools

from loguru import logger

from bosscycle.models import BombKind, BombTimerEntry, EnemyEvent, EventKind

FUSE_MS = 110_000
PURGE_GRACE_MS = 3_000
LOW_HP_THRESHOLD = 25
SCRAMBLE_INTERVAL_MS = {
    BombKind.SCRAMBLE_A: 15_000,
    BombKind.SCRAMBLE_B: 12_500,
}

CALL_SAPPHIRE = "コールサファイア"
SCRAMBLE_SAPPHIRE = "スクランブルサファイア"


class BombTimerTracker:
    def __init__(self):
        self._bombs: list[BombTimerEntry] = []
        self._sequence = itertools.count()
        self._scramble_kind: BombKind | None = None
        self._next_scramble_at: int | None = None

    @property
    def scramble_active(self) -> bool:
        return self._scramble_kind is not None

    @property
    def next_scramble_at(self) -> int | None:
        return self._next_scramble_at

    def process_tick(
        self, now: int, hp_percent: float, events: list[EnemyEvent] | tuple = ()
    ) -> list[BombTimerEntry]:
        """Apply this tick's actions, run the scramble loop and purge old bombs.

        Args:
            now: Tick timestamp in milliseconds
            hp_percent: Current boss HP, selects the scramble interval
            events: Parsed events; only named ACTION events are considered

        Returns:
            Live bombs sorted by spawn time
        """
        for event in events:
            if event.kind != EventKind.ACTION or not event.name:
                continue

            timestamp = event.timestamp_ms
            if CALL_SAPPHIRE in event.name:
                self._spawn(BombKind.CALL, timestamp)

            if SCRAMBLE_SAPPHIRE in event.name:
                kind = (
                    BombKind.SCRAMBLE_B
                    if hp_percent <= LOW_HP_THRESHOLD
                    else BombKind.SCRAMBLE_A
                )
                self._scramble_kind = kind
                self._next_scramble_at = timestamp + SCRAMBLE_INTERVAL_MS[kind]
                logger.debug(
                    f"Scramble loop started ({kind.value}, every "
                    f"{SCRAMBLE_INTERVAL_MS[kind] / 1000}s)"
                )
                self._spawn(kind, timestamp)

        if self._scramble_kind is not None:
            interval = SCRAMBLE_INTERVAL_MS[self._scramble_kind]
            while now >= self._next_scramble_at:
                self._spawn(self._scramble_kind, self._next_scramble_at)
                self._next_scramble_at += interval

        before = len(self._bombs)
        self._bombs = [b for b in self._bombs if b.explodes_at >= now - PURGE_GRACE_MS]
        if len(self._bombs) != before:
            logger.debug(f"Purged {before - len(self._bombs)} exploded bomb(s)")

        return self.bombs()

    def _spawn(self, kind: BombKind, spawned_at: int) -> None:
        bomb = BombTimerEntry(
            id=f"{kind.value}_{spawned_at}_{next(self._sequence)}",
            kind=kind,
            spawned_at=spawned_at,
            explodes_at=spawned_at + FUSE_MS,
        )
        self._bombs.append(bomb)
        logger.debug(f"Bomb {bomb.id} spawned, explodes at {bomb.explodes_at}")

    def bombs(self) -> list[BombTimerEntry]:
        return sorted(self._bombs, key=lambda b: b.spawned_at)

    def reset(self) -> None:
        self._bombs = []
        self._scramble_kind = None
        self._next_scramble_at = None
