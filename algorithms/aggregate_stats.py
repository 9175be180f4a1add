"""Process-wide solve counters shared by every maze task.

Two interchangeable strategies sit behind the same ``record`` call:

* ``UnsyncedStats`` performs three plain read-modify-write updates with no lock.
  Concurrent tasks can interleave between the read and the write and lose
  updates. This is the behaviour under study, not something to fix here.
* ``LockedStats`` performs the exact same sequence under one ``threading.Lock``
  so the three counters always agree with each other.

``race_window`` (seconds) sleeps between each read and its write. It widens the
interleaving window so lost updates show up reliably in stress runs.
"""
from __future__ import annotations

import time
from dataclasses import asdict, dataclass
from threading import Lock
from typing import Dict


@dataclass(frozen=True)
class StatsSnapshot:
    attempt_count: int
    success_count: int
    total_path_length: int

    def to_dict(self) -> Dict[str, int]:
        return asdict(self)


class UnsyncedStats:
    synchronized = False

    def __init__(self, race_window: float = 0.0):
        if race_window < 0:
            raise ValueError(f"race_window must be >= 0, got {race_window}")
        self.race_window = race_window
        self.attempt_count = 0
        self.success_count = 0
        self.total_path_length = 0

    def _widen(self):
        if self.race_window:
            time.sleep(self.race_window)

    def record(self, path_length: int):
        """Fold one task's path length into the counters (no locking)."""
        attempts = self.attempt_count
        self._widen()
        self.attempt_count = attempts + 1

        total = self.total_path_length
        self._widen()
        self.total_path_length = total + path_length

        if path_length > 0:
            successes = self.success_count
            self._widen()
            self.success_count = successes + 1

    def snapshot(self) -> StatsSnapshot:
        return StatsSnapshot(self.attempt_count, self.success_count, self.total_path_length)

    def reset(self):
        self.attempt_count = 0
        self.success_count = 0
        self.total_path_length = 0

    def __repr__(self) -> str:
        s = self.snapshot()
        return (f"{type(self).__name__}(attempts={s.attempt_count}, "
                f"successes={s.success_count}, total_path_length={s.total_path_length})")


class LockedStats(UnsyncedStats):
    synchronized = True

    def __init__(self, race_window: float = 0.0):
        super().__init__(race_window)
        self._lock = Lock()

    def record(self, path_length: int):
        with self._lock:
            super().record(path_length)

    def snapshot(self) -> StatsSnapshot:
        with self._lock:
            return super().snapshot()

    def reset(self):
        with self._lock:
            super().reset()


def make_stats(synchronized: bool = False, race_window: float = 0.0) -> UnsyncedStats:
    cls = LockedStats if synchronized else UnsyncedStats
    return cls(race_window=race_window)
