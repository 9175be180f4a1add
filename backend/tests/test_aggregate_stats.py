import threading

import pytest

from algorithms.aggregate_stats import LockedStats, StatsSnapshot, UnsyncedStats, make_stats


def hammer(stats, lengths):
    """Call stats.record from one thread per length, all released at once."""
    barrier = threading.Barrier(len(lengths))

    def worker(n):
        barrier.wait()
        stats.record(n)

    threads = [threading.Thread(target=worker, args=(n,)) for n in lengths]
    for t in threads:
        t.start()
    for t in threads:
        t.join()
    return stats.snapshot()


@pytest.mark.parametrize("cls", [UnsyncedStats, LockedStats])
def test_sequential_records_are_exact(cls):
    stats = cls()
    stats.record(5)
    stats.record(0)
    stats.record(12)
    assert stats.snapshot() == StatsSnapshot(attempt_count=3, success_count=2, total_path_length=17)
    assert stats.snapshot().to_dict() == {
        "attempt_count": 3, "success_count": 2, "total_path_length": 17,
    }
    stats.reset()
    assert stats.snapshot() == StatsSnapshot(0, 0, 0)


def test_make_stats_selects_strategy():
    assert type(make_stats()) is UnsyncedStats
    assert type(make_stats(synchronized=True)) is LockedStats
    assert make_stats(race_window=0.25).race_window == 0.25
    assert make_stats(True).synchronized and not make_stats(False).synchronized


def test_negative_race_window_rejected():
    with pytest.raises(ValueError):
        UnsyncedStats(race_window=-1)


def test_unsynced_stats_lose_updates_under_contention():
    lengths = [3, 7, 0, 9, 4, 4, 1, 6]
    snap = hammer(UnsyncedStats(race_window=0.05), lengths)
    assert snap.attempt_count < len(lengths)
    assert snap.total_path_length < sum(lengths)


def test_locked_stats_stay_exact_under_contention():
    lengths = [3, 7, 0, 9, 4, 4, 1, 6]
    snap = hammer(LockedStats(race_window=0.01), lengths)
    assert snap.attempt_count == len(lengths)
    assert snap.total_path_length == sum(lengths)
    assert snap.success_count == sum(1 for n in lengths if n > 0)
