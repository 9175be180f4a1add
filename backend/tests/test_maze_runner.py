import threading

import numpy as np
import pytest

from algorithms.aggregate_stats import LockedStats, UnsyncedStats
from algorithms.grid_astar import OccupancyGrid
from algorithms.maze_runner import SolverConfig, compare_workers, run_all, solve_grid, solve_maze


def test_config_normalises_sizes():
    config = SolverConfig(sizes=[10, (4, 6)])
    assert config.sizes == [(10, 10), (4, 6)]
    assert SolverConfig().sizes == [(100, 100), (500, 500), (1000, 1000)]
    assert SolverConfig().workers == 4


@pytest.mark.parametrize("kwargs", [
    {"sizes": []},
    {"sizes": [0]},
    {"sizes": [(5, -2)]},
    {"workers": 0},
    {"obstacle_ratio": 1.2},
    {"race_window": -0.1},
    {"seed": -1},
    {"seed": True},
    {"seed": 2.5},
])
def test_config_rejects_invalid_values(kwargs):
    with pytest.raises(ValueError):
        SolverConfig(**kwargs)


def test_solve_maze_records_path_length():
    stats = UnsyncedStats()
    res = solve_maze(6, 9, stats, rng=0, obstacle_ratio=0.0, index=2)
    assert res.index == 2
    assert (res.rows, res.cols) == (6, 9)
    assert res.path_length == 9
    assert res.worker == threading.current_thread().name
    assert res.path == [] and res.blocked is None
    assert stats.snapshot().to_dict() == {
        "attempt_count": 1, "success_count": 1, "total_path_length": 9,
    }


def test_unreachable_goal_counts_attempt_only():
    stats = UnsyncedStats()
    res = solve_grid(OccupancyGrid(np.ones((5, 5), dtype=bool)), stats)
    assert res.path_length == 0
    assert stats.snapshot().to_dict() == {
        "attempt_count": 1, "success_count": 0, "total_path_length": 0,
    }


def test_run_all_synchronized_report():
    seen = []
    config = SolverConfig(sizes=[8, 12, (5, 20), 16], workers=2, synchronized=True, seed=5)
    report = run_all(config, on_result=seen.append)

    assert [r.index for r in report.results] == [0, 1, 2, 3]
    assert [(r.rows, r.cols) for r in report.results] == [(8, 8), (12, 12), (5, 20), (16, 16)]
    assert sorted(r.index for r in seen) == [0, 1, 2, 3]
    assert all(r.worker.startswith("maze") for r in report.results)
    assert report.consistent
    assert report.stats.attempt_count == 4
    assert report.stats.total_path_length == sum(r.path_length for r in report.results)
    assert report.lost_attempts == report.lost_successes == report.lost_path_length == 0
    assert report.wall_seconds > 0


def test_run_all_is_seeded_per_task():
    sizes = [20, 25, 30, 35, 40]
    a = run_all(SolverConfig(sizes=sizes, workers=1, seed=42))
    b = run_all(SolverConfig(sizes=sizes, workers=4, seed=42))
    assert [r.path_length for r in a.results] == [r.path_length for r in b.results]
    assert [r.expanded for r in a.results] == [r.expanded for r in b.results]


def test_run_all_keeps_grids_on_request():
    report = run_all(SolverConfig(sizes=[10], workers=1, obstacle_ratio=0.0, seed=1), keep_grids=True)
    task = report.results[0]
    assert task.path[0] == (0, 0) and task.path[-1] == (9, 9)
    assert task.blocked == []
    data = report.to_dict(include_grids=True)
    assert data["tasks"][0]["path"] == task.path
    assert "path" not in report.to_dict()["tasks"][0]


def test_unsynchronized_run_loses_updates():
    n = 8
    config = SolverConfig(sizes=[5] * n, workers=n, obstacle_ratio=0.0, race_window=0.05)
    report = run_all(config)
    assert report.expected_attempts == n
    assert report.expected_path_length == 5 * n
    assert report.stats.attempt_count < n
    assert report.lost_attempts > 0
    assert not report.consistent
    assert report.to_dict()["consistent"] is False


def test_synchronized_run_is_exact_under_same_stress():
    n = 8
    config = SolverConfig(sizes=[5] * n, workers=n, obstacle_ratio=0.0, race_window=0.01,
                          synchronized=True)
    report = run_all(config)
    assert report.stats.attempt_count == n
    assert report.stats.total_path_length == 5 * n
    assert report.stats.success_count == n
    assert report.consistent


def test_run_all_uses_given_stats_handle():
    stats = LockedStats()
    run_all(SolverConfig(sizes=[6, 6], workers=2, seed=3), stats=stats)
    run_all(SolverConfig(sizes=[6], workers=1, seed=3), stats=stats)
    assert stats.snapshot().attempt_count == 3


def test_compare_workers_fresh_stats_per_run():
    reports = compare_workers(SolverConfig(sizes=[10, 12], synchronized=True, seed=9), (1, 2, 4))
    assert [r.config.workers for r in reports] == [1, 2, 4]
    for r in reports:
        assert r.stats.attempt_count == 2
        assert r.consistent
    assert len({tuple(t.path_length for t in r.results) for r in reports}) == 1
