"""Run one A* maze solve per grid size on a thread pool.

Each task owns its grid and search state. The only object the tasks share is
the aggregate stats handle, which every task updates once its solve finishes.
With ``UnsyncedStats`` the final counters may fall short of the per-task sums;
``RunReport`` keeps the exact per-task numbers so the gap can be measured.
"""
from __future__ import annotations

import logging
import threading
import time
from concurrent.futures import ThreadPoolExecutor
from dataclasses import asdict, dataclass, field
from typing import Callable, Dict, Iterable, List, Optional, Sequence, Tuple, Union

import numpy as np

from algorithms.aggregate_stats import StatsSnapshot, UnsyncedStats, make_stats
from algorithms.grid_astar import AStarGrid, OccupancyGrid, path_cost, random_grid

logger = logging.getLogger(__name__)

Size = Union[int, Tuple[int, int]]

DEFAULT_SIZES: Tuple[int, ...] = (100, 500, 1000)
DEFAULT_WORKERS = 4
COMPARE_WORKERS: Tuple[int, ...] = (1, 2, 4, 8)


def _as_dims(size: Size) -> Tuple[int, int]:
    if isinstance(size, (tuple, list)):
        rows, cols = size
    else:
        rows = cols = size
    return int(rows), int(cols)


@dataclass
class SolverConfig:
    """Configuration for one orchestrated run."""
    sizes: Sequence[Size] = DEFAULT_SIZES  # square side or (rows, cols)
    workers: int = DEFAULT_WORKERS
    obstacle_ratio: float = 0.2
    synchronized: bool = False  # guard the shared counters with a lock
    race_window: float = 0.0  # seconds slept between read and write of each counter
    seed: Optional[int] = None

    def __post_init__(self):
        if not self.sizes:
            raise ValueError("at least one grid size is required")
        dims = [_as_dims(s) for s in self.sizes]
        for rows, cols in dims:
            if rows <= 0 or cols <= 0:
                raise ValueError(f"grid dimensions must be positive, got {rows}x{cols}")
        self.sizes = dims
        if self.workers < 1:
            raise ValueError(f"workers must be >= 1, got {self.workers}")
        if not 0.0 <= self.obstacle_ratio <= 1.0:
            raise ValueError(f"obstacle_ratio must be within [0, 1], got {self.obstacle_ratio}")
        if self.race_window < 0:
            raise ValueError(f"race_window must be >= 0, got {self.race_window}")
        if self.seed is not None and (isinstance(self.seed, bool)
                                      or not isinstance(self.seed, int) or self.seed < 0):
            raise ValueError(f"seed must be a non-negative integer, got {self.seed!r}")


@dataclass
class TaskResult:
    index: int
    rows: int
    cols: int
    path_length: int
    path_cost: float
    expanded: int
    explore_seconds: float
    reconstruct_seconds: float
    worker: str
    path: List[Tuple[int, int]] = field(default_factory=list, repr=False)
    blocked: Optional[List[Tuple[int, int]]] = field(default=None, repr=False)

    def to_dict(self, include_grid: bool = False) -> Dict:
        data = asdict(self)
        if not include_grid:
            data.pop("path")
            data.pop("blocked")
        return data


@dataclass
class RunReport:
    config: SolverConfig
    results: List[TaskResult]
    stats: StatsSnapshot
    wall_seconds: float

    @property
    def expected_attempts(self) -> int:
        return len(self.results)

    @property
    def expected_successes(self) -> int:
        return sum(1 for r in self.results if r.path_length > 0)

    @property
    def expected_path_length(self) -> int:
        return sum(r.path_length for r in self.results)

    @property
    def lost_attempts(self) -> int:
        return self.expected_attempts - self.stats.attempt_count

    @property
    def lost_successes(self) -> int:
        return self.expected_successes - self.stats.success_count

    @property
    def lost_path_length(self) -> int:
        return self.expected_path_length - self.stats.total_path_length

    @property
    def consistent(self) -> bool:
        return not (self.lost_attempts or self.lost_successes or self.lost_path_length)

    def to_dict(self, include_grids: bool = False) -> Dict:
        return {
            "workers": self.config.workers,
            "synchronized": self.config.synchronized,
            "wall_seconds": self.wall_seconds,
            "tasks": [r.to_dict(include_grids) for r in self.results],
            "stats": self.stats.to_dict(),
            "expected": {
                "attempt_count": self.expected_attempts,
                "success_count": self.expected_successes,
                "total_path_length": self.expected_path_length,
            },
            "consistent": self.consistent,
        }


# ---------------------------------------------------------------------------
# Single task
# ---------------------------------------------------------------------------

def solve_maze(rows: int, cols: int, stats: UnsyncedStats,
               rng: Union[np.random.Generator, int, None] = None,
               obstacle_ratio: float = 0.2, index: int = 0,
               keep_grid: bool = False) -> TaskResult:
    """Generate a random grid, solve corner to corner and record the path length."""
    grid = random_grid(rows, cols, obstacle_ratio, rng)
    return solve_grid(grid, stats, index=index, keep_grid=keep_grid)


def solve_grid(grid: OccupancyGrid, stats: UnsyncedStats, index: int = 0,
               keep_grid: bool = False) -> TaskResult:
    rows, cols = grid.shape
    logger.info("Solving maze %d (%dx%d) ...", index + 1, rows, cols)
    search = AStarGrid(grid).solve((0, 0), (rows - 1, cols - 1))
    path_length = search.length

    logger.info("Maze %d: neighbor exploration time %.6f s", index + 1, search.explore_seconds)
    logger.info("Maze %d: path reconstruction time %.6f s", index + 1, search.reconstruct_seconds)
    logger.info("Maze %d: path length %d nodes", index + 1, path_length)

    stats.record(path_length)

    return TaskResult(
        index=index,
        rows=rows,
        cols=cols,
        path_length=path_length,
        path_cost=path_cost(search.path),
        expanded=search.expanded,
        explore_seconds=search.explore_seconds,
        reconstruct_seconds=search.reconstruct_seconds,
        worker=threading.current_thread().name,
        path=search.path if keep_grid else [],
        blocked=grid.blocked_cells() if keep_grid else None,
    )


# ---------------------------------------------------------------------------
# Orchestration
# ---------------------------------------------------------------------------

def run_all(config: SolverConfig, stats: Optional[UnsyncedStats] = None,
            on_result: Optional[Callable[[TaskResult], None]] = None,
            keep_grids: bool = False) -> RunReport:
    """Solve every configured grid concurrently and report the shared counters.

    Grids are seeded per task from ``config.seed`` so they do not depend on
    which worker picks a task up or when.
    """
    if stats is None:
        stats = make_stats(config.synchronized, config.race_window)
    seeds = np.random.SeedSequence(config.seed).spawn(len(config.sizes))

    def _task(index: int) -> TaskResult:
        rows, cols = config.sizes[index]
        res = solve_maze(rows, cols, stats, np.random.default_rng(seeds[index]),
                         config.obstacle_ratio, index=index, keep_grid=keep_grids)
        if on_result is not None:
            on_result(res)
        return res

    logger.info("Running %d mazes on %d workers (synchronized=%s)",
                len(config.sizes), config.workers, stats.synchronized)
    t0 = time.perf_counter()
    with ThreadPoolExecutor(max_workers=config.workers, thread_name_prefix="maze") as pool:
        futures = [pool.submit(_task, i) for i in range(len(config.sizes))]
        results = [f.result() for f in futures]
    wall_seconds = time.perf_counter() - t0

    report = RunReport(config=config, results=results, stats=stats.snapshot(),
                       wall_seconds=wall_seconds)
    if not report.consistent:
        logger.warning("Aggregate counters diverged: lost %d attempts, %d successes, %d path length",
                       report.lost_attempts, report.lost_successes, report.lost_path_length)
    return report


def compare_workers(config: SolverConfig,
                    worker_counts: Iterable[int] = COMPARE_WORKERS) -> List[RunReport]:
    """Repeat the run once per worker count, each with fresh counters."""
    reports = []
    for workers in worker_counts:
        cfg = SolverConfig(
            sizes=config.sizes,
            workers=workers,
            obstacle_ratio=config.obstacle_ratio,
            synchronized=config.synchronized,
            race_window=config.race_window,
            seed=config.seed,
        )
        reports.append(run_all(cfg))
    return reports
