"""Solve a batch of random mazes in parallel and print the shared counters.

Usage:
    python run_solver.py                      # 100, 500, 1000 on 4 workers
    python run_solver.py --workers 8 --race-window 0.01
    python run_solver.py --synchronized
    python run_solver.py --compare            # 1, 2, 4 and 8 workers

The counters are updated without a lock unless --synchronized is given, so the
reported totals can disagree with the per-maze results.
"""

import argparse
import logging
import sys

from algorithms.maze_runner import (
    COMPARE_WORKERS,
    DEFAULT_SIZES,
    DEFAULT_WORKERS,
    RunReport,
    SolverConfig,
    compare_workers,
    run_all,
)


def parse_args(argv=None):
    parser = argparse.ArgumentParser(description=__doc__.splitlines()[0])
    parser.add_argument("--workers", type=int, default=DEFAULT_WORKERS, help="thread pool size")
    parser.add_argument("--sizes", type=int, nargs="+", default=list(DEFAULT_SIZES),
                        help="side length of each square maze")
    parser.add_argument("--obstacle-ratio", type=float, default=0.2)
    parser.add_argument("--synchronized", action="store_true",
                        help="guard the shared counters with a lock")
    parser.add_argument("--race-window", type=float, default=0.0,
                        help="seconds to sleep between reading and writing each counter")
    parser.add_argument("--seed", type=int, default=None)
    parser.add_argument("--compare", action="store_true",
                        help=f"repeat the run with {', '.join(map(str, COMPARE_WORKERS))} workers")
    parser.add_argument("--log-level", default="INFO")
    return parser.parse_args(argv)


def print_report(report: RunReport):
    for r in report.results:
        print(f"\nMaze {r.index + 1} ({r.rows}x{r.cols}) on {r.worker}")
        print(f"  Neighbor Exploration Time: {r.explore_seconds:.6f} s")
        print(f"  Path Reconstruction Time: {r.reconstruct_seconds:.6f} s")
        print(f"  Path length: {r.path_length} nodes")

    print(f"\nOuter Loop Time (total for all mazes, {report.config.workers} workers): "
          f"{report.wall_seconds:.6f} s")

    label = "synchronized" if report.config.synchronized else "with race conditions"
    s = report.stats
    print(f"\n=== Global Statistics ({label}) ===")
    print(f"Total maze attempts: {s.attempt_count} (expected {report.expected_attempts})")
    print(f"Total path length over all mazes: {s.total_path_length} "
          f"(expected {report.expected_path_length})")
    print(f"Number of successful mazes: {s.success_count} (expected {report.expected_successes})")


def main(argv=None):
    args = parse_args(argv)
    logging.basicConfig(level=getattr(logging, args.log_level.upper(), logging.INFO),
                        format="%(asctime)s %(threadName)s %(name)s: %(message)s")

    try:
        config = SolverConfig(
            sizes=args.sizes,
            workers=args.workers,
            obstacle_ratio=args.obstacle_ratio,
            synchronized=args.synchronized,
            race_window=args.race_window,
            seed=args.seed,
        )
    except ValueError as e:
        print("Invalid configuration:", e)
        sys.exit(2)

    if args.compare:
        for report in compare_workers(config):
            print_report(report)
    else:
        print_report(run_all(config))
    return 0


if __name__ == "__main__":
    sys.exit(main())
