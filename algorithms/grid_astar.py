"""A* search on a 2-D occupancy grid (8-neighbour connectivity).

Grid coordinates are integer indices (row, col). Moving to an orthogonal
neighbour costs 1.0, to a diagonal neighbour sqrt(2); the heuristic is the
straight-line (Euclidean) distance to the goal, which is admissible and
consistent for this step cost.

Search nodes live in a per-search arena (``NodeGraph``). Parent links are arena
indices and a registry maps every position to the index of the best node known
for it. Superseded open-set entries are never removed: when a better f is found
a new node is pushed and the registry is overwritten, and the old entry is
skipped once its position has been closed.
"""
from __future__ import annotations

import heapq
import logging
import math
import time
from dataclasses import dataclass, field
from typing import Dict, FrozenSet, List, Optional, Set, Tuple, Union

import numpy as np

logger = logging.getLogger(__name__)

Coord = Tuple[int, int]
Path = List[Coord]

# up, down, left, right, then the four diagonals. Order fixes tie-breaking.
MOVES: Tuple[Coord, ...] = (
    (-1, 0), (1, 0), (0, -1), (0, 1),
    (-1, -1), (-1, 1), (1, -1), (1, 1),
)


def heuristic(a: Coord, b: Coord) -> float:
    return math.hypot(a[0] - b[0], a[1] - b[1])


def path_cost(path: Path) -> float:
    """Sum of Euclidean step lengths along *path* (0.0 for empty / single cell)."""
    return sum(heuristic(p, q) for p, q in zip(path[:-1], path[1:]))


# ---------------------------------------------------------------------------
# Grid model
# ---------------------------------------------------------------------------

class OccupancyGrid:
    def __init__(self, cells):
        """cells[r][c] == True  => cell blocked"""
        occ = np.array(cells, dtype=bool)
        if occ.ndim != 2 or occ.shape[0] == 0 or occ.shape[1] == 0:
            raise ValueError(f"grid must be a non-empty 2-D array, got shape {occ.shape}")
        occ.setflags(write=False)
        self.occ = occ
        self.rows, self.cols = occ.shape

    @property
    def shape(self) -> Tuple[int, int]:
        return self.rows, self.cols

    def in_bounds(self, p: Coord) -> bool:
        r, c = p
        return 0 <= r < self.rows and 0 <= c < self.cols

    def is_blocked(self, p: Coord) -> bool:
        return bool(self.occ[p[0], p[1]])

    def is_valid(self, p: Coord) -> bool:
        return self.in_bounds(p) and not self.is_blocked(p)

    def blocked_cells(self) -> List[Coord]:
        return [(int(r), int(c)) for r, c in np.argwhere(self.occ)]

    def __repr__(self) -> str:
        return f"OccupancyGrid({self.rows}x{self.cols}, blocked={int(self.occ.sum())})"


def random_grid(rows: int, cols: int, obstacle_ratio: float = 0.2,
                rng: Union[np.random.Generator, int, None] = None) -> OccupancyGrid:
    """Stamp ``int(rows * cols * obstacle_ratio)`` uniformly random cells as blocked.

    Stamps may land on an already blocked cell, so the realised density is at
    most ``obstacle_ratio``.
    """
    if rows <= 0 or cols <= 0:
        raise ValueError(f"grid dimensions must be positive, got {rows}x{cols}")
    if not 0.0 <= obstacle_ratio <= 1.0:
        raise ValueError(f"obstacle_ratio must be within [0, 1], got {obstacle_ratio}")
    if not isinstance(rng, np.random.Generator):
        rng = np.random.default_rng(rng)

    occ = np.zeros((rows, cols), dtype=bool)
    n_stamps = int(rows * cols * obstacle_ratio)
    occ[rng.integers(0, rows, size=n_stamps), rng.integers(0, cols, size=n_stamps)] = True
    return OccupancyGrid(occ)


# ---------------------------------------------------------------------------
# Node graph
# ---------------------------------------------------------------------------

@dataclass
class SearchNode:
    pos: Coord
    g: float
    h: float
    parent: Optional[int] = None  # index in arena
    f: float = field(init=False)

    def __post_init__(self):
        self.f = self.g + self.h


class NodeGraph:
    """Arena of search nodes plus the position -> best-node registry."""

    def __init__(self):
        self.nodes: List[SearchNode] = []
        self.registry: Dict[Coord, int] = {}

    def __len__(self) -> int:
        return len(self.nodes)

    def add(self, node: SearchNode) -> int:
        idx = len(self.nodes)
        self.nodes.append(node)
        self.registry[node.pos] = idx
        return idx

    def best(self, pos: Coord) -> Optional[SearchNode]:
        idx = self.registry.get(pos)
        return None if idx is None else self.nodes[idx]

    def reconstruct(self, idx: int) -> Path:
        path = []
        cur: Optional[int] = idx
        while cur is not None:
            node = self.nodes[cur]
            path.append(node.pos)
            cur = node.parent
        return path[::-1]


def reconstruct_path(graph: NodeGraph, goal_idx: Optional[int]) -> Path:
    if goal_idx is None:
        return []
    return graph.reconstruct(goal_idx)


# ---------------------------------------------------------------------------
# A* engine
# ---------------------------------------------------------------------------

@dataclass
class SearchResult:
    path: Path
    expanded: int
    nodes_created: int
    closed: FrozenSet[Coord]
    discovered: FrozenSet[Coord]  # every position ever pushed
    explore_seconds: float
    reconstruct_seconds: float

    @property
    def found(self) -> bool:
        return bool(self.path)

    @property
    def length(self) -> int:
        return len(self.path)


class AStarGrid:
    def __init__(self, grid: OccupancyGrid):
        self.grid = grid

    # --------------------------------------------------
    def neighbours(self, p: Coord):
        r, c = p
        for dr, dc in MOVES:
            nxt = (r + dr, c + dc)
            if self.grid.is_valid(nxt):
                yield nxt, math.hypot(dr, dc)

    # --------------------------------------------------
    def solve(self, start: Coord, goal: Coord) -> SearchResult:
        """Run A* from start to goal and return the path plus search statistics."""
        for name, p in (("start", start), ("goal", goal)):
            if not self.grid.in_bounds(p):
                raise ValueError(f"{name} {p} outside grid {self.grid.rows}x{self.grid.cols}")

        graph = NodeGraph()
        closed: Set[Coord] = set()
        open_heap: List[Tuple[float, int]] = []  # (f, arena index)

        start_idx = graph.add(SearchNode(start, 0.0, heuristic(start, goal)))
        heapq.heappush(open_heap, (graph.nodes[start_idx].f, start_idx))

        goal_idx: Optional[int] = None
        expanded = 0

        t0 = time.perf_counter()
        while open_heap:
            _, idx = heapq.heappop(open_heap)
            current = graph.nodes[idx]
            if current.pos == goal:
                goal_idx = idx
                break
            if current.pos in closed:
                continue  # stale entry
            closed.add(current.pos)
            expanded += 1

            for nei, step in self.neighbours(current.pos):
                if nei in closed:
                    continue
                g2 = current.g + step
                h2 = heuristic(nei, goal)
                known = graph.best(nei)
                if known is None or g2 + h2 < known.f:
                    new_idx = graph.add(SearchNode(nei, g2, h2, parent=idx))
                    heapq.heappush(open_heap, (graph.nodes[new_idx].f, new_idx))
        explore_seconds = time.perf_counter() - t0

        t0 = time.perf_counter()
        path = reconstruct_path(graph, goal_idx)
        reconstruct_seconds = time.perf_counter() - t0

        logger.debug("A* %s -> %s: expanded=%d nodes=%d path=%d",
                     start, goal, expanded, len(graph), len(path))
        return SearchResult(
            path=path,
            expanded=expanded,
            nodes_created=len(graph),
            closed=frozenset(closed),
            discovered=frozenset(graph.registry),
            explore_seconds=explore_seconds,
            reconstruct_seconds=reconstruct_seconds,
        )

    # ------------------------------------------------------------------
    def search(self, start: Coord, goal: Coord) -> Path:
        """Return list of cells from start to goal (inclusive) or [] if unreachable."""
        return self.solve(start, goal).path


def a_star_search(grid: OccupancyGrid, start: Coord, goal: Coord) -> Path:
    return AStarGrid(grid).search(start, goal)
