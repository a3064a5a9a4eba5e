from __future__ import annotations
import heapq
import itertools
import logging
from dataclasses import dataclass
from typing import Dict, List, Optional, Union

from .errors import InvalidInputError
from .grid import Cell, Grid

logger = logging.getLogger(__name__)


def manhattan(a: Cell, b: Cell) -> int:
    return abs(a[0] - b[0]) + abs(a[1] - b[1])


@dataclass(frozen=True)
class PathFound:
    path: List[Cell]
    expanded: int
    found = True

    @property
    def length(self) -> int:
        """Number of moves, i.e. cells in the path minus one."""
        return len(self.path) - 1

    def __bool__(self) -> bool:
        return True


@dataclass(frozen=True)
class PathNotFound:
    expanded: int
    found = False

    def __bool__(self) -> bool:
        return False


PathResult = Union[PathFound, PathNotFound]


class GridPathfinder:
    """A* over 4-connected grid moves of unit cost with the Manhattan heuristic.

    The open set is a binary heap keyed on (f, insertion order): among nodes
    with equal f the one pushed first is expanded first. Stale heap entries
    left behind by a cost improvement are skipped when popped.
    """

    def __init__(self, grid: Grid):
        self.grid = grid

    def _validate(self, start: Optional[Cell], end: Optional[Cell]) -> None:
        if start is None or end is None:
            raise InvalidInputError("both a start and an end cell are required")
        for label, (r, c) in (("start", start), ("end", end)):
            if not self.grid.in_bounds(r, c):
                raise InvalidInputError(f"{label} cell {(r, c)} is out of bounds")
            if self.grid.is_obstacle(r, c):
                raise InvalidInputError(f"{label} cell {(r, c)} is an obstacle")
        if tuple(start) == tuple(end):
            raise InvalidInputError("start and end must be different cells")

    def find_path(self, start: Optional[Cell] = None, end: Optional[Cell] = None) -> PathResult:
        start = tuple(start) if start is not None else self.grid.start
        end = tuple(end) if end is not None else self.grid.end
        self._validate(start, end)

        counter = itertools.count()
        g_cost: Dict[Cell, int] = {start: 0}
        came_from: Dict[Cell, Cell] = {}
        closed = set()
        open_heap = [(manhattan(start, end), next(counter), start)]
        expanded = 0

        while open_heap:
            _, _, current = heapq.heappop(open_heap)
            if current in closed:
                continue
            if current == end:
                path = self._reconstruct(came_from, current)
                logger.debug("A* reached %s after expanding %d nodes (%d moves)", end, expanded, len(path) - 1)
                return PathFound(path=path, expanded=expanded)
            closed.add(current)
            expanded += 1

            tentative = g_cost[current] + 1
            for nb in self.grid.neighbors(*current):
                if nb in closed:
                    continue
                if tentative < g_cost.get(nb, float("inf")):
                    came_from[nb] = current
                    g_cost[nb] = tentative
                    heapq.heappush(open_heap, (tentative + manhattan(nb, end), next(counter), nb))

        logger.debug("A* exhausted the open set after %d expansions; %s unreachable from %s", expanded, end, start)
        return PathNotFound(expanded=expanded)

    @staticmethod
    def _reconstruct(came_from: Dict[Cell, Cell], current: Cell) -> List[Cell]:
        path = [current]
        while current in came_from:
            current = came_from[current]
            path.append(current)
        path.reverse()
        return path


def find_path(grid: Grid, start: Optional[Cell] = None, end: Optional[Cell] = None) -> PathResult:
    """Shortest orthogonal path from start to end (defaults to the grid's own markers)."""
    return GridPathfinder(grid).find_path(start, end)
