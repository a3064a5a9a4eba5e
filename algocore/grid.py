from __future__ import annotations
from enum import Enum
from typing import Iterator, List, Optional, Sequence, Tuple

from .errors import InvalidInputError

Cell = Tuple[int, int]


class CellType(str, Enum):
    EMPTY = "empty"
    OBSTACLE = "obstacle"
    START = "start"
    END = "end"


_SYMBOLS = {".": CellType.EMPTY, "#": CellType.OBSTACLE, "S": CellType.START, "E": CellType.END}


class Grid:
    """Rectangular obstacle map addressed by (row, col).

    At most one START and one END cell exist at any time; setting a new start
    or end demotes the previous one to EMPTY.
    """

    def __init__(self, rows: int, cols: int):
        if rows < 1 or cols < 1:
            raise InvalidInputError(f"grid must be at least 1x1, got {rows}x{cols}")
        self.rows = rows
        self.cols = cols
        self._cells: List[List[CellType]] = [[CellType.EMPTY] * cols for _ in range(rows)]
        self.start: Optional[Cell] = None
        self.end: Optional[Cell] = None

    @classmethod
    def from_strings(cls, lines: Sequence[str]) -> "Grid":
        """Parse an ASCII map: '.' empty, '#' obstacle, 'S' start, 'E' end."""
        if not lines:
            raise InvalidInputError("grid map is empty")
        width = len(lines[0])
        if any(len(line) != width for line in lines):
            raise InvalidInputError("grid map rows must all have the same length")
        grid = cls(len(lines), width)
        for r, line in enumerate(lines):
            for c, ch in enumerate(line):
                kind = _SYMBOLS.get(ch)
                if kind is None:
                    raise InvalidInputError(f"unknown grid symbol {ch!r} at ({r}, {c})")
                if kind is CellType.START:
                    if grid.start is not None:
                        raise InvalidInputError("grid map has more than one start cell")
                    grid.set_start(r, c)
                elif kind is CellType.END:
                    if grid.end is not None:
                        raise InvalidInputError("grid map has more than one end cell")
                    grid.set_end(r, c)
                elif kind is CellType.OBSTACLE:
                    grid.set_obstacle(r, c)
        return grid

    @classmethod
    def from_obstacles(cls, obstacles: Sequence[Sequence[bool]]) -> "Grid":
        """Build from a boolean matrix where True marks an obstacle."""
        if not obstacles or not obstacles[0]:
            raise InvalidInputError("obstacle map is empty")
        width = len(obstacles[0])
        if any(len(row) != width for row in obstacles):
            raise InvalidInputError("obstacle map rows must all have the same length")
        grid = cls(len(obstacles), width)
        for r, row in enumerate(obstacles):
            for c, blocked in enumerate(row):
                if blocked:
                    grid.set_obstacle(r, c)
        return grid

    def in_bounds(self, r: int, c: int) -> bool:
        return 0 <= r < self.rows and 0 <= c < self.cols

    def _check(self, r: int, c: int) -> None:
        if not self.in_bounds(r, c):
            raise InvalidInputError(f"cell ({r}, {c}) is outside the {self.rows}x{self.cols} grid")

    def cell(self, r: int, c: int) -> CellType:
        self._check(r, c)
        return self._cells[r][c]

    def is_obstacle(self, r: int, c: int) -> bool:
        return self._cells[r][c] is CellType.OBSTACLE

    def _put(self, r: int, c: int, kind: CellType) -> None:
        if (r, c) == self.start:
            self.start = None
        if (r, c) == self.end:
            self.end = None
        self._cells[r][c] = kind

    def set_start(self, r: int, c: int) -> None:
        self._check(r, c)
        if self.start is not None:
            self._put(*self.start, CellType.EMPTY)
        self._put(r, c, CellType.START)
        self.start = (r, c)

    def set_end(self, r: int, c: int) -> None:
        self._check(r, c)
        if self.end is not None:
            self._put(*self.end, CellType.EMPTY)
        self._put(r, c, CellType.END)
        self.end = (r, c)

    def set_obstacle(self, r: int, c: int, blocked: bool = True) -> None:
        self._check(r, c)
        self._put(r, c, CellType.OBSTACLE if blocked else CellType.EMPTY)

    def clear(self, r: int, c: int) -> None:
        self._check(r, c)
        self._put(r, c, CellType.EMPTY)

    def cycle_cell(self, r: int, c: int) -> CellType:
        """Apply one click: place start, then end, then toggle empty/obstacle."""
        self._check(r, c)
        current = self._cells[r][c]
        if self.start is None:
            self.set_start(r, c)
        elif self.end is None and current is not CellType.START:
            self.set_end(r, c)
        elif current is CellType.OBSTACLE:
            self._put(r, c, CellType.EMPTY)
        elif current is CellType.EMPTY:
            self._put(r, c, CellType.OBSTACLE)
        return self._cells[r][c]

    def neighbors(self, r: int, c: int) -> Iterator[Cell]:
        # down, up, right, left
        for dr, dc in ((1, 0), (-1, 0), (0, 1), (0, -1)):
            nr, nc = r + dr, c + dc
            if self.in_bounds(nr, nc) and not self.is_obstacle(nr, nc):
                yield nr, nc

    def obstacle_map(self) -> List[List[bool]]:
        return [[kind is CellType.OBSTACLE for kind in row] for row in self._cells]

    def copy(self) -> "Grid":
        other = Grid(self.rows, self.cols)
        other._cells = [list(row) for row in self._cells]
        other.start = self.start
        other.end = self.end
        return other

    def __str__(self) -> str:
        inverse = {v: k for k, v in _SYMBOLS.items()}
        return "\n".join("".join(inverse[kind] for kind in row) for row in self._cells)
