from __future__ import annotations
import math
import random
from dataclasses import dataclass
from typing import List, Optional, Sequence, Tuple

from .errors import InvalidInputError

Point = Tuple[float, float]


def as_points(points: Sequence[Sequence[float]]) -> List[Point]:
    """Copy coordinates into immutable (x, y) tuples, rejecting malformed or non-finite ones."""
    out = []
    for idx, p in enumerate(points):
        if len(p) != 2:
            raise InvalidInputError(f"point {idx} must have exactly two coordinates, got {len(p)}")
        x, y = float(p[0]), float(p[1])
        if not (math.isfinite(x) and math.isfinite(y)):
            raise InvalidInputError(f"point {idx} has non-finite coordinates ({x}, {y})")
        out.append((x, y))
    return out


@dataclass
class TSPInstance:
    coords: List[Point]
    name: str = "euclidean_tsp"

    def __post_init__(self):
        self.coords = as_points(self.coords)

    @staticmethod
    def random_euclidean(n: int, seed: Optional[int] = None, square_size: float = 100.0, name: str = "random_euclidean"):
        if n < 1:
            raise InvalidInputError("n must be >= 1")
        rng = random.Random(seed)
        coords = [(rng.uniform(0, square_size), rng.uniform(0, square_size)) for _ in range(n)]
        return TSPInstance(coords=coords, name=name)

    def n_cities(self) -> int:
        return len(self.coords)

    def require_cities(self, minimum: int = 2) -> None:
        if self.n_cities() < minimum:
            raise InvalidInputError(f"need at least {minimum} cities, got {self.n_cities()}")

    def distance(self, i: int, j: int) -> float:
        (x1, y1), (x2, y2) = self.coords[i], self.coords[j]
        return math.hypot(x1 - x2, y1 - y2)

    def distance_matrix(self, diagonal: float = math.inf) -> List[List[float]]:
        """Symmetric Euclidean distances; the diagonal is +inf so a city is never its own successor."""
        n = self.n_cities()
        D = [[0.0]*n for _ in range(n)]
        for i in range(n):
            D[i][i] = diagonal
            for j in range(i+1, n):
                d = self.distance(i, j)
                D[i][j] = D[j][i] = d
        return D

    def tour_length(self, tour: Sequence[int]) -> float:
        # closed cycle: includes the edge from the last city back to the first
        n = len(tour)
        dist = 0.0
        for k in range(n):
            i, j = tour[k], tour[(k + 1) % n]
            dist += self.distance(i, j)
        return dist
