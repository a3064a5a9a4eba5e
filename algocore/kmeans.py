from __future__ import annotations
import logging
import math
import random
import time
from dataclasses import dataclass, field
from typing import Iterator, List, Optional, Sequence

from .errors import InvalidInputError
from .tsp import Point, as_points

logger = logging.getLogger(__name__)

INIT_STRATEGIES = ("farthest", "random", "first")


@dataclass
class KMeansConfig:
    max_iterations: Optional[int] = 10  # None: iterate until assignments stop changing
    init: str = "farthest"              # "farthest", "random" (seeded first pick, then farthest) or "first" (first k points)
    seed: Optional[int] = None


@dataclass
class KMeansStep:
    iteration: int
    assignments: List[int]
    centroids: List[Point]
    changed: int


@dataclass
class KMeansResult:
    assignments: List[int]
    centroids: List[Point]
    iterations: int
    converged: bool
    config: KMeansConfig
    elapsed_sec: float = 0.0
    history_changes: List[int] = field(default_factory=list)

    def clusters(self) -> List[List[int]]:
        """Point indices grouped by centroid index."""
        groups: List[List[int]] = [[] for _ in self.centroids]
        for idx, cid in enumerate(self.assignments):
            groups[cid].append(idx)
        return groups


def nearest_centroid(point: Point, centroids: Sequence[Point]) -> int:
    # strict < keeps the lowest index on ties
    best, best_d = 0, math.inf
    for cid, (cx, cy) in enumerate(centroids):
        d = math.hypot(point[0] - cx, point[1] - cy)
        if d < best_d:
            best, best_d = cid, d
    return best


def assign(points: Sequence[Point], centroids: Sequence[Point]) -> List[int]:
    return [nearest_centroid(p, centroids) for p in points]


def recompute_centroids(points: Sequence[Point], assignments: Sequence[int], centroids: Sequence[Point]) -> List[Point]:
    """Mean of each cluster's points; a centroid with no points keeps its position."""
    k = len(centroids)
    sums = [[0.0, 0.0] for _ in range(k)]
    counts = [0] * k
    for (x, y), cid in zip(points, assignments):
        sums[cid][0] += x
        sums[cid][1] += y
        counts[cid] += 1
    return [(s[0] / c, s[1] / c) if c else centroids[cid]
            for cid, (s, c) in enumerate(zip(sums, counts))]


def farthest_point_indices(points: Sequence[Point], k: int, first: int = 0) -> List[int]:
    """Start from points[first], then repeatedly take the point farthest from everything chosen so far.

    Ties go to the lowest index; only unchosen points are candidates, so k distinct indices come back.
    """
    chosen = [first]
    nearest = [math.hypot(x - points[first][0], y - points[first][1]) for x, y in points]
    while len(chosen) < k:
        taken = set(chosen)
        nxt = max((i for i in range(len(points)) if i not in taken), key=lambda i: (nearest[i], -i))
        chosen.append(nxt)
        px, py = points[nxt]
        nearest = [min(d, math.hypot(x - px, y - py)) for d, (x, y) in zip(nearest, points)]
    return chosen


class KMeansClusterer:
    """Lloyd's k-means on 2D points with a convergence early exit."""

    def __init__(self, points: Sequence[Sequence[float]], k: int, cfg: Optional[KMeansConfig] = None):
        self.points = as_points(points)
        self.k = k
        self.cfg = cfg or KMeansConfig()
        if not self.points:
            raise InvalidInputError("cannot cluster an empty point set")
        if not 1 <= k <= len(self.points):
            raise InvalidInputError(f"k must be in [1, {len(self.points)}], got {k}")
        if self.cfg.max_iterations is not None and self.cfg.max_iterations < 1:
            raise InvalidInputError("max_iterations must be >= 1 or None")
        if self.cfg.init not in INIT_STRATEGIES:
            raise InvalidInputError(f"unknown init strategy {self.cfg.init!r}; expected one of {INIT_STRATEGIES}")
        self.rng = random.Random(self.cfg.seed)

    def initial_centroids(self) -> List[Point]:
        if self.cfg.init == "first":
            return list(self.points[:self.k])
        first = self.rng.randrange(len(self.points)) if self.cfg.init == "random" else 0
        return [self.points[i] for i in farthest_point_indices(self.points, self.k, first)]

    def iterate(self) -> Iterator[KMeansStep]:
        """Yield one assignment/update step at a time until convergence or the iteration cap."""
        centroids = self.initial_centroids()
        assignments: Optional[List[int]] = None
        it = 0
        while self.cfg.max_iterations is None or it < self.cfg.max_iterations:
            it += 1
            new_assignments = assign(self.points, centroids)
            if assignments is None:
                changed = len(new_assignments)
            else:
                changed = sum(a != b for a, b in zip(assignments, new_assignments))
            assignments = new_assignments
            if changed:
                centroids = recompute_centroids(self.points, assignments, centroids)
            yield KMeansStep(iteration=it, assignments=list(assignments), centroids=list(centroids), changed=changed)
            if changed == 0:
                return

    def run(self) -> KMeansResult:
        start = time.time()
        last = None
        history = []
        for step in self.iterate():
            last = step
            history.append(step.changed)
        converged = last.changed == 0
        if not converged:
            # cap reached: report assignments consistent with the final centroids
            final = assign(self.points, last.centroids)
            converged = final == last.assignments
            last.assignments = final
        elapsed = time.time() - start
        logger.info("k-means k=%d on %d points: %d iterations, converged=%s",
                    self.k, len(self.points), last.iteration, converged)
        return KMeansResult(assignments=last.assignments, centroids=last.centroids, iterations=last.iteration,
                            converged=converged, config=self.cfg, elapsed_sec=elapsed, history_changes=history)


def cluster(points: Sequence[Sequence[float]], k: int, max_iterations: Optional[int] = 10,
            init: str = "farthest", seed: Optional[int] = None) -> KMeansResult:
    cfg = KMeansConfig(max_iterations=max_iterations, init=init, seed=seed)
    return KMeansClusterer(points, k, cfg).run()
