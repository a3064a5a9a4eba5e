from __future__ import annotations
import logging
import math
import random
import time
from dataclasses import dataclass
from typing import Iterator, List, Optional, Sequence, Tuple, Union

from .errors import InvalidInputError
from .tsp import TSPInstance

logger = logging.getLogger(__name__)


@dataclass
class ACOConfig:
    alpha: float = 1.0          # pheromone influence
    beta: float = 2.0           # heuristic influence
    rho: float = 0.5            # evaporation rate, 0 < rho < 1
    Q: float = 1.0              # deposit per tour is Q / length
    tau0: float = 1.0           # initial pheromone on every edge
    n_ants: int = 20
    n_iterations: int = 100
    start_city: Optional[int] = 0  # None: each ant starts at a random city
    seed: Optional[int] = None


@dataclass
class IterationSnapshot:
    iteration: int
    tours: List[List[int]]
    lengths: List[float]
    best_tour: List[int]
    best_length: float

    @property
    def iteration_best_length(self) -> float:
        return min(self.lengths)


@dataclass
class ACOResult:
    best_tour: List[int]
    best_length: float
    history_best_lengths: List[float]
    history_best_tours: List[List[int]]
    config: ACOConfig
    elapsed_sec: float


def _check_config(cfg: ACOConfig, n: int) -> None:
    for name in ("alpha", "beta"):
        v = getattr(cfg, name)
        if not math.isfinite(v) or v < 0:
            raise InvalidInputError(f"{name} must be a finite non-negative number, got {v}")
    if not 0.0 < cfg.rho < 1.0:
        raise InvalidInputError(f"rho must be in (0, 1), got {cfg.rho}")
    if not (math.isfinite(cfg.Q) and cfg.Q > 0):
        raise InvalidInputError(f"Q must be positive, got {cfg.Q}")
    if not (math.isfinite(cfg.tau0) and cfg.tau0 > 0):
        raise InvalidInputError(f"tau0 must be positive, got {cfg.tau0}")
    if cfg.n_ants < 1 or cfg.n_iterations < 1:
        raise InvalidInputError("n_ants and n_iterations must be >= 1")
    if cfg.start_city is not None and not 0 <= cfg.start_city < n:
        raise InvalidInputError(f"start_city must be in [0, {n}), got {cfg.start_city}")


class AntColonyTSPSolver:
    """Ant System for the symmetric Euclidean TSP.

    Every iteration all ants build a closed tour first; only then is the
    pheromone matrix evaporated by (1 - rho) and reinforced with Q / length
    on both directions of each tour edge, including the closing edge.

    When the transition weights of the remaining cities sum to zero (pheromone
    underflow) the next city is drawn uniformly from the unvisited ones. If some
    weights overflow to infinity the choice is uniform among those; if only
    their sum overflows, the weights are rescaled by the largest one. A city
    with zero pheromone keeps weight zero.

    Each call to ``iterate()`` or ``run()`` starts from fresh pheromone and an
    empty best-so-far.
    """

    def __init__(self, points: Union[TSPInstance, Sequence[Sequence[float]]], cfg: Optional[ACOConfig] = None):
        self.instance = points if isinstance(points, TSPInstance) else TSPInstance(coords=list(points))
        self.instance.require_cities(2)
        self.cfg = cfg or ACOConfig()
        self.n = self.instance.n_cities()
        _check_config(self.cfg, self.n)
        self.rng = random.Random(self.cfg.seed)

        self.D = self.instance.distance_matrix()
        # heuristic 1/d; 0 on the +inf diagonal
        self.eta = [[0.0]*self.n for _ in range(self.n)]
        for i in range(self.n):
            for j in range(self.n):
                if i != j:
                    self.eta[i][j] = 1.0 / self.D[i][j] if self.D[i][j] > 0 else math.inf
        self.reset()

    def reset(self) -> None:
        """Restore initial pheromone and forget the best tour and history."""
        self.tau = [[self.cfg.tau0]*self.n for _ in range(self.n)]
        self.best_tour: Optional[List[int]] = None
        self.best_length = math.inf
        self.history_best_lengths: List[float] = []
        self.history_best_tours: List[List[int]] = []

    def _weight(self, i: int, j: int) -> float:
        try:
            pheromone = self.tau[i][j] ** self.cfg.alpha
        except OverflowError:
            pheromone = math.inf
        if pheromone == 0.0:
            return 0.0
        if self.cfg.beta == 0.0:
            return pheromone
        eta = self.eta[i][j]
        if math.isinf(eta):
            return math.inf
        try:
            return pheromone * (eta ** self.cfg.beta)
        except OverflowError:
            return math.inf

    def _prob_next(self, current: int, unvisited: List[int]) -> int:
        weights = [self._weight(current, j) for j in unvisited]
        total = sum(weights)
        if math.isinf(total):
            infinite = [j for j, w in zip(unvisited, weights) if math.isinf(w)]
            if infinite:
                return self.rng.choice(infinite)
            # finite weights whose sum overflowed
            top = max(weights)
            weights = [w / top for w in weights]
            total = sum(weights)
        if not total > 0.0:
            return self.rng.choice(unvisited)
        r = self.rng.random() * total
        acc = 0.0
        chosen = None
        for j, w in zip(unvisited, weights):
            if w <= 0.0:
                continue
            acc += w
            chosen = j
            if r < acc:
                break
        return chosen

    def _tour_construction(self) -> List[int]:
        start = self.cfg.start_city if self.cfg.start_city is not None else self.rng.randrange(self.n)
        tour = [start]
        unvisited = [j for j in range(self.n) if j != start]
        current = start
        while unvisited:
            nxt = self._prob_next(current, unvisited)
            tour.append(nxt)
            unvisited.remove(nxt)
            current = nxt
        return tour

    def _evaporate(self):
        keep = 1.0 - self.cfg.rho
        for row in self.tau:
            for j in range(self.n):
                row[j] *= keep

    def _deposit(self, tours: List[List[int]], lengths: List[float]):
        Q = self.cfg.Q
        for tour, L in zip(tours, lengths):
            dta = Q / L if L > 0 else 0.0
            for k in range(self.n):
                i, j = tour[k], tour[(k+1) % self.n]
                self.tau[i][j] += dta
                self.tau[j][i] += dta

    def iterate(self) -> Iterator[IterationSnapshot]:
        """Run the colony one iteration at a time, yielding after each pheromone update."""
        self.reset()
        for it in range(1, self.cfg.n_iterations + 1):
            tours = [self._tour_construction() for _ in range(self.cfg.n_ants)]
            lengths = [self.instance.tour_length(t) for t in tours]
            for t, L in zip(tours, lengths):
                if L < self.best_length:
                    logger.debug("iteration %d: new best length %.4f", it, L)
                    self.best_length = L
                    self.best_tour = list(t)

            self._evaporate()
            self._deposit(tours, lengths)

            self.history_best_lengths.append(self.best_length)
            self.history_best_tours.append(list(self.best_tour))
            yield IterationSnapshot(iteration=it, tours=tours, lengths=lengths,
                                    best_tour=list(self.best_tour), best_length=self.best_length)

    def run(self) -> ACOResult:
        start = time.time()
        for _ in self.iterate():
            pass
        elapsed = time.time() - start
        logger.info("ACO on %d cities: best length %.4f after %d iterations x %d ants (%.2fs)",
                    self.n, self.best_length, self.cfg.n_iterations, self.cfg.n_ants, elapsed)
        return ACOResult(best_tour=list(self.best_tour), best_length=self.best_length,
                         history_best_lengths=list(self.history_best_lengths),
                         history_best_tours=list(self.history_best_tours), config=self.cfg, elapsed_sec=elapsed)


def solve(points: Sequence[Sequence[float]], ant_count: int = 20, alpha: float = 1.0, beta: float = 2.0,
          rho: float = 0.5, iterations: int = 100, seed: Optional[int] = None) -> Tuple[List[int], float]:
    cfg = ACOConfig(alpha=alpha, beta=beta, rho=rho, n_ants=ant_count, n_iterations=iterations, seed=seed)
    res = AntColonyTSPSolver(points, cfg).run()
    return res.best_tour, res.best_length
