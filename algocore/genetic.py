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
class GAConfig:
    population_size: int = 100
    generations: int = 200
    elite_fraction: float = 0.1   # share of the ranked population copied unchanged
    tournament_size: int = 2
    mutation_rate: float = 0.01   # per-offspring probability of one swap
    seed: Optional[int] = None


@dataclass
class GenerationSnapshot:
    generation: int
    best_route: List[int]
    best_length: float
    generation_best_length: float
    mean_length: float


@dataclass
class GAResult:
    best_route: List[int]
    best_length: float
    history_best_lengths: List[float]
    history_best_tours: List[List[int]]
    config: GAConfig
    elapsed_sec: float

    @property
    def best_tour(self) -> List[int]:
        return self.best_route


def order_crossover(parent_a: Sequence[int], parent_b: Sequence[int], rng: random.Random) -> List[int]:
    """OX: keep a random slice of parent_a in place, fill the other slots with parent_b's remaining cities in order."""
    n = len(parent_a)
    i, j = sorted(rng.sample(range(n + 1), 2))
    segment = set(parent_a[i:j])
    child: List[Optional[int]] = [None] * n
    child[i:j] = parent_a[i:j]
    fill = (city for city in parent_b if city not in segment)
    for pos in range(n):
        if child[pos] is None:
            child[pos] = next(fill)
    return child


def swap_mutation(route: List[int], rng: random.Random) -> List[int]:
    i, j = rng.sample(range(len(route)), 2)
    route[i], route[j] = route[j], route[i]
    return route


def _check_config(cfg: GAConfig) -> None:
    if cfg.population_size < 2:
        raise InvalidInputError(f"population_size must be >= 2, got {cfg.population_size}")
    if cfg.generations < 0:
        raise InvalidInputError(f"generations must be >= 0, got {cfg.generations}")
    if not 0.0 <= cfg.elite_fraction < 1.0:
        raise InvalidInputError(f"elite_fraction must be in [0, 1), got {cfg.elite_fraction}")
    if cfg.tournament_size < 1:
        raise InvalidInputError(f"tournament_size must be >= 1, got {cfg.tournament_size}")
    if not 0.0 <= cfg.mutation_rate <= 1.0:
        raise InvalidInputError(f"mutation_rate must be in [0, 1], got {cfg.mutation_rate}")


class GeneticTSPSolver:
    """Generational GA over permutations with elitism, tournament selection, OX and swap mutation.

    Fitness is the closed tour length. The best route seen over all
    generations is tracked, so the reported length never increases.
    """

    def __init__(self, points: Union[TSPInstance, Sequence[Sequence[float]]], cfg: Optional[GAConfig] = None):
        self.instance = points if isinstance(points, TSPInstance) else TSPInstance(coords=list(points))
        self.instance.require_cities(2)
        self.cfg = cfg or GAConfig()
        _check_config(self.cfg)
        self.n = self.instance.n_cities()
        self.rng = random.Random(self.cfg.seed)
        self.reset()

    def reset(self) -> None:
        self.best_route: Optional[List[int]] = None
        self.best_length = math.inf
        self.history_best_lengths: List[float] = []
        self.history_best_tours: List[List[int]] = []

    def n_elite(self) -> int:
        if self.cfg.elite_fraction <= 0.0:
            return 0
        return max(1, int(self.cfg.population_size * self.cfg.elite_fraction))

    def random_route(self) -> List[int]:
        route = list(range(self.n))
        self.rng.shuffle(route)
        return route

    def initial_population(self) -> List[List[int]]:
        return [self.random_route() for _ in range(self.cfg.population_size)]

    def _rank(self, population: List[List[int]]) -> Tuple[List[List[int]], List[float]]:
        scored = sorted(((self.instance.tour_length(r), r) for r in population), key=lambda s: s[0])
        return [r for _, r in scored], [L for L, _ in scored]

    def _tournament(self, ranked: List[List[int]], lengths: List[float]) -> List[int]:
        picks = [self.rng.randrange(len(ranked)) for _ in range(self.cfg.tournament_size)]
        return ranked[min(picks, key=lambda k: lengths[k])]

    def _breed(self, ranked: List[List[int]], lengths: List[float]) -> List[List[int]]:
        next_gen = [list(r) for r in ranked[:self.n_elite()]]
        while len(next_gen) < self.cfg.population_size:
            mom = self._tournament(ranked, lengths)
            dad = self._tournament(ranked, lengths)
            kid = order_crossover(mom, dad, self.rng)
            if self.rng.random() < self.cfg.mutation_rate:
                kid = swap_mutation(kid, self.rng)
            next_gen.append(kid)
        return next_gen

    def _record(self, ranked: List[List[int]], lengths: List[float]) -> None:
        if lengths[0] < self.best_length:
            self.best_length = lengths[0]
            self.best_route = list(ranked[0])

    def iterate(self) -> Iterator[GenerationSnapshot]:
        """Evolve one generation at a time; the initial population is ranked before the first yield."""
        self.reset()
        ranked, lengths = self._rank(self.initial_population())
        self._record(ranked, lengths)
        for gen in range(1, self.cfg.generations + 1):
            ranked, lengths = self._rank(self._breed(ranked, lengths))
            previous = self.best_length
            self._record(ranked, lengths)
            if self.best_length < previous:
                logger.debug("generation %d: new best length %.4f", gen, self.best_length)
            self.history_best_lengths.append(self.best_length)
            self.history_best_tours.append(list(self.best_route))
            yield GenerationSnapshot(generation=gen, best_route=list(self.best_route), best_length=self.best_length,
                                     generation_best_length=lengths[0], mean_length=sum(lengths) / len(lengths))

    def run(self) -> GAResult:
        start = time.time()
        for _ in self.iterate():
            pass
        elapsed = time.time() - start
        logger.info("GA on %d cities: best length %.4f after %d generations of %d (%.2fs)",
                    self.n, self.best_length, self.cfg.generations, self.cfg.population_size, elapsed)
        return GAResult(best_route=list(self.best_route), best_length=self.best_length,
                        history_best_lengths=list(self.history_best_lengths),
                        history_best_tours=list(self.history_best_tours), config=self.cfg, elapsed_sec=elapsed)


def solve(points: Sequence[Sequence[float]], population_size: int = 100, generations: int = 200,
          seed: Optional[int] = None) -> Tuple[List[int], float]:
    cfg = GAConfig(population_size=population_size, generations=generations, seed=seed)
    res = GeneticTSPSolver(points, cfg).run()
    return res.best_route, res.best_length
