"""
Genetic TSP solver tests
"""

import random

import pytest

from algocore.errors import InvalidInputError
from algocore.genetic import GAConfig, GeneticTSPSolver, order_crossover, solve, swap_mutation
from algocore.tsp import TSPInstance

SQUARE = [(0, 0), (10, 0), (10, 10), (0, 10)]


class TestOperators:
    """Crossover and mutation keep routes valid"""

    def test_order_crossover(self):
        rng = random.Random(0)
        for trial in range(200):
            n = rng.randint(2, 12)
            a = list(range(n))
            b = list(range(n))
            rng.shuffle(a)
            rng.shuffle(b)
            twin = random.Random(trial)
            i, j = sorted(twin.sample(range(n + 1), 2))
            child = order_crossover(a, b, random.Random(trial))
            assert sorted(child) == list(range(n))
            assert child[i:j] == a[i:j]
            rest = child[:i] + child[j:]
            assert rest == [c for c in b if c not in a[i:j]]

    def test_swap_mutation(self):
        rng = random.Random(3)
        route = list(range(10))
        mutated = swap_mutation(list(route), rng)
        assert sorted(mutated) == route
        assert sum(x != y for x, y in zip(route, mutated)) == 2


class TestGeneticSolver:
    """Solver behaviour on small instances"""

    def test_two_cities(self):
        route, length = solve([(0, 0), (3, 4)], population_size=4, generations=3, seed=1)
        assert sorted(route) == [0, 1]
        assert length == pytest.approx(10.0)

    def test_square(self):
        route, length = solve(SQUARE, population_size=30, generations=30, seed=11)
        assert length == pytest.approx(40.0, rel=0.05)
        assert TSPInstance(SQUARE).tour_length(route) == pytest.approx(length)

    def test_random_instance_improves(self):
        inst = TSPInstance.random_euclidean(15, seed=2)
        res = GeneticTSPSolver(inst, GAConfig(population_size=60, generations=80, mutation_rate=0.1, seed=4)).run()
        assert sorted(res.best_route) == list(range(15))
        assert len(res.history_best_lengths) == 80
        assert res.history_best_lengths[-1] <= res.history_best_lengths[0]
        assert res.best_length == pytest.approx(inst.tour_length(res.best_route))

    def test_best_so_far_non_increasing(self):
        inst = TSPInstance.random_euclidean(10, seed=8)
        solver = GeneticTSPSolver(inst, GAConfig(population_size=20, generations=40, mutation_rate=0.2, seed=9))
        previous = float("inf")
        for snap in solver.iterate():
            assert sorted(snap.best_route) == list(range(10))
            assert snap.best_length <= previous
            assert snap.best_length <= snap.generation_best_length <= snap.mean_length
            previous = snap.best_length

    def test_same_seed_same_result(self):
        inst = TSPInstance.random_euclidean(9, seed=1)
        cfg = GAConfig(population_size=20, generations=15, seed=5)
        a = GeneticTSPSolver(inst, cfg).run()
        b = GeneticTSPSolver(inst, cfg).run()
        assert a.best_route == b.best_route
        assert a.history_best_lengths == b.history_best_lengths

    def test_second_run_starts_fresh(self):
        solver = GeneticTSPSolver(SQUARE, GAConfig(population_size=30, generations=5, seed=3))
        solver.run()
        solver.best_length = 0.0
        solver.best_route = [3, 2, 1, 0]
        res = solver.run()
        assert len(res.history_best_lengths) == 5
        assert res.best_length == pytest.approx(40.0)

    def test_zero_generations(self):
        res = GeneticTSPSolver(SQUARE, GAConfig(population_size=5, generations=0, seed=2)).run()
        assert res.history_best_lengths == []
        assert sorted(res.best_tour) == [0, 1, 2, 3]

    def test_elite_count(self):
        assert GeneticTSPSolver(SQUARE, GAConfig(population_size=50, elite_fraction=0.2)).n_elite() == 10
        assert GeneticTSPSolver(SQUARE, GAConfig(population_size=5, elite_fraction=0.1)).n_elite() == 1
        assert GeneticTSPSolver(SQUARE, GAConfig(population_size=5, elite_fraction=0.0)).n_elite() == 0


class TestPreconditions:
    """Invalid inputs raise InvalidInputError"""

    def test_too_few_cities(self):
        with pytest.raises(InvalidInputError):
            solve([(1, 1)])

    @pytest.mark.parametrize("cfg", [
        GAConfig(population_size=1),
        GAConfig(generations=-1),
        GAConfig(elite_fraction=1.0),
        GAConfig(tournament_size=0),
        GAConfig(mutation_rate=1.5),
    ])
    def test_bad_config(self, cfg):
        with pytest.raises(InvalidInputError):
            GeneticTSPSolver(SQUARE, cfg)
