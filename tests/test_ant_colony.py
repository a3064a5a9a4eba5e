"""
Ant colony TSP solver tests
"""

import math

import pytest

from algocore.ant_colony import ACOConfig, AntColonyTSPSolver, solve
from algocore.errors import InvalidInputError
from algocore.tsp import TSPInstance

SQUARE = [(0, 0), (10, 0), (10, 10), (0, 10)]


class TestAntColonySolver:
    """Tour construction and best-so-far tracking"""

    def test_two_cities(self):
        tour, length = solve([(0, 0), (3, 4)], ant_count=3, iterations=2, seed=1)
        assert tour == [0, 1]
        assert length == pytest.approx(10.0)

    def test_square(self):
        tour, length = solve(SQUARE, ant_count=10, alpha=1.0, beta=2.0, rho=0.5, iterations=20, seed=3)
        assert length == pytest.approx(40.0, rel=0.05)
        assert sorted(tour) == [0, 1, 2, 3]

    def test_every_tour_is_a_permutation(self):
        inst = TSPInstance.random_euclidean(12, seed=4)
        solver = AntColonyTSPSolver(inst, ACOConfig(n_ants=8, n_iterations=10, seed=6))
        for snap in solver.iterate():
            assert len(snap.tours) == 8
            for tour, length in zip(snap.tours, snap.lengths):
                assert sorted(tour) == list(range(12))
                assert tour[0] == 0
                assert length == pytest.approx(inst.tour_length(tour))
            assert snap.best_length <= snap.iteration_best_length

    def test_random_start_city(self):
        inst = TSPInstance.random_euclidean(6, seed=4)
        solver = AntColonyTSPSolver(inst, ACOConfig(n_ants=20, n_iterations=1, start_city=None, seed=2))
        snap = next(solver.iterate())
        assert len({t[0] for t in snap.tours}) > 1

    def test_history_non_increasing(self):
        inst = TSPInstance.random_euclidean(10, seed=5)
        res = AntColonyTSPSolver(inst, ACOConfig(n_ants=5, n_iterations=25, seed=1)).run()
        assert len(res.history_best_lengths) == 25
        assert all(b <= a for a, b in zip(res.history_best_lengths, res.history_best_lengths[1:]))
        assert res.best_length == pytest.approx(inst.tour_length(res.best_tour))

    def test_coincident_cities(self):
        tour, length = solve([(0, 0), (0, 0), (5, 0)], ant_count=4, iterations=3, seed=0)
        assert sorted(tour) == [0, 1, 2]
        assert length == pytest.approx(10.0)


class TestPheromone:
    """Evaporation, deposit and degenerate weights"""

    def test_single_iteration_update(self):
        # a triangle tour always uses all three edges
        pts = [(0, 0), (3, 0), (0, 4)]
        solver = AntColonyTSPSolver(pts, ACOConfig(n_ants=1, n_iterations=1, rho=0.5, Q=1.0, tau0=1.0, seed=0))
        solver.run()
        expected = 0.5 + 1.0 / 12.0
        for i in range(3):
            for j in range(3):
                assert solver.tau[i][j] == pytest.approx(0.5 if i == j else expected)

    def test_pheromone_stays_non_negative_and_symmetric(self):
        inst = TSPInstance.random_euclidean(8, seed=3)
        solver = AntColonyTSPSolver(inst, ACOConfig(n_ants=4, n_iterations=60, rho=0.9, seed=2))
        solver.run()
        for i in range(8):
            for j in range(8):
                assert solver.tau[i][j] >= 0.0
                assert solver.tau[i][j] == pytest.approx(solver.tau[j][i])

    def test_zero_weights_fall_back_to_uniform(self):
        solver = AntColonyTSPSolver(SQUARE, ACOConfig(seed=1))
        solver.tau = [[0.0] * 4 for _ in range(4)]
        picks = {solver._prob_next(0, [1, 2, 3]) for _ in range(50)}
        assert picks == {1, 2, 3}

    def test_zero_weight_never_chosen_when_others_positive(self):
        solver = AntColonyTSPSolver(SQUARE, ACOConfig(seed=1))
        solver.tau[0][2] = 0.0
        picks = {solver._prob_next(0, [1, 2, 3]) for _ in range(100)}
        assert 2 not in picks

    def test_overflowing_weights(self):
        solver = AntColonyTSPSolver(SQUARE, ACOConfig(alpha=400.0, seed=1))
        solver.tau = [[1e3] * 4 for _ in range(4)]
        assert solver._prob_next(0, [1, 2, 3]) in (1, 2, 3)

    def test_finite_weights_whose_sum_overflows(self):
        pts = [(0, 0), (1e-100, 0), (-1e-100, 0), (0, 5)]
        solver = AntColonyTSPSolver(pts, ACOConfig(beta=3.08, seed=1))
        weights = [solver._weight(0, j) for j in (1, 2)]
        assert all(math.isfinite(w) for w in weights)
        assert math.isinf(sum(weights))
        picks = {solver._prob_next(0, [1, 2, 3]) for _ in range(50)}
        assert picks <= {1, 2} and picks

    def test_run_with_near_coincident_cities(self):
        pts = [(0, 0), (1e-100, 0), (-1e-100, 0), (0, 5)]
        tour, length = solve(pts, ant_count=4, beta=3.08, iterations=3, seed=2)
        assert sorted(tour) == [0, 1, 2, 3]
        assert length == pytest.approx(10.0)

    def test_zero_pheromone_beats_overflowing_heuristic(self):
        pts = [(0, 0), (1e-3, 0), (0, 1e-3)]
        solver = AntColonyTSPSolver(pts, ACOConfig(beta=200.0, seed=1))
        solver.tau[0][1] = 0.0
        assert solver._weight(0, 1) == 0.0
        picks = {solver._prob_next(0, [1, 2]) for _ in range(50)}
        assert picks == {2}

    def test_coincident_cities_without_heuristic(self):
        solver = AntColonyTSPSolver([(0, 0), (0, 0), (5, 0)], ACOConfig(beta=0.0, seed=4))
        assert solver._weight(0, 1) == 1.0
        picks = {solver._prob_next(0, [1, 2]) for _ in range(100)}
        assert picks == {1, 2}

    def test_second_run_starts_fresh(self):
        pts = [(0, 0), (3, 0), (0, 4)]
        solver = AntColonyTSPSolver(pts, ACOConfig(n_ants=1, n_iterations=1, rho=0.5, Q=1.0, tau0=1.0, seed=0))
        solver.run()
        res = solver.run()
        assert len(res.history_best_lengths) == 1
        assert solver.tau[0][1] == pytest.approx(0.5 + 1.0 / 12.0)


class TestPreconditions:
    """Invalid inputs raise InvalidInputError"""

    def test_too_few_cities(self):
        with pytest.raises(InvalidInputError):
            solve([(0, 0)])

    @pytest.mark.parametrize("cfg", [
        ACOConfig(rho=0.0),
        ACOConfig(rho=1.0),
        ACOConfig(alpha=-1.0),
        ACOConfig(beta=math.nan),
        ACOConfig(n_ants=0),
        ACOConfig(n_iterations=0),
        ACOConfig(start_city=4),
        ACOConfig(tau0=0.0),
    ])
    def test_bad_config(self, cfg):
        with pytest.raises(InvalidInputError):
            AntColonyTSPSolver(SQUARE, cfg)
