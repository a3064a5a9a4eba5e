# run_experiments.py
import os, json, argparse, logging
import numpy as np
import pandas as pd
import matplotlib
matplotlib.use("Agg")
import matplotlib.pyplot as plt

from algocore import TSPInstance, ACOConfig, GAConfig, AntColonyTSPSolver, GeneticTSPSolver
from algocore.experiments import run_repeated_trials, run_parameter_sweep

OUTDIR = os.path.dirname(os.path.abspath(__file__))
ALGO_MAP = {"GA": GeneticTSPSolver, "ACO": AntColonyTSPSolver}


def ensure(path: str) -> str:
    d = os.path.dirname(path)
    if d:
        os.makedirs(d, exist_ok=True)
    return path


def build_config(name, budget=150, ants=20, population=100):
    if name == "GA":
        return GAConfig(population_size=population, generations=budget,
                        elite_fraction=0.1, tournament_size=2, mutation_rate=0.05)
    if name == "ACO":
        return ACOConfig(alpha=1.0, beta=3.0, rho=0.5, Q=1.0,
                         n_ants=ants, n_iterations=budget)
    raise ValueError(name)


def plot_scatter(details_by_algo, save_path):
    plt.figure()
    algos = list(details_by_algo.keys())
    for i, algo in enumerate(algos, start=1):
        lengths = [L for (L, t, tour) in details_by_algo[algo]]
        x = np.random.normal(loc=i, scale=0.03, size=len(lengths))
        plt.plot(x, lengths, "o")
    plt.xticks(range(1, len(algos) + 1), algos)
    plt.ylabel("Best tour length")
    plt.title("Best lengths across runs")
    ensure(save_path)
    plt.savefig(save_path, dpi=150, bbox_inches="tight")
    plt.close()


def plot_convergence(inst, configs, save_path):
    plt.figure()
    for name, cfg in configs:
        res = ALGO_MAP[name](inst, cfg).run()
        plt.plot(res.history_best_lengths, label=name)
    plt.xlabel("Generation / iteration")
    plt.ylabel("Best-so-far tour length")
    plt.title("Convergence")
    plt.legend()
    ensure(save_path)
    plt.savefig(save_path, dpi=150, bbox_inches="tight")
    plt.close()


def main(argv=None):
    ap = argparse.ArgumentParser(description="Compare the genetic and ant colony TSP solvers on a random instance.")
    ap.add_argument("--n", type=int, default=30, help="number of cities")
    ap.add_argument("--square", type=float, default=100.0)
    ap.add_argument("--seed", type=int, default=123, help="instance seed")
    ap.add_argument("--runs", type=int, default=5)
    ap.add_argument("--budget", type=int, default=150, help="generations (GA) / iterations (ACO)")
    ap.add_argument("--ants", type=int, default=20)
    ap.add_argument("--population", type=int, default=100)
    ap.add_argument("--sweep", action="store_true", help="also run an alpha/beta/rho grid for ACO")
    ap.add_argument("--outdir", default=OUTDIR)
    ap.add_argument("--log-level", default="WARNING", choices=["DEBUG", "INFO", "WARNING", "ERROR"])
    args = ap.parse_args(argv)

    logging.basicConfig(level=args.log_level, format="%(asctime)s %(name)s %(levelname)s %(message)s")

    inst = TSPInstance.random_euclidean(n=args.n, seed=args.seed, square_size=args.square, name=f"demo{args.n}")
    configs = [(name, build_config(name, budget=args.budget, ants=args.ants, population=args.population))
               for name in ALGO_MAP]

    # repeated trials
    records = []
    details_by_algo = {}
    for name, cfg in configs:
        stats, details = run_repeated_trials(inst, name, cfg, n_runs=args.runs)
        print(name, json.dumps(stats, indent=2))
        records.append({"algo": name, **stats})
        details_by_algo[name] = details

    # summary CSV + scatter plot
    df_summary = pd.DataFrame.from_records(records)
    summary_csv = ensure(os.path.join(args.outdir, "results_summary.csv"))
    df_summary.to_csv(summary_csv, index=False)
    plot_scatter(details_by_algo, os.path.join(args.outdir, "results_distribution.png"))
    plot_convergence(inst, configs, os.path.join(args.outdir, "convergence.png"))

    if args.sweep:
        grid = {"alpha": [0.5, 1.0], "beta": [2.0, 3.0, 5.0], "rho": [0.1, 0.5]}
        rows = run_parameter_sweep(
            inst, "ACO", grid, base_cfg=configs[-1][1],
            n_runs=3, base_seed=500, csv_path=os.path.join(args.outdir, "aco_grid.csv")
        )
        print("Grid search evaluated:", len(rows))
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
