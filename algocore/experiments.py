from __future__ import annotations
import itertools, statistics, os
import logging
from typing import Dict, Any, List, Optional, Union
from dataclasses import asdict, replace
import csv
from .errors import InvalidInputError
from .tsp import TSPInstance
from .ant_colony import ACOConfig, AntColonyTSPSolver
from .genetic import GAConfig, GeneticTSPSolver

logger = logging.getLogger(__name__)

SolverConfig = Union[ACOConfig, GAConfig]


def _algo_constructor(name: str):
    if name.lower() == "aco":
        return AntColonyTSPSolver, ACOConfig
    if name.lower() == "ga":
        return GeneticTSPSolver, GAConfig
    raise InvalidInputError(f"Unknown algorithm {name}")


def run_repeated_trials(instance: TSPInstance, algo: str, cfg: SolverConfig, n_runs: int = 10, base_seed: int = 42):
    """Run one solver n_runs times with seeds base_seed, base_seed+1, ... and summarise the best lengths."""
    if n_runs < 1:
        raise InvalidInputError("n_runs must be >= 1")
    algocls, cfgcls = _algo_constructor(algo)
    if not isinstance(cfg, cfgcls):
        raise InvalidInputError(f"{algo} expects a {cfgcls.__name__}, got {type(cfg).__name__}")
    lengths = []
    times = []
    best_tours = []
    for r in range(n_runs):
        cfg_r = replace(cfg, seed=base_seed + r)
        res = algocls(instance, cfg_r).run()
        lengths.append(res.best_length)
        times.append(res.elapsed_sec)
        best_tours.append(res.best_tour)
    stats = {
        "mean_length": statistics.mean(lengths),
        "std_length": statistics.stdev(lengths) if len(lengths) > 1 else 0.0,
        "min_length": min(lengths),
        "max_length": max(lengths),
        "median_length": statistics.median(lengths),
        "mean_time": statistics.mean(times),
        "algo": algo,
        "n_runs": n_runs,
    }
    logger.info("%s on %s: mean %.4f, min %.4f over %d runs",
                algo, instance.name, stats["mean_length"], stats["min_length"], n_runs)
    return stats, list(zip(lengths, times, best_tours))


def run_parameter_sweep(instance: TSPInstance, algo: str, param_grid: Dict[str, List[Any]],
                        base_cfg: Optional[SolverConfig] = None, n_runs: int = 5, base_seed: int = 100,
                        csv_path: Optional[str] = None):
    _, cfgcls = _algo_constructor(algo)
    base_cfg = base_cfg or cfgcls()
    unknown = set(param_grid) - set(asdict(base_cfg))
    if unknown:
        raise InvalidInputError(f"{cfgcls.__name__} has no parameters {sorted(unknown)}")
    keys = sorted(param_grid.keys())
    rows = []
    for values in itertools.product(*[param_grid[k] for k in keys]):
        cfg = replace(base_cfg, **dict(zip(keys, values)))
        stats, _ = run_repeated_trials(instance, algo, cfg, n_runs=n_runs, base_seed=base_seed)
        row = {**{k: getattr(cfg, k) for k in keys}, **stats}
        rows.append(row)
        if csv_path is not None:
            write_header = not os.path.exists(csv_path)
            with open(csv_path, "a", newline="") as f:
                w = csv.DictWriter(f, fieldnames=row.keys())
                if write_header:
                    w.writeheader()
                w.writerow(row)
    return rows
