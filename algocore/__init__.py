from .errors import InvalidInputError
from .tsp import TSPInstance
from .grid import Grid, CellType
from .astar import GridPathfinder, PathFound, PathNotFound, find_path
from .kmeans import KMeansConfig, KMeansClusterer, KMeansResult, cluster
from .genetic import GAConfig, GAResult, GeneticTSPSolver
from .ant_colony import ACOConfig, ACOResult, AntColonyTSPSolver
from .experiments import run_parameter_sweep, run_repeated_trials
