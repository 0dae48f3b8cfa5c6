"""Concrete annealing problems (TSP tours, bounded continuous boxes)."""

from .box import BoxProblem, rastrigin, sphere
from .tsp import TspModel, TspProblem, make_random_model

__all__ = [
    "BoxProblem",
    "TspModel",
    "TspProblem",
    "make_random_model",
    "rastrigin",
    "sphere",
]
