"""Grid propagation, trajectory sampling and scored selection."""

from .map_grid import GridPropagationCache
from .trajectory_generator import TrajectorySampler, VelocityIterator
from .scored_sampling import ScoredSamplingPlanner, no_valid_trajectory

__all__ = [
    "GridPropagationCache",
    "TrajectorySampler",
    "VelocityIterator",
    "ScoredSamplingPlanner",
    "no_valid_trajectory",
]
