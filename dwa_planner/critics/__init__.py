from __future__ import annotations

from .base import (
    FOOTPRINT_COLLISION,
    INVALID,
    NO_FOOTPRINT,
    NO_VALID_TRAJECTORY,
    OBSTACLE,
    OFF_MAP,
    OSCILLATION,
    UNREACHABLE,
    CostFunction,
)
from .map_grid import (
    GoalDistanceCost,
    GoalFrontAlignmentCost,
    GoalFrontCost,
    MapGridCost,
    PathDistanceCost,
)
from .obstacle import ObstacleCost
from .oscillation import OscillationCost, OscillationState
from .twirling import TwirlingCost

__all__ = [
    "CostFunction",
    "MapGridCost",
    "PathDistanceCost",
    "GoalDistanceCost",
    "GoalFrontAlignmentCost",
    "GoalFrontCost",
    "ObstacleCost",
    "OscillationCost",
    "OscillationState",
    "TwirlingCost",
    "INVALID",
    "UNREACHABLE",
    "OBSTACLE",
    "OFF_MAP",
    "OSCILLATION",
    "FOOTPRINT_COLLISION",
    "NO_VALID_TRAJECTORY",
    "NO_FOOTPRINT",
]
