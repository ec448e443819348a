"""Dynamic-window local planner: sample velocities, score trajectories, pick one."""

from .config import CostWeights, DWAConfig, PlannerLimits, SamplerConfig
from .controllers import ControllerState, DWAController
from .errors import InvalidConfiguration
from .maps import OccupancyGrid
from .types import CellCosts, Pose2D, Trajectory, Velocity2D

__all__ = [
    "CostWeights",
    "DWAConfig",
    "PlannerLimits",
    "SamplerConfig",
    "ControllerState",
    "DWAController",
    "InvalidConfiguration",
    "OccupancyGrid",
    "CellCosts",
    "Pose2D",
    "Trajectory",
    "Velocity2D",
]
