"""Small synthetic scenarios: a grid, a straight plan, a start pose and a footprint.

Grid convention: costs[cy, cx]; the robot starts on the horizontal
centreline facing +x.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

import numpy as np

from ..errors import InvalidConfiguration
from ..types import Pose2D
from .costmap import OccupancyGrid

SCENARIOS = ("open", "blocked", "at_goal")


@dataclass
class ScenarioConfig:
    map_width_m: float = 6.0
    map_height_m: float = 4.0
    resolution_m: float = 0.05
    start_x_m: float = 1.0
    num_plan_poses: int = 5
    plan_step_m: float = 1.0
    # Distance from the robot centre to the single obstacle cell in 'blocked'
    obstacle_ahead_m: float = 0.3
    robot_half_length_m: float = 0.2
    robot_half_width_m: float = 0.15
    inscribed_radius_m: float = 0.0
    inflation_radius_m: float = 0.0
    cost_scaling_factor: float = 10.0


@dataclass
class Scenario:
    name: str
    grid: OccupancyGrid
    plan: np.ndarray  # (N, 3)
    start: Pose2D
    footprint: np.ndarray  # (M, 2) robot frame


def rectangle_footprint(half_length: float, half_width: float) -> np.ndarray:
    return np.array(
        [
            [half_length, half_width],
            [half_length, -half_width],
            [-half_length, -half_width],
            [-half_length, half_width],
        ],
        dtype=float,
    )


def create_scenario(name: str, cfg: Optional[ScenarioConfig] = None) -> Scenario:
    """Build one of SCENARIOS.

    - open: empty grid, plan straight ahead past the simulation horizon
    - blocked: as open, with one lethal cell on the centreline just ahead
    - at_goal: plan ends at the start pose
    """
    c = cfg or ScenarioConfig()
    if name not in SCENARIOS:
        raise InvalidConfiguration(f"unknown scenario '{name}', expected one of {SCENARIOS}")
    W = int(round(c.map_width_m / c.resolution_m))
    H = int(round(c.map_height_m / c.resolution_m))
    obstacles = np.zeros((H, W), dtype=bool)
    # Centre of the middle row, so the robot sits inside a cell rather than on an edge
    y0 = (H // 2 + 0.5) * c.resolution_m
    start = Pose2D(c.start_x_m, y0, 0.0)

    steps = np.arange(c.num_plan_poses, dtype=float) * c.plan_step_m
    if name == "at_goal":
        xs = c.start_x_m - steps[::-1] * 0.25
    else:
        xs = c.start_x_m + steps
    plan = np.stack([xs, np.full_like(xs, y0), np.zeros_like(xs)], axis=1)

    if name == "blocked":
        cx = int(np.floor((c.start_x_m + c.obstacle_ahead_m) / c.resolution_m))
        obstacles[H // 2, cx] = True

    grid = OccupancyGrid.from_obstacles(
        obstacles,
        c.resolution_m,
        inscribed_radius=c.inscribed_radius_m,
        inflation_radius=c.inflation_radius_m,
        cost_scaling_factor=c.cost_scaling_factor,
    )
    footprint = rectangle_footprint(c.robot_half_length_m, c.robot_half_width_m)
    return Scenario(name=name, grid=grid, plan=plan, start=start, footprint=footprint)
