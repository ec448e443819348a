"""Footprint collision check and clearance cost."""

from __future__ import annotations

from math import cos, sin

import numpy as np

from ..constants import INSCRIBED_INFLATED_OBSTACLE, LETHAL_OBSTACLE, NO_INFORMATION
from ..maps.costmap import OccupancyGrid
from ..types import Trajectory
from ..utils.geometry import as_footprint_array, footprint_cells, oriented_footprint
from .base import FOOTPRINT_COLLISION, NO_FOOTPRINT, OFF_MAP, CostFunction


class ObstacleCost(CostFunction):
    """
    Sweeps the footprint along the trajectory and rejects it on any lethal or
    unknown covered cell. The cost is the highest cell cost touched (or the
    sum of per-pose maxima with sum_scores).

    The footprint grows linearly with translational speed above
    `scaling_speed`, up to `1 + max_scaling_factor` at `max_trans_vel`, and
    the sweep includes one extra pose `stop_time_buffer` seconds past the end.
    """

    name = "obstacle"
    always_score = True

    def __init__(self, grid: OccupancyGrid, scale: float = 1.0, sum_scores: bool = False) -> None:
        super().__init__(scale)
        self.grid = grid
        self.sum_scores = bool(sum_scores)
        self.footprint = np.zeros((0, 2), dtype=float)
        self.max_trans_vel = 0.0
        self.max_scaling_factor = 0.0
        self.scaling_speed = 0.0
        self.stop_time_buffer = 0.0

    def set_params(
        self,
        max_trans_vel: float,
        max_scaling_factor: float,
        scaling_speed: float,
        stop_time_buffer: float = 0.0,
    ) -> None:
        self.max_trans_vel = float(max_trans_vel)
        self.max_scaling_factor = float(max_scaling_factor)
        self.scaling_speed = float(scaling_speed)
        self.stop_time_buffer = float(stop_time_buffer)

    def set_footprint(self, footprint) -> None:
        self.footprint = as_footprint_array(footprint)

    def scaling_factor(self, traj: Trajectory) -> float:
        vmag = traj.velocity.trans
        if vmag <= self.scaling_speed or self.max_trans_vel <= self.scaling_speed:
            return 1.0
        ratio = min(1.0, (vmag - self.scaling_speed) / (self.max_trans_vel - self.scaling_speed))
        return self.max_scaling_factor * ratio + 1.0

    def footprint_cost(self, x: float, y: float, theta: float, scale: float = 1.0) -> float:
        grid = self.grid
        centre = grid.world_to_map(x, y)
        if centre is None:
            return OFF_MAP
        centre_cost = grid.get_cost(*centre)
        # Fewer than three points: treat the robot as circular and check its centre
        if self.footprint.shape[0] < 3:
            if centre_cost in (LETHAL_OBSTACLE, INSCRIBED_INFLATED_OBSTACLE, NO_INFORMATION):
                return FOOTPRINT_COLLISION
            return float(centre_cost)

        verts = grid.world_to_map_continuous(oriented_footprint(x, y, theta, self.footprint, scale))
        if np.any(verts < 0.0) or np.any(verts[:, 0] >= grid.size_x) or np.any(verts[:, 1] >= grid.size_y):
            return OFF_MAP
        cells = footprint_cells(verts)
        costs = grid.costs[cells[:, 1], cells[:, 0]]
        if np.any((costs == LETHAL_OBSTACLE) | (costs == NO_INFORMATION)):
            return FOOTPRINT_COLLISION
        return float(max(int(costs.max()), centre_cost))

    def _swept_poses(self, traj: Trajectory) -> np.ndarray:
        if self.stop_time_buffer <= 0.0 or traj.velocity.is_zero():
            return traj.poses
        x, y, th = traj.poses[-1]
        v = traj.velocity
        t = self.stop_time_buffer
        stop = (
            x + (v.vx * cos(th) - v.vy * sin(th)) * t,
            y + (v.vx * sin(th) + v.vy * cos(th)) * t,
            th + v.vtheta * t,
        )
        return np.vstack([traj.poses, np.asarray(stop, dtype=float)])

    def score(self, traj: Trajectory) -> float:
        if self.footprint.shape[0] == 0:
            return NO_FOOTPRINT
        scale = self.scaling_factor(traj)
        cost = 0.0
        for x, y, th in self._swept_poses(traj):
            f_cost = self.footprint_cost(float(x), float(y), float(th), scale)
            if f_cost < 0:
                return f_cost
            if self.sum_scores:
                cost += f_cost
            else:
                cost = max(cost, f_cost)
        return cost
