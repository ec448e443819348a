"""Cost functions that read a grid distance field at trajectory poses."""

from __future__ import annotations

from typing import Optional

import numpy as np

from ..errors import InvalidConfiguration
from ..maps.costmap import OccupancyGrid
from ..planning.map_grid import GridPropagationCache
from ..types import Trajectory
from ..utils.geometry import as_plan_array
from .base import OBSTACLE, OFF_MAP, UNREACHABLE, CostFunction

AGGREGATIONS = ("last", "sum", "product")


class MapGridCost(CostFunction):
    """Grid-distance lookup at each trajectory pose, optionally shifted along the heading.

    With stop_on_failure a pose on an obstacle or unreachable cell
    invalidates the whole trajectory; otherwise the sentinel distance is
    used as an (expensive) cost.
    """

    name = "map_grid"

    def __init__(
        self,
        grid: OccupancyGrid,
        cache: GridPropagationCache,
        scale: float = 1.0,
        *,
        x_shift: float = 0.0,
        y_shift: float = 0.0,
        is_local_goal: bool = False,
        aggregation: str = "last",
        stop_on_failure: bool = True,
    ) -> None:
        super().__init__(scale)
        if aggregation not in AGGREGATIONS:
            raise InvalidConfiguration(f"aggregation must be one of {AGGREGATIONS}")
        self.grid = grid
        self.cache = cache
        self.x_shift = float(x_shift)
        self.y_shift = float(y_shift)
        self.is_local_goal = bool(is_local_goal)
        self.aggregation = aggregation
        self.stop_on_failure = bool(stop_on_failure)
        self._targets: Optional[np.ndarray] = None

    def set_target_poses(self, plan) -> None:
        self._targets = as_plan_array(plan)

    def prepare(self) -> bool:
        if self._targets is None:
            return False
        if self.is_local_goal:
            self.cache.set_local_goal(self.grid, self._targets)
        else:
            self.cache.set_target_cells(self.grid, self._targets)
        return True

    def cell_cost(self, cx: int, cy: int) -> float:
        return self.cache.cell_cost(cx, cy)

    def _lookup_points(self, poses: np.ndarray) -> np.ndarray:
        px = poses[:, 0].copy()
        py = poses[:, 1].copy()
        th = poses[:, 2]
        if self.x_shift != 0.0:
            px += self.x_shift * np.cos(th)
            py += self.x_shift * np.sin(th)
        if self.y_shift != 0.0:
            px += self.y_shift * np.cos(th + np.pi / 2.0)
            py += self.y_shift * np.sin(th + np.pi / 2.0)
        return np.stack([px, py], axis=1)

    def score(self, traj: Trajectory) -> float:
        pts = self.grid.world_to_map_continuous(self._lookup_points(traj.poses))
        cells = np.floor(pts).astype(int)
        on_map = (
            (pts[:, 0] >= 0.0)
            & (pts[:, 1] >= 0.0)
            & (cells[:, 0] < self.grid.size_x)
            & (cells[:, 1] < self.grid.size_y)
        )
        dists = np.full(len(traj), self.cache.unreachable_cost)
        dists[on_map] = self.cache.target_dist[cells[on_map, 1], cells[on_map, 0]]

        for i in range(len(traj)):
            # Trajectories that leave the map are never allowed
            if not on_map[i]:
                return OFF_MAP
            if self.stop_on_failure:
                if dists[i] == self.cache.obstacle_cost:
                    return OBSTACLE
                if dists[i] == self.cache.unreachable_cost:
                    return UNREACHABLE

        if self.aggregation == "last":
            return float(dists[-1])
        if self.aggregation == "sum":
            return float(np.sum(dists))
        cost = 1.0
        for d in dists:
            if cost > 0.0:
                cost *= float(d)
        return cost


class PathDistanceCost(MapGridCost):
    """Grid distance from the trajectory end to the nearest plan cell."""

    name = "path_distance"

    def __init__(self, grid: OccupancyGrid, cache: GridPropagationCache, scale: float = 1.0) -> None:
        super().__init__(grid, cache, scale)


class GoalDistanceCost(MapGridCost):
    """Grid distance from the trajectory end to the local goal cell."""

    name = "goal_distance"

    def __init__(self, grid: OccupancyGrid, cache: GridPropagationCache, scale: float = 1.0) -> None:
        super().__init__(grid, cache, scale, is_local_goal=True)


class GoalFrontAlignmentCost(MapGridCost):
    """Path distance of a point `forward_point_distance` ahead of each pose.

    Keeps the robot's nose on the path, so trajectories heading away from
    the path direction cost more.
    """

    name = "alignment"

    def __init__(
        self,
        grid: OccupancyGrid,
        cache: GridPropagationCache,
        scale: float = 1.0,
        forward_point_distance: float = 0.0,
    ) -> None:
        super().__init__(grid, cache, scale, x_shift=forward_point_distance, stop_on_failure=False)


class GoalFrontCost(MapGridCost):
    """Goal distance of the robot's nose; the goal is pushed ahead along the approach bearing."""

    name = "goal_front"

    def __init__(
        self,
        grid: OccupancyGrid,
        cache: GridPropagationCache,
        scale: float = 1.0,
        forward_point_distance: float = 0.0,
    ) -> None:
        super().__init__(
            grid,
            cache,
            scale,
            x_shift=forward_point_distance,
            is_local_goal=True,
            stop_on_failure=False,
        )
