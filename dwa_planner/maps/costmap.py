"""Occupancy cost grid: the read-only grid the planner scores against."""

from __future__ import annotations

from math import floor
from typing import Optional, Tuple

import numpy as np
from scipy.ndimage import distance_transform_edt

from ..constants import (
    FREE_SPACE,
    INSCRIBED_INFLATED_OBSTACLE,
    LETHAL_OBSTACLE,
    MAX_NON_OBSTACLE,
    NO_INFORMATION,
)
from ..errors import InvalidConfiguration


class OccupancyGrid:
    """
    2D uint8 cost grid indexed costs[cy, cx].

    - resolution: meters per cell
    - origin: world (x, y) of the lower-left corner of cell (0, 0)
    """

    def __init__(
        self,
        costs: np.ndarray,
        resolution: float,
        origin: Tuple[float, float] = (0.0, 0.0),
    ) -> None:
        costs = np.asarray(costs)
        if costs.ndim != 2:
            raise InvalidConfiguration("costs must be 2D")
        if resolution <= 0.0:
            raise InvalidConfiguration("resolution must be > 0")
        self.costs = costs.astype(np.uint8, copy=True)
        self.resolution = float(resolution)
        self.origin = (float(origin[0]), float(origin[1]))

    @property
    def size_x(self) -> int:
        return int(self.costs.shape[1])

    @property
    def size_y(self) -> int:
        return int(self.costs.shape[0])

    def in_bounds(self, cx: int, cy: int) -> bool:
        return 0 <= cx < self.size_x and 0 <= cy < self.size_y

    def get_cost(self, cx: int, cy: int) -> int:
        return int(self.costs[cy, cx])

    def set_cost(self, cx: int, cy: int, cost: int) -> None:
        self.costs[cy, cx] = cost

    def world_to_map(self, x: float, y: float) -> Optional[Tuple[int, int]]:
        """Cell containing world point (x, y), or None when off the grid."""
        ox, oy = self.origin
        if x < ox or y < oy:
            return None
        cx = int(floor((x - ox) / self.resolution))
        cy = int(floor((y - oy) / self.resolution))
        if cx >= self.size_x or cy >= self.size_y:
            return None
        return cx, cy

    def world_to_map_continuous(self, points: np.ndarray) -> np.ndarray:
        """World (N,2) points to continuous cell coordinates (no bounds check)."""
        origin = np.asarray(self.origin, dtype=float)
        return (np.asarray(points, dtype=float) - origin) / self.resolution

    def map_to_world(self, cx: int, cy: int) -> Tuple[float, float]:
        """World coordinates of the centre of cell (cx, cy)."""
        ox, oy = self.origin
        return ox + (cx + 0.5) * self.resolution, oy + (cy + 0.5) * self.resolution

    def is_obstacle(self, cx: int, cy: int) -> bool:
        return self.get_cost(cx, cy) == LETHAL_OBSTACLE

    def blocks_propagation_mask(self) -> np.ndarray:
        """Cells that stop grid propagation: lethal, inscribed and unknown."""
        c = self.costs
        return (c == LETHAL_OBSTACLE) | (c == INSCRIBED_INFLATED_OBSTACLE) | (c == NO_INFORMATION)

    @classmethod
    def empty(cls, size_x: int, size_y: int, resolution: float, origin=(0.0, 0.0)) -> "OccupancyGrid":
        return cls(np.full((size_y, size_x), FREE_SPACE, dtype=np.uint8), resolution, origin)

    @classmethod
    def from_obstacles(
        cls,
        obstacles: np.ndarray,
        resolution: float,
        origin: Tuple[float, float] = (0.0, 0.0),
        inscribed_radius: float = 0.0,
        inflation_radius: float = 0.0,
        cost_scaling_factor: float = 10.0,
        unknown: Optional[np.ndarray] = None,
    ) -> "OccupancyGrid":
        """Build an inflated cost grid from a boolean obstacle mask (True = occupied).

        Cells within inscribed_radius of an obstacle become INSCRIBED; farther
        cells up to inflation_radius decay as 252 * exp(-k * (d - inscribed_radius)).
        """
        obstacles = np.asarray(obstacles, dtype=bool)
        if obstacles.ndim != 2:
            raise InvalidConfiguration("obstacle mask must be 2D")
        costs = np.full(obstacles.shape, FREE_SPACE, dtype=np.uint8)
        if np.any(obstacles):
            # Distance (meters) from each cell centre to the nearest obstacle cell centre
            dist = distance_transform_edt(~obstacles) * float(resolution)
            decay = MAX_NON_OBSTACLE * np.exp(-cost_scaling_factor * (dist - inscribed_radius))
            inflated = (dist <= inflation_radius) & (dist > inscribed_radius)
            costs[inflated] = np.clip(decay[inflated], 0, MAX_NON_OBSTACLE).astype(np.uint8)
            costs[(dist <= inscribed_radius) & ~obstacles] = INSCRIBED_INFLATED_OBSTACLE
            costs[obstacles] = LETHAL_OBSTACLE
        if unknown is not None:
            costs[np.asarray(unknown, dtype=bool)] = NO_INFORMATION
        return cls(costs, resolution, origin)
