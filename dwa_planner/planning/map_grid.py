"""Grid distance fields seeded by the plan (path distance) or the local goal.

Each cache holds a dense array ``target_dist[cy, cx]`` with the number of
grid steps from the cell to the nearest seed cell. Cells that block
propagation (lethal, inscribed, unknown) reached by the front get
``obstacle_cost``; cells never reached keep ``unreachable_cost``.
"""

from __future__ import annotations

from collections import deque
import logging
from typing import Deque, List, Optional, Tuple

import numpy as np

from ..constants import LETHAL_OBSTACLE, NO_INFORMATION
from ..errors import InvalidConfiguration
from ..maps.costmap import OccupancyGrid
from ..utils.geometry import adjust_plan_resolution

logger = logging.getLogger(__name__)

_NEIGHBOURS_4 = ((1, 0), (-1, 0), (0, 1), (0, -1))
_NEIGHBOURS_8 = _NEIGHBOURS_4 + ((1, 1), (1, -1), (-1, 1), (-1, -1))


class GridPropagationCache:
    def __init__(self, connectivity: int = 4) -> None:
        if connectivity == 4:
            self._neigh = _NEIGHBOURS_4
        elif connectivity == 8:
            self._neigh = _NEIGHBOURS_8
        else:
            raise InvalidConfiguration("connectivity must be 4 or 8")
        self.connectivity = connectivity
        self.target_dist = np.zeros((0, 0), dtype=float)
        self.seeds: List[Tuple[int, int]] = []
        self.valid = False
        self._key: Optional[tuple] = None
        self.recomputations = 0

    @property
    def obstacle_cost(self) -> float:
        return float(self.target_dist.size)

    @property
    def unreachable_cost(self) -> float:
        return float(self.target_dist.size + 1)

    def cell_cost(self, cx: int, cy: int) -> float:
        return float(self.target_dist[cy, cx])

    def is_valid_dist(self, dist: float) -> bool:
        return dist < self.obstacle_cost

    def _plan_cells(self, grid: OccupancyGrid, plan: np.ndarray) -> List[Tuple[int, int]]:
        """Cells of the in-grid prefix of the plan, in plan order."""
        adjusted = adjust_plan_resolution(plan, grid.resolution)
        if adjusted.shape[0] != plan.shape[0]:
            logger.debug("Adjusted global plan resolution, added %d points", adjusted.shape[0] - plan.shape[0])
        cells: List[Tuple[int, int]] = []
        started = False
        for x, y, _ in adjusted:
            cell = grid.world_to_map(float(x), float(y))
            if cell is not None and grid.get_cost(*cell) != NO_INFORMATION:
                cells.append(cell)
                started = True
            elif started:
                break
        return cells

    def set_target_cells(self, grid: OccupancyGrid, plan: np.ndarray) -> bool:
        """Seed with every in-grid plan cell. Returns True if the field was recomputed."""
        cells = self._plan_cells(grid, plan)
        if not cells:
            logger.warning(
                "None of the %d points of the global plan were in the local costmap and free",
                plan.shape[0],
            )
        return self.propagate_from(grid, cells)

    def set_local_goal(self, grid: OccupancyGrid, plan: np.ndarray) -> bool:
        """Seed with the last in-grid plan cell only."""
        cells = self._plan_cells(grid, plan)
        if not cells:
            logger.warning("None of the points of the global plan were in the local costmap")
        return self.propagate_from(grid, cells[-1:])

    def propagate_from(self, grid: OccupancyGrid, cells: List[Tuple[int, int]]) -> bool:
        """Recompute the field from explicit seed cells unless seeds and obstacles are unchanged."""
        blocked = grid.blocks_propagation_mask()
        key = (grid.costs.shape, tuple(dict.fromkeys(cells)), hash(blocked.tobytes()))
        if key == self._key:
            return False
        self._key = key
        self._propagate(grid, blocked, list(key[1]))
        self.recomputations += 1
        return True

    def _propagate(self, grid: OccupancyGrid, blocked: np.ndarray, cells: List[Tuple[int, int]]) -> None:
        H, W = grid.size_y, grid.size_x
        n = H * W
        obstacle = float(n)
        dist = [[float(n + 1)] * W for _ in range(H)]
        mark = [[False] * W for _ in range(H)]
        blk = blocked.tolist()
        queue: Deque[Tuple[int, int]] = deque()
        self.seeds = []
        for cx, cy in cells:
            mark[cy][cx] = True
            if grid.get_cost(cx, cy) == LETHAL_OBSTACLE:
                # A target sitting on an obstacle cannot seed the field
                dist[cy][cx] = obstacle
                continue
            dist[cy][cx] = 0.0
            self.seeds.append((cx, cy))
            queue.append((cx, cy))
        self.valid = bool(self.seeds)
        if cells and not self.valid:
            logger.warning("All %d target cells are obstacles; grid distances unavailable", len(cells))

        while queue:
            cx, cy = queue.popleft()
            nd = dist[cy][cx] + 1.0
            for dx, dy in self._neigh:
                nx = cx + dx
                ny = cy + dy
                if 0 <= nx < W and 0 <= ny < H and not mark[ny][nx]:
                    mark[ny][nx] = True
                    if blk[ny][nx]:
                        dist[ny][nx] = obstacle
                        continue
                    dist[ny][nx] = nd
                    queue.append((nx, ny))
        self.target_dist = np.asarray(dist, dtype=float).reshape(H, W)
