from __future__ import annotations

from enum import Enum
from typing import Optional, Protocol, Sequence, Tuple

import numpy as np

from ..types import CellCosts, Pose2D, Trajectory, Velocity2D


class ControllerState(Enum):
    IDLE = "idle"
    PLAN_SET = "plan_set"
    SCORING = "scoring"
    COMMAND_READY = "command_ready"


class LocalPlanner(Protocol):
    """What the host control loop calls once per cycle, in this order."""

    def update_plan_and_local_costs(
        self,
        pose: Pose2D,
        plan: Optional[Sequence[Pose2D]],
        footprint: np.ndarray,
    ) -> None:
        ...

    def find_best_path(self, pose: Pose2D, velocity: Velocity2D) -> Tuple[Trajectory, Velocity2D]:
        ...

    def get_cell_costs(self, cx: int, cy: int) -> CellCosts:
        ...
