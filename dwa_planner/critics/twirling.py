from __future__ import annotations

from ..types import Trajectory
from .base import CostFunction


class TwirlingCost(CostFunction):
    """Penalizes spinning: the cost is |vtheta| of the command."""

    name = "twirling"

    def score(self, traj: Trajectory) -> float:
        return abs(traj.velocity.vtheta)
