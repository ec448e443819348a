"""Weighted multi-critic selection over a trajectory sample set."""

from __future__ import annotations

import logging
from typing import Iterable, List, Optional, Sequence, Tuple

import numpy as np

from ..critics.base import NO_VALID_TRAJECTORY, CostFunction
from ..types import Trajectory, Velocity2D

logger = logging.getLogger(__name__)


def no_valid_trajectory(start: Optional[np.ndarray] = None) -> Trajectory:
    """Sentinel result: zero command with a negative cost."""
    poses = np.zeros((1, 3)) if start is None else np.asarray(start, dtype=float).reshape(1, 3)
    return Trajectory(
        poses=poses,
        times=np.zeros(1),
        velocity=Velocity2D(),
        time_delta=0.0,
        cost=NO_VALID_TRAJECTORY,
    )


class ScoredSamplingPlanner:
    """
    Scores every sampled trajectory with an ordered list of cost functions.

    Total cost = sum(scale * cost) over critics with non-zero scale; critics
    flagged `always_score` run at scale 0 too, for their rejection only. The
    first negative cost aborts scoring and invalidates the trajectory. The
    lowest valid total wins; ties keep the earlier sample.
    """

    def __init__(self, critics: Sequence[CostFunction]) -> None:
        self.critics: List[CostFunction] = list(critics)

    @staticmethod
    def _active(critic: CostFunction) -> bool:
        return critic.scale != 0.0 or critic.always_score

    def _score(self, traj: Trajectory, best_cost: float) -> Tuple[float, Optional[str], bool]:
        total = 0.0
        for i, critic in enumerate(self.critics):
            if not self._active(critic):
                continue
            cost = critic.score(traj)
            if cost < 0.0:
                return float(cost), critic.name, False
            if cost != 0.0:
                cost *= critic.scale
            total += cost
            # Costs only add up, so once worse than the best we stay worse
            if best_cost >= 0.0 and total > best_cost:
                return total, None, any(self._active(c) for c in self.critics[i + 1 :])
        return total, None, False

    def score_trajectory(self, traj: Trajectory, best_cost: float = -1.0) -> Tuple[float, Optional[str]]:
        """Return (cost, name of the rejecting critic or None)."""
        cost, rejected_by, _ = self._score(traj, best_cost)
        return cost, rejected_by

    def prepare(self) -> bool:
        for critic in self.critics:
            if not self._active(critic):
                continue
            if not critic.prepare():
                logger.warning("Cost function %s failed to prepare", critic.name)
                return False
        return True

    def find_best_trajectory(
        self,
        trajectories: Iterable[Trajectory],
        all_explored: Optional[List[Trajectory]] = None,
    ) -> Trajectory:
        """Evaluate the full sample set and return the cheapest valid trajectory.

        Returns the no-valid-trajectory sentinel (negative cost) when the
        critics cannot prepare or every sample is invalid. Explored entries
        whose scoring stopped early carry `lower_bound=True`.
        """
        if not self.prepare():
            return no_valid_trajectory()
        best: Optional[Trajectory] = None
        best_cost = -1.0
        count = 0
        count_valid = 0
        start = None
        for traj in trajectories:
            if start is None:
                start = traj.poses[0]
            cost, rejected_by, lower_bound = self._score(traj, best_cost)
            count += 1
            if all_explored is not None:
                all_explored.append(traj.with_cost(cost, rejected_by, lower_bound))
            if cost >= 0.0:
                count_valid += 1
                if best_cost < 0.0 or cost < best_cost:
                    best_cost = cost
                    best = traj
        logger.debug("Evaluated %d trajectories, %d valid", count, count_valid)
        if best is None:
            return no_valid_trajectory(start)
        return best.with_cost(best_cost)
