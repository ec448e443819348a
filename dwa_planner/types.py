from __future__ import annotations

from dataclasses import dataclass, field, replace
from typing import Optional

import numpy as np


@dataclass(frozen=True)
class Pose2D:
    """Planar pose in the planning frame (meters, radians)."""

    x: float
    y: float
    theta: float = 0.0

    def as_array(self) -> np.ndarray:
        return np.array([self.x, self.y, self.theta], dtype=float)

    @classmethod
    def from_any(cls, value) -> "Pose2D":
        if isinstance(value, Pose2D):
            return value
        seq = [float(v) for v in value]
        if len(seq) == 2:
            return cls(seq[0], seq[1], 0.0)
        return cls(seq[0], seq[1], seq[2])


@dataclass(frozen=True)
class Velocity2D:
    """Robot-frame velocity: vx forward, vy left, vtheta counter-clockwise."""

    vx: float = 0.0
    vy: float = 0.0
    vtheta: float = 0.0

    def as_array(self) -> np.ndarray:
        return np.array([self.vx, self.vy, self.vtheta], dtype=float)

    @classmethod
    def from_any(cls, value) -> "Velocity2D":
        if isinstance(value, Velocity2D):
            return value
        vx, vy, vth = (float(v) for v in value)
        return cls(vx, vy, vth)

    @property
    def trans(self) -> float:
        return float(np.hypot(self.vx, self.vy))

    def is_zero(self) -> bool:
        return self.vx == 0.0 and self.vy == 0.0 and self.vtheta == 0.0


@dataclass(frozen=True, eq=False)
class Trajectory:
    """
    Forward-simulated result of holding one velocity command.

    - poses: (N, 3) array of (x, y, theta); poses[0] is the start pose
    - times: (N,) time offsets in seconds, strictly increasing from 0
    - velocity: commanded velocity that produced the trajectory
    - time_delta: simulation step in seconds
    - cost: total cost once scored; negative means invalid or unscored
    - rejected_by: name of the cost function that invalidated it
    - lower_bound: scoring stopped once the sum passed the best cost so far,
      so `cost` is a lower bound rather than the full total
    """

    poses: np.ndarray
    times: np.ndarray
    velocity: Velocity2D
    time_delta: float
    cost: float = -1.0
    rejected_by: Optional[str] = None
    lower_bound: bool = False

    def __post_init__(self) -> None:
        poses = np.array(self.poses, dtype=float).reshape(-1, 3)
        times = np.array(self.times, dtype=float).reshape(-1)
        poses.setflags(write=False)
        times.setflags(write=False)
        object.__setattr__(self, "poses", poses)
        object.__setattr__(self, "times", times)

    def __len__(self) -> int:
        return int(self.poses.shape[0])

    @property
    def is_valid(self) -> bool:
        return self.cost >= 0.0

    def pose(self, i: int) -> Pose2D:
        x, y, th = self.poses[i]
        return Pose2D(float(x), float(y), float(th))

    def end_pose(self) -> Pose2D:
        return self.pose(-1)

    def with_cost(
        self, cost: float, rejected_by: Optional[str] = None, lower_bound: bool = False
    ) -> "Trajectory":
        return replace(self, cost=float(cost), rejected_by=rejected_by, lower_bound=lower_bound)


@dataclass(frozen=True)
class CellCosts:
    """Per-cell cost breakdown for diagnostics."""

    path_cost: float
    goal_cost: float
    occ_cost: float
    total_cost: float
    traversable: bool = field(default=True)
