"""Oscillation suppression: forbid reversing a command before the robot has moved."""

from __future__ import annotations

from typing import List, Optional

import numpy as np

from ..types import Pose2D, Trajectory, Velocity2D
from ..utils.geometry import wrap_to_pi
from .base import OSCILLATION, CostFunction

AXES = ("x", "y", "theta")


class OscillationState:
    """
    Cross-cycle record of the last commanded sign per axis.

    - signs: +1 / -1 / 0 for (x, y, theta)
    - anchor: pose at which the latest sign change was recorded

    Lateral and rotational signs only count while the robot is not
    translating forward (|vx| <= min_vel_trans). The record clears once the
    robot is farther than reset_dist or has turned more than reset_angle
    away from the anchor.
    """

    def __init__(self, reset_dist: float = 0.05, reset_angle: float = 0.2) -> None:
        self.reset_dist = float(reset_dist)
        self.reset_angle = float(reset_angle)
        self.signs: List[int] = [0, 0, 0]
        self.anchor: Optional[Pose2D] = None

    def set_reset_limits(self, reset_dist: float, reset_angle: float) -> None:
        self.reset_dist = float(reset_dist)
        self.reset_angle = float(reset_angle)

    def reset(self) -> None:
        self.signs = [0, 0, 0]
        self.anchor = None

    @property
    def active(self) -> bool:
        return any(self.signs)

    @staticmethod
    def _command_signs(vel: Velocity2D, min_vel_trans: float) -> List[int]:
        sx = int(np.sign(vel.vx))
        if abs(vel.vx) <= max(0.0, min_vel_trans):
            return [sx, int(np.sign(vel.vy)), int(np.sign(vel.vtheta))]
        return [sx, 0, 0]

    def reset_if_moved(self, pose: Pose2D) -> bool:
        if self.anchor is None or not self.active:
            return False
        dx = pose.x - self.anchor.x
        dy = pose.y - self.anchor.y
        dth = wrap_to_pi(pose.theta - self.anchor.theta)
        if dx * dx + dy * dy > self.reset_dist * self.reset_dist or abs(dth) > self.reset_angle:
            self.reset()
            return True
        return False

    def record(self, pose: Pose2D, vel: Velocity2D, min_vel_trans: float) -> bool:
        """Store the chosen command's signs. Returns True if any sign changed."""
        changed = False
        for axis, s in enumerate(self._command_signs(vel, min_vel_trans)):
            if s != 0 and s != self.signs[axis]:
                self.signs[axis] = s
                changed = True
        if changed:
            self.anchor = pose
        return changed

    def reversed_axis(self, vel: Velocity2D, min_vel_trans: float) -> Optional[str]:
        """Name of the first axis on which `vel` reverses the recorded sign, if any."""
        for axis, s in enumerate(self._command_signs(vel, min_vel_trans)):
            if s != 0 and self.signs[axis] == -s:
                return AXES[axis]
        return None


class OscillationCost(CostFunction):
    name = "oscillation"
    always_score = True

    def __init__(self, state: OscillationState, min_vel_trans: float = 0.0, scale: float = 1.0) -> None:
        super().__init__(scale)
        self.state = state
        self.min_vel_trans = float(min_vel_trans)

    def score(self, traj: Trajectory) -> float:
        if self.state.reversed_axis(traj.velocity, self.min_vel_trans) is not None:
            return OSCILLATION
        return 0.0
