"""Velocity sampling over the dynamic window and forward simulation.

Samples are a regular lattice over the velocities reachable within the
window period from the current velocity, clamped to the absolute limits,
plus an always-present braking sample (command = 0).
"""

from __future__ import annotations

from math import ceil, cos, hypot, pi, sin
from typing import Iterator, List, Optional, Tuple

import numpy as np

from ..config import PlannerLimits, SamplerConfig
from ..errors import InvalidConfiguration
from ..types import Pose2D, Trajectory, Velocity2D

_EPS = 1e-4


class VelocityIterator:
    """Evenly spaced samples in [min_vel, max_vel], both ends included.

    At least two samples when the range is non-degenerate; a 0 is inserted
    between negative and positive samples when the range straddles zero.
    """

    def __init__(self, min_vel: float, max_vel: float, num_samples: int) -> None:
        self.samples: List[float] = []
        if min_vel == max_vel:
            self.samples.append(float(min_vel))
            return
        num_samples = max(2, int(num_samples))
        step = (max_vel - min_vel) / float(num_samples - 1)
        nxt = float(min_vel)
        for _ in range(num_samples - 1):
            current = nxt
            nxt += step
            self.samples.append(current)
            if current < 0.0 < nxt:
                self.samples.append(0.0)
        self.samples.append(float(max_vel))

    def __iter__(self) -> Iterator[float]:
        return iter(self.samples)

    def __len__(self) -> int:
        return len(self.samples)


def compute_new_positions(pos: np.ndarray, vel: np.ndarray, dt: float) -> np.ndarray:
    """Advance (x, y, theta) by a robot-frame velocity held for dt."""
    x, y, th = pos
    return np.array(
        [
            x + (vel[0] * cos(th) + vel[1] * cos(pi / 2.0 + th)) * dt,
            y + (vel[0] * sin(th) + vel[1] * sin(pi / 2.0 + th)) * dt,
            th + vel[2] * dt,
        ],
        dtype=float,
    )


def compute_new_velocities(target: np.ndarray, vel: np.ndarray, acc: np.ndarray, dt: float) -> np.ndarray:
    """Move each axis toward its target by at most acc * dt."""
    new_vel = np.empty(3, dtype=float)
    for i in range(3):
        if vel[i] < target[i]:
            new_vel[i] = min(target[i], vel[i] + acc[i] * dt)
        else:
            new_vel[i] = max(target[i], vel[i] - acc[i] * dt)
    return new_vel


class TrajectorySampler:
    def __init__(self, config: Optional[SamplerConfig] = None, limits: Optional[PlannerLimits] = None) -> None:
        self.config = config or SamplerConfig()
        self.limits = limits or PlannerLimits()
        self.pose = Pose2D(0.0, 0.0, 0.0)
        self.velocity = Velocity2D()
        self.min_vel = np.zeros(3)
        self.max_vel = np.zeros(3)
        self._samples: List[Velocity2D] = []
        self._next = 0

    def set_parameters(self, config: SamplerConfig) -> None:
        if config.sim_time <= 0.0 or config.sim_granularity <= 0.0:
            raise InvalidConfiguration("sim_time and sim_granularity must be > 0")
        self.config = config

    @property
    def samples(self) -> List[Velocity2D]:
        return list(self._samples)

    def window(self, vel: Velocity2D, pose: Pose2D, goal: Optional[Pose2D]) -> Tuple[np.ndarray, np.ndarray]:
        """Reachable (min, max) velocity per axis, clamped to the absolute limits."""
        cfg = self.config
        lim = self.limits
        max_x, min_x = lim.max_vel_x, lim.min_vel_x
        max_y, min_y = lim.max_vel_y, lim.min_vel_y
        max_th = lim.max_vel_theta
        if cfg.use_dwa:
            period = cfg.sim_period
        else:
            period = cfg.sim_time
            if goal is not None:
                # No point in sampling speeds that overshoot the goal within the horizon
                dist = hypot(goal.x - pose.x, goal.y - pose.y)
                max_x = max(min(max_x, dist / cfg.sim_time), min_x)
                max_y = max(min(max_y, dist / cfg.sim_time), min_y)
        v = vel.as_array()
        acc = np.asarray(lim.acc_limits, dtype=float)
        hi = np.minimum([max_x, max_y, max_th], v + acc * period)
        lo = np.maximum([min_x, min_y, -max_th], v - acc * period)
        # Current velocity outside the limits can leave an empty window
        hi = np.maximum(hi, lo)
        return lo, hi

    def initialise(
        self,
        pose: Pose2D,
        vel: Velocity2D,
        goal: Optional[Pose2D] = None,
        limits: Optional[PlannerLimits] = None,
        samples: Optional[Tuple[int, int, int]] = None,
    ) -> None:
        if limits is not None:
            self.limits = limits
        self.pose = pose
        self.velocity = vel
        self._next = 0
        self._samples = []
        nx, ny, nth = samples if samples is not None else self.config.samples
        self.min_vel, self.max_vel = self.window(vel, pose, goal)
        if nx * ny * nth > 0:
            x_it = VelocityIterator(self.min_vel[0], self.max_vel[0], nx)
            y_it = VelocityIterator(self.min_vel[1], self.max_vel[1], ny)
            th_it = VelocityIterator(self.min_vel[2], self.max_vel[2], nth)
            for vx in x_it:
                for vy in y_it:
                    for vth in th_it:
                        self._samples.append(Velocity2D(vx, vy, vth))
        if not any(s.is_zero() for s in self._samples):
            self._samples.append(Velocity2D())

    def reset(self) -> None:
        self._next = 0

    def has_more(self) -> bool:
        return self._next < len(self._samples)

    def next_trajectory(self) -> Optional[Trajectory]:
        """Simulate the next sample; None when it is rejected or the set is exhausted."""
        traj = None
        if self.has_more():
            traj = self.generate_trajectory(self.pose, self.velocity, self._samples[self._next])
        self._next += 1
        return traj

    def __iter__(self) -> Iterator[Trajectory]:
        self.reset()
        while self.has_more():
            traj = self.next_trajectory()
            if traj is not None:
                yield traj

    def __len__(self) -> int:
        return len(self._samples)

    def generate_trajectory(self, pose: Pose2D, vel: Velocity2D, target: Velocity2D) -> Optional[Trajectory]:
        """Forward-simulate holding `target` for sim_time. None if the sample is not admissible."""
        cfg = self.config
        lim = self.limits
        braking = target.is_zero()
        vmag = target.trans
        if not braking:
            # Must move with at least one of the minimum translational / rotational speeds
            if (lim.min_vel_trans >= 0 and vmag + _EPS < lim.min_vel_trans) and (
                lim.min_vel_theta >= 0 and abs(target.vtheta) + _EPS < lim.min_vel_theta
            ):
                return None
            if lim.max_vel_trans >= 0 and vmag - _EPS > lim.max_vel_trans:
                return None

        # The braking ramp covers at most the distance the current velocity would
        ref = vel if braking else target
        if cfg.discretize_by_time:
            num_steps = int(ceil(cfg.sim_time / cfg.sim_granularity))
        else:
            num_steps = int(
                ceil(
                    max(
                        ref.trans * cfg.sim_time / cfg.sim_granularity,
                        abs(ref.vtheta) * cfg.sim_time / cfg.angular_sim_granularity,
                    )
                )
            )
        num_steps = max(1, num_steps)
        dt = cfg.sim_time / num_steps

        acc = np.asarray(lim.acc_limits, dtype=float)
        target_v = target.as_array()
        ramp = braking or cfg.continued_acceleration
        if ramp:
            loop_vel = compute_new_velocities(target_v, vel.as_array(), acc, dt)
        else:
            loop_vel = target_v
        command = target if braking or not ramp else Velocity2D.from_any(loop_vel)

        poses = np.empty((num_steps + 1, 3), dtype=float)
        poses[0] = pose.as_array()
        for i in range(num_steps):
            poses[i + 1] = compute_new_positions(poses[i], loop_vel, dt)
            if ramp:
                loop_vel = compute_new_velocities(target_v, loop_vel, acc, dt)
        times = np.arange(num_steps + 1, dtype=float) * dt
        return Trajectory(poses=poses, times=times, velocity=command, time_delta=dt)
