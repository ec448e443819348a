import math

import numpy as np
import pytest

from dwa_planner.config import PlannerLimits, SamplerConfig
from dwa_planner.errors import InvalidConfiguration
from dwa_planner.planning.trajectory_generator import TrajectorySampler, VelocityIterator
from dwa_planner.types import Pose2D, Velocity2D


def test_velocity_iterator_inserts_zero_when_straddling() -> None:
    samples = list(VelocityIterator(-1.0, 1.0, 4))
    assert samples[0] == -1.0
    assert samples[-1] == 1.0
    assert 0.0 in samples
    assert len(samples) == 5


def test_velocity_iterator_degenerate_and_minimum_count() -> None:
    assert list(VelocityIterator(0.5, 0.5, 5)) == [0.5]
    assert list(VelocityIterator(0.0, 1.0, 1)) == [0.0, 1.0]


def test_samples_stay_inside_dynamic_window() -> None:
    rng = np.random.default_rng(7)
    for _ in range(25):
        limits = PlannerLimits(
            max_vel_trans=10.0,
            min_vel_trans=-1.0,
            max_vel_x=float(rng.uniform(0.2, 1.0)),
            min_vel_x=float(rng.uniform(-0.5, 0.0)),
            max_vel_y=0.2,
            min_vel_y=-0.2,
            max_vel_theta=float(rng.uniform(0.5, 2.0)),
            min_vel_theta=-1.0,
            acc_lim_x=float(rng.uniform(0.1, 3.0)),
            acc_lim_y=float(rng.uniform(0.1, 3.0)),
            acc_lim_theta=float(rng.uniform(0.1, 3.0)),
        )
        cfg = SamplerConfig(sim_time=float(rng.uniform(0.1, 2.0)), vx_samples=5, vy_samples=3, vth_samples=7)
        vel = Velocity2D(
            float(rng.uniform(limits.min_vel_x, limits.max_vel_x)),
            float(rng.uniform(limits.min_vel_y, limits.max_vel_y)),
            float(rng.uniform(-limits.max_vel_theta, limits.max_vel_theta)),
        )
        sampler = TrajectorySampler(cfg, limits)
        sampler.initialise(Pose2D(0.0, 0.0, 0.0), vel)

        T = cfg.sim_time
        v = vel.as_array()
        acc = np.asarray(limits.acc_limits)
        lo = np.maximum([limits.min_vel_x, limits.min_vel_y, -limits.max_vel_theta], v - acc * T)
        hi = np.minimum([limits.max_vel_x, limits.max_vel_y, limits.max_vel_theta], v + acc * T)
        for s in sampler.samples:
            if s.is_zero():
                continue
            arr = s.as_array()
            assert np.all(arr >= lo - 1e-9)
            assert np.all(arr <= hi + 1e-9)


def test_braking_sample_always_present() -> None:
    # Window excludes zero: current speed well above what one period can shed
    limits = PlannerLimits(max_vel_y=0.0, min_vel_y=0.0, acc_lim_x=0.5)
    cfg = SamplerConfig(use_dwa=True, sim_period=0.05, vx_samples=3, vy_samples=1, vth_samples=5)
    sampler = TrajectorySampler(cfg, limits)
    sampler.initialise(Pose2D(0.0, 0.0, 0.0), Velocity2D(0.5, 0.0, 0.0))
    assert sampler.min_vel[0] > 0.0
    assert any(s.is_zero() for s in sampler.samples)
    assert sampler.samples[-1].is_zero()


def test_window_limited_by_goal_distance() -> None:
    limits = PlannerLimits(max_vel_y=0.0, min_vel_y=0.0)
    cfg = SamplerConfig(sim_time=1.7)
    sampler = TrajectorySampler(cfg, limits)
    lo, hi = sampler.window(Velocity2D(), Pose2D(0.0, 0.0, 0.0), Pose2D(0.17, 0.0, 0.0))
    assert hi[0] == pytest.approx(0.1)
    assert lo[0] == 0.0


def test_iteration_is_restartable() -> None:
    limits = PlannerLimits(max_vel_y=0.0, min_vel_y=0.0)
    sampler = TrajectorySampler(SamplerConfig(vx_samples=3, vy_samples=1, vth_samples=5), limits)
    sampler.initialise(Pose2D(0.0, 0.0, 0.0), Velocity2D())
    first = [t.velocity for t in sampler]
    second = [t.velocity for t in sampler]
    assert first == second
    assert len(first) > 0


def test_constant_velocity_rollout() -> None:
    sampler = TrajectorySampler(SamplerConfig(sim_time=1.0), PlannerLimits())
    traj = sampler.generate_trajectory(Pose2D(0.0, 0.0, 0.0), Velocity2D(0.5, 0.0, 0.0), Velocity2D(0.5, 0.0, 0.0))
    assert traj is not None
    assert len(traj) >= 2
    assert traj.times[0] == 0.0
    assert np.all(np.diff(traj.times) > 0.0)
    assert traj.times[-1] == pytest.approx(1.0)
    end = traj.end_pose()
    assert end.x == pytest.approx(0.5)
    assert abs(end.y) < 1e-12


def test_arc_rollout_heading() -> None:
    sampler = TrajectorySampler(SamplerConfig(sim_time=1.0), PlannerLimits())
    traj = sampler.generate_trajectory(Pose2D(0.0, 0.0, 0.0), Velocity2D(0.4, 0.0, 0.5), Velocity2D(0.4, 0.0, 0.5))
    assert traj is not None
    end = traj.end_pose()
    assert end.theta == pytest.approx(0.5)
    assert end.y > 0.0
    assert math.hypot(end.x, end.y) < 0.4


def test_samples_outside_speed_limits_rejected() -> None:
    sampler = TrajectorySampler(SamplerConfig(), PlannerLimits())
    start = Pose2D(0.0, 0.0, 0.0)
    # Too slow in both translation and rotation
    assert sampler.generate_trajectory(start, Velocity2D(), Velocity2D(0.05, 0.0, 0.1)) is None
    # Faster than max_vel_trans
    assert sampler.generate_trajectory(start, Velocity2D(), Velocity2D(0.55, 0.1, 0.0)) is None
    # Slow translation is fine while rotating fast enough
    assert sampler.generate_trajectory(start, Velocity2D(), Velocity2D(0.05, 0.0, 0.6)) is not None


def test_braking_sample_decelerates_from_current_velocity() -> None:
    limits = PlannerLimits(acc_lim_x=2.5)
    sampler = TrajectorySampler(SamplerConfig(sim_time=1.7), limits)
    traj = sampler.generate_trajectory(Pose2D(0.0, 0.0, 0.0), Velocity2D(0.5, 0.0, 0.0), Velocity2D())
    assert traj is not None
    assert traj.velocity.is_zero()
    end = traj.end_pose()
    # v^2 / 2a = 0.05 m, plus at most one step of discretization slack
    assert 0.0 < end.x < 0.1


def test_degenerate_horizon_raises() -> None:
    with pytest.raises(InvalidConfiguration):
        SamplerConfig(sim_time=0.0)
    with pytest.raises(InvalidConfiguration):
        SamplerConfig(sim_granularity=-0.1)


def test_continued_acceleration_ramps_toward_target() -> None:
    limits = PlannerLimits(acc_lim_x=0.5)
    cfg = SamplerConfig(sim_time=1.0, continued_acceleration=True)
    sampler = TrajectorySampler(cfg, limits)
    traj = sampler.generate_trajectory(Pose2D(0.0, 0.0, 0.0), Velocity2D(), Velocity2D(0.4, 0.0, 0.0))
    assert traj is not None
    # Commanded velocity is the first reachable step, not the target
    assert 0.0 < traj.velocity.vx < 0.4
    # Accelerating at 0.5 m/s^2 from rest covers well under 0.4 m in 1 s
    assert traj.end_pose().x < 0.3


def test_discretize_by_time_fixes_step_count() -> None:
    cfg = SamplerConfig(sim_time=1.0, sim_granularity=0.1, discretize_by_time=True)
    sampler = TrajectorySampler(cfg, PlannerLimits())
    slow = sampler.generate_trajectory(Pose2D(0.0, 0.0, 0.0), Velocity2D(), Velocity2D(0.1, 0.0, 0.0))
    fast = sampler.generate_trajectory(Pose2D(0.0, 0.0, 0.0), Velocity2D(), Velocity2D(0.5, 0.0, 0.0))
    assert len(slow) == len(fast)
    assert slow.time_delta == pytest.approx(0.1)
