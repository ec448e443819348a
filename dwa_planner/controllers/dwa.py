from __future__ import annotations

from dataclasses import replace
import logging
from math import cos, sin
import threading
from typing import Any, Dict, List, Optional, Tuple, Union

import numpy as np

from ..config import DWAConfig
from ..constants import INSCRIBED_INFLATED_OBSTACLE, PRUNE_DISTANCE_M
from ..critics import (
    INVALID,
    GoalDistanceCost,
    GoalFrontAlignmentCost,
    GoalFrontCost,
    ObstacleCost,
    OscillationCost,
    OscillationState,
    PathDistanceCost,
    TwirlingCost,
)
from ..errors import InvalidConfiguration
from ..maps.costmap import OccupancyGrid
from ..planning import GridPropagationCache, ScoredSamplingPlanner, TrajectorySampler, no_valid_trajectory
from ..types import CellCosts, Pose2D, Trajectory, Velocity2D
from ..utils.geometry import as_footprint_array, as_plan_array, bearing, prune_plan
from .base import ControllerState

logger = logging.getLogger(__name__)


class DWAController:
    """
    Per-cycle facade over the sampling planner.

    The host loop calls update_plan_and_local_costs() then find_best_path()
    once per control cycle. reconfigure() may be called from another thread:
    it only publishes a new DWAConfig snapshot. update_plan_and_local_costs()
    picks it up at the start of a cycle; find_best_path() and
    check_trajectory() keep using that snapshot.

    Critic order: oscillation, obstacle, goal_front, alignment, path, goal,
    twirling.
    """

    def __init__(self, grid: OccupancyGrid, config: Optional[DWAConfig] = None) -> None:
        self.grid = grid
        self._lock = threading.Lock()
        self._config = config or DWAConfig()
        self._cycle_config = self._config
        self.state = ControllerState.IDLE

        conn = self._config.connectivity
        path_cache = GridPropagationCache(conn)
        self.oscillation = OscillationState()
        self.sampler = TrajectorySampler(self._config.sampler, self._config.limits)

        self.oscillation_costs = OscillationCost(self.oscillation)
        self.obstacle_costs = ObstacleCost(grid)
        self.goal_front_costs = GoalFrontCost(grid, GridPropagationCache(conn))
        # Alignment reads the same path field as the path cost
        self.alignment_costs = GoalFrontAlignmentCost(grid, path_cache)
        self.path_costs = PathDistanceCost(grid, path_cache)
        self.goal_costs = GoalDistanceCost(grid, GridPropagationCache(conn))
        self.twirling_costs = TwirlingCost()
        self.planner = ScoredSamplingPlanner(
            [
                self.oscillation_costs,
                self.obstacle_costs,
                self.goal_front_costs,
                self.alignment_costs,
                self.path_costs,
                self.goal_costs,
                self.twirling_costs,
            ]
        )

        self._plan: Optional[np.ndarray] = None
        self.global_plan: Optional[np.ndarray] = None
        self._alignment_enabled = True
        self.last_trajectory: Trajectory = no_valid_trajectory()
        self.keep_explored = False
        self.explored: List[Trajectory] = []
        self._apply(self._config)

    # ------------------------------------------------------------------
    # configuration

    @property
    def config(self) -> DWAConfig:
        with self._lock:
            return self._config

    @property
    def sim_period(self) -> float:
        return self.config.sampler.sim_period

    def reconfigure(self, config: Union[DWAConfig, Dict[str, Any]]) -> None:
        """Publish a new configuration; it takes effect at the start of the next cycle."""
        if not isinstance(config, DWAConfig):
            config = DWAConfig.from_dict(config)
        with self._lock:
            self._config = config
        logger.info("Planner reconfigured")

    def update_weights(self, **changes: float) -> None:
        """Publish a copy of the current configuration with some cost weights changed."""
        with self._lock:
            try:
                weights = replace(self._config.weights, **changes)
            except TypeError as exc:
                raise InvalidConfiguration(str(exc)) from exc
            self._config = replace(self._config, weights=weights)

    def _begin_cycle(self) -> DWAConfig:
        """Take the configuration snapshot used until the next update_plan_and_local_costs()."""
        with self._lock:
            cfg = self._config
        if cfg is not self._cycle_config:
            self._apply(cfg)
        return cfg

    def _apply(self, cfg: DWAConfig) -> None:
        w = cfg.weights
        res = self.grid.resolution
        path_bias = res * w.path_distance_bias
        goal_bias = res * w.goal_distance_bias

        if cfg.connectivity != self.path_costs.cache.connectivity:
            path_cache = GridPropagationCache(cfg.connectivity)
            self.path_costs.cache = path_cache
            self.alignment_costs.cache = path_cache
            self.goal_costs.cache = GridPropagationCache(cfg.connectivity)
            self.goal_front_costs.cache = GridPropagationCache(cfg.connectivity)

        self.path_costs.scale = path_bias
        self.alignment_costs.scale = path_bias if self._alignment_enabled else 0.0
        self.goal_costs.scale = goal_bias
        self.goal_front_costs.scale = goal_bias
        self.goal_front_costs.x_shift = w.forward_point_distance
        self.alignment_costs.x_shift = w.forward_point_distance
        self.obstacle_costs.scale = w.occdist_scale
        self.obstacle_costs.sum_scores = cfg.sum_scores
        self.obstacle_costs.set_params(
            cfg.limits.max_vel_trans, w.max_scaling_factor, w.scaling_speed, w.stop_time_buffer
        )
        self.oscillation.set_reset_limits(w.oscillation_reset_dist, w.oscillation_reset_angle)
        self.oscillation_costs.min_vel_trans = cfg.limits.min_vel_trans
        self.twirling_costs.scale = w.twirling_scale
        self.sampler.set_parameters(cfg.sampler)
        self.sampler.limits = cfg.limits
        self._cycle_config = cfg

    # ------------------------------------------------------------------
    # per-cycle operations

    def set_plan(self, plan) -> None:
        """Store a new global plan and forget oscillation history."""
        plan_arr = as_plan_array(plan)
        self.oscillation.reset()
        self._plan = plan_arr
        self.state = ControllerState.PLAN_SET

    def update_plan_and_local_costs(self, pose, plan=None, footprint=None) -> None:
        """
        Refresh cost-function targets before planning.

        The obstacle cost gets the footprint, the path and goal costs get the
        plan, and the goal-front / alignment costs get a copy of the plan
        adjusted for the robot's current position.
        """
        pose = Pose2D.from_any(pose)
        if plan is None:
            if self._plan is None:
                raise InvalidConfiguration("no plan set")
            plan_arr = self._plan
        else:
            plan_arr = as_plan_array(plan)
        cfg = self._begin_cycle()
        w = cfg.weights

        if cfg.limits.prune_plan:
            plan_arr = prune_plan(pose.x, pose.y, plan_arr, PRUNE_DISTANCE_M)
        self.global_plan = plan_arr
        if footprint is not None:
            self.obstacle_costs.set_footprint(as_footprint_array(footprint))

        self.path_costs.set_target_poses(plan_arr)
        self.goal_costs.set_target_poses(plan_arr)

        gx, gy = float(plan_arr[-1, 0]), float(plan_arr[-1, 1])
        sq_dist = (pose.x - gx) ** 2 + (pose.y - gy) ** 2

        # Draw the robot's nose to the goal: push the goal ahead along the approach bearing
        front_plan = plan_arr.copy()
        angle_to_goal = bearing(pose.x, pose.y, gx, gy)
        front_plan[-1, 0] += w.forward_point_distance * cos(angle_to_goal)
        front_plan[-1, 1] += w.forward_point_distance * sin(angle_to_goal)
        self.goal_front_costs.set_target_poses(front_plan)

        # Near the goal, keeping the nose on the path destabilizes the approach
        fpd = w.forward_point_distance
        self._alignment_enabled = sq_dist > fpd * fpd * w.cheat_factor
        if self._alignment_enabled:
            self.alignment_costs.scale = self.grid.resolution * w.path_distance_bias
            self.alignment_costs.set_target_poses(plan_arr)
        else:
            self.alignment_costs.scale = 0.0
        self.state = ControllerState.SCORING

    def find_best_path(self, pose, velocity) -> Tuple[Trajectory, Velocity2D]:
        """
        Sample, score and select one trajectory.

        Returns (trajectory, command). A negative trajectory cost means no
        valid trajectory exists and the command is zero.
        """
        if self.global_plan is None:
            raise InvalidConfiguration("update_plan_and_local_costs() must run before find_best_path()")
        pose = Pose2D.from_any(pose)
        vel = Velocity2D.from_any(velocity)
        cfg = self._cycle_config

        self.oscillation.reset_if_moved(pose)
        goal = Pose2D.from_any(self.global_plan[-1])
        self.sampler.initialise(pose, vel, goal, cfg.limits, cfg.sampler.samples)
        self.explored = []
        result = self.planner.find_best_trajectory(
            self.sampler, self.explored if self.keep_explored else None
        )
        self.last_trajectory = result

        if result.is_valid:
            self.oscillation.record(pose, result.velocity, cfg.limits.min_vel_trans)
            command = result.velocity
        else:
            logger.debug("No valid trajectory among %d samples", len(self.sampler))
            command = Velocity2D()
        self.state = ControllerState.COMMAND_READY
        return result, command

    def check_trajectory(self, pose, velocity, sample) -> bool:
        """Score a single velocity sample; True if it is legal to execute."""
        if self.global_plan is None:
            raise InvalidConfiguration("update_plan_and_local_costs() must run before check_trajectory()")
        pose = Pose2D.from_any(pose)
        vel = Velocity2D.from_any(velocity)
        sample = Velocity2D.from_any(sample)
        cfg = self._cycle_config

        self.oscillation.reset()
        goal = Pose2D.from_any(self.global_plan[-1])
        self.sampler.initialise(pose, vel, goal, cfg.limits, cfg.sampler.samples)
        traj = self.sampler.generate_trajectory(pose, vel, sample)
        if traj is None:
            logger.warning("Velocity sample %.3f, %.3f, %.3f is outside the limits", sample.vx, sample.vy, sample.vtheta)
            return False
        if not self.planner.prepare():
            return False
        cost, rejected_by = self.planner.score_trajectory(traj, -1.0)
        if cost >= 0.0:
            return True
        logger.warning(
            "Invalid Trajectory %f, %f, %f, cost: %f (rejected by %s)",
            sample.vx,
            sample.vy,
            sample.vtheta,
            cost,
            rejected_by,
        )
        return False

    def get_cell_costs(self, cx: int, cy: int) -> CellCosts:
        """Path, goal, occupancy and weighted total cost of one grid cell."""
        if not self.grid.in_bounds(cx, cy):
            raise InvalidConfiguration(f"cell ({cx}, {cy}) is outside the {self.grid.size_x}x{self.grid.size_y} grid")
        cache = self.path_costs.cache
        shape = self.grid.costs.shape
        if cache.target_dist.shape != shape or self.goal_costs.cache.target_dist.shape != shape:
            raise RuntimeError("get_cell_costs() needs a completed scoring pass")
        cfg = self._cycle_config
        res = self.grid.resolution
        path_cost = self.path_costs.cell_cost(cx, cy)
        goal_cost = self.goal_costs.cell_cost(cx, cy)
        occ_cost = float(self.grid.get_cost(cx, cy))
        if (
            path_cost == cache.obstacle_cost
            or path_cost == cache.unreachable_cost
            or occ_cost >= INSCRIBED_INFLATED_OBSTACLE
        ):
            return CellCosts(path_cost, goal_cost, occ_cost, INVALID, traversable=False)
        total = (
            res * cfg.weights.path_distance_bias * path_cost
            + res * cfg.weights.goal_distance_bias * goal_cost
            + cfg.weights.occdist_scale * occ_cost
        )
        return CellCosts(path_cost, goal_cost, occ_cost, total)

    def shutdown(self) -> None:
        self._plan = None
        self.global_plan = None
        self.oscillation.reset()
        self.state = ControllerState.IDLE
