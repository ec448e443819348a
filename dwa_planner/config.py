from __future__ import annotations

from dataclasses import dataclass, field, fields
from typing import Any, Dict, List, Optional
import warnings

from .constants import (
    ACC_LIM_THETA_RPS2,
    ACC_LIM_X_MPS2,
    ACC_LIM_Y_MPS2,
    ANGULAR_SIM_GRANULARITY_RAD,
    CHEAT_FACTOR,
    CONTROLLER_FREQUENCY_HZ,
    FORWARD_POINT_DISTANCE_M,
    GOAL_DISTANCE_BIAS,
    MAX_SCALING_FACTOR,
    MAX_VEL_THETA_RPS,
    MAX_VEL_TRANS_MPS,
    MAX_VEL_X_MPS,
    MAX_VEL_Y_MPS,
    MIN_VEL_THETA_RPS,
    MIN_VEL_TRANS_MPS,
    MIN_VEL_X_MPS,
    MIN_VEL_Y_MPS,
    OCCDIST_SCALE,
    OSCILLATION_RESET_ANGLE_RAD,
    OSCILLATION_RESET_DIST_M,
    PATH_DISTANCE_BIAS,
    SCALING_SPEED_MPS,
    SIM_GRANULARITY_M,
    SIM_TIME_S,
    STOP_TIME_BUFFER_S,
    TWIRLING_SCALE,
    VTH_SAMPLES,
    VX_SAMPLES,
    VY_SAMPLES,
)
from .errors import InvalidConfiguration


def _require(cond: bool, msg: str) -> None:
    if not cond:
        raise InvalidConfiguration(msg)


@dataclass(frozen=True)
class PlannerLimits:
    """Velocity and acceleration limits of the base.

    A negative min_vel_trans / min_vel_theta disables that minimum.
    """

    max_vel_trans: float = MAX_VEL_TRANS_MPS
    min_vel_trans: float = MIN_VEL_TRANS_MPS
    max_vel_x: float = MAX_VEL_X_MPS
    min_vel_x: float = MIN_VEL_X_MPS
    max_vel_y: float = MAX_VEL_Y_MPS
    min_vel_y: float = MIN_VEL_Y_MPS
    max_vel_theta: float = MAX_VEL_THETA_RPS
    min_vel_theta: float = MIN_VEL_THETA_RPS
    acc_lim_x: float = ACC_LIM_X_MPS2
    acc_lim_y: float = ACC_LIM_Y_MPS2
    acc_lim_theta: float = ACC_LIM_THETA_RPS2
    prune_plan: bool = True

    def __post_init__(self) -> None:
        _require(self.max_vel_x >= self.min_vel_x, "max_vel_x must be >= min_vel_x")
        _require(self.max_vel_y >= self.min_vel_y, "max_vel_y must be >= min_vel_y")
        _require(self.max_vel_theta >= 0.0, "max_vel_theta must be >= 0")
        for name in ("acc_lim_x", "acc_lim_y", "acc_lim_theta"):
            _require(getattr(self, name) >= 0.0, f"{name} must be >= 0")

    @property
    def acc_limits(self) -> tuple[float, float, float]:
        return (self.acc_lim_x, self.acc_lim_y, self.acc_lim_theta)


@dataclass(frozen=True)
class SamplerConfig:
    sim_time: float = SIM_TIME_S
    sim_granularity: float = SIM_GRANULARITY_M
    angular_sim_granularity: float = ANGULAR_SIM_GRANULARITY_RAD
    vx_samples: int = VX_SAMPLES
    vy_samples: int = VY_SAMPLES
    vth_samples: int = VTH_SAMPLES
    # Dynamic window spans one control period instead of the whole horizon
    use_dwa: bool = False
    sim_period: float = 1.0 / CONTROLLER_FREQUENCY_HZ
    continued_acceleration: bool = False
    discretize_by_time: bool = False

    def __post_init__(self) -> None:
        _require(self.sim_time > 0.0, "sim_time must be > 0")
        _require(self.sim_granularity > 0.0, "sim_granularity must be > 0")
        _require(self.angular_sim_granularity > 0.0, "angular_sim_granularity must be > 0")
        _require(self.sim_period > 0.0, "sim_period must be > 0")
        for name in ("vx_samples", "vy_samples", "vth_samples"):
            n = int(getattr(self, name))
            if n <= 0:
                warnings.warn(
                    f"You've specified that you don't want any samples in the {name[:-8]} dimension. "
                    "We'll at least assume that you want to sample one value... so we're going to set "
                    f"{name} to 1 instead",
                    stacklevel=3,
                )
                n = 1
            object.__setattr__(self, name, n)

    @property
    def samples(self) -> tuple[int, int, int]:
        return (self.vx_samples, self.vy_samples, self.vth_samples)


@dataclass(frozen=True)
class CostWeights:
    """Scoring weights; one instance is captured per planning cycle."""

    path_distance_bias: float = PATH_DISTANCE_BIAS
    goal_distance_bias: float = GOAL_DISTANCE_BIAS
    occdist_scale: float = OCCDIST_SCALE
    twirling_scale: float = TWIRLING_SCALE
    oscillation_reset_dist: float = OSCILLATION_RESET_DIST_M
    oscillation_reset_angle: float = OSCILLATION_RESET_ANGLE_RAD
    forward_point_distance: float = FORWARD_POINT_DISTANCE_M
    stop_time_buffer: float = STOP_TIME_BUFFER_S
    cheat_factor: float = CHEAT_FACTOR
    scaling_speed: float = SCALING_SPEED_MPS
    max_scaling_factor: float = MAX_SCALING_FACTOR

    def __post_init__(self) -> None:
        for f in fields(self):
            _require(getattr(self, f.name) >= 0.0, f"{f.name} must be >= 0")


@dataclass(frozen=True)
class DWAConfig:
    limits: PlannerLimits = field(default_factory=PlannerLimits)
    sampler: SamplerConfig = field(default_factory=SamplerConfig)
    weights: CostWeights = field(default_factory=CostWeights)
    # Obstacle cost aggregation: sum over poses instead of max
    sum_scores: bool = False
    connectivity: int = 4

    def __post_init__(self) -> None:
        _require(self.connectivity in (4, 8), "connectivity must be 4 or 8")

    @classmethod
    def from_dict(cls, cfg: Optional[Dict[str, Any]]) -> "DWAConfig":
        """Build from nested sections or flat keys (flat keys fill gaps in sections)."""
        d = dict(cfg or {})
        sections: Dict[str, Any] = {}
        for name, sub in (("limits", PlannerLimits), ("sampler", SamplerConfig), ("weights", CostWeights)):
            values = dict(d.get(name) or {})
            for f in fields(sub):
                if f.name in d:
                    values.setdefault(f.name, d[f.name])
            try:
                sections[name] = sub(**values)
            except TypeError as exc:
                raise InvalidConfiguration(f"bad '{name}' section: {exc}") from exc
        return cls(
            limits=sections["limits"],
            sampler=sections["sampler"],
            weights=sections["weights"],
            sum_scores=bool(d.get("sum_scores", False)),
            connectivity=int(d.get("connectivity", 4)),
        )

    @classmethod
    def from_yaml(cls, path: str, overrides: Optional[List[str]] = None) -> "DWAConfig":
        """Load from YAML; `overrides` are OmegaConf dotlist entries such as "weights.occdist_scale=0.1"."""
        from .utils.config import load_config_dict

        cfg = load_config_dict(path, overrides)
        # Allow the planner section to live under a top-level 'dwa' key
        return cls.from_dict(cfg.get("dwa", cfg))
