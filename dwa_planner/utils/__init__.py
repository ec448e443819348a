"""Geometry and configuration helpers shared by the planner modules."""

from .config import load_config_any, load_config_dict
from .geometry import (
    adjust_plan_resolution,
    footprint_cells,
    line_cells,
    oriented_footprint,
    prune_plan,
    wrap_to_pi,
)

__all__ = [
    "load_config_any",
    "load_config_dict",
    "adjust_plan_resolution",
    "footprint_cells",
    "line_cells",
    "oriented_footprint",
    "prune_plan",
    "wrap_to_pi",
]
