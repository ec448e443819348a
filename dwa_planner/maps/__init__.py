"""Occupancy grid access used by the planner, plus small synthetic scenarios."""

from .costmap import OccupancyGrid
from .scenarios import SCENARIOS, Scenario, ScenarioConfig, create_scenario, rectangle_footprint

__all__ = [
    "OccupancyGrid",
    "SCENARIOS",
    "Scenario",
    "ScenarioConfig",
    "create_scenario",
    "rectangle_footprint",
]
