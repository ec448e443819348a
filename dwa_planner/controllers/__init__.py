from .base import ControllerState, LocalPlanner
from .dwa import DWAController

__all__ = ["ControllerState", "LocalPlanner", "DWAController"]
