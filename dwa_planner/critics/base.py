from __future__ import annotations

import abc

from ..types import Trajectory

# Negative scores mark a trajectory invalid; the value says why.
INVALID = -1.0
UNREACHABLE = -2.0
OBSTACLE = -3.0
OFF_MAP = -4.0
OSCILLATION = -5.0
FOOTPRINT_COLLISION = -6.0
NO_VALID_TRAJECTORY = -7.0
NO_FOOTPRINT = -9.0


class CostFunction(abc.ABC):
    """Scores one trajectory: a cost >= 0 or a negative invalidity code.

    The planner multiplies non-zero costs by `scale` and skips functions
    whose scale is 0, unless `always_score` is set: those still run so their
    negative codes can reject a trajectory, they just add nothing.
    """

    name: str = "cost"
    always_score: bool = False

    def __init__(self, scale: float = 1.0) -> None:
        self.scale = float(scale)

    def prepare(self) -> bool:
        """Per-cycle setup before any trajectory is scored."""
        return True

    @abc.abstractmethod
    def score(self, traj: Trajectory) -> float:
        raise NotImplementedError

    def __repr__(self) -> str:
        return f"{type(self).__name__}(scale={self.scale:g})"
