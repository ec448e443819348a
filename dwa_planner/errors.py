"""Exceptions raised by the planner."""

from __future__ import annotations


class InvalidConfiguration(ValueError):
    """Raised when a call receives parameters or inputs it cannot plan with.

    The call is rejected before any planner state is modified.
    """
