"""Planar geometry helpers: angles, footprints, grid rasterization and plans."""

from __future__ import annotations

from math import atan2, ceil, cos, pi, sin, sqrt
from typing import List, Tuple

import numpy as np

from ..errors import InvalidConfiguration


def wrap_to_pi(theta: float) -> float:
    """Normalize angle to [-pi, pi)."""
    wrapped = (theta + pi) % (2.0 * pi) - pi
    if wrapped >= pi:
        wrapped -= 2.0 * pi
    return wrapped


def as_plan_array(plan) -> np.ndarray:
    """Normalize a plan (Pose2D sequence or (N,2)/(N,3) array-like) to an (N,3) array."""
    rows = []
    for p in plan:
        if hasattr(p, "x") and hasattr(p, "y"):
            rows.append((float(p.x), float(p.y), float(getattr(p, "theta", 0.0))))
        else:
            vals = [float(v) for v in p]
            if len(vals) not in (2, 3):
                raise InvalidConfiguration("plan poses must have 2 or 3 components")
            rows.append((vals[0], vals[1], vals[2] if len(vals) == 3 else 0.0))
    if not rows:
        raise InvalidConfiguration("plan must contain at least one pose")
    return np.asarray(rows, dtype=float)


def as_footprint_array(footprint) -> np.ndarray:
    pts = np.asarray(footprint, dtype=float)
    if pts.size == 0:
        return np.zeros((0, 2), dtype=float)
    if pts.ndim != 2 or pts.shape[1] != 2:
        raise InvalidConfiguration("footprint must be (N,2)")
    return pts


def oriented_footprint(
    x: float, y: float, theta: float, footprint: np.ndarray, scale: float = 1.0
) -> np.ndarray:
    """Transform a robot-frame footprint to the world frame at pose (x, y, theta)."""
    c = cos(theta)
    s = sin(theta)
    px = footprint[:, 0] * scale
    py = footprint[:, 1] * scale
    return np.stack([x + px * c - py * s, y + px * s + py * c], axis=1)


def line_cells(x0: int, y0: int, x1: int, y1: int) -> List[Tuple[int, int]]:
    """Bresenham rasterization of the segment between two cells, endpoints included."""
    cells = []
    dx = abs(x1 - x0)
    dy = -abs(y1 - y0)
    sx = 1 if x0 < x1 else -1
    sy = 1 if y0 < y1 else -1
    err = dx + dy
    x, y = x0, y0
    while True:
        cells.append((x, y))
        if x == x1 and y == y1:
            break
        e2 = 2 * err
        if e2 >= dy:
            err += dy
            x += sx
        if e2 <= dx:
            err += dx
            y += sy
    return cells


def _points_in_polygon(px: np.ndarray, py: np.ndarray, vertices: np.ndarray) -> np.ndarray:
    inside = np.zeros(px.shape, dtype=bool)
    n = vertices.shape[0]
    j = n - 1
    with np.errstate(divide="ignore", invalid="ignore"):
        for i in range(n):
            xi, yi = vertices[i]
            xj, yj = vertices[j]
            straddles = (yi > py) != (yj > py)
            x_cross = (xj - xi) * (py - yi) / (yj - yi) + xi
            inside ^= straddles & (px < x_cross)
            j = i
    return inside


def footprint_cells(vertices_map: np.ndarray) -> np.ndarray:
    """Cells covered by a polygon given in continuous map coordinates (cell units).

    Covered cells are the rasterized outline plus every cell whose centre lies
    inside the polygon. Returns an (M, 2) int array of (cx, cy).
    """
    corners = np.floor(vertices_map).astype(int)
    n = corners.shape[0]
    outline: List[Tuple[int, int]] = []
    for i in range(n):
        x0, y0 = corners[i]
        x1, y1 = corners[(i + 1) % n]
        outline.extend(line_cells(int(x0), int(y0), int(x1), int(y1)))
    cells = np.asarray(outline, dtype=int).reshape(-1, 2)
    if n >= 3:
        lo = corners.min(axis=0)
        hi = corners.max(axis=0)
        gx, gy = np.meshgrid(np.arange(lo[0], hi[0] + 1), np.arange(lo[1], hi[1] + 1))
        gx = gx.ravel()
        gy = gy.ravel()
        inside = _points_in_polygon(gx + 0.5, gy + 0.5, vertices_map)
        if np.any(inside):
            cells = np.concatenate([cells, np.stack([gx[inside], gy[inside]], axis=1)])
    return np.unique(cells, axis=0)


def adjust_plan_resolution(plan: np.ndarray, resolution: float) -> np.ndarray:
    """Insert interpolated poses so consecutive plan points are at most `resolution` apart."""
    if plan.shape[0] == 0:
        return plan
    out = [plan[0]]
    min_sq = resolution * resolution
    last_x, last_y = plan[0, 0], plan[0, 1]
    for p in plan[1:]:
        loop_x, loop_y = p[0], p[1]
        sq_dist = (loop_x - last_x) ** 2 + (loop_y - last_y) ** 2
        if sq_dist > min_sq:
            steps = int(ceil(sqrt(sq_dist) / resolution))
            dx = (loop_x - last_x) / steps
            dy = (loop_y - last_y) / steps
            for j in range(1, steps):
                out.append(np.array([last_x + j * dx, last_y + j * dy, p[2]]))
        out.append(p)
        last_x, last_y = loop_x, loop_y
    return np.asarray(out, dtype=float)


def prune_plan(x: float, y: float, plan: np.ndarray, distance: float) -> np.ndarray:
    """Drop leading plan poses until the first one within `distance` of (x, y).

    The plan is returned unchanged when no pose is that close.
    """
    d_sq = (plan[:, 0] - x) ** 2 + (plan[:, 1] - y) ** 2
    close = np.flatnonzero(d_sq < distance * distance)
    if close.size == 0:
        return plan
    return plan[int(close[0]):]


def bearing(x0: float, y0: float, x1: float, y1: float) -> float:
    return atan2(y1 - y0, x1 - x0)
