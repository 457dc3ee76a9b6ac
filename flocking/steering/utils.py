"""
Steering Utilities

This module provides the vector helpers shared by the steering calculators and
the world step: guarded normalization and the debug pointer geometry used by
visualization hosts.
"""

from __future__ import annotations

import numpy as np

# -----------------------------------------------------------------------------
# Constants
# -----------------------------------------------------------------------------

EPSILON = 1e-12

# -----------------------------------------------------------------------------
# Vector Operations
# -----------------------------------------------------------------------------


def is_degenerate(v: np.ndarray, eps: float = EPSILON) -> bool:
    """True if `v` is too short to define a direction."""
    return bool(np.dot(v, v) <= eps * eps)


def safe_normalize(v: np.ndarray) -> np.ndarray | None:
    """
    Normalize `v` exactly (no epsilon bias), or return None if it is degenerate.

    Callers decide what a missing direction means for them; nothing here ever
    divides by zero.
    """
    length = np.linalg.norm(v)
    if length <= EPSILON:
        return None
    return v / length


def row_lengths(M: np.ndarray) -> np.ndarray:
    """Euclidean length of every row of an (n, d) array."""
    return np.sqrt(np.sum(M * M, axis=1))


# -----------------------------------------------------------------------------
# Debug Geometry
# -----------------------------------------------------------------------------


def pointer_segment(
    position: np.ndarray, vector: np.ndarray, length: float = 50.0
) -> np.ndarray | None:
    """
    Planar line segment from `position` along `vector`, scaled to `length`.

    Args:
        position: Start point (only x and y are used).
        vector: Direction to draw (only x and y are used).
        length: Drawn length in world units.

    Returns:
        (2, 2) array [[x0, y0], [x1, y1]], or None for a zero vector.
    """
    start = np.asarray(position, float)[:2]
    direction = safe_normalize(np.asarray(vector, float)[:2])
    if direction is None:
        return None
    return np.stack([start, start + direction * length])
