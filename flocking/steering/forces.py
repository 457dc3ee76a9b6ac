"""
Steering Forces

Brute-force neighbor discovery and the three classic boids steering
calculators (separation, alignment, cohesion).

All functions work on relative vectors in the agent's own frame and are pure:
they never touch world state, so the heading update can call them against a
frozen snapshot in any order.
"""

from __future__ import annotations

import numpy as np
from numba import njit

from flocking.steering.utils import EPSILON, row_lengths

# -----------------------------------------------------------------------------
# Helpers
# -----------------------------------------------------------------------------


def _as_rows(vectors: np.ndarray, dim: int = 3) -> np.ndarray:
    """Coerce a list/array of vectors into a float (n, dim) array."""
    M = np.asarray(vectors, dtype=np.float64)
    if M.size == 0:
        return np.zeros((0, M.shape[-1] if M.ndim == 2 else dim))
    if M.ndim == 1:
        M = M.reshape(1, -1)
    return M


# -----------------------------------------------------------------------------
# Neighbor Finder
# -----------------------------------------------------------------------------


def neighbor_indices(
    positions: np.ndarray,
    query: np.ndarray,
    radius: float,
    use_numba: bool = False,
) -> np.ndarray:
    """
    Indices of all positions with 0 < |p - query| < radius, in input order.

    The zero-distance test is the only self filter. It is position based, so
    two agents sitting on exactly the same point do not see each other.
    """
    P = np.ascontiguousarray(positions, dtype=np.float64)
    q = np.ascontiguousarray(query, dtype=np.float64)
    if P.shape[0] == 0:
        return np.zeros(0, dtype=np.int64)
    if use_numba:
        return _neighbor_indices_numba(P, q, float(radius))

    d = row_lengths(P - q)
    return np.flatnonzero((d < radius) & (d > 0.0))


def find_neighbors(
    positions: np.ndarray,
    query: np.ndarray,
    radius: float,
    use_numba: bool = False,
) -> np.ndarray:
    """
    Relative vectors (neighbor minus query) to every agent inside `radius`.

    Args:
        positions: (N, d) snapshot of all agent positions.
        query: Position to search around.
        radius: Strict upper bound on the neighbor distance.
        use_numba: Use the compiled scan instead of the NumPy one.

    Returns:
        (k, d) array of relative vectors; k may be 0.
    """
    P = _as_rows(positions)
    q = np.asarray(query, dtype=np.float64)
    idx = neighbor_indices(P, q, radius, use_numba=use_numba)
    return P[idx] - q


@njit(cache=True)
def _neighbor_indices_numba(P: np.ndarray, q: np.ndarray, radius: float) -> np.ndarray:
    """Numba-optimized brute-force radius scan."""
    n = P.shape[0]
    dim = P.shape[1]
    out = np.empty(n, dtype=np.int64)
    count = 0

    for j in range(n):
        d_sq = 0.0
        for k in range(dim):
            diff = P[j, k] - q[k]
            d_sq += diff * diff
        d = np.sqrt(d_sq)
        if d < radius and d > 0.0:
            out[count] = j
            count += 1

    return out[:count]


# -----------------------------------------------------------------------------
# Steering Calculators
# -----------------------------------------------------------------------------


def separation(neighbors: np.ndarray, radius: float) -> np.ndarray:
    """
    Push away from every neighbor still inside `radius`.

    The radius is re-checked against the length of each relative vector even
    though `find_neighbors` already filtered on it. Every neighbor pushes with
    the same weight; there is no distance falloff.

    Returns:
        Negative sum of the kept relative vectors, or the zero vector.
    """
    R = _as_rows(neighbors)
    if R.shape[0] == 0:
        return np.zeros(R.shape[1])

    kept = R[row_lengths(R) < radius]
    return -kept.sum(axis=0)


def alignment(headings: np.ndarray) -> np.ndarray:
    """
    Sum of unit headings.

    Zero-length headings carry no direction and are skipped instead of
    normalized.
    """
    Hs = _as_rows(headings)
    if Hs.shape[0] == 0:
        return np.zeros(Hs.shape[1])

    lengths = row_lengths(Hs)
    keep = lengths > EPSILON
    if not np.any(keep):
        return np.zeros(Hs.shape[1])
    return (Hs[keep] / lengths[keep, None]).sum(axis=0)


def cohesion(neighbors: np.ndarray, radius: float) -> np.ndarray:
    """
    Steer toward the local centroid: mean of the relative vectors inside `radius`.

    Returns the zero vector for an empty neighbor set rather than dividing by
    zero. Like `separation`, the radius is re-checked against each relative
    vector; the mean divides by the full neighbor count.
    """
    R = _as_rows(neighbors)
    if R.shape[0] == 0:
        return np.zeros(R.shape[1])

    kept = R[row_lengths(R) < radius]
    return kept.sum(axis=0) / R.shape[0]
