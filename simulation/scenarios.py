"""
Scenario Spawning Functions

This module provides functions to generate initial agent positions around the
world origin: uniform in a disk, uniform in a square, or in Gaussian clusters.
All positions are planar 3-vectors (z = 0).
"""

from typing import Optional

import numpy as np

# -----------------------------------------------------------------------------
# Helpers
# -----------------------------------------------------------------------------


def _planar(x: np.ndarray, y: np.ndarray) -> np.ndarray:
    """Stack x/y coordinates into an (N, 3) array with z = 0."""
    return np.stack([x, y, np.zeros_like(x)], axis=1)


def _rng(seed: int, rng: Optional[np.random.Generator]) -> np.random.Generator:
    return rng if rng is not None else np.random.default_rng(seed)


# -----------------------------------------------------------------------------
# Spawning Functions
# -----------------------------------------------------------------------------


def spawn_disk(
    N: int,
    radius: float,
    seed: int = 0,
    rng: Optional[np.random.Generator] = None,
) -> np.ndarray:
    """
    Generates N points uniformly distributed within a disk around the origin.

    Args:
        N: Number of points.
        radius: Radius of the disk.
        seed: Random seed, used when `rng` is not given.
        rng: Generator to draw from.

    Returns:
        (N, 3) array of point coordinates.
    """
    gen = _rng(seed, rng)

    # sqrt for uniform area distribution
    th = gen.random(N) * 2 * np.pi
    r = radius * np.sqrt(gen.random(N))

    return _planar(r * np.cos(th), r * np.sin(th))


def spawn_square(
    N: int,
    half_width: float,
    seed: int = 0,
    rng: Optional[np.random.Generator] = None,
) -> np.ndarray:
    """
    Generates N points uniformly distributed in [-half_width, half_width]^2.

    Args:
        N: Number of points.
        half_width: Half the side length of the square.
        seed: Random seed, used when `rng` is not given.
        rng: Generator to draw from.

    Returns:
        (N, 3) array of point coordinates.
    """
    gen = _rng(seed, rng)

    x = gen.uniform(-half_width, half_width, N)
    y = gen.uniform(-half_width, half_width, N)

    return _planar(x, y)


def spawn_clusters(
    N: int,
    k: int,
    radius: float,
    spread: float = 10.0,
    seed: int = 0,
    rng: Optional[np.random.Generator] = None,
) -> np.ndarray:
    """
    Generates N points distributed in k Gaussian clusters.

    Cluster centers are drawn uniformly from a disk of `radius`.

    Args:
        N: Total number of points.
        k: Number of clusters.
        radius: Radius of the disk the centers are drawn from.
        spread: Standard deviation of the clusters.
        seed: Random seed, used when `rng` is not given.
        rng: Generator to draw from.

    Returns:
        (N, 3) array of point coordinates.
    """
    if k < 1:
        raise ValueError(f"k must be >= 1, got {k}")

    gen = _rng(seed, rng)
    centers = spawn_disk(k, radius, rng=gen)[:, :2]

    base = N // k
    extras = N - base * k

    # Distribute points among clusters
    sizes = [base + (1 if i < extras else 0) for i in range(k)]

    pts = []
    for i, c in enumerate(centers):
        pts.append(c + gen.normal(scale=spread, size=(sizes[i], 2)))

    xy = np.vstack(pts) if pts else np.zeros((0, 2))
    return _planar(xy[:, 0], xy[:, 1])


def random_headings(
    N: int, seed: int = 0, rng: Optional[np.random.Generator] = None
) -> np.ndarray:
    """(N, 3) planar unit vectors with uniformly random direction."""
    gen = _rng(seed, rng)
    th = gen.random(N) * 2 * np.pi
    return _planar(np.cos(th), np.sin(th))
