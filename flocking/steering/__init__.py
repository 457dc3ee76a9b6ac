"""
Steering Module

This package contains the per-agent flocking rules: brute-force neighbor
search, the separation/alignment/cohesion calculators, and vector helpers.
"""

from . import utils
from .forces import alignment, cohesion, find_neighbors, neighbor_indices, separation

__all__ = [
    "alignment",
    "cohesion",
    "find_neighbors",
    "neighbor_indices",
    "separation",
    "utils",
]
