"""
Simulation State Definitions

This module defines the data records that cross the boundary between the world
step and its host: a single agent, the frozen per-tick snapshot, the debug side
channel, and the exported flock state.
"""

from __future__ import annotations

from dataclasses import dataclass, field

import numpy as np

# -----------------------------------------------------------------------------
# Agent Record
# -----------------------------------------------------------------------------


@dataclass
class Agent:
    """
    One boid.

    `heading` is steering state, not a unit vector: only its direction is used
    for motion. The z component of `position` is carried but never simulated.
    """

    position: np.ndarray = field(default_factory=lambda: np.zeros(3))
    heading: np.ndarray = field(default_factory=lambda: np.zeros(3))
    speed: float = 100.0

    def to_dict(self) -> dict:
        return {
            "position": np.asarray(self.position).tolist(),
            "heading": np.asarray(self.heading).tolist(),
            "speed": float(self.speed),
        }


# -----------------------------------------------------------------------------
# Tick Snapshot
# -----------------------------------------------------------------------------


@dataclass(frozen=True)
class TickSnapshot:
    """
    Positions and headings of every agent, copied before any heading changes.

    Lives for exactly one heading pass. The arrays are marked read-only so a
    stray in-place write fails loudly instead of leaking into later agents.
    """

    positions: np.ndarray
    headings: np.ndarray

    @classmethod
    def capture(cls, P: np.ndarray, H: np.ndarray) -> TickSnapshot:
        positions = np.array(P, dtype=np.float64, copy=True)
        headings = np.array(H, dtype=np.float64, copy=True)
        positions.setflags(write=False)
        headings.setflags(write=False)
        return cls(positions=positions, headings=headings)

    def __len__(self) -> int:
        return self.positions.shape[0]


# -----------------------------------------------------------------------------
# Debug Side Channel
# -----------------------------------------------------------------------------


@dataclass
class DebugFrame:
    """
    Intermediate steering vectors from one heading pass, for visualization only.

    Rows are agent indices. Agents without neighbors have zero force rows.
    Nothing in the simulation reads this back.
    """

    # n-by-3 arrays of the per-agent steering contributions
    separation: np.ndarray
    alignment: np.ndarray
    cohesion: np.ndarray

    # n-by-3 headings as they were before this pass
    headings: np.ndarray

    # n-length neighbor count and boundary-override flag per agent
    neighbor_counts: np.ndarray
    boundary_override: np.ndarray

    neighbor_radius: float
    map_radius: float

    @classmethod
    def empty(cls, n: int, neighbor_radius: float, map_radius: float) -> DebugFrame:
        return cls(
            separation=np.zeros((n, 3)),
            alignment=np.zeros((n, 3)),
            cohesion=np.zeros((n, 3)),
            headings=np.zeros((n, 3)),
            neighbor_counts=np.zeros(n, dtype=np.int64),
            boundary_override=np.zeros(n, dtype=bool),
            neighbor_radius=neighbor_radius,
            map_radius=map_radius,
        )

    def to_dict(self) -> dict:
        return {
            "separation": self.separation.tolist(),
            "alignment": self.alignment.tolist(),
            "cohesion": self.cohesion.tolist(),
            "headings": self.headings.tolist(),
            "neighbor_counts": self.neighbor_counts.tolist(),
            "boundary_override": self.boundary_override.tolist(),
            "neighbor_radius": self.neighbor_radius,
            "map_radius": self.map_radius,
        }


# -----------------------------------------------------------------------------
# World State
# -----------------------------------------------------------------------------


@dataclass
class FlockState:
    """
    Snapshot of the whole flock at a given simulation time, for hosts.
    """

    # n-by-3 arrays of positions and headings
    positions: np.ndarray
    headings: np.ndarray

    # n-length array of agent speeds
    speeds: np.ndarray

    # Simulation clock
    t: float
    ticks: int

    @property
    def population(self) -> int:
        return self.positions.shape[0]

    def to_dict(self) -> dict:
        """Convert flock state to a plain dictionary."""
        return {
            "positions": self.positions.tolist(),
            "headings": self.headings.tolist(),
            "speeds": self.speeds.tolist(),
            "t": self.t,
            "ticks": self.ticks,
        }
