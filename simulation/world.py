"""
World Simulation

This module defines the `World` class, which owns the flock as contiguous NumPy
arrays and advances it one tick at a time: a heading pass over a frozen
snapshot (separation + alignment + cohesion, with boundary containment),
followed by motion integration.
"""

from __future__ import annotations

import logging

import numpy as np

from flocking.config import FlockConfig, build_config
from flocking.state import Agent, DebugFrame, FlockState, TickSnapshot
from flocking.steering.forces import alignment, cohesion, neighbor_indices, separation
from flocking.steering.utils import EPSILON, is_degenerate, row_lengths
from simulation import scenarios

logger = logging.getLogger(__name__)

# Cluster standard deviation as a fraction of the spawn radius
CLUSTER_SPREAD_RATIO = 0.1


# -----------------------------------------------------------------------------
# Helpers
# -----------------------------------------------------------------------------


def _as_planar3(xy: np.ndarray, name: str) -> np.ndarray:
    """Return a contiguous float (N, 3) copy; (N, 2) input gets z = 0."""
    M = np.asarray(xy, dtype=np.float64)
    if M.ndim != 2 or M.shape[1] not in (2, 3):
        raise ValueError(f"{name} must have shape (N, 2) or (N, 3), got {M.shape}")
    if M.shape[1] == 2:
        M = np.column_stack([M, np.zeros(M.shape[0])])
    return np.ascontiguousarray(M, dtype=np.float64).copy()


def _check_dt(dt: float) -> float:
    dt = float(dt)
    if not np.isfinite(dt) or dt < 0.0:
        raise ValueError(f"dt must be finite and >= 0, got {dt}")
    return dt


# -----------------------------------------------------------------------------
# World Class
# -----------------------------------------------------------------------------


class World:
    """
    A fixed population of boids on a plane.

    Agent `i` is row `i` of `P` (positions), `H` (headings) and `speed` for the
    whole life of the world; agents are never added or removed.
    """

    def __init__(
        self,
        positions: np.ndarray,
        headings: np.ndarray | None = None,
        speeds: float | np.ndarray | None = None,
        *,
        config: FlockConfig | dict | str | None = None,
    ):
        self.config = build_config(config)

        self.P = _as_planar3(positions, "positions")  # shape (N, 3)
        self.N = self.P.shape[0]

        if headings is None:
            self.H = np.zeros((self.N, 3), dtype=np.float64)
        else:
            self.H = _as_planar3(headings, "headings")
            if self.H.shape[0] != self.N:
                raise ValueError(
                    f"Expected {self.N} headings, got {self.H.shape[0]}"
                )

        if speeds is None:
            speeds = self.config.agent_speed
        self.speed = np.array(
            np.broadcast_to(np.asarray(speeds, dtype=np.float64), (self.N,))
        )
        if np.any(self.speed < 0):
            raise ValueError("Agent speeds must be non-negative")

        # Simulation clock
        self.t = 0.0
        self.ticks = 0
        self.paused = False

        # Latest debug frame, only filled when requested
        self.last_debug: DebugFrame | None = None

    @classmethod
    def spawn(
        cls,
        config: FlockConfig | dict | str | None = None,
        rng: np.random.Generator | None = None,
    ) -> World:
        """
        Create `population_count` agents scattered around the origin.

        Randomness comes from `rng`, or from a generator seeded with
        `config.seed` when none is given.
        """
        cfg = build_config(config)
        gen = rng if rng is not None else np.random.default_rng(cfg.seed)
        n = cfg.population_count

        if cfg.spawn_shape == "square":
            positions = scenarios.spawn_square(n, cfg.spawn_radius, rng=gen)
        elif cfg.spawn_shape == "clusters":
            positions = scenarios.spawn_clusters(
                n,
                cfg.cluster_count,
                cfg.spawn_radius,
                spread=cfg.spawn_radius * CLUSTER_SPREAD_RATIO,
                rng=gen,
            )
        else:
            positions = scenarios.spawn_disk(n, cfg.spawn_radius, rng=gen)

        if cfg.initial_heading == "random":
            headings = scenarios.random_headings(n, rng=gen)
        else:
            headings = np.zeros((n, 3))

        logger.info(
            "Spawned %d agents (%s, radius=%.1f, headings=%s)",
            n,
            cfg.spawn_shape,
            cfg.spawn_radius,
            cfg.initial_heading,
        )
        return cls(positions, headings, config=cfg)

    # -------------------------------------------------------------------------
    # Agent Access
    # -------------------------------------------------------------------------

    def __len__(self) -> int:
        return self.N

    @property
    def num_agents(self) -> int:
        """Get number of agents."""
        return self.N

    def agent(self, i: int) -> Agent:
        """Copy of agent `i` as a record."""
        return Agent(
            position=self.P[i].copy(),
            heading=self.H[i].copy(),
            speed=float(self.speed[i]),
        )

    def agents(self) -> list[Agent]:
        return [self.agent(i) for i in range(self.N)]

    def set_agent(self, i: int, agent: Agent) -> None:
        """Overwrite agent `i` in place (its index does not change)."""
        position = _as_planar3(np.reshape(agent.position, (1, -1)), "position")[0]
        heading = _as_planar3(np.reshape(agent.heading, (1, -1)), "heading")[0]
        if agent.speed < 0:
            raise ValueError("Agent speed must be non-negative")

        self.P[i] = position
        self.H[i] = heading
        self.speed[i] = agent.speed

    def snapshot(self) -> TickSnapshot:
        """Freeze the current positions and headings."""
        return TickSnapshot.capture(self.P, self.H)

    # -------------------------------------------------------------------------
    # Heading Update
    # -------------------------------------------------------------------------

    def _check_order(self, order: np.ndarray | None) -> np.ndarray:
        if order is None:
            return np.arange(self.N)
        order = np.asarray(order, dtype=np.int64)
        if order.shape != (self.N,) or not np.array_equal(
            np.sort(order), np.arange(self.N)
        ):
            raise ValueError("order must be a permutation of the agent indices")
        return order

    def update_headings(
        self, order: np.ndarray | None = None, collect_debug: bool = False
    ) -> DebugFrame | None:
        """
        Recompute every agent's heading from one frozen snapshot.

        Each agent with at least one neighbor gets
        separation + alignment + cohesion (unnormalized). Agents farther than
        `map_radius` from the origin are instead pointed straight back at it,
        whatever flocking would have said. New headings go into a buffer that
        is committed after the pass, so `order` cannot change the result.

        Args:
            order: Optional permutation of agent indices to process in.
            collect_debug: Also return the per-agent steering vectors.

        Returns:
            A DebugFrame when `collect_debug` is set, otherwise None.
        """
        cfg = self.config
        order = self._check_order(order)
        snap = self.snapshot()
        new_H = np.array(snap.headings, copy=True)

        debug = (
            DebugFrame.empty(self.N, cfg.neighbor_radius, cfg.map_radius)
            if collect_debug
            else None
        )
        if debug is not None:
            debug.headings[:] = snap.headings

        radius = cfg.neighbor_radius
        global_alignment = None
        if cfg.alignment_scope == "global":
            global_alignment = alignment(snap.headings)

        dist_to_origin = row_lengths(snap.positions)
        rejected = 0

        for i in order:
            p = snap.positions[i]
            idx = neighbor_indices(
                snap.positions, p, radius, use_numba=cfg.use_numba
            )

            if idx.size > 0:
                rel = snap.positions[idx] - p
                sep = separation(rel, radius)
                coh = cohesion(rel, radius)
                if global_alignment is not None:
                    ali = global_alignment
                else:
                    ali = alignment(snap.headings[idx])

                if debug is not None:
                    debug.separation[i] = sep
                    debug.alignment[i] = ali
                    debug.cohesion[i] = coh
                    debug.neighbor_counts[i] = idx.size

                combined = sep + ali + coh
                if is_degenerate(combined):
                    # Keep the previous heading rather than store a zero one
                    rejected += 1
                else:
                    new_H[i] = combined

            # Boundary containment wins over flocking
            d = dist_to_origin[i]
            if d > cfg.map_radius:
                new_H[i] = -(p / d) * cfg.return_bias
                if debug is not None:
                    debug.boundary_override[i] = True

        if rejected:
            logger.debug(
                "Tick %d: kept previous heading for %d agents with a zero steering sum",
                self.ticks,
                rejected,
            )

        self.H = new_H
        if debug is not None:
            self.last_debug = debug
        return debug

    # -------------------------------------------------------------------------
    # Motion Integration
    # -------------------------------------------------------------------------

    def integrate(self, dt: float) -> None:
        """
        Advance positions along the normalized headings.

        velocity = speed * heading / |heading|; position += velocity * dt.
        Motion stays planar. Agents with a zero heading stay where they are.
        """
        dt = _check_dt(dt)

        lengths = row_lengths(self.H)
        moving = lengths > EPSILON
        if not np.all(moving):
            logger.debug(
                "Tick %d: %d agents have a zero heading and were not moved",
                self.ticks,
                int(np.count_nonzero(~moving)),
            )

        V = np.zeros_like(self.H)
        V[moving] = (
            self.H[moving] / lengths[moving, None] * self.speed[moving, None]
        )
        step = V * dt
        step[:, 2] = 0.0
        self.P += step

        # Safety check for non-finite positions
        bad = ~np.isfinite(self.P).all(axis=1)
        if np.any(bad):
            logger.warning(
                "Tick %d: reset %d agents with non-finite positions to the origin",
                self.ticks,
                int(np.count_nonzero(bad)),
            )
            self.P[bad] = 0.0
            self.H[bad] = 0.0

    # -------------------------------------------------------------------------
    # Public API
    # -------------------------------------------------------------------------

    def step(self, dt: float, collect_debug: bool = False) -> DebugFrame | None:
        """
        Advance the simulation by one tick of `dt` seconds.

        `dt` is checked before anything changes, so a rejected tick leaves the
        world untouched. Returns the tick's DebugFrame when `collect_debug` is
        set, otherwise None.
        """
        dt = _check_dt(dt)
        if self.paused:
            return None

        debug = self.update_headings(collect_debug=collect_debug)
        self.integrate(dt)

        self.t += dt
        self.ticks += 1
        return debug

    def get_state(self) -> FlockState:
        """Get the current simulation state."""
        return FlockState(
            positions=self.P.copy(),
            headings=self.H.copy(),
            speeds=self.speed.copy(),
            t=self.t,
            ticks=self.ticks,
        )

    def pause(self):
        """Toggle simulation pause state."""
        self.paused = not self.paused


def tick(world: World, dt: float) -> None:
    """Host entry point: one heading pass then one integration pass."""
    world.step(dt)
