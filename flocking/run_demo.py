"""
Simulation Demo Runner

This script runs a visual demonstration of the flocking simulation. It uses
Matplotlib for real-time rendering of the agents, the map boundary, and
(optionally) the per-agent steering vectors from the debug side channel.
"""

import argparse
import logging
from typing import List

import matplotlib.pyplot as plt
import numpy as np
from matplotlib.collections import LineCollection

from flocking.config import CONFIG_PRESETS, SPAWN_SHAPES, build_config
from flocking.state import DebugFrame
from flocking.steering.utils import pointer_segment
from simulation import world

# -----------------------------------------------------------------------------
# Constants & Configuration
# -----------------------------------------------------------------------------

POINTER_LENGTH = 50.0
DEBUG_COLORS = {
    "heading": "red",
    "separation": "magenta",
    "alignment": "green",
    "cohesion": "tan",
}


# -----------------------------------------------------------------------------
# Renderer Class
# -----------------------------------------------------------------------------


def debug_segments(
    positions: np.ndarray, vectors: np.ndarray, length: float = POINTER_LENGTH
) -> List[np.ndarray]:
    """Pointer segments for every agent with a non-zero vector."""
    segments = []
    for p, v in zip(positions, vectors):
        seg = pointer_segment(p, v, length)
        if seg is not None:
            segments.append(seg)
    return segments


class Renderer:
    """Handles the visualization of the simulation state using Matplotlib."""

    def __init__(self, world_instance: world.World, margin: float = 1.1):
        """Initialize figure, axes, and scatter plots."""
        cfg = world_instance.config
        extent = cfg.map_radius * margin

        plt.ion()
        self.fig, self.ax = plt.subplots(figsize=(7, 7))
        self.ax.set_aspect("equal")
        self.ax.set_xlim(-extent, extent)
        self.ax.set_ylim(-extent, extent)

        # Map boundary
        self.ax.add_patch(
            plt.Circle((0, 0), cfg.map_radius, color="k", fill=False, linestyle="--")
        )

        state = world_instance.get_state()
        self.agents_sc = self.ax.scatter(
            state.positions[:, 0],
            state.positions[:, 1],
            s=max(1.0, cfg.agent_size / 3.0),
            c="turquoise",
        )

        self.pointer_lines = {
            key: LineCollection([], colors=color, linewidths=0.6)
            for key, color in DEBUG_COLORS.items()
        }
        for lines in self.pointer_lines.values():
            self.ax.add_collection(lines)

        # Neighbor radius around the first agent
        self.neighbor_circle = plt.Circle(
            (0, 0), cfg.neighbor_radius, color="b", fill=False
        )
        self.ax.add_patch(self.neighbor_circle)

    def render_world(
        self,
        world_instance: world.World,
        step_number: int,
        debug: DebugFrame | None = None,
    ):
        """Update the plot for the current state of the world."""
        state = world_instance.get_state()
        self.agents_sc.set_offsets(state.positions[:, :2])

        if debug is not None:
            self.pointer_lines["heading"].set_segments(
                debug_segments(state.positions, debug.headings)
            )
            self.pointer_lines["separation"].set_segments(
                debug_segments(state.positions, debug.separation)
            )
            self.pointer_lines["alignment"].set_segments(
                debug_segments(state.positions, debug.alignment)
            )
            self.pointer_lines["cohesion"].set_segments(
                debug_segments(state.positions, debug.cohesion)
            )
            if state.population:
                self.neighbor_circle.center = tuple(state.positions[0, :2])
                self.neighbor_circle.radius = debug.neighbor_radius

        self.ax.set_title(f"Step {step_number}  t={state.t:.2f}s")
        self.fig.canvas.draw_idle()


# -----------------------------------------------------------------------------
# Main Execution
# -----------------------------------------------------------------------------

if __name__ == "__main__":
    p = argparse.ArgumentParser(description="Run flocking simulation demo.")
    p.add_argument(
        "--preset",
        choices=sorted(CONFIG_PRESETS),
        default="small",
        help="Configuration preset",
    )
    p.add_argument("--N", type=int, default=None, help="Number of boids")
    p.add_argument(
        "--spawn",
        choices=list(SPAWN_SHAPES),
        default=None,
        help="Initial boid distribution",
    )
    p.add_argument(
        "--clusters", type=int, default=None, help="# clusters for spawn=clusters"
    )
    p.add_argument("--seed", type=int, default=None, help="Random seed")
    p.add_argument("--steps", type=int, default=2000, help="Max simulation steps")
    p.add_argument("--dt", type=float, default=1 / 30, help="Seconds per tick")
    p.add_argument(
        "--alignment",
        choices=["global", "neighbors"],
        default=None,
        help="Alignment scope override",
    )
    p.add_argument("--debug", action="store_true", help="Draw steering vectors")
    p.add_argument("--verbose", action="store_true", help="Enable debug logging")
    args = p.parse_args()

    logging.basicConfig(level=logging.DEBUG if args.verbose else logging.INFO)

    overrides = {"key": args.preset}
    if args.N is not None:
        overrides["population_count"] = args.N
    if args.seed is not None:
        overrides["seed"] = args.seed
    if args.alignment is not None:
        overrides["alignment_scope"] = args.alignment
    if args.spawn is not None:
        overrides["spawn_shape"] = args.spawn
    if args.clusters is not None:
        overrides["cluster_count"] = args.clusters

    W = world.World.spawn(build_config(overrides))
    renderer = Renderer(W)

    # Main Loop
    for t in range(args.steps):
        debug = W.step(args.dt, collect_debug=args.debug)

        if t % 2 == 0:
            renderer.render_world(W, t, debug)

        plt.pause(0.001)

    plt.ioff()
    plt.show()
