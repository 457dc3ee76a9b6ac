"""
Integrity Verification Script

This script performs a smoke test on the codebase to ensure that:
1. All modules can be imported (checking for circular dependencies or syntax errors).
2. The spawn + tick loop runs without errors.
3. Basic logic produces valid (non-NaN) output and keeps the population fixed.

Usage:
    python verify_integrity.py
"""

import sys
import traceback

import numpy as np


def log(msg):
    print(f"[VERIFY] {msg}")


def test_imports():
    log("Testing imports...")
    try:
        import flocking.config  # noqa: F401
        import flocking.state  # noqa: F401
        import flocking.steering  # noqa: F401
        import simulation.scenarios  # noqa: F401
        import simulation.world  # noqa: F401

        log("Imports successful.")
    except ImportError as e:
        log(f"Import failed: {e}")
        traceback.print_exc()
        sys.exit(1)


def test_simulation_loop():
    log("Testing simulation loop...")
    try:
        from simulation.world import World, tick

        w = World.spawn({"key": "small", "seed": 42, "population_count": 100})

        steps = 10
        log(f"Running {steps} simulation steps...")
        for i in range(steps):
            state = w.get_state()

            if np.isnan(state.positions).any():
                raise ValueError(f"NaN detected in positions at step {i}")
            if np.isnan(state.headings).any():
                raise ValueError(f"NaN detected in headings at step {i}")

            tick(w, 1 / 30)

        if w.N != 100:
            raise ValueError(f"Population changed: {w.N}")

        log("Simulation loop completed successfully.")

    except Exception as e:
        log(f"Simulation loop failed: {e}")
        traceback.print_exc()
        sys.exit(1)


if __name__ == "__main__":
    test_imports()
    test_simulation_loop()
    log("ALL CHECKS PASSED.")
