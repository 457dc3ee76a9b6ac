import logging

import numpy as np
import pytest

from flocking.state import Agent
from simulation import world

CONFIG = {"neighbor_radius": 100.0, "map_radius": 1000.0, "agent_speed": 10.0}


def make_world(positions, headings=None, speeds=None, **overrides):
    cfg = dict(CONFIG)
    cfg.update(overrides)
    return world.World(
        np.asarray(positions, float),
        None if headings is None else np.asarray(headings, float),
        speeds,
        config=cfg,
    )


def test_world_initialization():
    """Test World initialization."""
    N = 20
    w = make_world(np.zeros((N, 2)))

    assert w.N == N
    assert len(w) == N
    assert w.P.shape == (N, 3)
    assert w.H.shape == (N, 3)
    np.testing.assert_array_equal(w.speed, np.full(N, 10.0))


def test_world_rejects_bad_shapes():
    with pytest.raises(ValueError):
        make_world(np.zeros((3, 4)))
    with pytest.raises(ValueError):
        make_world(np.zeros((3, 2)), headings=np.zeros((2, 2)))
    with pytest.raises(ValueError):
        make_world(np.zeros((3, 2)), speeds=-1.0)


def test_spawn_uses_config():
    w = world.World.spawn({"key": "small", "population_count": 64, "seed": 5})
    assert w.N == 64
    assert np.all(np.linalg.norm(w.P, axis=1) <= w.config.spawn_radius + 1e-9)
    np.testing.assert_allclose(np.linalg.norm(w.H, axis=1), 1.0)

    again = world.World.spawn({"key": "small", "population_count": 64, "seed": 5})
    np.testing.assert_array_equal(w.P, again.P)


def test_spawn_zero_headings_and_square():
    w = world.World.spawn(
        {"population_count": 30, "initial_heading": "zero", "spawn_shape": "square"},
        rng=np.random.default_rng(1),
    )
    assert np.all(w.H == 0.0)
    assert np.all(np.abs(w.P[:, :2]) <= w.config.spawn_radius)


def test_spawn_logs(caplog):
    with caplog.at_level(logging.INFO, logger="simulation.world"):
        world.World.spawn({"population_count": 3})
    assert "Spawned 3 agents" in caplog.text


def test_spawn_clusters():
    w = world.World.spawn(
        {"population_count": 90, "spawn_shape": "clusters", "cluster_count": 3, "seed": 2}
    )
    assert w.N == 90
    assert np.all(w.P[:, 2] == 0.0)
    # Centers lie in the spawn disk; members stay a few spreads away
    spread = w.config.spawn_radius * world.CLUSTER_SPREAD_RATIO
    assert np.all(
        np.linalg.norm(w.P, axis=1) <= w.config.spawn_radius + 6 * spread
    )


def test_agent_access():
    w = make_world([[0.0, 0.0], [5.0, 0.0]], [[1.0, 0.0], [0.0, 1.0]])
    a = w.agent(1)
    np.testing.assert_array_equal(a.position, [5.0, 0.0, 0.0])
    np.testing.assert_array_equal(a.heading, [0.0, 1.0, 0.0])

    # Records are copies
    a.position[0] = 100.0
    assert w.P[1, 0] == 5.0

    w.set_agent(0, Agent(position=np.array([2.0, 3.0]), heading=np.array([0.0, -1.0]), speed=4.0))
    np.testing.assert_array_equal(w.P[0], [2.0, 3.0, 0.0])
    np.testing.assert_array_equal(w.H[0], [0.0, -1.0, 0.0])
    assert w.speed[0] == 4.0
    assert len(w.agents()) == 2


def test_set_agent_rejects_negative_speed_untouched():
    w = make_world([[0.0, 0.0], [5.0, 0.0]], [[1.0, 0.0], [0.0, 1.0]])
    P, H, speed = w.P.copy(), w.H.copy(), w.speed.copy()
    with pytest.raises(ValueError):
        w.set_agent(
            0, Agent(position=np.array([5.0, 5.0]), heading=np.array([0.0, 1.0]), speed=-1.0)
        )
    np.testing.assert_array_equal(w.P, P)
    np.testing.assert_array_equal(w.H, H)
    np.testing.assert_array_equal(w.speed, speed)


# -----------------------------------------------------------------------------
# Heading Update
# -----------------------------------------------------------------------------


def test_heading_is_sum_of_forces():
    """New heading = separation + alignment + cohesion, unnormalized."""
    positions = [[0.0, 0.0], [0.0, 1.0], [1.0, 0.0]]
    headings = [[2.0, 0.0], [2.0, 0.0], [2.0, 0.0]]
    w = make_world(positions, headings)

    frame = w.update_headings(collect_debug=True)

    # Agent 0: separation (-1,-1), cohesion (0.5,0.5), alignment 3 * (1,0)
    np.testing.assert_allclose(frame.separation[0], [-1.0, -1.0, 0.0])
    np.testing.assert_allclose(frame.cohesion[0], [0.5, 0.5, 0.0])
    np.testing.assert_allclose(frame.alignment[0], [3.0, 0.0, 0.0])
    np.testing.assert_allclose(w.H[0], [2.5, -0.5, 0.0])
    assert frame.neighbor_counts.tolist() == [2, 2, 2]


def test_isolated_agent_keeps_heading():
    """Without neighbors the heading is left unchanged."""
    w = make_world([[0.0, 0.0], [500.0, 0.0]], [[0.0, 3.0], [1.0, 1.0]])
    w.update_headings()
    np.testing.assert_array_equal(w.H, [[0.0, 3.0, 0.0], [1.0, 1.0, 0.0]])


def test_zero_steering_sum_keeps_previous_heading(caplog):
    """A zero steering sum is rejected instead of stored."""
    # One neighbor: separation and cohesion cancel; zero headings give no alignment
    w = make_world([[0.0, 0.0], [10.0, 0.0]])
    with caplog.at_level(logging.DEBUG, logger="simulation.world"):
        w.step(0.1)

    np.testing.assert_array_equal(w.H, np.zeros((2, 3)))
    np.testing.assert_array_equal(w.P, [[0.0, 0.0, 0.0], [10.0, 0.0, 0.0]])
    assert np.isfinite(w.P).all()
    assert "zero steering sum" in caplog.text


def test_boundary_override_precedence():
    """Agents beyond map_radius head straight back to the origin."""
    positions = [[1500.0, 0.0], [1510.0, 0.0], [0.0, -2000.0], [3.0, 4.0]]
    headings = [[1.0, 0.0], [1.0, 0.0], [0.0, -1.0], [0.0, 1.0]]
    w = make_world(positions, headings)

    frame = w.update_headings(collect_debug=True)

    np.testing.assert_allclose(w.H[0], [-1.0, 0.0, 0.0])
    np.testing.assert_allclose(w.H[1], [-1.0, 0.0, 0.0])
    np.testing.assert_allclose(w.H[2], [0.0, 1.0, 0.0])
    assert frame.boundary_override.tolist() == [True, True, True, False]
    # Flocking was still computed for the debug channel
    assert frame.neighbor_counts[0] == 1


def test_boundary_return_bias():
    w = make_world([[0.0, 2000.0]], [[1.0, 0.0]], return_bias=3.0)
    w.update_headings()
    np.testing.assert_allclose(w.H[0], [0.0, -3.0, 0.0])


def test_alignment_scope():
    """Global alignment sees every heading; neighbor alignment only nearby ones."""
    positions = [[0.0, 0.0], [10.0, 0.0], [500.0, 0.0]]
    headings = [[0.0, 0.0], [0.0, 1.0], [1.0, 0.0]]

    w_global = make_world(positions, headings, alignment_scope="global")
    w_global.update_headings()
    np.testing.assert_allclose(w_global.H[0], [1.0, 1.0, 0.0])

    w_local = make_world(positions, headings, alignment_scope="neighbors")
    w_local.update_headings()
    np.testing.assert_allclose(w_local.H[0], [0.0, 1.0, 0.0])

    # The far agent has no neighbors either way
    np.testing.assert_array_equal(w_local.H[2], [1.0, 0.0, 0.0])


def test_order_independence():
    """Any processing order yields the same headings."""
    base = world.World.spawn({"key": "small", "population_count": 80, "seed": 11})
    expected = base.get_state()
    base.update_headings()

    rng = np.random.default_rng(0)
    for _ in range(3):
        w = world.World(expected.positions, expected.headings, config=base.config)
        w.update_headings(order=rng.permutation(w.N))
        np.testing.assert_array_equal(w.H, base.H)


def test_invalid_order():
    w = make_world(np.zeros((3, 2)))
    with pytest.raises(ValueError):
        w.update_headings(order=[0, 0, 1])
    with pytest.raises(ValueError):
        w.update_headings(order=[0, 1])


def test_numba_and_numpy_worlds_agree():
    a = world.World.spawn({"key": "small", "population_count": 60, "use_numba": True})
    b = world.World.spawn({"key": "small", "population_count": 60, "use_numba": False})
    for _ in range(5):
        a.step(0.05)
        b.step(0.05)
    np.testing.assert_allclose(a.P, b.P)
    np.testing.assert_allclose(a.H, b.H)


# -----------------------------------------------------------------------------
# Motion Integration
# -----------------------------------------------------------------------------


def test_integrate_moves_along_normalized_heading():
    w = make_world([[0.0, 0.0]], [[3.0, 4.0]], speeds=10.0)
    w.integrate(0.5)
    np.testing.assert_allclose(w.P[0], [3.0, 4.0, 0.0])


def test_integrate_is_planar():
    """The z component of a heading never moves an agent."""
    w = make_world(np.array([[0.0, 0.0, 0.0]]), np.array([[3.0, 0.0, 4.0]]), speeds=5.0)
    w.integrate(1.0)
    np.testing.assert_allclose(w.P[0], [3.0, 0.0, 0.0])


def test_integrate_zero_dt_is_identity():
    w = world.World.spawn({"key": "small", "population_count": 40})
    before = w.P.copy()
    w.step(0.0)
    np.testing.assert_array_equal(w.P, before)
    assert w.ticks == 1


def test_integrate_zero_heading_does_not_move():
    w = make_world([[1.0, 1.0], [2.0, 2.0]], [[0.0, 0.0], [1.0, 0.0]], speeds=1.0)
    w.integrate(1.0)
    np.testing.assert_allclose(w.P, [[1.0, 1.0, 0.0], [3.0, 2.0, 0.0]])


def test_integrate_rejects_bad_dt():
    w = make_world([[0.0, 0.0]], [[1.0, 0.0]])
    with pytest.raises(ValueError):
        w.integrate(-0.1)
    with pytest.raises(ValueError):
        w.integrate(float("nan"))


def test_non_finite_positions_are_reset(caplog):
    w = make_world([[0.0, 0.0], [1.0, 0.0]], [[1.0, 0.0], [1.0, 0.0]])
    w.P[1, 0] = np.nan
    with caplog.at_level(logging.WARNING, logger="simulation.world"):
        w.integrate(0.1)
    np.testing.assert_array_equal(w.P[1], np.zeros(3))
    np.testing.assert_array_equal(w.H[1], np.zeros(3))
    assert "non-finite" in caplog.text


# -----------------------------------------------------------------------------
# Stepping
# -----------------------------------------------------------------------------


def test_step_advances_clock_and_keeps_population():
    w = world.World.spawn({"key": "small", "population_count": 50})
    for _ in range(10):
        world.tick(w, 0.1)
    assert w.N == 50
    assert w.get_state().population == 50
    assert w.ticks == 10
    assert w.t == pytest.approx(1.0)


@pytest.mark.parametrize("dt", [-0.1, float("nan"), float("inf")])
def test_step_rejects_bad_dt_untouched(dt):
    w = make_world([[0.0, 0.0], [0.0, 1.0]], [[0.0, 1.0], [0.0, 1.0]])
    P, H = w.P.copy(), w.H.copy()
    with pytest.raises(ValueError):
        w.step(dt)
    np.testing.assert_array_equal(w.P, P)
    np.testing.assert_array_equal(w.H, H)
    assert w.t == 0.0
    assert w.ticks == 0


def test_step_returns_debug_frame():
    w = world.World.spawn({"key": "small", "population_count": 20})
    frame = w.step(0.1, collect_debug=True)
    assert frame is not None
    assert frame is w.last_debug
    assert frame.separation.shape == (20, 3)
    assert w.step(0.1) is None


def test_debug_frame_keeps_pre_update_headings():
    positions = [[0.0, 0.0], [0.0, 1.0], [1.0, 0.0]]
    headings = [[2.0, 0.0], [0.0, 2.0], [1.0, 1.0]]
    w = make_world(positions, headings)
    frame = w.step(0.1, collect_debug=True)
    np.testing.assert_array_equal(frame.headings[:, :2], headings)
    assert not np.array_equal(w.H, frame.headings)


def test_pause():
    w = world.World.spawn({"key": "small", "population_count": 10})
    before = w.P.copy()
    w.pause()
    w.step(1.0)
    np.testing.assert_array_equal(w.P, before)
    assert w.ticks == 0

    w.pause()
    w.step(1.0)
    assert w.ticks == 1


def test_debug_does_not_change_results():
    a = world.World.spawn({"key": "small", "population_count": 40})
    b = world.World.spawn({"key": "small", "population_count": 40})
    for _ in range(5):
        a.step(0.1, collect_debug=True)
        b.step(0.1)
    np.testing.assert_array_equal(a.P, b.P)
    np.testing.assert_array_equal(a.H, b.H)
    assert a.last_debug is not None
    assert b.last_debug is None


def test_empty_world():
    w = make_world(np.zeros((0, 2)))
    w.step(0.1)
    assert w.N == 0
    assert w.get_state().positions.shape == (0, 3)
