import numpy as np
import pytest

from flocking import state


def test_agent_serialization():
    """Test Agent to_dict."""
    a = state.Agent(
        position=np.array([1.0, 2.0, 0.0]), heading=np.array([0.0, 1.0, 0.0]), speed=5.0
    )
    d = a.to_dict()
    assert d["position"] == [1.0, 2.0, 0.0]
    assert d["heading"] == [0.0, 1.0, 0.0]
    assert d["speed"] == 5.0


def test_agent_defaults_are_independent():
    """Each Agent gets its own arrays."""
    a, b = state.Agent(), state.Agent()
    a.position[0] = 3.0
    assert b.position[0] == 0.0


def test_snapshot_is_a_frozen_copy():
    """Snapshots copy their inputs and cannot be written to."""
    P = np.array([[1.0, 2.0, 0.0]])
    H = np.array([[0.0, 1.0, 0.0]])
    snap = state.TickSnapshot.capture(P, H)

    P[0, 0] = 99.0
    assert snap.positions[0, 0] == 1.0
    assert len(snap) == 1

    with pytest.raises(ValueError):
        snap.positions[0, 0] = 5.0
    with pytest.raises(ValueError):
        snap.headings[0, 1] = 5.0


def test_debug_frame_empty():
    frame = state.DebugFrame.empty(4, neighbor_radius=10.0, map_radius=100.0)
    assert frame.separation.shape == (4, 3)
    assert frame.headings.shape == (4, 3)
    assert frame.neighbor_counts.tolist() == [0, 0, 0, 0]
    assert not frame.boundary_override.any()

    d = frame.to_dict()
    assert d["neighbor_radius"] == 10.0
    assert d["map_radius"] == 100.0
    assert len(d["cohesion"]) == 4
    assert len(d["headings"]) == 4


def test_flock_state_serialization():
    """Test full FlockState to_dict."""
    s = state.FlockState(
        positions=np.array([[1.0, 1.0, 0.0], [2.0, 2.0, 0.0]]),
        headings=np.zeros((2, 3)),
        speeds=np.array([1.0, 2.0]),
        t=0.5,
        ticks=3,
    )
    d = s.to_dict()
    assert s.population == 2
    assert len(d["positions"]) == 2
    assert d["speeds"] == [1.0, 2.0]
    assert d["t"] == 0.5
    assert d["ticks"] == 3
