import io
import logging
import numpy as np
import pytest
from rope_relax import RelaxationSimulation, ConfigurationError, StaleTopologyError
from rope_relax.consumers import BufferedConsumer, DebugConsumer
from rope_relax.profiler import Profiler


def _pair(**kwargs) -> RelaxationSimulation:
    sim = RelaxationSimulation(gravity=(0, 0, 0), damping=1.0, constraint_iterations=1, **kwargs)
    sim.add_node((0, 0, 0))
    sim.add_node((10, 0, 0))
    sim.add_element(0, 1, rope_length=5.0)
    return sim


def _hanging_chain(n: int = 8, **kwargs) -> RelaxationSimulation:
    """Anchored horizontal chain of n links, each link rope length 1."""
    sim = RelaxationSimulation(**kwargs)
    for i in range(n + 1):
        sim.add_node((float(i), 0.0, 0.0), fixed=(i == 0))
    for i in range(n):
        sim.add_element(i, i + 1, rope_length=1.0)
    sim.setup()
    return sim


class _Collect(logging.Handler):
    def __init__(self):
        super().__init__(logging.DEBUG)
        self.records = []

    def emit(self, record):
        self.records.append(record)


def test_two_node_scenario_free():
    sim = _pair()
    sim.setup()
    assert sim.advance()

    assert np.allclose(sim.node_position(0), [2.5, 0, 0])
    assert np.allclose(sim.node_position(1), [7.5, 0, 0])
    assert sim.edge_lengths()[0] == pytest.approx(5.0)


def test_two_node_scenario_anchor():
    sim = _pair()
    sim.set_fixed(0)
    sim.setup()
    sim.advance()

    assert np.array_equal(sim.node_position(0), [0, 0, 0])
    assert np.allclose(sim.node_position(1), [5, 0, 0])


def test_slack_scenario_holds_still():
    sim = RelaxationSimulation(gravity=(0, 0, 0), damping=1.0, constraint_iterations=10)
    sim.add_node((0, 0, 0))
    sim.add_node((3, 0, 0))
    sim.add_element(0, 1, rope_length=5.0)
    sim.setup()
    sim.run(20)

    assert np.array_equal(sim.node_position(0), [0, 0, 0])
    assert np.array_equal(sim.node_position(1), [3, 0, 0])


def test_verlet_freefall_matches_closed_form():
    """
    With damping 1 and constant g, Verlet from rest gives
      y_n = y0 + g dt² n(n+1)/2
    A long slack rope keeps the tick running without touching the node.
    """
    g, dt, n = -9.81, 0.02, 10
    sim = RelaxationSimulation(gravity=(0, g, 0), time_step=dt, damping=1.0)
    sim.add_node((0, 0, 0), fixed=True)
    sim.add_node((0, 10, 0))
    sim.add_element(0, 1, rope_length=1000.0)
    sim.setup()

    assert sim.run(n) == n

    y_exp = 10.0 + g * dt * dt * n * (n + 1) / 2
    assert sim.node_position(1)[1] == pytest.approx(y_exp, rel=1e-12)
    assert sim.time == pytest.approx(n * dt)


def test_zero_damping_forgets_velocity():
    g, dt, n = -9.81, 0.02, 10
    sim = RelaxationSimulation(gravity=(0, g, 0), time_step=dt, damping=0.0)
    sim.add_node((0, 0, 0), fixed=True)
    sim.add_node((0, 10, 0))
    sim.add_element(0, 1, rope_length=1000.0)
    sim.setup()
    sim.run(n)

    assert sim.node_position(1)[1] == pytest.approx(10.0 + n * g * dt * dt)


def test_gravity_scale():
    sim = RelaxationSimulation(gravity=(0, -10, 0), gravity_scale=0.5, time_step=0.1, damping=1.0)
    sim.add_node((0, 0, 0), fixed=True)
    sim.add_node((0, 10, 0))
    sim.add_element(0, 1, rope_length=1000.0)
    sim.setup()
    sim.advance()

    assert sim.node_position(1)[1] == pytest.approx(10.0 - 0.05)


def test_anchors_never_move():
    sim = _hanging_chain(6, constraint_iterations=4)
    sim.set_fixed(6)  # pin the far end too
    anchors = {0: sim.node_position(0), 6: sim.node_position(6)}

    for _ in range(200):
        sim.advance()
        for i, p in anchors.items():
            assert np.array_equal(sim.node_position(i), p)
    assert np.array_equal(sim.buffers.forces[0], np.zeros(3))


def test_fixed_toggle_applies_without_setup():
    sim = _hanging_chain(2)
    sim.set_fixed(2)
    assert not sim.is_stale

    start = sim.node_position(2)
    sim.run(5)
    assert np.array_equal(sim.node_position(2), start)

    sim.set_fixed(2, False)
    sim.run(5)
    assert sim.node_position(2)[1] < start[1]


def test_hanging_chain_relaxes():
    sim = _hanging_chain(5, damping=0.9, constraint_iterations=20)

    ticks = sim.relax(max_ticks=20000, tolerance=1e-6)

    assert ticks < 20000
    assert sim.max_excess() < 1e-2
    # Hangs straight down below the anchor.
    assert np.allclose(sim.node_position(5), [0.0, -5.0, 0.0], atol=0.05)


def test_single_pendulum_settles_at_bottom():
    sim = RelaxationSimulation(damping=0.9)
    sim.add_node((0, 0, 0), fixed=True)
    sim.add_node((1, 0, 0))
    sim.add_element(0, 1, rope_length=1.0)
    sim.setup()

    sim.relax(max_ticks=5000)

    assert np.allclose(sim.node_position(1), [0.0, -1.0, 0.0], atol=1e-3)


def test_jacobi_scheme_keeps_ropes_bounded():
    sim = _hanging_chain(5, damping=0.9, constraint_iterations=20, constraint_scheme="jacobi")
    sim.run(500)

    assert sim.max_excess() < 0.1
    assert np.all(np.isfinite(sim.positions))


def test_group_length_does_not_touch_buffers_until_setup():
    sim = RelaxationSimulation()
    for i in range(4):
        sim.add_node((float(i), 0, 0))
    e0 = sim.add_element(0, 1, rope_length=1.0)
    e1 = sim.add_element(1, 2, rope_length=1.0)
    e2 = sim.add_element(2, 3, rope_length=1.0)
    g = sim.add_group("left", [e0, e1])
    sim.add_group("right", [e2])
    sim.setup()

    sim.set_group_length(g, 2.5)

    topo = sim.topology
    assert topo.element(e0).rope_length == 2.5
    assert topo.element(e1).rope_length == 2.5
    assert topo.element(e2).rope_length == 1.0
    assert sim.buffers.edges["target"].tolist() == [1.0, 1.0, 1.0]
    assert sim.is_stale

    sim.setup()
    assert sim.buffers.edges["target"].tolist() == [2.5, 2.5, 1.0]
    assert sim.group_edge_indices("left").tolist() == [0, 1]
    assert sim.group_edge_indices(topo.group("right")).tolist() == [2]


def test_sync_groups_picks_up_direct_edits():
    sim = _hanging_chain(3)
    sim.add_group("all", [e.id for e in sim.topology.elements])
    sim.setup()
    assert not sim.sync_groups()

    sim.topology.group("all").group_length = 0.5
    assert sim.sync_groups()

    assert all(e.rope_length == 0.5 for e in sim.topology.elements)
    assert sim.buffers.edges["target"].tolist() == [0.5, 0.5, 0.5]
    assert not sim.is_stale


def test_stale_tick_warns_once_and_uses_old_topology():
    sim = _hanging_chain(2)
    handler = _Collect()
    log = logging.getLogger("rope_relax.simulation")
    log.addHandler(handler)
    try:
        sim.add_node((5, 5, 5))
        sim.add_element(2, 3)
        assert sim.is_stale

        assert sim.advance()
        assert sim.advance()
    finally:
        log.removeHandler(handler)

    warnings = [r for r in handler.records if r.levelno == logging.WARNING]
    assert len(warnings) == 1
    assert sim.buffers.n_nodes == 3
    assert sim.buffers.n_edges == 2


def test_strict_topology_raises_on_stale_tick():
    sim = _hanging_chain(2, strict_topology=True)
    sim.set_group_length(sim.add_group("g", [0]), 2.0)

    with pytest.raises(StaleTopologyError):
        sim.advance()

    sim.setup()
    assert sim.advance()


def test_write_back_updates_authored_positions():
    sim = _hanging_chain(2)
    sim.run(3)

    for i in range(3):
        assert np.array_equal(sim.topology.nodes[i], sim.node_position(i))


def test_positions_view_is_read_only():
    sim = _hanging_chain(2)
    with pytest.raises(ValueError):
        sim.positions[1, 0] = 42.0


def test_consumers_receive_every_tick():
    sim = _hanging_chain(3)
    recorder = BufferedConsumer()
    text = io.StringIO()
    sim.add_consumer(recorder)
    sim.add_consumer(DebugConsumer(output=text))

    sim.run(4)

    assert [f["tick"] for f in recorder.frames] == [1, 2, 3, 4]
    last = recorder.frames[-1]
    assert np.array_equal(last["positions"], sim.positions)
    assert last["segments"].shape == (3, 2, 3)
    assert np.array_equal(last["segments"][0, 1], sim.node_position(1))
    assert recorder.trajectory(3).shape == (4, 3)
    assert "=== Tick 4" in text.getvalue()


def test_buffered_consumer_keeps_recent_frames():
    sim = _hanging_chain(2)
    recorder = BufferedConsumer(max_frames=2)
    sim.add_consumer(recorder)
    sim.run(5)

    assert [f["tick"] for f in recorder.frames] == [4, 5]


def test_profiler_times_each_stage():
    prof = Profiler()
    sim = _hanging_chain(2, profiler=prof)
    sim.run(3)

    summary = prof.stats.summary()
    assert list(summary) == ["forces", "integrate", "constraints", "write_back"]
    for stage in summary:
        assert summary[stage]["n"] == 3


def test_profiler_report_orders_stages_and_shares():
    prof = Profiler()
    with prof.section("setup"):
        sim = _hanging_chain(2, profiler=prof)
    sim.run(2)

    shares = prof.stats.fractions()
    assert list(shares) == ["forces", "integrate", "constraints", "write_back", "setup"]
    assert sum(shares.values()) == pytest.approx(1.0)
    lines = prof.report().splitlines()
    assert len(lines) == 5
    assert lines[0].startswith("forces")
    assert lines[-1].startswith("setup")


@pytest.mark.parametrize("kwargs", [
    {"damping": 1.5},
    {"damping": -0.1},
    {"time_step": 0.0},
    {"constraint_iterations": 0},
    {"constraint_iterations": 2.5},
    {"rope_offset": -1.0},
    {"gravity_scale": -1.0},
    {"gravity": (0.0, -9.81)},
    {"constraint_scheme": "sor"},
])
def test_invalid_configuration_rejected(kwargs):
    with pytest.raises(ConfigurationError):
        RelaxationSimulation(**kwargs)
