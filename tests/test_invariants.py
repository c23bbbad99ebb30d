import numpy as np
import pytest
from rope_relax.types import EDGE_DTYPE
from rope_relax.core import (
    apply_gravity,
    reset_forces,
    verlet_step,
    edge_lengths,
    edge_excess,
    max_excess,
    max_displacement,
    kinetic_energy,
)


def test_gravity_skips_fixed_nodes():
    forces = np.ones((3, 3))
    fixed = np.array([False, True, False])

    reset_forces(forces)
    apply_gravity(forces, fixed, np.array([0.0, -9.81, 0.0]))

    assert np.array_equal(forces[1], np.zeros(3))
    assert np.allclose(forces[[0, 2], 1], -9.81)


def test_verlet_leaves_fixed_rows_alone():
    pos = np.array([[0.0, 0.0, 0.0], [1.0, 0.0, 0.0]])
    prev = np.array([[-1.0, 0.0, 0.0], [0.0, 0.0, 0.0]])
    forces = np.array([[0.0, -10.0, 0.0], [0.0, -10.0, 0.0]])
    fixed = np.array([True, False])

    verlet_step(pos, prev, forces, fixed, dt=0.1, damping=0.5)

    assert np.array_equal(pos[0], [0.0, 0.0, 0.0])
    assert np.array_equal(prev[0], [-1.0, 0.0, 0.0])
    # v = (1 - 0) * 0.5, a dt² = -0.1
    assert np.allclose(pos[1], [1.5, -0.1, 0.0])
    assert np.array_equal(prev[1], [1.0, 0.0, 0.0])


def test_edge_measures():
    pos = np.array([[0.0, 0.0, 0.0], [3.0, 4.0, 0.0], [3.0, 4.0, 2.0]])
    edges = np.array([(0, 1, 4.0), (1, 2, 5.0)], dtype=EDGE_DTYPE)

    assert edge_lengths(pos, edges).tolist() == pytest.approx([5.0, 2.0])
    assert edge_excess(pos, edges).tolist() == pytest.approx([1.0, 0.0])
    assert max_excess(pos, edges) == pytest.approx(1.0)
    assert max_excess(pos, np.zeros(0, dtype=EDGE_DTYPE)) == 0.0


def test_motion_measures():
    pos = np.array([[0.0, 0.0, 0.0], [1.0, 0.0, 0.0]])
    prev = np.array([[0.0, 0.0, 0.0], [1.0, -0.2, 0.0]])

    assert max_displacement(pos, prev) == pytest.approx(0.2)
    assert kinetic_energy(pos, prev, dt=0.1) == pytest.approx(0.5 * 4.0)
