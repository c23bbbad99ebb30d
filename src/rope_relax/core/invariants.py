# MIT License (see LICENSE)
"""
Diagnostics for checking a relaxed network.

None of these are used inside a tick. They exist for tests, convergence
checks and debugging: how far each edge is over its target, and how much the
network is still moving.
"""
from __future__ import annotations

import numpy as np

from ..util import row_norms


def edge_lengths(positions: np.ndarray, edges: np.ndarray) -> np.ndarray:
    """Current length of every compiled edge, shape (M,)."""
    if edges.shape[0] == 0:
        return np.zeros(0, dtype=np.float64)
    return row_norms(positions[edges["b"]] - positions[edges["a"]])


def edge_excess(positions: np.ndarray, edges: np.ndarray) -> np.ndarray:
    """
    Stretch beyond target for every edge, clamped at zero.

    A slack rope has zero excess. Per edge: max(0, length - max(0, target)).
    """
    if edges.shape[0] == 0:
        return np.zeros(0, dtype=np.float64)
    target = np.maximum(edges["target"], 0.0)
    return np.maximum(edge_lengths(positions, edges) - target, 0.0)


def max_excess(positions: np.ndarray, edges: np.ndarray) -> float:
    """Largest constraint violation in the network (0 when all ropes hold)."""
    excess = edge_excess(positions, edges)
    return float(excess.max()) if excess.size else 0.0


def max_displacement(positions: np.ndarray, previous: np.ndarray) -> float:
    """
    Largest per-node move over the last tick.

    With Verlet integration this is the inferred speed times dt. It reaches
    zero when the network has relaxed to equilibrium.
    """
    if positions.shape[0] == 0:
        return 0.0
    return float(row_norms(positions - previous).max())


def kinetic_energy(positions: np.ndarray, previous: np.ndarray, dt: float) -> float:
    """
    Kinetic energy estimate of unit-mass nodes from the last displacement.

    T = Σ 0.5 * |x - x_prev|² / dt²
    """
    d = positions - previous
    return float(0.5 * np.einsum("ij,ij->", d, d) / (dt * dt))
