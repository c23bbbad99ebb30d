# MIT License (see LICENSE)
"""
Position-based Verlet integration for the node buffers.

Velocity is never stored. It is inferred from the last two positions:

    v      = (x(t) - x(t-dt)) * damping
    x(t+dt) = x(t) + v + a(t) * dt²

This is the Störmer-Verlet form. ``damping`` in [0, 1] removes a fixed
fraction of the inferred velocity every tick (1.0 = lossless, 0.0 = the node
stops before it is accelerated again). It pairs naturally with position
projection: whatever the constraint solver moves becomes velocity on the next
tick.

Reference:
    https://en.wikipedia.org/wiki/Verlet_integration#Basic_St%C3%B6rmer%E2%80%93Verlet
"""
from __future__ import annotations

import numpy as np


def verlet_step(
    positions: np.ndarray,
    previous: np.ndarray,
    forces: np.ndarray,
    fixed_mask: np.ndarray,
    dt: float,
    damping: float,
) -> None:
    """
    Advance every free node by one step, in place.

    Args:
        positions: Current positions, shape (N, 3). Overwritten with x(t+dt).
        previous: Previous positions, shape (N, 3). Overwritten with x(t).
        forces: Accumulated forces (unit mass), shape (N, 3).
        fixed_mask: True for anchored nodes. Their rows are left untouched.
        dt: Fixed timestep in seconds.
        damping: Fraction of inferred velocity kept, in [0, 1].
    """
    free = ~fixed_mask
    current = positions[free]
    velocity = (current - previous[free]) * damping

    previous[free] = current
    positions[free] = current + velocity + forces[free] * (dt * dt)
