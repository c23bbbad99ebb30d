# MIT License (see LICENSE)
"""
Force stage of the tick pipeline.

Forces are accumulated into the (N, 3) force buffer before integration.
Nodes carry unit mass, so an accumulated force is also the node's
acceleration. Each node's update touches only its own row, so both
functions are written as single vectorized operations over the node axis.
"""
from __future__ import annotations

import numpy as np


def reset_forces(forces: np.ndarray) -> None:
    """Zero every force accumulator in place."""
    forces.fill(0.0)


def apply_gravity(forces: np.ndarray, fixed_mask: np.ndarray, g: np.ndarray) -> None:
    """
    Add a constant gravitational acceleration to every free node.

    Args:
        forces: Force accumulators, shape (N, 3). Modified in place.
        fixed_mask: True for anchored nodes, shape (N,). Anchors get nothing.
        g: Gravity vector [gx, gy, gz], already scaled by the configured
           strength.
    """
    forces[~fixed_mask] += g
