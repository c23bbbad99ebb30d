# MIT License (see LICENSE)
"""
Per-node stages of the tick pipeline.

This subpackage provides:
    - Force stage: reset_forces, apply_gravity.
    - Integrator: verlet_step (damped Störmer-Verlet).
    - Diagnostics: edge lengths, constraint excess, residual motion.

Typical usage:
    from rope_relax.core import reset_forces, apply_gravity, verlet_step

    reset_forces(b.forces)
    apply_gravity(b.forces, b.fixed_mask, np.array([0.0, -9.81, 0.0]))
    verlet_step(b.positions, b.previous, b.forces, b.fixed_mask, dt=0.02, damping=0.98)
"""
from .forces import reset_forces, apply_gravity
from .integrators import verlet_step
from .invariants import (
    edge_lengths,
    edge_excess,
    max_excess,
    max_displacement,
    kinetic_energy,
)

__all__ = [
    # Forces
    "reset_forces",
    "apply_gravity",
    # Integrators
    "verlet_step",
    # Diagnostics
    "edge_lengths",
    "edge_excess",
    "max_excess",
    "max_displacement",
    "kinetic_energy",
]
