# MIT License (see LICENSE)
"""
Rope-length constraint solving.

This subpackage provides:
    - rope_constraint_pass: Sequential Gauss-Seidel sweep (reference behavior).
    - rope_constraint_pass_jacobi: Order-free sweep with averaged corrections.
    - solve_rope_constraints: Repeat a sweep for a number of iterations.

Typical usage:
    from rope_relax.constraints import solve_rope_constraints

    solve_rope_constraints(buffers.positions, buffers.fixed_mask, buffers.edges, iterations=8)
"""
from .solver import rope_constraint_pass, rope_constraint_pass_jacobi, solve_rope_constraints

__all__ = [
    "rope_constraint_pass",
    "rope_constraint_pass_jacobi",
    "solve_rope_constraints",
]
