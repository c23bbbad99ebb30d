# MIT License (see LICENSE)
"""
Default parameters and numeric tolerances for the relaxation solver.

Units are metres and seconds. Nodes carry unit mass, so gravity is applied
directly as an acceleration.
"""
from __future__ import annotations

# Standard gravity pointing down the y axis, in m/s².
DEFAULT_GRAVITY: tuple[float, float, float] = (0.0, -9.81, 0.0)

# Fixed simulation step (seconds). Ticks are driven by an external clock.
DEFAULT_TIME_STEP: float = 0.02

# Fraction of inferred velocity kept per tick. 1.0 = lossless, 0.0 = stationary.
DEFAULT_DAMPING: float = 0.98

# Rope length given to newly authored elements and groups.
DEFAULT_ROPE_LENGTH: float = 1.0

# Edges shorter than this are treated as degenerate and skipped by a pass.
DEGENERATE_EPS: float = 1e-7

# Default radius used when matching authored points to existing nodes.
NODE_MATCH_TOLERANCE: float = 1e-3

CONSTRAINT_SCHEMES: tuple[str, ...] = ("gauss_seidel", "jacobi")
