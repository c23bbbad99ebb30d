# MIT License (see LICENSE)
"""
Utility functions for vector math and numeric operations.

Vectors are float64 numpy arrays of shape (3,). Batched helpers work on
(N, 3) arrays row by row.
"""
from __future__ import annotations

import numpy as np


def f64(x) -> np.ndarray:
    """
    Convert any array-like to a float64 numpy array.

    Allows tuple/list inputs for positions and gravity.
    """
    return np.array(x, dtype=np.float64)


def vec3(x) -> np.ndarray:
    """Convert an array-like to a float64 vector3, rejecting other shapes."""
    v = f64(x)
    if v.shape != (3,):
        raise ValueError(f"Expected a 3-component vector, got shape {v.shape}")
    return v


def row_norms(v: np.ndarray) -> np.ndarray:
    """Euclidean length of every row of an (N, 3) array."""
    return np.sqrt(np.einsum("ij,ij->i", v, v))


def lerp(a: np.ndarray, b: np.ndarray, t: float) -> np.ndarray:
    """Linear interpolation between two points."""
    return a + (b - a) * t
