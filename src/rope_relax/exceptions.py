# MIT License (see LICENSE)
"""
Exception hierarchy for rope_relax.

The solver itself degrades anomalies to "skip this unit of work"; these
exceptions cover configuration mistakes and the opt-in strict topology check.
"""


class RopeRelaxError(Exception):
    """Base class for all rope_relax exceptions."""
    pass


class ConfigurationError(RopeRelaxError, ValueError):
    """Raised when a simulation parameter is out of its valid range."""
    pass


class StaleTopologyError(RopeRelaxError, RuntimeError):
    """Raised by a strict simulation when ticking with buffers older than the topology."""
    pass
