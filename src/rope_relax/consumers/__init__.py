# MIT License (see LICENSE)
"""
Write-back consumers.

This subpackage provides:
    - PositionConsumer: Abstract base class for anything reading node positions.
    - DebugConsumer: Text output for debugging.
    - NullConsumer: No-op consumer for performance testing.
    - BufferedConsumer: Records ticks for playback or export.

The solver has no rendering dependency; consumers are optional.

Typical usage:
    from rope_relax.consumers import BufferedConsumer

    recorder = BufferedConsumer()
    sim.add_consumer(recorder)
"""
from .adapter import (
    PositionConsumer,
    DebugConsumer,
    NullConsumer,
    BufferedConsumer,
)

__all__ = [
    "PositionConsumer",
    "DebugConsumer",
    "NullConsumer",
    "BufferedConsumer",
]
