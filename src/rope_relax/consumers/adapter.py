# MIT License (see LICENSE)
"""
Position consumers for the write-back stage.

A consumer is anything outside the solver that reads node positions after a
tick: a renderer, a mesh rebuilder, a collider. Consumers receive read-only
arrays indexed exactly like the nodes the authoring side registered, and
never reach into the simulation's buffers.
"""
from __future__ import annotations
from abc import ABC, abstractmethod
from typing import TYPE_CHECKING, TextIO
import sys

import numpy as np

if TYPE_CHECKING:
    from ..simulation import RelaxationSimulation


class PositionConsumer(ABC):
    """
    Abstract base class for write-back targets.

    Subclasses integrate with a concrete backend (line renderer, mesh
    builder, collider bounds, ...).

    Usage:
        consumer.begin_frame(sim.time, sim.tick_count)
        consumer.publish(sim.positions, sim.segments())
        consumer.end_frame()

    Or use the convenience method:
        consumer.consume(sim)
    """

    @abstractmethod
    def begin_frame(self, time: float, tick: int) -> None:
        """
        Begin receiving a new tick.

        Args:
            time: Simulation time after the tick, in seconds.
            tick: Number of completed ticks.
        """
        ...

    @abstractmethod
    def publish(self, positions: np.ndarray, segments: np.ndarray) -> None:
        """
        Receive the final positions of a tick.

        Args:
            positions: Node positions, shape (N, 3), read-only.
            segments: Endpoints of every compiled edge, shape (M, 2, 3).
        """
        ...

    @abstractmethod
    def end_frame(self) -> None:
        """Finalize the current tick."""
        ...

    def consume(self, sim: "RelaxationSimulation") -> None:
        """Push the current state of a simulation through this consumer."""
        self.begin_frame(sim.time, sim.tick_count)
        self.publish(sim.positions, sim.segments())
        self.end_frame()


class DebugConsumer(PositionConsumer):
    """
    Text consumer for development and testing.

    Example output:
        === Tick 3 t=0.0600 ===
        [0] (0.00, 0.00, 0.00)
        [1] (0.71, -0.70, 0.00)
        edge 0: len=1.000
    """

    def __init__(self, output: TextIO | None = None, verbose: bool = True):
        """
        Args:
            output: Output stream (defaults to sys.stdout).
            verbose: If True, also print edge lengths.
        """
        self.output = output or sys.stdout
        self.verbose = verbose

    def begin_frame(self, time: float, tick: int) -> None:
        self.output.write(f"=== Tick {tick} t={time:.4f} ===\n")

    def publish(self, positions: np.ndarray, segments: np.ndarray) -> None:
        for i, p in enumerate(positions):
            self.output.write(f"[{i}] ({p[0]:.2f}, {p[1]:.2f}, {p[2]:.2f})\n")
        if self.verbose:
            for k, seg in enumerate(segments):
                length = float(np.linalg.norm(seg[1] - seg[0]))
                self.output.write(f"edge {k}: len={length:.3f}\n")

    def end_frame(self) -> None:
        self.output.write("\n")
        self.output.flush()


class NullConsumer(PositionConsumer):
    """No-op consumer, for benchmarking the write-back path."""

    def begin_frame(self, time: float, tick: int) -> None:
        pass

    def publish(self, positions: np.ndarray, segments: np.ndarray) -> None:
        pass

    def end_frame(self) -> None:
        pass


class BufferedConsumer(PositionConsumer):
    """
    Records every published tick for playback or export.

    Example:
        recorder = BufferedConsumer()
        sim.add_consumer(recorder)
        sim.run(100)
        for frame in recorder.frames:
            print(frame["tick"], frame["positions"][0])
    """

    def __init__(self, max_frames: int | None = None):
        """
        Args:
            max_frames: Keep only the most recent frames when set.
        """
        self.max_frames = max_frames
        self.frames: list[dict] = []
        self._current_frame: dict | None = None

    def begin_frame(self, time: float, tick: int) -> None:
        self._current_frame = {"time": time, "tick": tick}

    def publish(self, positions: np.ndarray, segments: np.ndarray) -> None:
        if self._current_frame is None:
            return
        # Copies: the published arrays are views into live buffers.
        self._current_frame["positions"] = np.array(positions, dtype=np.float64)
        self._current_frame["segments"] = np.array(segments, dtype=np.float64)

    def end_frame(self) -> None:
        if self._current_frame is not None:
            self.frames.append(self._current_frame)
            self._current_frame = None
            if self.max_frames is not None and len(self.frames) > self.max_frames:
                del self.frames[: len(self.frames) - self.max_frames]

    def trajectory(self, index: int) -> np.ndarray:
        """Recorded positions of one node, shape (frames, 3)."""
        return np.array([f["positions"][index] for f in self.frames], dtype=np.float64)

    def clear(self) -> None:
        self.frames.clear()
