# MIT License (see LICENSE)
"""
The relaxation simulation and its tick pipeline.

RelaxationSimulation acts as the controller around a Topology. It manages:
- Global parameters (damping, timestep, gravity, iterations, rope offset).
- Compilation of the topology into flat State Buffers (setup).
- The fixed-timestep tick (advance), a barrier-separated pipeline:
    1. Force stage: reset accumulators, add gravity to free nodes.
    2. Integration: damped Verlet on free nodes.
    3. Constraint relaxation: ``constraint_iterations`` rope passes.
    4. Write-back: publish positions to the topology and to consumers.

Stages 1, 2 and 4 are data-parallel over nodes and run as vectorized numpy
operations. Stage 3 is sequential in edge order (Gauss-Seidel) unless the
Jacobi scheme is selected.

Structure:
    - User builds a Topology (or uses the delegating add_* helpers).
    - User calls setup() to compile it.
    - An external fixed-timestep clock calls advance() every tick.
    - After topology edits, setup() must run again. Ticking in between uses
      the old buffers; the simulation logs a warning (or raises, when
      ``strict_topology`` is set).
"""
from __future__ import annotations
from contextlib import nullcontext
from dataclasses import dataclass, field

import numpy as np

from .buffers import StateBuffers, compile_buffers
from .constants import (
    CONSTRAINT_SCHEMES,
    DEFAULT_DAMPING,
    DEFAULT_GRAVITY,
    DEFAULT_ROPE_LENGTH,
    DEFAULT_TIME_STEP,
)
from .constraints.solver import solve_rope_constraints
from .consumers.adapter import PositionConsumer
from .core.forces import apply_gravity, reset_forces
from .core.integrators import verlet_step
from .core.invariants import edge_lengths, max_displacement, max_excess
from .exceptions import ConfigurationError, StaleTopologyError
from .log import get_logger
from .profiler import Profiler
from .topology import Topology
from .types import ElementGroup
from .util import f64

logger = get_logger("rope_relax.simulation")


@dataclass
class RelaxationSimulation:
    """
    Rope network solver.

    Attributes:
        topology: Authored nodes, elements and groups.
        damping: Fraction of inferred velocity kept per tick, in [0, 1].
        time_step: Fixed simulation timestep in seconds (> 0).
        gravity: Gravity vector [gx, gy, gz] in m/s².
        gravity_scale: Multiplier applied to ``gravity`` (>= 0).
        constraint_iterations: Relaxation passes per tick (>= 1).
        rope_offset: Length subtracted from every declared rope length (>= 0).
        constraint_scheme: "gauss_seidel" (sequential) or "jacobi".
        origin: Position given to absent nodes at setup.
        strict_topology: Raise StaleTopologyError instead of warning when
                         ticking with buffers older than the topology.
        profiler: Optional Profiler for per-stage timings.
    """
    topology: Topology = field(default_factory=Topology)
    damping: float = DEFAULT_DAMPING
    time_step: float = DEFAULT_TIME_STEP
    gravity: tuple[float, float, float] = DEFAULT_GRAVITY
    gravity_scale: float = 1.0
    constraint_iterations: int = 1
    rope_offset: float = 0.0
    constraint_scheme: str = "gauss_seidel"
    origin: tuple[float, float, float] = (0.0, 0.0, 0.0)
    strict_topology: bool = False
    profiler: Profiler | None = None

    # Runtime state
    consumers: list[PositionConsumer] = field(default_factory=list)
    buffers: StateBuffers | None = field(default=None, init=False)
    time: float = field(default=0.0, init=False)
    tick_count: int = field(default=0, init=False)

    def __post_init__(self) -> None:
        self.validate()
        self._warned_revision: int | None = None

    # -------------------------------------------------------------------------
    # Configuration
    # -------------------------------------------------------------------------

    def validate(self) -> None:
        """
        Check every parameter against its valid range.

        Raises:
            ConfigurationError: On the first invalid parameter.
        """
        if not 0.0 <= self.damping <= 1.0:
            raise ConfigurationError(f"damping must be in [0, 1], got {self.damping}")
        if not self.time_step > 0.0:
            raise ConfigurationError(f"time_step must be positive, got {self.time_step}")
        if int(self.constraint_iterations) != self.constraint_iterations or self.constraint_iterations < 1:
            raise ConfigurationError(
                f"constraint_iterations must be an integer >= 1, got {self.constraint_iterations}"
            )
        if self.rope_offset < 0.0:
            raise ConfigurationError(f"rope_offset must be >= 0, got {self.rope_offset}")
        if self.gravity_scale < 0.0:
            raise ConfigurationError(f"gravity_scale must be >= 0, got {self.gravity_scale}")
        if self.constraint_scheme not in CONSTRAINT_SCHEMES:
            raise ConfigurationError(
                f"constraint_scheme must be one of {CONSTRAINT_SCHEMES}, got '{self.constraint_scheme}'"
            )
        for name in ("gravity", "origin"):
            v = f64(getattr(self, name))
            if v.shape != (3,) or not np.all(np.isfinite(v)):
                raise ConfigurationError(f"{name} must be a finite 3-vector, got {getattr(self, name)}")

    # -------------------------------------------------------------------------
    # Topology delegates
    # -------------------------------------------------------------------------

    def add_node(self, position, fixed: bool = False) -> int:
        """Append a node to the topology. See Topology.add_node()."""
        return self.topology.add_node(position, fixed)

    def add_element(self, node_a: int, node_b: int, rope_length: float = DEFAULT_ROPE_LENGTH) -> int:
        """Append an element to the topology. See Topology.add_element()."""
        return self.topology.add_element(node_a, node_b, rope_length)

    def add_group(self, name: str, element_ids=(), group_length: float | None = None) -> ElementGroup:
        """Register an element group. See Topology.add_group()."""
        return self.topology.add_group(name, element_ids, group_length)

    def set_group_length(self, group: ElementGroup | str, new_length: float) -> None:
        """Propagate a group length to its members. Does not re-run setup."""
        self.topology.set_group_length(group, new_length)

    def set_fixed(self, index: int, flag: bool = True) -> None:
        """Anchor or release a node. Takes effect on the next tick."""
        self.topology.set_fixed(index, flag)

    def add_consumer(self, consumer: PositionConsumer) -> None:
        """Register a write-back consumer."""
        self.consumers.append(consumer)

    def remove_consumer(self, consumer: PositionConsumer) -> None:
        if consumer in self.consumers:
            self.consumers.remove(consumer)

    # -------------------------------------------------------------------------
    # Lifecycle
    # -------------------------------------------------------------------------

    def setup(self) -> bool:
        """
        Compile the topology into fresh buffers.

        Any previous buffers are discarded. Nodes restart at their authored
        positions with zero velocity.

        Returns:
            True if the simulation is ready to tick, False when the topology
            has no nodes (the simulation stays uninitialized).
        """
        self.validate()
        self.buffers = compile_buffers(self.topology, self.rope_offset, self.origin)
        self._warned_revision = None

        if self.buffers is None:
            logger.info("Setup found no nodes; simulation left uninitialized.")
            return False

        b = self.buffers
        logger.info(
            f"Setup compiled {b.n_nodes} nodes, {b.n_edges} edges"
            f" ({b.skipped} elements skipped), {len(b.group_edges)} groups."
        )
        return True

    def release(self) -> None:
        """Drop all buffers. The simulation returns to uninitialized."""
        if self.buffers is not None:
            logger.debug("Releasing simulation buffers.")
        self.buffers = None

    @property
    def is_ready(self) -> bool:
        return self.buffers is not None

    @property
    def is_stale(self) -> bool:
        """True when the topology changed after the last setup."""
        b = self.buffers
        if b is None:
            return False
        t = self.topology
        return (
            t.revision != b.revision
            or t.node_count != b.node_count
            or t.element_count != b.element_count
        )

    def sync_groups(self) -> bool:
        """
        Propagate directly edited group lengths and re-run setup if any changed.

        Returns:
            True if setup was re-run.
        """
        changed = self.topology.sync_group_lengths()
        if not changed:
            return False
        logger.debug(f"Group lengths changed: {[g.name for g in changed]}")
        self.setup()
        return True

    # -------------------------------------------------------------------------
    # Tick pipeline
    # -------------------------------------------------------------------------

    def _stage(self, name: str):
        return self.profiler.section(name) if self.profiler else nullcontext()

    def _check_stale(self) -> None:
        if not self.is_stale:
            return
        revision = self.topology.revision
        if self.strict_topology:
            raise StaleTopologyError(
                f"Topology changed since setup (revision {self.buffers.revision} -> {revision}); call setup()."
            )
        if self._warned_revision != revision:
            logger.warning(
                f"Ticking with stale buffers (topology revision {revision}, compiled {self.buffers.revision});"
                " call setup() to apply topology edits."
            )
            self._warned_revision = revision

    def advance(self, dt: float | None = None) -> bool:
        """
        Run one full tick: forces, integration, constraints, write-back.

        Does nothing when the simulation is uninitialized or the topology has
        no nodes or no elements.

        Args:
            dt: Timestep override in seconds (defaults to ``time_step``).

        Returns:
            True if a tick ran.
        """
        b = self.buffers
        if b is None or b.n_nodes == 0 or self.topology.element_count == 0:
            return False

        self._check_stale()
        dt = float(self.time_step if dt is None else dt)

        # Anchors may be toggled between ticks without a rebuild.
        b.refresh_fixed_mask(self.topology.fixed)

        with self._stage("forces"):
            reset_forces(b.forces)
            apply_gravity(b.forces, b.fixed_mask, f64(self.gravity) * self.gravity_scale)

        with self._stage("integrate"):
            verlet_step(b.positions, b.previous, b.forces, b.fixed_mask, dt, self.damping)

        with self._stage("constraints"):
            solve_rope_constraints(
                b.positions, b.fixed_mask, b.edges,
                iterations=self.constraint_iterations,
                scheme=self.constraint_scheme,
            )

        self.time += dt
        self.tick_count += 1

        with self._stage("write_back"):
            self._write_back()

        return True

    def fixed_update(self) -> bool:
        """Entry point for an external fixed-timestep clock."""
        return self.advance()

    def _write_back(self) -> None:
        """Publish final positions to the owning nodes and to consumers."""
        b = self.buffers
        if b.present.size:
            self.topology.update_positions(b.present, b.positions[b.present])

        if self.consumers:
            positions = self.positions
            segments = self.segments()
            for consumer in self.consumers:
                consumer.begin_frame(self.time, self.tick_count)
                consumer.publish(positions, segments)
                consumer.end_frame()

    def run(self, ticks: int) -> int:
        """
        Advance ``ticks`` times.

        Returns:
            Number of ticks that actually ran.
        """
        done = 0
        for _ in range(ticks):
            if not self.advance():
                break
            done += 1
        return done

    def relax(self, max_ticks: int = 10_000, tolerance: float = 1e-6) -> int:
        """
        Tick until the network comes to rest.

        Stops once no node moved more than ``tolerance`` during a tick.

        Returns:
            Number of ticks run. Equal to ``max_ticks`` if the network did not
            settle.
        """
        for tick in range(1, max_ticks + 1):
            if not self.advance():
                return tick - 1
            if max_displacement(self.buffers.positions, self.buffers.previous) < tolerance:
                logger.info(f"Network relaxed after {tick} ticks (excess {self.max_excess():.3e}).")
                return tick
        logger.warning(f"Network did not relax within {max_ticks} ticks (tolerance {tolerance}).")
        return max_ticks

    # -------------------------------------------------------------------------
    # Outbound state
    # -------------------------------------------------------------------------

    @property
    def positions(self) -> np.ndarray:
        """Read-only view of node positions, shape (N, 3)."""
        if self.buffers is None:
            return np.zeros((0, 3), dtype=np.float64)
        view = self.buffers.positions.view()
        view.flags.writeable = False
        return view

    def node_position(self, index: int) -> np.ndarray:
        """
        Copy of one node's simulated position.

        Raises:
            IndexError: If the index is out of range, including any index
                        before setup() when ``positions`` is empty.
        """
        positions = self.positions
        if not -positions.shape[0] <= index < positions.shape[0]:
            raise IndexError(f"Node {index} has no simulated position ({positions.shape[0]} compiled nodes)")
        return positions[index].copy()

    def segments(self) -> np.ndarray:
        """Endpoints of every compiled edge, shape (M, 2, 3)."""
        b = self.buffers
        if b is None or b.n_edges == 0:
            return np.zeros((0, 2, 3), dtype=np.float64)
        return np.stack([b.positions[b.edges["a"]], b.positions[b.edges["b"]]], axis=1)

    def edge_lengths(self) -> np.ndarray:
        if self.buffers is None:
            return np.zeros(0, dtype=np.float64)
        return edge_lengths(self.buffers.positions, self.buffers.edges)

    def max_excess(self) -> float:
        """Largest stretch of any edge beyond its target."""
        if self.buffers is None:
            return 0.0
        return max_excess(self.buffers.positions, self.buffers.edges)

    def group_edge_indices(self, group: ElementGroup | str) -> np.ndarray:
        """Indices of a group's compiled edges, as built at the last setup."""
        name = group if isinstance(group, str) else group.name
        if self.buffers is None:
            return np.zeros(0, dtype=np.int64)
        return self.buffers.group_edges.get(name, np.zeros(0, dtype=np.int64))
