# MIT License (see LICENSE)
"""
State buffers and setup-time compilation.

compile_buffers() is the only place where authored Elements become solver
edge records. It runs once per setup:

    1. Grow the fixed-flag list to the node count (missing = free).
    2. Allocate fresh (N, 3) position / previous / force arrays and an (N,)
       fixed mask.
    3. Seed position and previous with the authored node position, so every
       node starts with zero inferred velocity.
    4. Measure each valid element's rest length, compute its target and emit
       an EDGE_DTYPE record. Elements that reference out-of-range or absent
       nodes, or the same node twice, are skipped. Absent nodes are pinned.
    5. Build the group -> edge index mapping and the write-back index list.

During a tick the solver only touches these arrays, never the Topology.
"""
from __future__ import annotations
from dataclasses import dataclass, field

import numpy as np

from .log import get_logger
from .topology import Topology
from .types import EDGE_DTYPE
from .util import f64

logger = get_logger("rope_relax.buffers")


@dataclass
class StateBuffers:
    """
    Flat per-node and per-edge arrays owned by one simulation.

    Attributes:
        positions: Current node positions, shape (N, 3).
        previous: Positions at the previous tick, shape (N, 3).
        forces: Accumulated force per node, shape (N, 3).
        fixed_mask: True for anchored nodes, shape (N,).
        edges: Compiled edge records (EDGE_DTYPE), shape (M,).
        edge_elements: Element id of each compiled edge, shape (M,).
        group_edges: Group name -> indices into ``edges``.
        present: Indices of nodes that have an authored position; these are
                 the write-back targets.
        revision: Topology revision the buffers were compiled from.
        node_count: Topology node count at compile time.
        element_count: Topology element count at compile time.
        skipped: Number of elements that could not be compiled.
    """
    positions: np.ndarray
    previous: np.ndarray
    forces: np.ndarray
    fixed_mask: np.ndarray
    edges: np.ndarray
    edge_elements: np.ndarray
    group_edges: dict[str, np.ndarray] = field(default_factory=dict)
    present: np.ndarray = field(default_factory=lambda: np.zeros(0, dtype=np.int64))
    revision: int = 0
    node_count: int = 0
    element_count: int = 0
    skipped: int = 0

    @property
    def n_nodes(self) -> int:
        return self.positions.shape[0]

    @property
    def n_edges(self) -> int:
        return self.edges.shape[0]

    @property
    def absent_mask(self) -> np.ndarray:
        """True for placeholder nodes that have no authored position."""
        mask = np.ones(self.n_nodes, dtype=bool)
        mask[self.present] = False
        return mask

    def refresh_fixed_mask(self, fixed: list[bool]) -> None:
        """
        Copy the first N authored fixed flags into the mask.

        Absent nodes stay pinned whatever their flag says.
        """
        n = min(self.n_nodes, len(fixed))
        if n:
            self.fixed_mask[:n] = np.asarray(fixed[:n], dtype=bool)
        self.fixed_mask[n:] = False
        self.fixed_mask |= self.absent_mask


def compile_buffers(
    topology: Topology,
    rope_offset: float = 0.0,
    origin=(0.0, 0.0, 0.0),
) -> StateBuffers | None:
    """
    Compile a Topology into fresh StateBuffers.

    Args:
        topology: The authored network. Elements get their rest_length
                  updated as a side effect.
        rope_offset: Length subtracted from every declared rope length.
        origin: Position given to absent (None) nodes.

    Returns:
        New buffers, or None when the topology has no nodes.
    """
    topology.ensure_fixed_length()

    n = topology.node_count
    if n == 0:
        return None

    origin = f64(origin)
    positions = np.empty((n, 3), dtype=np.float64)
    present = []
    for i, p in enumerate(topology.nodes):
        if p is None:
            positions[i] = origin
        else:
            positions[i] = f64(p)
            present.append(i)
    previous = positions.copy()
    forces = np.zeros((n, 3), dtype=np.float64)
    fixed_mask = np.asarray(topology.fixed[:n], dtype=bool).copy()
    # Placeholders are pinned at the origin until they are wired.
    fixed_mask[[i for i in range(n) if topology.nodes[i] is None]] = True

    records = []
    element_ids = []
    edge_of_element: dict[int, int] = {}
    for e in topology.elements:
        if not (topology.is_valid_node(e.node_a) and topology.is_valid_node(e.node_b)):
            logger.debug(f"Skipping element {e.id}: node index out of range ({e.node_a}, {e.node_b})")
            continue
        if e.node_a == e.node_b:
            logger.debug(f"Skipping element {e.id}: both ends on node {e.node_a}")
            continue
        if topology.nodes[e.node_a] is None or topology.nodes[e.node_b] is None:
            logger.debug(f"Skipping element {e.id}: references an absent node")
            continue

        e.rest_length = float(np.linalg.norm(positions[e.node_b] - positions[e.node_a]))
        edge_of_element[e.id] = len(records)
        records.append((e.node_a, e.node_b, e.target_length(rope_offset)))
        element_ids.append(e.id)

    edges = np.array(records, dtype=EDGE_DTYPE)

    group_edges = {}
    for name, group in topology.groups.items():
        idx = [edge_of_element[e.id] for e in group.elements if e.id in edge_of_element]
        group_edges[name] = np.array(idx, dtype=np.int64)

    return StateBuffers(
        positions=positions,
        previous=previous,
        forces=forces,
        fixed_mask=fixed_mask,
        edges=edges,
        edge_elements=np.array(element_ids, dtype=np.int64),
        group_edges=group_edges,
        present=np.array(present, dtype=np.int64),
        revision=topology.revision,
        node_count=n,
        element_count=topology.element_count,
        skipped=topology.element_count - len(records),
    )
