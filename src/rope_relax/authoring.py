# MIT License (see LICENSE)
"""
Helpers for authoring rope chains.

Turns "connect these two points with a rope" into topology edits: reuse any
node already sitting at a point, insert evenly spaced interior nodes, chain
elements between consecutive nodes and register the chain as one group so
its length can be tuned as a unit.
"""
from __future__ import annotations

import numpy as np

from .constants import NODE_MATCH_TOLERANCE
from .log import get_logger
from .topology import Topology
from .types import ElementGroup
from .util import lerp, vec3

logger = get_logger("rope_relax.authoring")


def find_node_by_position(topology: Topology, position, tolerance: float = NODE_MATCH_TOLERANCE) -> int:
    """
    Index of the first node closer than ``tolerance`` to ``position``.

    Absent nodes are ignored.

    Returns:
        The node index, or -1 if no node matches.
    """
    p = vec3(position)
    for i, q in enumerate(topology.nodes):
        if q is not None and np.linalg.norm(q - p) < tolerance:
            return i
    return -1


def _node_at(topology: Topology, position, fixed: bool, tolerance: float) -> int:
    index = find_node_by_position(topology, position, tolerance)
    if index == -1:
        index = topology.add_node(position, fixed=fixed)
        logger.debug(f"Node added (ID: {index}, Fixed: {fixed})")
    return index


def add_rope_chain(
    topology: Topology,
    start,
    end,
    intersections: int = 1,
    start_fixed: bool = False,
    end_fixed: bool = False,
    name: str | None = None,
    tolerance: float = NODE_MATCH_TOLERANCE,
) -> ElementGroup:
    """
    Connect two points with a chain of rope elements.

    Args:
        topology: Topology to edit.
        start: First endpoint [x, y, z].
        end: Second endpoint [x, y, z].
        intersections: Number of interior nodes, evenly spaced.
        start_fixed: Fixed flag for a newly created start node.
        end_fixed: Fixed flag for a newly created end node.
        name: Group name (defaults to "chain<N>").
        tolerance: Radius within which an existing node is reused.

    Returns:
        The new group holding the chain's elements. Its length is the first
        element's rope length.
    """
    if intersections < 0:
        raise ValueError(f"intersections must be >= 0, got {intersections}")

    a = vec3(start)
    b = vec3(end)

    indices = [_node_at(topology, a, start_fixed, tolerance)]
    for i in range(1, intersections + 1):
        t = i / (intersections + 1)
        indices.append(_node_at(topology, lerp(a, b, t), False, tolerance))
    indices.append(_node_at(topology, b, end_fixed, tolerance))

    element_ids = [topology.add_element(indices[i], indices[i + 1]) for i in range(len(indices) - 1)]

    if name is None:
        k = len(topology.groups)
        while f"chain{k}" in topology.groups:
            k += 1
        name = f"chain{k}"
    group = topology.add_group(name, element_ids)
    logger.info(f"Rope chain '{name}' added: {len(element_ids)} elements, nodes {indices}")
    return group
