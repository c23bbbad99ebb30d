# MIT License (see LICENSE)
"""
Core type definitions for the rope network.

Defines the authored structures and the compiled record layout:
- Element: a rope-length constraint between two node indices.
- ElementGroup: a named set of Elements sharing one logical rope length.
- EDGE_DTYPE: numpy record layout of a compiled edge (a, b, target).

Nodes have no class of their own. A node is an index into the Topology's
position and fixed-flag lists and, after setup, into the State Buffers.
"""
from __future__ import annotations
from dataclasses import dataclass, field

import numpy as np

from .constants import DEFAULT_ROPE_LENGTH


# Compiled edge record. Built once per setup, read by every constraint pass.
EDGE_DTYPE = np.dtype([
    ("a", np.int64),
    ("b", np.int64),
    ("target", np.float64),
])


@dataclass
class Element:
    """
    A rope segment between two nodes.

    The rope only resists stretching: once compiled, the edge pulls its
    endpoints together when they are farther apart than the target length and
    does nothing when they are closer.

    Attributes:
        node_a: Index of the first node.
        node_b: Index of the second node.
        rope_length: Declared maximum length. Values <= 0 fall back to the
                     rest length measured at setup.
        rest_length: Distance between the endpoints at the last setup.
        id: Identifier assigned by Topology.add_element().
    """
    node_a: int
    node_b: int
    rope_length: float = DEFAULT_ROPE_LENGTH
    rest_length: float = 0.0
    id: int = -1

    def target_length(self, rope_offset: float = 0.0) -> float:
        """
        Binding constraint distance for this element.

        target = max(0, (rope_length if > 0 else rest_length) - rope_offset)
        """
        base = self.rope_length if self.rope_length > 0.0 else self.rest_length
        return max(0.0, base - rope_offset)


@dataclass
class ElementGroup:
    """
    Elements that share one logical rope length.

    Use Topology.set_group_length() to change the length; assigning
    group_length directly is picked up by Topology.sync_group_lengths().

    Attributes:
        name: Unique group name within a topology.
        elements: Member elements (shared with the topology's element list).
        group_length: Rope length propagated to every member.
    """
    name: str
    elements: list[Element] = field(default_factory=list)
    group_length: float = DEFAULT_ROPE_LENGTH

    @property
    def element_ids(self) -> list[int]:
        return [e.id for e in self.elements]
