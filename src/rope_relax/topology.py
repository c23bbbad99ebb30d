# MIT License (see LICENSE)
"""
Topology store: the authored structure of a rope network.

The Topology holds nodes (authored positions), fixed flags, elements and
element groups. It owns no physics state. External tooling edits it
incrementally, then the simulation compiles it into flat buffers with
setup(). Edits made after setup are not seen by the solver until setup runs
again; the ``revision`` counter lets the simulation notice that.

Structure:
    - Nodes and fixed flags grow by explicit append (no deduplication).
    - Element ids are assigned monotonically and never reused.
    - Index validation is deferred to setup (edit-then-commit workflow).
"""
from __future__ import annotations

import numpy as np

from .constants import DEFAULT_ROPE_LENGTH
from .types import Element, ElementGroup
from .util import vec3


class Topology:
    """
    Authored nodes, elements and groups of a rope network.

    Attributes:
        nodes: Authored position per node, or None for an absent placeholder.
        fixed: Fixed flag per node. May be shorter than ``nodes``; missing
               entries are free.
        elements: Elements in insertion order.
        groups: Groups keyed by name, in insertion order.
        revision: Incremented on every edit that changes what setup compiles.
    """

    def __init__(self) -> None:
        self.nodes: list[np.ndarray | None] = []
        self.fixed: list[bool] = []
        self.elements: list[Element] = []
        self.groups: dict[str, ElementGroup] = {}
        self.revision = 0
        self._next_element_id = 0
        self._synced_lengths: dict[str, float] = {}

    # -------------------------------------------------------------------------
    # Nodes
    # -------------------------------------------------------------------------

    @property
    def node_count(self) -> int:
        return len(self.nodes)

    @property
    def element_count(self) -> int:
        return len(self.elements)

    def add_node(self, position, fixed: bool = False) -> int:
        """
        Append a node and its fixed flag.

        Args:
            position: Authored position [x, y, z], or None for a placeholder
                      that elements may reference but never bind to.
            fixed: Anchor flag. Fixed nodes are never moved by the solver.

        Returns:
            Index of the new node.
        """
        self.nodes.append(None if position is None else vec3(position))
        index = len(self.nodes) - 1
        self.set_fixed(index, fixed)
        self.revision += 1
        return index

    def move_node(self, index: int, position) -> None:
        """Replace the authored position of an existing node."""
        self.nodes[index] = None if position is None else vec3(position)
        self.revision += 1

    def set_fixed(self, index: int, flag: bool = True) -> None:
        """
        Set a node's fixed flag, growing the flag list with free entries.

        The simulation refreshes its fixed mask at the start of every tick, so
        this takes effect without a new setup.
        """
        while len(self.fixed) <= index:
            self.fixed.append(False)
        self.fixed[index] = bool(flag)

    def is_fixed(self, index: int) -> bool:
        return index < len(self.fixed) and self.fixed[index]

    def ensure_fixed_length(self) -> None:
        """Grow the fixed-flag list to the node count; new entries are free."""
        while len(self.fixed) < len(self.nodes):
            self.fixed.append(False)

    def is_valid_node(self, index: int) -> bool:
        return 0 <= index < len(self.nodes)

    def update_positions(self, indices: np.ndarray, positions: np.ndarray) -> None:
        """
        Write simulated positions back onto authored nodes.

        Used by the simulation's write-back stage. Not counted as an edit.
        """
        for i, p in zip(indices.tolist(), positions):
            self.nodes[i] = np.array(p, dtype=np.float64)

    # -------------------------------------------------------------------------
    # Elements
    # -------------------------------------------------------------------------

    def add_element(self, node_a: int, node_b: int, rope_length: float = DEFAULT_ROPE_LENGTH) -> int:
        """
        Add a rope element between two node indices.

        Indices are not checked here; setup skips elements whose nodes are
        out of range or absent.

        Returns:
            The assigned element id.
        """
        element = Element(node_a=int(node_a), node_b=int(node_b), rope_length=float(rope_length))
        element.id = self._next_element_id
        self._next_element_id += 1
        self.elements.append(element)
        self.revision += 1
        return element.id

    def restore_element(self, element: Element) -> int:
        """
        Append an element that already carries an id (e.g. loaded from disk).

        Later add_element() calls continue after the largest id seen.
        """
        if any(e.id == element.id for e in self.elements):
            raise ValueError(f"Duplicate element id {element.id}")
        self.elements.append(element)
        self._next_element_id = max(self._next_element_id, element.id + 1)
        self.revision += 1
        return element.id

    def element(self, element_id: int) -> Element:
        """Look up an element by id."""
        for e in self.elements:
            if e.id == element_id:
                return e
        raise KeyError(f"No element with id {element_id}")

    # -------------------------------------------------------------------------
    # Groups
    # -------------------------------------------------------------------------

    def add_group(
        self,
        name: str,
        element_ids: list[int] | tuple[int, ...] = (),
        group_length: float | None = None,
    ) -> ElementGroup:
        """
        Register a named group of existing elements.

        If ``group_length`` is omitted the group adopts its first member's
        rope length and members are left as they are. An explicit length is
        propagated to the members.
        """
        if name in self.groups:
            raise ValueError(f"Group '{name}' already exists")
        members = [self.element(i) for i in element_ids]
        if group_length is None:
            length = members[0].rope_length if members else DEFAULT_ROPE_LENGTH
            group = ElementGroup(name=name, elements=members, group_length=length)
            self.groups[name] = group
            self._synced_lengths[name] = length
            self.revision += 1
        else:
            group = ElementGroup(name=name, elements=members)
            self.groups[name] = group
            self.set_group_length(group, group_length)
        return group

    def group(self, name: str) -> ElementGroup:
        return self.groups[name]

    def set_group_length(self, group: ElementGroup | str, new_length: float) -> None:
        """
        Set a group's length and propagate it to every member element.

        Only members of this group are touched. Buffers are NOT rebuilt;
        call setup() on the simulation once all edits are batched.
        """
        if isinstance(group, str):
            group = self.groups[group]
        group.group_length = float(new_length)
        for e in group.elements:
            e.rope_length = group.group_length
        self._synced_lengths[group.name] = group.group_length
        self.revision += 1

    def sync_group_lengths(self) -> list[ElementGroup]:
        """
        Propagate groups whose ``group_length`` was assigned directly.

        Returns:
            Groups that changed since the last propagation. A non-empty
            result means setup() should be re-run.
        """
        changed = []
        for name, group in self.groups.items():
            last = self._synced_lengths.get(name)
            if last is None or not np.isclose(last, group.group_length):
                self.set_group_length(group, group.group_length)
                changed.append(group)
        return changed
