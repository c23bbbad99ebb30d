# MIT License (see LICENSE)
"""
JSON serialization and deserialization for rope networks.

Saves the authored topology together with the simulation parameters, so a
network can be rebuilt and compiled elsewhere. Simulated buffers are not
stored; node positions are whatever was last written back to the topology.

JSON Schema Overview:
---------------------
{
  "damping": float,                 # Default: 0.98
  "time_step": float,               # Seconds, default: 0.02
  "gravity": [gx, gy, gz],          # Default: [0, -9.81, 0]
  "gravity_scale": float,           # Default: 1.0
  "constraint_iterations": int,     # Default: 1
  "rope_offset": float,             # Default: 0.0
  "constraint_scheme": string,      # "gauss_seidel" or "jacobi"
  "origin": [x, y, z],              # Default: [0, 0, 0], absent nodes
  "strict_topology": bool,          # Default: false
  "nodes": [[x, y, z] | null, ...], # null = absent placeholder
  "fixed": [bool, ...],             # Optional, missing entries are free
  "elements": [
    {
      "id": int,                    # Optional, preserved when present
      "nodeA": int, "nodeB": int,   # Required
      "ropeLength": float           # Default: 1.0
    }
  ],
  "groups": [                       # Optional
    {
      "name": string,
      "elements": [int, ...],       # Element ids
      "groupLength": float
    }
  ]
}
"""
from __future__ import annotations
import json
from typing import Any

import numpy as np

from ..constants import DEFAULT_DAMPING, DEFAULT_GRAVITY, DEFAULT_ROPE_LENGTH, DEFAULT_TIME_STEP
from ..simulation import RelaxationSimulation
from ..topology import Topology
from ..types import Element

_DEFAULTS = {
    "damping": DEFAULT_DAMPING,
    "time_step": DEFAULT_TIME_STEP,
    "gravity_scale": 1.0,
    "constraint_iterations": 1,
    "rope_offset": 0.0,
    "constraint_scheme": "gauss_seidel",
    "strict_topology": False,
}
_ORIGIN = [0.0, 0.0, 0.0]


def load_network_raw(path: str) -> dict[str, Any]:
    """Load raw JSON data from a network file without object construction."""
    with open(path, "r", encoding="utf-8") as f:
        return json.load(f)


def topology_from_json(data: dict[str, Any]) -> Topology:
    """
    Rebuild a Topology from a network dictionary.

    Element ids are preserved so that group references stay valid; new
    elements added afterwards continue after the largest loaded id.

    Raises:
        ValueError: If an element or group is missing a required field.
    """
    topology = Topology()
    nodes = data.get("nodes", [])
    fixed = data.get("fixed", [])
    for i, p in enumerate(nodes):
        topology.add_node(p, fixed=bool(fixed[i]) if i < len(fixed) else False)

    for i, e_data in enumerate(data.get("elements", [])):
        if "nodeA" not in e_data or "nodeB" not in e_data:
            raise ValueError(f"Element {i} missing required 'nodeA'/'nodeB' field.")
        e = Element(
            node_a=int(e_data["nodeA"]),
            node_b=int(e_data["nodeB"]),
            rope_length=float(e_data.get("ropeLength", DEFAULT_ROPE_LENGTH)),
        )
        e.id = int(e_data.get("id", i))
        topology.restore_element(e)

    for g_data in data.get("groups", []):
        if "name" not in g_data:
            raise ValueError("Group definition missing required 'name' field.")
        length = g_data.get("groupLength")
        topology.add_group(
            g_data["name"],
            [int(i) for i in g_data.get("elements", [])],
            None if length is None else float(length),
        )

    return topology


def network_from_json(data: dict[str, Any]) -> RelaxationSimulation:
    """
    Construct a simulation (not yet set up) from a network dictionary.

    Raises:
        ConfigurationError: If a parameter is out of range.
        ValueError: If the topology section is malformed.
    """
    params = {k: data.get(k, v) for k, v in _DEFAULTS.items()}
    # Passed unconverted; validate() does the range and type checks.
    return RelaxationSimulation(
        topology=topology_from_json(data),
        gravity=tuple(data.get("gravity", DEFAULT_GRAVITY)),
        origin=tuple(data.get("origin", _ORIGIN)),
        **params,
    )


def load_network(path: str, setup: bool = True) -> RelaxationSimulation:
    """
    Load a network file and (by default) compile it.

    Raises:
        FileNotFoundError: If the file cannot be found.
        json.JSONDecodeError: If the file is not valid JSON.
        ValueError: If required fields are missing or parameters invalid.
    """
    sim = network_from_json(load_network_raw(path))
    if setup:
        sim.setup()
    return sim


def topology_to_json(topology: Topology) -> dict[str, Any]:
    """Serialize nodes, fixed flags, elements and groups."""
    result: dict[str, Any] = {
        "nodes": [None if p is None else _to_list(p) for p in topology.nodes],
        "fixed": [bool(f) for f in topology.fixed[: topology.node_count]],
        "elements": [
            {"id": e.id, "nodeA": e.node_a, "nodeB": e.node_b, "ropeLength": e.rope_length}
            for e in topology.elements
        ],
    }
    if topology.groups:
        result["groups"] = [
            {"name": g.name, "elements": g.element_ids, "groupLength": g.group_length}
            for g in topology.groups.values()
        ]
    return result


def network_to_json(sim: RelaxationSimulation) -> dict[str, Any]:
    """
    Serialize a simulation's parameters and topology.

    Parameters equal to their defaults are omitted, except gravity.
    """
    result: dict[str, Any] = {"gravity": _to_list(sim.gravity)}
    origin = _to_list(sim.origin)
    if origin != _ORIGIN:
        result["origin"] = origin
    for key, default in _DEFAULTS.items():
        value = getattr(sim, key)
        if value != default:
            result[key] = value
    result.update(topology_to_json(sim.topology))
    return result


def save_network(sim: RelaxationSimulation, path: str, indent: int = 2) -> None:
    """Save a simulation's parameters and topology to a JSON file."""
    with open(path, "w", encoding="utf-8") as f:
        json.dump(network_to_json(sim), f, indent=indent)


def _to_list(arr: Any) -> list[float]:
    """Helper: Convert numpy array or tuple to a clean list of floats."""
    if isinstance(arr, np.ndarray):
        return arr.tolist()
    return [float(x) for x in arr]
