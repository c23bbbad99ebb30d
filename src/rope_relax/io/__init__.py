# MIT License (see LICENSE)
"""
Input/Output utilities for rope networks.

This subpackage provides:
    - JSON serialization: Save and load topology plus simulation parameters.

Typical usage:
    from rope_relax.io import load_network, save_network

    sim = load_network("net.json")   # compiled and ready to tick
    save_network(sim, "out.json")
"""
from .json_io import (
    load_network,
    load_network_raw,
    save_network,
    network_to_json,
    network_from_json,
    topology_to_json,
    topology_from_json,
)

__all__ = [
    # Loading
    "load_network",
    "load_network_raw",
    # Saving
    "save_network",
    # Serialization
    "network_to_json",
    "network_from_json",
    "topology_to_json",
    "topology_from_json",
]
