# MIT License (see LICENSE)
"""
rope_relax - Real-time relaxation solver for rope networks.

Point masses ("nodes") joined by rope-length constraints ("elements") are
integrated under gravity and damping, then projected repeatedly so that no
rope is longer than its target.

Main entry points:
    - Topology: Authored nodes, elements, element groups and anchors.
    - RelaxationSimulation: Setup (compile) and the fixed-timestep tick.
    - Element, ElementGroup: Authored rope segments and shared lengths.

Submodules:
    - core: Force stage, Verlet integrator, diagnostics.
    - constraints: Rope-length relaxation passes.
    - consumers: Write-back targets for positions.
    - io: JSON persistence.
    - authoring: Rope-chain construction helpers.

Example:
    from rope_relax import RelaxationSimulation

    sim = RelaxationSimulation(damping=0.98, constraint_iterations=8)
    a = sim.add_node((0, 0, 0), fixed=True)
    b = sim.add_node((2, 0, 0))
    sim.add_element(a, b, rope_length=1.0)
    sim.setup()
    sim.advance()
"""
from .topology import Topology
from .types import Element, ElementGroup
from .simulation import RelaxationSimulation
from .exceptions import RopeRelaxError, ConfigurationError, StaleTopologyError

__version__ = "0.1.0"

__all__ = [
    # Core simulation
    "RelaxationSimulation",
    "Topology",
    # Authored types
    "Element",
    "ElementGroup",
    # Errors
    "RopeRelaxError",
    "ConfigurationError",
    "StaleTopologyError",
]
