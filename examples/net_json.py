import tempfile
from pathlib import Path

from rope_relax import RelaxationSimulation
from rope_relax.io import load_network, save_network
from rope_relax.log import setup_file_logging

out = Path(tempfile.mkdtemp())
setup_file_logging(out)

# 3x3 net pinned at its four corners.
sim = RelaxationSimulation(constraint_iterations=10, rope_offset=0.1)
idx = {}
for i in range(3):
    for j in range(3):
        corner = i in (0, 2) and j in (0, 2)
        idx[i, j] = sim.add_node((float(i), 0.0, float(j)), fixed=corner)
for i in range(3):
    for j in range(3):
        if i < 2:
            sim.add_element(idx[i, j], idx[i + 1, j], rope_length=1.2)
        if j < 2:
            sim.add_element(idx[i, j], idx[i, j + 1], rope_length=1.2)

path = out / "net.json"
save_network(sim, str(path))

loaded = load_network(str(path))
loaded.relax(max_ticks=3000)
print("centre node:", loaded.node_position(idx[1, 1]).round(3))
