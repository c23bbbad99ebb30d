from rope_relax import RelaxationSimulation

# Two free nodes 10 apart, rope of 5, no gravity: one pass meets in the middle.
sim = RelaxationSimulation(gravity=(0.0, 0.0, 0.0), damping=1.0, constraint_iterations=1)
a = sim.add_node((0.0, 0.0, 0.0))
b = sim.add_node((10.0, 0.0, 0.0))
sim.add_element(a, b, rope_length=5.0)
sim.setup()
sim.advance()

print("a:", sim.node_position(a), "b:", sim.node_position(b), "length:", sim.edge_lengths()[0])
