from rope_relax import RelaxationSimulation
from rope_relax.authoring import add_rope_chain
from rope_relax.consumers import BufferedConsumer

sim = RelaxationSimulation(damping=0.95, time_step=0.02, constraint_iterations=16)
group = add_rope_chain(sim.topology, (0.0, 0.0, 0.0), (6.0, 0.0, 0.0), intersections=9,
                       start_fixed=True, end_fixed=True)
sim.set_group_length(group, 0.75)  # 10 links of 0.75 over a 6.0 span
sim.setup()

recorder = BufferedConsumer(max_frames=1)
sim.add_consumer(recorder)

ticks = sim.relax(max_ticks=5000, tolerance=1e-7)
print(f"relaxed after {ticks} ticks, max excess {sim.max_excess():.2e}")
for i, p in enumerate(recorder.frames[-1]["positions"]):
    print(i, p.round(3))

# Lengthen the whole chain, then recompile and relax again.
sim.set_group_length(group, 0.9)
sim.setup()
sim.relax(max_ticks=5000, tolerance=1e-7)
print("lowest point after lengthening:", sim.positions[:, 1].min().round(3))
