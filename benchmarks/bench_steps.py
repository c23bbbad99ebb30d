"""
Microbenchmark: time per tick vs net size.
Run:
  python benchmarks/bench_steps.py
"""
import time
from rope_relax import RelaxationSimulation
from rope_relax.consumers import NullConsumer
from rope_relax.profiler import Profiler


def build(side: int, scheme: str, profiler: Profiler) -> RelaxationSimulation:
    sim = RelaxationSimulation(
        damping=0.98,
        time_step=0.02,
        constraint_iterations=8,
        constraint_scheme=scheme,
        profiler=profiler,
    )
    # square net in the xz plane, pinned along one edge
    for i in range(side):
        for j in range(side):
            sim.add_node((0.5 * i, 0.0, 0.5 * j), fixed=(i == 0))
    for i in range(side):
        for j in range(side):
            k = i * side + j
            if i + 1 < side:
                sim.add_element(k, k + side, rope_length=0.5)
            if j + 1 < side:
                sim.add_element(k, k + 1, rope_length=0.5)
    sim.add_consumer(NullConsumer())
    sim.setup()
    return sim


def run(side: int, scheme: str, ticks: int = 200):
    prof = Profiler()
    sim = build(side, scheme, prof)

    # warmup
    sim.run(20)
    prof.stats.clear()

    t0 = time.perf_counter()
    sim.run(ticks)
    t1 = time.perf_counter()

    per_tick = (t1 - t0) / ticks
    return per_tick, prof


if __name__ == "__main__":
    for scheme in ["gauss_seidel", "jacobi"]:
        for side in [5, 10, 20, 40]:
            per_tick, prof = run(side, scheme)
            print(f"{scheme:12s} nodes={side * side:5d}  tick={1e3 * per_tick:8.3f} ms  ticks/s={1 / per_tick:8.1f}")
            print(prof.report())
            print()
