# MIT License (see LICENSE)
"""
Per-stage timing for the tick pipeline.

A RelaxationSimulation with a profiler attached times its stages under the
names in ``TICK_STAGES``. Sections with other names can be timed too; they
are reported after the tick stages.

Example:
    profiler = Profiler()
    sim = RelaxationSimulation(topology, profiler=profiler)
    sim.setup()
    sim.run(500)
    print(profiler.report())
"""
from __future__ import annotations
import time
from contextlib import contextmanager
from dataclasses import dataclass, field
from typing import Iterator

TICK_STAGES: tuple[str, ...] = ("forces", "integrate", "constraints", "write_back")


@dataclass
class ProfileStats:
    """Timing samples (seconds) per named section."""
    samples: dict[str, list[float]] = field(default_factory=dict)

    def add(self, name: str, dt: float) -> None:
        self.samples.setdefault(name, []).append(dt)

    def ordered_names(self) -> list[str]:
        """Tick stages in pipeline order, then any other sections."""
        names = [s for s in TICK_STAGES if s in self.samples]
        return names + [s for s in self.samples if s not in TICK_STAGES]

    def summary(self) -> dict[str, dict[str, float]]:
        """
        Summary statistics per section.

        Returns:
            Dict mapping section name to:
            - 'n': sample count
            - 'mean_ms': average time in milliseconds
            - 'max_ms': maximum time in milliseconds
            - 'total_ms': summed time in milliseconds
        """
        out = {}
        for name in self.ordered_names():
            times = self.samples[name]
            total = sum(times)
            out[name] = {
                "n": len(times),
                "mean_ms": 1e3 * total / len(times),
                "max_ms": 1e3 * max(times),
                "total_ms": 1e3 * total,
            }
        return out

    def fractions(self) -> dict[str, float]:
        """Share of the summed time spent in each section (sums to 1)."""
        totals = {name: sum(self.samples[name]) for name in self.ordered_names()}
        grand = sum(totals.values())
        if grand <= 0.0:
            return {name: 0.0 for name in totals}
        return {name: t / grand for name, t in totals.items()}

    def clear(self) -> None:
        self.samples.clear()


class Profiler:
    """Section timer fed by the simulation's tick stages."""

    def __init__(self) -> None:
        self.stats = ProfileStats()

    @contextmanager
    def section(self, name: str) -> Iterator[None]:
        """Record the wall time of the enclosed block under ``name``."""
        t0 = time.perf_counter()
        try:
            yield
        finally:
            self.stats.add(name, time.perf_counter() - t0)

    def report(self) -> str:
        """One line per section: mean and max per call, share of the total."""
        summary = self.stats.summary()
        shares = self.stats.fractions()
        return "\n".join(
            f"{name:12s} mean={s['mean_ms']:8.3f} ms  max={s['max_ms']:8.3f} ms  share={100 * shares[name]:5.1f}%"
            for name, s in summary.items()
        )
