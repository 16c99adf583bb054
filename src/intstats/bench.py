"""Simple benchmarking harness for intstats.

Measures ingestion throughput (values/sec), percentile query latency and
approximate memory growth on synthetic or real data. Keeps dependencies
minimal; for deeper profiling integrate with py-spy or scalene externally.
"""
from __future__ import annotations

import random
import time
import tracemalloc
from pathlib import Path
from typing import Iterable, List

from .coerce import to_int
from .histogram import IntegerStats
from .rolling import RollingArray


def synthetic_values(n: int, seed: int = 0, mean_depth: float = 40.0) -> Iterable[int]:
    """Coverage-like depths: mostly near ``mean_depth`` with a thin long tail."""
    rng = random.Random(seed)
    for i in range(n):
        if i % 97 == 0:
            yield int(rng.expovariate(1 / (mean_depth * 20)))
        else:
            yield max(0, int(rng.gauss(mean_depth, mean_depth / 4)))


def iter_file(path: Path) -> Iterable[str]:
    with path.open("r", encoding="utf-8", errors="replace") as handle:
        for line in handle:
            yield line.rstrip("\n")


def run(values: List, warm: int, measure: int, capacity: int = 1000, window: int = 10) -> None:
    stats = IntegerStats(capacity)
    rolling = RollingArray(window)
    # Warm phase (populate buckets but ignore timing)
    for value in values[:warm]:
        stats.add(value)

    to_measure = values[warm : warm + measure]
    tracemalloc.start()
    start = time.perf_counter()
    counted = 0
    for counted, value in enumerate(to_measure, start=1):
        depth = to_int(value)
        stats.add_value(depth)
        rolling.add(depth)
        if counted % 100 == 0:
            stats.median()
    elapsed = time.perf_counter() - start
    current, peak = tracemalloc.get_traced_memory()
    tracemalloc.stop()

    q_start = time.perf_counter()
    queries = 0
    for p in range(1, 101):
        stats.percentile(p)
        queries += 1
    q_elapsed = time.perf_counter() - q_start

    rate = counted / elapsed if elapsed > 0 else float("inf")
    print(f"Processed {counted} values in {elapsed:.3f}s -> {rate:,.0f} values/sec")
    print(f"Percentile queries: {queries} in {q_elapsed * 1000:.2f}ms (capacity={capacity})")
    print(f"Memory: current={current / 1024:.1f} KiB peak={peak / 1024:.1f} KiB")
    print(f"Median: {stats.median()} over {stats.total} values")


__all__ = ["synthetic_values", "iter_file", "run"]
