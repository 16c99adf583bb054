"""Bounded-range percentile estimation for streams of non-negative integers.

Values are counted into a fixed array of buckets instead of being stored, so
memory and query time are O(capacity) no matter how long the stream runs. The
price is that everything at or above ``capacity - 1`` shares the top bucket:
suited to data whose interesting mass sits below a known ceiling (coverage
depth being the classic case), where a handful of huge outliers should not
move the median.
"""
from __future__ import annotations

import json
import math
import sys
from itertools import accumulate
from pathlib import Path
from typing import Any, Dict, Iterable, List, Mapping, Optional, TextIO, Tuple

import numpy as np

from .coerce import to_int
from .config import DEFAULT_STREAM_CAPACITY

SNAPSHOT_VERSION = 1


def target_rank(total: int, percentile: float) -> int:
    """Count threshold locating ``percentile`` among ``total`` observations.

    Computed as ``total / (100 / percentile)`` in single precision and then
    truncated. This is deliberately not ``total * percentile // 100``: the
    rounding at boundary ranks differs and existing outputs depend on it.
    """
    return int(np.float32(total) / (np.float32(100.0) / np.float32(percentile)))


class IntegerStats:
    """
    Frequency histogram over ``[0, capacity)`` with clamped top bucket.

    Also keeps running summary statistics (n, min, max, mean, variance) of the
    raw, unclamped values so callers get a full summary from one pass.
    """

    def __init__(self, capacity: int, values: Optional[Iterable[Any]] = None) -> None:
        if capacity <= 0:
            raise ValueError("capacity must be positive")
        self._counts: List[int] = [0] * capacity
        self._total = 0
        # Welford accumulators over raw values
        self._sum = 0
        self._mean = 0.0
        self._m2 = 0.0
        self._min: Optional[int] = None
        self._max: Optional[int] = None
        if values is not None:
            self.update(values)

    # Construction helpers -----------------------------------------------

    @classmethod
    def from_lines(cls, capacity: int, stream: Iterable[str]) -> "IntegerStats":
        """Build from a line-oriented source holding one integer per line."""
        stats = cls(capacity)
        for line in stream:
            stats.add(line)
        return stats

    @classmethod
    def from_file(cls, capacity: int, path: str | Path) -> "IntegerStats":
        with Path(path).open("r", encoding="utf-8") as handle:
            return cls.from_lines(capacity, handle)

    @classmethod
    def read(cls, stream: Optional[TextIO] = None, capacity: int = DEFAULT_STREAM_CAPACITY) -> "IntegerStats":
        """Read integers line by line from ``stream`` (standard input by default)."""
        return cls.from_lines(capacity, stream if stream is not None else sys.stdin)

    # Ingestion ------------------------------------------------------------

    def add_value(self, value: int) -> None:
        """Count one observation."""
        if value < 0:
            raise ValueError(f"value must be non-negative, got {value}")
        top = len(self._counts) - 1
        self._counts[value if value < top else top] += 1
        self._total += 1

        self._sum += value
        delta = value - self._mean
        self._mean += delta / self._total
        self._m2 += delta * (value - self._mean)
        if self._min is None or value < self._min:
            self._min = value
        if self._max is None or value > self._max:
            self._max = value

    def add(self, value: Any) -> None:
        """Coerce ``value`` (int, real or text) and count it."""
        self.add_value(to_int(value))

    def update(self, values: Iterable[Any]) -> None:
        for value in values:
            self.add(value)

    # Queries --------------------------------------------------------------

    @property
    def capacity(self) -> int:
        return len(self._counts)

    @property
    def total(self) -> int:
        return self._total

    @property
    def counts(self) -> Tuple[int, ...]:
        return tuple(self._counts)

    def __len__(self) -> int:
        return self._total

    def percentile(self, percentile: int) -> int:
        """
        Return the given percentile (1-100) of the observed values, eg: 50
        for the median, or -1 if nothing has been observed yet.

        With an even number of observations the located bucket is averaged
        with the next occupied bucket above it (floor division). With an odd
        number it is returned as is.
        """
        if not 1 <= percentile <= 100:
            raise ValueError(f"percentile must be in [1, 100], got {percentile}")
        if self._total == 0:
            return -1
        rank = target_rank(self._total, percentile)
        counts = self._counts
        passed = 0
        for i, count in enumerate(counts):
            passed += count
            if passed < rank:
                continue
            if self._total % 2:
                return i
            for k in range(i + 1, len(counts)):
                if counts[k] > 0:
                    return (i + k) // 2
            return i
        return -1

    def get_at(self, percentile: int) -> int:
        return self.percentile(percentile)

    def median(self) -> int:
        return self.percentile(50)

    def fraction_above(self, threshold: int) -> float:
        """Fraction of observations at or above ``threshold``; nan when empty."""
        start = min(max(threshold, 0), len(self._counts))
        above = sum(self._counts[start:])
        if self._total == 0:
            return math.nan
        return above / self._total

    def percentage_above(self, threshold: int) -> float:
        return 100.0 * self.fraction_above(threshold)

    # Summary statistics -------------------------------------------------

    @property
    def n(self) -> int:
        return self._total

    @property
    def sum(self) -> int:
        return self._sum

    @property
    def min(self) -> float:
        return math.nan if self._min is None else self._min

    @property
    def max(self) -> float:
        return math.nan if self._max is None else self._max

    @property
    def mean(self) -> float:
        return self._mean if self._total else math.nan

    @property
    def variance(self) -> float:
        """Sample variance (n - 1 denominator); 0.0 for a single value."""
        if self._total == 0:
            return math.nan
        if self._total == 1:
            return 0.0
        return self._m2 / (self._total - 1)

    @property
    def std_dev(self) -> float:
        return math.sqrt(self.variance)

    def __str__(self) -> str:
        return (
            "IntegerStats:\n"
            f"n: {self.n}\n"
            f"min: {self.min}\n"
            f"max: {self.max}\n"
            f"sum: {self.sum}\n"
            f"mean: {self.mean}\n"
            f"std dev: {self.std_dev}\n"
            f"Median: {self.median()}\n"
        )

    # Output ---------------------------------------------------------------

    def save(self, sink: TextIO) -> None:
        """Write ``index, count, 1 - fraction_above(index)`` per bucket, tab separated."""
        total = self._total
        # above[i] = observations at index >= i
        above = list(accumulate(reversed(self._counts)))[::-1]
        for i, count in enumerate(self._counts):
            fraction = above[i] / total if total else math.nan
            sink.write(f"{i}\t{count}\t{1 - fraction}\n")

    # Persistence helpers -------------------------------------------------

    def snapshot(self) -> Dict[str, Any]:
        """Return a JSON-serialisable snapshot of the current state."""
        return {
            "version": SNAPSHOT_VERSION,
            "capacity": self.capacity,
            "counts": list(self._counts),
            "total": self._total,
            "sum": self._sum,
            "mean": self._mean,
            "m2": self._m2,
            "min": self._min,
            "max": self._max,
        }

    @classmethod
    def from_snapshot(cls, snap: Mapping[str, Any]) -> "IntegerStats":
        capacity = int(snap["capacity"])
        counts = [int(c) for c in snap.get("counts", [])]
        total = int(snap.get("total", 0))
        if len(counts) != capacity:
            raise ValueError(f"snapshot has {len(counts)} buckets, expected {capacity}")
        if sum(counts) != total:
            raise ValueError(f"snapshot bucket counts sum to {sum(counts)}, expected total {total}")
        stats = cls(capacity)
        stats._counts = counts
        stats._total = total
        stats._sum = int(snap.get("sum", 0))
        stats._mean = float(snap.get("mean", 0.0))
        stats._m2 = float(snap.get("m2", 0.0))
        stats._min = None if snap.get("min") is None else int(snap["min"])
        stats._max = None if snap.get("max") is None else int(snap["max"])
        return stats

    def save_state(self, path: str | Path) -> Path:
        """Persist current state to disk as JSON."""
        path_obj = Path(path)
        path_obj.parent.mkdir(parents=True, exist_ok=True)
        with path_obj.open("w", encoding="utf-8") as handle:
            json.dump(self.snapshot(), handle, indent=2)
        return path_obj

    @classmethod
    def load_state(cls, path: str | Path) -> "IntegerStats":
        with Path(path).open("r", encoding="utf-8") as handle:
            return cls.from_snapshot(json.load(handle))


__all__ = ["IntegerStats", "target_rank"]
