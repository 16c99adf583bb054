"""Metrics helper for IntegerStats and RollingArray.

Provides a dependency-free snapshot of counters suitable for exposure via
HTTP or JSON output. Never mutates its inputs. NaN (empty estimator) is
reported as None so the result is always valid JSON.
"""
from __future__ import annotations

import math
from typing import Any, Dict, Iterable, Optional

from .histogram import IntegerStats
from .rolling import RollingArray


def _finite(value: float) -> Optional[float]:
    return None if math.isnan(value) else value


def histogram_metrics(
    stats: IntegerStats,
    window: Optional[RollingArray] = None,
    percentiles: Iterable[int] = (50, 90, 95, 99),
) -> Dict[str, Any]:
    data: Dict[str, Any] = {
        "capacity": stats.capacity,
        "count": stats.total,
        "top_bucket": stats.counts[-1],
        "min": _finite(stats.min),
        "max": _finite(stats.max),
        "mean": _finite(stats.mean),
        "std_dev": _finite(stats.std_dev),
        "median": stats.median(),
        "percentiles": {str(p): stats.percentile(p) for p in percentiles},
    }
    if window is not None:
        data["window"] = {
            "size": window.window_size,
            "mean": window.mean(),
            "values": window.values(),
        }
    return data

__all__ = ["histogram_metrics"]
