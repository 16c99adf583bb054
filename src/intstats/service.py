"""Optional FastAPI service exposing an IntegerStats estimator over HTTP.

Install with `pip install intstats[server]` to enable.
This keeps the core library dependency-light.
"""
from __future__ import annotations

import io
import threading
from typing import List, Optional, Union

try:  # pragma: no cover - optional dependency
    from fastapi import FastAPI, HTTPException, Path
    from fastapi.responses import PlainTextResponse
    from pydantic import BaseModel
except Exception as exc:  # noqa: BLE001
    raise RuntimeError(
        "FastAPI not installed. Install with `pip install intstats[server]` to use the service."  # noqa: E501
    ) from exc

from . import __version__
from .coerce import CoercionError, to_int
from .config import StatsConfig
from .histogram import IntegerStats
from .metrics import histogram_metrics
from .rolling import RollingArray


class ObserveRequest(BaseModel):
    values: List[Union[int, float, str]]


class ObserveResponse(BaseModel):
    observed: int
    total: int


class PercentileResponse(BaseModel):
    percentile: int
    value: int


class FractionResponse(BaseModel):
    threshold: int
    fraction: Optional[float]  # None while nothing has been observed
    percentage: Optional[float]


class StatsResponse(BaseModel):
    capacity: int
    count: int
    median: int
    mean: Optional[float]
    window_mean: float


def build_app(
    stats: Optional[IntegerStats] = None,
    window: Optional[RollingArray] = None,
    cfg: Optional[StatsConfig] = None,
) -> FastAPI:
    cfg = cfg or StatsConfig()
    if stats is None:
        stats = IntegerStats(cfg.capacity)
    if window is None:
        window = RollingArray(cfg.window)
    app = FastAPI(title="intstats service", version=__version__)
    # The estimator and window are single-writer structures; one coarse lock
    # serializes every handler that touches them.
    lock = threading.Lock()

    @app.get("/healthz")
    def health() -> dict[str, str]:  # pragma: no cover - trivial
        return {"status": "ok"}

    @app.post("/observe", response_model=ObserveResponse)
    def observe(req: ObserveRequest) -> ObserveResponse:
        try:
            # Coerce everything first so a bad item rejects the whole batch
            values = [to_int(v) for v in req.values]
        except CoercionError as exc:
            raise HTTPException(status_code=400, detail=str(exc)) from exc
        if any(v < 0 for v in values):
            raise HTTPException(status_code=400, detail="values must be non-negative")
        with lock:
            for value in values:
                stats.add_value(value)
                window.add(value)
            total = stats.total
        return ObserveResponse(observed=len(values), total=total)

    @app.get("/percentile/{p}", response_model=PercentileResponse)
    def percentile(p: int = Path(..., ge=1, le=100)) -> PercentileResponse:
        with lock:
            return PercentileResponse(percentile=p, value=stats.percentile(p))

    @app.get("/median", response_model=PercentileResponse)
    def median() -> PercentileResponse:
        with lock:
            return PercentileResponse(percentile=50, value=stats.median())

    @app.get("/fraction-above/{threshold}", response_model=FractionResponse)
    def fraction_above(threshold: int) -> FractionResponse:
        with lock:
            if stats.total == 0:
                return FractionResponse(threshold=threshold, fraction=None, percentage=None)
            fraction = stats.fraction_above(threshold)
        return FractionResponse(threshold=threshold, fraction=fraction, percentage=100.0 * fraction)

    @app.get("/stats", response_model=StatsResponse)
    def summary() -> StatsResponse:
        with lock:
            return StatsResponse(
                capacity=stats.capacity,
                count=stats.total,
                median=stats.median(),
                mean=stats.mean if stats.total else None,
                window_mean=window.mean(),
            )

    @app.get("/metrics")
    def metrics() -> dict[str, object]:
        with lock:
            return histogram_metrics(stats, window, cfg.percentiles)

    @app.get("/dump", response_class=PlainTextResponse)
    def dump() -> str:
        buf = io.StringIO()
        with lock:
            stats.save(buf)
        return buf.getvalue()

    return app


__all__ = ["build_app"]
