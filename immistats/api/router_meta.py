"""
Meta endpoints: health.
"""
from __future__ import annotations

from fastapi import APIRouter, Depends

from immistats.api.dependencies import get_store
from immistats.api.response_models import HealthResponse
from immistats.data.store import DataStore
from immistats.errors import StatsError

router = APIRouter(prefix="/api", tags=["meta"])


@router.get("/health", response_model=HealthResponse)
def health(store: DataStore = Depends(get_store)):
    try:
        periods = store.periods()
        rows = store.row_count()
    except StatsError as e:
        print(f"  Health check: data unavailable ({e})")
        return HealthResponse(status="degraded", loaded=False, rows=0, periods=0)

    return HealthResponse(
        status="ok",
        loaded=store.is_loaded,
        rows=rows,
        periods=len(periods),
        latest_period=periods[-1] if periods else None,
    )
