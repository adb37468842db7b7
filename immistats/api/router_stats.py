"""
Statistics endpoints — raw records, aggregated views, option lists, cache control.
"""
from __future__ import annotations

from fastapi import APIRouter, Depends
from fastapi.responses import JSONResponse

from immistats.analytics import aggregation
from immistats.analytics.common import sanitize_for_json
from immistats.api.dependencies import get_store, parse_criteria
from immistats.api.response_models import (
    CacheResponse, OptionsResponse, PeriodsResponse, SummaryResponse,
)
from immistats.config import CATEGORY_OPTIONS, REGION_OPTIONS
from immistats.data.schemas import FilterCriteria
from immistats.data.store import DataStore

router = APIRouter(prefix="/api/stats", tags=["stats"])


def _safe_json(data) -> JSONResponse:
    """Return a JSONResponse with numpy types and NaN/Inf cleaned."""
    return JSONResponse(content=sanitize_for_json(data))


@router.get("")
def list_records(
    store: DataStore = Depends(get_store),
    criteria: FilterCriteria = Depends(parse_criteria),
):
    data = [r.as_dict() for r in store.records(criteria)]
    return _safe_json({"data": data, "count": len(data)})


@router.get("/summary", response_model=SummaryResponse)
def summary(
    store: DataStore = Depends(get_store),
    criteria: FilterCriteria = Depends(parse_criteria),
):
    return SummaryResponse(**aggregation.get_summary(store, criteria))


@router.get("/monthly")
def monthly(
    store: DataStore = Depends(get_store),
    criteria: FilterCriteria = Depends(parse_criteria),
):
    return _safe_json({"data": aggregation.get_monthly_series(store, criteria)})


@router.get("/distribution")
def distribution(
    store: DataStore = Depends(get_store),
    criteria: FilterCriteria = Depends(parse_criteria),
):
    return _safe_json({"data": aggregation.get_region_distribution(store, criteria)})


@router.get("/backlog")
def backlog(
    store: DataStore = Depends(get_store),
    criteria: FilterCriteria = Depends(parse_criteria),
):
    return _safe_json({"data": aggregation.get_backlog_trend(store, criteria)})


@router.get("/region-approval-rates")
def region_approval_rates(
    store: DataStore = Depends(get_store),
    criteria: FilterCriteria = Depends(parse_criteria),
):
    data = aggregation.get_region_approval_rates(
        store,
        category=criteria.category,
        trailing_months=criteria.trailing_months,
    )
    return _safe_json(data)


@router.get("/periods", response_model=PeriodsResponse)
def periods(store: DataStore = Depends(get_store)):
    return PeriodsResponse(periods=aggregation.get_available_periods(store))


@router.get("/regions", response_model=OptionsResponse)
def regions():
    return OptionsResponse(options=REGION_OPTIONS)


@router.get("/categories", response_model=OptionsResponse)
def categories():
    return OptionsResponse(options=CATEGORY_OPTIONS)


@router.post("/invalidate-cache", response_model=CacheResponse)
def invalidate_cache(store: DataStore = Depends(get_store)):
    """Drop the cached snapshot; the next read reloads the data file."""
    store.invalidate()
    return CacheResponse(status="ok", message="Cache invalidated. Data will reload on the next request.")
