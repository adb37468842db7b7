"""
Processing-time estimation endpoints.
"""
from __future__ import annotations

from typing import Optional

from fastapi import APIRouter, Depends, Query

from immistats.analytics.estimation import estimate_completion
from immistats.api.dependencies import get_store
from immistats.api.response_models import EstimationRequestBody, EstimationResponse
from immistats.data.schemas import EstimationRequest
from immistats.data.store import DataStore

router = APIRouter(prefix="/api", tags=["estimation"])


def _estimate(store: DataStore, application_date, region, category) -> EstimationResponse:
    # InvalidInput propagates to the 400 handler registered in main
    request = EstimationRequest.parse(application_date, region, category)
    result = estimate_completion(store, request)
    return EstimationResponse(**result.as_dict())


@router.get("/estimation", response_model=EstimationResponse)
def estimation_query(
    application_date: str = Query(..., description="YYYY-MM-DD"),
    region: Optional[str] = Query("all"),
    category: Optional[str] = Query("all"),
    store: DataStore = Depends(get_store),
):
    return _estimate(store, application_date, region, category)


@router.post("/estimation", response_model=EstimationResponse)
def estimation_body(
    body: EstimationRequestBody,
    store: DataStore = Depends(get_store),
):
    return _estimate(store, body.application_date, body.region, body.category)
