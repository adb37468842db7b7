"""
Pydantic response schemas for the API.
"""
from __future__ import annotations

from typing import Optional

from pydantic import BaseModel


class HealthResponse(BaseModel):
    status: str
    loaded: bool
    rows: int
    periods: int
    latest_period: Optional[str] = None


class PeriodsResponse(BaseModel):
    periods: list[str]


class OptionsResponse(BaseModel):
    options: list[dict]


class SummaryResponse(BaseModel):
    latest_period: str
    total_received: int
    total_processed: int
    total_granted: int
    total_denied: int
    approval_rate: float
    pending_count: int


class CacheResponse(BaseModel):
    status: str
    message: str


class EstimationRequestBody(BaseModel):
    application_date: str  # YYYY-MM-DD
    region: Optional[str] = "all"
    category: Optional[str] = "all"


class EstimationResponse(BaseModel):
    estimated_date: str
    optimistic_date: str
    pessimistic_date: str
    queue_position: int
    daily_processing_rate: float
    confidence_level: int
    region_efficiency: float
    days_remaining: int
    already_processed: bool
