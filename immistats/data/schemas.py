"""
Record, filter, and estimation schemas for the statistics core.
"""
from __future__ import annotations

import datetime as dt
import re
from dataclasses import dataclass
from enum import Enum
from typing import Optional

from immistats.config import CATEGORY_LABELS, NATIONWIDE_REGION, REGION_LABELS
from immistats.errors import InvalidInput


class StatusCode(str, Enum):
    TOTAL_RECEIVED = "100000"
    CARRYOVER = "102000"          # pending brought forward
    NEW_RECEIVED = "103000"
    TOTAL_PROCESSED = "300000"
    GRANTED = "301000"
    DENIED = "302000"
    OTHER = "305000"              # withdrawn etc.
    PENDING = "400000"


ALL = "all"

_PERIOD_RE = re.compile(r"^\d{4}-(0[1-9]|1[0-2])$")


def parse_period_code(value: str) -> str:
    """Validate a ``YYYY-MM`` period string."""
    value = (value or "").strip()
    if not _PERIOD_RE.match(value):
        raise InvalidInput(f"invalid period '{value}', expected YYYY-MM")
    return value


def parse_application_date(value) -> dt.date:
    if isinstance(value, dt.datetime):
        return value.date()
    if isinstance(value, dt.date):
        return value
    try:
        return dt.date.fromisoformat(str(value or "").strip())
    except ValueError as exc:
        raise InvalidInput(f"invalid application date '{value}', expected YYYY-MM-DD") from exc


@dataclass(frozen=True)
class ImmigrationRecord:
    period: str       # YYYY-MM
    region: str
    category: str
    status: str
    value: int

    def as_dict(self) -> dict:
        return {
            "period": self.period,
            "region": self.region,
            "category": self.category,
            "status": self.status,
            "value": self.value,
        }


@dataclass(frozen=True)
class FilterCriteria:
    """Predicate over snapshot records plus an optional trailing-period cut.

    ``"all"`` (or None) for region/category means no restriction.
    ``trailing_months`` keeps the N most recent periods left after the
    predicate has been applied.
    """
    region: Optional[str] = None
    category: Optional[str] = None
    status: Optional[str] = None
    start_period: Optional[str] = None   # inclusive, YYYY-MM
    end_period: Optional[str] = None     # inclusive, YYYY-MM
    trailing_months: Optional[int] = None

    @property
    def region_code(self) -> Optional[str]:
        return None if self.region in (None, "", ALL) else self.region

    @property
    def category_code(self) -> Optional[str]:
        return None if self.category in (None, "", ALL) else self.category

    @property
    def wants_nationwide(self) -> bool:
        return self.region_code == NATIONWIDE_REGION


@dataclass(frozen=True)
class EstimationRequest:
    application_date: dt.date
    region: str = ALL
    category: str = ALL

    @classmethod
    def parse(
        cls,
        application_date,
        region: Optional[str] = ALL,
        category: Optional[str] = ALL,
        strict: bool = True,
    ) -> "EstimationRequest":
        """Build a request from loosely-typed input, rejecting anything invalid."""
        app_date = parse_application_date(application_date)
        region = (region or ALL).strip()
        category = (category or ALL).strip()
        if strict:
            if region != ALL and region not in REGION_LABELS:
                raise InvalidInput(f"unknown region code '{region}'")
            if category != ALL and category not in CATEGORY_LABELS:
                raise InvalidInput(f"unknown category code '{category}'")
        return cls(application_date=app_date, region=region, category=category)


@dataclass
class EstimationResult:
    estimated_date: dt.date
    optimistic_date: dt.date     # mean + 1 std dev (faster processing)
    pessimistic_date: dt.date    # mean - 1 std dev (slower processing)
    queue_position: int
    daily_processing_rate: float
    confidence_level: int        # heuristic 0-100, not a statistical interval
    region_efficiency: float     # 1.0 = national average
    days_remaining: int
    already_processed: bool

    def as_dict(self) -> dict:
        return {
            "estimated_date": self.estimated_date.isoformat(),
            "optimistic_date": self.optimistic_date.isoformat(),
            "pessimistic_date": self.pessimistic_date.isoformat(),
            "queue_position": self.queue_position,
            "daily_processing_rate": self.daily_processing_rate,
            "confidence_level": self.confidence_level,
            "region_efficiency": self.region_efficiency,
            "days_remaining": self.days_remaining,
            "already_processed": self.already_processed,
        }
