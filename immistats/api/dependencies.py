"""
FastAPI dependencies — DataStore singleton, filter parsing.
"""
from __future__ import annotations

from typing import Optional

from fastapi import HTTPException, Query

from immistats.data.store import DataStore
from immistats.data.schemas import FilterCriteria, parse_period_code
from immistats.errors import InvalidInput

# ---------------------------------------------------------------------------
# Global store singleton (set during startup)
# ---------------------------------------------------------------------------
_store: DataStore | None = None


def set_store(store: DataStore | None) -> None:
    global _store
    _store = store


def get_store() -> DataStore:
    """Return the store; the snapshot itself is loaded lazily on first read."""
    if _store is None:
        raise HTTPException(503, "Server not initialized yet")
    return _store


# ---------------------------------------------------------------------------
# Filter parsing from query params
# ---------------------------------------------------------------------------

def _parse_trailing_months(value: Optional[str]) -> Optional[int]:
    if value is None or value.strip() == "":
        return None
    try:
        months = int(value)
    except ValueError:
        raise HTTPException(400, f"Invalid trailing_months: {value}")
    if months < 0:
        raise HTTPException(400, f"trailing_months must not be negative: {value}")
    return months or None


def parse_criteria(
    region: Optional[str] = Query(None, description="Region code or 'all'"),
    category: Optional[str] = Query(None, description="Category code or 'all'"),
    status: Optional[str] = Query(None, description="Status code"),
    start_period: Optional[str] = Query(None, description="YYYY-MM, inclusive"),
    end_period: Optional[str] = Query(None, description="YYYY-MM, inclusive"),
    trailing_months: Optional[str] = Query(None, description="Keep the N most recent periods"),
) -> FilterCriteria:
    """Parse filter query parameters into a FilterCriteria."""
    try:
        sp = parse_period_code(start_period) if start_period else None
        ep = parse_period_code(end_period) if end_period else None
    except InvalidInput as e:
        raise HTTPException(400, str(e))

    return FilterCriteria(
        region=region,
        category=category,
        status=status,
        start_period=sp,
        end_period=ep,
        trailing_months=_parse_trailing_months(trailing_months),
    )
