"""
Aggregation views — summary, monthly series, regional distribution,
backlog by category, and per-region approval-rate rankings.

Every view reads the filtered snapshot through ``DataStore.get_all``.
"""
from __future__ import annotations

from typing import Optional

import pandas as pd

from immistats.analytics.common import exclude_nationwide, safe_divide, status_totals
from immistats.config import (
    APPROVAL_RATE_MIN_PROCESSED,
    BACKLOG_CATEGORIES,
    NATIONWIDE_REGION,
    REGION_LABELS,
)
from immistats.data.schemas import FilterCriteria, StatusCode
from immistats.data.store import DataStore


CARRYOVER = StatusCode.CARRYOVER.value
NEW_RECEIVED = StatusCode.NEW_RECEIVED.value
TOTAL_PROCESSED = StatusCode.TOTAL_PROCESSED.value
GRANTED = StatusCode.GRANTED.value
DENIED = StatusCode.DENIED.value

_FLOW_STATUSES = [CARRYOVER, NEW_RECEIVED, TOTAL_PROCESSED, GRANTED, DENIED]


def _region_scoped(store: DataStore, criteria: FilterCriteria | None) -> pd.DataFrame:
    criteria = criteria or FilterCriteria()
    return exclude_nationwide(store.get_all(criteria), criteria)


# ---------------------------------------------------------------------------
# Summary
# ---------------------------------------------------------------------------

def get_summary(store: DataStore, criteria: FilterCriteria | None = None) -> dict:
    """Headline figures for the latest period in the filtered set.

    Pending excludes the "other/withdrawn" outcome, and total received is
    derived from pending + granted + denied so the identity holds exactly.
    """
    df = _region_scoped(store, criteria)
    latest_period = df["period"].max() if not df.empty else ""

    totals = status_totals(df[df["period"] == latest_period], "period", _FLOW_STATUSES)
    row = totals.iloc[0] if not totals.empty else pd.Series(0, index=_FLOW_STATUSES)

    granted = int(row[GRANTED])
    denied = int(row[DENIED])
    total_processed = int(row[TOTAL_PROCESSED])
    carryover = int(row[CARRYOVER])
    new_received = int(row[NEW_RECEIVED])

    pending_count = carryover + new_received - (granted + denied)
    total_received = pending_count + granted + denied
    approval_rate = safe_divide(granted, total_processed) * 100

    return {
        "latest_period": latest_period,
        "total_received": total_received,
        "total_processed": total_processed,
        "total_granted": granted,
        "total_denied": denied,
        "approval_rate": round(approval_rate, 2),
        "pending_count": pending_count,
    }


# ---------------------------------------------------------------------------
# Monthly series
# ---------------------------------------------------------------------------

def get_monthly_series(store: DataStore, criteria: FilterCriteria | None = None) -> list[dict]:
    """Per-period flow figures, oldest first."""
    df = _region_scoped(store, criteria)
    totals = status_totals(df, "period", _FLOW_STATUSES)

    rows = []
    for period, r in totals.iterrows():
        carryover = int(r[CARRYOVER])
        new_received = int(r[NEW_RECEIVED])
        rows.append({
            "period": period,
            "carryover": carryover,
            "new_received": new_received,
            "granted": int(r[GRANTED]),
            "denied": int(r[DENIED]),
            "total_processed": int(r[TOTAL_PROCESSED]),
            "total_received": carryover + new_received,
        })
    return rows


# ---------------------------------------------------------------------------
# Regional distribution
# ---------------------------------------------------------------------------

def get_region_distribution(store: DataStore, criteria: FilterCriteria | None = None) -> list[dict]:
    """Total workload (carryover + new received) per region over all filtered periods."""
    df = _region_scoped(store, criteria)
    workload = (
        df[df["status"].isin([CARRYOVER, NEW_RECEIVED])]
        .groupby("region")["value"]
        .sum()
    )
    workload = workload[workload > 0]

    result = [{"region": region, "value": int(value)} for region, value in workload.items()]
    return sorted(result, key=lambda x: (-x["value"], x["region"]))


# ---------------------------------------------------------------------------
# Backlog by category
# ---------------------------------------------------------------------------

def get_backlog_trend(store: DataStore, criteria: FilterCriteria | None = None) -> list[dict]:
    """Carryover per period broken out by application category.

    The category filter is ignored; the breakdown is the requested dimension.
    """
    criteria = criteria or FilterCriteria()
    criteria = FilterCriteria(
        region=criteria.region,
        status=criteria.status,
        start_period=criteria.start_period,
        end_period=criteria.end_period,
        trailing_months=criteria.trailing_months,
    )
    df = _region_scoped(store, criteria)
    periods = sorted(df["period"].unique())

    carry = df[df["status"] == CARRYOVER]
    sums = carry.groupby(["period", "category"])["value"].sum().to_dict()

    rows = []
    for period in periods:
        entry = {"period": period}
        for category in BACKLOG_CATEGORIES:
            entry[category] = int(sums.get((period, category), 0))
        rows.append(entry)
    return rows


# ---------------------------------------------------------------------------
# Approval-rate ranking
# ---------------------------------------------------------------------------

def get_region_approval_rates(
    store: DataStore,
    category: Optional[str] = None,
    trailing_months: Optional[int] = None,
    threshold: int = APPROVAL_RATE_MIN_PROCESSED,
) -> dict:
    """Approval rate per region over the trailing window, highest first.

    Regions that processed fewer than ``threshold`` cases are listed in
    ``excluded_regions`` instead of being ranked. The nationwide aggregate is
    always ranked.
    """
    df = store.get_all(FilterCriteria(category=category))
    df = df[df["status"].isin([GRANTED, TOTAL_PROCESSED])]

    periods = sorted(df["period"].unique())
    if trailing_months:
        periods = periods[-trailing_months:]
    df = df[df["period"].isin(periods)]

    totals = status_totals(df, "region", [GRANTED, TOTAL_PROCESSED])

    ranked = []
    excluded = []
    for region, r in totals.iterrows():
        granted = int(r[GRANTED])
        processed = int(r[TOTAL_PROCESSED])
        if processed < threshold and region != NATIONWIDE_REGION:
            excluded.append(region)
            continue
        ranked.append({
            "region": REGION_LABELS.get(region, region),
            "region_code": region,
            "approval_rate": round(safe_divide(granted, processed) * 100, 2),
            "granted": granted,
            "processed": processed,
        })

    ranked.sort(key=lambda x: (-x["approval_rate"], x["region_code"]))
    return {
        "data": ranked,
        "excluded_regions": sorted(excluded),
        "period_start": periods[0] if periods else None,
        "period_end": periods[-1] if periods else None,
        "threshold": threshold,
    }


# ---------------------------------------------------------------------------
# Metadata
# ---------------------------------------------------------------------------

def get_available_periods(store: DataStore) -> list[str]:
    return store.periods()
