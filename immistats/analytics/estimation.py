"""
Estimation engine — projected completion date, uncertainty band, and queue
position for one pending application.

The forecast is built from the region/category-filtered monthly figures:

  A. Processing rate: EWMA over the most recent months of
     (granted + denied) / 30, plus a weighted standard deviation. Arrivals
     per day divide by true calendar days, not the fixed 30.
  B. Carryover at filing: taken from the previous month when published,
     otherwise simulated forward month by month from the last month with
     data.
  C. Arrivals and decisions between the first of the month and the filing
     day, pro-rated by day of month.
  D. Queue position at filing.
  E. Decisions since filing (confirmed from later months, estimated for
     the stretch not yet published). Skipped for future filing dates.
  F. Days remaining and an optimistic/pessimistic band at mean +/- 1 std dev.
  G. Confidence level: a fixed heuristic on months of data, not a
     statistical interval.
  H. Region efficiency relative to all regions; informational only.
"""
from __future__ import annotations

import datetime as dt
import math
from dataclasses import dataclass
from typing import Iterable, Iterator, Sequence

import numpy as np
import pandas as pd

from immistats.analytics.common import exclude_nationwide, safe_divide, status_totals
from immistats.config import (
    DAYS_PER_MONTH,
    EWMA_DECAY,
    EWMA_WINDOW_MONTHS,
    MAX_FALLBACK_DAYS,
)
from immistats.data.schemas import EstimationRequest, EstimationResult, FilterCriteria, StatusCode
from immistats.data.store import DataStore


TOTAL_RECEIVED = StatusCode.TOTAL_RECEIVED.value
CARRYOVER = StatusCode.CARRYOVER.value
NEW_RECEIVED = StatusCode.NEW_RECEIVED.value
TOTAL_PROCESSED = StatusCode.TOTAL_PROCESSED.value
GRANTED = StatusCode.GRANTED.value
DENIED = StatusCode.DENIED.value

_STATUSES = [TOTAL_RECEIVED, CARRYOVER, NEW_RECEIVED, TOTAL_PROCESSED, GRANTED, DENIED]


# ---------------------------------------------------------------------------
# Calendar helpers
# ---------------------------------------------------------------------------

def period_of(date: dt.date) -> str:
    return f"{date.year}-{date.month:02d}"


def days_in_month(period: str) -> int:
    return pd.Period(period, freq="M").days_in_month


def shift_period(period: str, months: int) -> str:
    return str(pd.Period(period, freq="M") + months)


def iter_months(start: str, stop: str) -> Iterator[pd.Period]:
    """Calendar months from ``start`` up to but excluding ``stop``."""
    current = pd.Period(start, freq="M")
    end = pd.Period(stop, freq="M")
    while current < end:
        yield current
        current += 1


def round_half_up(value: float) -> int:
    return int(math.floor(value + 0.5))


def _add_days(base: dt.date, days: int) -> dt.date:
    try:
        return base + dt.timedelta(days=days)
    except OverflowError:
        return dt.date.max if days > 0 else dt.date.min


# ---------------------------------------------------------------------------
# Monthly figures
# ---------------------------------------------------------------------------

class MonthlyFigures:
    """Per-period status totals for one region/category slice."""

    def __init__(self, df: pd.DataFrame) -> None:
        self.table = status_totals(df, "period", _STATUSES)
        self.periods: list[str] = list(self.table.index)

    def has(self, period: str) -> bool:
        return period in self.table.index

    def value(self, period: str, status: str) -> int:
        if not self.has(period):
            return 0
        return int(self.table.at[period, status])

    def received(self, period: str) -> int:
        """Total received, derived from carryover + new where that breakdown exists."""
        derived = self.value(period, CARRYOVER) + self.value(period, NEW_RECEIVED)
        return derived if derived > 0 else self.value(period, TOTAL_RECEIVED)

    def pending_after(self, period: str) -> float:
        """Applications left pending at the end of ``period``.

        Falls back to the published carryover when received - processed
        is not positive.
        """
        pending = self.received(period) - self.value(period, TOTAL_PROCESSED)
        if pending <= 0:
            pending = self.value(period, CARRYOVER)
        return float(pending)


# ---------------------------------------------------------------------------
# A. Rates
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class ProcessingRate:
    mean: float          # decisions per day
    std_dev: float
    daily_new: float     # arrivals per day
    months: int


def weighted_rate(rates: Sequence[float], decay: float = EWMA_DECAY) -> tuple[float, float]:
    """EWMA mean and weighted standard deviation, oldest rate first."""
    if len(rates) == 0:
        return 0.0, 0.0
    n = len(rates)
    values = np.asarray(rates, dtype=float)
    weights = np.array([decay ** (n - 1 - i) for i in range(n)])
    mean = float(np.average(values, weights=weights))
    variance = float(np.average((values - mean) ** 2, weights=weights))
    return mean, math.sqrt(variance)


def estimate_processing_rate(
    figures: MonthlyFigures,
    periods: Sequence[str],
    decay: float = EWMA_DECAY,
) -> ProcessingRate:
    rates = [
        (figures.value(p, GRANTED) + figures.value(p, DENIED)) / DAYS_PER_MONTH
        for p in periods
    ]
    mean, std_dev = weighted_rate(rates, decay)

    total_new = sum(figures.value(p, NEW_RECEIVED) for p in periods)
    total_days = sum(days_in_month(p) for p in periods)
    daily_new = safe_divide(total_new, total_days)

    return ProcessingRate(mean=mean, std_dev=std_dev, daily_new=daily_new, months=len(periods))


# ---------------------------------------------------------------------------
# B. Carryover at filing
# ---------------------------------------------------------------------------

def step_carryover(carryover: float, days: int, daily_new: float, daily_rate: float) -> float:
    """One simulated month: arrivals minus decisions, never below zero."""
    return max(0.0, carryover + (daily_new - daily_rate) * days)


def simulate_carryover(
    initial: float,
    months: Iterable[pd.Period],
    daily_new: float,
    daily_rate: float,
) -> list[float]:
    """Carryover after each simulated month, in order."""
    path = []
    carryover = initial
    for month in months:
        carryover = step_carryover(carryover, month.days_in_month, daily_new, daily_rate)
        path.append(carryover)
    return path


def carryover_at_filing(figures: MonthlyFigures, app_period: str, rate: ProcessingRate) -> float:
    prev_period = shift_period(app_period, -1)
    if figures.has(prev_period):
        return figures.pending_after(prev_period)

    earlier = [p for p in figures.periods if p < app_period]
    if not earlier:
        return 0.0

    last = earlier[-1]
    initial = figures.pending_after(last)
    path = simulate_carryover(
        initial,
        iter_months(shift_period(last, 1), app_period),
        rate.daily_new,
        rate.mean,
    )
    return path[-1] if path else initial


# ---------------------------------------------------------------------------
# C/D. Queue at filing
# ---------------------------------------------------------------------------

def received_processed_by_day(
    figures: MonthlyFigures,
    application_date: dt.date,
    rate: ProcessingRate,
) -> tuple[float, float]:
    """Arrivals and decisions from the 1st of the filing month to the filing day."""
    period = period_of(application_date)
    day = application_date.day
    if figures.has(period):
        month_days = days_in_month(period)
        received = figures.value(period, NEW_RECEIVED) / month_days * day
        processed = figures.value(period, TOTAL_PROCESSED) / month_days * day
        return received, processed
    return rate.daily_new * day, rate.mean * day


def queue_position_at_filing(
    figures: MonthlyFigures,
    application_date: dt.date,
    rate: ProcessingRate,
) -> int:
    carryover = carryover_at_filing(figures, period_of(application_date), rate)
    received, processed = received_processed_by_day(figures, application_date, rate)
    return round_half_up(carryover + received - processed)


# ---------------------------------------------------------------------------
# E. Decisions since filing
# ---------------------------------------------------------------------------

def processed_since_filing(
    figures: MonthlyFigures,
    application_date: dt.date,
    rate: ProcessingRate,
    today: dt.date,
) -> float:
    period = period_of(application_date)

    confirmed = 0.0
    if figures.has(period):
        confirmed += rate.mean * (days_in_month(period) - application_date.day)
    confirmed += sum(figures.value(p, TOTAL_PROCESSED) for p in figures.periods if p > period)

    last_period = figures.periods[-1] if figures.periods else None
    if last_period is None or period > last_period:
        days_since_application = (today - application_date).days
        estimated = rate.mean * max(0, days_since_application) - confirmed
    else:
        end_of_last = pd.Period(last_period, freq="M").end_time.date()
        estimated = rate.mean * max(0, (today - end_of_last).days)

    return confirmed + max(0.0, estimated)


# ---------------------------------------------------------------------------
# F/G/H. Projection, confidence, efficiency
# ---------------------------------------------------------------------------

def project_days(queue_position: int, rate: ProcessingRate) -> tuple[int, int, int]:
    """(expected, optimistic, pessimistic) days until the queue clears."""
    if rate.mean > 0:
        days = math.ceil(queue_position / rate.mean)
    else:
        days = MAX_FALLBACK_DAYS

    fast = rate.mean + rate.std_dev
    optimistic = math.ceil(queue_position / fast) if fast > 0 else days

    slow = rate.mean - rate.std_dev
    pessimistic = math.ceil(queue_position / slow) if slow > 0 else days * 2

    return days, optimistic, pessimistic


def confidence_level(rate: ProcessingRate) -> int:
    return min(100, rate.months * 15 + (10 if rate.mean > 0 else 0))


def region_efficiency(overall: pd.DataFrame, region: pd.DataFrame, periods: Sequence[str]) -> float:
    """Region's processed/carryover ratio relative to the overall ratio."""
    if not periods:
        return 1.0

    def _totals(df: pd.DataFrame) -> tuple[float, float]:
        window = df[df["period"].isin(periods)]
        processed = window.loc[window["status"] == TOTAL_PROCESSED, "value"].sum()
        carryover = window.loc[window["status"] == CARRYOVER, "value"].sum()
        return float(processed), float(carryover)

    overall_processed, overall_carryover = _totals(overall)
    region_processed, region_carryover = _totals(region)
    if overall_carryover == 0 or region_carryover == 0:
        return 1.0

    overall_ratio = overall_processed / overall_carryover
    return safe_divide(region_processed / region_carryover, overall_ratio, default=1.0)


# ---------------------------------------------------------------------------
# Entry point
# ---------------------------------------------------------------------------

def estimate_completion(
    store: DataStore,
    request: EstimationRequest,
    today: dt.date | None = None,
) -> EstimationResult:
    """Forecast when the application in ``request`` will be decided."""
    today = today or dt.date.today()
    application_date = request.application_date

    criteria = FilterCriteria(region=request.region, category=request.category)
    data = exclude_nationwide(store.get_all(criteria), criteria)
    figures = MonthlyFigures(data)

    recent = figures.periods[-EWMA_WINDOW_MONTHS:]
    rate = estimate_processing_rate(figures, recent)

    queue_at_filing = queue_position_at_filing(figures, application_date, rate)
    is_future = application_date > today
    if is_future:
        queue_position = queue_at_filing
    else:
        # Not floored: negative means the case has likely been decided already
        since = processed_since_filing(figures, application_date, rate, today)
        queue_position = round_half_up(queue_at_filing - since)

    days_remaining, optimistic_days, pessimistic_days = project_days(queue_position, rate)

    base_date = application_date if is_future else today
    estimated_date = _add_days(base_date, days_remaining)
    optimistic_date = _add_days(base_date, optimistic_days)
    pessimistic_date = _add_days(base_date, pessimistic_days)

    already_processed = estimated_date < today and not is_future

    overall = exclude_nationwide(store.get_all(FilterCriteria(category=request.category)))
    efficiency = region_efficiency(overall, data, recent)

    return EstimationResult(
        estimated_date=estimated_date,
        optimistic_date=optimistic_date,
        pessimistic_date=pessimistic_date,
        queue_position=0 if already_processed else queue_position,
        daily_processing_rate=round(rate.mean, 2),
        confidence_level=confidence_level(rate),
        region_efficiency=round(efficiency, 2),
        days_remaining=0 if already_processed else days_remaining,
        already_processed=already_processed,
    )
