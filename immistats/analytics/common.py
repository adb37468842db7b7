"""
Safe math and grouping helpers used across the analytics modules.
"""
from __future__ import annotations

import math

import numpy as np
import pandas as pd

from immistats.config import NATIONWIDE_REGION
from immistats.data.schemas import FilterCriteria


def safe_divide(numerator: float, denominator: float, default: float = 0.0) -> float:
    """Divide safely, returning default if denominator is zero or NaN."""
    if denominator == 0 or pd.isna(denominator):
        return default
    result = numerator / denominator
    return default if pd.isna(result) or math.isinf(result) else result


def pct_of_total(part: float, total: float) -> float:
    """Percentage of total."""
    return safe_divide(part, total) * 100


def exclude_nationwide(df: pd.DataFrame, criteria: FilterCriteria | None = None) -> pd.DataFrame:
    """Drop the synthetic nationwide rows unless the caller asked for them."""
    if criteria is not None and criteria.wants_nationwide:
        return df
    return df[df["region"] != NATIONWIDE_REGION]


def status_totals(df: pd.DataFrame, by: str | list[str], statuses: list[str]) -> pd.DataFrame:
    """Sum values per group with one column per status code (missing -> 0)."""
    keys = [by] if isinstance(by, str) else list(by)
    subset = df[df["status"].isin(statuses)]
    if subset.empty:
        return pd.DataFrame(columns=statuses, dtype="int64")
    table = subset.groupby(keys + ["status"])["value"].sum().unstack("status", fill_value=0)
    table = table.reindex(columns=statuses, fill_value=0)
    table.columns.name = None
    return table.astype("int64").sort_index()


def sanitize_for_json(obj):
    """Recursively convert numpy/pandas types to native Python for JSON serialization."""
    if isinstance(obj, dict):
        return {str(k): sanitize_for_json(v) for k, v in obj.items() if k is not None}
    if isinstance(obj, (list, tuple)):
        return [sanitize_for_json(v) for v in obj]
    if isinstance(obj, np.integer):
        return int(obj)
    if isinstance(obj, np.floating):
        v = float(obj)
        return 0.0 if (math.isnan(v) or math.isinf(v)) else v
    if isinstance(obj, np.bool_):
        return bool(obj)
    if isinstance(obj, np.ndarray):
        return sanitize_for_json(obj.tolist())
    if isinstance(obj, float):
        return 0.0 if (math.isnan(obj) or math.isinf(obj)) else obj
    if pd.api.types.is_scalar(obj) and pd.isna(obj):
        return None
    return obj
