"""
Raw e-Stat snapshot reading, shape normalization, and regional deaggregation.
"""
from __future__ import annotations

import json
from pathlib import Path
from typing import Mapping, Sequence

import pandas as pd

from immistats.config import DATA_PATH, RAW_COLUMN_MAP, RAW_VALUE_PATH, REGION_HIERARCHY
from immistats.errors import DataCorrupt, DataUnavailable


SNAPSHOT_COLUMNS = ["period", "region", "category", "status", "value"]

_KEY_COLS = ["period", "status", "category", "region"]


# ---------------------------------------------------------------------------
# Reading
# ---------------------------------------------------------------------------

def read_raw_payload(path: Path = DATA_PATH) -> dict:
    """Read the JSON payload, mapping I/O and parse failures onto core errors."""
    path = Path(path)
    if not path.exists():
        raise DataUnavailable(f"Data file not found: {path}")
    try:
        with path.open(encoding="utf-8") as handle:
            return json.load(handle)
    except (json.JSONDecodeError, UnicodeDecodeError) as exc:
        raise DataCorrupt(f"Failed to parse statistics data from {path}: {exc}") from exc


def extract_entries(payload) -> list[dict]:
    """Walk to the leaf VALUE collection and always return it as a list.

    The publisher emits a bare object instead of a one-element array when a
    table holds a single cell.
    """
    if not isinstance(payload, dict):
        raise DataCorrupt(f"Unexpected top-level payload type: {type(payload).__name__}")

    node = payload
    for key in RAW_VALUE_PATH:
        if not isinstance(node, dict):
            raise DataCorrupt(f"Unexpected payload shape at '{key}'")
        node = node.get(key)
        if node is None:
            return []

    if isinstance(node, dict):
        entries = [node]
    elif isinstance(node, list):
        entries = node
    else:
        raise DataCorrupt(f"Unexpected VALUE type: {type(node).__name__}")

    for idx, entry in enumerate(entries):
        if not isinstance(entry, dict):
            raise DataCorrupt(f"VALUE[{idx}] is not an object")
    return entries


# ---------------------------------------------------------------------------
# Normalization
# ---------------------------------------------------------------------------

def entries_to_frame(entries: Sequence[dict]) -> pd.DataFrame:
    """Flatten raw entries to period/status/category/region/raw_value columns."""
    if not entries:
        return pd.DataFrame(columns=_KEY_COLS + ["raw_value"])

    df = pd.DataFrame(list(entries))
    code_keys = [key for key in RAW_COLUMN_MAP if key != "$"]
    missing = set(code_keys).difference(df.columns)
    if missing:
        raise DataCorrupt(f"Entries missing keys: {sorted(missing)}")
    if df[code_keys].isna().any().any():
        raise DataCorrupt("Entries with null codes")
    if "$" not in df.columns:
        df["$"] = None

    df = df[list(RAW_COLUMN_MAP)].rename(columns=RAW_COLUMN_MAP)
    for col in ["time_code", "status", "category", "region"]:
        df[col] = df[col].astype(str).str.strip()

    # Time codes look like 2024000303 -> 2024-03
    df["period"] = df["time_code"].str.slice(0, 4) + "-" + df["time_code"].str.slice(8, 10)
    bad = ~df["period"].str.match(r"^\d{4}-(0[1-9]|1[0-2])$")
    if bad.any():
        sample = df.loc[bad, "time_code"].iloc[0]
        raise DataCorrupt(f"{int(bad.sum())} entries with unparsable time code, e.g. '{sample}'")

    # Suppressed, null, or missing cells count as zero
    numeric = pd.to_numeric(df["raw_value"].astype(str).str.replace(",", "", regex=False), errors="coerce")
    df["raw_value"] = numeric.fillna(0).astype("int64")

    return df[_KEY_COLS + ["raw_value"]].reset_index(drop=True)


def deaggregate(
    raw: pd.DataFrame,
    hierarchy: Mapping[str, Sequence[str]] = REGION_HIERARCHY,
) -> pd.Series:
    """Subtract child-region figures from each parent's raw figure, clamped at 0.

    Pass 1 indexes every raw value by (period, status, category, region).
    Pass 2 looks up each parent entry's children in that index. Both passes
    are linear in the number of entries.
    """
    values = raw["raw_value"]
    links = pd.DataFrame(
        [(parent, child) for parent, children in hierarchy.items() for child in children],
        columns=["region", "child_region"],
    )
    if raw.empty or links.empty:
        return values.clip(lower=0)

    index = raw.drop_duplicates(subset=_KEY_COLS, keep="last").set_index(_KEY_COLS)["raw_value"]

    pairs = raw[_KEY_COLS].rename_axis("row").reset_index().merge(links, on="region")
    if pairs.empty:
        return values.clip(lower=0)

    child_keys = pd.MultiIndex.from_arrays(
        [pairs["period"], pairs["status"], pairs["category"], pairs["child_region"]],
        names=_KEY_COLS,
    )
    pairs["child_value"] = index.reindex(child_keys).fillna(0).to_numpy()
    child_totals = pairs.groupby("row")["child_value"].sum()

    corrected = values - child_totals.reindex(raw.index, fill_value=0)
    return corrected.clip(lower=0)


def normalize_snapshot(
    raw: pd.DataFrame,
    hierarchy: Mapping[str, Sequence[str]] = REGION_HIERARCHY,
) -> pd.DataFrame:
    """Build the flat snapshot frame from raw entries."""
    if raw.empty:
        return pd.DataFrame({
            "period": pd.Series(dtype=object),
            "region": pd.Series(dtype=object),
            "category": pd.Series(dtype=object),
            "status": pd.Series(dtype=object),
            "value": pd.Series(dtype="int64"),
        })

    corrected = deaggregate(raw, hierarchy)
    adjusted = int((corrected != raw["raw_value"]).sum())
    if adjusted:
        print(f"  Deaggregation: {adjusted:,} parent-region entries corrected")

    df = raw[["period", "region", "category", "status"]].copy()
    df["value"] = corrected.round().astype("int64")
    return df[SNAPSHOT_COLUMNS]


def load_snapshot(
    path: Path = DATA_PATH,
    hierarchy: Mapping[str, Sequence[str]] = REGION_HIERARCHY,
) -> pd.DataFrame:
    """Read, flatten, and deaggregate the snapshot file."""
    payload = read_raw_payload(path)
    entries = extract_entries(payload)
    raw = entries_to_frame(entries)
    return normalize_snapshot(raw, hierarchy)
