"""
Statistics Report — summary KPIs, monthly flow, regional workload, backlog by
category, and approval-rate ranking.
"""
from __future__ import annotations

from pathlib import Path

import pandas as pd

from immistats.analytics import aggregation
from immistats.analytics.common import pct_of_total, sanitize_for_json
from immistats.config import (
    BACKLOG_CATEGORIES, CATEGORY_LABELS, NATIONWIDE_REGION, REGION_LABELS, STATUS_LABELS,
)
from immistats.data.schemas import FilterCriteria
from immistats.data.store import DataStore
from immistats.excel.writer import ExcelWriter


MONTHLY_COLS = [
    ("period", "text", "Period"),
    ("carryover", "number", "Carryover"),
    ("new_received", "number", "New Received"),
    ("total_received", "number", "Total Received"),
    ("granted", "number", "Granted"),
    ("denied", "number", "Denied"),
    ("total_processed", "number", "Total Processed"),
]

REGION_COLS = [
    ("region_label", "text", "Region"),
    ("region", "text", "Code"),
    ("value", "number", "Workload"),
    ("share", "percent", "% of Total"),
]

BACKLOG_COLS = [("period", "text", "Period")] + [
    (code, "number", CATEGORY_LABELS[code]) for code in BACKLOG_CATEGORIES
]

APPROVAL_COLS = [
    ("region", "text", "Region"),
    ("region_code", "text", "Code"),
    ("granted", "number", "Granted"),
    ("processed", "number", "Processed"),
    ("approval_rate", "percent", "Approval Rate"),
]


def generate_json(store: DataStore, criteria: FilterCriteria | None = None) -> dict:
    criteria = criteria or FilterCriteria()

    distribution = aggregation.get_region_distribution(store, criteria)
    total_workload = sum(r["value"] for r in distribution)
    for r in distribution:
        r["region_label"] = REGION_LABELS.get(r["region"], r["region"])
        r["share"] = round(pct_of_total(r["value"], total_workload), 2)

    return sanitize_for_json({
        "periods": aggregation.get_available_periods(store),
        "summary": aggregation.get_summary(store, criteria),
        "monthly": aggregation.get_monthly_series(store, criteria),
        "distribution": distribution,
        "backlog": aggregation.get_backlog_trend(store, criteria),
        "approval_rates": aggregation.get_region_approval_rates(
            store,
            category=criteria.category,
            trailing_months=criteria.trailing_months,
        ),
    })


def generate_excel(
    store: DataStore,
    output_path: str | Path,
    criteria: FilterCriteria | None = None,
) -> Path:
    data = generate_json(store, criteria)
    s = data["summary"]
    periods = data["periods"]
    span = f"{periods[0]} to {periods[-1]}" if periods else "no data"
    ew = ExcelWriter()

    # Summary
    ws = ew.add_sheet("Summary")
    ew.write_title(ws, "IMMIGRATION PROCESSING STATISTICS",
                   f"Data {span}  |  Latest period {s['latest_period'] or 'n/a'}  |  "
                   f"Generated {pd.Timestamp.now():%B %d, %Y}")

    row = ew.write_section(ws, 5, "LATEST PERIOD")
    row = ew.write_kpi_row(ws, row, [
        (s["total_received"], "TOTAL RECEIVED", "number"),
        (s["total_processed"], "TOTAL PROCESSED", "number"),
        (s["pending_count"], "PENDING", "number"),
    ])
    row = ew.write_kpi_row(ws, row, [
        (s["total_granted"], "GRANTED", "number"),
        (s["total_denied"], "DENIED", "number"),
        (s["approval_rate"], "APPROVAL RATE", "percent"),
    ])

    row = ew.write_section(ws, row, "STATUS CODES")
    ew.write_legend(ws, row, list(STATUS_LABELS.items()))

    # Monthly flow
    ws = ew.add_sheet("Monthly")
    ew.write_table(ws, 1, MONTHLY_COLS, data["monthly"])

    # Regional workload
    ws = ew.add_sheet("Regions")
    ew.write_table(ws, 1, REGION_COLS, data["distribution"])

    # Backlog by category
    ws = ew.add_sheet("Backlog")
    ew.write_table(ws, 1, BACKLOG_COLS, data["backlog"])

    # Approval rates
    rates = data["approval_rates"]
    ws = ew.add_sheet("Approval Rates")
    window = f"{rates['period_start']} to {rates['period_end']}" if rates["period_start"] else "no data"
    row = ew.write_note(ws, 1, f"Window {window}. Regions with fewer than {rates['threshold']} "
                               f"processed cases are not ranked.")
    row = ew.write_table(ws, row, APPROVAL_COLS, rates["data"], freeze=False,
                         highlight_fn=lambda i, r: "blue" if r["region_code"] == NATIONWIDE_REGION else None)
    if rates["excluded_regions"]:
        excluded = ", ".join(REGION_LABELS.get(code, code) for code in rates["excluded_regions"])
        ew.write_note(ws, row + 1, f"Not ranked: {excluded}")

    return ew.save(output_path)
