"""
Shared fixtures: raw e-Stat payloads written to tmp_path and stores built on them.
"""
from __future__ import annotations

import json

import pytest

from immistats.data.store import DataStore


SENDAI = "101090"
SAPPORO = "101010"
HIROSHIMA = "101580"
NATIONWIDE = "100000"


def time_code(period: str) -> str:
    """2024-03 -> 2024000303, the publisher's monthly time code."""
    year, month = period.split("-")
    return f"{year}00{month}{month}"


def raw_entry(period, status, category, region, value) -> dict:
    return {
        "@tab": "001",
        "@cat01": status,
        "@cat02": category,
        "@cat03": region,
        "@time": time_code(period),
        "$": str(value),
    }


def flow_entries(period, region, category, carryover, new, granted, denied, processed) -> list[dict]:
    """One month of the five flow statuses for a region/category."""
    return [
        raw_entry(period, "102000", category, region, carryover),
        raw_entry(period, "103000", category, region, new),
        raw_entry(period, "301000", category, region, granted),
        raw_entry(period, "302000", category, region, denied),
        raw_entry(period, "300000", category, region, processed),
    ]


def wrap_payload(value) -> dict:
    return {"GET_STATS_DATA": {"STATISTICAL_DATA": {"DATA_INF": {"VALUE": value}}}}


class FakeClock:
    def __init__(self, start: float = 0.0) -> None:
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


@pytest.fixture
def clock():
    return FakeClock(1000.0)


@pytest.fixture
def data_path(tmp_path):
    return tmp_path / "getStatsData.json"


@pytest.fixture
def write_payload(data_path):
    """Write a payload (or a list of entries) as the snapshot file."""
    def _write(value, raw: bool = False):
        if raw:
            data_path.write_text(value, encoding="utf-8")
        else:
            payload = wrap_payload(value) if isinstance(value, list) else value
            data_path.write_text(json.dumps(payload), encoding="utf-8")
        return data_path
    return _write


@pytest.fixture
def make_store(write_payload, clock):
    def _make(entries, **kwargs):
        path = write_payload(entries)
        kwargs.setdefault("clock", clock)
        return DataStore(path, **kwargs)
    return _make


@pytest.fixture
def sample_entries():
    """Two months, two regions plus the nationwide aggregate."""
    return (
        flow_entries("2024-01", SENDAI, "10", 100, 50, 60, 10, 80)
        + flow_entries("2024-01", SAPPORO, "10", 40, 20, 20, 5, 30)
        + flow_entries("2024-02", SENDAI, "10", 90, 40, 50, 10, 70)
        + flow_entries("2024-02", SAPPORO, "10", 30, 10, 15, 5, 25)
        + flow_entries("2024-02", SENDAI, "20", 10, 5, 3, 1, 4)
        + flow_entries("2024-02", NATIONWIDE, "10", 120, 50, 65, 15, 95)
    )


@pytest.fixture
def sample_store(make_store, sample_entries):
    return make_store(sample_entries)


@pytest.fixture
def steady_entries():
    """Three months at a constant 3 decisions/day and 1 arrival/day in Sendai."""
    return (
        flow_entries("2024-01", SENDAI, "10", 250, 31, 60, 30, 90)
        + flow_entries("2024-02", SENDAI, "10", 200, 29, 60, 30, 90)
        + flow_entries("2024-03", SENDAI, "10", 150, 31, 60, 30, 90)
    )


@pytest.fixture
def steady_store(make_store, steady_entries):
    return make_store(steady_entries)
