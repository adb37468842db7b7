"""DataStore caching, invalidation, and filtering."""
from __future__ import annotations

import threading
import time

import pytest

from immistats.config import CACHE_TTL_SECONDS
from immistats.data.schemas import FilterCriteria, ImmigrationRecord
from immistats.data.store import DataStore
from immistats.errors import DataCorrupt, DataUnavailable

from conftest import SAPPORO, SENDAI, flow_entries, raw_entry


# ---------------------------------------------------------------------------
# Cache lifecycle
# ---------------------------------------------------------------------------

def test_snapshot_is_loaded_lazily(sample_store):
    assert not sample_store.is_loaded
    sample_store.get_all()
    assert sample_store.is_loaded
    assert sample_store.load_count == 1


def test_reads_within_ttl_reuse_the_snapshot(sample_store, clock):
    sample_store.get_all()
    clock.advance(CACHE_TTL_SECONDS - 1)
    sample_store.get_all()
    assert sample_store.load_count == 1


def test_expired_snapshot_is_reloaded(sample_store, clock, write_payload):
    sample_store.get_all()
    write_payload([raw_entry("2025-01", "300000", "10", SENDAI, 1)])
    clock.advance(CACHE_TTL_SECONDS)
    df = sample_store.get_all()
    assert sample_store.load_count == 2
    assert df["period"].tolist() == ["2025-01"]


def test_invalidate_forces_reload(sample_store):
    sample_store.get_all()
    sample_store.invalidate()
    assert not sample_store.is_loaded
    sample_store.get_all()
    assert sample_store.load_count == 2


def test_missing_file_is_retried_on_next_read(data_path, write_payload, clock):
    store = DataStore(data_path, clock=clock)
    with pytest.raises(DataUnavailable):
        store.get_all()
    assert not store.is_loaded

    write_payload(flow_entries("2024-01", SENDAI, "10", 1, 1, 1, 1, 1))
    assert len(store.get_all()) == 5


def test_corrupt_file_leaves_cache_empty(write_payload, clock):
    store = DataStore(write_payload("{", raw=True), clock=clock)
    with pytest.raises(DataCorrupt):
        store.get_all()
    assert not store.is_loaded


def test_invalidate_between_freshness_check_and_read(sample_store, clock):
    sample_store.get_all()
    invalidate_on_next_tick = [True]

    def racing_clock():
        if invalidate_on_next_tick and invalidate_on_next_tick.pop():
            sample_store.invalidate()
        return clock()

    sample_store.cache._clock = racing_clock
    df = sample_store.get_all()
    assert len(df) == 30
    assert not sample_store.is_loaded


def test_concurrent_invalidate_never_yields_missing_snapshot(sample_store):
    errors = []
    stop = threading.Event()

    def read():
        while not stop.is_set():
            try:
                assert sample_store.get_all() is not None
            except Exception as e:  # collected and asserted below
                errors.append(e)
                return

    def invalidate():
        while not stop.is_set():
            sample_store.invalidate()

    threads = [threading.Thread(target=read) for _ in range(4)] + [threading.Thread(target=invalidate)]
    for t in threads:
        t.start()
    time.sleep(0.5)
    stop.set()
    for t in threads:
        t.join()
    assert errors == []


def test_get_all_returns_a_copy(sample_store):
    df = sample_store.get_all()
    df["value"] = -1
    assert (sample_store.get_all()["value"] >= 0).all()


# ---------------------------------------------------------------------------
# Filtering
# ---------------------------------------------------------------------------

def test_all_means_no_restriction(sample_store):
    everything = sample_store.get_all()
    filtered = sample_store.get_all(FilterCriteria(region="all", category="all"))
    assert len(filtered) == len(everything)


def test_region_and_category_filter(sample_store):
    df = sample_store.get_all(FilterCriteria(region=SENDAI, category="20"))
    assert set(df["region"]) == {SENDAI}
    assert set(df["category"]) == {"20"}
    assert len(df) == 5


def test_period_bounds_are_inclusive(sample_store):
    df = sample_store.get_all(FilterCriteria(start_period="2024-02", end_period="2024-02"))
    assert set(df["period"]) == {"2024-02"}


def test_trailing_months_apply_after_predicate(make_store):
    store = make_store(
        flow_entries("2024-01", SENDAI, "10", 1, 1, 1, 1, 1)
        + flow_entries("2024-03", SENDAI, "10", 1, 1, 1, 1, 1)
        + flow_entries("2024-01", SAPPORO, "10", 1, 1, 1, 1, 1)
        + flow_entries("2024-02", SAPPORO, "10", 1, 1, 1, 1, 1)
    )
    df = store.get_all(FilterCriteria(region=SAPPORO, trailing_months=1))
    assert set(df["period"]) == {"2024-02"}

    df = store.get_all(FilterCriteria(trailing_months=2))
    assert set(df["period"]) == {"2024-02", "2024-03"}


def test_records_yield_typed_rows(sample_store):
    records = list(sample_store.records(FilterCriteria(region=SAPPORO, start_period="2024-02")))
    assert len(records) == 5
    assert all(isinstance(r, ImmigrationRecord) for r in records)
    granted = next(r for r in records if r.status == "301000")
    assert granted.value == 15
    assert granted.as_dict()["period"] == "2024-02"


def test_periods_are_sorted(sample_store):
    assert sample_store.periods() == ["2024-01", "2024-02"]
