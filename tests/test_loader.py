"""Raw payload reading, shape normalization, and deaggregation."""
from __future__ import annotations

import pytest

from immistats.data.loader import (
    SNAPSHOT_COLUMNS,
    deaggregate,
    entries_to_frame,
    extract_entries,
    load_snapshot,
    read_raw_payload,
)
from immistats.errors import DataCorrupt, DataUnavailable

from conftest import SENDAI, flow_entries, raw_entry, wrap_payload


# ---------------------------------------------------------------------------
# extract_entries
# ---------------------------------------------------------------------------

def test_single_object_value_becomes_one_element_list():
    entry = raw_entry("2024-03", "300000", "10", "101090", 5)
    assert extract_entries(wrap_payload(entry)) == [entry]


def test_list_value_is_returned_as_is():
    entries = [raw_entry("2024-03", "300000", "10", "101090", n) for n in (1, 2)]
    assert extract_entries(wrap_payload(entries)) == entries


def test_missing_value_path_yields_no_entries():
    assert extract_entries({"GET_STATS_DATA": {"STATISTICAL_DATA": {}}}) == []


@pytest.mark.parametrize("payload", [
    [],
    "text",
    wrap_payload("not a collection"),
    wrap_payload([1, 2]),
    {"GET_STATS_DATA": ["unexpected"]},
])
def test_malformed_payload_shapes_are_corrupt(payload):
    with pytest.raises(DataCorrupt):
        extract_entries(payload)


# ---------------------------------------------------------------------------
# entries_to_frame
# ---------------------------------------------------------------------------

def test_period_is_derived_from_time_code():
    df = entries_to_frame([raw_entry("2024-03", "300000", "10", "101090", 7)])
    assert df.loc[0, "period"] == "2024-03"
    assert df.loc[0, "raw_value"] == 7


def test_unparsable_values_count_as_zero():
    entries = [
        raw_entry("2024-03", "300000", "10", "101090", "-"),
        raw_entry("2024-03", "301000", "10", "101090", "1,234"),
    ]
    df = entries_to_frame(entries)
    assert df["raw_value"].tolist() == [0, 1234]


def test_null_or_missing_values_count_as_zero():
    null_value = raw_entry("2024-03", "305000", "10", "101090", 0)
    null_value["$"] = None
    missing_value = raw_entry("2024-03", "400000", "10", "101090", 0)
    del missing_value["$"]
    entries = [raw_entry("2024-03", "300000", "10", "101090", 7), null_value, missing_value]

    df = entries_to_frame(entries)
    assert df["raw_value"].tolist() == [7, 0, 0]


def test_value_key_absent_everywhere_counts_as_zero():
    entry = raw_entry("2024-03", "300000", "10", "101090", 7)
    del entry["$"]
    assert entries_to_frame([entry])["raw_value"].tolist() == [0]


def test_store_loads_despite_null_value(make_store):
    bad = raw_entry("2024-01", "305000", "10", SENDAI, 0)
    bad["$"] = None
    store = make_store(flow_entries("2024-01", SENDAI, "10", 1, 2, 3, 4, 5) + [bad])
    df = store.get_all()
    assert len(df) == 6
    assert df.loc[df["status"] == "305000", "value"].tolist() == [0]


def test_bad_time_code_is_corrupt():
    entry = raw_entry("2024-03", "300000", "10", "101090", 7)
    entry["@time"] = "2024"
    with pytest.raises(DataCorrupt):
        entries_to_frame([entry])


def test_missing_keys_are_corrupt():
    entry = raw_entry("2024-03", "300000", "10", "101090", 7)
    del entry["@cat03"]
    with pytest.raises(DataCorrupt):
        entries_to_frame([entry])


# ---------------------------------------------------------------------------
# deaggregate
# ---------------------------------------------------------------------------

HIERARCHY = {"P": ("C1", "C2")}


def _frame(*rows):
    return entries_to_frame([raw_entry(*row) for row in rows])


def test_parent_loses_child_figures():
    raw = _frame(
        ("2024-03", "300000", "10", "P", 100),
        ("2024-03", "300000", "10", "C1", 30),
    )
    assert deaggregate(raw, HIERARCHY).tolist() == [70, 30]


def test_parent_is_clamped_at_zero():
    raw = _frame(
        ("2024-03", "300000", "10", "P", 100),
        ("2024-03", "300000", "10", "C1", 130),
    )
    assert deaggregate(raw, HIERARCHY).tolist() == [0, 130]


def test_children_sum_before_subtraction():
    raw = _frame(
        ("2024-03", "300000", "10", "P", 100),
        ("2024-03", "300000", "10", "C1", 30),
        ("2024-03", "300000", "10", "C2", 20),
    )
    assert deaggregate(raw, HIERARCHY).tolist() == [50, 30, 20]


def test_only_matching_keys_are_subtracted():
    raw = _frame(
        ("2024-03", "300000", "10", "P", 100),
        ("2024-03", "301000", "10", "C1", 30),
        ("2024-04", "300000", "10", "C1", 30),
        ("2024-03", "300000", "20", "C1", 30),
    )
    assert deaggregate(raw, HIERARCHY).tolist()[0] == 100


def test_parent_listed_after_child_is_still_corrected():
    raw = _frame(
        ("2024-03", "300000", "10", "C1", 30),
        ("2024-03", "300000", "10", "P", 100),
    )
    assert deaggregate(raw, HIERARCHY).tolist() == [30, 70]


def test_duplicate_child_key_uses_last_value():
    raw = _frame(
        ("2024-03", "300000", "10", "P", 100),
        ("2024-03", "300000", "10", "C1", 10),
        ("2024-03", "300000", "10", "C1", 40),
    )
    assert deaggregate(raw, HIERARCHY).tolist()[0] == 60


# ---------------------------------------------------------------------------
# Reading and loading
# ---------------------------------------------------------------------------

def test_missing_file_is_unavailable(tmp_path):
    with pytest.raises(DataUnavailable):
        read_raw_payload(tmp_path / "absent.json")


def test_invalid_json_is_corrupt(write_payload):
    path = write_payload("{not json", raw=True)
    with pytest.raises(DataCorrupt):
        read_raw_payload(path)


def test_load_snapshot_builds_flat_frame(write_payload):
    path = write_payload([
        raw_entry("2024-03", "300000", "10", "101170", 100),
        raw_entry("2024-03", "300000", "10", "101190", 25),
    ])
    df = load_snapshot(path)
    assert list(df.columns) == SNAPSHOT_COLUMNS
    assert str(df["value"].dtype) == "int64"
    values = dict(zip(df["region"], df["value"]))
    assert values == {"101170": 75, "101190": 25}


def test_load_snapshot_of_empty_payload(write_payload):
    path = write_payload({"GET_STATS_DATA": {}})
    df = load_snapshot(path)
    assert df.empty
    assert list(df.columns) == SNAPSHOT_COLUMNS
