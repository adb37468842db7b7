"""Excel statistics report."""
from __future__ import annotations

from openpyxl import load_workbook

from immistats.data.schemas import FilterCriteria
from immistats.reports import stats_report

from conftest import SAPPORO, SENDAI


def test_generate_json(sample_store):
    data = stats_report.generate_json(sample_store)
    assert data["periods"] == ["2024-01", "2024-02"]
    assert data["summary"]["total_processed"] == 99
    shares = {r["region"]: r["share"] for r in data["distribution"]}
    assert shares == {SENDAI: 74.68, SAPPORO: 25.32}
    assert data["distribution"][0]["region_label"] == "Sendai"


def test_generate_excel_sheets(sample_store, tmp_path):
    path = stats_report.generate_excel(sample_store, tmp_path / "out" / "stats.xlsx")
    assert path.exists()

    wb = load_workbook(path)
    assert wb.sheetnames == ["Summary", "Monthly", "Regions", "Backlog", "Approval Rates"]

    monthly = wb["Monthly"]
    assert monthly["A1"].value == "Period"
    assert monthly["A2"].value == "2024-01"
    assert monthly["D2"].value == 210

    backlog = wb["Backlog"]
    assert backlog["B1"].value == "Status Acquisition"
    assert backlog["C3"].value == 10


def test_generate_excel_with_filter(sample_store, tmp_path):
    path = stats_report.generate_excel(
        sample_store, tmp_path / "sendai.xlsx", FilterCriteria(region=SENDAI, trailing_months=1)
    )
    regions = load_workbook(path)["Regions"]
    assert regions["A2"].value == "Sendai"
    assert regions["A3"].value is None


def test_generate_excel_without_data(make_store, tmp_path):
    path = stats_report.generate_excel(make_store([]), tmp_path / "empty.xlsx")
    summary = load_workbook(path)["Summary"]
    assert "no data" in summary["A2"].value


def test_nationwide_row_is_highlighted(sample_store, tmp_path):
    path = stats_report.generate_excel(sample_store, tmp_path / "rates.xlsx")
    ws = load_workbook(path)["Approval Rates"]
    fills = {
        row[1].value: row[0].fill.start_color.rgb
        for row in ws.iter_rows(min_row=4)
        if row[1].value
    }
    assert fills["100000"].endswith("E8F0F8")
    assert not fills[SENDAI].endswith("E8F0F8")
