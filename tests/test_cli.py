"""CLI commands."""
from __future__ import annotations

from openpyxl import load_workbook

from immistats.cli import main


def test_summary(data_path, write_payload, sample_entries, capsys):
    write_payload(sample_entries)
    assert main(["--data", str(data_path), "summary"]) == 0
    out = capsys.readouterr().out
    assert "2024-02" in out
    assert "68.69%" in out


def test_periods(data_path, write_payload, sample_entries, capsys):
    write_payload(sample_entries)
    assert main(["--data", str(data_path), "periods"]) == 0
    assert "PERIODS (2)" in capsys.readouterr().out


def test_estimate(data_path, write_payload, steady_entries, capsys):
    write_payload(steady_entries)
    assert main(["--data", str(data_path), "estimate", "2024-03-16", "--region", "101090"]) == 0
    out = capsys.readouterr().out
    assert "Application filed 2024-03-16" in out
    assert "Processing rate" in out


def test_report(data_path, write_payload, sample_entries, tmp_path):
    write_payload(sample_entries)
    output = tmp_path / "report.xlsx"
    assert main(["--data", str(data_path), "report", "--output", str(output)]) == 0
    assert "Approval Rates" in load_workbook(output).sheetnames


def test_errors_exit_nonzero(data_path, write_payload, sample_entries, capsys):
    write_payload(sample_entries)
    assert main(["--data", str(data_path), "estimate", "yesterday"]) == 1
    assert "invalid application date" in capsys.readouterr().err
    assert main(["--data", str(data_path / "missing.json"), "summary"]) == 1
