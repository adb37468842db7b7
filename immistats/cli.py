#!/usr/bin/env python3
"""
Immistats CLI — statistics summaries, completion estimates, Excel report, and API server.

USAGE:
  python -m immistats.cli summary                              # Latest-period headline figures
  python -m immistats.cli summary --region 101170 --category 20
  python -m immistats.cli periods                              # Periods with data

  python -m immistats.cli estimate 2024-03-15                  # Estimate for an application date
  python -m immistats.cli estimate 2024-03-15 --region 101170 --category 60

  python -m immistats.cli report                               # Excel workbook to REPORTS_FOLDER
  python -m immistats.cli report --output ./stats.xlsx

  python -m immistats.cli serve                                # Start API server
  python -m immistats.cli serve --port 8000
"""
from __future__ import annotations

import argparse
import os
import sys
from pathlib import Path

from immistats.config import CATEGORY_LABELS, DATA_PATH, REGION_LABELS, REPORTS_FOLDER
from immistats.data.store import DataStore
from immistats.data.schemas import EstimationRequest, FilterCriteria
from immistats.errors import StatsError


def _build_criteria(args) -> FilterCriteria:
    """Build a FilterCriteria from CLI args."""
    return FilterCriteria(
        region=getattr(args, "region", None),
        category=getattr(args, "category", None),
        trailing_months=getattr(args, "trailing_months", None),
    )


def _open_store(args) -> DataStore:
    return DataStore(Path(args.data) if args.data else DATA_PATH)


def cmd_summary(args):
    """Print headline figures for the latest period."""
    from immistats.analytics.aggregation import get_summary

    store = _open_store(args)
    s = get_summary(store, _build_criteria(args))

    print("\n" + "=" * 60)
    print(f"  IMMIGRATION STATISTICS — {s['latest_period'] or 'no data'}")
    print("=" * 60)
    print(f"  Total received   {s['total_received']:>12,}")
    print(f"  Total processed  {s['total_processed']:>12,}")
    print(f"  Granted          {s['total_granted']:>12,}")
    print(f"  Denied           {s['total_denied']:>12,}")
    print(f"  Pending          {s['pending_count']:>12,}")
    print(f"  Approval rate    {s['approval_rate']:>11.2f}%")


def cmd_periods(args):
    """List periods with data."""
    store = _open_store(args)
    periods = store.periods()
    print(f"\nPERIODS ({len(periods)}):\n")
    for p in periods:
        print(f"  {p}")


def cmd_estimate(args):
    """Estimate the completion date for one application."""
    from immistats.analytics.estimation import estimate_completion

    request = EstimationRequest.parse(args.date, args.region, args.category)
    store = _open_store(args)
    result = estimate_completion(store, request)

    region = REGION_LABELS.get(request.region, "All regions")
    category = CATEGORY_LABELS.get(request.category, "All types")
    print(f"\nApplication filed {request.application_date:%Y-%m-%d}  |  {region}  |  {category}\n")
    if result.already_processed:
        print("  Likely already decided.")
    else:
        print(f"  Estimated completion  {result.estimated_date:%Y-%m-%d}  ({result.days_remaining:,} days)")
        print(f"  Range                 {result.optimistic_date:%Y-%m-%d} to {result.pessimistic_date:%Y-%m-%d}")
        print(f"  Queue position        {result.queue_position:,}")
    print(f"  Processing rate       {result.daily_processing_rate:,.2f} / day")
    print(f"  Confidence            {result.confidence_level}%")
    print(f"  Region efficiency     {result.region_efficiency:.2f}x")


def cmd_report(args):
    """Generate the Excel statistics workbook."""
    from immistats.reports.stats_report import generate_excel

    store = _open_store(args)
    output = Path(args.output) if args.output else REPORTS_FOLDER / "Immigration_Statistics.xlsx"
    print("\nGenerating statistics report...")
    path = generate_excel(store, output, _build_criteria(args))
    print(f"  Saved: {path}")


def cmd_serve(args):
    """Start the API server."""
    import uvicorn
    print(f"\nStarting Immistats API on port {args.port}...")
    uvicorn.run("immistats.main:app", host="0.0.0.0", port=args.port, reload=args.reload,
                timeout_keep_alive=65)


def _add_filter_args(parser: argparse.ArgumentParser) -> None:
    parser.add_argument("--region", default="all", help="Region code (default: all)")
    parser.add_argument("--category", default="all", help="Category code (default: all)")


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="Immistats — immigration processing statistics and estimates",
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    parser.add_argument("--data", help=f"Snapshot JSON file (default: {DATA_PATH})")
    subparsers = parser.add_subparsers(dest="command", help="Command")

    summary_parser = subparsers.add_parser("summary", help="Latest-period headline figures")
    _add_filter_args(summary_parser)
    summary_parser.set_defaults(func=cmd_summary)

    periods_parser = subparsers.add_parser("periods", help="List periods with data")
    periods_parser.set_defaults(func=cmd_periods)

    estimate_parser = subparsers.add_parser("estimate", help="Estimate completion for an application")
    estimate_parser.add_argument("date", help="Application date (YYYY-MM-DD)")
    _add_filter_args(estimate_parser)
    estimate_parser.set_defaults(func=cmd_estimate)

    report_parser = subparsers.add_parser("report", help="Generate Excel statistics report")
    report_parser.add_argument("--output", help="Output .xlsx path")
    _add_filter_args(report_parser)
    report_parser.add_argument("--trailing-months", type=int, help="Keep the N most recent periods")
    report_parser.set_defaults(func=cmd_report)

    serve_parser = subparsers.add_parser("serve", help="Start API server")
    serve_parser.add_argument("--port", type=int, default=int(os.environ.get("PORT", "8000")), help="Port (default 8000)")
    serve_parser.add_argument("--reload", action="store_true", help="Enable auto-reload")
    serve_parser.set_defaults(func=cmd_serve)

    return parser


def main(argv=None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)
    if not args.command:
        parser.print_help()
        return 0

    try:
        args.func(args)
    except StatsError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())
