"""writing_summary.py

Print a writing summary for a snapshot log and save daily statistics.

Writes daily_stats.json/csv into the output directory (default
``writing_analytics``). Run ``python writing_viz.py`` afterwards to render
charts.
"""

from __future__ import annotations

import argparse
import logging
import sys
from datetime import date

from analytics import (
    TIME_RANGES,
    build_dashboard_payload,
    print_summary_report,
    save_analytics_files,
)
from writing_records import LoadError, load_csv


def _parse_date(value: str) -> date:
    try:
        return date.fromisoformat(value)
    except ValueError:
        raise argparse.ArgumentTypeError(f"Invalid date (expected YYYY-MM-DD): {value}") from None


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Summarize a writing snapshot log")
    parser.add_argument("csv_file", nargs="?", default="writing_data.csv",
                        help="Path to the snapshot CSV (default: writing_data.csv)")
    parser.add_argument("--range", "-r", dest="time_range", choices=list(TIME_RANGES),
                        default="month", help="Trend window (default: month)")
    parser.add_argument("--today", type=_parse_date, default=None,
                        help="Anchor date for the trend window (default: today)")
    parser.add_argument("--output-dir", "-o", default="writing_analytics",
                        help="Directory for daily_stats.json/csv")
    parser.add_argument("--verbose", "-v", action="store_true",
                        help="Enable debug logging")
    return parser


def main(argv: list[str] | None = None) -> None:
    """CLI entry point."""
    args = build_parser().parse_args(argv)
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
    )

    try:
        records = load_csv(args.csv_file)
    except LoadError as exc:
        print(f"Error: {exc}", file=sys.stderr)
        sys.exit(1)

    payload = build_dashboard_payload(
        records, args.time_range, today=args.today or date.today()
    )
    save_analytics_files(payload["daily"], args.output_dir)
    print_summary_report(payload)
    print(f"\nDaily statistics saved to '{args.output_dir}' (daily_stats.json/csv)")


if __name__ == "__main__":
    main()
