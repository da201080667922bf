"""Core data processing for writing statistics.

Turns a raw log of word-count snapshots into per-day aggregates, a writing
streak, heatmap points and gap-filled trend series.  Used by both the CLI
(writing_summary.py) and the web dashboard (app.py).

Every function here is pure: "today" is always passed in by the caller.
"""

from __future__ import annotations

import csv
import json
import logging
import os
from collections.abc import Sequence
from datetime import date, timedelta
from typing import Any, TypedDict

from writing_records import SnapshotRecord

logger = logging.getLogger(__name__)

TIME_RANGES: dict[str, int] = {
    "week": 7,
    "month": 30,
    # Labelled "year" in the UI but only covers half a year.
    "year": 180,
}

RECENT_SAVES_COUNT = 3

# Upper bounds (exclusive) of heatmap levels 1..3; anything above is level 4.
_HEATMAP_THRESHOLDS = (100, 500, 1000)


class DailyAggregate(TypedDict):
    date: str
    is_active: bool
    total_words: int
    net_change: int
    total_investment: int


class TrendPoint(TypedDict):
    date: str
    daily_words: int
    total_words: int | None


def _date_key(timestamp: str) -> str:
    """Return the ``YYYY-MM-DD`` portion of a snapshot timestamp."""
    return timestamp[:10]


# ---------------------------------------------------------------------------
# Daily aggregation
# ---------------------------------------------------------------------------

def _group_by_date(records: Sequence[SnapshotRecord]) -> dict[str, list[SnapshotRecord]]:
    grouped: dict[str, list[SnapshotRecord]] = {}
    for record in records:
        grouped.setdefault(_date_key(record["timestamp"]), []).append(record)
    return grouped


def aggregate_by_day(records: Sequence[SnapshotRecord]) -> list[DailyAggregate]:
    """Aggregate snapshot records into one summary per calendar day.

    Records are grouped by the date prefix of their timestamp.  Within a
    day the records are ordered by full timestamp (stable, so identical
    timestamps keep input order) and the last one supplies the day's
    closing ``total_words``.

    ``net_change`` is measured against the previous *aggregated* day, so
    days without any snapshots are skipped over rather than treated as
    zero.  The very first day has no predecessor and uses its
    ``total_investment`` instead.

    Args:
        records: Snapshot records, in any order.

    Returns:
        List of DailyAggregate dicts sorted ascending by date.  Empty if
        *records* is empty.
    """
    grouped = _group_by_date(records)

    daily: list[DailyAggregate] = []
    for day in sorted(grouped):
        day_records = sorted(grouped[day], key=lambda r: r["timestamp"])
        daily.append(
            {
                "date": day,
                "is_active": True,
                "total_words": day_records[-1]["total_words"],
                "net_change": 0,
                "total_investment": sum(abs(r["word_change"]) for r in day_records),
            }
        )

    for i, day in enumerate(daily):
        if i == 0:
            day["net_change"] = day["total_investment"]
        else:
            day["net_change"] = day["total_words"] - daily[i - 1]["total_words"]

    return daily


def calculate_writing_streak(daily: Sequence[DailyAggregate]) -> int:
    """Count consecutive calendar days of net writing activity.

    Walks backward one calendar day at a time from the most recent
    aggregated day, stopping at the first day that has no aggregate or
    whose ``net_change`` is zero.

    Args:
        daily: Aggregates sorted ascending by date (as returned by
            ``aggregate_by_day``).

    Returns:
        Streak length in days; 0 for an empty series or when the most
        recent day has no net change.
    """
    if not daily:
        return 0

    by_date = {d["date"]: d for d in daily}
    current = date.fromisoformat(daily[-1]["date"])
    streak = 0
    while True:
        day = by_date.get(current.isoformat())
        if day is None or day["net_change"] == 0:
            break
        streak += 1
        current -= timedelta(days=1)
    return streak


# ---------------------------------------------------------------------------
# Chart formatting
# ---------------------------------------------------------------------------

def heatmap_level(count: int) -> int:
    """Map a day's total investment to a calendar color level (0-4)."""
    if count <= 0:
        return 0
    for level, bound in enumerate(_HEATMAP_THRESHOLDS, 1):
        if count < bound:
            return level
    return len(_HEATMAP_THRESHOLDS) + 1


def format_for_heatmap(daily: Sequence[DailyAggregate]) -> list[dict[str, Any]]:
    """Format aggregates as calendar heatmap points.

    Returns:
        List of dicts with keys date, count (the day's total investment)
        and level (color bucket from ``heatmap_level``).
    """
    return [
        {
            "date": d["date"],
            "count": d["total_investment"],
            "level": heatmap_level(d["total_investment"]),
        }
        for d in daily
    ]


def format_for_trend_chart(daily: Sequence[DailyAggregate]) -> list[TrendPoint]:
    """Format aggregates as trend chart points (daily net + running total)."""
    return [
        {"date": d["date"], "daily_words": d["net_change"], "total_words": d["total_words"]}
        for d in daily
    ]


def window_days(time_range: str) -> int:
    """Return the number of days covered by a time range preset.

    Raises:
        ValueError: If *time_range* is not one of week, month, year.
    """
    try:
        return TIME_RANGES[time_range]
    except KeyError:
        raise ValueError(
            f"Unknown time range {time_range!r}; expected one of {', '.join(TIME_RANGES)}"
        ) from None


def generate_date_sequence(end: date, days: int) -> list[str]:
    """Return *days* consecutive ``YYYY-MM-DD`` keys ending at *end* (inclusive)."""
    start = end - timedelta(days=days - 1)
    return [(start + timedelta(days=i)).isoformat() for i in range(max(days, 0))]


def fill_missing_dates(
    points: Sequence[TrendPoint], date_sequence: Sequence[str]
) -> list[TrendPoint]:
    """Expand sparse trend points into one point per date in *date_sequence*.

    Days without data get ``daily_words = 0``.  Their ``total_words`` is
    carried forward from the last real point, or None if no real point has
    been seen yet in the sequence, so a line chart draws nothing before
    writing began but holds flat through later inactive stretches.

    Args:
        points: Trend points, typically from ``format_for_trend_chart``.
        date_sequence: Dense ascending run of date keys to emit.

    Returns:
        List of TrendPoint dicts, one per entry of *date_sequence*.
    """
    by_date = {p["date"]: p for p in points}
    last_total: int | None = None

    filled: list[TrendPoint] = []
    for day in date_sequence:
        point = by_date.get(day)
        if point is not None:
            last_total = point["total_words"]
            filled.append(dict(point))
        else:
            filled.append({"date": day, "daily_words": 0, "total_words": last_total})
    return filled


def compute_trend_data(
    daily: Sequence[DailyAggregate], time_range: str, today: date
) -> dict[str, Any]:
    """Build the trend chart series for a trailing window ending at *today*.

    Returns:
        Dict with keys range, days and points (gap-filled TrendPoints).
    """
    days = window_days(time_range)
    date_sequence = generate_date_sequence(today, days)
    in_window = set(date_sequence)
    points = [p for p in format_for_trend_chart(daily) if p["date"] in in_window]
    return {
        "range": time_range,
        "days": days,
        "points": fill_missing_dates(points, date_sequence),
    }


def format_recent_saves(records: Sequence[SnapshotRecord]) -> list[dict[str, Any]]:
    """Split recent save records into display fields."""
    saves = []
    for record in records:
        save_date, _, save_time = record["timestamp"].partition(" ")
        saves.append(
            {
                "filename": record["filename"],
                "date": save_date,
                "time": save_time,
                "word_count": record["total_words"],
            }
        )
    return saves


# ---------------------------------------------------------------------------
# Dashboard assembly
# ---------------------------------------------------------------------------

def aggregate_dashboard_data(records: Sequence[SnapshotRecord]) -> dict[str, Any]:
    """Compute the full-history view model for the dashboard.

    Args:
        records: All snapshot records in input (chronological) order.

    Returns:
        Dict with keys:
            - daily: aggregates ascending by date.
            - recent_saves: last three raw records, most recent first.
            - latest_total: total_words of the last raw record, or 0.
            - latest_net_change: net_change of the last aggregate, or 0.
            - writing_streak: from ``calculate_writing_streak``.
    """
    daily = aggregate_by_day(records)
    return {
        "daily": daily,
        "recent_saves": list(reversed(records[-RECENT_SAVES_COUNT:])),
        "latest_total": records[-1]["total_words"] if records else 0,
        "latest_net_change": daily[-1]["net_change"] if daily else 0,
        "writing_streak": calculate_writing_streak(daily),
    }


def build_dashboard_payload(
    records: Sequence[SnapshotRecord],
    time_range: str = "month",
    today: date | None = None,
) -> dict[str, Any]:
    """One-call entry point: compute everything the dashboard renders.

    Aggregation always runs over the full record set so the streak and
    totals reflect all history; only the trend series is windowed.

    Args:
        records: All snapshot records in input order.
        time_range: Trend window preset (week, month or year).
        today: Anchor date for the trend window.  Required; callers own
            the clock.

    Returns:
        Dict with keys summary, daily, heatmap, trend, recent_saves.

    Raises:
        ValueError: If *time_range* is unknown or *today* is missing.
    """
    if today is None:
        raise ValueError("today is required to anchor the trend window")

    view = aggregate_dashboard_data(records)
    daily = view["daily"]
    recent_saves = format_recent_saves(view["recent_saves"])

    return {
        "summary": {
            "latest_total": view["latest_total"],
            "latest_net_change": view["latest_net_change"],
            "writing_streak": view["writing_streak"],
            "current_file": recent_saves[0]["filename"] if recent_saves else None,
            "active_days": len(daily),
            "total_investment": sum(d["total_investment"] for d in daily),
            "first_date": daily[0]["date"] if daily else None,
            "last_date": daily[-1]["date"] if daily else None,
        },
        "daily": daily,
        "heatmap": format_for_heatmap(daily),
        "trend": compute_trend_data(daily, time_range, today),
        "recent_saves": recent_saves,
    }


# ---------------------------------------------------------------------------
# CLI helpers
# ---------------------------------------------------------------------------

_DAILY_FIELDS = ["date", "is_active", "total_words", "net_change", "total_investment"]


def save_analytics_files(
    daily: Sequence[DailyAggregate], output_dir: str = "writing_analytics"
) -> None:
    """Write daily_stats.json/csv to output_dir.

    Args:
        daily: Aggregates from ``aggregate_by_day``.
        output_dir: Directory path for output files.  Created if it
            doesn't exist.
    """
    os.makedirs(output_dir, exist_ok=True)

    with open(f"{output_dir}/daily_stats.json", "w", encoding="utf-8") as f:
        json.dump(list(daily), f, indent=2)

    with open(f"{output_dir}/daily_stats.csv", "w", newline="", encoding="utf-8") as f:
        writer = csv.DictWriter(f, fieldnames=_DAILY_FIELDS)
        writer.writeheader()
        writer.writerows(daily)

    logger.debug("Wrote %d daily rows to %s", len(daily), output_dir)


def print_summary_report(payload: dict[str, Any]) -> None:
    """Print a human-readable summary of a dashboard payload to stdout."""
    summary = payload["summary"]
    print(f"\n{'=' * 60}")
    print("Writing Summary")
    print(f"{'=' * 60}")
    print(f"Current File: {summary['current_file'] or 'no data'}")
    print(f"Total Words: {summary['latest_total']:,}")
    print(f"Latest Net Change: {summary['latest_net_change']:+,}")
    print(f"Writing Streak: {summary['writing_streak']} days")

    if summary["first_date"]:
        print(f"First Day: {summary['first_date']}")
        print(f"Last Day: {summary['last_date']}")
        print(f"Active Days: {summary['active_days']:,}")
        print(f"Total Investment: {summary['total_investment']:,} words")

    saves = payload["recent_saves"]
    if saves:
        print("\nRecent Saves:")
        for save in saves:
            print(f"  {save['date']} {save['time']}  {save['filename']}: {save['word_count']:,}")

    trend = payload["trend"]
    written = sum(p["daily_words"] for p in trend["points"])
    print(f"\nNet words over last {trend['days']} days ({trend['range']}): {written:+,}")
    print(f"{'=' * 60}")
