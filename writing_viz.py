"""Render the writing trend chart and calendar heatmap as PNG files."""

from __future__ import annotations

import argparse
import logging
import os
from collections.abc import Sequence
from datetime import date, timedelta
from typing import Any

import matplotlib.pyplot as plt
import pandas as pd
import seaborn as sns
from matplotlib.colors import ListedColormap

from analytics import TIME_RANGES, build_dashboard_payload
from writing_records import LoadError, load_csv

HEATMAP_COLORS = ["#ebedf0", "#9be9a8", "#40c463", "#30a14e", "#216e39"]
WEEKDAY_LABELS = ["Mon", "Tue", "Wed", "Thu", "Fri", "Sat", "Sun"]


def render_trend_chart(points: Sequence[dict[str, Any]], output_path: str) -> None:
    """Plot daily net words as bars and the running total as a line.

    Points whose total_words is None are left out of the line so nothing
    is drawn before the first day with data.
    """
    df = pd.DataFrame(list(points), columns=["date", "daily_words", "total_words"])
    df["date"] = pd.to_datetime(df["date"])
    df["total_words"] = pd.to_numeric(df["total_words"])

    fig, ax_daily = plt.subplots(figsize=(15, 6))
    ax_daily.bar(df["date"], df["daily_words"], color="#d1d5db", label="Daily Words")
    ax_daily.set_ylabel("Daily Words", fontsize=12)

    ax_total = ax_daily.twinx()
    ax_total.plot(df["date"], df["total_words"], color="#4ade80", linewidth=2, label="Total Words")
    ax_total.set_ylabel("Total Words", fontsize=12)

    ax_daily.set_title("Daily Words and Running Total", fontsize=14, pad=20)
    ax_daily.grid(True, alpha=0.3)
    fig.legend(loc="upper left")
    fig.autofmt_xdate(rotation=45)
    fig.tight_layout()
    fig.savefig(output_path, dpi=150, bbox_inches="tight")
    plt.close(fig)


def build_calendar_grid(
    heatmap: Sequence[dict[str, Any]], today: date, weeks: int = 26
) -> pd.DataFrame:
    """Lay heatmap levels out as a weekday x week grid.

    Columns are Monday-start weeks ending with the week containing
    *today*; days after *today* are NaN.
    """
    levels = {p["date"]: p["level"] for p in heatmap}
    first_monday = today - timedelta(days=today.weekday()) - timedelta(weeks=weeks - 1)

    grid: dict[str, list[float]] = {}
    for w in range(weeks):
        week_start = first_monday + timedelta(weeks=w)
        column = []
        for d in range(7):
            day = week_start + timedelta(days=d)
            column.append(float("nan") if day > today else levels.get(day.isoformat(), 0))
        grid[week_start.isoformat()] = column
    return pd.DataFrame(grid, index=WEEKDAY_LABELS)


def render_calendar_heatmap(
    heatmap: Sequence[dict[str, Any]], today: date, output_path: str, weeks: int = 26
) -> None:
    """Render a GitHub-style calendar of daily writing investment."""
    grid = build_calendar_grid(heatmap, today, weeks)

    fig, ax = plt.subplots(figsize=(max(weeks * 0.4, 4), 3.5))
    sns.heatmap(
        grid,
        ax=ax,
        cmap=ListedColormap(HEATMAP_COLORS),
        vmin=0,
        vmax=len(HEATMAP_COLORS) - 1,
        cbar=False,
        linewidths=1.5,
        linecolor="white",
        square=True,
        xticklabels=False,
    )
    ax.set_title("Writing Days", fontsize=14, pad=12)
    fig.tight_layout()
    fig.savefig(output_path, dpi=150, bbox_inches="tight")
    plt.close(fig)


def main(argv: list[str] | None = None) -> None:
    parser = argparse.ArgumentParser(description="Render writing statistics charts")
    parser.add_argument("csv_file", nargs="?", default="writing_data.csv")
    parser.add_argument("--range", "-r", dest="time_range", choices=list(TIME_RANGES), default="month")
    parser.add_argument("--output-dir", "-o", default="writing_analytics")
    parser.add_argument("--verbose", "-v", action="store_true", help="Enable debug logging")
    args = parser.parse_args(argv)
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
    )

    try:
        records = load_csv(args.csv_file)
    except LoadError as exc:
        parser.exit(1, f"Error: {exc}\n")

    today = date.today()
    payload = build_dashboard_payload(records, args.time_range, today=today)

    os.makedirs(args.output_dir, exist_ok=True)
    render_trend_chart(payload["trend"]["points"], f"{args.output_dir}/trend.png")
    render_calendar_heatmap(payload["heatmap"], today, f"{args.output_dir}/calendar.png")
    print(f"Charts saved as 'trend.png' and 'calendar.png' in the {args.output_dir} directory")


if __name__ == "__main__":
    main()
