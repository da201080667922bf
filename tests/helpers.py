"""Shared test helpers for writing_stats tests.

Regular functions (not fixtures) that can be imported by any test module.
"""

from __future__ import annotations

CSV_HEADER = "timestamp,filename,total_words,word_change"


def make_record(
    timestamp: str,
    total_words: int,
    word_change: int,
    filename: str = "draft.md",
) -> dict:
    """Build a snapshot record dict as produced by ``parse_csv``."""
    return {
        "timestamp": timestamp,
        "filename": filename,
        "total_words": total_words,
        "word_change": word_change,
    }


def make_csv(rows: list[tuple[str, str, int, int]]) -> str:
    """Build CSV text from (timestamp, filename, total_words, word_change) rows."""
    lines = [CSV_HEADER]
    lines.extend(f"{ts},{name},{total},{change}" for ts, name, total, change in rows)
    return "\n".join(lines) + "\n"


def make_daily_records(day_configs: list[tuple[str, int, list[int]]]) -> list[dict]:
    """Build chronologically ordered records spanning several days.

    Args:
        day_configs: List of (date_str, starting_total, word_changes)
            tuples.  Each change becomes one save, an hour apart from
            10:00, and moves the running total by that amount.

    Returns:
        A flat list of record dicts.
    """
    records = []
    for date_str, total, changes in day_configs:
        for i, change in enumerate(changes):
            total += change
            records.append(make_record(f"{date_str} {10 + i:02d}:00:00", total, change))
    return records
