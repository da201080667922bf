"""Load and normalize writing snapshot records.

A snapshot log is a CSV file with the header
``timestamp,filename,total_words,word_change`` and one save event per line.
Malformed lines are dropped here so the analytics layer only ever sees
well-formed records.
"""

from __future__ import annotations

import csv
import logging
import re
import threading
from datetime import datetime
from pathlib import Path
from typing import Protocol, TypedDict

logger = logging.getLogger(__name__)

TIMESTAMP_FORMAT = "%Y-%m-%d %H:%M:%S"
DEFAULT_CACHE_KEY = "writingData"

_LEADING_INT = re.compile(r"\s*([+-]?[0-9]+)")


class SnapshotRecord(TypedDict):
    timestamp: str
    filename: str
    total_words: int
    word_change: int


class LoadError(Exception):
    """Raised when a snapshot source cannot be read."""


def _parse_int(value: str) -> int:
    """Parse the leading integer of *value*, or 0 if there is none."""
    match = _LEADING_INT.match(value)
    return int(match.group(1)) if match else 0


def _parse_timestamp(value: str) -> str | None:
    """Return *value* in canonical ``YYYY-MM-DD HH:MM:SS`` form.

    Returns None for empty or unparsable values.
    """
    value = value.strip()
    if not value:
        return None
    try:
        return datetime.fromisoformat(value).strftime(TIMESTAMP_FORMAT)
    except ValueError:
        return None


def normalize_row(row: list[str]) -> SnapshotRecord | None:
    """Shape one CSV row into a snapshot record.

    Args:
        row: Raw field list from the CSV reader.  Only the first four
            fields are used.

    Returns:
        A SnapshotRecord, or None if the row has fewer than four fields
        or no usable timestamp.
    """
    if len(row) < 4:
        return None

    timestamp_raw, filename, total_words, word_change = row[:4]
    timestamp = _parse_timestamp(timestamp_raw)
    if timestamp is None:
        return None

    return {
        "timestamp": timestamp,
        "filename": filename.strip(),
        "total_words": _parse_int(total_words),
        "word_change": _parse_int(word_change),
    }


def parse_csv(text: str) -> list[SnapshotRecord]:
    """Parse snapshot CSV text into records.

    The first line is treated as a header and discarded.  Rows that
    cannot be normalized are dropped silently (counted at DEBUG level).

    Args:
        text: Full CSV document.

    Returns:
        Records in input order.
    """
    lines = text.strip().splitlines()
    records: list[SnapshotRecord] = []
    dropped = 0
    for line in lines[1:]:
        row = next(csv.reader([line]), [])
        record = normalize_row(row)
        if record is None:
            dropped += 1
            continue
        records.append(record)

    if dropped:
        logger.debug("Dropped %d malformed snapshot rows", dropped)
    return records


def load_csv(path: str | Path) -> list[SnapshotRecord]:
    """Load snapshot records from a CSV file.

    Raises:
        LoadError: If the file is missing or cannot be decoded.
    """
    try:
        text = Path(path).read_text(encoding="utf-8-sig")
    except FileNotFoundError as exc:
        raise LoadError(f"Snapshot file not found: {path}") from exc
    except (OSError, UnicodeDecodeError) as exc:
        raise LoadError(f"Failed to read snapshot file {path}: {exc}") from exc

    records = parse_csv(text)
    if not records:
        logger.warning("Snapshot file %s contained no valid records", path)
    return records


# ---------------------------------------------------------------------------
# Record store
# ---------------------------------------------------------------------------

class RecordStore(Protocol):
    def get(self, key: str) -> list[SnapshotRecord] | None: ...

    def set(self, key: str, records: list[SnapshotRecord]) -> None: ...

    def clear(self, key: str) -> None: ...


class InMemoryRecordStore:
    """Thread-safe key-value store for uploaded snapshot records."""

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._data: dict[str, list[SnapshotRecord]] = {}

    def get(self, key: str) -> list[SnapshotRecord] | None:
        with self._lock:
            records = self._data.get(key)
            return list(records) if records is not None else None

    def set(self, key: str, records: list[SnapshotRecord]) -> None:
        with self._lock:
            self._data[key] = list(records)
        logger.debug("Stored %d records under %r", len(records), key)

    def clear(self, key: str) -> None:
        with self._lock:
            self._data.pop(key, None)
