"""FastAPI service for the Writing Statistics Dashboard.

Serves the dashboard JSON payload computed from a word-count snapshot log.
Uploaded snapshot logs are kept in an in-memory record store and take
precedence over the CSV file on disk until the cache is cleared.

Deployment: uvicorn app:app --host 127.0.0.1 --port 8204
"""

from __future__ import annotations

import logging
import os
from datetime import date, datetime
from pathlib import Path
from typing import Literal

from fastapi import FastAPI, HTTPException, Query, Request
from fastapi.concurrency import run_in_threadpool

from analytics import build_dashboard_payload
from writing_records import (
    DEFAULT_CACHE_KEY,
    InMemoryRecordStore,
    LoadError,
    SnapshotRecord,
    load_csv,
    parse_csv,
)

logger = logging.getLogger(__name__)

# ---------------------------------------------------------------------------
# Config
# ---------------------------------------------------------------------------
DATA_PATH = Path(
    os.environ.get("WRITING_DATA_PATH", Path(__file__).parent / "data" / "writing_data.csv")
)
CACHE_KEY = DEFAULT_CACHE_KEY
DEFAULT_RANGE = "month"

TimeRange = Literal["week", "month", "year"]

# ---------------------------------------------------------------------------
# App
# ---------------------------------------------------------------------------
app = FastAPI(
    title="Writing Statistics Dashboard",
    root_path="/writing_stats",
)

_store = InMemoryRecordStore()


def _load_from_file() -> list[SnapshotRecord]:
    try:
        return load_csv(DATA_PATH)
    except LoadError as exc:
        raise HTTPException(status_code=503, detail=str(exc)) from exc


def _get_records() -> list[SnapshotRecord]:
    """Return cached records, falling back to the CSV file when the cache is empty."""
    cached = _store.get(CACHE_KEY)
    if cached:
        return cached
    return _load_from_file()


# ---------------------------------------------------------------------------
# Routes
# ---------------------------------------------------------------------------
@app.get("/health")
@app.get("/healthz")
def healthz():
    return {"status": "ok"}


@app.get("/api/data")
def api_data(time_range: TimeRange = Query(DEFAULT_RANGE, alias="range")):
    """Return the full dashboard JSON payload for the requested window."""
    payload = build_dashboard_payload(_get_records(), time_range, today=date.today())
    payload["generated_at"] = datetime.now().isoformat()
    return payload


@app.post("/api/upload")
async def api_upload(request: Request):
    """Parse an uploaded CSV body and store its records."""
    body = await request.body()
    try:
        text = body.decode("utf-8-sig")
    except UnicodeDecodeError as exc:
        raise HTTPException(status_code=400, detail="Upload must be UTF-8 text") from exc

    records = await run_in_threadpool(parse_csv, text)
    if not records:
        raise HTTPException(status_code=400, detail="No valid records found in upload")

    _store.set(CACHE_KEY, records)
    logger.info("Stored %d uploaded records", len(records))
    return {"status": "uploaded", "records": len(records)}


@app.delete("/api/cache")
def api_clear_cache():
    """Drop uploaded records so the CSV file is used again."""
    _store.clear(CACHE_KEY)
    return {"status": "cleared"}


@app.get("/api/refresh")
def api_refresh():
    """Reload records from the CSV file, replacing any cached upload."""
    records = _load_from_file()
    _store.set(CACHE_KEY, records)
    return {
        "status": "refreshed",
        "records": len(records),
        "generated_at": datetime.now().isoformat(),
    }
