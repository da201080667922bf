"""Shared fixtures for writing_stats tests."""

from __future__ import annotations

import os
from unittest.mock import patch

import pytest
from fastapi.testclient import TestClient

from helpers import make_csv
from writing_records import InMemoryRecordStore

os.environ.setdefault("MPLBACKEND", "Agg")


@pytest.fixture()
def sample_csv() -> str:
    """Three days of saves with a one-day gap (2024-01-02)."""
    return make_csv([
        ("2024-01-01 09:00:00", "novel.md", 60, 60),
        ("2024-01-01 21:30:00", "novel.md", 100, 40),
        ("2024-01-03 08:15:00", "novel.md", 90, -10),
        ("2024-01-03 20:00:00", "novel.md", 150, 60),
        ("2024-01-04 12:00:00", "notes.md", 180, 30),
    ])


@pytest.fixture()
def data_file(tmp_path, sample_csv):
    path = tmp_path / "writing_data.csv"
    path.write_text(sample_csv, encoding="utf-8")
    return path


@pytest.fixture()
def client(data_file):
    """TestClient for app.py backed by a temporary CSV and a fresh store."""
    import app as app_module

    with patch.object(app_module, "_store", InMemoryRecordStore()):
        with patch.object(app_module, "DATA_PATH", data_file):
            with TestClient(app_module.app) as tc:
                yield tc
