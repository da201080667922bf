"""Tests for the FastAPI app (app.py) routes and record caching."""

from __future__ import annotations

from datetime import date
from unittest.mock import patch

from helpers import make_csv


# ── JSON API routes ───────────────────────────


class TestApiData:
    def test_returns_200(self, client):
        response = client.get("/api/data")
        assert response.status_code == 200

    def test_content_type_is_json(self, client):
        response = client.get("/api/data")
        assert "application/json" in response.headers["content-type"]

    def test_payload_has_generated_at(self, client):
        data = client.get("/api/data").json()
        assert "generated_at" in data

    def test_payload_sections(self, client):
        data = client.get("/api/data").json()
        for key in ("summary", "daily", "heatmap", "trend", "recent_saves"):
            assert key in data, f"Missing key: {key}"

    def test_summary_from_data_file(self, client):
        summary = client.get("/api/data").json()["summary"]
        assert summary["latest_total"] == 180
        assert summary["latest_net_change"] == 30
        assert summary["writing_streak"] == 2
        assert summary["current_file"] == "notes.md"

    def test_recent_saves(self, client):
        saves = client.get("/api/data").json()["recent_saves"]
        assert [s["time"] for s in saves] == ["12:00:00", "20:00:00", "08:15:00"]

    def test_default_range_is_month(self, client):
        trend = client.get("/api/data").json()["trend"]
        assert trend["range"] == "month"
        assert len(trend["points"]) == 30
        assert trend["points"][-1]["date"] == date.today().isoformat()

    def test_week_range(self, client):
        trend = client.get("/api/data", params={"range": "week"}).json()["trend"]
        assert trend["days"] == 7
        assert len(trend["points"]) == 7

    def test_year_range_is_180_days(self, client):
        trend = client.get("/api/data", params={"range": "year"}).json()["trend"]
        assert len(trend["points"]) == 180

    def test_invalid_range_rejected(self, client):
        response = client.get("/api/data", params={"range": "decade"})
        assert response.status_code == 422

    def test_today_passed_to_payload_builder(self, client):
        with patch("app.build_dashboard_payload", return_value={}) as mock_build:
            client.get("/api/data")
        assert mock_build.call_args.kwargs["today"] == date.today()


# ── Upload / cache ────────────────────────────


class TestUpload:
    def test_upload_replaces_file_data(self, client):
        csv_text = make_csv([("2024-05-01 10:00:00", "essay.md", 900, 900)])

        response = client.post("/api/upload", content=csv_text)

        assert response.status_code == 200
        assert response.json() == {"status": "uploaded", "records": 1}
        summary = client.get("/api/data").json()["summary"]
        assert summary["latest_total"] == 900
        assert summary["current_file"] == "essay.md"

    def test_upload_parsed_off_event_loop(self, client):
        from fastapi.concurrency import run_in_threadpool

        from writing_records import parse_csv

        csv_text = make_csv([("2024-05-01 10:00:00", "essay.md", 900, 900)])
        with patch("app.run_in_threadpool", wraps=run_in_threadpool) as mock_pool:
            response = client.post("/api/upload", content=csv_text)

        assert response.status_code == 200
        assert mock_pool.call_args.args == (parse_csv, csv_text)

    def test_upload_without_valid_rows_rejected(self, client):
        response = client.post("/api/upload", content="timestamp,filename\nbad,row\n")
        assert response.status_code == 400
        assert client.get("/api/data").json()["summary"]["latest_total"] == 180

    def test_upload_non_utf8_rejected(self, client):
        response = client.post("/api/upload", content=b"\xff\x81\x82")
        assert response.status_code == 400

    def test_clear_cache_falls_back_to_file(self, client):
        client.post("/api/upload", content=make_csv([("2024-05-01 10:00:00", "essay.md", 900, 900)]))

        response = client.delete("/api/cache")

        assert response.json() == {"status": "cleared"}
        assert client.get("/api/data").json()["summary"]["latest_total"] == 180


class TestApiRefresh:
    def test_response_has_status_refreshed(self, client):
        data = client.get("/api/refresh").json()
        assert data["status"] == "refreshed"
        assert data["records"] == 5
        assert "generated_at" in data

    def test_refresh_replaces_upload(self, client):
        client.post("/api/upload", content=make_csv([("2024-05-01 10:00:00", "essay.md", 900, 900)]))
        client.get("/api/refresh")
        assert client.get("/api/data").json()["summary"]["latest_total"] == 180

    def test_cached_records_used_after_file_removed(self, client, data_file):
        client.get("/api/refresh")
        data_file.unlink()
        assert client.get("/api/data").status_code == 200


# ── Health check ──────────────────────────────


class TestHealthCheck:
    def test_healthz_returns_200(self, client):
        response = client.get("/healthz")
        assert response.status_code == 200
        assert response.json() == {"status": "ok"}

    def test_health_returns_200(self, client):
        assert client.get("/health").status_code == 200


# ── Error handling ────────────────────────────


class TestMissingDataFile:
    def test_api_data_503_when_data_missing(self, client, tmp_path):
        with patch("app.DATA_PATH", tmp_path / "missing.csv"):
            response = client.get("/api/data")
        assert response.status_code == 503
        assert "not found" in response.json()["detail"]

    def test_refresh_503_when_data_missing(self, client, tmp_path):
        with patch("app.DATA_PATH", tmp_path / "missing.csv"):
            response = client.get("/api/refresh")
        assert response.status_code == 503


class TestNotFound:
    def test_unknown_api_route_returns_404(self, client):
        response = client.get("/api/nonexistent")
        assert response.status_code == 404
