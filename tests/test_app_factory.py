"""
Tests for api/app.py — create_app() factory

Verifies the FastAPI app is created with correct configuration,
routers are registered, and middleware is functional.
"""
import json
import sqlite3

import pytest
from fastapi.testclient import TestClient

from api.app import create_app


class TestCreateApp:
    def test_creates_fastapi_instance(self, store_path):
        app = create_app(db_path=store_path)
        assert app.title == "Lab Colony Disposition API"
        assert app.version == "1.0.0"

    def test_registers_api_routes(self, store_path):
        app = create_app(db_path=store_path)
        paths = set(app.openapi()["paths"])
        for expected in (
            "/health",
            "/api/v1/dashboard/stats",
            "/api/v1/dashboard/chart",
            "/api/v1/dispositions",
            "/api/v1/dispositions/{record_id}",
            "/api/v1/reference/reasons",
            "/api/v1/reference/species",
            "/api/v1/transfer/import",
            "/api/v1/transfer/export",
        ):
            assert expected in paths

    def test_creates_missing_store(self, tmp_path):
        db_path = tmp_path / "sub" / "new.sqlite"
        create_app(db_path=db_path)
        assert db_path.exists()

    def test_catalog_on_state(self, store_path, small_catalog):
        app = create_app(db_path=store_path, catalog=small_catalog)
        assert app.state.catalog is small_catalog

    def test_catalog_from_env(self, store_path, tmp_path, monkeypatch):
        path = tmp_path / "reasons.json"
        path.write_text(json.dumps([{"id": "Q", "options": [{"code": "Q-1"}]}]))
        monkeypatch.setenv("APP_REASON_CATALOG", str(path))
        app = create_app(db_path=store_path)
        assert app.state.catalog.all_codes() == ["Q-1"]

    def test_bad_catalog_fails_fast(self, store_path, tmp_path, monkeypatch):
        path = tmp_path / "reasons.json"
        path.write_text(json.dumps([
            {"id": "A", "options": [{"code": "X"}]},
            {"id": "B", "options": [{"code": "X"}]},
        ]))
        monkeypatch.setenv("APP_REASON_CATALOG", str(path))
        with pytest.raises(ValueError):
            create_app(db_path=store_path)


class TestHealth:
    def test_ok_with_count(self, client, seeded_store):
        resp = client.get("/health")
        assert resp.status_code == 200
        body = resp.json()
        assert body["status"] == "ok"
        assert body["records"] == 4

    def test_reports_stats_cache(self, client):
        client.get("/api/v1/dashboard/stats", params={"as_of": "2024-03-10"})
        client.get("/api/v1/dashboard/stats", params={"as_of": "2024-03-10"})
        cache = client.get("/health").json()["stats_cache"]
        assert cache == {"hits": 1, "misses": 1, "size": 1}

    def test_store_without_table(self, store_path, tmp_path):
        app = create_app(db_path=store_path)
        bare = tmp_path / "bare.sqlite"
        sqlite3.connect(str(bare)).close()
        app.state.db_path = bare
        resp = TestClient(app).get("/health")
        assert resp.status_code == 503
        assert resp.json()["status"] == "no_schema"

    def test_missing_store(self, tmp_path):
        db_path = tmp_path / "gone.sqlite"
        app = create_app(db_path=db_path)
        for suffix in ("", "-wal", "-shm"):
            p = db_path.with_name(db_path.name + suffix)
            if p.exists():
                p.unlink()
        resp = TestClient(app).get("/health")
        assert resp.status_code == 503
        assert resp.json()["status"] == "no_database"


class TestMiddleware:
    def test_request_id_header(self, client):
        resp = client.get("/health")
        assert len(resp.headers["X-Request-ID"]) == 8

    def test_cors_header(self, client):
        resp = client.get("/health", headers={"Origin": "http://example.org"})
        assert resp.headers.get("access-control-allow-origin") == "*"

    def test_lifespan_runs(self, store_path):
        with TestClient(create_app(db_path=store_path)) as c:
            assert c.get("/api/v1/dispositions").status_code == 200


class TestErrorHandlers:
    def test_value_error_is_400_json(self, client):
        resp = client.get("/api/v1/dispositions", params={"page_size": 7})
        assert resp.status_code == 400
        body = resp.json()
        assert body["error"] == "Bad request"
        assert body["status_code"] == 400
        assert "page_size" in body["detail"]

    def test_missing_store_is_503(self, tmp_path):
        db_path = tmp_path / "gone.sqlite"
        app = create_app(db_path=db_path)
        for suffix in ("", "-wal", "-shm"):
            p = db_path.with_name(db_path.name + suffix)
            if p.exists():
                p.unlink()
        resp = TestClient(app).get("/api/v1/dispositions")
        assert resp.status_code == 503
