"""Tests de los endpoints de diagnóstico (FastAPI TestClient)."""

import pytest
from fastapi import FastAPI
from fastapi.testclient import TestClient

from perf_telemetry.endpoints import assess_health, create_router
from perf_telemetry.models import FrameTimingRecord


@pytest.fixture
def client(context):
    app = FastAPI()
    app.include_router(create_router(context))
    return TestClient(app)


class TestAssessHealth:

    @pytest.mark.parametrize(
        "total,critical,expected",
        [(100, 0, "PASS"), (80, 0, "PASS"), (95, 1, "WARN"), (50, 0, "WARN"), (49, 0, "FAIL")],
    )
    def test_levels(self, total, critical, expected):
        assert assess_health(total, critical) == expected


class TestRoutes:

    def test_snapshot(self, client, context):
        context.record_rebuilds("Feed", 10)
        body = client.get("/api/performance/snapshot").json()
        assert body["fps"] == 60
        assert body["total_rebuilds"] == 10

    def test_score(self, client):
        body = client.get("/api/performance/score").json()
        assert body["total"] == 100
        assert body["grade"] == "A+"
        assert body["sub_scores"]["fps"] == 100

    def test_suggestions_limit(self, client, context):
        context.record_rebuilds("A", 70)
        context.record_depth(45, 300)

        body = client.get("/api/performance/suggestions", params={"limit": 1}).json()
        assert body["count"] == 1
        assert body["suggestions"][0]["impact"] == "medium"

    def test_warnings_filter(self, client, context):
        context.ingest_frame_timings([
            FrameTimingRecord(build_ms=10, raster_ms=10, total_ms=20),
            FrameTimingRecord(build_ms=20, raster_ms=20, total_ms=40),
        ])

        assert client.get("/api/performance/warnings").json()["count"] == 2
        critical = client.get("/api/performance/warnings", params={"severity": "critical"}).json()
        assert critical["count"] == 1
        assert critical["warnings"][0]["type"] == "slow_frame"

    def test_warnings_unknown_severity(self, client):
        resp = client.get("/api/performance/warnings", params={"severity": "fatal"})
        assert resp.status_code == 400

    def test_report(self, client):
        body = client.get("/api/performance/report").json()
        assert body["score"] == 100
        assert "jankFrames" in body["metrics"]

    def test_text_report(self, client):
        resp = client.get("/api/performance/report/text")
        assert resp.status_code == 200
        assert resp.headers["content-type"].startswith("text/plain")
        assert "Performance Optimization Report" in resp.text

    def test_history(self, client, ticker):
        ticker.advance(30)
        body = client.get("/api/performance/history", params={"limit": 2}).json()
        assert body["count"] == 2
        assert body["trend"] == "stable"

    def test_health(self, client, context):
        assert client.get("/api/performance/health").json() == {
            "status": "healthy",
            "health": "PASS",
            "active": True,
            "score": 100,
            "grade": "A+",
            "critical_warnings": 0,
        }

        context.record_rebuilds("Feed", 130)
        body = client.get("/api/performance/health").json()
        assert body["health"] == "WARN"
        assert body["status"] == "degraded"
