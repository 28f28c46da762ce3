"""
tests/test_status_api.py — Status Endpoints
============================================
"""

from __future__ import annotations

from unittest.mock import MagicMock

from fastapi.testclient import TestClient

from scrimcord.api.main import create_app


def _client(ready: bool = True) -> TestClient:
    bot = MagicMock()
    bot.is_ready.return_value = ready
    bot.dispatch_queue.stats.return_value = {
        "in_flight": 2, "submitted": 10, "succeeded": 7, "failed": 1,
    }
    return TestClient(create_app(bot))


def test_health():
    resp = _client().get("/api/health")
    assert resp.status_code == 200
    assert resp.json() == {"status": "ok"}


def test_pipeline_health():
    resp = _client(ready=False).get("/api/health/pipeline")
    assert resp.status_code == 200
    assert resp.json() == {
        "ready": False, "in_flight": 2, "submitted": 10, "succeeded": 7, "failed": 1,
    }
