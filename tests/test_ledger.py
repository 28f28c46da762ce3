"""
tests/test_ledger.py — Scrimmage HTTP Client
=============================================

Uses ``httpx.MockTransport`` so no network is touched.
"""

from __future__ import annotations

import json

import httpx
import pytest

from scrimcord.config import LedgerConfig
from scrimcord.errors import LedgerError
from scrimcord.services.ledger import (
    NAMESPACE_HEADER,
    REWARDABLE_PATH,
    USERS_PATH,
    ScrimmageLedger,
)
from tests.fakes import run_async

CFG = LedgerConfig(
    api_server_endpoint="https://ledger.example",
    private_key="pk-test",
    namespace="staging",
)


def _ledger(handler) -> tuple[ScrimmageLedger, list[httpx.Request]]:
    seen: list[httpx.Request] = []

    def record(request: httpx.Request) -> httpx.Response:
        seen.append(request)
        return handler(request)

    client = httpx.AsyncClient(
        base_url=CFG.api_server_endpoint, transport=httpx.MockTransport(record)
    )
    return ScrimmageLedger(CFG, client=client), seen


class TestTracking:

    def test_track_once_sends_event_id(self):
        ledger, seen = _ledger(lambda r: httpx.Response(200, json={"ok": True}))
        result = run_async(ledger.track_once("42", "discordMessageSent", "7001", {"a": 1}))
        assert result == {"ok": True}
        [request] = seen
        assert request.url.path == REWARDABLE_PATH
        assert request.headers["Authorization"] == "Token pk-test"
        assert request.headers[NAMESPACE_HEADER] == "staging"
        assert json.loads(request.content) == {
            "userId": "42", "dataType": "discordMessageSent", "eventId": "7001", "body": {"a": 1},
        }

    def test_track_omits_event_id(self):
        ledger, seen = _ledger(lambda r: httpx.Response(204))
        assert run_async(ledger.track("42", "discordVoiceChannelJoin", {})) is None
        assert "eventId" not in json.loads(seen[0].content)

    def test_http_error_status_raises(self):
        ledger, _ = _ledger(lambda r: httpx.Response(503, text="maintenance"))
        with pytest.raises(LedgerError) as excinfo:
            run_async(ledger.track("42", "x", {}))
        assert excinfo.value.status_code == 503

    def test_transport_error_raises(self):
        def boom(request):
            raise httpx.ConnectError("refused", request=request)

        ledger, _ = _ledger(boom)
        with pytest.raises(LedgerError) as excinfo:
            run_async(ledger.track_once("42", "x", "k", {}))
        assert excinfo.value.status_code is None


class TestRegistration:

    def test_returns_token(self):
        ledger, seen = _ledger(lambda r: httpx.Response(201, json={"token": "tok-1"}))
        token = run_async(ledger.register_user("42", "Alice", "https://cdn/a.png"))
        assert token == "tok-1"
        assert seen[0].url.path == USERS_PATH
        assert json.loads(seen[0].content)["name"] == "Alice"

    def test_missing_token_raises(self):
        ledger, _ = _ledger(lambda r: httpx.Response(200, json={}))
        with pytest.raises(LedgerError):
            run_async(ledger.register_user("42", "Alice", None))
