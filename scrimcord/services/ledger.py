"""
scrimcord.services.ledger — Scrimmage Rewards API Client
=========================================================

The ledger is a black box with three writes:

- ``track_once`` — idempotent; the ledger suppresses repeats of
  ``(user_id, data_type, event_id)``.
- ``track`` — always recorded as a new occurrence.
- ``register_user`` — opt-in registration, returns the user's access token.

:class:`LedgerSink` is the seam the dispatch queue and the ``/register``
command depend on; :class:`ScrimmageLedger` is the HTTP implementation.
Failures surface as :class:`~scrimcord.errors.LedgerError` — callers decide
whether to log-and-drop (the pipeline always does).
"""

from __future__ import annotations

import logging
from typing import Any, Protocol

import httpx

from scrimcord.config import LedgerConfig
from scrimcord.errors import LedgerError

logger = logging.getLogger(__name__)

REWARDABLE_PATH = "/rewards/integrations/rewardable"
USERS_PATH = "/api/integrations/users"
NAMESPACE_HEADER = "Scrimmage-Namespace"


class LedgerSink(Protocol):
    """What the core needs from a rewards ledger."""

    async def track_once(
        self, user_id: str, data_type: str, event_id: str, body: dict[str, Any]
    ) -> Any: ...

    async def track(self, user_id: str, data_type: str, body: dict[str, Any]) -> Any: ...

    async def register_user(
        self, user_id: str, display_name: str, avatar_url: str | None
    ) -> str: ...

    async def aclose(self) -> None: ...


class ScrimmageLedger:
    """:class:`LedgerSink` backed by the Scrimmage HTTP API.

    Parameters
    ----------
    cfg:
        Endpoint, private key and namespace.
    client:
        Optional pre-built :class:`httpx.AsyncClient` (tests inject one with
        a :class:`httpx.MockTransport`).  Built from *cfg* otherwise.
    """

    def __init__(self, cfg: LedgerConfig, client: httpx.AsyncClient | None = None) -> None:
        self.cfg = cfg
        self._client = client or httpx.AsyncClient(
            base_url=cfg.api_server_endpoint,
            timeout=cfg.timeout,
        )
        self._headers = {
            "Authorization": f"Token {cfg.private_key}",
            NAMESPACE_HEADER: cfg.namespace,
        }

    async def _post(self, path: str, payload: dict[str, Any]) -> Any:
        try:
            resp = await self._client.post(path, json=payload, headers=self._headers)
        except httpx.HTTPError as exc:
            raise LedgerError(f"POST {path} failed: {exc!r}") from exc

        if resp.status_code >= 400:
            raise LedgerError(
                f"POST {path} returned {resp.status_code}: {resp.text[:200]}",
                status_code=resp.status_code,
            )
        if not resp.content:
            return None
        try:
            return resp.json()
        except ValueError:
            return resp.text

    async def track_once(
        self, user_id: str, data_type: str, event_id: str, body: dict[str, Any]
    ) -> Any:
        logger.debug("track_once %s for user %s (event %s)", data_type, user_id, event_id)
        return await self._post(
            REWARDABLE_PATH,
            {"userId": user_id, "dataType": data_type, "eventId": event_id, "body": body},
        )

    async def track(self, user_id: str, data_type: str, body: dict[str, Any]) -> Any:
        logger.debug("track %s for user %s", data_type, user_id)
        return await self._post(
            REWARDABLE_PATH,
            {"userId": user_id, "dataType": data_type, "body": body},
        )

    async def register_user(
        self, user_id: str, display_name: str, avatar_url: str | None
    ) -> str:
        """Create (or refresh) the ledger user and return its access token."""
        data = await self._post(
            USERS_PATH,
            {"userId": user_id, "name": display_name, "avatar": avatar_url},
        )
        token = data.get("token") if isinstance(data, dict) else None
        if not token:
            raise LedgerError(f"POST {USERS_PATH} returned no token")
        return str(token)

    async def aclose(self) -> None:
        await self._client.aclose()
