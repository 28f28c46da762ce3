"""
scrimcord.services.ingestion — Ingestion Router
================================================

The single path every gateway occurrence takes::

    cog listener
      → resolve each Complete/Reference field      (entities.resolve)
      → all required entities present?             (else skip)
      → build the variant, check its guild         (no guild → skip)
      → guild/channel in scope?                    (else skip, silently)
      → normalize                                  (Normalizer)
      → submit each TrackableEvent                 (DispatchQueue)

Each call is independent: an exception anywhere inside one ``ingest`` is
logged and swallowed so the next gateway event is processed normally.
The only shared state is the read-only scope and the dispatch queue's
in-flight bookkeeping.
"""

from __future__ import annotations

import logging
from typing import Any

from scrimcord.engine.entities import Complete, Reference, resolve
from scrimcord.engine.normalizer import Normalizer
from scrimcord.engine.platform import PlatformEvent
from scrimcord.engine.scope import ScopeFilter
from scrimcord.services.dispatch import DispatchQueue

logger = logging.getLogger(__name__)


class IngestionRouter:
    """Wires resolution, scope filtering, normalization and dispatch."""

    def __init__(
        self,
        scope: ScopeFilter,
        normalizer: Normalizer,
        dispatch: DispatchQueue,
    ) -> None:
        self.scope = scope
        self.normalizer = normalizer
        self.dispatch = dispatch

    async def ingest(self, kind: type[PlatformEvent], **fields: Any) -> int:
        """Process one gateway occurrence; return how many events were submitted.

        Any field given as a :class:`Complete` or :class:`Reference` is
        resolved first; plain values pass through unchanged.
        """
        try:
            return await self._ingest(kind, fields)
        except Exception:
            logger.exception("Error ingesting %s", kind.__name__)
            return 0

    async def _ingest(self, kind: type[PlatformEvent], fields: dict[str, Any]) -> int:
        resolved: dict[str, Any] = {}
        for name, value in fields.items():
            if isinstance(value, (Complete, Reference)):
                value = await resolve(value)
                if value is None:
                    logger.debug("Skipping %s: %s could not be resolved", kind.__name__, name)
                    return 0
            resolved[name] = value

        event = kind(**resolved)

        try:
            guild_id, channel_id = event.scope_ids()
        except AttributeError as exc:
            logger.warning("Skipping malformed %s: %s", kind.__name__, exc)
            return 0
        if guild_id is None:
            logger.warning("Skipping %s without a guild", kind.__name__)
            return 0

        if not self.scope.in_scope(guild_id, channel_id):
            logger.debug(
                "Skipping %s outside scope (guild=%s, channel=%s)",
                kind.__name__, guild_id, channel_id,
            )
            return 0

        produced = self.normalizer.normalize(event)
        for trackable in produced:
            self.dispatch.submit(trackable)
        return len(produced)
