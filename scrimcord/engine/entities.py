"""
scrimcord.engine.entities — Complete / Reference Handles
=========================================================

Gateway payloads sometimes carry a full object (a cached message, a
member) and sometimes only an id (raw reaction events on uncached
messages, a thread whose owner is not in the member cache).  Listeners wrap
whatever they got in one of two explicit states:

- :class:`Complete` — the object is already fully populated.
- :class:`Reference` — only the id is known, plus an async ``fetch`` that
  completes it with exactly one network call.

:func:`resolve` turns either into the full object or ``None``.  It never
raises: a failed fetch is logged and reported as "not found", and the
caller skips the event.
"""

from __future__ import annotations

import logging
from collections.abc import Awaitable, Callable
from dataclasses import dataclass
from typing import Generic, TypeVar

logger = logging.getLogger(__name__)

T = TypeVar("T")

__all__ = ["Complete", "Handle", "Reference", "maybe_cached", "resolve"]


@dataclass(frozen=True, slots=True)
class Complete(Generic[T]):
    """An already fully-populated entity."""

    value: T


@dataclass(frozen=True, slots=True)
class Reference(Generic[T]):
    """An entity known only by id; ``fetch`` completes it."""

    id: int | str
    fetch: Callable[[], Awaitable[T | None]]
    kind: str = "entity"


Handle = Complete[T] | Reference[T]


def maybe_cached(
    cached: T | None,
    entity_id: int | str,
    fetch: Callable[[], Awaitable[T | None]],
    kind: str = "entity",
) -> Handle[T]:
    """``Complete(cached)`` on a cache hit, otherwise a :class:`Reference`."""
    if cached is not None:
        return Complete(cached)
    return Reference(entity_id, fetch, kind)


async def resolve(handle: Handle[T]) -> T | None:
    """Return the full entity for *handle*, or ``None`` if it can't be had."""
    if isinstance(handle, Complete):
        return handle.value

    try:
        entity = await handle.fetch()
    except Exception as exc:
        logger.error("Failed to fetch %s %s: %s", handle.kind, handle.id, exc)
        return None

    if entity is None:
        logger.error("Fetch for %s %s returned nothing", handle.kind, handle.id)
    return entity
