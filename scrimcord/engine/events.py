"""
scrimcord.engine.events — TrackableEvent and EventName
=======================================================

The unit the pipeline produces and forwards.  Every gateway occurrence is
normalized into zero or more :class:`TrackableEvent` objects before the
dispatch queue hands them to the ledger.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import UTC, datetime
from typing import Any

__all__ = ["EventName", "TrackableEvent", "event_date", "to_millis"]


# ---------------------------------------------------------------------------
# Event names — prefixed with the configured data-type prefix at runtime
# ---------------------------------------------------------------------------
class EventName:
    """Ledger record-type suffixes."""
    MESSAGE_SENT = "MessageSent"
    REACTION_ADD = "ReactionAdd"
    REACTION_RECEIVED = "ReactionReceived"
    GUILD_MEMBER_ADD = "GuildMemberAdd"
    GUILD_MEMBER_REMOVE = "GuildMemberRemove"
    ROLE_ADD = "RoleAdd"
    ROLE_REMOVE = "RoleRemove"
    BOOST_START = "BoostStart"
    BOOST_STOP = "BoostStop"
    THREAD_CREATE = "ThreadCreate"
    VOICE_CHANNEL_JOIN = "VoiceChannelJoin"
    VOICE_CHANNEL_LEAVE = "VoiceChannelLeave"
    SCHEDULED_EVENT_USER_ADD = "ScheduledEventUserAdd"
    SCHEDULED_EVENT_USER_REMOVE = "ScheduledEventUserRemove"


# ---------------------------------------------------------------------------
# TrackableEvent
# ---------------------------------------------------------------------------
@dataclass(frozen=True, slots=True)
class TrackableEvent:
    """A normalized, ledger-ready occurrence.

    ``dedupe_key`` of ``None`` means "always a new occurrence"; otherwise
    the ledger suppresses repeats of ``(user_id, event_type, dedupe_key)``.
    """

    user_id: str
    event_type: str
    dedupe_key: str | None = None
    payload: dict[str, Any] = field(default_factory=dict)

    def __post_init__(self) -> None:
        if not self.user_id:
            raise ValueError("TrackableEvent.user_id must be non-empty")
        if not self.event_type:
            raise ValueError("TrackableEvent.event_type must be non-empty")


# ---------------------------------------------------------------------------
# Timestamp helpers
# ---------------------------------------------------------------------------
def to_millis(moment: datetime | None) -> int | None:
    """Epoch milliseconds for *moment* (naive datetimes are taken as UTC)."""
    if moment is None:
        return None
    if moment.tzinfo is None:
        moment = moment.replace(tzinfo=UTC)
    return int(moment.timestamp() * 1000)


def event_date(timestamp_ms: int | None) -> dict[str, int] | None:
    """Break an epoch-millisecond timestamp into calendar fields (UTC).

    The ledger's rules match on these (e.g. "messages sent in January"),
    and they count months from 0, so January is ``0``.
    """
    if timestamp_ms is None:
        return None
    moment = datetime.fromtimestamp(timestamp_ms / 1000, tz=UTC)
    return {
        "year": moment.year,
        "month": moment.month - 1,
        "day": moment.day,
        "hour": moment.hour,
        "minute": moment.minute,
        "second": moment.second,
    }
