"""
scrimcord.engine.platform — Gateway Event Variants
===================================================

The closed set of Discord occurrences the bridge understands.  Each
variant carries its own *resolved* entities; listeners never hand the
normalizer a raw id.  :class:`~scrimcord.engine.normalizer.Normalizer`
matches exhaustively over these classes.

``scope_ids()`` reports the ``(guild_id, channel_id)`` pair the scope filter
checks.  Membership-style events have no natural channel, so they are
scoped by the guild's system channel (``None`` if the guild has none).

Variants without a natural timestamp on their entities carry
``occurred_at``, stamped when the listener builds them, so normalization
stays a pure function.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import UTC, datetime
from typing import Any

import discord

__all__ = [
    "PLATFORM_EVENTS",
    "MemberJoined",
    "MemberLeft",
    "MemberUpdated",
    "MessageSent",
    "PlatformEvent",
    "ReactionAdded",
    "ScheduledEventUserAdded",
    "ScheduledEventUserRemoved",
    "ThreadCreated",
    "VoiceStateChanged",
]


def _now() -> datetime:
    return datetime.now(UTC)


def _system_channel_id(guild: Any) -> int | None:
    channel = getattr(guild, "system_channel", None)
    return channel.id if channel is not None else None


def _guild_scope(guild: Any) -> tuple[int | None, int | None]:
    if guild is None:
        return None, None
    return guild.id, _system_channel_id(guild)


class PlatformEvent:
    """Base for all gateway event variants."""

    __slots__ = ()

    def scope_ids(self) -> tuple[int | None, int | None]:
        raise NotImplementedError


@dataclass(frozen=True, slots=True)
class MessageSent(PlatformEvent):
    message: discord.Message

    def scope_ids(self) -> tuple[int | None, int | None]:
        guild = self.message.guild
        return (guild.id if guild else None), self.message.channel.id


@dataclass(frozen=True, slots=True)
class ReactionAdded(PlatformEvent):
    reactor: discord.abc.User
    message: discord.Message
    emoji: discord.PartialEmoji
    occurred_at: datetime = field(default_factory=_now)

    def scope_ids(self) -> tuple[int | None, int | None]:
        guild = self.message.guild
        return (guild.id if guild else None), self.message.channel.id


@dataclass(frozen=True, slots=True)
class MemberJoined(PlatformEvent):
    member: discord.Member

    def scope_ids(self) -> tuple[int | None, int | None]:
        return _guild_scope(self.member.guild)


@dataclass(frozen=True, slots=True)
class MemberUpdated(PlatformEvent):
    before: discord.Member
    after: discord.Member
    occurred_at: datetime = field(default_factory=_now)

    def scope_ids(self) -> tuple[int | None, int | None]:
        return _guild_scope(self.after.guild)


@dataclass(frozen=True, slots=True)
class MemberLeft(PlatformEvent):
    member: discord.Member
    occurred_at: datetime = field(default_factory=_now)

    def scope_ids(self) -> tuple[int | None, int | None]:
        return _guild_scope(self.member.guild)


@dataclass(frozen=True, slots=True)
class ThreadCreated(PlatformEvent):
    thread: discord.Thread
    owner: discord.abc.User

    def scope_ids(self) -> tuple[int | None, int | None]:
        return _guild_scope(self.thread.guild)


@dataclass(frozen=True, slots=True)
class VoiceStateChanged(PlatformEvent):
    member: discord.Member
    before: discord.VoiceState
    after: discord.VoiceState
    occurred_at: datetime = field(default_factory=_now)

    def scope_ids(self) -> tuple[int | None, int | None]:
        return _guild_scope(self.member.guild)


@dataclass(frozen=True, slots=True)
class ScheduledEventUserAdded(PlatformEvent):
    event: discord.ScheduledEvent
    user: discord.abc.User
    occurred_at: datetime = field(default_factory=_now)

    def scope_ids(self) -> tuple[int | None, int | None]:
        return _guild_scope(self.event.guild)


@dataclass(frozen=True, slots=True)
class ScheduledEventUserRemoved(PlatformEvent):
    event: discord.ScheduledEvent
    user: discord.abc.User
    occurred_at: datetime = field(default_factory=_now)

    def scope_ids(self) -> tuple[int | None, int | None]:
        return _guild_scope(self.event.guild)


PLATFORM_EVENTS: tuple[type[PlatformEvent], ...] = (
    MessageSent,
    ReactionAdded,
    MemberJoined,
    MemberUpdated,
    MemberLeft,
    ThreadCreated,
    VoiceStateChanged,
    ScheduledEventUserAdded,
    ScheduledEventUserRemoved,
)
