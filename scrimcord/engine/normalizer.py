"""
scrimcord.engine.normalizer — Gateway Variant → TrackableEvent Rules
=====================================================================

One rule per :mod:`scrimcord.engine.platform` variant.  Rules are pure:
they read already-resolved discord.py objects and return a list of
:class:`TrackableEvent` (possibly empty).  No I/O happens here.

Business rules worth knowing:

- A reaction fans out into **two** events (``ReactionAdd`` for the reactor,
  ``ReactionReceived`` for the author) sharing one dedupe key.  The ledger
  keys idempotency on ``(user, type, key)``, so neither suppresses the other.
- A member update is a diff: every added/removed role becomes its own
  ``RoleAdd``/``RoleRemove``; ``premium_since`` appearing or disappearing
  becomes ``BoostStart``/``BoostStop``.
- A voice move emits both a leave (old channel) and a join (new channel).

Every payload carries ``original``, a JSON-safe snapshot of the source
object for auditing on the ledger side.
"""

from __future__ import annotations

from datetime import datetime
from typing import Any

import discord

from scrimcord.engine.events import EventName, TrackableEvent, event_date, to_millis
from scrimcord.engine.platform import (
    MemberJoined,
    MemberLeft,
    MemberUpdated,
    MessageSent,
    PlatformEvent,
    ReactionAdded,
    ScheduledEventUserAdded,
    ScheduledEventUserRemoved,
    ThreadCreated,
    VoiceStateChanged,
)

__all__ = ["Normalizer", "reaction_dedupe_key"]


# ---------------------------------------------------------------------------
# Snapshot helpers — JSON-safe views of discord.py objects
# ---------------------------------------------------------------------------
def _id(value: Any) -> str | None:
    return str(value) if value is not None else None


def _enum_name(value: Any) -> str | None:
    return getattr(value, "name", None) if value is not None else None


def _user_snapshot(user: discord.abc.User) -> dict[str, Any]:
    return {
        "id": str(user.id),
        "username": user.name,
        "globalName": getattr(user, "global_name", None),
        "displayName": user.display_name,
        "bot": user.bot,
        "avatarUrl": str(user.display_avatar.url),
    }


def _member_snapshot(member: discord.Member) -> dict[str, Any]:
    return {
        "user": _user_snapshot(member),
        "guildId": str(member.guild.id),
        "nickname": member.nick,
        "joinedTimestamp": to_millis(member.joined_at),
        "premiumSinceTimestamp": to_millis(member.premium_since),
        "pending": getattr(member, "pending", False),
        "roles": _role_ids(member),
    }


def _message_snapshot(message: discord.Message) -> dict[str, Any]:
    reference = message.reference
    return {
        "id": str(message.id),
        "channelId": str(message.channel.id),
        "guildId": _id(message.guild.id if message.guild else None),
        "author": _user_snapshot(message.author),
        "content": message.content,
        "createdTimestamp": to_millis(message.created_at),
        "editedTimestamp": to_millis(message.edited_at),
        "type": message.type.value,
        "tts": message.tts,
        "pinned": message.pinned,
        "webhookId": _id(message.webhook_id),
        "mentionEveryone": message.mention_everyone,
        "mentions": [str(user.id) for user in message.mentions],
        "roleMentions": [str(role.id) for role in message.role_mentions],
        "attachments": [
            {"id": str(a.id), "filename": a.filename, "size": a.size, "url": a.url}
            for a in message.attachments
        ],
        "embeds": [embed.to_dict() for embed in message.embeds],
        "stickers": [{"id": str(s.id), "name": s.name} for s in message.stickers],
        "reference": (
            {
                "messageId": _id(reference.message_id),
                "channelId": _id(reference.channel_id),
                "guildId": _id(reference.guild_id),
            }
            if reference is not None
            else None
        ),
    }


def _voice_snapshot(state: discord.VoiceState) -> dict[str, Any]:
    return {
        "channelId": _id(state.channel.id if state.channel else None),
        "sessionId": state.session_id,
        "selfMute": state.self_mute,
        "selfDeaf": state.self_deaf,
        "selfStream": state.self_stream,
        "selfVideo": state.self_video,
        "mute": state.mute,
        "deaf": state.deaf,
        "suppress": state.suppress,
    }


def _thread_snapshot(thread: discord.Thread) -> dict[str, Any]:
    return {
        "id": str(thread.id),
        "name": thread.name,
        "guildId": str(thread.guild.id),
        "parentId": _id(thread.parent_id),
        "ownerId": _id(thread.owner_id),
        "type": _enum_name(thread.type),
        "createdTimestamp": to_millis(thread.created_at),
        "archived": thread.archived,
        "locked": thread.locked,
        "autoArchiveDuration": thread.auto_archive_duration,
    }


def _scheduled_event_snapshot(event: discord.ScheduledEvent) -> dict[str, Any]:
    return {
        "id": str(event.id),
        "name": event.name,
        "description": event.description,
        "guildId": str(event.guild.id) if event.guild else None,
        "channelId": _id(event.channel_id),
        "creatorId": _id(event.creator_id),
        "status": _enum_name(event.status),
        "entityType": _enum_name(event.entity_type),
        "location": event.location,
        "startTimestamp": to_millis(event.start_time),
        "endTimestamp": to_millis(event.end_time),
        "userCount": event.user_count,
    }


def _role_ids(member: discord.Member) -> list[str]:
    return [str(role.id) for role in member.roles]


def _timestamped(payload: dict[str, Any], moment: datetime | None) -> dict[str, Any]:
    ts = to_millis(moment)
    payload["timestamp"] = ts
    payload["date"] = event_date(ts)
    return payload


def reaction_dedupe_key(message_id: int | str, emoji: discord.PartialEmoji) -> str:
    """``"{message}::{emoji}"`` — unicode emoji have no id, so use the name."""
    emoji_key = emoji.id if emoji.id is not None else emoji.name
    return f"{message_id}::{emoji_key}"


# ---------------------------------------------------------------------------
# Normalizer
# ---------------------------------------------------------------------------
class Normalizer:
    """Maps gateway variants to ledger events.

    Parameters
    ----------
    prefix:
        Prepended to every :class:`EventName` to form the ledger data type,
        e.g. ``"discord"`` + ``"MessageSent"``.
    """

    def __init__(self, prefix: str = "") -> None:
        self.prefix = prefix

    def event_type(self, name: str) -> str:
        return f"{self.prefix}{name}"

    def normalize(self, event: PlatformEvent) -> list[TrackableEvent]:
        match event:
            case MessageSent():
                return self._message_sent(event)
            case ReactionAdded():
                return self._reaction_added(event)
            case MemberJoined():
                return self._member_joined(event)
            case MemberUpdated():
                return self._member_updated(event)
            case MemberLeft():
                return self._member_left(event)
            case ThreadCreated():
                return self._thread_created(event)
            case VoiceStateChanged():
                return self._voice_state_changed(event)
            case ScheduledEventUserAdded():
                return self._scheduled_event_user(event, EventName.SCHEDULED_EVENT_USER_ADD)
            case ScheduledEventUserRemoved():
                return self._scheduled_event_user(event, EventName.SCHEDULED_EVENT_USER_REMOVE)
            case _:
                raise TypeError(f"No normalization rule for {type(event).__name__}")

    # -------------------------------------------------------------------
    # Messages & reactions
    # -------------------------------------------------------------------
    def _message_sent(self, event: MessageSent) -> list[TrackableEvent]:
        message = event.message
        payload = {
            "isBot": message.author.bot,
            "isWebhook": message.webhook_id is not None,
            "isSystem": message.is_system(),
            # Always a full message by the time it is normalized.
            "isPartial": False,
            "type": message.type.value,
            "typeName": message.type.name,
            "channelId": str(message.channel.id),
            "guildId": str(message.guild.id),
            "message": message.content,
            "content": message.content,
            "embedsAmount": len(message.embeds),
            "embedsTypes": [embed.type for embed in message.embeds],
            "embedsProviderNames": [embed.provider.name for embed in message.embeds],
            "stickersAmount": len(message.stickers),
            "attachmentsAmount": len(message.attachments),
            "componentsAmount": len(message.components),
            "original": _message_snapshot(message),
        }
        return [
            TrackableEvent(
                user_id=str(message.author.id),
                event_type=self.event_type(EventName.MESSAGE_SENT),
                dedupe_key=str(message.id),
                payload=_timestamped(payload, message.created_at),
            )
        ]

    def _reaction_added(self, event: ReactionAdded) -> list[TrackableEvent]:
        message, reactor, emoji = event.message, event.reactor, event.emoji
        author = message.author
        dedupe_key = reaction_dedupe_key(message.id, emoji)

        def payload() -> dict[str, Any]:
            # Each event gets its own dict; payloads are never shared.
            return _timestamped(
                {
                    "messageId": str(message.id),
                    "channelId": str(message.channel.id),
                    "guildId": str(message.guild.id),
                    "emojiId": _id(emoji.id),
                    "emojiName": emoji.name,
                    "emojiAnimated": emoji.animated,
                    "reactorId": str(reactor.id),
                    "authorId": str(author.id),
                    "reactorIsBot": reactor.bot,
                    "authorIsBot": author.bot,
                    "isSelfReaction": reactor.id == author.id,
                    "original": {
                        "emoji": {"id": _id(emoji.id), "name": emoji.name},
                        "reactor": _user_snapshot(reactor),
                        "message": _message_snapshot(message),
                    },
                },
                event.occurred_at,
            )

        return [
            TrackableEvent(
                user_id=str(reactor.id),
                event_type=self.event_type(EventName.REACTION_ADD),
                dedupe_key=dedupe_key,
                payload=payload(),
            ),
            TrackableEvent(
                user_id=str(author.id),
                event_type=self.event_type(EventName.REACTION_RECEIVED),
                dedupe_key=dedupe_key,
                payload=payload(),
            ),
        ]

    # -------------------------------------------------------------------
    # Membership
    # -------------------------------------------------------------------
    def _member_joined(self, event: MemberJoined) -> list[TrackableEvent]:
        member = event.member
        payload = {
            "guildId": str(member.guild.id),
            "joinedTimestamp": to_millis(member.joined_at),
            "joinedDate": event_date(to_millis(member.joined_at)),
            "guildMemberCount": member.guild.member_count,
            "nickname": member.nick,
            "roles": _role_ids(member),
            "original": _member_snapshot(member),
        }
        return [
            TrackableEvent(
                user_id=str(member.id),
                event_type=self.event_type(EventName.GUILD_MEMBER_ADD),
                dedupe_key=str(member.id),
                payload=_timestamped(payload, member.joined_at),
            )
        ]

    def _member_left(self, event: MemberLeft) -> list[TrackableEvent]:
        member = event.member
        payload = {
            "guildId": str(member.guild.id),
            "joinedTimestamp": to_millis(member.joined_at),
            "guildMemberCount": member.guild.member_count,
            "roles": _role_ids(member),
            "original": _member_snapshot(member),
        }
        return [
            TrackableEvent(
                user_id=str(member.id),
                event_type=self.event_type(EventName.GUILD_MEMBER_REMOVE),
                dedupe_key=str(member.id),
                payload=_timestamped(payload, event.occurred_at),
            )
        ]

    def _member_updated(self, event: MemberUpdated) -> list[TrackableEvent]:
        before, after = event.before, event.after
        user_id = str(after.id)
        guild_id = str(after.guild.id)
        roles_by_id = {str(role.id): role for role in [*before.roles, *after.roles]}
        old_roles = set(_role_ids(before))
        new_roles = set(_role_ids(after))

        def payload(**extra: Any) -> dict[str, Any]:
            return _timestamped(
                {
                    "guildId": guild_id,
                    "roles": _role_ids(after),
                    **extra,
                    "original": _member_snapshot(after),
                },
                event.occurred_at,
            )

        produced: list[TrackableEvent] = []
        for name, changed in (
            (EventName.ROLE_ADD, new_roles - old_roles),
            (EventName.ROLE_REMOVE, old_roles - new_roles),
        ):
            for role_id in sorted(changed, key=int):
                produced.append(
                    TrackableEvent(
                        user_id=user_id,
                        event_type=self.event_type(name),
                        payload=payload(roleId=role_id, roleName=roles_by_id[role_id].name),
                    )
                )

        if before.premium_since is None and after.premium_since is not None:
            boost_ts = to_millis(after.premium_since)
            produced.append(
                TrackableEvent(
                    user_id=user_id,
                    event_type=self.event_type(EventName.BOOST_START),
                    dedupe_key=str(boost_ts),
                    payload=payload(premiumSinceTimestamp=boost_ts),
                )
            )
        elif before.premium_since is not None and after.premium_since is None:
            produced.append(
                TrackableEvent(
                    user_id=user_id,
                    event_type=self.event_type(EventName.BOOST_STOP),
                    payload=payload(premiumSinceTimestamp=to_millis(before.premium_since)),
                )
            )

        return produced

    # -------------------------------------------------------------------
    # Threads, voice, scheduled events
    # -------------------------------------------------------------------
    def _thread_created(self, event: ThreadCreated) -> list[TrackableEvent]:
        thread, owner = event.thread, event.owner
        payload = {
            "guildId": str(thread.guild.id),
            "threadId": str(thread.id),
            "parentId": _id(thread.parent_id),
            "name": thread.name,
            "type": _enum_name(thread.type),
            "ownerIsBot": owner.bot,
            "original": _thread_snapshot(thread),
        }
        return [
            TrackableEvent(
                user_id=str(owner.id),
                event_type=self.event_type(EventName.THREAD_CREATE),
                dedupe_key=str(thread.id),
                payload=_timestamped(payload, thread.created_at),
            )
        ]

    def _voice_state_changed(self, event: VoiceStateChanged) -> list[TrackableEvent]:
        member, before, after = event.member, event.before, event.after
        old_channel, new_channel = before.channel, after.channel
        old_id = old_channel.id if old_channel is not None else None
        new_id = new_channel.id if new_channel is not None else None

        def voice_event(name: str, channel: Any) -> TrackableEvent:
            payload = {
                "guildId": str(member.guild.id),
                "channelId": str(channel.id),
                "oldChannelId": _id(old_id),
                "newChannelId": _id(new_id),
                "amountOfUsersInChannel": len(channel.members),
                "isBot": member.bot,
                "original": {"before": _voice_snapshot(before), "after": _voice_snapshot(after)},
            }
            return TrackableEvent(
                user_id=str(member.id),
                event_type=self.event_type(name),
                payload=_timestamped(payload, event.occurred_at),
            )

        produced: list[TrackableEvent] = []
        if old_id is not None and old_id != new_id:
            produced.append(voice_event(EventName.VOICE_CHANNEL_LEAVE, old_channel))
        if new_id is not None and new_id != old_id:
            produced.append(voice_event(EventName.VOICE_CHANNEL_JOIN, new_channel))
        return produced

    def _scheduled_event_user(
        self,
        event: ScheduledEventUserAdded | ScheduledEventUserRemoved,
        name: str,
    ) -> list[TrackableEvent]:
        scheduled, user = event.event, event.user
        payload = {
            "guildId": str(scheduled.guild.id),
            "scheduledEventId": str(scheduled.id),
            "scheduledEventName": scheduled.name,
            "channelId": _id(scheduled.channel_id),
            "status": _enum_name(scheduled.status),
            "startTimestamp": to_millis(scheduled.start_time),
            "userCount": scheduled.user_count,
            "isBot": user.bot,
            "original": {
                "event": _scheduled_event_snapshot(scheduled),
                "user": _user_snapshot(user),
            },
        }
        return [
            TrackableEvent(
                user_id=str(user.id),
                event_type=self.event_type(name),
                dedupe_key=str(scheduled.id),
                payload=_timestamped(payload, event.occurred_at),
            )
        ]
