"""
scrimcord.bot.cogs.reactions — Reaction Capture
================================================

Listens for on_raw_reaction_add so reactions on uncached (old) messages are
seen too.  The reactor and the message arrive as ids when they aren't in
the cache; both become :class:`Reference` handles that the router
completes with one fetch each.  The normalizer fans the occurrence out
into ``ReactionAdd`` (reactor) and ``ReactionReceived`` (author).
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

import discord
from discord.ext import commands

from scrimcord.engine.entities import maybe_cached
from scrimcord.engine.platform import ReactionAdded

if TYPE_CHECKING:
    from scrimcord.bot.core import ScrimcordBot

logger = logging.getLogger(__name__)


class Reactions(commands.Cog, name="Reactions"):
    """Forwards reaction adds (given and received) to the rewards ledger."""

    def __init__(self, bot: ScrimcordBot) -> None:
        self.bot = bot

    @commands.Cog.listener()
    async def on_raw_reaction_add(self, payload: discord.RawReactionActionEvent) -> None:
        """Fire when any reaction is added, even on uncached messages."""
        logger.debug(
            "Gateway event: REACTION_ADD from user %s on message %s in channel %s",
            payload.user_id, payload.message_id, payload.channel_id,
        )
        if payload.guild_id is None:
            return

        reactor = maybe_cached(
            payload.member or self.bot.get_user(payload.user_id),
            payload.user_id,
            lambda: self.bot.fetch_user(payload.user_id),
            kind="user",
        )
        message = maybe_cached(
            self.bot.cached_message(payload.message_id),
            payload.message_id,
            lambda: self.bot.fetch_message_in(payload.channel_id, payload.message_id),
            kind="message",
        )
        await self.bot.router.ingest(
            ReactionAdded, reactor=reactor, message=message, emoji=payload.emoji,
        )


async def setup(bot: ScrimcordBot) -> None:
    await bot.add_cog(Reactions(bot))
