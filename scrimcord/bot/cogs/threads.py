"""
scrimcord.bot.cogs.threads — Thread Creation Capture
=====================================================

Credits the thread owner.  The owner is often missing from the member
cache right after creation, so it travels as a :class:`Reference` that the
router completes with ``guild.fetch_member``.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

import discord
from discord.ext import commands

from scrimcord.engine.entities import maybe_cached
from scrimcord.engine.platform import ThreadCreated

if TYPE_CHECKING:
    from scrimcord.bot.core import ScrimcordBot

logger = logging.getLogger(__name__)


class Threads(commands.Cog, name="Threads"):
    """Forwards thread creation to the rewards ledger."""

    def __init__(self, bot: ScrimcordBot) -> None:
        self.bot = bot

    @commands.Cog.listener()
    async def on_thread_create(self, thread: discord.Thread) -> None:
        if thread.owner_id is None:
            logger.debug("Thread %s has no owner — skipping", thread.id)
            return

        owner = maybe_cached(
            thread.owner,
            thread.owner_id,
            lambda: thread.guild.fetch_member(thread.owner_id),
            kind="member",
        )
        await self.bot.router.ingest(ThreadCreated, thread=thread, owner=owner)


async def setup(bot: ScrimcordBot) -> None:
    await bot.add_cog(Threads(bot))
