"""
scrimcord.bot.cogs.social — Message Capture
============================================

Listens for on_message and routes every guild message into the ingestion
pipeline as a ``MessageSent`` occurrence.  Bot and webhook messages are
forwarded too; their flags travel in the payload and the ledger's rules
decide whether they earn anything.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

import discord
from discord.ext import commands

from scrimcord.engine.entities import Complete
from scrimcord.engine.platform import MessageSent

if TYPE_CHECKING:
    from scrimcord.bot.core import ScrimcordBot

logger = logging.getLogger(__name__)


class Social(commands.Cog, name="Social"):
    """Forwards sent messages to the rewards ledger."""

    def __init__(self, bot: ScrimcordBot) -> None:
        self.bot = bot

    @commands.Cog.listener()
    async def on_message(self, message: discord.Message) -> None:
        logger.debug(
            "Gateway event: MESSAGE %s from %s in #%s (bot=%s)",
            message.id,
            message.author.name,
            getattr(message.channel, "name", "DM"),
            message.author.bot,
        )
        if message.guild is None:
            return  # DMs are never in scope
        await self.bot.router.ingest(MessageSent, message=Complete(message))


async def setup(bot: ScrimcordBot) -> None:
    await bot.add_cog(Social(bot))
