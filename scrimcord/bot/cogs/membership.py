"""
scrimcord.bot.cogs.membership — Member Join/Update/Leave Capture
=================================================================

Routes GUILD_MEMBER_ADD, GUILD_MEMBER_UPDATE and GUILD_MEMBER_REMOVE into
the ingestion pipeline.  Requires the GUILD_MEMBERS privileged intent.
Membership events have no channel of their own; they are scoped by the
guild's system channel.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

import discord
from discord.ext import commands

from scrimcord.engine.entities import Complete
from scrimcord.engine.platform import MemberJoined, MemberLeft, MemberUpdated

if TYPE_CHECKING:
    from scrimcord.bot.core import ScrimcordBot

logger = logging.getLogger(__name__)


class Membership(commands.Cog, name="Membership"):
    """Forwards member joins, role/boost changes and leaves."""

    def __init__(self, bot: ScrimcordBot) -> None:
        self.bot = bot

    @commands.Cog.listener()
    async def on_member_join(self, member: discord.Member) -> None:
        logger.info("Member joined: %s (ID: %d)", member.display_name, member.id)
        await self.bot.router.ingest(MemberJoined, member=Complete(member))

    @commands.Cog.listener()
    async def on_member_update(self, before: discord.Member, after: discord.Member) -> None:
        await self.bot.router.ingest(
            MemberUpdated, before=Complete(before), after=Complete(after),
        )

    @commands.Cog.listener()
    async def on_member_remove(self, member: discord.Member) -> None:
        logger.info("Member left: %s (ID: %d)", member.display_name, member.id)
        await self.bot.router.ingest(MemberLeft, member=Complete(member))


async def setup(bot: ScrimcordBot) -> None:
    await bot.add_cog(Membership(bot))
