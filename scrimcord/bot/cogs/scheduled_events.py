"""
scrimcord.bot.cogs.scheduled_events — Scheduled-Event Interest Capture
=======================================================================

Forwards users marking themselves interested in (or withdrawing from) a
guild scheduled event.  Requires the GUILD_SCHEDULED_EVENTS intent
(included in ``Intents.default()``) and GUILD_MEMBERS.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

import discord
from discord.ext import commands

from scrimcord.engine.entities import Complete
from scrimcord.engine.platform import ScheduledEventUserAdded, ScheduledEventUserRemoved

if TYPE_CHECKING:
    from scrimcord.bot.core import ScrimcordBot


class ScheduledEvents(commands.Cog, name="ScheduledEvents"):
    def __init__(self, bot: ScrimcordBot) -> None:
        self.bot = bot

    @commands.Cog.listener()
    async def on_scheduled_event_user_add(
        self, event: discord.ScheduledEvent, user: discord.User
    ) -> None:
        await self.bot.router.ingest(
            ScheduledEventUserAdded, event=Complete(event), user=Complete(user),
        )

    @commands.Cog.listener()
    async def on_scheduled_event_user_remove(
        self, event: discord.ScheduledEvent, user: discord.User
    ) -> None:
        await self.bot.router.ingest(
            ScheduledEventUserRemoved, event=Complete(event), user=Complete(user),
        )


async def setup(bot: ScrimcordBot) -> None:
    await bot.add_cog(ScheduledEvents(bot))
