"""
scrimcord.bot.cogs.voice — Voice Join/Leave Capture
====================================================

Routes every voice state update; the normalizer decides whether it was a
join, a leave, or a move (both).  Mute/deafen toggles in the same channel
produce nothing.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

import discord
from discord.ext import commands

from scrimcord.engine.entities import Complete
from scrimcord.engine.platform import VoiceStateChanged

if TYPE_CHECKING:
    from scrimcord.bot.core import ScrimcordBot

logger = logging.getLogger(__name__)


class Voice(commands.Cog, name="Voice"):
    """Forwards voice channel joins and leaves."""

    def __init__(self, bot: ScrimcordBot) -> None:
        self.bot = bot

    @commands.Cog.listener()
    async def on_voice_state_update(
        self,
        member: discord.Member,
        before: discord.VoiceState,
        after: discord.VoiceState,
    ) -> None:
        logger.debug(
            "Gateway event: VOICE_STATE %s (%s → %s)",
            member.name,
            getattr(before.channel, "name", "None"),
            getattr(after.channel, "name", "None"),
        )
        await self.bot.router.ingest(
            VoiceStateChanged, member=Complete(member), before=before, after=after,
        )


async def setup(bot: ScrimcordBot) -> None:
    await bot.add_cog(Voice(bot))
