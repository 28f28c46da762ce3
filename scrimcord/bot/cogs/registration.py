"""
scrimcord.bot.cogs.registration — /register Slash Command
==========================================================

Opt-in registration with the rewards ledger.  Replies are always ephemeral.
When registration is turned off in config, the command answers with a
disabled message and never touches the ledger.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

import discord
from discord import app_commands
from discord.ext import commands

from scrimcord.errors import LedgerError

if TYPE_CHECKING:
    from scrimcord.bot.core import ScrimcordBot
    from scrimcord.config import BridgeConfig
    from scrimcord.services.ledger import LedgerSink

logger = logging.getLogger(__name__)

DISABLED_REPLY = "Registration is disabled"
FAILED_REPLY = "Registration failed — please try again later."


async def registration_reply(
    cfg: BridgeConfig, ledger: LedgerSink, user: discord.abc.User
) -> str:
    """Register *user* with the ledger and return the text to show them."""
    if not cfg.allow_registration:
        return DISABLED_REPLY
    try:
        token = await ledger.register_user(
            str(user.id), user.display_name, str(user.display_avatar.url)
        )
    except LedgerError as exc:
        logger.error("Registration failed for user %s: %s", user.id, exc)
        return FAILED_REPLY
    except Exception:
        # The interaction must still get an answer.
        logger.exception("Unexpected error registering user %s", user.id)
        return FAILED_REPLY
    logger.info("Registered user %s with the rewards ledger", user.id)
    return f"You're registered for rewards! Your access token: `{token}`"


class Registration(commands.Cog, name="Registration"):
    """Lets members opt in to the rewards program."""

    def __init__(self, bot: ScrimcordBot) -> None:
        self.bot = bot

    @app_commands.command(name="register", description="Join the rewards program")
    async def register(self, interaction: discord.Interaction) -> None:
        reply = await registration_reply(self.bot.cfg, self.bot.ledger, interaction.user)
        await interaction.response.send_message(reply, ephemeral=True)


async def setup(bot: ScrimcordBot) -> None:
    await bot.add_cog(Registration(bot))
