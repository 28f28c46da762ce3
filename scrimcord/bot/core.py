"""
scrimcord.bot.core — Bot Instance & Cog Loader
===============================================

Defines :class:`ScrimcordBot`, a ``commands.Bot`` subclass that:

1. Builds the ingestion pipeline (scope filter → normalizer → dispatch
   queue → ledger) from the immutable :class:`BridgeConfig`, before any
   listener can fire.
2. Loads every cog in ``scrimcord/bot/cogs/``.
3. Syncs the slash-command tree on ready (guild-scoped when
   ``DEV_GUILD_ID`` is set, global otherwise).
4. Optionally serves the status API on the bot's own event loop.
5. On shutdown, drains in-flight ledger writes before closing the client.

Cogs reach the pipeline through ``self.bot.router``.
"""

from __future__ import annotations

import asyncio
import logging
import os

import discord
import uvicorn
from discord.ext import commands

from scrimcord.config import BridgeConfig
from scrimcord.engine.normalizer import Normalizer
from scrimcord.engine.scope import ScopeFilter
from scrimcord.services.dispatch import DispatchQueue
from scrimcord.services.ingestion import IngestionRouter
from scrimcord.services.ledger import LedgerSink

logger = logging.getLogger(__name__)

# Cog modules to load on startup.
EXTENSIONS: list[str] = [
    "scrimcord.bot.cogs.social",
    "scrimcord.bot.cogs.reactions",
    "scrimcord.bot.cogs.membership",
    "scrimcord.bot.cogs.threads",
    "scrimcord.bot.cogs.voice",
    "scrimcord.bot.cogs.scheduled_events",
    "scrimcord.bot.cogs.registration",
]

# How long close() waits for outstanding ledger writes.
SHUTDOWN_DRAIN_SECONDS = 10.0


class ScrimcordBot(commands.Bot):
    """Custom Bot subclass that carries the ingestion pipeline.

    Parameters
    ----------
    cfg:
        The frozen :class:`BridgeConfig`.
    ledger:
        Where tracked events are written.
    """

    def __init__(self, cfg: BridgeConfig, ledger: LedgerSink) -> None:
        # Privileged intents (enable in the Developer Portal):
        #   MESSAGE_CONTENT — message content goes into the ledger payload
        #   GUILD_MEMBERS   — join/leave/update tracking
        intents = discord.Intents.default()
        intents.message_content = True
        intents.members = True
        intents.presences = False

        super().__init__(command_prefix=cfg.bot_prefix, intents=intents)

        self.cfg = cfg
        self.ledger = ledger
        self.dispatch_queue = DispatchQueue(ledger, max_in_flight=cfg.max_in_flight)
        self.router = IngestionRouter(
            scope=ScopeFilter(cfg.scope),
            normalizer=Normalizer(cfg.event_type_prefix),
            dispatch=self.dispatch_queue,
        )

        self._status_server: uvicorn.Server | None = None
        self._status_task: asyncio.Task | None = None

    # -----------------------------------------------------------------------
    # Entity fetch helpers (used by cogs to build References)
    # -----------------------------------------------------------------------
    def cached_message(self, message_id: int) -> discord.Message | None:
        # Same lookup discord.py uses for raw reaction events (newest first).
        return self._connection._get_message(message_id)

    async def fetch_message_in(self, channel_id: int, message_id: int) -> discord.Message:
        """Fetch a message, fetching its channel too if it isn't cached."""
        channel = self.get_channel(channel_id) or await self.fetch_channel(channel_id)
        return await channel.fetch_message(message_id)  # type: ignore[union-attr]

    # -----------------------------------------------------------------------
    # Lifecycle hooks
    # -----------------------------------------------------------------------
    async def setup_hook(self) -> None:
        """Load cogs and start the status API before connecting.

        A cog that fails to load is logged and skipped; the others still run.
        """
        for ext in EXTENSIONS:
            try:
                await self.load_extension(ext)
                logger.info("Loaded extension: %s", ext)
            except Exception as exc:
                logger.error("Failed to load extension %s: %s", ext, exc)

        if self.cfg.status_port is not None:
            self._start_status_server()

    async def on_ready(self) -> None:
        """Fired when the bot has connected and the cache is populated."""
        assert self.user is not None  # guaranteed after on_ready
        logger.info("Logged in as %s (ID: %s)", self.user.name, self.user.id)
        logger.info(
            "Scope: guilds=%s channels=%s prefix=%r",
            sorted(self.cfg.scope.allowed_guild_ids) or "(all)",
            sorted(self.cfg.scope.allowed_channel_ids) or "(all)",
            self.cfg.event_type_prefix,
        )

        dev_guild_id = os.getenv("DEV_GUILD_ID")
        try:
            if dev_guild_id:
                guild = discord.Object(id=int(dev_guild_id))
                self.tree.copy_global_to(guild=guild)
                synced = await self.tree.sync(guild=guild)
                logger.info("Synced %d commands to dev guild %s", len(synced), dev_guild_id)
            else:
                synced = await self.tree.sync()
                logger.info("Synced %d commands globally", len(synced))
        except discord.HTTPException:
            logger.exception("Failed to sync application commands")

    async def close(self) -> None:
        """Graceful shutdown — drain ledger writes, stop the status API."""
        logger.info("Bot shutting down…")
        await self.dispatch_queue.drain(timeout=SHUTDOWN_DRAIN_SECONDS)
        await self._stop_status_server()
        await self.ledger.aclose()
        await super().close()

    # -----------------------------------------------------------------------
    # Status API (in-process uvicorn)
    # -----------------------------------------------------------------------
    def _start_status_server(self) -> None:
        from scrimcord.api.main import create_app

        config = uvicorn.Config(
            create_app(self),
            host=self.cfg.status_host,
            port=self.cfg.status_port or 0,
            log_config=None,
            lifespan="off",
        )
        self._status_server = uvicorn.Server(config)
        self._status_task = asyncio.get_running_loop().create_task(
            self._status_server.serve(), name="status-api"
        )
        logger.info(
            "Status API listening on %s:%s", self.cfg.status_host, self.cfg.status_port
        )

    async def _stop_status_server(self) -> None:
        if self._status_server is None or self._status_task is None:
            return
        self._status_server.should_exit = True
        try:
            await asyncio.wait_for(self._status_task, timeout=5)
        except asyncio.TimeoutError:
            self._status_task.cancel()
        self._status_server = None
        self._status_task = None
