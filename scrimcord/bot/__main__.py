"""
scrimcord.bot.__main__ — Entry point for ``python -m scrimcord.bot``
====================================================================

Wiring:
1. Load .env (secrets).
2. Build the immutable BridgeConfig (config.yaml + environment).
3. Create the Scrimmage ledger client.
4. Create the ScrimcordBot and hand it config + ledger.
5. Start the bot (blocking — runs the asyncio event loop).

Run with::

    uv run python -m scrimcord.bot
"""

from __future__ import annotations

import logging
import os
import sys

from dotenv import load_dotenv

from scrimcord.bot.core import ScrimcordBot
from scrimcord.config import load_config
from scrimcord.errors import ConfigError
from scrimcord.services.ledger import ScrimmageLedger

# ---------------------------------------------------------------------------
# Logging
# ---------------------------------------------------------------------------
logging.basicConfig(
    level=os.getenv("LOG_LEVEL", "INFO").upper(),
    format="%(asctime)s │ %(levelname)-8s │ %(name)s │ %(message)s",
    datefmt="%H:%M:%S",
)
logger = logging.getLogger("scrimcord")


def main() -> None:
    """Bootstrap and run the Scrimcord bot."""

    # 1. Environment variables (secrets).
    load_dotenv()

    token = os.getenv("DISCORD_TOKEN")
    if not token or token == "your-discord-bot-token-here":
        logger.critical(
            "DISCORD_TOKEN is not set.  "
            "Copy .env.example → .env and paste your bot token."
        )
        sys.exit(1)

    # 2. Configuration — resolved once, before any listener exists.
    try:
        cfg = load_config(os.getenv("SCRIMCORD_CONFIG", "config.yaml"))
    except ConfigError as exc:
        logger.critical("%s", exc)
        sys.exit(1)
    logger.info(
        "Config loaded — namespace: %s, prefix: %r",
        cfg.ledger.namespace, cfg.event_type_prefix,
    )

    # 3. Ledger.
    ledger = ScrimmageLedger(cfg.ledger)

    # 4. Bot.
    bot = ScrimcordBot(cfg=cfg, ledger=ledger)

    # 5. Run (blocks until Ctrl+C or SIGTERM).
    logger.info("Starting Scrimcord bot…")
    try:
        bot.run(token, log_handler=None)
    except KeyboardInterrupt:
        logger.info("Shutting down gracefully…")


if __name__ == "__main__":
    main()
