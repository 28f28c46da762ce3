"""
scrimcord.api.main — Status API
================================

A read-only pulse check for whoever runs the bot (load balancer health
checks, uptime monitors).  There is no query API over tracked
events; the ledger owns that data.

Served in-process by :class:`~scrimcord.bot.core.ScrimcordBot` when a
status port is configured, so it can read the live dispatch counters.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from fastapi import FastAPI
from pydantic import BaseModel

from scrimcord import __version__

if TYPE_CHECKING:
    from scrimcord.bot.core import ScrimcordBot


class PipelineStatus(BaseModel):
    ready: bool
    in_flight: int
    submitted: int
    succeeded: int
    failed: int


def create_app(bot: ScrimcordBot) -> FastAPI:
    """Build the status app bound to a running *bot*."""
    app = FastAPI(title="Scrimcord Status API", version=__version__)

    @app.get("/api/health")
    def health():
        return {"status": "ok"}

    @app.get("/api/health/pipeline", response_model=PipelineStatus)
    def pipeline_health() -> PipelineStatus:
        """Dispatch queue counters and gateway readiness."""
        return PipelineStatus(ready=bot.is_ready(), **bot.dispatch_queue.stats())

    return app
