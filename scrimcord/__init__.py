"""
Scrimcord — Discord Activity → Scrimmage Rewards Bridge
========================================================
Listens to a Discord community's gateway events and forwards a filtered,
normalized subset to the Scrimmage rewards ledger, so messages, reactions,
joins, voice activity and scheduled-event participation accrue rewards.

Package layout::

    scrimcord/
    ├── config.py          # .env + YAML → immutable BridgeConfig
    ├── errors.py          # Exception hierarchy
    ├── engine/
    │   ├── entities.py    # Complete / Reference handles + resolve()
    │   ├── events.py      # TrackableEvent, EventName, event dates
    │   ├── platform.py    # Closed set of gateway event variants
    │   ├── normalizer.py  # Variant → TrackableEvent rules
    │   └── scope.py       # Guild/channel allow-list filter
    ├── services/
    │   ├── ledger.py      # Scrimmage HTTP client (LedgerSink)
    │   ├── dispatch.py    # Fire-and-forget forwarding + drain
    │   └── ingestion.py   # resolve → scope → normalize → dispatch
    ├── bot/
    │   ├── core.py        # Bot subclass, cog loader, shutdown drain
    │   └── cogs/          # Gateway listeners + /register
    └── api/
        └── main.py        # FastAPI status endpoints
"""

__version__ = "0.1.0"
