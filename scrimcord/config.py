"""
scrimcord.config — .env + YAML Configuration Loader
====================================================

**Why this file exists:**
Every knob the bridge needs is resolved exactly once, before the bot is
constructed, into a frozen :class:`BridgeConfig`.  Handlers never read the
environment themselves, so there is no window where an event can arrive
before its allow-lists are known.

Sources, lowest precedence first:

1. ``config.yaml`` (optional — an env-only deployment is fine).
2. Environment variables (usually from ``.env`` via ``python-dotenv``).

Usage::

    from scrimcord.config import load_config

    cfg = load_config()                  # reads ./config.yaml if present
    cfg.scope.allowed_guild_ids          # frozenset({"1468816181854081229"})
    cfg.event_type_prefix                # "discord"
"""

from __future__ import annotations

import os
from collections.abc import Iterable, Mapping
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

import yaml

from scrimcord.errors import ConfigError

DEFAULT_STATUS_HOST = "0.0.0.0"
DEFAULT_MAX_IN_FLIGHT = 64
DEFAULT_LEDGER_TIMEOUT = 10.0


# ---------------------------------------------------------------------------
# Typed settings objects
# ---------------------------------------------------------------------------
@dataclass(frozen=True, slots=True)
class ScopeConfig:
    """Guild/channel allow-lists.  An empty set means "allow everything"."""

    allowed_guild_ids: frozenset[str] = field(default_factory=frozenset)
    allowed_channel_ids: frozenset[str] = field(default_factory=frozenset)


@dataclass(frozen=True, slots=True)
class LedgerConfig:
    """Connection settings for the Scrimmage rewards API."""

    api_server_endpoint: str
    private_key: str
    namespace: str
    timeout: float = DEFAULT_LEDGER_TIMEOUT


@dataclass(frozen=True, slots=True)
class BridgeConfig:
    """Immutable runtime configuration for the whole process."""

    ledger: LedgerConfig
    scope: ScopeConfig = field(default_factory=ScopeConfig)
    event_type_prefix: str = ""
    allow_registration: bool = False
    bot_prefix: str = "!"
    max_in_flight: int = DEFAULT_MAX_IN_FLIGHT

    # Status API (disabled when port is None)
    status_host: str = DEFAULT_STATUS_HOST
    status_port: int | None = None


# ---------------------------------------------------------------------------
# Parsing helpers
# ---------------------------------------------------------------------------
def parse_id_list(raw: str | Iterable[Any] | None) -> frozenset[str]:
    """Turn ``"1,2, ,3"`` or ``[1, 2, 3]`` into ``frozenset({"1", "2", "3"})``.

    Blank entries are dropped, so an unset variable yields the empty
    (allow-all) set.  A single YAML integer (``allowed_guild_ids: 123``)
    counts as a one-element list.

    Raises
    ------
    ConfigError
        If *raw* is neither a string, an integer nor a list.
    """
    if raw is None:
        return frozenset()
    if isinstance(raw, str):
        items: Iterable[Any] = raw.split(",")
    elif isinstance(raw, int) and not isinstance(raw, bool):
        items = [raw]
    elif isinstance(raw, (list, tuple, set, frozenset)):
        items = raw
    else:
        raise ConfigError(f"Expected a list of ids, got {type(raw).__name__}: {raw!r}")
    return frozenset(str(item).strip() for item in items if str(item).strip())


def _text(raw: Any, default: str) -> str:
    """``str(raw)``, or *default* when the value is unset or blank."""
    if raw is None or raw == "":
        return default
    return str(raw)


def parse_bool(raw: str | bool | None) -> bool:
    if isinstance(raw, bool):
        return raw
    return str(raw or "").strip().lower() == "true"


def _read_yaml(path: Path) -> dict[str, Any]:
    if not path.exists():
        return {}
    with open(path, encoding="utf-8") as fh:
        raw = yaml.safe_load(fh) or {}
    if not isinstance(raw, dict):
        raise ConfigError(f"{path} must contain a mapping at the top level")
    return raw


# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------
def load_config(
    path: str | Path = "config.yaml",
    env: Mapping[str, str] | None = None,
) -> BridgeConfig:
    """Build a :class:`BridgeConfig` from *path* and the environment.

    Parameters
    ----------
    path:
        Optional YAML file with soft settings.  Missing file → env only.
    env:
        Mapping to read variables from.  Defaults to ``os.environ``.

    Raises
    ------
    ConfigError
        If a required ledger setting is missing from both sources, or a
        numeric setting cannot be parsed.
    """
    env = os.environ if env is None else env
    raw = _read_yaml(Path(path))
    discord_raw: dict[str, Any] = raw.get("discord") or {}
    ledger_raw: dict[str, Any] = raw.get("scrimmage") or {}
    status_raw: dict[str, Any] = raw.get("status") or {}

    def pick(var: str, fallback: Any = None) -> Any:
        value = env.get(var)
        return value if value not in (None, "") else fallback

    endpoint = pick("SCRIMMAGE_API_SERVER_ENDPOINT", ledger_raw.get("api_server_endpoint"))
    private_key = pick("SCRIMMAGE_PRIVATE_KEY", ledger_raw.get("private_key"))
    namespace = pick("SCRIMMAGE_NAMESPACE", ledger_raw.get("namespace"))

    missing = [
        name
        for name, value in (
            ("SCRIMMAGE_API_SERVER_ENDPOINT", endpoint),
            ("SCRIMMAGE_PRIVATE_KEY", private_key),
            ("SCRIMMAGE_NAMESPACE", namespace),
        )
        if not value
    ]
    if missing:
        raise ConfigError(
            "Scrimmage ledger is not configured: missing " + ", ".join(missing)
        )

    try:
        timeout = float(_text(ledger_raw.get("timeout"), str(DEFAULT_LEDGER_TIMEOUT)))
        max_in_flight = int(_text(raw.get("max_in_flight"), str(DEFAULT_MAX_IN_FLIGHT)))
        port_raw = pick("PORT", status_raw.get("port"))
        status_port = int(port_raw) if port_raw else None
    except (TypeError, ValueError) as exc:
        raise ConfigError(f"Invalid numeric setting: {exc}") from exc

    return BridgeConfig(
        ledger=LedgerConfig(
            api_server_endpoint=str(endpoint).rstrip("/"),
            private_key=str(private_key),
            namespace=str(namespace),
            timeout=timeout,
        ),
        scope=ScopeConfig(
            allowed_guild_ids=parse_id_list(
                pick("DISCORD_ALLOWED_GUILD_IDS", discord_raw.get("allowed_guild_ids"))
            ),
            allowed_channel_ids=parse_id_list(
                pick("DISCORD_ALLOWED_CHANNEL_IDS", discord_raw.get("allowed_channel_ids"))
            ),
        ),
        event_type_prefix=_text(
            pick("SCRIMMAGE_DATA_TYPE_PREFIX", ledger_raw.get("data_type_prefix")), ""
        ),
        allow_registration=parse_bool(
            pick("DISCORD_ALLOW_REGISTRATION", discord_raw.get("allow_registration"))
        ),
        bot_prefix=_text(discord_raw.get("bot_prefix"), "!"),
        max_in_flight=max_in_flight,
        status_host=_text(pick("HOSTNAME", status_raw.get("host")), DEFAULT_STATUS_HOST),
        status_port=status_port,
    )
