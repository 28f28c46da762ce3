"""
scrimcord.engine.scope — Guild/Channel Allow-List Filter
=========================================================

Applied before normalization so out-of-scope events cost nothing beyond
the id comparison.  Pure function of the immutable :class:`ScopeConfig`.
"""

from __future__ import annotations

from scrimcord.config import ScopeConfig


class ScopeFilter:
    """Decides whether a ``(guild, channel)`` pair is being observed."""

    def __init__(self, scope: ScopeConfig) -> None:
        self.scope = scope

    def is_allowed_guild(self, guild_id: int | str | None) -> bool:
        allowed = self.scope.allowed_guild_ids
        if not allowed:
            return True
        return guild_id is not None and str(guild_id) in allowed

    def is_allowed_channel(self, channel_id: int | str | None) -> bool:
        # Events without a channel (no system channel configured) only pass
        # when the channel allow-list is empty.
        allowed = self.scope.allowed_channel_ids
        if not allowed:
            return True
        return channel_id is not None and str(channel_id) in allowed

    def in_scope(self, guild_id: int | str | None, channel_id: int | str | None) -> bool:
        return self.is_allowed_guild(guild_id) and self.is_allowed_channel(channel_id)
