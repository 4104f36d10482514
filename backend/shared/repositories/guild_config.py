"""Repository for the guild_config table."""

from __future__ import annotations

import logging
from typing import Any

import asyncpg

from shared.cache import MISSING, StaleCache
from shared.database import DatabaseError, decode_list, encode_list, wrap_store_errors
from shared.models.guild_config import GuildConfig

logger = logging.getLogger(__name__)

CACHE_TTL_SECONDS = 300
_ALL_KEY = "all"

_COLUMNS = (
    "guild_id, channel_id, timezone, cadence, active_days, schedule_times, "
    "contextual_enabled, created_at, updated_at"
)


def _row_to_config(row: Any) -> GuildConfig:
    return GuildConfig(
        guild_id=row["guild_id"],
        channel_id=row["channel_id"],
        timezone=row["timezone"],
        cadence=row["cadence"],
        active_days=decode_list(row["active_days"], int),
        schedule_times=decode_list(row["schedule_times"]),
        contextual_enabled=bool(row["contextual_enabled"]),
        created_at=row["created_at"],
        updated_at=row["updated_at"],
    )


class GuildConfigRepository:
    """Per-guild schedule settings, read by the scheduler once per tick.

    Reads go through an in-process TTL cache. When the database is down,
    :meth:`get_all` serves the last-known-good list so scheduled delivery
    keeps working.
    """

    def __init__(self, pool: asyncpg.Pool, cache: StaleCache | None = None) -> None:
        self.pool = pool
        self._cache = cache or StaleCache(maxsize=256, ttl=CACHE_TTL_SECONDS)

    async def get(self, guild_id: str) -> GuildConfig | None:
        cache_key = f"guild:{guild_id}"
        cached = self._cache.get(cache_key)
        if cached is not MISSING:
            return cached

        async with wrap_store_errors("get", f"Failed to get guild config for {guild_id}"):
            async with self.pool.acquire() as conn:
                row = await conn.fetchrow(
                    f"SELECT {_COLUMNS} FROM guild_config WHERE guild_id = $1",
                    guild_id,
                )
        if not row:
            return None
        config = _row_to_config(row)
        self._cache.set(cache_key, config)
        return config

    async def get_all(self) -> list[GuildConfig]:
        """Every guild config, ordered by guild id."""
        cached = self._cache.get(_ALL_KEY)
        if cached is not MISSING:
            return cached

        try:
            async with wrap_store_errors("get_all", "Failed to get all guild configs"):
                async with self.pool.acquire() as conn:
                    rows = await conn.fetch(
                        f"SELECT {_COLUMNS} FROM guild_config ORDER BY guild_id"
                    )
        except DatabaseError as e:
            stale = self._cache.get_stale(_ALL_KEY)
            if stale is MISSING:
                raise
            logger.warning("Returning stale guild configs (%s)", e)
            return stale

        configs = [_row_to_config(row) for row in rows]
        self._cache.set(_ALL_KEY, configs)
        return configs

    async def upsert(self, config: GuildConfig) -> GuildConfig:
        """Insert or fully replace a config.

        ``created_at`` is kept from the first insert; ``updated_at`` is
        refreshed on every write.
        """
        async with wrap_store_errors(
            "upsert", f"Failed to upsert guild config for {config.guild_id}"
        ):
            async with self.pool.acquire() as conn:
                row = await conn.fetchrow(
                    f"""
                    INSERT INTO guild_config (
                        guild_id, channel_id, timezone, cadence, active_days,
                        schedule_times, contextual_enabled, created_at, updated_at
                    )
                    VALUES ($1, $2, $3, $4, $5, $6, $7, NOW(), NOW())
                    ON CONFLICT (guild_id) DO UPDATE SET
                        channel_id         = EXCLUDED.channel_id,
                        timezone           = EXCLUDED.timezone,
                        cadence            = EXCLUDED.cadence,
                        active_days        = EXCLUDED.active_days,
                        schedule_times     = EXCLUDED.schedule_times,
                        contextual_enabled = EXCLUDED.contextual_enabled,
                        updated_at         = NOW()
                    RETURNING {_COLUMNS}
                    """,
                    config.guild_id,
                    config.channel_id,
                    config.timezone,
                    config.cadence,
                    encode_list(config.active_days),
                    encode_list(config.schedule_times),
                    config.contextual_enabled,
                )
        self._invalidate(config.guild_id)
        return _row_to_config(row)

    async def delete(self, guild_id: str) -> bool:
        """Remove a guild's config. Returns True if a row was deleted."""
        async with wrap_store_errors("delete", f"Failed to delete guild config for {guild_id}"):
            async with self.pool.acquire() as conn:
                status: str = await conn.execute(
                    "DELETE FROM guild_config WHERE guild_id = $1",
                    guild_id,
                )
        self._cache.forget(f"guild:{guild_id}")
        self._cache.invalidate(_ALL_KEY)
        return status == "DELETE 1"

    def _invalidate(self, guild_id: str) -> None:
        self._cache.invalidate(f"guild:{guild_id}")
        self._cache.invalidate(_ALL_KEY)
