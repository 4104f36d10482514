"""Repository for the cooldowns table.

A cooldown is a key with an absolute expiry. Rows whose expiry is in the past
are treated as absent on read (lazy expiry) and physically removed by
:meth:`CooldownRepository.cleanup`.
"""

from __future__ import annotations

from collections.abc import Callable
from datetime import datetime, timedelta

import asyncpg

from shared.database import affected_rows, utcnow, wrap_store_errors
from shared.models.cooldown import Cooldown


def guild_prefix(guild_id: str) -> str:
    """Namespace prefix for guild-scoped cooldown keys."""
    return f"guild:{guild_id}:"


def guild_key(guild_id: str, name: str) -> str:
    """e.g. ``guild_key("123", "now") == "guild:123:now"``."""
    return f"{guild_prefix(guild_id)}{name}"


class CooldownRepository:
    """Key → expiry map backed by PostgreSQL."""

    def __init__(
        self, pool: asyncpg.Pool, *, now: Callable[[], datetime] = utcnow
    ) -> None:
        self.pool = pool
        self._now = now

    async def set(self, key: str, expires_at: datetime) -> None:
        """Insert or overwrite the expiry for ``key``."""
        async with wrap_store_errors("set", f"Failed to set cooldown for key {key}"):
            async with self.pool.acquire() as conn:
                await conn.execute(
                    """
                    INSERT INTO cooldowns (key, expires_at)
                    VALUES ($1, $2)
                    ON CONFLICT (key) DO UPDATE SET
                        expires_at = EXCLUDED.expires_at
                    """,
                    key,
                    expires_at,
                )

    async def set_with_duration(self, key: str, seconds: float) -> datetime:
        """Lock ``key`` for ``seconds`` from now. Returns the expiry."""
        expires_at = self._now() + timedelta(seconds=seconds)
        await self.set(key, expires_at)
        return expires_at

    async def try_acquire(self, key: str, seconds: float) -> bool:
        """Atomically lock ``key`` for ``seconds`` unless it is already active.

        Returns True when this call took the lock. Concurrent callers race on
        the row; only the one whose upsert matches an absent or expired row wins.
        """
        now = self._now()
        async with wrap_store_errors("try_acquire", f"Failed to acquire cooldown for key {key}"):
            async with self.pool.acquire() as conn:
                acquired = await conn.fetchval(
                    """
                    INSERT INTO cooldowns (key, expires_at)
                    VALUES ($1, $2)
                    ON CONFLICT (key) DO UPDATE SET
                        expires_at = EXCLUDED.expires_at
                    WHERE cooldowns.expires_at <= $3
                    RETURNING key
                    """,
                    key,
                    now + timedelta(seconds=seconds),
                    now,
                )
        return acquired is not None

    async def get(self, key: str) -> datetime | None:
        """Return the expiry if it is strictly in the future, else None."""
        async with wrap_store_errors("get", f"Failed to get cooldown for key {key}"):
            async with self.pool.acquire() as conn:
                expires_at: datetime | None = await conn.fetchval(
                    "SELECT expires_at FROM cooldowns WHERE key = $1",
                    key,
                )
        if expires_at is None or expires_at <= self._now():
            return None
        return expires_at

    async def is_on_cooldown(self, key: str) -> bool:
        return await self.get(key) is not None

    async def get_remaining_ms(self, key: str) -> int:
        """Milliseconds until ``key`` expires; 0 when absent or expired."""
        expires_at = await self.get(key)
        if expires_at is None:
            return 0
        remaining = (expires_at - self._now()).total_seconds() * 1000
        return max(0, int(remaining))

    async def delete(self, key: str) -> None:
        """Remove ``key``. No error if it does not exist."""
        async with wrap_store_errors("delete", f"Failed to delete cooldown for key {key}"):
            async with self.pool.acquire() as conn:
                await conn.execute("DELETE FROM cooldowns WHERE key = $1", key)

    async def delete_for_guild(self, guild_id: str) -> int:
        """Remove every ``guild:<guild_id>:*`` key. Returns the count removed."""
        async with wrap_store_errors(
            "delete_for_guild", f"Failed to delete cooldowns for guild {guild_id}"
        ):
            async with self.pool.acquire() as conn:
                status: str = await conn.execute(
                    "DELETE FROM cooldowns WHERE starts_with(key, $1)",
                    guild_prefix(guild_id),
                )
        return affected_rows(status)

    async def cleanup(self) -> int:
        """Physically remove expired rows. Returns the count removed."""
        async with wrap_store_errors("cleanup", "Failed to cleanup expired cooldowns"):
            async with self.pool.acquire() as conn:
                status: str = await conn.execute(
                    "DELETE FROM cooldowns WHERE expires_at <= $1",
                    self._now(),
                )
        return affected_rows(status)

    async def list_active(self, limit: int = 100) -> list[Cooldown]:
        """Non-expired cooldowns, soonest to expire first."""
        async with wrap_store_errors("list_active", "Failed to list active cooldowns"):
            async with self.pool.acquire() as conn:
                rows = await conn.fetch(
                    """
                    SELECT key, expires_at FROM cooldowns
                    WHERE expires_at > $1
                    ORDER BY expires_at ASC
                    LIMIT $2
                    """,
                    self._now(),
                    limit,
                )
        return [Cooldown(key=row["key"], expires_at=row["expires_at"]) for row in rows]
