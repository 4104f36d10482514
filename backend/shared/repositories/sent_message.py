"""Repository for the sent_messages table (anti-repetition history)."""

from __future__ import annotations

from collections.abc import Callable
from datetime import datetime, timedelta
from typing import Any

import asyncpg

from shared.database import affected_rows, utcnow, wrap_store_errors
from shared.models.content import PROVIDERS, Category, Provider
from shared.models.sent_message import SentMessage

ANTI_REPETITION_DAYS = 30
RETENTION_DAYS = 90

_COLUMNS = "id, guild_id, channel_id, content_id, category, provider, sent_at"


def _row_to_message(row: Any) -> SentMessage:
    return SentMessage(
        id=row["id"],
        guild_id=row["guild_id"],
        channel_id=row["channel_id"],
        content_id=row["content_id"],
        category=row["category"],
        provider=row["provider"],
        sent_at=row["sent_at"],
    )


class SentMessageRepository:
    """Append-only history of delivered content."""

    def __init__(
        self, pool: asyncpg.Pool, *, now: Callable[[], datetime] = utcnow
    ) -> None:
        self.pool = pool
        self._now = now

    def _cutoff(self, days: int) -> datetime:
        return self._now() - timedelta(days=days)

    async def record(self, message: SentMessage) -> None:
        """Insert one history row."""
        async with wrap_store_errors(
            "record", f"Failed to record sent message for guild {message.guild_id}"
        ):
            async with self.pool.acquire() as conn:
                await conn.execute(
                    """
                    INSERT INTO sent_messages
                        (guild_id, channel_id, content_id, category, provider, sent_at)
                    VALUES ($1, $2, $3, $4, $5, $6)
                    """,
                    message.guild_id,
                    message.channel_id,
                    message.content_id,
                    message.category,
                    message.provider,
                    message.sent_at,
                )

    async def was_sent_recently(
        self, guild_id: str, content_id: str, days: int = ANTI_REPETITION_DAYS
    ) -> bool:
        """True if ``content_id`` was sent to the guild within ``days`` days."""
        async with wrap_store_errors(
            "was_sent_recently",
            f"Failed to check if content {content_id} was sent recently for guild {guild_id}",
        ):
            async with self.pool.acquire() as conn:
                row = await conn.fetchrow(
                    """
                    SELECT 1 FROM sent_messages
                    WHERE guild_id = $1 AND content_id = $2 AND sent_at > $3
                    LIMIT 1
                    """,
                    guild_id,
                    content_id,
                    self._cutoff(days),
                )
        return row is not None

    async def get_recent(self, guild_id: str, limit: int = 100) -> list[SentMessage]:
        """Newest first."""
        async with wrap_store_errors(
            "get_recent", f"Failed to get recent messages for guild {guild_id}"
        ):
            async with self.pool.acquire() as conn:
                rows = await conn.fetch(
                    f"SELECT {_COLUMNS} FROM sent_messages "
                    "WHERE guild_id = $1 ORDER BY sent_at DESC LIMIT $2",
                    guild_id,
                    limit,
                )
        return [_row_to_message(row) for row in rows]

    async def get_by_category(
        self, guild_id: str, category: Category, limit: int = 50
    ) -> list[SentMessage]:
        async with wrap_store_errors(
            "get_by_category",
            f"Failed to get messages by category {category} for guild {guild_id}",
        ):
            async with self.pool.acquire() as conn:
                rows = await conn.fetch(
                    f"SELECT {_COLUMNS} FROM sent_messages "
                    "WHERE guild_id = $1 AND category = $2 "
                    "ORDER BY sent_at DESC LIMIT $3",
                    guild_id,
                    category,
                    limit,
                )
        return [_row_to_message(row) for row in rows]

    async def cleanup(self, days: int = RETENTION_DAYS) -> int:
        """Prune rows older than the retention window. Returns the count removed."""
        async with wrap_store_errors("cleanup", "Failed to cleanup old sent messages"):
            async with self.pool.acquire() as conn:
                status: str = await conn.execute(
                    "DELETE FROM sent_messages WHERE sent_at < $1",
                    self._cutoff(days),
                )
        return affected_rows(status)

    async def get_provider_stats(
        self, guild_id: str, days: int = ANTI_REPETITION_DAYS
    ) -> dict[Provider, int]:
        """Messages per provider over the last ``days`` days, zero-filled."""
        async with wrap_store_errors(
            "get_provider_stats", f"Failed to get provider stats for guild {guild_id}"
        ):
            async with self.pool.acquire() as conn:
                rows = await conn.fetch(
                    """
                    SELECT provider, COUNT(*) AS count FROM sent_messages
                    WHERE guild_id = $1 AND sent_at > $2
                    GROUP BY provider
                    """,
                    guild_id,
                    self._cutoff(days),
                )
        stats: dict[Provider, int] = {provider: 0 for provider in PROVIDERS}
        for row in rows:
            if row["provider"] in stats:
                stats[row["provider"]] = int(row["count"])
        return stats
