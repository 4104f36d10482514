"""PostgreSQL connection management and storage-adapter helpers.

Every repository talks to PostgreSQL through an ``asyncpg`` pool owned by
:class:`DatabaseManager`. Failures raised by the driver are wrapped in
:class:`DatabaseError` so callers see the operation name and the original
cause, never a raw driver exception.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import AsyncIterator, Callable, Iterable
from contextlib import asynccontextmanager
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any, TypeVar

import asyncpg

logger = logging.getLogger(__name__)

T = TypeVar("T")

LIST_SEPARATOR = ","


def utcnow() -> datetime:
    """Current instant as an aware UTC datetime."""
    return datetime.now(timezone.utc)


class DatabaseError(Exception):
    """A persistent-store operation failed.

    ``operation`` names the repository method that failed and ``cause`` keeps
    the underlying driver exception for debugging.
    """

    def __init__(self, message: str, operation: str, cause: BaseException | None = None):
        super().__init__(message)
        self.operation = operation
        self.cause = cause

    def __str__(self) -> str:
        base = super().__str__()
        if self.cause is None:
            return f"{base} [{self.operation}]"
        return f"{base} [{self.operation}]: {type(self.cause).__name__}: {self.cause}"


@asynccontextmanager
async def wrap_store_errors(operation: str, message: str) -> AsyncIterator[None]:
    """Re-raise anything thrown inside the block as :class:`DatabaseError`."""
    try:
        yield
    except DatabaseError:
        raise
    except Exception as exc:
        raise DatabaseError(message, operation, exc) from exc


def affected_rows(status: str | None) -> int:
    """Parse an asyncpg command status such as ``"DELETE 3"`` into ``3``."""
    if not status:
        return 0
    try:
        return int(status.rsplit(" ", 1)[-1])
    except ValueError:
        return 0


# ── Array encoding (storage boundary only) ───────────────────────────


def encode_list(values: Iterable[Any]) -> str:
    """Serialize an ordered sequence as a comma-joined string."""
    return LIST_SEPARATOR.join(str(v).strip() for v in values)


def decode_list(raw: str | None, cast: Callable[[str], T] = str) -> list[T]:  # type: ignore[assignment]
    """Inverse of :func:`encode_list`. Blank fragments are dropped."""
    if not raw:
        return []
    return [cast(part.strip()) for part in raw.split(LIST_SEPARATOR) if part.strip()]


# ── Pool lifecycle ───────────────────────────────────────────────────


@dataclass
class PoolConfig:
    """Database pool configuration with sensible defaults."""

    min_size: int = 1
    max_size: int = 4
    timeout: float = 5.0
    command_timeout: float = 15.0
    max_inactive_connection_lifetime: float = 300.0
    max_retries: int = 3
    retry_delay: float = 3.0
    ssl: str | None = None


class DatabaseManager:
    """Owns the asyncpg pool for the bot process.

    The pool is created once in :meth:`connect` and handed to every
    repository; nothing else keeps a module-level connection.
    """

    def __init__(self, database_url: str, config: PoolConfig | None = None):
        self.database_url = database_url
        self.config = config or PoolConfig()
        self._pool: asyncpg.Pool | None = None

    def _pool_kwargs(self) -> dict[str, Any]:
        cfg = self.config
        kwargs: dict[str, Any] = {
            "dsn": self.database_url,
            "min_size": cfg.min_size,
            "max_size": cfg.max_size,
            "timeout": cfg.timeout,
            "command_timeout": cfg.command_timeout,
            "max_inactive_connection_lifetime": cfg.max_inactive_connection_lifetime,
        }
        if cfg.ssl:
            kwargs["ssl"] = cfg.ssl
        return kwargs

    async def connect(self) -> None:
        """Create the pool, retrying with exponential backoff."""
        if self._pool is not None:
            logger.warning("Database pool already initialized")
            return

        cfg = self.config
        for attempt in range(1, cfg.max_retries + 1):
            try:
                self._pool = await asyncpg.create_pool(**self._pool_kwargs())
                async with self._pool.acquire() as conn:
                    await conn.fetchval("SELECT 1")
                logger.info(
                    "Database pool created and verified (size=%d-%d)",
                    cfg.min_size,
                    cfg.max_size,
                )
                return
            except Exception as e:
                if self._pool is not None:
                    await self._pool.close()
                    self._pool = None
                if attempt < cfg.max_retries:
                    delay = cfg.retry_delay * (2 ** (attempt - 1))
                    logger.warning(
                        "Database connection attempt %d/%d failed: %s: %s, retrying in %.1fs...",
                        attempt,
                        cfg.max_retries,
                        type(e).__name__,
                        e,
                        delay,
                    )
                    await asyncio.sleep(delay)
                else:
                    logger.exception(
                        "Database connection failed after %d attempts", cfg.max_retries
                    )
                    raise DatabaseError("Could not connect to database", "connect", e) from e

    async def disconnect(self) -> None:
        """Close the pool if it is open."""
        if self._pool is None:
            return
        await self._pool.close()
        self._pool = None
        logger.info("Database pool closed")

    async def check_health(self) -> bool:
        """Return True when the pool can run a trivial query."""
        if self._pool is None:
            return False
        try:
            async with self._pool.acquire(timeout=2.0) as conn:
                await conn.fetchval("SELECT 1")
            return True
        except Exception:
            return False

    @property
    def pool(self) -> asyncpg.Pool:
        """The connection pool. Raises if :meth:`connect` has not run."""
        if self._pool is None:
            raise RuntimeError("Database pool not initialized. Call connect() first.")
        return self._pool
