"""Shared fixtures: mocked asyncpg pool and a controllable clock."""

from datetime import datetime, timedelta, timezone
from unittest.mock import AsyncMock, MagicMock

import pytest

from shared.models.guild_config import GuildConfig

# Monday 2024-01-15 09:15:00 UTC
MONDAY_0915_UTC = datetime(2024, 1, 15, 9, 15, tzinfo=timezone.utc)


class FakeClock:
    """Callable returning a settable instant."""

    def __init__(self, now: datetime = MONDAY_0915_UTC):
        self.now = now

    def __call__(self) -> datetime:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += timedelta(seconds=seconds)


def make_pool(conn: AsyncMock) -> MagicMock:
    pool = MagicMock()
    ctx = pool.acquire.return_value
    ctx.__aenter__ = AsyncMock(return_value=conn)
    ctx.__aexit__ = AsyncMock(return_value=False)
    return pool


@pytest.fixture
def conn() -> AsyncMock:
    conn = AsyncMock()
    tx = MagicMock()
    tx.__aenter__ = AsyncMock(return_value=None)
    tx.__aexit__ = AsyncMock(return_value=False)
    conn.transaction = MagicMock(return_value=tx)
    return conn


@pytest.fixture
def pool(conn: AsyncMock) -> MagicMock:
    return make_pool(conn)


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


def make_config(guild_id: str = "1", **overrides) -> GuildConfig:
    values = {
        "guild_id": guild_id,
        "channel_id": "100",
        "timezone": "UTC",
        "cadence": 2,
        "active_days": [1, 2, 3, 4, 5, 6, 7],
        "schedule_times": ["09:15", "16:30"],
    }
    values.update(overrides)
    return GuildConfig(**values)
