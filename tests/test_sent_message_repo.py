"""Tests for SentMessageRepository"""

from datetime import timedelta

import pytest

from shared.database import DatabaseError
from shared.models.sent_message import SentMessage
from shared.repositories.sent_message import SentMessageRepository


@pytest.fixture
def repo(pool, clock):
    return SentMessageRepository(pool, now=clock)


def make_row(content_id="loc-1", provider="local", sent_at=None):
    return {
        "id": 1,
        "guild_id": "1",
        "channel_id": "100",
        "content_id": content_id,
        "category": "motivation",
        "provider": provider,
        "sent_at": sent_at,
    }


async def test_record_inserts_row(repo, conn, clock):
    message = SentMessage("1", "100", "loc-1", "motivation", "local", clock())
    await repo.record(message)

    sql, *params = conn.execute.await_args.args
    assert "INSERT INTO sent_messages" in sql
    assert params == ["1", "100", "loc-1", "motivation", "local", clock()]


async def test_was_sent_recently_uses_window(repo, conn, clock):
    conn.fetchrow.return_value = {"?column?": 1}
    assert await repo.was_sent_recently("1", "loc-1") is True
    assert conn.fetchrow.await_args.args[3] == clock() - timedelta(days=30)

    conn.fetchrow.return_value = None
    assert await repo.was_sent_recently("1", "loc-1", days=7) is False
    assert conn.fetchrow.await_args.args[3] == clock() - timedelta(days=7)


async def test_get_recent_maps_rows(repo, conn, clock):
    conn.fetch.return_value = [make_row(sent_at=clock())]
    messages = await repo.get_recent("1", limit=5)

    assert messages[0].content_id == "loc-1"
    assert messages[0].id == 1
    assert "ORDER BY sent_at DESC" in conn.fetch.await_args.args[0]


async def test_get_by_category(repo, conn):
    conn.fetch.return_value = []
    assert await repo.get_by_category("1", "team") == []
    assert conn.fetch.await_args.args[2] == "team"


async def test_cleanup_prunes_by_retention(repo, conn, clock):
    conn.execute.return_value = "DELETE 12"
    assert await repo.cleanup() == 12
    assert conn.execute.await_args.args[1] == clock() - timedelta(days=90)


async def test_provider_stats_are_zero_filled(repo, conn):
    conn.fetch.return_value = [{"provider": "api", "count": 3}]
    assert await repo.get_provider_stats("1") == {"local": 0, "api": 3, "rss": 0}


async def test_errors_are_wrapped(repo, conn, clock):
    conn.execute.side_effect = OSError("gone")
    with pytest.raises(DatabaseError) as exc_info:
        await repo.record(SentMessage("1", "100", "x", "fun", "local", clock()))
    assert exc_info.value.operation == "record"
