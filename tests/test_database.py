"""Tests for storage adapter helpers"""

from unittest.mock import AsyncMock, MagicMock, patch

import pytest

from shared.database import (
    DatabaseError,
    DatabaseManager,
    PoolConfig,
    affected_rows,
    decode_list,
    encode_list,
    wrap_store_errors,
)


class TestListEncoding:
    def test_encode_keeps_order(self):
        assert encode_list(["16:30", "09:15"]) == "16:30,09:15"
        assert encode_list([1, 2, 3]) == "1,2,3"
        assert encode_list([]) == ""

    def test_decode_with_cast(self):
        assert decode_list("1,2,3", int) == [1, 2, 3]
        assert decode_list("09:15, 16:30") == ["09:15", "16:30"]

    @pytest.mark.parametrize("raw", ["", None, ",", " , "])
    def test_decode_blank(self, raw):
        assert decode_list(raw) == []

    def test_decode_drops_blank_fragments(self):
        assert decode_list("1,,2,", int) == [1, 2]


@pytest.mark.parametrize(
    "status, expected",
    [("DELETE 3", 3), ("DELETE 0", 0), ("INSERT 0 1", 1), ("", 0), (None, 0), ("SELECT", 0)],
)
def test_affected_rows(status, expected):
    assert affected_rows(status) == expected


class TestWrapStoreErrors:
    async def test_wraps_with_operation_and_cause(self):
        cause = OSError("connection refused")
        with pytest.raises(DatabaseError) as exc_info:
            async with wrap_store_errors("get", "Failed to get thing"):
                raise cause

        err = exc_info.value
        assert err.operation == "get"
        assert err.cause is cause
        assert "Failed to get thing" in str(err)
        assert "[get]" in str(err)
        assert "OSError" in str(err)

    async def test_database_errors_pass_through(self):
        original = DatabaseError("inner", "inner_op")
        with pytest.raises(DatabaseError) as exc_info:
            async with wrap_store_errors("outer_op", "outer"):
                raise original
        assert exc_info.value is original


class TestDatabaseManager:
    def test_pool_before_connect_raises(self):
        with pytest.raises(RuntimeError):
            DatabaseManager("postgresql://localhost/test").pool

    def test_ssl_only_passed_when_set(self):
        assert "ssl" not in DatabaseManager("postgresql://x/db")._pool_kwargs()
        kwargs = DatabaseManager("postgresql://x/db", PoolConfig(ssl="require"))._pool_kwargs()
        assert kwargs["ssl"] == "require"

    async def test_connect_retries_then_raises(self):
        manager = DatabaseManager(
            "postgresql://x/db", PoolConfig(max_retries=2, retry_delay=0.0)
        )
        with patch("shared.database.asyncpg.create_pool", AsyncMock(side_effect=OSError("down"))):
            with pytest.raises(DatabaseError) as exc_info:
                await manager.connect()
        assert exc_info.value.operation == "connect"

    async def test_check_health_without_pool(self):
        assert await DatabaseManager("postgresql://x/db").check_health() is False

    async def test_disconnect_closes_pool(self):
        manager = DatabaseManager("postgresql://x/db")
        pool = MagicMock()
        pool.close = AsyncMock()
        manager._pool = pool

        await manager.disconnect()

        pool.close.assert_awaited_once()
        with pytest.raises(RuntimeError):
            manager.pool
