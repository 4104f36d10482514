"""Tests for the SQL migration runner"""

from shared.migrations import MigrationRunner
from shared.migrations.runner import VERSIONS_DIR


def test_initial_schema_is_pending_on_fresh_database(pool):
    pending = MigrationRunner(pool).pending_files(set())
    assert [p.stem for p in pending] == ["000_initial_schema"]


def test_applied_versions_are_skipped(pool):
    assert MigrationRunner(pool).pending_files({"000_initial_schema"}) == []


def test_initial_schema_creates_tables():
    sql = (VERSIONS_DIR / "000_initial_schema.sql").read_text(encoding="utf-8")
    for table in ("guild_config", "sent_messages", "cooldowns"):
        assert f"CREATE TABLE IF NOT EXISTS {table}" in sql


async def test_run_pending_applies_and_tracks(pool, conn):
    conn.fetch.return_value = []

    applied = await MigrationRunner(pool).run_pending()

    assert applied == ["000_initial_schema"]
    tracked = [c for c in conn.execute.await_args_list if "INSERT INTO schema_migrations" in c.args[0]]
    assert tracked[0].args[1:] == ("000_initial_schema", "000_initial_schema.sql")


async def test_run_pending_is_noop_when_up_to_date(pool, conn):
    conn.fetch.return_value = [{"version": "000_initial_schema"}]
    assert await MigrationRunner(pool).run_pending() == []
