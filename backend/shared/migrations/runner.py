"""Migration runner with a tracking table."""

from __future__ import annotations

import logging
from pathlib import Path

import asyncpg

from shared.database import wrap_store_errors

logger = logging.getLogger(__name__)

VERSIONS_DIR = Path(__file__).resolve().parent / "versions"


class MigrationRunner:
    """Apply plain-SQL migrations in filename order.

    Files live in ``versions/`` as ``NNN_description.sql``. Applied versions
    are recorded in ``schema_migrations`` and never re-applied; each file runs
    inside its own transaction together with its tracking insert.
    """

    TRACKING_TABLE = "schema_migrations"

    def __init__(self, pool: asyncpg.Pool, versions_dir: Path | None = None) -> None:
        self.pool = pool
        self.versions_dir = versions_dir or VERSIONS_DIR

    def pending_files(self, applied: set[str]) -> list[Path]:
        """SQL files whose version (file stem) is not in ``applied``."""
        return [p for p in sorted(self.versions_dir.glob("*.sql")) if p.stem not in applied]

    async def ensure_table(self) -> None:
        async with self.pool.acquire() as conn:
            await conn.execute(
                f"""
                CREATE TABLE IF NOT EXISTS {self.TRACKING_TABLE} (
                    version    TEXT PRIMARY KEY,
                    name       TEXT NOT NULL,
                    applied_at TIMESTAMPTZ DEFAULT NOW()
                )
                """
            )

    async def get_applied(self) -> set[str]:
        async with self.pool.acquire() as conn:
            rows = await conn.fetch(f"SELECT version FROM {self.TRACKING_TABLE}")  # noqa: S608
            return {row["version"] for row in rows}

    async def run_pending(self) -> list[str]:
        """Apply every pending migration. Returns the newly applied versions."""
        async with wrap_store_errors("migrate", "Failed to apply database migrations"):
            await self.ensure_table()
            applied = await self.get_applied()

            newly_applied: list[str] = []
            for sql_path in self.pending_files(applied):
                await self._apply_one(sql_path)
                newly_applied.append(sql_path.stem)

        if newly_applied:
            logger.info(
                "Applied %d migration(s): %s", len(newly_applied), ", ".join(newly_applied)
            )
        else:
            logger.info("Database schema is up to date")
        return newly_applied

    async def _apply_one(self, sql_path: Path) -> None:
        version = sql_path.stem
        sql = sql_path.read_text(encoding="utf-8")
        logger.info("Applying migration: %s", version)
        async with self.pool.acquire() as conn:
            async with conn.transaction():
                await conn.execute(sql)
                await conn.execute(
                    f"INSERT INTO {self.TRACKING_TABLE} (version, name) VALUES ($1, $2)",
                    version,
                    sql_path.name,
                )
