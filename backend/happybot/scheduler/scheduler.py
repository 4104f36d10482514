"""Minute-granularity scheduler for all configured guilds."""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Callable
from dataclasses import dataclass, field
from datetime import datetime
from typing import Literal

from happybot.core.constants import TICK_SECONDS
from shared.database import DatabaseError, utcnow
from shared.models.guild_config import GuildConfig
from shared.repositories.guild_config import GuildConfigRepository

from .clock import resolve_clock
from .jobs import ScheduledJob

logger = logging.getLogger(__name__)

OutcomeStatus = Literal["skipped", "idle", "sent", "failed"]

# Fire slightly after the minute boundary so an early wake-up never reads
# the previous minute.
TICK_OFFSET_SECONDS = 1.0


@dataclass(frozen=True)
class GuildOutcome:
    guild_id: str
    status: OutcomeStatus
    sent_slots: tuple[str, ...] = field(default_factory=tuple)
    error: str | None = None


class Scheduler:
    """Runs one tick per UTC minute.

    Each tick reads every guild config, converts the tick instant to the
    guild's local time and hands matching slots to :class:`ScheduledJob`.
    Guilds are processed concurrently and independently: a failure in one is
    recorded in its :class:`GuildOutcome` and never reaches the others.

    ``stop()`` cancels only the driver; ticks already dispatched finish on
    their own.
    """

    def __init__(
        self,
        guild_configs: GuildConfigRepository,
        job: ScheduledJob,
        *,
        interval: float = TICK_SECONDS,
        clock: Callable[[], datetime] = utcnow,
    ):
        self.guild_configs = guild_configs
        self.job = job
        self.interval = interval
        self._clock = clock
        self._driver: asyncio.Task | None = None
        self._inflight: set[asyncio.Task] = set()
        self.last_tick: datetime | None = None

    @property
    def is_running(self) -> bool:
        return self._driver is not None and not self._driver.done()

    def start(self) -> None:
        if self.is_running:
            logger.warning("Scheduler already running")
            return
        self._driver = asyncio.create_task(self._run(), name="happy-scheduler")
        logger.info(f"Scheduler started (every {self.interval:g}s, UTC)")

    def stop(self) -> None:
        driver = self._driver
        if driver is None or driver.done():
            logger.debug("Scheduler not running")
            return
        driver.cancel()
        self._driver = None
        logger.info("Scheduler stopped")

    async def wait_for_inflight(self) -> None:
        """Wait for ticks that were dispatched before ``stop()``."""
        if self._inflight:
            await asyncio.gather(*self._inflight, return_exceptions=True)

    def seconds_until_next_tick(self) -> float:
        elapsed = self._clock().timestamp() % self.interval
        return self.interval - elapsed + TICK_OFFSET_SECONDS

    async def _run(self) -> None:
        while True:
            await asyncio.sleep(self.seconds_until_next_tick())
            task = asyncio.create_task(self._safe_tick())
            self._inflight.add(task)
            task.add_done_callback(self._inflight.discard)

    async def _safe_tick(self) -> None:
        try:
            await self.tick()
        except Exception:
            logger.exception("Scheduler tick failed")

    async def tick(self, now: datetime | None = None) -> list[GuildOutcome]:
        """Process every guild once for ``now`` (default: the clock)."""
        now = now or self._clock()
        self.last_tick = now

        try:
            configs = await self.guild_configs.get_all()
        except DatabaseError as e:
            logger.error(f"Could not load guild configs, skipping tick: {e}")
            return []
        if not configs:
            return []

        async with asyncio.TaskGroup() as tg:
            tasks = [tg.create_task(self._process_guild(config, now)) for config in configs]
        outcomes = [task.result() for task in tasks]

        sent = [o for o in outcomes if o.status == "sent"]
        failed = [o for o in outcomes if o.status == "failed"]
        if sent or failed:
            logger.info(
                f"Tick {now:%H:%M} UTC: {len(outcomes)} guild(s), "
                f"{len(sent)} sent, {len(failed)} failed"
            )
        return outcomes

    async def _process_guild(self, config: GuildConfig, now: datetime) -> GuildOutcome:
        try:
            reading = resolve_clock(config.timezone, now)
            if not config.is_day_active(reading.weekday):
                return GuildOutcome(config.guild_id, "skipped")

            sent_slots: list[str] = []
            for slot in config.schedule_times:
                if not config.is_slot_scheduled(slot) or slot != reading.hhmm:
                    continue
                if await self.job.send(config, slot):
                    sent_slots.append(slot)
        except Exception as e:
            logger.exception(f"Scheduler failed for guild {config.guild_id}")
            return GuildOutcome(config.guild_id, "failed", error=f"{type(e).__name__}: {e}")

        status: OutcomeStatus = "sent" if sent_slots else "idle"
        return GuildOutcome(config.guild_id, status, tuple(sent_slots))
