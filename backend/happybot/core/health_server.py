"""HTTP health check server"""

import asyncio
import logging
import time
from typing import TYPE_CHECKING, Any

from aiohttp import web

if TYPE_CHECKING:
    from happybot.bot import HappyBot

logger = logging.getLogger(__name__)


class HealthCheckServer:
    """Liveness and status endpoints for container platforms."""

    def __init__(self, bot: "HappyBot", host: str = "0.0.0.0", port: int = 8080) -> None:
        self.bot: Any = bot
        self.host = host
        self.port = port
        self.app = web.Application()
        self.runner: web.AppRunner | None = None
        self._start_time: float = time.time()
        self._heartbeat_task: asyncio.Task | None = None
        self._setup_routes()

    def _setup_routes(self) -> None:
        self.app.router.add_get("/health", self.handle_health)
        self.app.router.add_get("/status", self.handle_status)
        self.app.router.add_get("/ping", self.handle_ping)

    async def handle_health(self, request: web.Request) -> web.Response:
        """Always 200 (liveness); body says whether the gateway is ready."""
        ready = self.bot.is_ready()
        return web.json_response({"status": "healthy" if ready else "starting", "ready": ready})

    async def handle_status(self, request: web.Request) -> web.Response:
        ready = self.bot.is_ready()
        scheduler = getattr(self.bot, "scheduler", None)
        database = getattr(self.bot, "database", None)
        db_ok = await database.check_health() if database is not None else False
        return web.json_response(
            {
                "service": "happy-manager",
                "ready": ready,
                "uptime_seconds": int(time.time() - self._start_time),
                "guilds": len(self.bot.guilds) if ready else 0,
                "scheduler_running": bool(scheduler and scheduler.is_running),
                "last_tick": scheduler.last_tick.isoformat()
                if scheduler and scheduler.last_tick
                else None,
                "database": "ok" if db_ok else "unavailable",
            }
        )

    async def handle_ping(self, request: web.Request) -> web.Response:
        return web.Response(text="pong")

    async def _heartbeat(self) -> None:
        """Log uptime and scheduler state every five minutes."""
        while True:
            await asyncio.sleep(300)
            uptime = int(time.time() - self._start_time)
            scheduler = getattr(self.bot, "scheduler", None)
            running = bool(scheduler and scheduler.is_running)
            logger.info(f"Heartbeat: uptime={uptime}s, scheduler_running={running}")

    async def start(self) -> None:
        self.runner = web.AppRunner(self.app)
        await self.runner.setup()
        site = web.TCPSite(self.runner, self.host, self.port)
        await site.start()
        self._heartbeat_task = asyncio.create_task(self._heartbeat())
        logger.info(f"Health server started on {self.host}:{self.port}")

    async def stop(self) -> None:
        if self._heartbeat_task:
            self._heartbeat_task.cancel()
            self._heartbeat_task = None
        if self.runner:
            await self.runner.cleanup()
            self.runner = None
            logger.info("Health server stopped")
