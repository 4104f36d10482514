"""Tests for the health check endpoints"""

import json
from datetime import datetime, timezone
from unittest.mock import AsyncMock, MagicMock

from happybot.core.health_server import HealthCheckServer


def make_bot(ready=True, running=True):
    bot = MagicMock()
    bot.is_ready.return_value = ready
    bot.guilds = [MagicMock(), MagicMock()]
    bot.scheduler.is_running = running
    bot.scheduler.last_tick = datetime(2024, 1, 15, 9, 15, tzinfo=timezone.utc)
    bot.database.check_health = AsyncMock(return_value=True)
    return bot


async def test_health_reports_readiness():
    server = HealthCheckServer(make_bot(ready=False))
    response = await server.handle_health(MagicMock())
    assert response.status == 200
    assert json.loads(response.body) == {"status": "starting", "ready": False}


async def test_status_includes_scheduler_and_database():
    server = HealthCheckServer(make_bot())
    body = json.loads((await server.handle_status(MagicMock())).body)

    assert body["ready"] is True
    assert body["guilds"] == 2
    assert body["scheduler_running"] is True
    assert body["last_tick"] == "2024-01-15T09:15:00+00:00"
    assert body["database"] == "ok"


async def test_ping():
    response = await HealthCheckServer(make_bot()).handle_ping(MagicMock())
    assert response.text == "pong"
