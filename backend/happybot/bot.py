"""
Happy Manager Discord bot
discord.py 2.x with slash commands
"""

import logging

import discord
from discord.ext import commands

from happybot.content import ContentService, LocalPackProvider, QuoteApiProvider
from happybot.core.config import HappySettings
from happybot.core.constants import APP_NAME, APP_VERSION
from happybot.core.health_server import HealthCheckServer
from happybot.delivery import DiscordDeliverer
from happybot.scheduler import ScheduledJob, Scheduler
from shared.database import DatabaseManager, PoolConfig
from shared.migrations import MigrationRunner
from shared.repositories import (
    CooldownRepository,
    GuildConfigRepository,
    SentMessageRepository,
)

logger = logging.getLogger(__name__)


class HappyBot(commands.Bot):
    """Bot client owning the database pool, content chain and scheduler."""

    def __init__(self, settings: HappySettings):
        intents = discord.Intents.default()
        intents.message_content = True  # contextual replies read message text

        super().__init__(
            command_prefix=commands.when_mentioned,
            intents=intents,
            help_command=None,
        )

        self.settings = settings
        self.initial_extensions = ["happybot.cogs.happy"]

        self.database = DatabaseManager(
            settings.database_url, PoolConfig(ssl=settings.database_ssl)
        )
        self.health_server = HealthCheckServer(self, port=settings.health_port)
        self.deliverer = DiscordDeliverer(self)

        # Built in setup_hook once the pool exists
        self.guild_configs: GuildConfigRepository = None  # type: ignore
        self.cooldowns: CooldownRepository = None  # type: ignore
        self.sent_messages: SentMessageRepository = None  # type: ignore
        self.content: ContentService = None  # type: ignore
        self.scheduler: Scheduler | None = None

    async def setup_hook(self) -> None:
        """Connect storage, build services, load cogs and sync commands."""
        await self.database.connect()
        pool = self.database.pool
        await MigrationRunner(pool).run_pending()

        self.guild_configs = GuildConfigRepository(pool)
        self.cooldowns = CooldownRepository(pool)
        self.sent_messages = SentMessageRepository(pool)

        quote_api = (
            QuoteApiProvider(self.settings.quote_api_url)
            if self.settings.quote_api_enabled
            else None
        )
        self.content = ContentService(
            LocalPackProvider(sent_messages=self.sent_messages),
            quote_api=quote_api,
            sent_messages=self.sent_messages,
        )

        for extension in self.initial_extensions:
            await self.load_extension(extension)
        logger.info(f"Loaded extensions: {', '.join(self.initial_extensions)}")

        if self.settings.discord_guild_id:
            guild = discord.Object(id=int(self.settings.discord_guild_id))
            self.tree.copy_global_to(guild=guild)
            await self.tree.sync(guild=guild)
            logger.info(f"Synced slash commands to guild {self.settings.discord_guild_id}")
        else:
            await self.tree.sync()
            logger.info("Synced slash commands globally")

        job = ScheduledJob(self.cooldowns, self.content, self.deliverer)
        self.scheduler = Scheduler(self.guild_configs, job)
        self.scheduler.start()

        await self.health_server.start()

    async def on_ready(self) -> None:
        logger.info(f"{APP_NAME} {APP_VERSION} ready: {self.user} (ID: {self.user.id})")
        logger.info(f"Connected to {len(self.guilds)} guild(s) | discord.py {discord.__version__}")

    async def close(self) -> None:
        """Stop the scheduler first so no tick runs against a closed pool."""
        if self.scheduler is not None:
            self.scheduler.stop()
            await self.scheduler.wait_for_inflight()
        await self.health_server.stop()
        if self.content is not None:
            await self.content.close()
        await super().close()
        await self.database.disconnect()
