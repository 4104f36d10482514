"""Happy Manager slash commands, listeners and maintenance task."""

import logging
import math
import random
import re
from dataclasses import replace
from typing import Optional
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

import discord
from discord import app_commands
from discord.ext import commands, tasks

from happybot.content.kudos import KudosProvider
from happybot.content.local_pack import ContentNotFoundError
from happybot.core.constants import (
    COLOR_ERROR,
    COLOR_INFO,
    COLOR_SUCCESS,
    CONTEXTUAL_COOLDOWN,
    CONTEXTUAL_KEYWORDS,
    KUDOS_CATEGORY_LABELS,
    KUDOS_COMMAND_COOLDOWN,
    MAINTENANCE_INTERVAL_HOURS,
    NOW_COMMAND_COOLDOWN,
    PREVIEW_DEFAULT_COUNT,
    PREVIEW_MAX_COUNT,
    SENT_RETENTION_DAYS,
)
from happybot.delivery import DeliveryError
from shared.database import DatabaseError
from shared.models.content import CATEGORIES
from shared.models.guild_config import (
    ConfigValidationError,
    GuildConfig,
    default_config,
    default_times,
    validate_active_days,
    validate_schedule,
)
from shared.repositories.cooldown import guild_key

logger = logging.getLogger(__name__)

WEEKDAY_NAMES = {1: "Mon", 2: "Tue", 3: "Wed", 4: "Thu", 5: "Fri", 6: "Sat", 7: "Sun"}

CONTEXTUAL_RESPONSES = (
    "Mini reset 🌿 Breathe in deeply. Stretch for 30 seconds. Pick one small task.",
    "Pause moment 🌸 Step away for 2 minutes. Look out of the window. Come back to the essentials.",
    "Micro break 🍃 Close your eyes and count to 10 slowly. Then choose your next small step.",
    "Quick recharge ⚡ Stand up and move a little. Grab some water. Start with the easiest thing.",
    "Gentle reminder 💫 One thing at a time is plenty. What is the next small step?",
    "Breathing space 🌊 In for 4, hold for 4, out for 6. Three times. You've got this.",
    "Simple reset 🌻 Write down 3 things on your mind. Start with the smallest one.",
    "Mini shift ☀️ Change position or place for a fresh perspective. You're doing great.",
    "Little break 🌙 Rest your eyes on something far away for 30 seconds, then pick the simplest step.",
    "Recalibrate 🎯 Urgent or important? Focus on one thing. The rest can wait.",
)

_KEYWORD_PATTERN = re.compile(
    r"\b(?:" + "|".join(re.escape(k) for k in CONTEXTUAL_KEYWORDS) + r")\b",
    re.IGNORECASE,
)


def format_duration(seconds: float) -> str:
    """``45`` → ``45s``, ``90`` → ``1m 30s``, ``120`` → ``2m``, ``3903`` → ``1h 5m 3s``."""
    total = max(0, int(math.ceil(seconds)))
    hours, rest = divmod(total, 3600)
    minutes, secs = divmod(rest, 60)

    parts = []
    if hours:
        parts.append(f"{hours}h")
    if minutes:
        parts.append(f"{minutes}m")
    if secs or not parts:
        parts.append(f"{secs}s")
    return " ".join(parts)


def contains_trigger_keyword(content: str) -> bool:
    """Whole-word, case-insensitive keyword match."""
    return bool(_KEYWORD_PATTERN.search(content))


def parse_times(raw: str) -> list[str]:
    """``"09:15, 16:30"`` → ``["09:15", "16:30"]``."""
    return [part for part in re.split(r"[\s,]+", raw.strip()) if part]


def parse_days(raw: str) -> list[int]:
    """``"1,2,3"`` → ``[1, 2, 3]``. Raises ``ConfigValidationError`` on junk."""
    days = []
    for part in re.split(r"[\s,]+", raw.strip()):
        if not part:
            continue
        if not part.isdigit():
            raise ConfigValidationError(f"Active days must be numbers 1-7, got {part!r}")
        days.append(int(part))
    return sorted(set(days))


def validate_timezone(name: str) -> str:
    try:
        ZoneInfo(name)
    except (ZoneInfoNotFoundError, ValueError):
        raise ConfigValidationError(f"Unknown timezone: {name}") from None
    return name


def config_embed(config: GuildConfig, title: str, color: int = COLOR_INFO) -> discord.Embed:
    embed = discord.Embed(title=title, color=color)
    embed.add_field(name="Channel", value=f"<#{config.channel_id}>", inline=True)
    embed.add_field(name="Timezone", value=config.timezone, inline=True)
    embed.add_field(name="Cadence", value=f"{config.cadence}x / day", inline=True)
    embed.add_field(name="Times", value=", ".join(config.schedule_times) or "-", inline=True)
    embed.add_field(
        name="Active days",
        value=", ".join(WEEKDAY_NAMES.get(d, str(d)) for d in sorted(config.active_days)) or "-",
        inline=True,
    )
    embed.add_field(
        name="Contextual", value="on" if config.contextual_enabled else "off", inline=True
    )
    return embed


async def reply_ephemeral(interaction: discord.Interaction, message: str) -> None:
    if interaction.response.is_done():
        await interaction.followup.send(message, ephemeral=True)
    else:
        await interaction.response.send_message(message, ephemeral=True)


class HappyCog(commands.Cog):
    """On-demand content, admin settings and contextual support."""

    def __init__(self, bot: commands.Bot):
        self.bot = bot
        self._ready = False
        self._rng = random.Random()

    async def cog_load(self) -> None:
        self.guild_configs = self.bot.guild_configs
        self.cooldowns = self.bot.cooldowns
        self.sent_messages = self.bot.sent_messages
        self.content = self.bot.content
        self.deliverer = self.bot.deliverer
        self.kudos = KudosProvider()
        self.default_timezone = self.bot.settings.default_timezone
        self._ready = True
        self.maintenance_task.start()
        logger.info("Happy cog loaded")

    async def cog_unload(self) -> None:
        self.maintenance_task.cancel()

    async def _load_or_create_config(self, interaction: discord.Interaction) -> GuildConfig:
        """Current config, creating the defaults on first admin touch."""
        guild_id = str(interaction.guild_id)
        config = await self.guild_configs.get(guild_id)
        if config is None:
            config = await self.guild_configs.upsert(
                default_config(guild_id, str(interaction.channel_id), self.default_timezone)
            )
            logger.info(f"Created default config for guild {guild_id}")
        return config

    async def _release_cooldown(self, key: str) -> None:
        """Give back a cooldown taken for a request that did not go through."""
        try:
            await self.cooldowns.delete(key)
        except DatabaseError as e:
            logger.error(f"Failed to release cooldown {key}: {e}")

    # ==================== Background Tasks ====================

    @tasks.loop(hours=MAINTENANCE_INTERVAL_HOURS)
    async def maintenance_task(self) -> None:
        """Sweep expired cooldowns and prune old sent history."""
        await self.run_maintenance()

    async def run_maintenance(self) -> tuple[int, int]:
        cooldowns_removed = sent_removed = 0
        try:
            cooldowns_removed = await self.cooldowns.cleanup()
        except DatabaseError as e:
            logger.error(f"Cooldown cleanup failed: {e}")
        try:
            sent_removed = await self.sent_messages.cleanup(SENT_RETENTION_DAYS)
        except DatabaseError as e:
            logger.error(f"Sent history cleanup failed: {e}")
        if cooldowns_removed or sent_removed:
            logger.info(
                f"Maintenance: removed {cooldowns_removed} expired cooldown(s), "
                f"{sent_removed} old sent message(s)"
            )
        return cooldowns_removed, sent_removed

    @maintenance_task.before_loop
    async def before_maintenance(self) -> None:
        await self.bot.wait_until_ready()

    # ==================== Slash Commands ====================

    happy_group = app_commands.Group(
        name="happy", description="Motivational messages for your team", guild_only=True
    )

    @happy_group.command(name="now", description="Post a happy message right now")
    @app_commands.describe(category="Content category (random if omitted)")
    @app_commands.choices(
        category=[app_commands.Choice(name=c.title(), value=c) for c in CATEGORIES]
    )
    async def happy_now(
        self,
        interaction: discord.Interaction,
        category: Optional[app_commands.Choice[str]] = None,
    ) -> None:
        if not self._ready or interaction.guild_id is None:
            await reply_ephemeral(interaction, "Not available right now, try again later.")
            return

        guild_id = str(interaction.guild_id)
        key = guild_key(guild_id, "now")
        chosen = category.value if category else None

        try:
            if not await self.cooldowns.try_acquire(key, NOW_COMMAND_COOLDOWN):
                remaining_ms = await self.cooldowns.get_remaining_ms(key)
                await reply_ephemeral(
                    interaction,
                    f"Please wait {format_duration(remaining_ms / 1000)} "
                    "before asking for another message.",
                )
                return
        except DatabaseError as e:
            logger.error(f"/happy now store error in guild {guild_id}: {e}")
            await reply_ephemeral(interaction, "Something went wrong, please try again later.")
            return

        # The cooldown is held from here; every failure below releases it.
        await interaction.response.defer(ephemeral=True, thinking=True)
        try:
            config = await self.guild_configs.get(guild_id)
            channel_id = (
                config.channel_id if config and config.channel_id else str(interaction.channel_id)
            )
            result = await self.content.formatted_delivery(guild_id, chosen)
            await self.deliverer.deliver(guild_id, channel_id, result.message)
        except ContentNotFoundError:
            await self._release_cooldown(key)
            await reply_ephemeral(
                interaction, f"No content available for {chosen or 'any category'}."
            )
            return
        except DeliveryError as e:
            logger.warning(f"/happy now delivery failed in guild {guild_id}: {e}")
            await self._release_cooldown(key)
            await reply_ephemeral(interaction, "I could not post in the configured channel.")
            return
        except DatabaseError as e:
            logger.error(f"/happy now store error in guild {guild_id}: {e}")
            await self._release_cooldown(key)
            await reply_ephemeral(interaction, "Something went wrong, please try again later.")
            return

        try:
            await self.content.record_sent(guild_id, channel_id, result.item)
        except DatabaseError as e:
            logger.error(f"Failed to record /happy now message in guild {guild_id}: {e}")

        logger.info(
            f"/happy now by {interaction.user} in guild {guild_id} "
            f"[{result.item.provider}:{result.item.id}]"
        )
        await reply_ephemeral(interaction, f"Sent to <#{channel_id}>.")

    @happy_group.command(name="test", description="Preview messages without posting or recording them")
    @app_commands.describe(
        count=f"Number of previews (1-{PREVIEW_MAX_COUNT})",
        category="Only preview this category",
    )
    @app_commands.choices(
        category=[app_commands.Choice(name=c.title(), value=c) for c in CATEGORIES]
    )
    @app_commands.checks.has_permissions(administrator=True)
    async def happy_test(
        self,
        interaction: discord.Interaction,
        count: Optional[app_commands.Range[int, 1, PREVIEW_MAX_COUNT]] = None,
        category: Optional[app_commands.Choice[str]] = None,
    ) -> None:
        """Dry run of the content chain: no history row, no cooldown."""
        guild_id = str(interaction.guild_id)
        count = count or PREVIEW_DEFAULT_COUNT
        chosen = category.value if category else None

        await interaction.response.defer(ephemeral=True, thinking=True)

        previews, errors = await self.build_previews(guild_id, count, chosen)

        embed = discord.Embed(
            title=f"🧪 Preview of {count} message{'s' if count > 1 else ''}",
            description="\n\n---\n\n".join(previews) or "No message could be fetched.",
            color=COLOR_INFO,
        )
        if errors:
            embed.add_field(name="Errors", value="\n".join(errors)[:1024], inline=False)
        embed.set_footer(text="Dry run, nothing was recorded")
        await interaction.followup.send(embed=embed, ephemeral=True)

        logger.info(
            f"/happy test x{count} by {interaction.user} in guild {guild_id}"
            + (f" (category: {chosen})" if chosen else "")
        )

    async def build_previews(
        self, guild_id: str, count: int, category: Optional[str] = None
    ) -> tuple[list[str], list[str]]:
        """Format ``count`` items, cycling through every category unless one is given."""
        previews: list[str] = []
        errors: list[str] = []
        for i in range(count):
            current = category or CATEGORIES[i % len(CATEGORIES)]
            try:
                result = await self.content.formatted_delivery(guild_id, current)
            except (ContentNotFoundError, DatabaseError) as e:
                errors.append(f"[{i + 1}/{count}] {current}: {e}")
                continue
            item = result.item
            previews.append(
                f"**[{i + 1}/{count}]** `{item.id}` · {item.category} · {item.provider}\n"
                f"{result.message}"
            )
        return previews, errors

    @happy_group.command(name="kudos", description="Publicly recognize a teammate")
    @app_commands.describe(
        user="Who deserves the kudos",
        category="What kind of contribution",
        reason="What they did",
        impact="What it changed",
    )
    @app_commands.choices(
        category=[
            app_commands.Choice(name=label, value=key)
            for key, label in KUDOS_CATEGORY_LABELS.items()
        ]
    )
    async def happy_kudos(
        self,
        interaction: discord.Interaction,
        user: discord.Member,
        category: app_commands.Choice[str],
        reason: app_commands.Range[str, 1, 200],
        impact: app_commands.Range[str, 1, 200],
    ) -> None:
        if not self._ready or interaction.guild_id is None:
            await reply_ephemeral(interaction, "Not available right now, try again later.")
            return

        guild_id = str(interaction.guild_id)
        if user.id == interaction.user.id:
            await reply_ephemeral(interaction, "You cannot send kudos to yourself.")
            return
        if user.bot:
            await reply_ephemeral(interaction, "Bots don't need kudos (yet).")
            return

        key = f"user:{interaction.user.id}:kudos"
        try:
            if not await self.cooldowns.try_acquire(key, KUDOS_COMMAND_COOLDOWN):
                remaining_ms = await self.cooldowns.get_remaining_ms(key)
                await reply_ephemeral(
                    interaction,
                    f"Please wait {format_duration(remaining_ms / 1000)} "
                    "before sending more kudos.",
                )
                return
        except DatabaseError as e:
            logger.error(f"/happy kudos store error in guild {guild_id}: {e}")
            await reply_ephemeral(interaction, "Something went wrong, please try again later.")
            return

        message = self.kudos.format_kudos(category.value, user.mention, reason, impact)
        try:
            await self.deliverer.deliver(guild_id, str(interaction.channel_id), message)
        except DeliveryError as e:
            logger.warning(f"/happy kudos delivery failed in guild {guild_id}: {e}")
            await self._release_cooldown(key)
            await reply_ephemeral(interaction, "Could not send the kudos, please try again later.")
            return

        logger.info(f"/happy kudos {interaction.user} -> {user} in guild {guild_id}")
        await reply_ephemeral(interaction, "Kudos sent!")

    @happy_group.command(name="message", description="Post a message as the bot")
    @app_commands.describe(content="Text to post", channel="Target channel (this one if omitted)")
    @app_commands.checks.has_permissions(administrator=True)
    async def happy_message(
        self,
        interaction: discord.Interaction,
        content: app_commands.Range[str, 1, 2000],
        channel: Optional[discord.TextChannel] = None,
    ) -> None:
        guild_id = str(interaction.guild_id)
        channel_id = str(channel.id) if channel else str(interaction.channel_id)
        try:
            await self.deliverer.deliver(guild_id, channel_id, content)
        except DeliveryError as e:
            logger.warning(f"/happy message delivery failed in guild {guild_id}: {e}")
            await reply_ephemeral(interaction, "I could not post in that channel.")
            return

        logger.info(f"/happy message by {interaction.user} in guild {guild_id} (channel {channel_id})")
        await reply_ephemeral(interaction, f"Message sent to <#{channel_id}>.")

    @happy_group.command(name="settings", description="Show this server's schedule")
    @app_commands.checks.has_permissions(administrator=True)
    async def happy_settings(self, interaction: discord.Interaction) -> None:
        try:
            config = await self._load_or_create_config(interaction)
        except DatabaseError as e:
            logger.error(f"/happy settings failed: {e}")
            await reply_ephemeral(interaction, "Could not load settings, please try again later.")
            return
        await interaction.response.send_message(
            embed=config_embed(config, "Happy Manager settings"), ephemeral=True
        )

    @happy_group.command(name="schedule", description="Change the delivery schedule")
    @app_commands.describe(
        cadence="Messages per day (2 or 3)",
        times="Slot times, e.g. 09:15,16:30",
        days="ISO weekdays, e.g. 1,2,3,4,5 (1=Monday)",
        timezone="IANA timezone, e.g. Europe/Paris",
        channel="Channel to post in",
    )
    @app_commands.checks.has_permissions(administrator=True)
    async def happy_schedule(
        self,
        interaction: discord.Interaction,
        cadence: Optional[app_commands.Range[int, 2, 3]] = None,
        times: Optional[str] = None,
        days: Optional[str] = None,
        timezone: Optional[str] = None,
        channel: Optional[discord.TextChannel] = None,
    ) -> None:
        try:
            config = await self._load_or_create_config(interaction)

            new_cadence = cadence or config.cadence
            if times is not None:
                new_times = parse_times(times)
            elif new_cadence != config.cadence:
                new_times = default_times(new_cadence)
            else:
                new_times = list(config.schedule_times)
            validate_schedule(new_cadence, new_times)

            new_days = parse_days(days) if days is not None else list(config.active_days)
            validate_active_days(new_days)

            updated = replace(
                config,
                cadence=new_cadence,
                schedule_times=new_times,
                active_days=new_days,
                timezone=validate_timezone(timezone.strip()) if timezone else config.timezone,
                channel_id=str(channel.id) if channel else config.channel_id,
            )
            config = await self.guild_configs.upsert(updated)
        except ConfigValidationError as e:
            await reply_ephemeral(interaction, f"Invalid schedule: {e}")
            return
        except DatabaseError as e:
            logger.error(f"/happy schedule failed: {e}")
            await reply_ephemeral(interaction, "Could not save settings, please try again later.")
            return

        logger.info(f"Schedule updated for guild {config.guild_id} by {interaction.user}")
        await interaction.response.send_message(
            embed=config_embed(config, "Schedule updated", COLOR_SUCCESS), ephemeral=True
        )

    @happy_group.command(name="contextual", description="Toggle supportive replies to stressed messages")
    @app_commands.describe(enabled="Turn contextual replies on or off")
    @app_commands.checks.has_permissions(administrator=True)
    async def happy_contextual(self, interaction: discord.Interaction, enabled: bool) -> None:
        try:
            config = await self._load_or_create_config(interaction)
            await self.guild_configs.upsert(replace(config, contextual_enabled=enabled))
        except DatabaseError as e:
            logger.error(f"/happy contextual failed: {e}")
            await reply_ephemeral(interaction, "Could not save settings, please try again later.")
            return
        await reply_ephemeral(
            interaction, f"Contextual replies {'enabled' if enabled else 'disabled'}."
        )

    @happy_group.command(name="reset", description="Clear this server's cooldowns")
    @app_commands.checks.has_permissions(administrator=True)
    async def happy_reset(self, interaction: discord.Interaction) -> None:
        guild_id = str(interaction.guild_id)
        try:
            removed = await self.cooldowns.delete_for_guild(guild_id)
        except DatabaseError as e:
            logger.error(f"/happy reset failed: {e}")
            await reply_ephemeral(interaction, "Could not reset cooldowns, please try again later.")
            return
        logger.info(f"Cleared {removed} cooldown(s) for guild {guild_id}")
        await reply_ephemeral(interaction, f"Cleared {removed} cooldown(s).")

    async def cog_app_command_error(
        self, interaction: discord.Interaction, error: app_commands.AppCommandError
    ) -> None:
        if isinstance(error, app_commands.MissingPermissions):
            await reply_ephemeral(interaction, "Administrator permission is required.")
            return
        logger.error(f"Command error: {error}", exc_info=error)
        embed = discord.Embed(
            title="Error", description="Something went wrong.", color=COLOR_ERROR
        )
        if interaction.response.is_done():
            await interaction.followup.send(embed=embed, ephemeral=True)
        else:
            await interaction.response.send_message(embed=embed, ephemeral=True)

    # ==================== Event Listeners ====================

    @commands.Cog.listener()
    async def on_message(self, message: discord.Message) -> None:
        """Supportive reply when a message sounds stressed (opt-in per guild)."""
        if not self._ready or message.author.bot or message.guild is None:
            return
        if not contains_trigger_keyword(message.content):
            return

        guild_id = str(message.guild.id)
        try:
            config = await self.guild_configs.get(guild_id)
            if config is None or not config.contextual_enabled:
                return

            key = guild_key(guild_id, "contextual")
            if await self.cooldowns.is_on_cooldown(key):
                return

            await message.channel.send(self._rng.choice(CONTEXTUAL_RESPONSES))
            await self.cooldowns.set_with_duration(key, CONTEXTUAL_COOLDOWN)
            logger.info(f"Contextual reply sent in guild {guild_id} (channel {message.channel.id})")
        except (DatabaseError, discord.HTTPException) as e:
            logger.warning(f"Contextual reply failed in guild {guild_id}: {e}")

    @commands.Cog.listener()
    async def on_guild_remove(self, guild: discord.Guild) -> None:
        """Forget everything about a guild the bot was removed from."""
        if not self._ready:
            return
        guild_id = str(guild.id)
        try:
            await self.guild_configs.delete(guild_id)
            removed = await self.cooldowns.delete_for_guild(guild_id)
        except DatabaseError as e:
            logger.error(f"Cleanup after leaving guild {guild_id} failed: {e}")
            return
        logger.info(f"Left guild {guild_id}: config deleted, {removed} cooldown(s) cleared")


async def setup(bot: commands.Bot) -> None:
    """Setup function for the cog."""
    await bot.add_cog(HappyCog(bot))
