"""Posting formatted content into guild channels."""

import logging
from typing import Protocol

import discord

logger = logging.getLogger(__name__)


class DeliveryError(Exception):
    """The destination is missing, not writable, or the send failed."""

    def __init__(self, message: str, guild_id: str, channel_id: str | None = None):
        super().__init__(message)
        self.guild_id = guild_id
        self.channel_id = channel_id


class Deliverer(Protocol):
    async def deliver(self, guild_id: str, channel_id: str, text: str) -> None: ...


class DiscordDeliverer:
    """Sends through the bot's gateway connection, using only cached guilds."""

    def __init__(self, client: discord.Client):
        self.client = client

    def _resolve_channel(self, guild_id: str, channel_id: str) -> discord.abc.Messageable:
        try:
            guild = self.client.get_guild(int(guild_id))
        except ValueError:
            guild = None
        if guild is None:
            raise DeliveryError(f"Guild {guild_id} not in cache", guild_id, channel_id)

        try:
            channel = guild.get_channel(int(channel_id))
        except ValueError:
            channel = None
        if channel is None or not isinstance(channel, discord.abc.Messageable):
            raise DeliveryError(
                f"Channel {channel_id} not found or not text-based in guild {guild_id}",
                guild_id,
                channel_id,
            )

        me = guild.me
        if me is not None and hasattr(channel, "permissions_for"):
            if not channel.permissions_for(me).send_messages:
                raise DeliveryError(
                    f"Missing Send Messages permission in channel {channel_id}",
                    guild_id,
                    channel_id,
                )
        return channel

    async def deliver(self, guild_id: str, channel_id: str, text: str) -> None:
        channel = self._resolve_channel(guild_id, channel_id)
        try:
            await channel.send(text)
        except discord.Forbidden as e:
            raise DeliveryError(
                f"Forbidden to post in channel {channel_id}", guild_id, channel_id
            ) from e
        except discord.HTTPException as e:
            raise DeliveryError(
                f"Discord rejected the message ({e.status})", guild_id, channel_id
            ) from e
