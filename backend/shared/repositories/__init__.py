"""Shared repository layer for the Happy Manager services."""

from .cooldown import CooldownRepository
from .guild_config import GuildConfigRepository
from .sent_message import SentMessageRepository

__all__ = [
    "CooldownRepository",
    "GuildConfigRepository",
    "SentMessageRepository",
]
