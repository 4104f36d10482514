"""Shared data models for the Happy Manager services."""

from .content import CATEGORIES, PROVIDERS, Category, ContentItem, Provider
from .cooldown import Cooldown
from .guild_config import GuildConfig
from .sent_message import SentMessage

__all__ = [
    "CATEGORIES",
    "PROVIDERS",
    "Category",
    "ContentItem",
    "Cooldown",
    "GuildConfig",
    "Provider",
    "SentMessage",
]
