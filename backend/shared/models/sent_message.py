"""Sent message history model."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime

from .content import Category, Provider


@dataclass
class SentMessage:
    """One delivered content item (append-only history row)."""

    guild_id: str
    channel_id: str
    content_id: str
    category: Category
    provider: Provider
    sent_at: datetime
    id: int | None = None
