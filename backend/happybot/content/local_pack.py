"""Bundled content pack, usable without any network access."""

from __future__ import annotations

import json
import logging
import random
from pathlib import Path

from happybot.core.constants import ANTI_REPETITION_DAYS, HAPPY_PACK_PATH, MAX_PICK_ATTEMPTS
from shared.models.content import CATEGORIES, Category, ContentItem
from shared.repositories.sent_message import SentMessageRepository

from .filters import apply_filters

logger = logging.getLogger(__name__)


class ContentNotFoundError(Exception):
    """No content is available for the requested category."""

    def __init__(self, category: Category | None, guild_id: str | None = None):
        self.category = category
        self.guild_id = guild_id
        super().__init__(
            f'No available content for category "{category or "any"}" '
            f"in guild {guild_id or 'unknown'}"
        )


def load_pack(path: Path) -> dict[Category, list[ContentItem]]:
    """Read the pack file, keeping only items that pass the content filters."""
    with open(path, encoding="utf-8") as f:
        pack = json.load(f)

    messages = pack.get("messages", {})
    items: dict[Category, list[ContentItem]] = {}
    for category in CATEGORIES:
        kept = []
        for raw in messages.get(category, []):
            result = apply_filters(raw.get("text", ""))
            if not result.passed:
                logger.debug(f"Dropping pack item {raw.get('id')}: {result.reason}")
                continue
            kept.append(
                ContentItem(
                    id=raw["id"],
                    category=category,
                    text=raw["text"],
                    provider="local",
                    tags=tuple(raw.get("tags") or ()),
                )
            )
        if kept:
            items[category] = kept
    return items


class LocalPackProvider:
    """Random picks from the local pack with per-guild anti-repetition.

    With a ``guild_id`` and a history repository, up to ``MAX_PICK_ATTEMPTS``
    draws are tried; the first one not sent to the guild in the last
    ``ANTI_REPETITION_DAYS`` days wins. When every draw was recently seen the
    last draw is returned anyway.
    """

    def __init__(
        self,
        pack_path: Path | str = HAPPY_PACK_PATH,
        sent_messages: SentMessageRepository | None = None,
        rng: random.Random | None = None,
        *,
        max_attempts: int = MAX_PICK_ATTEMPTS,
        anti_repetition_days: int = ANTI_REPETITION_DAYS,
    ):
        self.pack_path = Path(pack_path)
        self.sent_messages = sent_messages
        self.max_attempts = max_attempts
        self.anti_repetition_days = anti_repetition_days
        self._rng = rng or random.Random()
        self._items = load_pack(self.pack_path)
        logger.info(f"Loaded {self.count()} local pack items from {self.pack_path.name}")

    def candidates(self, category: Category | None = None) -> list[ContentItem]:
        if category:
            return list(self._items.get(category, []))
        return [item for items in self._items.values() for item in items]

    def count(self, category: Category | None = None) -> int:
        return len(self.candidates(category))

    def available_categories(self) -> list[Category]:
        return list(self._items)

    async def get_item(
        self, category: Category | None = None, guild_id: str | None = None
    ) -> ContentItem:
        candidates = self.candidates(category)
        if not candidates:
            raise ContentNotFoundError(category, guild_id)

        if not guild_id or self.sent_messages is None:
            return self._rng.choice(candidates)

        item = candidates[0]
        for _ in range(self.max_attempts):
            item = self._rng.choice(candidates)
            seen = await self.sent_messages.was_sent_recently(
                guild_id, item.id, self.anti_repetition_days
            )
            if not seen:
                return item

        logger.debug(f"Every draw was recently sent to guild {guild_id}, reusing {item.id}")
        return item
