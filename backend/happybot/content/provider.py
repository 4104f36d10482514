"""Content selection chain: remote quote API first, local pack as fallback."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime

from shared.database import utcnow
from shared.models.content import Category, ContentItem
from shared.models.sent_message import SentMessage
from shared.repositories.sent_message import SentMessageRepository

from .formatter import format_message, template_for_context
from .local_pack import LocalPackProvider
from .quote_api import ApiProviderError, QuoteApiProvider

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class SelectionOutcome:
    """The chosen item and, when the remote provider was not used, why."""

    item: ContentItem
    fallback_reason: str | None = None

    @property
    def used_fallback(self) -> bool:
        return self.fallback_reason is not None


@dataclass(frozen=True)
class ContentResult:
    message: str
    item: ContentItem
    fallback: str | None = None


class ContentService:
    """Picks content for a guild and formats it for delivery.

    Remote failures never reach the caller; the only failure that does is
    :class:`~happybot.content.local_pack.ContentNotFoundError` from the local
    pack (plus store errors from the anti-repetition lookup).
    """

    def __init__(
        self,
        local_pack: LocalPackProvider,
        quote_api: QuoteApiProvider | None = None,
        sent_messages: SentMessageRepository | None = None,
    ):
        self.local_pack = local_pack
        self.quote_api = quote_api
        self.sent_messages = sent_messages

    async def select(
        self,
        guild_id: str | None,
        category: Category | None = None,
        local_only: bool = False,
    ) -> SelectionOutcome:
        if local_only:
            reason = "local only requested"
        elif self.quote_api is None:
            reason = "quote API disabled"
        else:
            try:
                return SelectionOutcome(await self.quote_api.get_item(category))
            except ApiProviderError as e:
                reason = str(e)
            except Exception as e:
                logger.exception("Unexpected quote API error")
                reason = f"unexpected error: {type(e).__name__}"

        item = await self.local_pack.get_item(category, guild_id)
        if not local_only:
            logger.info(f"Using local pack for guild {guild_id} ({reason})")
        return SelectionOutcome(item, reason)

    async def select_item(
        self,
        guild_id: str | None,
        category: Category | None = None,
        local_only: bool = False,
    ) -> ContentItem:
        return (await self.select(guild_id, category, local_only)).item

    async def formatted_delivery(
        self,
        guild_id: str,
        category: Category | None = None,
        slot: str | None = None,
        local_only: bool = False,
    ) -> ContentResult:
        """Select and format an item. Nothing is recorded here."""
        outcome = await self.select(guild_id, category, local_only)
        template = template_for_context(outcome.item.category, slot)
        return ContentResult(
            message=format_message(outcome.item, template),
            item=outcome.item,
            fallback=outcome.fallback_reason,
        )

    async def record_sent(
        self,
        guild_id: str,
        channel_id: str,
        item: ContentItem,
        sent_at: datetime | None = None,
    ) -> None:
        """Append a history row after a confirmed delivery."""
        if self.sent_messages is None:
            return
        await self.sent_messages.record(
            SentMessage(
                guild_id=guild_id,
                channel_id=channel_id,
                content_id=item.id,
                category=item.category,
                provider=item.provider,
                sent_at=sent_at or utcnow(),
            )
        )

    async def close(self) -> None:
        if self.quote_api is not None:
            await self.quote_api.close()
