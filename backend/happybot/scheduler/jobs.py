"""Delivery of one scheduled slot for one guild."""

from __future__ import annotations

import logging

from happybot.content.local_pack import ContentNotFoundError
from happybot.content.provider import ContentService
from happybot.core.constants import SLOT_LOCK_SECONDS
from happybot.delivery import Deliverer, DeliveryError
from shared.database import DatabaseError
from shared.models.guild_config import GuildConfig
from shared.repositories.cooldown import CooldownRepository

from .slots import category_for_slot

logger = logging.getLogger(__name__)


def slot_cooldown_key(guild_id: str, slot: str) -> str:
    return f"scheduled:{guild_id}:{slot}"


def resolve_destination(config: GuildConfig) -> str:
    """Channel id to post into. Raises ``DeliveryError`` when unusable."""
    channel_id = (config.channel_id or "").strip()
    if not channel_id.isdigit():
        raise DeliveryError(
            f"Guild {config.guild_id} has no valid destination channel ({config.channel_id!r})",
            config.guild_id,
            config.channel_id or None,
        )
    return channel_id


class ScheduledJob:
    """Cooldown check → content → delivery → history → slot lock.

    The slot lock outlives one tick (``SLOT_LOCK_SECONDS``) and is the only
    guard against sending the same slot twice. It is set after a successful
    delivery only, so a failed send may be retried by a later tick within the
    same minute.
    """

    def __init__(
        self,
        cooldowns: CooldownRepository,
        content: ContentService,
        deliverer: Deliverer,
        *,
        lock_seconds: int = SLOT_LOCK_SECONDS,
    ):
        self.cooldowns = cooldowns
        self.content = content
        self.deliverer = deliverer
        self.lock_seconds = lock_seconds

    async def send(self, config: GuildConfig, slot: str) -> bool:
        """Deliver ``slot`` for ``config``. Returns True if a message was posted.

        Destination resolution and cooldown-store errors propagate to the
        caller; content and delivery failures are logged and reported as
        ``False``.
        """
        guild_id = config.guild_id
        key = slot_cooldown_key(guild_id, slot)
        if await self.cooldowns.is_on_cooldown(key):
            logger.debug(f"Slot {slot} for guild {guild_id} already sent, skipping")
            return False

        channel_id = resolve_destination(config)
        category = category_for_slot(slot, config.cadence)

        try:
            result = await self.content.formatted_delivery(guild_id, category, slot)
            await self.deliverer.deliver(guild_id, channel_id, result.message)
        except ContentNotFoundError as e:
            logger.error(f"No content for guild {guild_id} slot {slot}: {e}")
            return False
        except DeliveryError as e:
            logger.warning(f"Delivery failed for guild {guild_id} slot {slot}: {e}")
            return False
        except DatabaseError as e:
            logger.error(f"Store error while preparing guild {guild_id} slot {slot}: {e}")
            return False

        try:
            await self.content.record_sent(guild_id, channel_id, result.item)
        except DatabaseError as e:
            logger.warning(f"Could not record sent history for guild {guild_id}: {e}")

        try:
            await self.cooldowns.set_with_duration(key, self.lock_seconds)
        except DatabaseError as e:
            logger.error(f"Could not lock slot {slot} for guild {guild_id}: {e}")

        logger.info(
            f"Sent {category} to guild {guild_id} channel {channel_id} [slot {slot}] "
            f"[{result.item.provider}:{result.item.id}]"
        )
        return True
