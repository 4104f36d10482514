"""Slot time → content category."""

from happybot.core.constants import EXTENDED_CADENCE, MIDDAY_SLOT, SLOT_CATEGORY_MAP
from shared.models.content import DEFAULT_CATEGORY, Category


def category_for_slot(slot: str, cadence: int) -> Category:
    """Category for a configured slot. Total: unknown slots get the default."""
    category = SLOT_CATEGORY_MAP.get(slot)
    if category is not None:
        return category
    if cadence == EXTENDED_CADENCE and slot == MIDDAY_SLOT:
        return "wellbeing"
    return DEFAULT_CATEGORY
