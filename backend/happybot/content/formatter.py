"""Turn content items into chat-ready message text."""

from typing import Literal

from happybot.core.constants import MIDDAY_SLOT
from shared.models.content import Category, ContentItem

Template = Literal["kickoff", "reset", "citation", "direct"]

CATEGORY_TEMPLATE_MAP: dict[Category, Template] = {
    "motivation": "kickoff",
    "wellbeing": "reset",
    "focus": "kickoff",
    "team": "citation",
    "fun": "direct",
}


def format_kickoff(text: str) -> str:
    return f"💪 **Kick-off of the day**\n\n{text}"


def format_reset(text: str) -> str:
    return f"🌿 **Wellbeing break**\n\n{text}"


def format_citation(text: str, source: str | None = None) -> str:
    attribution = f"\n\n— {source}" if source else ""
    return f'💬 **Quote of the day**\n\n*"{text}"*{attribution}'


def template_for_context(category: Category, slot: str | None = None) -> Template:
    """The midday slot is always a reset, whatever the category."""
    if slot == MIDDAY_SLOT:
        return "reset"
    return CATEGORY_TEMPLATE_MAP.get(category, "direct")


def format_message(item: ContentItem, template: Template | None = None) -> str:
    resolved = template or CATEGORY_TEMPLATE_MAP.get(item.category, "direct")
    if resolved == "kickoff":
        return format_kickoff(item.text)
    if resolved == "reset":
        return format_reset(item.text)
    if resolved == "citation":
        return format_citation(item.text, item.source)
    return item.text
