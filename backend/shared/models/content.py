"""Content item model and category/provider vocabularies."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Literal

Category = Literal["motivation", "wellbeing", "focus", "team", "fun"]
Provider = Literal["local", "api", "rss"]

CATEGORIES: tuple[Category, ...] = ("motivation", "wellbeing", "focus", "team", "fun")
PROVIDERS: tuple[Provider, ...] = ("local", "api", "rss")

DEFAULT_CATEGORY: Category = "motivation"


@dataclass(frozen=True)
class ContentItem:
    """A single piece of content ready to be formatted and delivered.

    Never persisted; only its ``id`` ends up in the sent history.
    """

    id: str
    category: Category
    text: str
    provider: Provider = "local"
    tags: tuple[str, ...] = ()
    source: str | None = None
