"""Content providers, safety filters and message formatting."""

from .filters import FilterResult, apply_filters, count_emojis
from .formatter import format_message, template_for_context
from .kudos import KudosLoadError, KudosProvider
from .local_pack import ContentNotFoundError, LocalPackProvider
from .provider import ContentResult, ContentService, SelectionOutcome
from .quote_api import ApiProviderError, QuoteApiProvider

__all__ = [
    "ApiProviderError",
    "ContentNotFoundError",
    "ContentResult",
    "ContentService",
    "FilterResult",
    "KudosLoadError",
    "KudosProvider",
    "LocalPackProvider",
    "QuoteApiProvider",
    "SelectionOutcome",
    "apply_filters",
    "count_emojis",
    "format_message",
    "template_for_context",
]
