"""Remote quote provider (Quotable-compatible API)."""

import asyncio
import logging
from collections.abc import Awaitable, Callable
from typing import Any

import httpx

from happybot.core.constants import (
    API_MAX_QUOTE_LENGTH,
    API_MAX_RETRIES,
    API_RETRY_DELAY_SECONDS,
    API_TIMEOUT_SECONDS,
    APP_NAME,
    APP_VERSION,
)
from shared.models.content import DEFAULT_CATEGORY, Category, ContentItem

from .filters import apply_filters

logger = logging.getLogger(__name__)

DEFAULT_BASE_URL = "https://api.quotable.io"

CATEGORY_TAGS: dict[Category, tuple[str, ...]] = {
    "motivation": ("motivational", "success", "inspirational"),
    "wellbeing": ("happiness", "life", "wisdom"),
    "focus": ("success", "technology", "business"),
    "team": ("leadership", "business", "teamwork"),
}


class ApiProviderError(Exception):
    """The quote API could not produce a usable item."""

    def __init__(
        self,
        message: str,
        status_code: int | None = None,
        cause: BaseException | None = None,
    ):
        super().__init__(message)
        self.status_code = status_code
        self.cause = cause


class QuoteApiProvider:
    """Fetches a random quote, retrying with linear backoff.

    Every attempt is bounded by the client timeout; a quote rejected by the
    content filters counts as a failed attempt.
    """

    def __init__(
        self,
        base_url: str = DEFAULT_BASE_URL,
        client: httpx.AsyncClient | None = None,
        *,
        max_retries: int = API_MAX_RETRIES,
        retry_delay: float = API_RETRY_DELAY_SECONDS,
        sleep: Callable[[float], Awaitable[Any]] = asyncio.sleep,
    ):
        self.base_url = base_url.rstrip("/")
        self.max_retries = max_retries
        self.retry_delay = retry_delay
        self._sleep = sleep
        self._owns_client = client is None
        self._http = client or httpx.AsyncClient(
            timeout=API_TIMEOUT_SECONDS,
            headers={
                "Accept": "application/json",
                "User-Agent": f"{APP_NAME.lower().replace(' ', '-')}/{APP_VERSION}",
            },
        )

    async def close(self) -> None:
        if self._owns_client:
            await self._http.aclose()

    @staticmethod
    def build_params(category: Category | None = None) -> dict[str, str]:
        params = {"maxLength": str(API_MAX_QUOTE_LENGTH)}
        tags = CATEGORY_TAGS.get(category) if category else None
        if tags:
            params["tags"] = "|".join(tags)
        return params

    async def get_item(self, category: Category | None = None) -> ContentItem:
        last_error: ApiProviderError | None = None
        attempts = self.max_retries + 1

        for attempt in range(attempts):
            if attempt > 0:
                await self._sleep(self.retry_delay * attempt)
            try:
                return await self._fetch_quote(category)
            except ApiProviderError as e:
                last_error = e
                logger.debug(f"Quote API attempt {attempt + 1}/{attempts} failed: {e}")

        raise ApiProviderError(
            f"Quote API unavailable after {attempts} attempts",
            status_code=last_error.status_code if last_error else None,
            cause=last_error,
        )

    async def _fetch_quote(self, category: Category | None) -> ContentItem:
        try:
            response = await self._http.get(
                f"{self.base_url}/random", params=self.build_params(category)
            )
        except httpx.TimeoutException as e:
            raise ApiProviderError(
                f"API request timed out after {API_TIMEOUT_SECONDS}s", cause=e
            ) from e
        except httpx.HTTPError as e:
            raise ApiProviderError("API request failed", cause=e) from e

        if response.status_code != 200:
            raise ApiProviderError(
                f"API returned HTTP {response.status_code}", status_code=response.status_code
            )

        try:
            data = response.json()
            if isinstance(data, list):
                data = data[0]
            item = ContentItem(
                id=f"api-{data['_id']}",
                category=category or DEFAULT_CATEGORY,
                text=data["content"],
                provider="api",
                tags=tuple(data.get("tags") or ()),
                source=data.get("author"),
            )
        except (ValueError, KeyError, IndexError, TypeError) as e:
            raise ApiProviderError("API returned an unexpected payload", cause=e) from e

        result = apply_filters(item.text)
        if not result.passed:
            raise ApiProviderError(f"API content failed filter: {result.reason}")
        return item
