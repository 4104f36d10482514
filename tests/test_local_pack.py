"""Tests for the bundled local pack provider"""

import json
from unittest.mock import AsyncMock

import pytest

from happybot.content.local_pack import ContentNotFoundError, LocalPackProvider
from happybot.core.constants import HAPPY_PACK_PATH
from shared.models.content import CATEGORIES


class ScriptedRng:
    """Returns candidates by id, in the scripted order."""

    def __init__(self, ids):
        self.ids = list(ids)
        self.calls = 0

    def choice(self, candidates):
        wanted = self.ids[min(self.calls, len(self.ids) - 1)]
        self.calls += 1
        return next(item for item in candidates if item.id == wanted)


@pytest.fixture
def pack_path(tmp_path):
    pack = {
        "version": "test",
        "description": "test pack",
        "messages": {
            "motivation": [
                {"id": "a", "text": "First item"},
                {"id": "b", "text": "Second item", "tags": ["x"]},
                {"id": "bad-word", "text": "You must do more"},
                {"id": "bad-emoji", "text": "🎉🎉🎉"},
            ],
            "team": [{"id": "t", "text": "Together"}],
            "fun": [{"id": "only-bad", "text": "   "}],
        },
    }
    path = tmp_path / "pack.json"
    path.write_text(json.dumps(pack), encoding="utf-8")
    return path


def test_unsafe_items_are_dropped_at_load(pack_path):
    provider = LocalPackProvider(pack_path)
    assert {item.id for item in provider.candidates("motivation")} == {"a", "b"}
    assert provider.count() == 3
    assert provider.count("team") == 1


def test_categories_without_survivors_are_absent(pack_path):
    provider = LocalPackProvider(pack_path)
    assert provider.available_categories() == ["motivation", "team"]


def test_items_carry_category_and_tags(pack_path):
    provider = LocalPackProvider(pack_path)
    item = next(i for i in provider.candidates("motivation") if i.id == "b")
    assert item.category == "motivation"
    assert item.provider == "local"
    assert item.tags == ("x",)


async def test_empty_category_raises_content_not_found(pack_path):
    provider = LocalPackProvider(pack_path)
    with pytest.raises(ContentNotFoundError) as exc_info:
        await provider.get_item("fun", "42")
    assert exc_info.value.category == "fun"
    assert exc_info.value.guild_id == "42"


async def test_without_guild_no_history_lookup(pack_path):
    sent = AsyncMock()
    provider = LocalPackProvider(pack_path, sent, rng=ScriptedRng(["t"]))
    item = await provider.get_item(None, None)
    assert item.id == "t"
    sent.was_sent_recently.assert_not_awaited()


async def test_recently_sent_items_are_avoided(pack_path):
    sent = AsyncMock()
    sent.was_sent_recently.side_effect = lambda guild_id, content_id, days: content_id == "a"
    rng = ScriptedRng(["a", "a", "b"])
    provider = LocalPackProvider(pack_path, sent, rng=rng)

    item = await provider.get_item("motivation", "42")

    assert item.id == "b"
    assert rng.calls == 3
    sent.was_sent_recently.assert_awaited_with("42", "b", 30)


async def test_returns_last_draw_when_everything_was_seen(pack_path):
    sent = AsyncMock()
    sent.was_sent_recently.return_value = True
    rng = ScriptedRng(["a"] * 9 + ["b"])
    provider = LocalPackProvider(pack_path, sent, rng=rng)

    item = await provider.get_item("motivation", "42")

    assert item.id == "b"
    assert sent.was_sent_recently.await_count == 10


def test_bundled_pack_covers_every_category():
    provider = LocalPackProvider(HAPPY_PACK_PATH)
    assert set(provider.available_categories()) == set(CATEGORIES)
    for category in CATEGORIES:
        assert provider.count(category) >= 5
