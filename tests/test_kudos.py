"""Tests for the kudos template provider"""

import json
import random

import pytest

from happybot.content.kudos import KudosLoadError, KudosProvider
from happybot.core.constants import KUDOS_CATEGORY_LABELS


def write_kudos(tmp_path, categories):
    path = tmp_path / "kudos.json"
    path.write_text(json.dumps({"version": 1, "categories": categories}), encoding="utf-8")
    return path


def test_bundled_templates_cover_every_category():
    provider = KudosProvider()
    assert set(provider.categories) == set(KUDOS_CATEGORY_LABELS)
    for templates in provider.templates.values():
        assert templates
        for template in templates:
            assert "{member}" in template.text


def test_placeholders_are_filled_and_emoji_prefixed(tmp_path):
    path = write_kudos(
        tmp_path,
        {"sales": {"templates": [{"emoji": "🎯", "text": "{member}: {reason} -> {impact}"}]}},
    )
    provider = KudosProvider(path, rng=random.Random(1))

    message = provider.format_kudos("sales", "<@7>", "  closed the deal ", "happy client")

    assert message == "🎯 <@7>: closed the deal -> happy client"


def test_user_braces_are_kept_verbatim(tmp_path):
    path = write_kudos(
        tmp_path, {"focus": {"templates": [{"emoji": "🧭", "text": "🧭 {member} did {reason}"}]}}
    )
    message = KudosProvider(path).format_kudos("focus", "Ana", "{impact} and {0}", "x")
    assert message == "🧭 Ana did {impact} and {0}"


def test_unknown_category(tmp_path):
    path = write_kudos(tmp_path, {"sales": {"templates": []}})
    with pytest.raises(KeyError):
        KudosProvider(path).format_kudos("sales", "a", "b", "c")


@pytest.mark.parametrize("content", ["not json", json.dumps({"categories": {"x": {}}})])
def test_broken_file_raises_load_error(tmp_path, content):
    path = tmp_path / "kudos.json"
    path.write_text(content, encoding="utf-8")
    with pytest.raises(KudosLoadError):
        KudosProvider(path)


def test_missing_file_raises_load_error(tmp_path):
    with pytest.raises(KudosLoadError):
        KudosProvider(tmp_path / "absent.json")
