"""Tests for content safety filters"""

import pytest

from happybot.content.filters import (
    apply_filters,
    check_banned_words,
    check_emoji_count,
    check_length,
    count_emojis,
)


class TestLength:
    def test_exactly_max_length_passes(self):
        assert check_length("a" * 600).passed

    def test_one_over_fails_with_length_reason(self):
        result = check_length("a" * 601)
        assert not result.passed
        assert "too long" in result.reason.lower()

    @pytest.mark.parametrize("text", ["", "   ", "\n\t "])
    def test_blank_text_fails_as_empty(self, text):
        result = check_length(text)
        assert not result.passed
        assert "empty" in result.reason.lower()


class TestBannedWords:
    def test_case_insensitive_match_names_the_word(self):
        result = check_banned_words("Maybe try THERAPY for that")
        assert not result.passed
        assert "therapy" in result.reason

    def test_substring_match(self):
        assert not check_banned_words("That was hellish").passed

    def test_multi_word_term(self):
        result = check_banned_words("You need to relax")
        assert not result.passed
        assert "need to" in result.reason

    def test_clean_text_passes(self):
        assert check_banned_words("Keep up the great work, team!").passed


class TestEmoji:
    @pytest.mark.parametrize(
        "text, expected",
        [
            ("no emoji here", 0),
            ("Hello 👋 World 🌍", 2),
            ("🇫🇷", 1),
            ("👍🏽", 1),
            ("👨‍👩‍👧", 1),
            ("❤️", 1),
            ("1️⃣", 1),
            ("☀️🌿🚀", 3),
            ("★ Rate ✓ done ♪ enjoy", 0),
            ("© 2024 ™", 0),
            ("☝🏽 one", 1),
            ("✅ done ⚡ fast", 2),
        ],
    )
    def test_count_emojis(self, text, expected):
        assert count_emojis(text) == expected

    def test_two_emoji_pass(self):
        assert check_emoji_count("Great job 🎉 team 🙌").passed

    def test_plain_symbols_do_not_count(self):
        assert apply_filters("★ Rate ✓ done ♪ enjoy").passed

    def test_three_emoji_fail(self):
        result = check_emoji_count("🎉 Great 🙌 job 🚀")
        assert not result.passed
        assert "emoji" in result.reason.lower()


class TestApplyFilters:
    def test_clean_text_passes(self):
        result = apply_filters("Small steps every day 🚀")
        assert result.passed
        assert result.reason is None

    def test_length_is_checked_before_banned_words(self):
        result = apply_filters("therapy " + "a" * 600)
        assert not result.passed
        assert "too long" in result.reason.lower()

    def test_banned_words_checked_before_emoji(self):
        result = apply_filters("damn 🎉🎉🎉")
        assert "banned" in result.reason.lower()
