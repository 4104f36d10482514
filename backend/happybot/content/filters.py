"""Content safety filters.

Checks run in a fixed order (length, banned words, emoji count) and stop at
the first failure, so the reported reason is always that of the earliest
failing check.
"""

from __future__ import annotations

import re
from dataclasses import dataclass

from happybot.core.constants import BANNED_WORDS, MAX_EMOJIS, MAX_LENGTH

_FLAG = "[\U0001F1E6-\U0001F1FF]{2}"
_KEYCAP = "[0-9#*]\uFE0F?\u20E3"
# Characters rendered as emoji by default (Emoji_Presentation).
_PRESENTATION = (
    "[\u231A\u231B\u23E9-\u23EC\u23F0\u23F3\u25FD\u25FE\u2614\u2615\u2648-\u2653"
    "\u267F\u2693\u26A1\u26AA\u26AB\u26BD\u26BE\u26C4\u26C5\u26CE\u26D4\u26EA"
    "\u26F2\u26F3\u26F5\u26FA\u26FD\u2705\u270A\u270B\u2728\u274C\u274E"
    "\u2753-\u2755\u2757\u2795-\u2797\u27B0\u27BF\u2B1B\u2B1C\u2B50\u2B55"
    "\U0001F004\U0001F0CF\U0001F18E\U0001F191-\U0001F19A\U0001F201\U0001F21A"
    "\U0001F22F\U0001F232-\U0001F236\U0001F238-\U0001F23A\U0001F250\U0001F251"
    "\U0001F300-\U0001F64F\U0001F680-\U0001F6FF\U0001F7E0-\U0001F7FF"
    "\U0001F90C-\U0001F9FF\U0001FA70-\U0001FAFF]"
)
# Symbols that stay plain text (such as U+2605, U+2713, U+266A) unless a
# variation selector or skin tone follows.
_TEXT_DEFAULT = (
    "[\u00A9\u00AE\u203C\u2049\u2122\u2139\u2194-\u2199\u21A9\u21AA"
    "\u2328\u23CF\u23ED-\u23EF\u23F1\u23F2\u23F8-\u23FA\u24C2\u25AA\u25AB"
    "\u25B6\u25C0\u25FB\u25FC\u2600-\u27BF\u2934\u2935\u2B05-\u2B07"
    "\u3030\u303D\u3297\u3299\U0001F000-\U0001FAFF]"
    "(?=[\uFE0F\U0001F3FB-\U0001F3FF])"
)
_BASE = f"(?:{_PRESENTATION}|{_TEXT_DEFAULT})"
# Variation selector, skin tone and tag characters belong to the preceding base.
_MODIFIERS = "\uFE0F?[\U0001F3FB-\U0001F3FF]?[\U000E0020-\U000E007F]*"
_SEQUENCE = f"{_BASE}{_MODIFIERS}(?:\u200D{_BASE}{_MODIFIERS})*"

EMOJI_PATTERN = re.compile(f"{_FLAG}|{_KEYCAP}|{_SEQUENCE}")


@dataclass(frozen=True)
class FilterResult:
    passed: bool
    reason: str | None = None


PASSED = FilterResult(passed=True)


def count_emojis(text: str) -> int:
    """Count emoji, treating flags, keycaps and ZWJ/skin-tone sequences as one."""
    return len(EMOJI_PATTERN.findall(text))


def check_length(text: str) -> FilterResult:
    if not text or not text.strip():
        return FilterResult(False, "Text is empty")
    if len(text) > MAX_LENGTH:
        return FilterResult(False, f"Text too long ({len(text)} > {MAX_LENGTH} characters)")
    return PASSED


def check_banned_words(text: str) -> FilterResult:
    """Case-insensitive substring match against the denylist."""
    lowered = text.lower()
    for word in BANNED_WORDS:
        if word in lowered:
            return FilterResult(False, f"Contains banned word: {word}")
    return PASSED


def check_emoji_count(text: str) -> FilterResult:
    count = count_emojis(text)
    if count > MAX_EMOJIS:
        return FilterResult(False, f"Too many emojis ({count} > {MAX_EMOJIS})")
    return PASSED


def apply_filters(text: str) -> FilterResult:
    for check in (check_length, check_banned_words, check_emoji_count):
        result = check(text)
        if not result.passed:
            return result
    return PASSED


def is_safe(text: str) -> bool:
    return apply_filters(text).passed
