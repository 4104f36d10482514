"""Tests for slot → category mapping"""

import pytest

from happybot.scheduler.slots import category_for_slot


@pytest.mark.parametrize(
    "slot, cadence, expected",
    [
        ("09:15", 2, "motivation"),
        ("16:30", 2, "team"),
        ("12:45", 3, "wellbeing"),
        ("12:45", 2, "wellbeing"),
        ("11:00", 2, "motivation"),
        ("11:00", 3, "motivation"),
        ("not-a-time", 7, "motivation"),
    ],
)
def test_category_for_slot(slot, cadence, expected):
    assert category_for_slot(slot, cadence) == expected
