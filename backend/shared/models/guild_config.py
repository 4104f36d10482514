"""Guild schedule configuration model."""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from datetime import datetime

DEFAULT_TIMEZONE = "Europe/Paris"
DEFAULT_CADENCE = 2
DEFAULT_ACTIVE_DAYS = (1, 2, 3, 4, 5)
DEFAULT_TIMES_2 = ("09:15", "16:30")
DEFAULT_TIMES_3 = ("09:15", "12:45", "16:30")
SUPPORTED_CADENCES = (2, 3)


def default_times(cadence: int) -> list[str]:
    """Default slot times for a cadence."""
    return list(DEFAULT_TIMES_3 if cadence == 3 else DEFAULT_TIMES_2)


@dataclass
class GuildConfig:
    """Per-guild delivery schedule.

    ``schedule_times`` is ordered: position *i* is the *i*-th delivery of the
    day. ``active_days`` holds ISO weekdays (1=Monday .. 7=Sunday) and is only
    used for membership tests.
    """

    guild_id: str
    channel_id: str
    timezone: str = DEFAULT_TIMEZONE
    cadence: int = DEFAULT_CADENCE
    active_days: list[int] = field(default_factory=lambda: list(DEFAULT_ACTIVE_DAYS))
    schedule_times: list[str] = field(default_factory=lambda: list(DEFAULT_TIMES_2))
    contextual_enabled: bool = False
    created_at: datetime | None = None
    updated_at: datetime | None = None

    def is_day_active(self, weekday: int) -> bool:
        return weekday in self.active_days

    def is_slot_scheduled(self, slot: str) -> bool:
        return slot in self.schedule_times


class ConfigValidationError(ValueError):
    """Admin-supplied schedule settings are inconsistent or malformed."""


_SLOT_PATTERN = re.compile(r"^([01]\d|2[0-3]):[0-5]\d$")


def is_valid_slot(slot: str) -> bool:
    """``HH:MM``, zero-padded, 00-23 / 00-59."""
    return bool(_SLOT_PATTERN.match(slot))


def validate_schedule(cadence: int, times: list[str]) -> None:
    """Check cadence and slot times together.

    The scheduler tolerates configs that break these rules; only the admin
    surface enforces them.
    """
    if cadence not in SUPPORTED_CADENCES:
        raise ConfigValidationError(
            f"Cadence must be one of {', '.join(map(str, SUPPORTED_CADENCES))}, got {cadence}"
        )
    bad = [t for t in times if not is_valid_slot(t)]
    if bad:
        raise ConfigValidationError(f"Invalid time format (expected HH:MM): {', '.join(bad)}")
    if len(times) != cadence:
        raise ConfigValidationError(
            f"Cadence {cadence} needs {cadence} times, got {len(times)}"
        )
    if len(set(times)) != len(times):
        raise ConfigValidationError("Schedule times must be distinct")


def validate_active_days(days: list[int]) -> None:
    if not days:
        raise ConfigValidationError("At least one active day is required")
    bad = [d for d in days if d < 1 or d > 7]
    if bad:
        raise ConfigValidationError(
            f"Active days must be ISO weekdays 1-7, got {', '.join(map(str, bad))}"
        )


def default_config(
    guild_id: str, channel_id: str, timezone: str = DEFAULT_TIMEZONE
) -> GuildConfig:
    """Configuration created on the first admin touch."""
    return GuildConfig(guild_id=guild_id, channel_id=channel_id, timezone=timezone)
