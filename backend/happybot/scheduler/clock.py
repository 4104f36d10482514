"""Wall-clock resolution in a guild's timezone."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime, timezone
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from shared.database import utcnow

logger = logging.getLogger(__name__)

FALLBACK_TIMEZONE = "UTC"

# Invalid timezone names already warned about.
_reported_fallbacks: set[str | None] = set()


@dataclass(frozen=True)
class ClockReading:
    """Local ``HH:MM`` and ISO weekday for one instant.

    ``fallback`` is True when ``timezone`` could not be resolved and UTC was
    used instead.
    """

    hhmm: str
    weekday: int
    timezone: str
    fallback: bool = False


def _zone(name: str | None) -> ZoneInfo | None:
    if not name:
        return None
    try:
        return ZoneInfo(name)
    except (ZoneInfoNotFoundError, ValueError, OSError, TypeError):
        return None


def _hhmm(moment: datetime) -> str:
    text = moment.strftime("%H:%M")
    # Some formatters render midnight as 24:xx.
    if text.startswith("24"):
        text = "00" + text[2:]
    return text


def resolve_clock(tz_name: str | None, now: datetime | None = None) -> ClockReading:
    """Read the clock for ``tz_name``; never raises.

    An unknown or malformed timezone falls back to UTC and is logged here,
    once, rather than by every caller.
    """
    moment = now or utcnow()
    if moment.tzinfo is None:
        moment = moment.replace(tzinfo=timezone.utc)

    zone = _zone(tz_name)
    if zone is None:
        if tz_name not in _reported_fallbacks:
            _reported_fallbacks.add(tz_name)
            logger.warning(
                "Unknown timezone %r, falling back to %s", tz_name, FALLBACK_TIMEZONE
            )
        local = moment.astimezone(timezone.utc)
        return ClockReading(_hhmm(local), local.isoweekday(), FALLBACK_TIMEZONE, fallback=True)

    local = moment.astimezone(zone)
    return ClockReading(_hhmm(local), local.isoweekday(), str(tz_name))


def local_clock(tz_name: str | None, now: datetime | None = None) -> str:
    """Current ``HH:MM`` in ``tz_name`` (UTC if it is invalid)."""
    return resolve_clock(tz_name, now).hhmm


def local_weekday(tz_name: str | None, now: datetime | None = None) -> int:
    """Current ISO weekday, 1=Monday .. 7=Sunday (UTC if ``tz_name`` is invalid)."""
    return resolve_clock(tz_name, now).weekday
