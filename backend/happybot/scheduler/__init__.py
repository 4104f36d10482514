"""Scheduled delivery: clock, slot mapping, per-slot job and the tick loop."""

from .clock import ClockReading, local_clock, local_weekday, resolve_clock
from .jobs import ScheduledJob, slot_cooldown_key
from .scheduler import GuildOutcome, Scheduler
from .slots import category_for_slot

__all__ = [
    "ClockReading",
    "GuildOutcome",
    "ScheduledJob",
    "Scheduler",
    "category_for_slot",
    "local_clock",
    "local_weekday",
    "resolve_clock",
    "slot_cooldown_key",
]
