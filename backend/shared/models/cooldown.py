"""Cooldown model."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime


@dataclass
class Cooldown:
    """A time-boxed lock on a namespaced key (``guild:<id>:now`` ...)."""

    key: str
    expires_at: datetime
