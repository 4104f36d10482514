"""Structured kudos messages built from bundled templates."""

from __future__ import annotations

import json
import random
import re
from dataclasses import dataclass
from pathlib import Path

from happybot.core.constants import KUDOS_PATH

_PLACEHOLDER = re.compile(r"\{(member|reason|impact)\}")


class KudosLoadError(Exception):
    """The kudos template file could not be read or parsed."""


@dataclass(frozen=True)
class KudosTemplate:
    emoji: str
    text: str


def load_kudos(path: Path) -> dict[str, list[KudosTemplate]]:
    try:
        with open(path, encoding="utf-8") as f:
            data = json.load(f)
        return {
            key: [KudosTemplate(emoji=t["emoji"], text=t["text"]) for t in category["templates"]]
            for key, category in data["categories"].items()
        }
    except (OSError, ValueError, KeyError, TypeError) as e:
        raise KudosLoadError(f"Failed to load kudos file at {path}: {e}") from e


class KudosProvider:
    def __init__(self, path: Path | str = KUDOS_PATH, rng: random.Random | None = None):
        self.templates = load_kudos(Path(path))
        self._rng = rng or random.Random()

    @property
    def categories(self) -> list[str]:
        return list(self.templates)

    def format_kudos(self, category: str, member: str, reason: str, impact: str) -> str:
        """Fill a random template of ``category``; the emoji prefix is added once.

        Placeholders are filled in one pass, so braces typed by users are
        kept as they are.
        """
        choices = self.templates.get(category)
        if not choices:
            raise KeyError(f"No kudos templates for category: {category}")

        template = self._rng.choice(choices)
        values = {"member": member, "reason": reason.strip(), "impact": impact.strip()}
        message = _PLACEHOLDER.sub(lambda m: values[m.group(1)], template.text)
        if not message.startswith(template.emoji):
            message = f"{template.emoji} {message}"
        return message
