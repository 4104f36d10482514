"""Logging configuration"""

import logging
import os

from rich.console import Console
from rich.logging import RichHandler

_NOISY_LOGGERS = ("discord", "discord.http", "discord.gateway", "httpx", "httpcore", "aiohttp")


def setup_logging(level_name: str | None = None) -> None:
    """Configure application logging with a Rich handler.

    Falls back to plain ``basicConfig`` output if the Rich console cannot be
    set up (e.g. a detached stdout in some container runtimes).
    """
    level_name = (level_name or os.getenv("LOG_LEVEL", "INFO")).upper()
    level = getattr(logging, level_name, logging.INFO)

    try:
        console = Console(width=120)
        rich_handler = RichHandler(
            console=console,
            show_time=True,
            show_level=True,
            show_path=False,
            markup=False,
            rich_tracebacks=True,
            tracebacks_show_locals=False,
            tracebacks_width=120,
        )
        rich_handler.setFormatter(
            logging.Formatter(fmt="%(name)s: %(message)s", datefmt="[%Y-%m-%d %H:%M:%S]")
        )
        logging.basicConfig(
            level=level,
            format="%(message)s",
            datefmt="[%Y-%m-%d %H:%M:%S]",
            handlers=[rich_handler],
            force=True,
        )
    except Exception as e:
        logging.basicConfig(
            level=level,
            format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
            datefmt="%Y-%m-%d %H:%M:%S",
            force=True,
        )
        logging.getLogger(__name__).warning(
            f"Rich logging setup failed: {e}, using standard logging"
        )

    for name in _NOISY_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)
