"""Entry point: ``python -m happybot``."""

import asyncio
import logging

from happybot.bot import HappyBot
from happybot.core import get_settings, setup_logging

logger = logging.getLogger("happybot")


async def main() -> None:
    settings = get_settings()
    async with HappyBot(settings) as bot:
        try:
            await bot.start(settings.discord_token)
        except (KeyboardInterrupt, asyncio.CancelledError):
            if not bot.is_closed():
                await bot.close()


def run() -> None:
    setup_logging(get_settings().log_level)
    try:
        asyncio.run(main())
    except (KeyboardInterrupt, asyncio.CancelledError):
        logger.info("Bot stopped manually")
    except Exception as e:
        logger.error(f"Bot crashed: {e}", exc_info=e)
        raise SystemExit(1) from e


if __name__ == "__main__":
    run()
