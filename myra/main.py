"""
Discord bot main entry point - BOOTSTRAP ONLY
This module should contain NO business logic, only orchestration.
"""
import asyncio
import os
import sys
from typing import NoReturn

import aiohttp
import discord

from myra.config import ConfigurationError, load_config
from myra.core.bot import MyraBot
from myra.core.cli import parse_arguments, show_version_info, validate_configuration_only
from myra.core.startup import create_bot_intents, run_pre_flight_checks
from myra.utils.logging import get_logger, init_logging, shutdown_logging_and_exit


async def main() -> NoReturn:
    """Main bot execution function with CLI support."""
    args = parse_arguments()
    if args.debug:
        os.environ['LOG_LEVEL'] = 'DEBUG'

    init_logging()
    logger = get_logger(__name__)

    if args.version:
        show_version_info()
        shutdown_logging_and_exit(0)

    if args.config_check:
        validate_configuration_only()
        shutdown_logging_and_exit(0)

    try:
        config = load_config()
        run_pre_flight_checks(config)
        bot = MyraBot(
            config=config,
            command_prefix=os.getenv("COMMAND_PREFIX", "!"),
            intents=create_bot_intents(),
            help_command=None,
        )
    except ConfigurationError as e:
        logger.critical(f"Configuration error during bot startup: {e}")
        shutdown_logging_and_exit(1)
    except Exception as e:
        logger.critical(f"A fatal error occurred during startup validation: {e}", exc_info=True)
        shutdown_logging_and_exit(1)

    max_retries = 3
    base_delay = 5  # seconds
    for attempt in range(max_retries):
        try:
            logger.info(f"Connecting to Discord... (Attempt {attempt + 1}/{max_retries})")
            await bot.start(config["DISCORD_TOKEN"])
            break
        except discord.LoginFailure:
            logger.error("Failed to log in. Please check your Discord token.")
            shutdown_logging_and_exit(1)
        except (discord.HTTPException, aiohttp.ClientConnectorError):
            if attempt == max_retries - 1:
                logger.error("Could not connect to Discord after retries.")
                shutdown_logging_and_exit(1)
            delay = base_delay * (2 ** attempt)
            logger.warning(f"Connection failed, retrying in {delay}s...")
            await asyncio.sleep(delay)

    logger.critical("Bot event loop exited unexpectedly.")
    shutdown_logging_and_exit(1)


def run_bot() -> None:
    """Entry point for running the bot with proper error handling."""
    try:
        asyncio.run(main())
    except KeyboardInterrupt:
        print("\nBot shutdown requested by user.")
        shutdown_logging_and_exit(0)
    except Exception as e:
        print(f"FATAL ERROR: {e}", file=sys.stderr)
        import traceback
        traceback.print_exc()
        shutdown_logging_and_exit(1)


if __name__ == "__main__":
    run_bot()
