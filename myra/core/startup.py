"""
Contains bot startup and pre-flight check logic.
"""
import hashlib

import discord

from myra.config import PROVIDER_ENV, validate_required_env
from myra.utils.logging import get_logger


def run_pre_flight_checks(config: dict) -> None:
    """Runs all mandatory startup checks; raises ConfigurationError on fatal ones."""
    logger = get_logger(__name__)
    logger.info("--- Running Pre-Flight Checklist ---")

    # 1. Token and backend keys
    validate_required_env(config)
    token_hash = hashlib.sha256(config["DISCORD_TOKEN"].encode()).hexdigest()
    logger.info(f"[INIT] Token hash={token_hash[:12]} validated")

    configured = [p.value for p, (key_var, _, _) in PROVIDER_ENV.items() if config.get(key_var)]
    logger.info(f"[INIT] Text backends configured: {', '.join(configured) or 'none'}")
    if not config.get("OPENAI_API_KEY") and not config.get("STABILITY_API_KEY"):
        logger.warning("⚠️  No image backend configured; image requests will fail")

    # 2. Intents
    intents = create_bot_intents()
    if not intents.message_content:
        logger.critical("Required intent 'message_content' is disabled.")
    else:
        logger.info("[INIT] Intents verified")

    logger.info(f"[INIT] Discord.py Version: {discord.__version__}")
    logger.info("--- Pre-Flight Checklist Complete ---")


def create_bot_intents() -> discord.Intents:
    """Guild and DM messages with content."""
    intents = discord.Intents.default()
    intents.message_content = True
    intents.guilds = True
    intents.guild_messages = True
    intents.dm_messages = True
    return intents
