"""Core bot implementation for the Myra Discord assistant."""

from __future__ import annotations

import asyncio
import os
from typing import Optional

import discord
from discord.ext import commands

from myra.config import load_system_prompt_override
from myra.engine import ReplyEngine
from myra.memory import ConversationMemory, merge_context
from myra.profiles import ProfileService, ProfileStore
from myra.types import MediaInput, Provider, Role, Task
from myra.utils.logging import get_logger

from .replies import memory_text, send_processing_notice, send_reply


class MyraBot(commands.Bot):
    """Discord client that hands every addressed message to the reply engine."""

    def __init__(
        self,
        *args,
        config: dict | None = None,
        engine: Optional[ReplyEngine] = None,
        memory: Optional[ConversationMemory] = None,
        profiles: Optional[ProfileService] = None,
        **kwargs,
    ):
        # Provide sensible defaults for tests if not supplied
        if "command_prefix" not in kwargs:
            kwargs["command_prefix"] = os.getenv("COMMAND_PREFIX", "!")
        if "intents" not in kwargs:
            kwargs["intents"] = discord.Intents.none()

        super().__init__(*args, **kwargs)
        self.config = config or {}
        self.logger = get_logger(__name__)
        if engine is None:
            engine = ReplyEngine(
                self.config, system_prompt_override=load_system_prompt_override(self.config)
            )
        self.engine = engine
        self.memory = memory if memory is not None else ConversationMemory.from_config(self.config)
        if profiles is None:
            profiles = ProfileService(ProfileStore(self.config.get("REDIS_URL") or ""), self.config)
        self.profiles = profiles
        self._is_ready = asyncio.Event()

        # Idempotency guard to prevent duplicate initialization
        self._boot_completed = False

    async def setup_hook(self) -> None:
        """Asynchronous setup phase for the bot."""
        if self._boot_completed:
            self.logger.debug("🔄 Setup hook called but boot already completed, skipping")
            return

        self._boot_completed = True
        self.logger.info("🔧 Starting bot setup")
        await self.engine.http.start()
        await self.profiles.store.connect()
        await self.profiles.ensure_creator_profile()
        self.logger.info(
            f"✅ Bot setup complete (profiles: {self.profiles.store.backend})",
            extra={"subsys": "core", "event": "setup.complete"},
        )

    async def on_ready(self):
        """Called when the bot is ready and connected to Discord."""
        if not self._is_ready.is_set():
            self.logger.info(f"🤖 Logged in as {self.user} (ID: {self.user.id})")
            self._is_ready.set()

    def _is_addressed(self, message: discord.Message) -> bool:
        if not self.config.get("RESPOND_TO_MENTIONS_ONLY"):
            return True
        if self.user is None:
            return False
        return any(m.id == self.user.id for m in message.mentions)

    async def on_message(self, message: discord.Message):
        try:
            await self.handle_message(message)
        except Exception as e:
            self.logger.error(
                f"❌ Message error: {e}",
                exc_info=True,
                extra={
                    "subsys": "core",
                    "event": "message.error",
                    "msg_id": getattr(message, "id", None),
                    "user_id": getattr(message.author, "id", None),
                },
            )

    async def handle_message(self, message: discord.Message) -> None:
        if message.author.bot:
            return
        if not self._is_addressed(message):
            return

        text = (message.content or "").strip()
        attachments = list(message.attachments or [])
        if not text and not attachments:
            return

        user_id = message.author.id
        if text:
            direct = await self.profiles.creator_reply(text)
            if direct is None:
                direct = await self.profiles.name_memory_reply(user_id, text)
            if direct is not None:
                await message.reply(direct)
                return

        global_context = await self.profiles.global_context(user_id)

        async with message.channel.typing():
            media = self.engine.classify_media(text, attachments)
            if media is not None:
                await self._reply_to_media(message, text, media, global_context)
                return
            if text:
                await self._reply_to_text(message, text, global_context)

    async def _reply_to_media(
        self, message: discord.Message, text: str, media: MediaInput, global_context: str
    ) -> None:
        memory_key = self.memory.key(Provider.GEMINI, message.author.id, message.channel.id)
        context = merge_context(global_context, self.memory.context(memory_key))
        placeholder = await send_processing_notice(message)

        reply = await self.engine.generate_media_reply(text, media, context)

        self.memory.write(memory_key, Role.USER, text or media.describe())
        await self._deliver(message, reply, placeholder, memory_key)

    async def _reply_to_text(self, message: discord.Message, text: str, global_context: str) -> None:
        decision = await self.engine.route_message(text)
        memory_key = self.memory.key(decision.provider, message.author.id, message.channel.id)
        context = merge_context(global_context, self.memory.context(memory_key))
        placeholder = await send_processing_notice(message) if decision.task == Task.IMAGE else None

        reply = await self.engine.generate_reply(decision.provider, text, decision.task, context)

        self.memory.write(memory_key, Role.USER, text)
        await self._deliver(message, reply, placeholder, memory_key)

    async def _deliver(
        self,
        message: discord.Message,
        reply: str,
        placeholder: Optional[discord.Message],
        memory_key: str,
    ) -> None:
        if reply:
            await send_reply(message, reply, placeholder)
            self.memory.write(memory_key, Role.ASSISTANT, memory_text(reply))
        elif placeholder is not None:
            await placeholder.delete()

    async def close(self) -> None:
        """Clean up resources before shutdown."""
        self.logger.info("Bot is shutting down...")
        try:
            await self.engine.close()
            await self.profiles.store.close()
        except Exception as e:
            self.logger.warning(f"Error releasing resources: {e}")
        finally:
            await super().close()
