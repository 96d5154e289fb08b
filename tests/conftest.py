"""
Shared pytest fixtures.

Provides a fully-populated config dict (no environment access), simple
Discord doubles and an httpx MockTransport-backed SharedHttpClient factory.
"""

from typing import Callable, List, Optional

import httpx
import pytest

from myra.http_client import SharedHttpClient


@pytest.fixture
def config():
    """Config with every backend configured and memory on."""
    return {
        "DISCORD_TOKEN": "discord-token",
        "ASSISTANT_NAME": "M-Yra",
        "RESPOND_TO_MENTIONS_ONLY": False,
        "MAX_REPLY_SENTENCES": 4,
        "PROMPT_FILE": None,
        "ROUTER_PROVIDER": "openai",
        "ROUTER_MODEL": None,
        "OPENAI_API_KEY": "sk-openai",
        "OPENAI_MODEL": "gpt-5.2",
        "OPENAI_CODE_MODEL": None,
        "OPENAI_IMAGE_MODEL": "gpt-image-1.5",
        "ANTHROPIC_API_KEY": "sk-ant",
        "CLAUDE_MODEL": "claude-opus-4-6-adaptive",
        "GEMINI_API_KEY": "gem-key",
        "GEMINI_MODEL": "gemini-3-flash-preview",
        "XAI_API_KEY": "xai-key",
        "GROK_MODEL": "grok-4",
        "PERPLEXITY_API_KEY": "pplx-key",
        "PERPLEXITY_MODEL": "sonar-reasoning-pro",
        "MISTRAL_API_KEY": "mistral-key",
        "MISTRAL_MODEL": "mistral-large-2512",
        "STABILITY_API_KEY": "sk-stability",
        "STABILITY_MODEL": "sd3.5-large",
        "MEMORY_ENABLED": True,
        "MEMORY_MAX_MESSAGES": 6,
        "MEMORY_TTL_MINUTES": 120,
        "MEMORY_SCOPE": "user_channel",
        "NAME_MEMORY_ENABLED": True,
        "REDIS_URL": "",
        "CREATOR_USER_ID": "",
        "CREATOR_TITLE": "maman",
        "LOG_LEVEL": "INFO",
    }


@pytest.fixture
def mock_http():
    """Factory: SharedHttpClient whose requests are answered by `handler`."""
    clients: List[SharedHttpClient] = []

    def _make(handler: Callable[[httpx.Request], httpx.Response]) -> SharedHttpClient:
        client = SharedHttpClient(transport=httpx.MockTransport(handler))
        clients.append(client)
        return client

    return _make


class FakeAttachment:
    def __init__(self, filename: str, content_type: Optional[str] = None, url: Optional[str] = None):
        self.filename = filename
        self.content_type = content_type
        self.url = url or f"https://cdn.example.test/{filename}"


class FakeTyping:
    async def __aenter__(self):
        return self

    async def __aexit__(self, exc_type, exc, tb):
        return False


class FakeChannel:
    def __init__(self, id: int = 222):
        self.id = id
        self.typing_calls = 0

    def typing(self):
        self.typing_calls += 1
        return FakeTyping()


class FakeAuthor:
    def __init__(self, id: int = 111, bot: bool = False):
        self.id = id
        self.bot = bot


class FakeMessage:
    _id_counter = 1000

    def __init__(
        self,
        content: str = "",
        author: Optional[FakeAuthor] = None,
        channel: Optional[FakeChannel] = None,
        attachments: Optional[list] = None,
        mentions: Optional[list] = None,
    ):
        FakeMessage._id_counter += 1
        self.id = FakeMessage._id_counter
        self.content = content
        self.author = author or FakeAuthor()
        self.channel = channel or FakeChannel()
        self.attachments = attachments or []
        self.mentions = mentions or []
        self.replies: List["FakeMessage"] = []
        self.reply_kwargs: List[dict] = []
        self.deleted = False
        self.edits: List[str] = []

    async def reply(self, content=None, **kwargs):
        sent = FakeMessage(content=content or "", author=FakeAuthor(id=999, bot=True), channel=self.channel)
        self.replies.append(sent)
        self.reply_kwargs.append(kwargs)
        return sent

    async def edit(self, content=None, **kwargs):
        self.edits.append(content)
        if content is not None:
            self.content = content
        return self

    async def delete(self):
        self.deleted = True
