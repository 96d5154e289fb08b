"""
Core types and data models for routing, memory and media handling.

Provider, task and urgency are closed enumerations; anything coming from a
model or from configuration is normalized into them before it reaches the
rest of the system.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict, Optional, Protocol


class Provider(Enum):
    """Supported text generation backends"""
    OPENAI = "openai"
    CLAUDE = "claude"
    GEMINI = "gemini"
    GROK = "grok"
    PERPLEXITY = "perplexity"
    MISTRAL = "mistral"

    @classmethod
    def parse(cls, value: Any) -> Optional["Provider"]:
        """Return the provider named by `value`, or None if unsupported."""
        if isinstance(value, Provider):
            return value
        try:
            return cls(str(value or "").strip().lower())
        except ValueError:
            return None


class Task(Enum):
    """Semantic category assigned to a message"""
    GENERAL = "general"
    CODE = "code"
    SEARCH = "search"
    ARTICLE = "article"
    IMAGE = "image"
    EXPLICIT = "explicit"


class Urgency(Enum):
    LOW = "low"
    NORMAL = "normal"
    HIGH = "high"


class MediaType(Enum):
    VIDEO = "video"
    YOUTUBE = "youtube"
    IMAGE = "image"


class MemoryScope(Enum):
    """Key-derivation mode for conversation memory"""
    USER = "user"
    CHANNEL = "channel"
    USER_CHANNEL = "user_channel"


class Role(Enum):
    USER = "user"
    ASSISTANT = "assistant"


@dataclass(frozen=True)
class RouteDecision:
    """Routing outcome for a single message; consumed once."""
    provider: Provider
    task: Task = Task.GENERAL
    reason: str = ""
    urgency: Urgency = Urgency.NORMAL

    def to_dict(self) -> Dict[str, str]:
        return {
            "provider": self.provider.value,
            "task": self.task.value,
            "reason": self.reason,
            "urgency": self.urgency.value,
        }


@dataclass(frozen=True)
class MemoryEntry:
    role: Role
    content: str
    timestamp: float


class Attachment(Protocol):
    """Structural view of a chat attachment (discord.Attachment fits)."""
    url: str
    filename: str
    content_type: Optional[str]


@dataclass(frozen=True)
class MediaInput:
    """The single analyzable media item derived from a message."""
    type: MediaType
    attachment: Optional[Any] = None
    url: str = ""

    def describe(self) -> str:
        """Memory placeholder for a media turn with no text."""
        return f"Analyse media ({self.type.value})"


@dataclass(frozen=True)
class ContentPart:
    """
    One part of a multimodal request.

    Exactly one of `text`, `inline_data` (base64) or `file_uri` is set.
    """
    text: Optional[str] = None
    inline_data: Optional[str] = None
    mime_type: Optional[str] = None
    file_uri: Optional[str] = None

    @classmethod
    def from_text(cls, text: str) -> "ContentPart":
        return cls(text=text)

    @classmethod
    def from_bytes(cls, data_b64: str, mime_type: str) -> "ContentPart":
        return cls(inline_data=data_b64, mime_type=mime_type)

    @classmethod
    def from_uri(cls, uri: str) -> "ContentPart":
        return cls(file_uri=uri)


@dataclass(frozen=True)
class ProviderConfig:
    """Credentials and model for one backend, read from configuration."""
    provider: Provider
    api_key: Optional[str]
    model: Optional[str]

    @property
    def is_configured(self) -> bool:
        return bool(self.api_key and self.model)


@dataclass(frozen=True)
class FetchedMedia:
    data: bytes
    content_type: str
    size_bytes: int
