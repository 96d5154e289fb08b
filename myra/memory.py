"""
Short-lived conversation memory.

Recent turns are kept in process memory only, partitioned by a key derived
from the backend and the user/channel identity. Each key holds at most
`max_messages` entries; entries older than the TTL are dropped lazily when
the key is read.
"""

import time
from typing import Callable, Dict, List, Optional, Sequence, Tuple, Union

from .types import MemoryEntry, MemoryScope, Provider, Role
from .utils.logging import get_logger

logger = get_logger(__name__)

DEFAULT_MAX_MESSAGES = 6
DEFAULT_TTL_SECONDS = 120 * 60


def memory_key(
    scope: Union[MemoryScope, str],
    provider: Union[Provider, str, None],
    user_id: Optional[object],
    channel_id: Optional[object],
) -> str:
    """Derive the partition key for a conversation. Pure."""
    if isinstance(provider, Provider):
        provider_part = provider.value
    else:
        provider_part = provider or "default"
    user_part = str(user_id) if user_id else "unknown-user"
    channel_part = str(channel_id) if channel_id else "unknown-channel"

    scope_value = scope.value if isinstance(scope, MemoryScope) else str(scope or "")
    if scope_value == MemoryScope.USER.value:
        return f"{provider_part}:{user_part}"
    if scope_value == MemoryScope.CHANNEL.value:
        return f"{provider_part}:{channel_part}"
    return f"{provider_part}:{user_part}:{channel_part}"


def context_text(entries: Sequence[MemoryEntry]) -> str:
    """Render entries as `User:` / `Assistant:` lines for the prompt."""
    return "\n".join(
        f"{'Assistant' if entry.role == Role.ASSISTANT else 'User'}: {entry.content}"
        for entry in entries
    )


def merge_context(global_context: str, memory_context: str) -> str:
    if not global_context:
        return memory_context or ""
    if not memory_context:
        return global_context
    return f"{global_context}\n{memory_context}"


class ConversationMemory:
    """
    Bounded, expiring store of recent conversation turns.

    Owned by the bot and passed by reference; nothing here is module-global.
    `write` does its read-append-cap-store without awaiting, so two messages
    interleaved on the event loop cannot drop each other's entries.
    """

    def __init__(
        self,
        max_messages: int = DEFAULT_MAX_MESSAGES,
        ttl_seconds: float = DEFAULT_TTL_SECONDS,
        scope: Union[MemoryScope, str] = MemoryScope.USER_CHANNEL,
        enabled: bool = True,
        clock: Callable[[], float] = time.time,
    ):
        self.max_messages = max(1, int(max_messages))
        self.ttl_seconds = float(ttl_seconds)
        self.scope = scope
        self.enabled = enabled
        self._clock = clock
        self._store: Dict[str, List[MemoryEntry]] = {}
        logger.info(
            f"ConversationMemory initialized. Enabled: {enabled}, "
            f"Max messages: {self.max_messages}, TTL: {self.ttl_seconds:.0f}s",
            extra={"subsys": "memory", "event": "memory.init"},
        )

    @classmethod
    def from_config(cls, config: dict) -> "ConversationMemory":
        return cls(
            max_messages=config.get("MEMORY_MAX_MESSAGES", DEFAULT_MAX_MESSAGES),
            ttl_seconds=float(config.get("MEMORY_TTL_MINUTES", 120)) * 60,
            scope=config.get("MEMORY_SCOPE", MemoryScope.USER_CHANNEL.value),
            enabled=config.get("MEMORY_ENABLED", True),
        )

    def key(self, provider, user_id, channel_id) -> str:
        if not self.enabled:
            return ""
        return memory_key(self.scope, provider, user_id, channel_id)

    def read(self, key: str) -> Tuple[MemoryEntry, ...]:
        """Return live entries oldest-first, evicting expired ones."""
        if not self.enabled or not key:
            return ()
        entries = self._store.get(key, [])
        now = self._clock()
        if self.ttl_seconds <= 0:
            fresh = []
        else:
            fresh = [entry for entry in entries if now - entry.timestamp <= self.ttl_seconds]
        if len(fresh) != len(entries):
            self._store[key] = fresh
            logger.debug(
                f"Evicted {len(entries) - len(fresh)} expired entries",
                extra={"subsys": "memory", "event": "memory.evict", "detail": {"key": key}},
            )
        return tuple(fresh)

    def write(self, key: str, role: Union[Role, str], content: Optional[str]) -> None:
        if not self.enabled or not key or not content:
            return
        trimmed = str(content).strip()
        if not trimmed:
            return

        entry = MemoryEntry(role=Role(role), content=trimmed, timestamp=self._clock())
        updated = list(self.read(key)) + [entry]
        self._store[key] = updated[-self.max_messages:]

    def context(self, key: str) -> str:
        return context_text(self.read(key))

    def __len__(self) -> int:
        return len(self._store)
