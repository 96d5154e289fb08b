"""Tests for short-lived conversation memory."""
import pytest

from myra.memory import ConversationMemory, context_text, memory_key, merge_context
from myra.types import MemoryEntry, MemoryScope, Provider, Role


class FakeClock:
    def __init__(self, now: float = 1000.0):
        self.now = now

    def __call__(self) -> float:
        return self.now


@pytest.mark.parametrize("scope, expected", [
    (MemoryScope.USER, "openai:u1"),
    (MemoryScope.CHANNEL, "openai:c1"),
    (MemoryScope.USER_CHANNEL, "openai:u1:c1"),
    ("user_channel", "openai:u1:c1"),
    ("something-else", "openai:u1:c1"),
])
def test_memory_key_scopes(scope, expected):
    assert memory_key(scope, Provider.OPENAI, "u1", "c1") == expected


def test_memory_key_placeholders():
    assert memory_key(MemoryScope.USER_CHANNEL, None, None, None) == "default:unknown-user:unknown-channel"


def test_provider_partitions_memory():
    memory = ConversationMemory()
    k_openai = memory.key(Provider.OPENAI, 1, 2)
    k_claude = memory.key(Provider.CLAUDE, 1, 2)
    memory.write(k_openai, Role.USER, "hello")
    assert memory.read(k_claude) == ()
    assert len(memory.read(k_openai)) == 1


def test_cap_keeps_most_recent_entries():
    memory = ConversationMemory(max_messages=3)
    key = memory.key(Provider.OPENAI, 1, 2)
    for i in range(5):
        memory.write(key, Role.USER, f"m{i}")
    assert [e.content for e in memory.read(key)] == ["m2", "m3", "m4"]


def test_ttl_eviction_on_read():
    clock = FakeClock()
    memory = ConversationMemory(ttl_seconds=60, clock=clock)
    key = memory.key(Provider.OPENAI, 1, 2)
    memory.write(key, Role.USER, "old")
    clock.now += 30
    memory.write(key, Role.ASSISTANT, "newer")
    clock.now += 45
    assert [e.content for e in memory.read(key)] == ["newer"]


def test_zero_ttl_reads_empty():
    memory = ConversationMemory(ttl_seconds=0)
    key = memory.key(Provider.OPENAI, 1, 2)
    memory.write(key, Role.USER, "hello")
    assert memory.read(key) == ()


def test_blank_content_is_ignored_and_content_is_trimmed():
    memory = ConversationMemory()
    key = memory.key(Provider.OPENAI, 1, 2)
    memory.write(key, Role.USER, "   ")
    memory.write(key, Role.USER, None)
    memory.write(key, Role.USER, "  hi  ")
    entries = memory.read(key)
    assert len(entries) == 1
    assert entries[0].content == "hi"


def test_disabled_memory_is_inert():
    memory = ConversationMemory(enabled=False)
    key = memory.key(Provider.OPENAI, 1, 2)
    assert key == ""
    memory.write("manual-key", Role.USER, "hello")
    assert memory.read("manual-key") == ()
    assert len(memory) == 0


def test_context_rendering_and_merge():
    entries = (
        MemoryEntry(Role.USER, "Salut", 0.0),
        MemoryEntry(Role.ASSISTANT, "Bonjour", 0.0),
    )
    rendered = context_text(entries)
    assert rendered == "User: Salut\nAssistant: Bonjour"
    assert merge_context("", rendered) == rendered
    assert merge_context("Prenom utilisateur: Lea.", "") == "Prenom utilisateur: Lea."
    assert merge_context("Prenom utilisateur: Lea.", rendered) == f"Prenom utilisateur: Lea.\n{rendered}"


def test_from_config(config):
    config.update({"MEMORY_MAX_MESSAGES": 2, "MEMORY_TTL_MINUTES": 1, "MEMORY_SCOPE": "user"})
    memory = ConversationMemory.from_config(config)
    assert memory.max_messages == 2
    assert memory.ttl_seconds == 60
    assert memory.key(Provider.MISTRAL, 5, 6) == "mistral:5"
