"""Tests for the profile store, creator profile and name-memory dialogue."""
import pytest
from redis.exceptions import ConnectionError as RedisConnectionError

from myra.profiles import (
    CREATOR_ID_KEY,
    CREATOR_TITLE_KEY,
    ProfileService,
    ProfileStore,
    extract_first_name,
    is_creator_question,
    is_forget_command,
    is_profile_command,
)


class FakeRedis:
    """Minimal async stand-in for redis.asyncio.Redis."""

    def __init__(self, fail: bool = False):
        self.data = {}
        self.fail = fail
        self.closed = False

    async def get(self, key):
        if self.fail:
            raise RedisConnectionError("connection refused")
        return self.data.get(key)

    async def set(self, key, value):
        if self.fail:
            raise RedisConnectionError("connection refused")
        self.data[key] = value

    async def delete(self, key):
        if self.fail:
            raise RedisConnectionError("connection refused")
        self.data.pop(key, None)

    async def aclose(self):
        self.closed = True


@pytest.fixture
def service(config):
    return ProfileService(ProfileStore(), config)


@pytest.mark.parametrize("text, expected", [
    ("je m'appelle Lea", "Lea"),
    ("Bonjour, mon prenom est Jean-Luc et toi ?", "Jean-Luc"),
    ("appelle-moi Zoé", "Zoé"),
    ("Je M'APPELLE D'Artagnan", "D'Artagnan"),
    ("je m'appelle X", ""),
    ("bonjour", ""),
])
def test_extract_first_name(text, expected):
    assert extract_first_name(text) == expected


def test_command_detectors():
    assert is_profile_command(" /profil ")
    assert is_profile_command("PROFILE")
    assert not is_profile_command("mon profil stp")
    assert is_forget_command("stp oublie-moi")
    assert is_forget_command("forget me please")
    assert is_creator_question("Qui t'a cree ?")
    assert is_creator_question("who is your creator")
    assert not is_creator_question("bonjour")


@pytest.mark.asyncio
async def test_name_confirmation_yes_stores_name(service):
    ask = await service.name_memory_reply(1, "je m'appelle Lea")
    assert ask == "Tu veux que je retienne que tu t appelles Lea ? Reponds oui ou non."
    assert service.pending_name(1) == "Lea"

    assert await service.name_memory_reply(1, "Oui") == "Ok, je retiens: Lea."
    assert service.pending_name(1) is None
    assert await service.get_first_name(1) == "Lea"
    assert await service.global_context(1) == "Prenom utilisateur: Lea."


@pytest.mark.asyncio
async def test_name_confirmation_no_stores_nothing(service):
    await service.name_memory_reply(1, "appelle-moi Max")
    assert await service.name_memory_reply(1, "non") == "Ok, je ne retiens rien."
    assert await service.get_first_name(1) == ""
    assert await service.global_context(1) == ""


@pytest.mark.asyncio
async def test_yes_without_pending_is_not_handled(service):
    assert await service.name_memory_reply(1, "oui") is None


@pytest.mark.asyncio
async def test_pending_is_per_user(service):
    await service.name_memory_reply(1, "je m'appelle Lea")
    assert await service.name_memory_reply(2, "oui") is None
    assert service.pending_name(1) == "Lea"


@pytest.mark.asyncio
async def test_profile_and_forget_commands(service):
    assert await service.name_memory_reply(1, "/profil") == "Je n ai pas de prenom en memoire."
    await service.set_first_name(1, "Lea")
    assert await service.name_memory_reply(1, "profil") == "Ton prenom en memoire: Lea."

    await service.name_memory_reply(1, "je m'appelle Max")
    assert await service.name_memory_reply(1, "oublie moi") == "Ok, j oublie ton prenom."
    assert await service.get_first_name(1) == ""
    assert service.pending_name(1) is None


@pytest.mark.asyncio
async def test_regular_text_is_not_handled(service):
    assert await service.name_memory_reply(1, "Quelle heure est-il ?") is None


@pytest.mark.asyncio
async def test_name_memory_disabled(config):
    config["NAME_MEMORY_ENABLED"] = False
    service = ProfileService(ProfileStore(), config)
    assert await service.name_memory_reply(1, "je m'appelle Lea") is None
    await service.set_first_name(1, "Lea")
    assert await service.global_context(1) == ""


@pytest.mark.asyncio
async def test_creator_profile_seeded_once(config):
    config["CREATOR_USER_ID"] = "42"
    config["CREATOR_TITLE"] = "maman"
    store = ProfileStore(client=FakeRedis())
    service = ProfileService(store, config)

    await service.ensure_creator_profile()
    assert await store.get(CREATOR_ID_KEY) == "42"
    assert await store.get(CREATOR_TITLE_KEY) == "maman"

    await store.set(CREATOR_ID_KEY, "7")
    await service.ensure_creator_profile()
    assert await store.get(CREATOR_ID_KEY) == "7"


@pytest.mark.asyncio
async def test_creator_reply(config):
    config["CREATOR_USER_ID"] = "42"
    config["CREATOR_TITLE"] = "creatrice"
    service = ProfileService(ProfileStore(), config)
    await service.ensure_creator_profile()

    assert await service.creator_reply("qui t a cree ?") == "Ma creatrice, c est <@42>."
    assert await service.creator_reply("bonjour") is None


@pytest.mark.asyncio
async def test_creator_reply_without_creator(service):
    assert await service.creator_reply("qui t a cree ?") is None


@pytest.mark.asyncio
async def test_redis_failures_read_as_absent(config):
    config["CREATOR_USER_ID"] = "42"
    store = ProfileStore(client=FakeRedis(fail=True))
    service = ProfileService(store, config)

    assert store.backend == "redis"
    assert await store.get("any") is None
    assert await store.set("any", "v") is False
    assert await store.delete("any") is False
    assert await service.global_context(1) == ""
    # Creator falls back to configuration
    assert await service.creator_reply("who is your creator") == "Ma maman, c est <@42>."


@pytest.mark.asyncio
async def test_memory_backend_and_close():
    store = ProfileStore()
    assert store.backend == "memory"
    await store.connect()
    await store.set("k", "v")
    assert await store.get("k") == "v"
    await store.delete("k")
    assert await store.get("k") is None

    fake = FakeRedis()
    redis_store = ProfileStore(client=fake)
    await redis_store.close()
    assert fake.closed
