"""
User profile store and the conversational name-memory flow.

Profiles live in Redis when REDIS_URL is set, otherwise in a process-local
dict. Store failures are logged and read as "absent"; a broken Redis never
breaks a reply.

Keys:
    myra:profile:first_name:<user_id>
    myra:profile:creator_id
    myra:profile:creator_title
"""

import re
from dataclasses import dataclass
from typing import Any, Dict, Optional

import redis.asyncio as redis

from .utils.logging import get_logger

logger = get_logger(__name__)

KEY_PREFIX = "myra:profile:"
FIRST_NAME_KEY = KEY_PREFIX + "first_name:{user_id}"
CREATOR_ID_KEY = KEY_PREFIX + "creator_id"
CREATOR_TITLE_KEY = KEY_PREFIX + "creator_title"

DEFAULT_CREATOR_TITLE = "maman"

_CREATOR_QUESTION_RE = re.compile(
    r"(qui.*(cree|creer|createur|creatrice)|maman|creator|created you)", re.IGNORECASE
)
_FORGET_RE = re.compile(r"(oublie[- ]moi|oublie moi|forget me)", re.IGNORECASE)
_PROFILE_RE = re.compile(r"^(/profil|profil|profile)$", re.IGNORECASE)
_YES_NO_RE = re.compile(r"^(oui|non|yes|no)$", re.IGNORECASE)
_YES_RE = re.compile(r"^(oui|yes)$", re.IGNORECASE)
# Letters (any script), apostrophes and hyphens
_FIRST_NAME_RE = re.compile(
    r"(?:je m'appelle|mon prenom est|appelle-moi)\s+((?:[^\W\d_]|['-]){2,30})",
    re.IGNORECASE,
)


def is_creator_question(text: str) -> bool:
    return bool(_CREATOR_QUESTION_RE.search(text or ""))


def is_forget_command(text: str) -> bool:
    return bool(_FORGET_RE.search(text or ""))


def is_profile_command(text: str) -> bool:
    return bool(_PROFILE_RE.match((text or "").strip()))


def is_yes_no(text: str) -> bool:
    return bool(_YES_NO_RE.match((text or "").strip()))


def is_yes(text: str) -> bool:
    return bool(_YES_RE.match((text or "").strip()))


def extract_first_name(text: str) -> str:
    match = _FIRST_NAME_RE.search(text or "")
    return match.group(1).strip() if match else ""


@dataclass(frozen=True)
class CreatorProfile:
    user_id: str
    title: str = DEFAULT_CREATOR_TITLE

    @property
    def mention(self) -> str:
        return f"<@{self.user_id}>"


class ProfileStore:
    """
    Async key/value store for profile fields.

    Usage:
        store = ProfileStore("redis://localhost:6379/0")
        await store.connect()
        await store.set("myra:profile:first_name:42", "Lea")
        name = await store.get("myra:profile:first_name:42")
    """

    def __init__(self, redis_url: str = "", client: Optional[Any] = None):
        self.redis_url = redis_url
        self._redis = client
        self._local: Dict[str, str] = {}

    @property
    def backend(self) -> str:
        return "redis" if (self.redis_url or self._redis is not None) else "memory"

    async def connect(self) -> None:
        """Connect to Redis if configured. A failed ping keeps the client; calls will log."""
        if self._redis is not None or not self.redis_url:
            return

        self._redis = redis.from_url(self.redis_url, encoding="utf-8", decode_responses=True)
        try:
            await self._redis.ping()
            logger.info(
                "✅ Connected to Redis profile store",
                extra={"subsys": "profiles", "event": "profiles.connected"},
            )
        except Exception as e:
            logger.error(
                f"❌ Redis connection failed: {e}",
                extra={"subsys": "profiles", "event": "profiles.connect_failed"},
            )

    async def close(self) -> None:
        if self._redis is not None:
            await self._redis.aclose()
            self._redis = None

    async def get(self, key: str) -> Optional[str]:
        if self.backend == "memory":
            return self._local.get(key)
        try:
            value = await self._redis.get(key)
        except Exception as e:
            self._log_failure("get", key, e)
            return None
        return value or None

    async def set(self, key: str, value: str) -> bool:
        if self.backend == "memory":
            self._local[key] = value
            return True
        try:
            await self._redis.set(key, value)
            return True
        except Exception as e:
            self._log_failure("set", key, e)
            return False

    async def delete(self, key: str) -> bool:
        if self.backend == "memory":
            self._local.pop(key, None)
            return True
        try:
            await self._redis.delete(key)
            return True
        except Exception as e:
            self._log_failure("delete", key, e)
            return False

    def _log_failure(self, op: str, key: str, error: Exception) -> None:
        logger.error(
            f"Redis {op} failed: {error}",
            extra={
                "subsys": "profiles",
                "event": f"profiles.{op}_failed",
                "detail": {"key": key, "error_type": type(error).__name__},
            },
        )


class ProfileService:
    """First-name memory and the creator profile on top of a ProfileStore."""

    def __init__(self, store: ProfileStore, config: Dict[str, Any]):
        self.store = store
        self.name_memory_enabled = bool(config.get("NAME_MEMORY_ENABLED", True))
        self.creator_user_id = str(config.get("CREATOR_USER_ID") or "")
        self.creator_title = config.get("CREATOR_TITLE") or DEFAULT_CREATOR_TITLE
        # user_id -> candidate first name awaiting oui/non
        self._pending: Dict[str, str] = {}

    async def get_first_name(self, user_id) -> str:
        return await self.store.get(FIRST_NAME_KEY.format(user_id=user_id)) or ""

    async def set_first_name(self, user_id, first_name: str) -> None:
        await self.store.set(FIRST_NAME_KEY.format(user_id=user_id), first_name)

    async def delete_first_name(self, user_id) -> None:
        await self.store.delete(FIRST_NAME_KEY.format(user_id=user_id))

    async def global_context(self, user_id) -> str:
        """Profile facts injected ahead of conversation memory."""
        if not self.name_memory_enabled or not user_id:
            return ""
        first_name = await self.get_first_name(user_id)
        if not first_name:
            return ""
        return f"Prenom utilisateur: {first_name}."

    async def ensure_creator_profile(self) -> None:
        """Seed the creator profile from configuration unless one is stored."""
        if not self.creator_user_id:
            return
        if await self.store.get(CREATOR_ID_KEY):
            return
        await self.store.set(CREATOR_ID_KEY, self.creator_user_id)
        await self.store.set(CREATOR_TITLE_KEY, self.creator_title)
        logger.info(
            "👤 Creator profile seeded",
            extra={"subsys": "profiles", "event": "profiles.creator_seeded"},
        )

    async def get_creator_profile(self) -> Optional[CreatorProfile]:
        user_id = await self.store.get(CREATOR_ID_KEY) or self.creator_user_id
        if not user_id:
            return None
        title = await self.store.get(CREATOR_TITLE_KEY) or self.creator_title
        return CreatorProfile(user_id=str(user_id), title=title)

    async def creator_reply(self, text: str) -> Optional[str]:
        """Answer "who made you" questions, or None if `text` is not one."""
        creator = await self.get_creator_profile()
        if creator is None or not is_creator_question(text):
            return None
        return f"Ma {creator.title}, c est {creator.mention}."

    async def name_memory_reply(self, user_id, text: str) -> Optional[str]:
        """
        Run one step of the name-memory dialogue.

        Returns the reply to send, or None when the message is not a
        name-memory command and should go through the normal reply path.
        """
        if not self.name_memory_enabled or not user_id:
            return None
        user_key = str(user_id)
        lower = (text or "").lower()

        if is_profile_command(lower):
            first_name = await self.get_first_name(user_key)
            if first_name:
                return f"Ton prenom en memoire: {first_name}."
            return "Je n ai pas de prenom en memoire."

        if is_forget_command(lower):
            await self.delete_first_name(user_key)
            self._pending.pop(user_key, None)
            return "Ok, j oublie ton prenom."

        pending = self._pending.get(user_key)
        if pending and is_yes_no(lower):
            self._pending.pop(user_key, None)
            if is_yes(lower):
                await self.set_first_name(user_key, pending)
                return f"Ok, je retiens: {pending}."
            return "Ok, je ne retiens rien."

        candidate = extract_first_name(text)
        if candidate:
            self._pending[user_key] = candidate
            return f"Tu veux que je retienne que tu t appelles {candidate} ? Reponds oui ou non."

        return None

    def pending_name(self, user_id) -> Optional[str]:
        return self._pending.get(str(user_id))
