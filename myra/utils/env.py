"""Environment parsing helpers for consistent boolean/numeric handling. [IV]"""
from __future__ import annotations

import os
import re
from typing import Optional

_INLINE_COMMENT_RE = re.compile(r"(?:^|\s)#.*$")


def clean_env_value(value: Optional[str]) -> Optional[str]:
    """Strip an inline ` # comment` and surrounding whitespace from an env value.

    Only a `#` at the start or after whitespace opens a comment, so keys and
    names that contain `#` are kept whole.
    """
    if not value:
        return value
    return _INLINE_COMMENT_RE.sub("", value, count=1).strip()


def get_str(name: str, default: Optional[str] = None) -> Optional[str]:
    raw = clean_env_value(os.getenv(name))
    return raw if raw else default


def get_bool(name: str, default: bool = False) -> bool:
    """Parse a boolean env var with common truthy values."""
    raw = os.getenv(name)
    if raw is None:
        return default
    return clean_env_value(raw).lower() in {"1", "true", "yes", "on"}


def get_int(name: str, default: int) -> int:
    raw = clean_env_value(os.getenv(name))
    if not raw:
        return default
    try:
        return int(raw)
    except ValueError:
        return default

