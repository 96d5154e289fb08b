"""
Reply post-processing: strip emoji, collapse whitespace, cap sentence count.
"""
import re

# Pictographic blocks plus the variation selector, keycap combiner and ZWJ
_EMOJI_RE = re.compile(
    "["
    "\u00a9\u00ae\u203c\u2049\u2122\u2139"
    "\u2194-\u2199\u21a9\u21aa"
    "\u231a\u231b\u2328\u23cf\u23e9-\u23f3\u23f8-\u23fa"
    "\u24c2\u25aa\u25ab\u25b6\u25c0\u25fb-\u25fe"
    "\u2600-\u27bf"
    "\u2934\u2935"
    "\u2b05-\u2b07\u2b1b\u2b1c\u2b50\u2b55"
    "\u3030\u303d\u3297\u3299"
    "\ufe0f\u20e3\u200d"
    "\U0001f000-\U0001faff"
    "\U0001fc00-\U0001fffd"
    "]"
)
_WHITESPACE_RE = re.compile(r"\s+")
_SENTENCE_BOUNDARY_RE = re.compile(r"(?<=[.!?])\s+")

DEFAULT_MAX_SENTENCES = 4


def strip_emojis(text: str) -> str:
    return _EMOJI_RE.sub("", text)


def compact_whitespace(text: str) -> str:
    return _WHITESPACE_RE.sub(" ", text).strip()


def trim_sentences(text: str, max_sentences: int) -> str:
    """Keep the first `max_sentences` sentences; never splits inside one."""
    if not text:
        return text
    parts = _SENTENCE_BOUNDARY_RE.split(text)
    if len(parts) <= max_sentences:
        return text.strip()
    return " ".join(parts[:max_sentences]).strip()


def post_process(raw: str, max_sentences: int = DEFAULT_MAX_SENTENCES) -> str:
    cleaned = compact_whitespace(strip_emojis(raw or ""))
    return trim_sentences(cleaned, max_sentences or DEFAULT_MAX_SENTENCES)
