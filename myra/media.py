"""
Media classification for incoming messages.

A message yields at most one analyzable media item. Precedence is fixed:
video attachment, then a YouTube link in the text, then image attachment.
"""

import re
from typing import Any, Iterable, Optional

from .types import Attachment, MediaInput, MediaType

MAX_INLINE_BYTES = 20 * 1024 * 1024

IMAGE_EXTENSIONS = frozenset({"png", "jpg", "jpeg", "gif", "webp", "bmp", "tiff"})
VIDEO_EXTENSIONS = frozenset({"mp4", "mpeg", "mpg", "mov", "avi", "webm", "wmv", "flv", "3gp"})

VIDEO_MIME_BY_EXTENSION = {
    "webm": "video/webm",
    "mov": "video/mov",
    "avi": "video/avi",
    "mpeg": "video/mpeg",
    "mpg": "video/mpeg",
    "wmv": "video/wmv",
    "flv": "video/x-flv",
    "3gp": "video/3gpp",
}
IMAGE_MIME_BY_EXTENSION = {
    "gif": "image/gif",
    "webp": "image/webp",
    "bmp": "image/bmp",
    "tiff": "image/tiff",
    "png": "image/png",
}
DEFAULT_VIDEO_MIME = "video/mp4"
DEFAULT_IMAGE_MIME = "image/jpeg"

DEFAULT_MEDIA_PROMPT = "Decris ce contenu."

_YOUTUBE_RE = re.compile(
    r"(https?://(?:www\.|m\.)?(?:youtube\.com/(?:watch\?v=|shorts/)[^\s&]+|youtu\.be/[^\s&]+))",
    re.IGNORECASE,
)
_EXTENSION_RE = re.compile(r"\.([a-z0-9]+)$")


def get_file_extension(filename: Optional[str]) -> str:
    match = _EXTENSION_RE.search(str(filename or "").lower())
    return match.group(1) if match else ""


def _attachment_mime(attachment: Any) -> str:
    return str(getattr(attachment, "content_type", None) or "").lower()


def _attachment_name(attachment: Any) -> str:
    return getattr(attachment, "filename", None) or getattr(attachment, "name", None) or ""


def is_video_attachment(attachment: Any) -> bool:
    if _attachment_mime(attachment).startswith("video/"):
        return True
    return get_file_extension(_attachment_name(attachment)) in VIDEO_EXTENSIONS


def is_image_attachment(attachment: Any) -> bool:
    if _attachment_mime(attachment).startswith("image/"):
        return True
    return get_file_extension(_attachment_name(attachment)) in IMAGE_EXTENSIONS


def find_youtube_url(text: Optional[str]) -> str:
    match = _YOUTUBE_RE.search(str(text or ""))
    return match.group(1) if match else ""


def classify_media(text: Optional[str], attachments: Optional[Iterable[Attachment]]) -> Optional[MediaInput]:
    """Return the single media item to analyze, or None for the text path."""
    items = list(attachments or [])

    video = next((a for a in items if is_video_attachment(a)), None)
    if video is not None:
        return MediaInput(type=MediaType.VIDEO, attachment=video)

    youtube_url = find_youtube_url(text)
    if youtube_url:
        return MediaInput(type=MediaType.YOUTUBE, url=youtube_url)

    image = next((a for a in items if is_image_attachment(a)), None)
    if image is not None:
        return MediaInput(type=MediaType.IMAGE, attachment=image)

    return None


def resolve_mime_type(attachment: Attachment, fallback_mime: Optional[str], media_type: MediaType) -> str:
    """Declared type, then response content-type, then extension table, then default."""
    mime = (_attachment_mime(attachment) or str(fallback_mime or "")).split(";")[0].strip().lower()
    if mime:
        return mime

    ext = get_file_extension(_attachment_name(attachment))
    if media_type == MediaType.VIDEO:
        return VIDEO_MIME_BY_EXTENSION.get(ext, DEFAULT_VIDEO_MIME)
    return IMAGE_MIME_BY_EXTENSION.get(ext, DEFAULT_IMAGE_MIME)


def normalize_media_prompt(text: Optional[str], media: MediaInput) -> str:
    """User text with the media URL removed; a generic instruction if nothing is left."""
    raw = str(text or "").strip()
    cleaned = raw.replace(media.url, "", 1).strip() if media.url else raw
    return cleaned or DEFAULT_MEDIA_PROMPT
