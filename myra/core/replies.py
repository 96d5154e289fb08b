"""
Reply delivery to Discord.

A reply is either plain text or an inline image encoded as
`data:image/(png|jpeg|webp);base64,<payload>`, which is decoded and sent as
an `image.<ext>` attachment.
"""

import base64
import binascii
import io
import re
from typing import Optional, Tuple

import discord

from myra.utils.logging import get_logger

logger = get_logger(__name__)

PROCESSING_NOTICE = "Je traite..."
IMAGE_MEMORY_NOTE = "Image generee."

_DATA_URI_RE = re.compile(r"^data:image/(png|jpeg|webp);base64,(.+)$", re.IGNORECASE | re.DOTALL)


def parse_image_data_uri(reply: str) -> Optional[Tuple[str, bytes]]:
    """Return (extension, bytes) for an image data URI, else None."""
    match = _DATA_URI_RE.match((reply or "").strip())
    if not match:
        return None
    subtype = match.group(1).lower()
    extension = "jpg" if subtype == "jpeg" else subtype
    try:
        data = base64.b64decode(match.group(2), validate=False)
    except (binascii.Error, ValueError):
        return None
    return extension, data


def memory_text(reply: str) -> str:
    """Text to keep in conversation memory; inline images are replaced by a short note."""
    if _DATA_URI_RE.match((reply or "").strip()):
        return IMAGE_MEMORY_NOTE
    return reply


async def send_processing_notice(message: discord.Message) -> Optional[discord.Message]:
    """Post the placeholder; failure to post it is not fatal."""
    try:
        return await message.reply(PROCESSING_NOTICE)
    except discord.HTTPException as e:
        logger.warning(
            f"Processing notice failed: {e}",
            extra={"subsys": "discord", "event": "reply.notice_failed"},
        )
        return None


async def send_reply(
    message: discord.Message,
    reply: str,
    placeholder: Optional[discord.Message] = None,
) -> None:
    trimmed = str(reply or "").strip()
    if not trimmed:
        return

    image = parse_image_data_uri(trimmed)
    if image is None:
        if placeholder is not None:
            await placeholder.edit(content=trimmed)
            return
        await message.reply(trimmed)
        return

    extension, data = image
    if placeholder is not None:
        await placeholder.delete()
    await message.reply(file=discord.File(io.BytesIO(data), filename=f"image.{extension}"))
    logger.debug(
        f"📎 Sent image attachment ({len(data)} bytes)",
        extra={"subsys": "discord", "event": "reply.image_sent", "msg_id": getattr(message, "id", None)},
    )
