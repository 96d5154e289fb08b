"""
Image generation with a two-step fallback chain. [REH]

The primary backend (OpenAI images) is tried when configured; whether it
failed or was never configured, the secondary backend (Stability AI) gets
one silent attempt. Only when both come back empty does the user see a
failure sentence.
"""

from typing import Any, Dict, Optional

from .backends import BaseImageAdapter
from .config import DEFAULT_OPENAI_IMAGE_MODEL, DEFAULT_STABILITY_MODEL
from .utils.logging import get_logger

logger = get_logger(__name__)

IMAGE_FAILED_MESSAGE = "Je n ai pas pu generer l image."
IMAGE_POINTER_TEMPLATE = "Voici l image : {url}"

_CREDIT_TERMS = ("credit", "insufficient", "balance")


def is_credit_error(error: Any) -> bool:
    """Heuristic: does this failure look like exhausted credits? Diagnostic only."""
    message = str(getattr(error, "message", None) or error or "").lower()
    return any(term in message for term in _CREDIT_TERMS)


def format_image_reply(image: str) -> str:
    """Data URIs pass through for the sender to decode; URLs get a pointer sentence."""
    if image.startswith("data:image/"):
        return image
    return IMAGE_POINTER_TEMPLATE.format(url=image)


class ImageFallbackChain:
    """Primary then secondary image backend, each attempted at most once."""

    def __init__(
        self,
        config: Dict[str, Any],
        primary: BaseImageAdapter,
        secondary: BaseImageAdapter,
    ):
        self.config = config
        self.primary = primary
        self.secondary = secondary

    async def generate(self, prompt: str) -> str:
        image = ""
        primary_key = self.config.get("OPENAI_API_KEY")
        if primary_key:
            image = await self._attempt(
                self.primary,
                primary_key,
                self.config.get("OPENAI_IMAGE_MODEL") or DEFAULT_OPENAI_IMAGE_MODEL,
                prompt,
            )

        if not image:
            image = await self._attempt_secondary(prompt)

        if not image:
            logger.warning(
                "❌ No image backend produced an image",
                extra={"subsys": "image", "event": "image.chain.exhausted"},
            )
            return IMAGE_FAILED_MESSAGE

        return format_image_reply(image)

    async def _attempt_secondary(self, prompt: str) -> str:
        secondary_key = self.config.get("STABILITY_API_KEY")
        if not secondary_key:
            return ""
        return await self._attempt(
            self.secondary,
            secondary_key,
            self.config.get("STABILITY_MODEL") or DEFAULT_STABILITY_MODEL,
            prompt,
        )

    async def _attempt(
        self, adapter: BaseImageAdapter, api_key: str, model: str, prompt: str
    ) -> str:
        error: Optional[Exception] = None
        try:
            image = await adapter.generate_image(api_key=api_key, model=model, prompt=prompt)
        except Exception as e:
            error = e
            image = ""

        if image:
            logger.info(
                f"🎨 Image generated by {adapter.name}",
                extra={"subsys": "image", "event": "image.generated", "provider": adapter.name},
            )
            return image

        logger.warning(
            f"⚠️  {adapter.name} image error: {error if error is not None else 'empty result'}",
            extra={
                "subsys": "image",
                "event": "image.attempt_failed",
                "provider": adapter.name,
                "detail": {"error_type": type(error).__name__ if error else None},
            },
        )
        if error is not None and is_credit_error(error):
            logger.warning(
                f"⚠️  {adapter.name} credits may be exhausted",
                extra={"subsys": "image", "event": "image.credit_exhausted", "provider": adapter.name},
            )
        return ""
