"""
Reply engine - the call contract the Discord layer talks to. [CA]

    route_message(text)                        -> RouteDecision
    classify_media(text, attachments)          -> MediaInput | None
    generate_reply(provider, text, task, ctx)  -> str
    generate_media_reply(text, media, ctx)     -> str

Transport errors from text backends propagate to the caller; missing keys
and oversized media are answered with fixed sentences instead.
"""

import base64
from typing import Any, Dict, Iterable, Optional, Union

from .backends import (
    BaseBackendAdapter,
    BaseImageAdapter,
    OpenAIImageAdapter,
    StabilityImageAdapter,
    build_adapters,
)
from .config import provider_config
from .http_client import SharedHttpClient
from .image import ImageFallbackChain
from .media import MAX_INLINE_BYTES, classify_media, normalize_media_prompt, resolve_mime_type
from .postprocess import post_process
from .prompts import build_context_prompt, get_system_prompt
from .router import DEFAULT_PROVIDER, Router, is_image_prompt
from .types import ContentPart, MediaInput, MediaType, Provider, RouteDecision, Task
from .utils.logging import get_logger

logger = get_logger(__name__)

REPLY_MAX_OUTPUT_TOKENS = 512

NO_MULTIMODAL_KEY_MESSAGE = "Je ne peux pas analyser sans cle Gemini."
VIDEO_TOO_LARGE_MESSAGE = "Video trop lourde. Envoie un extrait plus court ou un lien YouTube."
IMAGE_TOO_LARGE_MESSAGE = "Image trop lourde. Envoie une version plus legere."
NO_TEXT_KEY_MESSAGE = "Je ne peux pas repondre sans cle API pour {provider}."


class ReplyEngine:
    """Wires the router, adapters, image chain and post-processing together."""

    def __init__(
        self,
        config: Dict[str, Any],
        http: Optional[SharedHttpClient] = None,
        adapters: Optional[Dict[Provider, BaseBackendAdapter]] = None,
        primary_image: Optional[BaseImageAdapter] = None,
        secondary_image: Optional[BaseImageAdapter] = None,
        system_prompt_override: Optional[str] = None,
    ):
        self.config = config
        self.http = http if http is not None else SharedHttpClient()
        self.adapters = adapters if adapters is not None else build_adapters(self.http)
        self.router = Router(config, self.adapters)
        self.image_chain = ImageFallbackChain(
            config,
            primary=primary_image if primary_image is not None else OpenAIImageAdapter(self.http),
            secondary=secondary_image if secondary_image is not None else StabilityImageAdapter(self.http),
        )
        self.system_prompt = get_system_prompt(config.get("ASSISTANT_NAME"), system_prompt_override)

    async def close(self) -> None:
        await self.http.stop()

    @property
    def max_sentences(self) -> int:
        return self.config.get("MAX_REPLY_SENTENCES") or 4

    async def route_message(self, text: str) -> RouteDecision:
        return await self.router.route(text)

    def classify_media(self, text: Optional[str], attachments: Optional[Iterable[Any]]) -> Optional[MediaInput]:
        return classify_media(text, attachments)

    async def generate_reply(
        self,
        provider: Union[Provider, str],
        text: str,
        task: Optional[Task] = None,
        context: str = "",
    ) -> str:
        selected = Provider.parse(provider) or DEFAULT_PROVIDER

        if task == Task.IMAGE or (selected == Provider.OPENAI and is_image_prompt(text)):
            return await self.image_chain.generate(text)

        settings = provider_config(selected, self.config, task)
        if not settings.is_configured:
            logger.warning(
                f"⚠️  No API key/model configured for {selected.value}",
                extra={"subsys": "engine", "event": "engine.provider_unconfigured", "provider": selected.value},
            )
            return NO_TEXT_KEY_MESSAGE.format(provider=selected.value)

        raw = await self.adapters[selected].generate(
            api_key=settings.api_key,
            model=settings.model,
            system_prompt=self.system_prompt,
            user_prompt=build_context_prompt(context, text),
            max_output_tokens=REPLY_MAX_OUTPUT_TOKENS,
        )
        return post_process(raw, self.max_sentences)

    async def generate_media_reply(
        self,
        text: Optional[str],
        media: Optional[MediaInput],
        context: str = "",
    ) -> str:
        if media is None:
            return ""

        settings = provider_config(Provider.GEMINI, self.config)
        if not settings.is_configured:
            return NO_MULTIMODAL_KEY_MESSAGE

        user_text = normalize_media_prompt(text, media)
        prompt_text = f"{self.system_prompt}\n\n{build_context_prompt(context, user_text)}"

        if media.type == MediaType.YOUTUBE:
            media_part = ContentPart.from_uri(media.url)
        else:
            fetched = await self.http.fetch_binary(media.attachment.url, max_bytes=MAX_INLINE_BYTES)
            if fetched.size_bytes > MAX_INLINE_BYTES:
                logger.info(
                    f"📦 {media.type.value} too large ({fetched.size_bytes} bytes), not uploading",
                    extra={"subsys": "media", "event": "media.too_large"},
                )
                if media.type == MediaType.VIDEO:
                    return VIDEO_TOO_LARGE_MESSAGE
                return IMAGE_TOO_LARGE_MESSAGE

            mime_type = resolve_mime_type(media.attachment, fetched.content_type, media.type)
            media_part = ContentPart.from_bytes(
                base64.b64encode(fetched.data).decode("ascii"), mime_type
            )

        logger.info(
            f"🎞️ Analyzing {media.type.value} with gemini",
            extra={"subsys": "media", "event": "media.analyze", "provider": Provider.GEMINI.value},
        )
        raw = await self.adapters[Provider.GEMINI].generate_with_parts(
            api_key=settings.api_key,
            model=settings.model,
            parts=[media_part, ContentPart.from_text(prompt_text)],
            max_output_tokens=REPLY_MAX_OUTPUT_TOKENS,
        )
        return post_process(raw, self.max_sentences)
