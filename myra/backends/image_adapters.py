"""
Image generation adapters.

OpenAI images is the primary backend and may answer with a hosted URL;
Stability AI is the secondary backend and always answers with base64 PNG.
Both return data URIs for inline payloads so callers handle one shape.
"""

import httpx
import openai

from myra.exceptions import TransportError
from myra.http_client import REQUEST_TIMEOUT_SECONDS

from .base import BaseImageAdapter
from .openai_compat import translate_openai_error

STABILITY_URL = "https://api.stability.ai/v2beta/stable-image/generate/sd3"


def png_data_uri(b64_payload: str) -> str:
    return f"data:image/png;base64,{b64_payload}"


class OpenAIImageAdapter(BaseImageAdapter):
    name = "openai_image"
    base_url = "https://api.openai.com/v1"

    async def generate_image(self, api_key: str, model: str, prompt: str) -> str:
        await self.http.start()
        client = openai.AsyncOpenAI(
            api_key=api_key,
            base_url=self.base_url,
            timeout=httpx.Timeout(REQUEST_TIMEOUT_SECONDS),
            max_retries=0,
            http_client=self.http.client,
        )

        self.logger.debug(f"[openai_image] Generating image (model={model})")
        try:
            response = await client.images.generate(
                model=model,
                prompt=prompt,
                size="1024x1024",
                response_format="url",
            )
        except openai.APIError as e:
            raise translate_openai_error(e, self.name) from e

        data = getattr(response, "data", None) or []
        if not data:
            return ""
        image = data[0]
        if getattr(image, "url", None):
            return image.url
        if getattr(image, "b64_json", None):
            return png_data_uri(image.b64_json)
        return ""


class StabilityImageAdapter(BaseImageAdapter):
    name = "stability"

    async def generate_image(self, api_key: str, model: str, prompt: str) -> str:
        # Stability only accepts multipart/form-data; (None, value) sends plain fields
        form = {
            "prompt": (None, prompt),
            "model": (None, model),
            "output_format": (None, "png"),
        }
        headers = {
            "Authorization": f"Bearer {api_key}",
            "Accept": "application/json",
        }

        self.logger.debug(f"[stability] Generating image (model={model})")
        try:
            data = await self.http.fetch_json("POST", STABILITY_URL, files=form, headers=headers)
        except TransportError as e:
            e.provider = self.name
            raise

        nested = data.get("data") or []
        image = (
            data.get("image")
            or (nested[0].get("b64_json") if nested and isinstance(nested[0], dict) else None)
            or data.get("b64_json")
        )
        if not image:
            return ""
        return png_data_uri(image)
