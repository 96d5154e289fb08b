"""
OpenAI-compatible chat backends - OpenAI, xAI Grok, Perplexity and Mistral.

All four speak the chat completions protocol with a bearer token, so they
share one adapter driven by the official openai SDK and differ only by base
URL and tuning.
"""

from typing import Optional

import httpx
import openai

from myra.exceptions import TransportError
from myra.http_client import REQUEST_TIMEOUT_SECONDS, extract_error_message
from myra.types import Provider

from .base import BaseBackendAdapter


def translate_openai_error(error: openai.APIError, provider: str) -> TransportError:
    """Map an SDK exception onto TransportError with the best message available."""
    if isinstance(error, openai.APITimeoutError):
        return TransportError(
            f"Request timed out after {REQUEST_TIMEOUT_SECONDS:.0f}s", provider=provider
        )
    if isinstance(error, openai.APIStatusError):
        raw = error.response.text if error.response is not None else ""
        return TransportError(
            extract_error_message(error.body, raw),
            provider=provider,
            status=error.status_code,
        )
    return TransportError(str(error) or "Request failed", provider=provider)


class OpenAICompatibleAdapter(BaseBackendAdapter):
    """Chat completions adapter; subclasses pin the endpoint. [CA]"""

    base_url: str
    token_param: str = "max_tokens"

    async def _get_client(self, api_key: str) -> openai.AsyncOpenAI:
        await self.http.start()
        return openai.AsyncOpenAI(
            api_key=api_key,
            base_url=self.base_url,
            timeout=httpx.Timeout(REQUEST_TIMEOUT_SECONDS),
            max_retries=0,  # No retries in the core; the caller decides
            http_client=self.http.client,
        )

    async def generate(
        self,
        api_key: str,
        model: str,
        system_prompt: str,
        user_prompt: str,
        max_output_tokens: int,
    ) -> str:
        client = await self._get_client(api_key)
        params = {
            "model": model,
            "messages": [
                {"role": "system", "content": system_prompt},
                {"role": "user", "content": user_prompt},
            ],
            self.token_param: max_output_tokens,
        }
        if self.temperature is not None:
            params["temperature"] = self.temperature

        self._log_request_start(model, max_output_tokens)
        try:
            response = await client.chat.completions.create(**params)
        except openai.APIError as e:
            raise translate_openai_error(e, self.provider.value) from e

        text = _first_choice_text(response)
        self._log_request_complete(model, text)
        return text


def _first_choice_text(response) -> str:
    choices = getattr(response, "choices", None) or []
    if not choices:
        return ""
    message = getattr(choices[0], "message", None)
    content: Optional[str] = getattr(message, "content", None)
    return content.strip() if content else ""


class OpenAIAdapter(OpenAICompatibleAdapter):
    provider = Provider.OPENAI
    base_url = "https://api.openai.com/v1"
    # Current OpenAI chat models only accept their default temperature
    temperature = None
    token_param = "max_completion_tokens"


class GrokAdapter(OpenAICompatibleAdapter):
    provider = Provider.GROK
    base_url = "https://api.x.ai/v1"


class PerplexityAdapter(OpenAICompatibleAdapter):
    provider = Provider.PERPLEXITY
    base_url = "https://api.perplexity.ai"
    temperature = 0.3


class MistralAdapter(OpenAICompatibleAdapter):
    provider = Provider.MISTRAL
    base_url = "https://api.mistral.ai/v1"
