"""
Base Backend Adapter Interface

Abstract base classes defining the call contract for generation backends.
Every text backend answers `generate(...)` with a trimmed string; every image
backend answers `generate_image(...)` with a hosted URL, a data URI, or "".
"""

from abc import ABC, abstractmethod
from typing import Any, Dict, Optional

from myra.exceptions import TransportError
from myra.http_client import SharedHttpClient
from myra.types import Provider
from myra.utils.logging import get_logger

DEFAULT_TEMPERATURE = 0.4


class BaseBackendAdapter(ABC):
    """
    Abstract base class for text generation backends

    Adapters own only the wire mapping: request body shape, auth header
    placement and the JSON path of the completion. Transport failures are
    raised as TransportError by the shared client or by the adapter.
    """

    provider: Provider
    temperature: Optional[float] = DEFAULT_TEMPERATURE

    def __init__(self, http: SharedHttpClient):
        self.http = http
        self.logger = get_logger(f"myra.backends.{self.provider.value}")

    @abstractmethod
    async def generate(
        self,
        api_key: str,
        model: str,
        system_prompt: str,
        user_prompt: str,
        max_output_tokens: int,
    ) -> str:
        """
        Generate a completion for one system/user prompt pair

        Returns:
            The trimmed completion text, or "" if the backend returned nothing usable

        Raises:
            TransportError: On timeout or non-success HTTP status
        """
        pass

    async def _post_json(self, url: str, **kwargs) -> Dict[str, Any]:
        """POST through the shared client, tagging failures with this provider."""
        try:
            return await self.http.fetch_json("POST", url, **kwargs)
        except TransportError as e:
            e.provider = self.provider.value
            raise

    def _log_request_start(self, model: str, max_output_tokens: int) -> None:
        self.logger.debug(
            f"[{self.provider.value}] Sending request (model={model})",
            extra={
                "event": "backend.request.start",
                "provider": self.provider.value,
                "detail": {"model": model, "max_output_tokens": max_output_tokens},
            },
        )

    def _log_request_complete(self, model: str, text: str) -> None:
        self.logger.debug(
            f"[{self.provider.value}] ✅ Completion received ({len(text)} chars)",
            extra={
                "event": "backend.request.complete",
                "provider": self.provider.value,
                "detail": {"model": model, "chars": len(text), "empty": not text},
            },
        )


class BaseImageAdapter(ABC):
    """Abstract base class for image generation backends"""

    name: str

    def __init__(self, http: SharedHttpClient):
        self.http = http
        self.logger = get_logger(f"myra.backends.{self.name}")

    @abstractmethod
    async def generate_image(self, api_key: str, model: str, prompt: str) -> str:
        """
        Generate one image for `prompt`

        Returns:
            A hosted URL, a `data:image/<subtype>;base64,` URI, or "" if no image came back
        """
        pass
