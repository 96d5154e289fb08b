"""
Backend adapter registry.

One adapter class per Provider member; `build_adapters` refuses to return a
registry with a missing member, so routing can index it without a fallback.
"""

from typing import Dict, Type

from myra.http_client import SharedHttpClient
from myra.types import Provider

from .anthropic_adapter import ClaudeAdapter
from .base import BaseBackendAdapter, BaseImageAdapter
from .gemini_adapter import GeminiAdapter
from .image_adapters import OpenAIImageAdapter, StabilityImageAdapter
from .openai_compat import GrokAdapter, MistralAdapter, OpenAIAdapter, PerplexityAdapter

ADAPTER_CLASSES: Dict[Provider, Type[BaseBackendAdapter]] = {
    Provider.OPENAI: OpenAIAdapter,
    Provider.CLAUDE: ClaudeAdapter,
    Provider.GEMINI: GeminiAdapter,
    Provider.GROK: GrokAdapter,
    Provider.PERPLEXITY: PerplexityAdapter,
    Provider.MISTRAL: MistralAdapter,
}


def build_adapters(http: SharedHttpClient) -> Dict[Provider, BaseBackendAdapter]:
    """Instantiate one adapter per provider, sharing a single HTTP client."""
    missing = [p.value for p in Provider if p not in ADAPTER_CLASSES]
    if missing:
        raise RuntimeError(f"No backend adapter registered for: {', '.join(missing)}")
    return {provider: cls(http) for provider, cls in ADAPTER_CLASSES.items()}


__all__ = [
    "ADAPTER_CLASSES",
    "BaseBackendAdapter",
    "BaseImageAdapter",
    "ClaudeAdapter",
    "GeminiAdapter",
    "GrokAdapter",
    "MistralAdapter",
    "OpenAIAdapter",
    "OpenAIImageAdapter",
    "PerplexityAdapter",
    "StabilityImageAdapter",
    "build_adapters",
]
