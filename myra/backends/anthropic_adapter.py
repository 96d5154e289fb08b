"""
Anthropic Messages API adapter (Claude).
"""

from myra.types import Provider

from .base import BaseBackendAdapter

ANTHROPIC_URL = "https://api.anthropic.com/v1/messages"
ANTHROPIC_VERSION = "2023-06-01"


class ClaudeAdapter(BaseBackendAdapter):
    provider = Provider.CLAUDE

    async def generate(
        self,
        api_key: str,
        model: str,
        system_prompt: str,
        user_prompt: str,
        max_output_tokens: int,
    ) -> str:
        body = {
            "model": model,
            "max_tokens": max_output_tokens,
            "temperature": self.temperature,
            "system": system_prompt,
            "messages": [{"role": "user", "content": user_prompt}],
        }
        headers = {
            "Content-Type": "application/json",
            "x-api-key": api_key,
            "anthropic-version": ANTHROPIC_VERSION,
        }

        self._log_request_start(model, max_output_tokens)
        data = await self._post_json(ANTHROPIC_URL, json=body, headers=headers)

        content = data.get("content") or []
        first = content[0] if content and isinstance(content[0], dict) else {}
        text = (first.get("text") or "").strip()
        self._log_request_complete(model, text)
        return text
