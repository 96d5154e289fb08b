"""
Google Gemini generateContent adapter.

Gemini is also the multimodal backend: `generate_with_parts` takes an ordered
list of text, inline-binary and file-reference parts for image, video and
YouTube analysis.
"""

from typing import Any, Dict, List, Optional, Sequence

from myra.types import ContentPart, Provider

from .base import BaseBackendAdapter

GEMINI_URL = "https://generativelanguage.googleapis.com/v1beta/models/{model}:generateContent"


def part_to_wire(part: ContentPart) -> Dict[str, Any]:
    """Render a ContentPart in Gemini's part shape."""
    if part.file_uri is not None:
        return {"file_data": {"file_uri": part.file_uri}}
    if part.inline_data is not None:
        return {"inline_data": {"data": part.inline_data, "mime_type": part.mime_type}}
    return {"text": part.text or ""}


class GeminiAdapter(BaseBackendAdapter):
    provider = Provider.GEMINI

    async def generate(
        self,
        api_key: str,
        model: str,
        system_prompt: str,
        user_prompt: str,
        max_output_tokens: int,
    ) -> str:
        # No system role on this endpoint; the instruction rides in the user turn
        parts = [ContentPart.from_text(f"{system_prompt}\n\nUser: {user_prompt}")]
        return await self.generate_with_parts(api_key, model, parts, max_output_tokens)

    async def generate_with_parts(
        self,
        api_key: str,
        model: str,
        parts: Sequence[ContentPart],
        max_output_tokens: int,
        temperature: Optional[float] = None,
    ) -> str:
        body = {
            "contents": [
                {
                    "role": "user",
                    "parts": [part_to_wire(p) for p in parts],
                }
            ],
            "generationConfig": {
                "maxOutputTokens": max_output_tokens,
                "temperature": self.temperature if temperature is None else temperature,
            },
        }

        self._log_request_start(model, max_output_tokens)
        data = await self._post_json(
            GEMINI_URL.format(model=model),
            params={"key": api_key},
            json=body,
            headers={"Content-Type": "application/json"},
        )

        text = _candidate_text(data)
        self._log_request_complete(model, text)
        return text


def _candidate_text(data: Dict[str, Any]) -> str:
    candidates: List[Dict[str, Any]] = data.get("candidates") or []
    if not candidates:
        return ""
    parts = (candidates[0].get("content") or {}).get("parts") or []
    if not parts:
        return ""
    return (parts[0].get("text") or "").strip()
