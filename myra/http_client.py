"""
Shared async HTTP client for backend calls and media downloads. [PA][RM]

Every request carries a fixed 30 second deadline. There are no retries at
this layer: a timeout or a non-success status becomes a TransportError that
carries the best message the server gave us.
"""

from __future__ import annotations

import json
import time
from typing import Any, Dict, Optional

import httpx

from .exceptions import TransportError
from .types import FetchedMedia
from .utils.logging import get_logger

logger = get_logger(__name__)

REQUEST_TIMEOUT_SECONDS = 30.0
GENERIC_FAILURE = "Request failed"


def extract_error_message(data: Any, raw: str) -> str:
    """Best-available error message: backend message, else raw body, else generic."""
    if isinstance(data, dict):
        error = data.get("error")
        if isinstance(error, dict) and error.get("message"):
            return str(error["message"])
        if isinstance(error, str) and error:
            return error
        if data.get("message"):
            return str(data["message"])
    return raw or GENERIC_FAILURE


class SharedHttpClient:
    """Shared async HTTP client owned by the bot for its whole lifetime. [PA][RM]"""

    def __init__(
        self,
        timeout: float = REQUEST_TIMEOUT_SECONDS,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.timeout = timeout
        self._transport = transport
        self.client: Optional[httpx.AsyncClient] = None

    async def __aenter__(self):
        await self.start()
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        await self.stop()

    async def start(self) -> None:
        if self.client is not None:
            return

        self.client = httpx.AsyncClient(
            timeout=httpx.Timeout(self.timeout),
            transport=self._transport,
            follow_redirects=True,
            headers={"User-Agent": "Myra-Discord-Bot/1.0"},
        )
        logger.debug("🌐 SharedHttpClient started")

    async def stop(self) -> None:
        if self.client is not None:
            await self.client.aclose()
            self.client = None
            logger.debug("🛑 SharedHttpClient stopped")

    async def request(self, method: str, url: str, **kwargs) -> httpx.Response:
        """Send one request under the deadline; transport failures become TransportError."""
        if self.client is None:
            await self.start()

        start_time = time.time()
        try:
            response = await self.client.request(method, url, **kwargs)
        except httpx.TimeoutException as e:
            raise self._timeout_error(url) from e
        except httpx.RequestError as e:
            raise TransportError(str(e) or GENERIC_FAILURE) from e

        logger.debug(
            f"HTTP {method} {response.status_code} in {(time.time() - start_time) * 1000:.0f}ms",
            extra={
                "event": "http.response",
                "detail": {"host": response.request.url.host, "status": response.status_code},
            },
        )
        return response

    async def fetch_json(self, method: str, url: str, **kwargs) -> Dict[str, Any]:
        """Send a request and decode its JSON body; raises TransportError on non-2xx."""
        response = await self.request(method, url, **kwargs)
        raw = response.text
        try:
            data = json.loads(raw) if raw else None
        except ValueError:
            data = {"_raw": raw}

        if not response.is_success:
            raise TransportError(
                extract_error_message(data, raw),
                status=response.status_code,
            )

        return data if isinstance(data, dict) else {}

    async def fetch_binary(self, url: str, max_bytes: Optional[int] = None, **kwargs) -> FetchedMedia:
        """Stream a media payload; size prefers the Content-Length header.

        With `max_bytes` set, the download stops as soon as the payload is known
        to be larger: a declared Content-Length over the cap is refused before
        the body is read, otherwise reading stops at the first chunk past it.
        The oversized result carries no data and a size above the cap.
        """
        if self.client is None:
            await self.start()

        try:
            async with self.client.stream("GET", url, **kwargs) as response:
                if not response.is_success:
                    raise TransportError(
                        response.reason_phrase or GENERIC_FAILURE,
                        status=response.status_code,
                    )

                content_type = response.headers.get("content-type", "")
                declared = _content_length(response)
                if max_bytes is not None and declared is not None and declared > max_bytes:
                    _log_oversized(url, declared, max_bytes)
                    return FetchedMedia(data=b"", content_type=content_type, size_bytes=declared)

                chunks = []
                received = 0
                async for chunk in response.aiter_bytes():
                    received += len(chunk)
                    if max_bytes is not None and received > max_bytes:
                        _log_oversized(url, received, max_bytes)
                        return FetchedMedia(data=b"", content_type=content_type, size_bytes=received)
                    chunks.append(chunk)
        except httpx.TimeoutException as e:
            raise self._timeout_error(url) from e
        except httpx.RequestError as e:
            raise TransportError(str(e) or GENERIC_FAILURE) from e

        data = b"".join(chunks)
        return FetchedMedia(
            data=data,
            content_type=content_type,
            size_bytes=declared if declared is not None else len(data),
        )

    def _timeout_error(self, url: str) -> TransportError:
        logger.warning(
            f"⏱️ Request timed out after {self.timeout:.0f}s",
            extra={"event": "http.timeout", "detail": {"host": httpx.URL(url).host}},
        )
        return TransportError(f"Request timed out after {self.timeout:.0f}s")


def _content_length(response: httpx.Response) -> Optional[int]:
    length_header = response.headers.get("content-length")
    if not length_header:
        return None
    try:
        return int(length_header)
    except ValueError:
        return None


def _log_oversized(url: str, size_bytes: int, max_bytes: int) -> None:
    logger.info(
        f"📦 Download stopped at {size_bytes} bytes (limit {max_bytes})",
        extra={"event": "http.too_large", "detail": {"host": httpx.URL(url).host}},
    )
