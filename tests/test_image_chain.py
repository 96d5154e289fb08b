"""Tests for the image generation fallback chain."""
from unittest.mock import AsyncMock, MagicMock

import pytest

from myra.backends import BaseImageAdapter
from myra.exceptions import TransportError
from myra.image import (
    IMAGE_FAILED_MESSAGE,
    ImageFallbackChain,
    format_image_reply,
    is_credit_error,
)


def _adapter(name, result=None, error=None):
    adapter = MagicMock(spec=BaseImageAdapter)
    adapter.name = name
    adapter.generate_image = AsyncMock(return_value=result, side_effect=error)
    return adapter


@pytest.mark.asyncio
async def test_primary_url_becomes_pointer_sentence(config):
    primary = _adapter("openai_image", "https://img.example/1.png")
    secondary = _adapter("stability", "data:image/png;base64,QUJD")
    chain = ImageFallbackChain(config, primary, secondary)

    reply = await chain.generate("un chat")

    assert reply == "Voici l image : https://img.example/1.png"
    secondary.generate_image.assert_not_awaited()
    assert primary.generate_image.await_args.kwargs == {
        "api_key": "sk-openai", "model": "gpt-image-1.5", "prompt": "un chat",
    }


@pytest.mark.asyncio
async def test_primary_error_falls_back_to_secondary(config):
    primary = _adapter("openai_image", error=TransportError("Billing hard limit reached: insufficient credit", status=400))
    secondary = _adapter("stability", "data:image/png;base64,QUJD")
    chain = ImageFallbackChain(config, primary, secondary)

    reply = await chain.generate("un chat")

    assert reply == "data:image/png;base64,QUJD"
    assert secondary.generate_image.await_args.kwargs["model"] == "sd3.5-large"


@pytest.mark.asyncio
async def test_primary_empty_result_falls_back_to_secondary(config):
    primary = _adapter("openai_image", "")
    secondary = _adapter("stability", "data:image/png;base64,QUJD")
    chain = ImageFallbackChain(config, primary, secondary)

    assert await chain.generate("x") == "data:image/png;base64,QUJD"


@pytest.mark.asyncio
async def test_missing_primary_key_goes_straight_to_secondary(config):
    config["OPENAI_API_KEY"] = None
    primary = _adapter("openai_image", "https://never")
    secondary = _adapter("stability", "data:image/png;base64,QUJD")
    chain = ImageFallbackChain(config, primary, secondary)

    assert await chain.generate("x") == "data:image/png;base64,QUJD"
    primary.generate_image.assert_not_awaited()


@pytest.mark.asyncio
async def test_both_fail_returns_fixed_message(config):
    primary = _adapter("openai_image", error=TransportError("boom"))
    secondary = _adapter("stability", error=TransportError("also boom"))
    chain = ImageFallbackChain(config, primary, secondary)

    assert await chain.generate("x") == IMAGE_FAILED_MESSAGE
    assert primary.generate_image.await_count == 1
    assert secondary.generate_image.await_count == 1


@pytest.mark.asyncio
async def test_no_keys_returns_fixed_message(config):
    config["OPENAI_API_KEY"] = None
    config["STABILITY_API_KEY"] = None
    primary = _adapter("openai_image", "https://never")
    secondary = _adapter("stability", "data:image/png;base64,QUJD")
    chain = ImageFallbackChain(config, primary, secondary)

    assert await chain.generate("x") == IMAGE_FAILED_MESSAGE
    primary.generate_image.assert_not_awaited()
    secondary.generate_image.assert_not_awaited()


@pytest.mark.parametrize("message, expected", [
    ("Insufficient balance", True),
    ("You have no CREDITS left", True),
    ("Request timed out after 30s", False),
])
def test_is_credit_error(message, expected):
    assert is_credit_error(TransportError(message)) is expected


def test_format_image_reply():
    assert format_image_reply("data:image/webp;base64,AAA") == "data:image/webp;base64,AAA"
    assert format_image_reply("https://x/y.png") == "Voici l image : https://x/y.png"
