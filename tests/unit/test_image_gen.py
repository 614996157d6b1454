"""Unit tests for the image regeneration stage."""

from unittest.mock import MagicMock

import pytest

from imagegc.core.image_gen import (
    IMAGE_QUALITY,
    IMAGE_SIZE,
    IMAGE_STYLE,
    MAX_PROMPT_CHARS,
    ImageRegenerator,
    estimate_tokens,
)
from imagegc.core.models import StageStatus
from imagegc.core.providers.base import GeneratedImage
from imagegc.utils.exceptions import APIError, RequestTimeoutError


def _provider(image_bytes: bytes) -> MagicMock:
    provider = MagicMock()
    provider.generate_image.return_value = GeneratedImage(image_bytes=image_bytes, model="dall-e-3")
    return provider


@pytest.mark.unit
class TestEstimateTokens:
    @pytest.mark.parametrize("prompt, expected", [("", 0), ("abc", 0), ("abcd", 1), ("a" * 401, 100)])
    def test_quarter_of_length(self, prompt, expected):
        assert estimate_tokens(prompt) == expected


@pytest.mark.unit
class TestImageRegenerator:
    def test_success_png(self, config, png_bytes):
        provider = _provider(png_bytes)
        description = "An orange square on a plain background."
        outcome = ImageRegenerator(config, provider).regenerate(description)

        assert outcome.status is StageStatus.SUCCESS
        assert outcome.value.image_bytes == png_bytes
        assert outcome.value.content_type == "image/png"
        assert outcome.value.tokens_used == len(description) // 4
        provider.generate_image.assert_called_once_with(
            "dall-e-3",
            description,
            size=IMAGE_SIZE,
            quality=IMAGE_QUALITY,
            style=IMAGE_STYLE,
            timeout=config.generation_timeout,
        )

    def test_jpeg_content_type_detected(self, config, jpeg_bytes):
        outcome = ImageRegenerator(config, _provider(jpeg_bytes)).regenerate("blue")
        assert outcome.value.content_type == "image/jpeg"

    def test_long_prompt_truncated(self, config, png_bytes):
        provider = _provider(png_bytes)
        ImageRegenerator(config, provider).regenerate("x" * (MAX_PROMPT_CHARS + 500))
        assert len(provider.generate_image.call_args.args[1]) == MAX_PROMPT_CHARS

    def test_undecodable_image_degrades(self, config):
        outcome = ImageRegenerator(config, _provider(b"not an image")).regenerate("a cat")
        assert outcome.status is StageStatus.DEGRADED
        assert outcome.value is None
        assert outcome.error.startswith("Image generation failed:")

    @pytest.mark.parametrize(
        "error", [APIError("content_policy_violation", status_code=400), RequestTimeoutError("slow")]
    )
    def test_provider_failure_degrades(self, config, error):
        provider = MagicMock()
        provider.generate_image.side_effect = error
        outcome = ImageRegenerator(config, provider).regenerate("a cat")
        assert outcome.status is StageStatus.DEGRADED
        assert str(error) in outcome.error

    def test_empty_description_degrades_without_call(self, config):
        provider = MagicMock()
        outcome = ImageRegenerator(config, provider).regenerate("")
        assert outcome.status is StageStatus.DEGRADED
        provider.generate_image.assert_not_called()
