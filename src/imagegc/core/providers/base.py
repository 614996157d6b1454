"""
Provider protocols for the model-backed stages.

Defines the interfaces the enhancement and regeneration stages call, plus the
plain result types every implementation returns.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Protocol


@dataclass
class ChatCompletion:
    """Text returned by a chat deployment and the tokens it reported."""

    text: str
    total_tokens: int
    model: str


@dataclass
class GeneratedImage:
    """Raw image bytes returned by an image deployment."""

    image_bytes: bytes
    model: str
    revised_prompt: str | None = None


class ChatCompletionProvider(Protocol):
    """Protocol for text generation backends used by description enhancement."""

    def complete_chat(
        self,
        deployment: str,
        messages: list[dict[str, Any]],
        *,
        max_tokens: int,
        temperature: float,
        top_p: float,
        timeout: int,
    ) -> ChatCompletion:
        """Run one chat completion against deployment.

        May raise APIError (ModelUnavailableError for transient statuses),
        NetworkError, or RequestTimeoutError.
        """
        ...


class ImageGenerationProvider(Protocol):
    """Protocol for image generation backends used by regeneration."""

    def generate_image(
        self,
        deployment: str,
        prompt: str,
        *,
        size: str,
        quality: str,
        style: str,
        timeout: int,
    ) -> GeneratedImage:
        """Generate a single image from prompt.

        May raise APIError, NetworkError, or RequestTimeoutError.
        """
        ...
