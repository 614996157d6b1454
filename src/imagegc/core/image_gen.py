"""
Image regeneration for imagegc.

Generates a new image from the (enhanced or basic) description with an image
deployment. Failures never abort the request: the stage degrades and the
result simply carries no regenerated image.
"""

import io
import time

from PIL import Image, UnidentifiedImageError

from imagegc.core.config import Config
from imagegc.core.models import RegeneratedImage, StageOutcome
from imagegc.core.providers.base import ImageGenerationProvider
from imagegc.logging_config import get_logger, log_descriptions
from imagegc.utils.exceptions import ImagegcError, RegenerationError, ValidationError

logger = get_logger(__name__)

# Fixed generation parameters: square, standard quality, natural style
IMAGE_SIZE = "1024x1024"
IMAGE_QUALITY = "standard"
IMAGE_STYLE = "natural"

# Longest prompt the image deployments accept
MAX_PROMPT_CHARS = 4000

DEFAULT_CONTENT_TYPE = "image/png"

_CONTENT_TYPES = {
    "PNG": "image/png",
    "JPEG": "image/jpeg",
    "WEBP": "image/webp",
}


def estimate_tokens(prompt: str) -> int:
    """Rough token estimate for a prompt; image deployments do not report usage."""
    return len(prompt) // 4


def _content_type_from_bytes(image_bytes: bytes) -> str:
    """Decode the header with Pillow and return the matching MIME type."""
    try:
        with Image.open(io.BytesIO(image_bytes)) as image:
            fmt = image.format
            image.verify()
    except (UnidentifiedImageError, OSError, SyntaxError) as e:
        raise RegenerationError(f"Generated image could not be decoded: {str(e)}") from e
    return _CONTENT_TYPES.get(fmt or "", DEFAULT_CONTENT_TYPE)


def _prepare_prompt(description: str) -> str:
    if not description or not description.strip():
        raise ValidationError("Description cannot be empty", field="description")
    prompt = description.strip()
    if len(prompt) > MAX_PROMPT_CHARS:
        logger.debug("Truncating prompt from %d to %d chars", len(prompt), MAX_PROMPT_CHARS)
        prompt = prompt[:MAX_PROMPT_CHARS]
    return prompt


class ImageRegenerator:
    """Generates a new image from a description with the configured image deployment."""

    def __init__(self, config: Config, provider: ImageGenerationProvider) -> None:
        self._config = config
        self._provider = provider

    def regenerate(self, description: str) -> StageOutcome[RegeneratedImage]:
        """
        Generate an image for description.

        Returns:
            SUCCESS with image bytes, content type and estimated tokens, or
            DEGRADED (no value) with the failure reason. Never FATAL.
        """
        deployment = self._config.image_deployment
        logger.info("Generating image model=%s", deployment)
        start_time = time.time()
        try:
            prompt = _prepare_prompt(description)
            if log_descriptions():
                logger.info("Prompt (used): %s", prompt)
            generated = self._provider.generate_image(
                deployment,
                prompt,
                size=IMAGE_SIZE,
                quality=IMAGE_QUALITY,
                style=IMAGE_STYLE,
                timeout=self._config.generation_timeout,
            )
            content_type = _content_type_from_bytes(generated.image_bytes)
        except ImagegcError as e:
            elapsed_ms = int((time.time() - start_time) * 1000)
            logger.error("Error generating image after %dms: %s", elapsed_ms, e)
            return StageOutcome.degraded(f"Image generation failed: {e}", elapsed_ms=elapsed_ms)

        tokens = estimate_tokens(prompt)
        elapsed_ms = int((time.time() - start_time) * 1000)
        logger.info(
            "Image generation completed in %dms, estimated tokens: %d, model: %s",
            elapsed_ms,
            tokens,
            deployment,
        )
        return StageOutcome.success(
            RegeneratedImage(
                image_bytes=generated.image_bytes,
                content_type=content_type,
                tokens_used=tokens,
                model_used=generated.model,
            ),
            elapsed_ms=elapsed_ms,
        )
