"""
Image analysis via the Azure AI Vision Image Analysis API.

The vision stage is the only source of the basic description and tags, so any
failure here is fatal to the request; callers get a VisionAnalysisError.
"""

import time
from typing import Any

from imagegc.core.config import Config
from imagegc.core.models import VisionAnalysis
from imagegc.core.providers import http
from imagegc.logging_config import get_logger, log_descriptions
from imagegc.utils.exceptions import APIError, ImagegcError, VisionAnalysisError

logger = get_logger(__name__)

SERVICE_NAME = "Azure AI Vision"
NO_DESCRIPTION = "No description available"


def _parse_analysis(result: Any) -> tuple[str, list[str], float]:
    """Extract (caption, tags, confidence) from an imageanalysis:analyze response body."""
    if not isinstance(result, dict):
        raise APIError("Unexpected analysis response shape", response=str(result))
    caption = result.get("captionResult") or {}
    description = (caption.get("text") or "").strip() or NO_DESCRIPTION
    confidence = float(caption.get("confidence") or 0.0) if caption.get("text") else 0.0
    confidence = min(max(confidence, 0.0), 1.0)
    values = (result.get("tagsResult") or {}).get("values") or []
    tags = [str(v["name"]) for v in values if isinstance(v, dict) and v.get("name")]
    return description, tags, confidence


class VisionAnalyzer:
    """Describes and tags an image with Azure AI Vision (caption + tags features)."""

    def __init__(self, config: Config) -> None:
        self._config = config

    def _url(self) -> str:
        return f"{self._config.vision_endpoint.rstrip('/')}/computervision/imageanalysis:analyze"

    def analyze(self, image_bytes: bytes) -> VisionAnalysis:
        """
        Analyze raw image bytes.

        Returns:
            VisionAnalysis with caption, ordered tags, caption confidence and elapsed ms

        Raises:
            VisionAnalysisError: On any transport, status, or parsing failure
        """
        logger.info("Analyzing image with %s (%d bytes)", SERVICE_NAME, len(image_bytes))
        start_time = time.time()
        try:
            response = http.post(
                self._url(),
                service=SERVICE_NAME,
                headers={
                    "Ocp-Apim-Subscription-Key": self._config.vision_key,
                    "Content-Type": "application/octet-stream",
                },
                timeout=self._config.vision_timeout,
                data=image_bytes,
                params={
                    "api-version": self._config.vision_api_version,
                    "features": "caption,tags",
                    "language": "en",
                    "gender-neutral-caption": "true",
                },
                debug=self._config.debug_api,
            )
            http.check_response(response, SERVICE_NAME)
            try:
                body = response.json()
            except ValueError as e:
                raise APIError(
                    f"Failed to parse API response as JSON: {str(e)}", response=response.text
                ) from e
            description, tags, confidence = _parse_analysis(body)
        except ImagegcError as e:
            elapsed_ms = int((time.time() - start_time) * 1000)
            logger.error("Image analysis failed after %dms: %s", elapsed_ms, e)
            raise VisionAnalysisError(str(e)) from e

        elapsed_ms = int((time.time() - start_time) * 1000)
        logger.info(
            "Image analysis completed in %dms, confidence: %.2f, tags: %d",
            elapsed_ms,
            confidence,
            len(tags),
        )
        if log_descriptions():
            logger.info("Basic description: %s", description)
        return VisionAnalysis(
            description=description, tags=tags, confidence=confidence, elapsed_ms=elapsed_ms
        )
