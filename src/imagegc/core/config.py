"""
Configuration management for imagegc.

This module handles service endpoints, API keys, deployment names, and timeouts.
A Config is built once at startup and passed to every stage; it is frozen so
stages can share it across concurrent requests.
"""

import os
from dataclasses import dataclass, field
from urllib.parse import urlparse

from dotenv import load_dotenv

from imagegc.logging_config import get_logger
from imagegc.utils.exceptions import ConfigurationError

logger = get_logger(__name__)

# Load environment variables from .env file
load_dotenv()

# Default configuration constants
DEFAULT_CHAT_DEPLOYMENT = "gpt-4o-mini"
DEFAULT_IMAGE_DEPLOYMENT = "dall-e-3"
DEFAULT_OPENAI_API_VERSION = "2024-02-01"
DEFAULT_VISION_API_VERSION = "2023-10-01"

# Fixed request limits (not configurable)
MAX_UPLOAD_BYTES = 20 * 1024 * 1024  # 20 MiB
ALLOWED_CONTENT_TYPES = ("image/jpeg", "image/png")

# Client POST timeout for the analyze call; a whole pipeline run must finish inside it
CLIENT_REQUEST_TIMEOUT = 180

_LOCAL_HOSTS = ("localhost", "127.0.0.1", "::1")


@dataclass(frozen=True)
class Config:
    """Configuration for the imagegc pipeline."""

    # Azure AI Vision (keys excluded from repr to avoid leaking secrets)
    vision_endpoint: str = ""
    vision_key: str = field(default="", repr=False)
    vision_api_version: str = DEFAULT_VISION_API_VERSION

    # Azure OpenAI
    openai_endpoint: str = ""
    openai_api_key: str = field(default="", repr=False)
    openai_api_version: str = DEFAULT_OPENAI_API_VERSION

    # Deployments
    chat_deployment: str = DEFAULT_CHAT_DEPLOYMENT
    fallback_chat_deployment: str = ""  # empty = no fallback
    image_deployment: str = DEFAULT_IMAGE_DEPLOYMENT

    # Chat completion options for description enhancement
    max_output_tokens: int = 800
    temperature: float = 0.7
    top_p: float = 0.95

    # Timeout Configuration (seconds). enhancement_timeout is shared by the primary and
    # fallback deployments; the three together stay below CLIENT_REQUEST_TIMEOUT.
    vision_timeout: int = 25
    enhancement_timeout: int = 60
    generation_timeout: int = 90

    # Debug: log raw API payload/response with image data truncated
    debug_api: bool = False

    @classmethod
    def from_env(cls) -> "Config":
        """
        Create a Config instance from environment variables.

        Environment variables:
            AZURE_VISION_ENDPOINT, AZURE_VISION_KEY: Azure AI Vision resource
            AZURE_OPENAI_ENDPOINT, AZURE_OPENAI_API_KEY: Azure OpenAI resource
            IMAGEGC_CHAT_DEPLOYMENT: Primary text deployment (default gpt-4o-mini)
            IMAGEGC_FALLBACK_CHAT_DEPLOYMENT: Optional fallback text deployment
            IMAGEGC_IMAGE_DEPLOYMENT: Image deployment (default dall-e-3)
            IMAGEGC_OPENAI_API_VERSION, IMAGEGC_VISION_API_VERSION: REST api-version values
            IMAGEGC_VISION_TIMEOUT, IMAGEGC_ENHANCEMENT_TIMEOUT, IMAGEGC_GENERATION_TIMEOUT:
                Per-stage timeouts in seconds
            IMAGEGC_DEBUG_API: 1/true/yes to log truncated request/response payloads

        Returns:
            Config instance populated from environment

        Raises:
            ConfigurationError: If a numeric variable is not an integer
        """

        def _int_env(name: str, default: int) -> int:
            val = os.getenv(name)
            if val is None or val.strip() == "":
                return default
            try:
                return int(val)
            except ValueError as e:
                raise ConfigurationError(f"{name} must be an integer, got {val!r}.") from e

        debug_api = os.getenv("IMAGEGC_DEBUG_API", "").strip().lower() in ("1", "true", "yes")

        return cls(
            vision_endpoint=os.getenv("AZURE_VISION_ENDPOINT", "").strip(),
            vision_key=os.getenv("AZURE_VISION_KEY", "").strip(),
            vision_api_version=os.getenv("IMAGEGC_VISION_API_VERSION", DEFAULT_VISION_API_VERSION),
            openai_endpoint=os.getenv("AZURE_OPENAI_ENDPOINT", "").strip(),
            openai_api_key=os.getenv("AZURE_OPENAI_API_KEY", "").strip(),
            openai_api_version=os.getenv("IMAGEGC_OPENAI_API_VERSION", DEFAULT_OPENAI_API_VERSION),
            chat_deployment=os.getenv("IMAGEGC_CHAT_DEPLOYMENT", DEFAULT_CHAT_DEPLOYMENT),
            fallback_chat_deployment=os.getenv("IMAGEGC_FALLBACK_CHAT_DEPLOYMENT", "").strip(),
            image_deployment=os.getenv("IMAGEGC_IMAGE_DEPLOYMENT", DEFAULT_IMAGE_DEPLOYMENT),
            vision_timeout=_int_env("IMAGEGC_VISION_TIMEOUT", 25),
            enhancement_timeout=_int_env("IMAGEGC_ENHANCEMENT_TIMEOUT", 60),
            generation_timeout=_int_env("IMAGEGC_GENERATION_TIMEOUT", 90),
            debug_api=debug_api,
        )

    def validate(self) -> None:
        """
        Validate the configuration.

        Raises:
            ConfigurationError: If configuration is invalid
        """
        logger.debug("Validating config")

        for label, endpoint, key in (
            ("Vision", self.vision_endpoint, self.vision_key),
            ("OpenAI", self.openai_endpoint, self.openai_api_key),
        ):
            if not endpoint:
                raise ConfigurationError(
                    f"Azure {label} endpoint is required. "
                    f"Set AZURE_{label.upper()}_ENDPOINT or provide it explicitly."
                )
            parsed = urlparse(endpoint)
            if parsed.scheme != "https" and parsed.hostname not in _LOCAL_HOSTS:
                raise ConfigurationError(
                    f"Azure {label} endpoint must use https, got {endpoint!r}."
                )
            if not key:
                raise ConfigurationError(f"Azure {label} key is required.")

        if not self.chat_deployment:
            raise ConfigurationError("Chat deployment name cannot be empty")
        if not self.image_deployment:
            raise ConfigurationError("Image deployment name cannot be empty")

        for name in ("vision_timeout", "enhancement_timeout", "generation_timeout"):
            value = getattr(self, name)
            if value <= 0:
                raise ConfigurationError(f"{name} must be positive, got {value}.")

        total = self.worst_case_seconds()
        if total >= CLIENT_REQUEST_TIMEOUT:
            raise ConfigurationError(
                f"Stage timeouts add up to {total}s, which does not fit the client's "
                f"{CLIENT_REQUEST_TIMEOUT}s request timeout. Lower IMAGEGC_VISION_TIMEOUT, "
                "IMAGEGC_ENHANCEMENT_TIMEOUT or IMAGEGC_GENERATION_TIMEOUT."
            )

    def enhancement_attempt_timeout(self) -> int:
        """Timeout for one chat call: the enhancement budget split across chat_candidates()."""
        return max(1, self.enhancement_timeout // len(self.chat_candidates()))

    def worst_case_seconds(self) -> int:
        """Longest a pipeline run can spend waiting on Azure, fallback included."""
        enhancement = self.enhancement_attempt_timeout() * len(self.chat_candidates())
        return self.vision_timeout + enhancement + self.generation_timeout

    def chat_candidates(self) -> list[str]:
        """
        Return the ordered text deployments to try: primary, then fallback if distinct.

        The list never has more than two entries, so enhancement escalates at most once.
        """
        candidates = [self.chat_deployment]
        fallback = self.fallback_chat_deployment
        if fallback and fallback != self.chat_deployment:
            candidates.append(fallback)
        return candidates
