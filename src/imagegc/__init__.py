"""
imagegc - image analysis, description enhancement, and regeneration

Describes an uploaded image with Azure AI Vision, rewrites the description to a
target length with an Azure OpenAI chat deployment, and regenerates an image
from the result with an Azure OpenAI image deployment.

Library usage:
- Build a PipelineOrchestrator from a Config (Config.from_env() reads the
  environment and .env) and call run(AnalysisRequest(...)).
- Enhancement and regeneration failures degrade the result instead of failing it;
  see AnalysisResult.metrics.error_info.
- Logging: control verbosity with set_verbosity(0|1|2) or configure_logging(verbose_level, quiet);
  IMAGEGC_VERBOSITY env (0/1/2) is read when the CLI runs or when logging is configured.
"""

from importlib.metadata import PackageNotFoundError, version

try:
    __version__ = version("imagegc")
except PackageNotFoundError:
    # Package is not installed (e.g., running from source in development)
    __version__ = "0.0.0.dev"

from imagegc.core.config import (
    DEFAULT_CHAT_DEPLOYMENT,
    DEFAULT_IMAGE_DEPLOYMENT,
    Config,
)
from imagegc.core.models import AnalysisRequest, AnalysisResult, ProcessingMetrics
from imagegc.core.payload import decode_image_payload, validate_request
from imagegc.core.pipeline import PipelineOrchestrator, PipelineOutcome, PipelineState
from imagegc.logging_config import configure_logging, set_verbosity
from imagegc.utils.exceptions import (
    APIError,
    AuthError,
    ConfigurationError,
    GatewayError,
    ImagegcError,
    NetworkError,
    RequestTimeoutError,
    TransientNetworkError,
    ValidationError,
)

__all__ = [
    "APIError",
    "AnalysisRequest",
    "AnalysisResult",
    "AuthError",
    "configure_logging",
    "Config",
    "ConfigurationError",
    "DEFAULT_CHAT_DEPLOYMENT",
    "DEFAULT_IMAGE_DEPLOYMENT",
    "GatewayError",
    "ImagegcError",
    "NetworkError",
    "PipelineOrchestrator",
    "PipelineOutcome",
    "PipelineState",
    "ProcessingMetrics",
    "RequestTimeoutError",
    "TransientNetworkError",
    "ValidationError",
    "decode_image_payload",
    "set_verbosity",
    "validate_request",
]
