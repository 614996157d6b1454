"""
Client for the image analysis endpoint.
"""

import base64
from pathlib import Path
from typing import Any

from imagegc.client.gateway import RetryingGateway
from imagegc.core.models import AnalysisRequest, AnalysisResult
from imagegc.utils.exceptions import GatewayError, ValidationError

ANALYZE_PATH = "api/imageanalysis/analyze"

_CONTENT_TYPES = {
    ".jpg": "image/jpeg",
    ".jpeg": "image/jpeg",
    ".png": "image/png",
}


def content_type_for_path(path: Path) -> str:
    """Map a file extension to its upload content type."""
    content_type = _CONTENT_TYPES.get(path.suffix.lower())
    if content_type is None:
        raise ValidationError("Only JPG and PNG files are supported.", field="contentType")
    return content_type


def build_request(path: str | Path, description_length: int = 100) -> AnalysisRequest:
    """
    Read an image file into an analysis request.

    The image is sent as a data URL, the same shape a browser upload produces.

    Raises:
        ValidationError: If the file is missing or is not a JPG/PNG
    """
    path = Path(path)
    if not path.is_file():
        raise ValidationError(f"Image file not found: {path}", field="image")
    content_type = content_type_for_path(path)
    encoded = base64.b64encode(path.read_bytes()).decode("ascii")
    return AnalysisRequest(
        image_data=f"data:{content_type};base64,{encoded}",
        file_name=path.name,
        content_type=content_type,
        description_length=description_length,
    )


class ImageAnalysisClient:
    """Posts analysis requests through a RetryingGateway."""

    def __init__(self, gateway: RetryingGateway) -> None:
        self._gateway = gateway

    def analyze(self, request: AnalysisRequest) -> AnalysisResult:
        body: Any = self._gateway.post(ANALYZE_PATH, request.model_dump(by_alias=True))
        if not isinstance(body, dict):
            raise GatewayError("Empty or malformed analysis response", status_code=200, body=str(body))
        return AnalysisResult.model_validate(body)

    def analyze_file(self, path: str | Path, description_length: int = 100) -> AnalysisResult:
        return self.analyze(build_request(path, description_length))
