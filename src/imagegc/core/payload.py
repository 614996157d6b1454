"""
Inbound image payload handling for imagegc.

This module decodes the base64 image sent with an analyze request and
validates its size and declared content type before any stage runs.
"""

import base64
import binascii
import re

from imagegc.core.config import ALLOWED_CONTENT_TYPES, MAX_UPLOAD_BYTES
from imagegc.core.models import AnalysisRequest
from imagegc.logging_config import get_logger
from imagegc.utils.exceptions import (
    InvalidImageDataError,
    PayloadTooLargeError,
    UnsupportedContentTypeError,
)

logger = get_logger(__name__)

# data:<mime>[;param=value]*;base64, (mime may be empty, e.g. "data:;base64,")
_DATA_URL_PREFIX = re.compile(r"^data:[^;,]*(?:;[^;,]*)*;base64,", re.IGNORECASE)

_MIME_BY_MAGIC = {
    "PNG": "image/png",
    "JPEG": "image/jpeg",
}


def _infer_format_from_magic(data: bytes) -> str | None:
    """Infer image format from magic bytes. Returns 'PNG', 'JPEG' or None."""
    if data[:8] == b"\x89PNG\r\n\x1a\n":
        return "PNG"
    if data[:3] == b"\xff\xd8\xff":
        return "JPEG"
    return None


def strip_data_url_prefix(image_data: str) -> str:
    """Return image_data without a leading data:<mime>;base64, header (if any)."""
    image_data = image_data.strip()
    match = _DATA_URL_PREFIX.match(image_data)
    if match:
        return image_data[match.end() :]
    return image_data


def decode_image_payload(image_data: str) -> bytes:
    """
    Decode a base64 image payload, optionally prefixed with a data-URL header.

    Args:
        image_data: Base64 text as sent by the client

    Returns:
        Decoded image bytes

    Raises:
        InvalidImageDataError: If the text is not valid base64 or decodes to nothing
    """
    # MIME-wrapped base64 carries line breaks; drop all ASCII whitespace before the strict decode
    encoded = "".join(strip_data_url_prefix(image_data or "").split())
    try:
        decoded = base64.b64decode(encoded, validate=True)
    except (binascii.Error, ValueError) as e:
        logger.warning("Failed to decode base64 image data: %s", e)
        raise InvalidImageDataError() from e
    if not decoded:
        raise InvalidImageDataError("Image data is empty")
    return decoded


def validate_image_bytes(image_bytes: bytes, content_type: str) -> None:
    """
    Check decoded size and declared content type.

    Raises:
        PayloadTooLargeError: If the image is larger than MAX_UPLOAD_BYTES
        UnsupportedContentTypeError: If content_type is not image/jpeg or image/png
    """
    size = len(image_bytes)
    if size > MAX_UPLOAD_BYTES:
        logger.warning("Received image exceeds maximum size limit. Size: %d bytes", size)
        raise PayloadTooLargeError(
            f"File size exceeds the maximum allowed ({MAX_UPLOAD_BYTES // 1024 // 1024}MB).",
            size=size,
        )

    declared = (content_type or "").strip().lower()
    if declared not in ALLOWED_CONTENT_TYPES:
        logger.warning("Received image with unsupported content type: %s", content_type)
        raise UnsupportedContentTypeError(
            "Only JPG and PNG files are supported.", content_type=content_type
        )

    sniffed = _infer_format_from_magic(image_bytes)
    if sniffed is not None and _MIME_BY_MAGIC[sniffed] != declared:
        logger.warning(
            "Declared content type %s does not match image data (%s)", declared, sniffed
        )


def validate_request(request: AnalysisRequest) -> bytes:
    """
    Decode and validate the image carried by an analyze request.

    Order: decode, then size, then content type. Any failure is a ValidationError
    subclass and aborts the request before the vision stage.

    Returns:
        Decoded image bytes ready for analysis
    """
    image_bytes = decode_image_payload(request.image_data)
    logger.debug("Decoded image data: %d bytes", len(image_bytes))
    validate_image_bytes(image_bytes, request.content_type)
    return image_bytes
