"""
Utility functions for the CLI.

This module contains helper functions used by CLI commands,
such as path generation and exit code constants.
"""

from datetime import datetime

EXIT_SUCCESS = 0
EXIT_API_OR_NETWORK = 1
EXIT_VALIDATION_OR_CONFIG = 2
EXIT_AUTH_REQUIRED = 3

DEFAULT_SERVER_URL = "http://127.0.0.1:8000"

_EXTENSIONS = {"image/png": "png", "image/jpeg": "jpg", "image/webp": "webp"}


def extension_for_content_type(content_type: str) -> str:
    """Return the file extension for an image content type (png when unknown)."""
    return _EXTENSIONS.get(content_type.strip().lower(), "png")


def default_output_path(content_type: str) -> str:
    """Return default output path: imagegc_<YYYYMMDD>_<HHMMSS>.<ext> in current directory."""
    timestamp = datetime.now().strftime("%Y%m%d_%H%M%S")
    return f"imagegc_{timestamp}.{extension_for_content_type(content_type)}"


__all__ = [
    "DEFAULT_SERVER_URL",
    "EXIT_SUCCESS",
    "EXIT_API_OR_NETWORK",
    "EXIT_VALIDATION_OR_CONFIG",
    "EXIT_AUTH_REQUIRED",
    "default_output_path",
    "extension_for_content_type",
]
