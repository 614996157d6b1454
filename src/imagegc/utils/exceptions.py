"""
Custom exceptions for imagegc.

This module defines all custom exceptions used throughout the application.
"""


class ImagegcError(Exception):
    """Base exception for all imagegc errors."""

    pass


class ValidationError(ImagegcError):
    """Raised when input validation fails."""

    def __init__(self, message: str, field: str = "") -> None:
        """
        Initialize validation error.

        Args:
            message: Error message
            field: Name of the field that failed validation (optional)
        """
        self.field = field
        super().__init__(message)


class InvalidImageDataError(ValidationError):
    """Raised when the image payload is not valid base64."""

    def __init__(self, message: str = "Invalid image data format") -> None:
        super().__init__(message, field="imageData")


class PayloadTooLargeError(ValidationError):
    """Raised when the decoded image exceeds the upload limit."""

    def __init__(self, message: str, size: int = 0) -> None:
        self.size = size
        super().__init__(message, field="imageData")


class UnsupportedContentTypeError(ValidationError):
    """Raised when the declared content type is not accepted."""

    def __init__(self, message: str, content_type: str = "") -> None:
        self.content_type = content_type
        super().__init__(message, field="contentType")


class APIError(ImagegcError):
    """Raised when an API call fails."""

    def __init__(self, message: str, status_code: int = 0, response: str = "") -> None:
        """
        Initialize API error.

        Args:
            message: Error message
            status_code: HTTP status code (if applicable)
            response: Raw API response (if available)
        """
        self.status_code = status_code
        self.response = response
        super().__init__(message)


class ModelUnavailableError(APIError):
    """Raised when a model deployment is temporarily unavailable (overloaded, throttled, down)."""

    pass


class NetworkError(ImagegcError):
    """Raised when a network operation fails."""

    def __init__(self, message: str, original_error: Exception | None = None) -> None:
        """
        Initialize network error.

        Args:
            message: Error message
            original_error: The underlying exception that caused this error
        """
        self.original_error = original_error
        super().__init__(message)


class RequestTimeoutError(ImagegcError):
    """Raised when an operation times out (e.g. request or backend call)."""

    pass


class ConfigurationError(ImagegcError):
    """Raised when there is a configuration problem."""

    pass


class VisionAnalysisError(ImagegcError):
    """Raised when the vision stage cannot describe the image."""

    pass


class EnhancementError(ImagegcError):
    """Raised when the description could not be enhanced."""

    pass


class RegenerationError(ImagegcError):
    """Raised when a new image could not be generated or decoded."""

    pass


class GatewayError(ImagegcError):
    """Raised by the client gateway for a non-retryable HTTP failure."""

    def __init__(self, message: str, status_code: int = 0, body: str = "") -> None:
        """
        Initialize gateway error.

        Args:
            message: Error message
            status_code: HTTP status code of the failed response (0 when no response)
            body: Response body text (if available)
        """
        self.status_code = status_code
        self.body = body
        super().__init__(message)


class AuthError(GatewayError):
    """Raised when the server rejects the caller (401/403); the caller must log in again."""

    def __init__(
        self, message: str, status_code: int = 401, body: str = "", login_url: str = ""
    ) -> None:
        self.login_url = login_url
        super().__init__(message, status_code=status_code, body=body)


class TransientNetworkError(GatewayError):
    """Raised when retryable failures (5xx, timeouts) persist after every retry."""

    def __init__(
        self, message: str, status_code: int = 0, body: str = "", attempts: int = 0
    ) -> None:
        self.attempts = attempts
        super().__init__(message, status_code=status_code, body=body)
