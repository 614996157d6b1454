"""
Shared HTTP plumbing for the Azure REST calls.

Wraps requests.post so every stage maps transport failures and status codes to
the same exceptions, and logs payloads with image data truncated when
debug_api is enabled.
"""

import json
import time
from typing import Any

import requests

from imagegc.logging_config import API_TRACE, get_logger
from imagegc.utils.exceptions import (
    APIError,
    ModelUnavailableError,
    NetworkError,
    RequestTimeoutError,
)

logger = get_logger(__name__)
api_logger = get_logger(API_TRACE)

# Statuses that mean "try again later / try another deployment"
TRANSIENT_STATUS_CODES = frozenset({408, 429, 500, 502, 503, 504})

_DEBUG_TRUNCATE_THRESHOLD = 200
_DEBUG_NEVER_TRUNCATE_KEYS = frozenset({"content", "message", "prompt", "revised_prompt", "text"})


def truncate_image_data_for_log(obj: Any, parent_key: str | None = None) -> Any:
    """Recursively replace long base64/data URL strings with placeholders for safe logging."""
    if isinstance(obj, dict):
        return {k: truncate_image_data_for_log(v, k) for k, v in obj.items()}
    if isinstance(obj, list):
        return [truncate_image_data_for_log(v, None) for v in obj]
    if isinstance(obj, str) and len(obj) >= _DEBUG_TRUNCATE_THRESHOLD:
        if parent_key in _DEBUG_NEVER_TRUNCATE_KEYS:
            return obj
        if obj.startswith("data:"):
            return f"<data URL, {len(obj)} chars>"
        return f"<string, {len(obj)} chars>"
    return obj


def _error_detail(response: requests.Response) -> str:
    """Pull the service's error message out of an Azure error body, falling back to raw text."""
    try:
        body = response.json()
    except ValueError:
        return response.text
    if isinstance(body, dict):
        error = body.get("error")
        if isinstance(error, dict) and error.get("message"):
            code = error.get("code")
            return f"{code}: {error['message']}" if code else str(error["message"])
        if isinstance(body.get("message"), str):
            return body["message"]
    return response.text


def check_response(response: requests.Response, service: str, model: str = "") -> None:
    """
    Map a non-2xx response to an exception.

    Raises:
        ModelUnavailableError: For 408/429/5xx statuses (transient)
        APIError: For every other non-2xx status
    """
    status = response.status_code
    if 200 <= status < 300:
        return
    text = response.text
    target = f"{service} ({model})" if model else service
    if status in (401, 403):
        raise APIError(
            f"Authentication failed for {service}. Please check the configured key.",
            status_code=status,
            response=text,
        )
    if status == 404:
        raise APIError(
            f"Model not found or endpoint unavailable: {model or service}",
            status_code=404,
            response=text,
        )
    if status in TRANSIENT_STATUS_CODES:
        raise ModelUnavailableError(
            f"{target} is unavailable (status {status}): {_error_detail(response)}",
            status_code=status,
            response=text,
        )
    raise APIError(
        f"{target} request failed with status {status}: {_error_detail(response)}",
        status_code=status,
        response=text,
    )


def post(
    url: str,
    *,
    service: str,
    headers: dict[str, str],
    timeout: int,
    json_body: dict[str, Any] | None = None,
    data: bytes | None = None,
    params: dict[str, str] | None = None,
    debug: bool = False,
) -> requests.Response:
    """
    POST to an Azure endpoint and return the raw response (status not checked).

    Raises:
        RequestTimeoutError: If the request exceeds timeout
        NetworkError: On connection or other transport failures
    """
    api_logger.debug("API request service=%s url=%s timeout=%s", service, url, timeout)
    if debug and json_body is not None:
        logger.info(
            "API request payload (image data truncated): %s",
            json.dumps(truncate_image_data_for_log(json_body), indent=2, default=str),
        )
    start_time = time.time()
    try:
        response = requests.post(
            url, headers=headers, json=json_body, data=data, params=params, timeout=timeout
        )
    except requests.exceptions.Timeout as e:
        raise RequestTimeoutError(f"{service} request timed out after {timeout} seconds.") from e
    except requests.exceptions.ConnectionError as e:
        raise NetworkError(
            f"Failed to connect to {service}. Please check the endpoint and your network.",
            original_error=e,
        ) from e
    except requests.exceptions.RequestException as e:
        raise NetworkError(
            f"Network error during {service} request: {str(e)}", original_error=e
        ) from e
    api_logger.debug(
        "API response service=%s status=%s time=%.2fs",
        service,
        response.status_code,
        time.time() - start_time,
    )
    if debug:
        try:
            logger.info(
                "API response (image data truncated): %s",
                json.dumps(truncate_image_data_for_log(response.json()), indent=2, default=str),
            )
        except ValueError:
            text = response.text
            if len(text) > 2000:
                text = text[:2000] + f"... <truncated, {len(response.text)} chars total>"
            logger.info("API response (raw text): %s", text)
    return response
