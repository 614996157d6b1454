"""
Retrying HTTP gateway to the imagegc API.

Wraps requests with bounded retry and exponential backoff for transient
failures (5xx, 408, transport timeouts), hands 401/403 to a login-redirect
handler without retrying, and fails fast on every other 4xx.
"""

import time
from collections.abc import Callable
from dataclasses import dataclass
from typing import Any
from urllib.parse import urljoin

import requests

from imagegc.core.config import CLIENT_REQUEST_TIMEOUT
from imagegc.logging_config import RETRY_TRACE, get_logger
from imagegc.utils.exceptions import (
    AuthError,
    GatewayError,
    RequestTimeoutError,
    TransientNetworkError,
)

logger = get_logger(__name__)
retry_logger = get_logger(RETRY_TRACE)

DEFAULT_LOGIN_PATH = "authentication/login"


@dataclass(frozen=True)
class RetryPolicy:
    """Timeout and backoff for one request shape."""

    timeout: float
    max_retries: int  # additional attempts after the first
    base_delay: float  # seconds; doubles after every failed attempt

    def delay_for(self, attempt: int) -> float:
        """Delay before retry number attempt+1 (attempt is 0-based)."""
        return self.base_delay * (2**attempt)


# Long-running analyze calls: 3 minutes, retries after 2s then 4s
POST_POLICY = RetryPolicy(timeout=float(CLIENT_REQUEST_TIMEOUT), max_retries=2, base_delay=2.0)
# Lightweight reads: 30 seconds, one retry after 1s
GET_POLICY = RetryPolicy(timeout=30.0, max_retries=1, base_delay=1.0)


def is_retryable_status(status_code: int) -> bool:
    """5xx and 408 Request Timeout are retried; everything else is final."""
    return status_code >= 500 or status_code == 408


class RetryingGateway:
    """HTTP client for the imagegc API with retry/backoff and auth-redirect handling."""

    def __init__(
        self,
        base_url: str,
        *,
        session: requests.Session | None = None,
        access_token: str | None = None,
        on_auth_required: Callable[[str], None] | None = None,
        login_path: str = DEFAULT_LOGIN_PATH,
        post_policy: RetryPolicy = POST_POLICY,
        get_policy: RetryPolicy = GET_POLICY,
        sleep: Callable[[float], None] = time.sleep,
    ) -> None:
        """
        Args:
            base_url: Server root, e.g. http://localhost:8000
            session: requests session to reuse (a new one is created if omitted)
            access_token: Optional bearer token sent with every request
            on_auth_required: Called with the login URL when the server answers 401/403
            login_path: Path of the login flow, relative to base_url
            post_policy: Retry policy for POST requests
            get_policy: Retry policy for GET requests
            sleep: Function used to wait between attempts
        """
        self._base_url = base_url.rstrip("/") + "/"
        self._session = session or requests.Session()
        self._access_token = access_token
        self._on_auth_required = on_auth_required
        self._login_url = urljoin(self._base_url, login_path)
        self._post_policy = post_policy
        self._get_policy = get_policy
        self._sleep = sleep

    @property
    def login_url(self) -> str:
        return self._login_url

    def post(self, path: str, payload: Any) -> Any:
        """POST payload as JSON and return the parsed response body."""
        return self._request("POST", path, self._post_policy, json_body=payload)

    def get(self, path: str) -> Any:
        """GET path and return the parsed response body."""
        return self._request("GET", path, self._get_policy)

    def _headers(self) -> dict[str, str]:
        headers = {"Accept": "application/json"}
        if self._access_token:
            headers["Authorization"] = f"Bearer {self._access_token}"
        return headers

    def _redirect_to_login(self, url: str, response: requests.Response) -> AuthError:
        logger.warning(
            "Authentication failed for request to %s. Status: %s", url, response.status_code
        )
        if self._on_auth_required is not None:
            self._on_auth_required(self._login_url)
        return AuthError(
            f"Authentication required (status {response.status_code}). Log in at {self._login_url}",
            status_code=response.status_code,
            body=response.text,
            login_url=self._login_url,
        )

    @staticmethod
    def _parse(response: requests.Response, url: str) -> Any:
        if not response.content:
            return None
        try:
            return response.json()
        except ValueError as e:
            raise GatewayError(
                f"Response from {url} is not valid JSON: {e}",
                status_code=response.status_code,
                body=response.text,
            ) from e

    def _request(
        self,
        method: str,
        path: str,
        policy: RetryPolicy,
        json_body: Any = None,
    ) -> Any:
        url = urljoin(self._base_url, path.lstrip("/"))
        attempts = policy.max_retries + 1
        last_status = 0
        last_body = ""
        last_timed_out = False

        for attempt in range(attempts):
            retry_logger.debug(
                "Making %s request to %s (attempt %d/%d)", method, url, attempt + 1, attempts
            )
            try:
                response = self._session.request(
                    method,
                    url,
                    json=json_body,
                    headers=self._headers(),
                    timeout=policy.timeout,
                )
            except requests.exceptions.Timeout:
                last_status, last_body, last_timed_out = 0, "", True
                logger.warning("Request to %s timed out after %ss", url, policy.timeout)
            except requests.exceptions.ConnectionError as e:
                last_status, last_body, last_timed_out = 0, str(e), False
                logger.warning("Connection to %s failed: %s", url, e)
            else:
                status = response.status_code
                if 200 <= status < 300:
                    logger.info("Request to %s successful. Status: %s", url, status)
                    return self._parse(response, url)
                if status in (401, 403):
                    raise self._redirect_to_login(url, response)
                if not is_retryable_status(status):
                    logger.error(
                        "Request to %s failed. Status: %s, Error: %s", url, status, response.text
                    )
                    raise GatewayError(
                        f"API request failed: {status}, {response.text}",
                        status_code=status,
                        body=response.text,
                    )
                last_status, last_body, last_timed_out = status, response.text, status == 408
                logger.warning("Request to %s failed with retryable status %s", url, status)

            if attempt + 1 < attempts:
                delay = policy.delay_for(attempt)
                retry_logger.debug("Retrying %s %s in %.1fs", method, url, delay)
                self._sleep(delay)

        logger.error("Request to %s failed after %d attempts", url, attempts)
        if last_timed_out:
            raise RequestTimeoutError(
                f"Request to {url} timed out after {attempts} attempts. "
                "The server may be busy; please try again later."
            )
        raise TransientNetworkError(
            f"Request to {url} failed after {attempts} attempts"
            + (f" (last status {last_status})" if last_status else ""),
            status_code=last_status,
            body=last_body,
            attempts=attempts,
        )
