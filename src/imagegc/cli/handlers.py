"""
Error handling for the CLI.

Maps library and gateway exceptions to exit codes and user-facing messages.
"""

import json
import sys
from collections.abc import Callable

import click

from imagegc.cli import progress
from imagegc.cli.utils import (
    EXIT_API_OR_NETWORK,
    EXIT_AUTH_REQUIRED,
    EXIT_VALIDATION_OR_CONFIG,
)
from imagegc.utils.exceptions import (
    APIError,
    AuthError,
    ConfigurationError,
    GatewayError,
    ImagegcError,
    NetworkError,
    RequestTimeoutError,
    ValidationError,
)


def map_exception_to_exit(exc: BaseException) -> tuple[int, str]:
    """Map library and known exceptions to (exit_code, user_message)."""
    if isinstance(exc, ValidationError):
        msg = exc.args[0] if exc.args else "Validation failed."
        if getattr(exc, "field", None):
            msg = f"{msg} (field: {exc.field})"
        return (EXIT_VALIDATION_OR_CONFIG, msg)
    if isinstance(exc, ConfigurationError):
        return (EXIT_VALIDATION_OR_CONFIG, exc.args[0] if exc.args else "Invalid configuration.")
    if isinstance(exc, AuthError):
        msg = exc.args[0] if exc.args else "Authentication required."
        return (EXIT_AUTH_REQUIRED, msg)
    if isinstance(exc, GatewayError):
        if 400 <= exc.status_code < 500:
            return (EXIT_VALIDATION_OR_CONFIG, _server_error_message(exc))
        return (EXIT_API_OR_NETWORK, _server_error_message(exc))
    if isinstance(exc, (APIError, NetworkError, RequestTimeoutError)):
        return (EXIT_API_OR_NETWORK, exc.args[0] if exc.args else "API or network error.")
    if isinstance(exc, ImagegcError):
        return (EXIT_API_OR_NETWORK, exc.args[0] if exc.args else "An error occurred.")
    # Unhandled
    return (EXIT_API_OR_NETWORK, str(exc) if exc.args else "An unexpected error occurred.")


def _server_error_message(exc: GatewayError) -> str:
    """Prefer the server's {"error": ...} text over the raw response body."""
    try:
        body = json.loads(exc.body) if exc.body else None
    except ValueError:
        body = None
    if isinstance(body, dict) and isinstance(body.get("error"), str):
        return f"Server rejected the request ({exc.status_code}): {body['error']}"
    return exc.args[0] if exc.args else "Request failed."


def run_with_error_handling(
    fn: Callable[[], None],
    *,
    quiet: bool = False,
    debug: bool = False,
) -> None:
    """
    Run fn(); on exception map to exit code and message, print and sys.exit.
    Used so the analyze flow stays free of try/except for known errors.

    With debug (-vv), unexpected exceptions propagate with their traceback;
    ImagegcError is always mapped.
    """
    try:
        fn()
    except Exception as e:
        if debug and not isinstance(e, ImagegcError):
            raise
        code, msg = map_exception_to_exit(e)
        if quiet:
            click.echo(msg, err=True)
        else:
            progress.print_error(msg)
        sys.exit(code)


__all__ = [
    "map_exception_to_exit",
    "run_with_error_handling",
]
