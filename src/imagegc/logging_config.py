"""
Logging setup for imagegc.

Everything logs under the ``imagegc`` logger. Stage modules report activity
and timings at INFO. Per-request detail goes to three trace channels that
stay silent until verbosity 2:

- ``imagegc.trace.state``: pipeline state transitions
- ``imagegc.trace.retry``: gateway attempts and backoff delays
- ``imagegc.trace.api``: outbound Azure calls (service, URL, status, elapsed time)

Verbosity 1 also logs description and prompt text. Nothing is attached until
configure_logging() or set_verbosity() runs, so applications embedding the
pipeline keep control of their own handlers. IMAGEGC_VERBOSITY (0/1/2) is the
CLI default; -v flags override it.
"""

import logging
import os
from dataclasses import dataclass

LOG_FORMAT = "%(levelname)s [%(name)s] %(message)s"
ROOT_LOGGER_NAME = "imagegc"
VERBOSITY_ENV = "IMAGEGC_VERBOSITY"

STATE_TRACE = "imagegc.trace.state"
RETRY_TRACE = "imagegc.trace.retry"
API_TRACE = "imagegc.trace.api"
TRACE_CHANNELS = (STATE_TRACE, RETRY_TRACE, API_TRACE)


@dataclass(frozen=True)
class _Profile:
    level: int
    trace_level: int
    descriptions: bool


_PROFILES = {
    0: _Profile(logging.INFO, logging.WARNING, False),
    1: _Profile(logging.INFO, logging.WARNING, True),
    2: _Profile(logging.INFO, logging.DEBUG, True),
}
_QUIET = _Profile(logging.WARNING, logging.WARNING, False)

_active: _Profile = _PROFILES[0]


def _apply(profile: _Profile) -> None:
    global _active
    root = logging.getLogger(ROOT_LOGGER_NAME)
    if not root.handlers:
        handler = logging.StreamHandler()
        handler.setFormatter(logging.Formatter(LOG_FORMAT))
        root.addHandler(handler)
    root.setLevel(profile.level)
    for channel in TRACE_CHANNELS:
        logging.getLogger(channel).setLevel(profile.trace_level)
    _active = profile


def set_verbosity(level: int) -> None:
    """Select verbosity 0, 1 or 2; values outside the range are clamped."""
    _apply(_PROFILES[min(max(level, 0), 2)])


def configure_logging(verbose_level: int = 0, quiet: bool = False) -> None:
    """Configure logging for the CLI. quiet shows warnings and errors only."""
    if quiet:
        _apply(_QUIET)
    else:
        set_verbosity(verbose_level)


def log_descriptions() -> bool:
    """True when description and prompt text may be logged (verbosity 1 or 2)."""
    return _active.descriptions


def get_verbosity_from_env() -> int:
    raw = os.environ.get(VERBOSITY_ENV, "").strip()
    return int(raw) if raw in ("0", "1", "2") else 0


def get_logger(name: str) -> logging.Logger:
    """Return a logger under imagegc; module names are prefixed, full names kept."""
    if name == ROOT_LOGGER_NAME or name.startswith(ROOT_LOGGER_NAME + "."):
        return logging.getLogger(name)
    return logging.getLogger(f"{ROOT_LOGGER_NAME}.{name}")


__all__ = [
    "API_TRACE",
    "RETRY_TRACE",
    "STATE_TRACE",
    "configure_logging",
    "get_logger",
    "get_verbosity_from_env",
    "log_descriptions",
    "set_verbosity",
]
