"""
Provider failure classification and caller-side retry for rate-limited requests.

Classification relies on HTTP conventions and exception names only, so no
provider SDK has to be importable. The analyzer never retries on its own;
callers opt in with invoke_with_rate_limit_retry.
"""

from __future__ import annotations

import logging
import re
from datetime import datetime, timezone
from email.utils import parsedate_to_datetime
from typing import Callable, Iterator, Optional, Sequence, TypeVar

from tenacity import RetryCallState, Retrying, retry_if_exception, stop_after_attempt

logger = logging.getLogger(__name__)

T = TypeVar("T")

RATE_LIMIT = "rate_limit"
AUTH = "auth"
TIMEOUT = "timeout"
NETWORK = "network"
PROVIDER = "provider"

RESET_HEADERS = ("x-ratelimit-reset-requests", "x-ratelimit-reset-tokens", "retry-after")
MAX_HEADER_WAIT_SECONDS = 300.0
MAX_BACKOFF_SECONDS = 60.0

_STATUS_REASONS = {429: RATE_LIMIT, 401: AUTH, 403: AUTH, 408: TIMEOUT, 504: TIMEOUT}

# Checked in order against the lowercased exception class name
_NAME_REASONS = (
    (("ratelimit", "resourceexhausted", "toomanyrequests"), RATE_LIMIT),
    (("authentication", "permissiondenied", "unauthenticated", "unauthorized"), AUTH),
    (("timeout", "deadlineexceeded"), TIMEOUT),
    (("connection", "network", "serviceunavailable"), NETWORK),
)

# Go-style durations as sent by OpenAI-compatible APIs: 1h2m3s, 6m0s, 1.5s, 250ms
_DURATION = re.compile(
    r"^(?:(?P<h>\d+)h)?(?:(?P<m>\d+)m(?!s))?(?:(?P<s>\d+(?:\.\d+)?)s)?(?:(?P<ms>\d+)ms)?$"
)


def _exception_chain(exc: BaseException) -> Iterator[BaseException]:
    seen = set()
    current: Optional[BaseException] = exc
    while current is not None and id(current) not in seen:
        seen.add(id(current))
        yield current
        current = current.__cause__ or current.__context__


def get_status_code(exc: BaseException) -> Optional[int]:
    """First integer HTTP status found on an exception in the chain or on its response."""
    for candidate in _exception_chain(exc):
        for source in (candidate, getattr(candidate, "response", None)):
            for attr in ("status_code", "code"):
                status = getattr(source, attr, None)
                if isinstance(status, int) and not isinstance(status, bool):
                    return status
    return None


def classify_provider_error(exc: BaseException) -> str:
    """
    Map a provider exception onto a failure reason.

    A known HTTP status wins. Otherwise builtin timeout and connection errors,
    then well-known exception class names, are checked along the cause chain.
    Anything else is a generic provider failure.
    """
    status_reason = _STATUS_REASONS.get(get_status_code(exc))
    if status_reason:
        return status_reason

    for candidate in _exception_chain(exc):
        if isinstance(candidate, TimeoutError):
            return TIMEOUT
        if isinstance(candidate, ConnectionError):
            return NETWORK
        name = type(candidate).__name__.lower()
        for tokens, reason in _NAME_REASONS:
            if any(token in name for token in tokens):
                return reason
    return PROVIDER


def is_rate_limit_error(exc: BaseException) -> bool:
    if getattr(exc, "reason", None) == RATE_LIMIT:
        return True
    return get_status_code(exc) == 429


def _parse_duration_to_seconds(value: Optional[str]) -> Optional[float]:
    """
    Parse a reset header value into seconds.

    Accepts plain seconds ("55"), Go-style durations ("6m0s", "1.5s", "250ms")
    and Retry-After HTTP dates. Returns None when the value is unusable or
    the date is already in the past.
    """
    if not isinstance(value, str):
        return None
    value = value.strip().lower()
    if not value:
        return None
    if value.isdigit():
        return float(value)

    match = _DURATION.match(value)
    if match and any(match.groupdict().values()):
        parts = match.groupdict()
        return (
            int(parts["h"] or 0) * 3600
            + int(parts["m"] or 0) * 60
            + float(parts["s"] or 0)
            + int(parts["ms"] or 0) / 1000
        )

    try:
        reset_at = parsedate_to_datetime(value)
    except (TypeError, ValueError):
        return None
    if reset_at is None:
        return None
    if reset_at.tzinfo is None:
        reset_at = reset_at.replace(tzinfo=timezone.utc)
    remaining = (reset_at - datetime.now(timezone.utc)).total_seconds()
    return remaining if remaining > 0 else None


def get_reset_seconds_from_exception(exc: BaseException,
                                     header_names: Sequence[str] = RESET_HEADERS) -> Optional[float]:
    """Seconds until the provider's rate limit resets, read from response headers in the chain."""
    for candidate in _exception_chain(exc):
        headers = getattr(getattr(candidate, "response", None), "headers", None)
        if headers is None or not hasattr(headers, "get"):
            continue
        for name in header_names:
            raw = headers.get(name)
            if isinstance(raw, (int, float)) and not isinstance(raw, bool):
                return float(raw)
            seconds = _parse_duration_to_seconds(raw)
            if seconds is not None:
                return seconds
        return None
    return None


def _rate_limit_wait(initial_delay: float, exponential_base: float,
                     use_header_reset: bool) -> Callable[[RetryCallState], float]:
    def wait(retry_state: RetryCallState) -> float:
        if use_header_reset and retry_state.outcome is not None:
            reset = get_reset_seconds_from_exception(retry_state.outcome.exception())
            if reset:
                return min(reset, MAX_HEADER_WAIT_SECONDS)
        return min(initial_delay * exponential_base ** retry_state.attempt_number, MAX_BACKOFF_SECONDS)

    return wait


def _log_retry(retry_state: RetryCallState) -> None:
    logger.warning(
        "Model request was rate limited, retrying",
        extra={
            "component": "RateLimit",
            "data": {
                "attempt": retry_state.attempt_number,
                "wait_seconds": round(retry_state.next_action.sleep, 2) if retry_state.next_action else None,
            },
        },
    )


def invoke_with_rate_limit_retry(func: Callable[[], T],
                                 max_retries: int = 1,
                                 initial_delay: float = 1.0,
                                 exponential_base: float = 2.0,
                                 use_header_reset: bool = True) -> T:
    """
    Call ``func`` and retry it while it fails with a rate limit.

    ``max_retries`` counts total attempts, so the default of 1 never retries.
    Any other failure, or the last rate-limit failure, is re-raised unchanged.
    """
    retrying = Retrying(
        retry=retry_if_exception(is_rate_limit_error),
        stop=stop_after_attempt(max(1, max_retries)),
        wait=_rate_limit_wait(initial_delay, exponential_base, use_header_reset),
        before_sleep=_log_retry,
        reraise=True,
    )
    return retrying(func)
