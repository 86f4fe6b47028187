"""Which GitHub responses are transient, and how long to wait on them.

GitHub signals throttling in two ways: ``429``, or ``403`` with either a
``Retry-After`` header (secondary limit) or ``x-ratelimit-remaining: 0``
(primary limit, paired with an epoch ``x-ratelimit-reset``).  A plain
``403`` is a permission problem and is never retried.

Version conflicts are not transport concerns; they are handled by
:class:`sitepress.publish.retry.ConflictRetryPolicy`.
"""

from __future__ import annotations

import random
import time

import httpx

RATE_LIMITED = "rate_limited"
SERVER_ERROR = "server_error"
NETWORK_ERROR = "network_error"

_SERVER_ERROR_STATUSES: frozenset[int] = frozenset({500, 502, 503, 504})

_NETWORK_EXCEPTIONS: tuple[type[Exception], ...] = (
    httpx.TimeoutException,
    httpx.NetworkError,
)


def _header_float(response: httpx.Response, name: str) -> float | None:
    raw = response.headers.get(name)
    if raw is None:
        return None
    try:
        return float(raw)
    except ValueError:
        return None


def _quota_spent(response: httpx.Response) -> bool:
    return response.headers.get("x-ratelimit-remaining") == "0"


def retry_reason(response: httpx.Response) -> str | None:
    """Return why *response* is worth retrying, or ``None`` if it is final."""
    status = response.status_code
    if status == 429:
        return RATE_LIMITED
    if status == 403 and ("retry-after" in response.headers or _quota_spent(response)):
        return RATE_LIMITED
    if status in _SERVER_ERROR_STATUSES:
        return SERVER_ERROR
    return None


def network_reason(exc: Exception) -> str | None:
    return NETWORK_ERROR if isinstance(exc, _NETWORK_EXCEPTIONS) else None


def should_retry(reason: str | None, attempt: int, max_attempts: int) -> bool:
    """``True`` when *reason* is transient and another attempt is allowed.

    *attempt* is 0-indexed; *max_attempts* includes the first request.
    """
    return reason is not None and attempt + 1 < max_attempts


def rate_limit_wait(response: httpx.Response, *, now: float | None = None) -> float | None:
    """Seconds GitHub asked the client to wait, if it said.

    ``Retry-After`` wins.  Otherwise, once the quota is spent, the wait runs
    until ``x-ratelimit-reset`` (epoch seconds, compared against *now*).
    """
    retry_after = _header_float(response, "retry-after")
    if retry_after is not None:
        return max(retry_after, 0.0)
    if _quota_spent(response):
        reset = _header_float(response, "x-ratelimit-reset")
        if reset is not None:
            current = time.time() if now is None else now
            return max(reset - current, 0.0)
    return None


def compute_backoff(
    attempt: int,
    *,
    base: float,
    maximum: float,
    jitter: bool = True,
    wait_hint: float | None = None,
) -> float:
    """Delay before the next transport retry.

    A server *wait_hint* is used as given.  Otherwise the delay doubles per
    attempt from *base*, capped at *maximum*; with *jitter* the upper half
    of that window is randomized.
    """
    if wait_hint is not None:
        return wait_hint

    delay = min(base * (2 ** attempt), maximum)
    if jitter:
        half = delay / 2
        delay = half + random.uniform(0, half)
    return delay
