"""Async HTTP transport for the GitHub REST API.

Request lifecycle:

1. Send the request with auth, accept and API-version headers.
2. On ``2xx`` -- return the parsed JSON response.
3. On ``409`` (or a ``422`` about the blob ``sha``) -- raise
   :class:`SitepressConflictError`; the conflict policy decides what next.
4. On other ``4xx`` -- raise the matching typed error immediately.
5. On rate limiting (``429``, throttled ``403``), ``5xx`` or a network
   error -- back off and retry while ``transport_max_attempts`` allows,
   then raise a transport error.  A server-requested wait longer than
   ``transport_max_delay`` ends the retries at once.
"""

from __future__ import annotations

import asyncio
import json as _json
import sys
import time
from typing import Any

import httpx

from sitepress.config import SitepressConfig
from sitepress.errors import (
    SitepressAuthError,
    SitepressConflictError,
    SitepressNetworkError,
    SitepressNotFoundError,
    SitepressPermissionError,
    SitepressRetryExhaustedError,
    SitepressTransportError,
)
from sitepress.observability import NoopMetricsHook, get_logger

from .retries import (
    compute_backoff,
    network_reason,
    rate_limit_wait,
    retry_reason,
    should_retry,
)

log = get_logger("sitepress.transport")


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------

def _error_message(response: httpx.Response) -> tuple[str, Any]:
    """Return ``(message, body)`` from a GitHub error response."""
    try:
        body = response.json()
    except ValueError:
        body = {}
    if not isinstance(body, dict):
        body = {}
    return body.get("message", response.text[:500]), body


_SHA_CONFLICT_HINTS: tuple[str, ...] = ("wasn't supplied", "does not match")


def _is_sha_conflict(message: str) -> bool:
    # 422 "\"sha\" wasn't supplied" when a create races an existing file, or
    # "... does not match <sha>" when an update races another commit.  Other
    # 422s that mention the sha (e.g. a malformed one) are final.
    lowered = message.lower()
    return "sha" in lowered and any(hint in lowered for hint in _SHA_CONFLICT_HINTS)


def _raise_for_status(response: httpx.Response, method: str, path: str) -> None:
    """Raise the typed error for a non-retryable ``4xx`` response."""
    status = response.status_code
    store_message, body = _error_message(response)
    ctx: dict[str, Any] = {"status_code": status, "method": method, "path": path}

    if status == 404:
        raise SitepressNotFoundError(
            message=f"Not found on {method} {path}",
            context=ctx,
        )
    if status == 409 or (status == 422 and _is_sha_conflict(store_message)):
        raise SitepressConflictError(
            message=f"Version conflict on {method} {path}: {store_message}",
            context=ctx,
        )
    if status == 401:
        raise SitepressAuthError(
            message=f"Authentication failed on {method} {path}: {store_message}",
            context=ctx,
        )
    if status == 403:
        raise SitepressPermissionError(
            message=f"Permission denied on {method} {path}: {store_message}",
            context=ctx,
        )

    raise SitepressTransportError(
        message=f"Client error {status} on {method} {path}: {store_message}",
        context={**ctx, "errors": body.get("errors")},
    )


def _dump_payload(
    method: str,
    url: str,
    payload: dict | None,
    response_status: int | None,
    response_body: Any | None,
    token: str | None = None,
) -> None:
    """Write a redacted debug dump of the request/response to stderr."""
    from sitepress.utils.redact import redact

    dump: dict[str, Any] = {
        "method": method,
        "url": url,
    }
    if payload is not None:
        dump["request_body"] = payload
    if response_status is not None:
        dump["response_status"] = response_status
    if response_body is not None:
        dump["response_body"] = response_body
    print(
        _json.dumps(redact(dump, token), indent=2, default=str),
        file=sys.stderr,
    )


def _emit_debug_dump(
    config: SitepressConfig,
    method: str,
    response: httpx.Response,
    json_payload: Any,
) -> None:
    if not config.debug_dump_payload:
        return
    try:
        resp_body = response.json()
    except ValueError:
        resp_body = response.text[:1000]
    _dump_payload(
        method, str(response.url), json_payload,
        response.status_code, resp_body,
        token=config.token,
    )


# ---------------------------------------------------------------------------
# Async transport
# ---------------------------------------------------------------------------

class AsyncGitHubTransport:
    """Asynchronous GitHub REST transport with auth and typed errors.

    Parameters
    ----------
    config:
        A :class:`SitepressConfig` controlling all transport behaviour.
    """

    def __init__(self, config: SitepressConfig) -> None:
        self._config = config
        self._metrics = config.metrics if config.metrics is not None else NoopMetricsHook()

        proxy: httpx.URL | str | None = config.http_proxy
        self._client = httpx.AsyncClient(
            base_url=config.base_url,
            headers={
                "Authorization": f"Bearer {config.token}",
                "Accept": "application/vnd.github+json",
                "X-GitHub-Api-Version": config.api_version,
            },
            timeout=httpx.Timeout(config.timeout_seconds),
            proxy=proxy,
        )

    # -- public API --------------------------------------------------------

    async def request(self, method: str, path: str, **kwargs: Any) -> Any:
        """Execute an HTTP request against the GitHub API.

        Parameters
        ----------
        method:
            HTTP method.
        path:
            API path relative to ``base_url``
            (e.g. ``/repos/o/r/contents/x``).
        **kwargs:
            Forwarded to :meth:`httpx.AsyncClient.request` (``json=``,
            ``params=``, ``headers=``).

        Returns
        -------
        Any
            Parsed JSON body, or ``{}`` for an empty response.

        Raises
        ------
        SitepressNotFoundError
            On 404.
        SitepressConflictError
            On 409, or 422 about the blob ``sha``.
        SitepressAuthError
            On 401.
        SitepressPermissionError
            On 403 that is not rate limiting.
        SitepressTransportError
            On other non-retryable 4xx.
        SitepressRetryExhaustedError
            When rate limiting or 5xx persisted through every allowed
            attempt.
        SitepressNetworkError
            On transport-level failures after the last allowed attempt.
        """
        max_attempts = self._config.transport_max_attempts
        last_exception: Exception | None = None
        last_status: int | None = None
        last_reason: str | None = None

        json_payload = kwargs.get("json")

        for attempt in range(max_attempts):
            t0 = time.monotonic()
            try:
                response = await self._client.request(method, path, **kwargs)
                elapsed_ms = (time.monotonic() - t0) * 1000
            except (httpx.TimeoutException, httpx.NetworkError) as exc:
                last_exception = exc
                last_status = None
                delay = self._handle_network_exception(method, path, exc, attempt)
                await asyncio.sleep(delay)
                continue

            last_status = response.status_code
            last_exception = None
            tags = {"method": method, "status": str(response.status_code)}
            self._metrics.increment("sitepress.requests_total", tags=tags)
            self._metrics.timing("sitepress.request_duration_ms", elapsed_ms, tags=tags)

            _emit_debug_dump(self._config, method, response, json_payload)

            if 200 <= response.status_code < 300:
                if response.status_code == 204 or not response.content:
                    return {}
                return response.json()

            reason = retry_reason(response)
            if reason is None:
                _raise_for_status(response, method, path)
            last_reason = reason

            wait_hint = rate_limit_wait(response)
            if not should_retry(reason, attempt, max_attempts):
                break
            if wait_hint is not None and wait_hint > self._config.transport_max_delay:
                break

            delay = compute_backoff(
                attempt,
                base=self._config.transport_base_delay,
                maximum=self._config.transport_max_delay,
                jitter=self._config.transport_jitter,
                wait_hint=wait_hint,
            )
            log.warning(
                "Retryable response from store",
                extra={
                    "extra_fields": {
                        "op": "request",
                        "method": method,
                        "path": path,
                        "status_code": response.status_code,
                        "reason": reason,
                        "attempt": attempt + 1,
                        "delay": delay,
                    }
                },
            )
            self._metrics.increment(
                "sitepress.retries_total",
                tags={"method": method, "reason": reason},
            )
            await asyncio.sleep(delay)

        attempts_made = attempt + 1
        ctx: dict[str, Any] = {
            "attempts": attempts_made,
            "last_status_code": last_status,
            "reason": last_reason,
            "method": method,
            "path": path,
        }
        if last_exception is not None:
            raise SitepressRetryExhaustedError(
                message=(
                    f"All {attempts_made} attempts failed for {method} {path} "
                    f"(last error: {last_exception})"
                ),
                context=ctx,
                cause=last_exception,
            )
        raise SitepressRetryExhaustedError(
            message=(
                f"All {attempts_made} attempts failed for {method} {path} "
                f"(last status: {last_status})"
            ),
            context=ctx,
        )

    def _handle_network_exception(
        self,
        method: str,
        path: str,
        exc: Exception,
        attempt: int,
    ) -> float:
        """Return the backoff delay, or raise when no attempt remains."""
        self._metrics.increment(
            "sitepress.requests_total",
            tags={"method": method, "status": "error"},
        )
        log.warning(
            "Request network error",
            extra={
                "extra_fields": {
                    "op": "request",
                    "method": method,
                    "path": path,
                    "attempt": attempt + 1,
                    "error": str(exc),
                }
            },
        )
        reason = network_reason(exc)
        if should_retry(reason, attempt, self._config.transport_max_attempts):
            self._metrics.increment(
                "sitepress.retries_total",
                tags={"method": method, "reason": reason},
            )
            return compute_backoff(
                attempt,
                base=self._config.transport_base_delay,
                maximum=self._config.transport_max_delay,
                jitter=self._config.transport_jitter,
            )
        raise SitepressNetworkError(
            message=f"Network error on {method} {path}: {exc}",
            context={"path": path, "attempt": attempt + 1},
            cause=exc,
        ) from exc

    async def close(self) -> None:
        """Close the underlying async HTTP client."""
        await self._client.aclose()

    async def __aenter__(self) -> AsyncGitHubTransport:
        return self

    async def __aexit__(self, *exc: object) -> None:
        await self.close()
