"""Retry-on-conflict around a single "set this path's content" operation.

The store's write is a compare-and-swap on the version token.  Losing that
race to a concurrent writer is expected and self-healing: re-read, recompute,
write again.  Everything else (transport, auth, validation, structural
errors raised while computing the new content) propagates on the first
occurrence.

The retry decision is a pure function, :func:`decide`, mapping the outcome
of one attempt to :class:`Retry`, :class:`Succeed` or :class:`Fail`.
:class:`ConflictRetryPolicy` drives it with an injectable ``sleep`` so tests
never wait for real.
"""

from __future__ import annotations

import asyncio
from collections.abc import Awaitable, Callable
from dataclasses import dataclass
from typing import Union

from sitepress.config import SitepressConfig
from sitepress.errors import SitepressConflictError
from sitepress.github_api.store import RemoteFileStore
from sitepress.models import RemoteFile, WriteResult
from sitepress.observability import NoopMetricsHook, get_logger

log = get_logger("sitepress.retry")

Render = Callable[[RemoteFile], Union[str, bytes]]
Sleep = Callable[[float], Awaitable[None]]


# ---------------------------------------------------------------------------
# Pure decision
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class AttemptState:
    """What happened on attempt number ``attempt`` (1-based)."""

    path: str
    attempt: int
    outcome: WriteResult | None = None
    error: SitepressConflictError | None = None


@dataclass(frozen=True)
class Retry:
    delay: float


@dataclass(frozen=True)
class Succeed:
    value: WriteResult


@dataclass(frozen=True)
class Fail:
    error: SitepressConflictError


Step = Union[Retry, Succeed, Fail]


def conflict_backoff(attempt: int, base: float, maximum: float) -> float:
    """Attempt-proportional delay: ``base * attempt``, capped at *maximum*."""
    return min(base * attempt, maximum)


def decide(
    state: AttemptState,
    *,
    max_attempts: int,
    base_delay: float,
    max_delay: float,
) -> Step:
    """Map the outcome of one attempt to the next step.

    Examples
    --------
    >>> decide(AttemptState("p", 1, error=SitepressConflictError("x")),
    ...        max_attempts=3, base_delay=0.5, max_delay=5.0)
    Retry(delay=0.5)
    """
    if state.error is None:
        assert state.outcome is not None
        return Succeed(state.outcome)
    if state.attempt >= max_attempts:
        return Fail(
            SitepressConflictError(
                message=(
                    f"Gave up on {state.path} after {state.attempt} "
                    f"conflicting attempts"
                ),
                context={
                    **state.error.context,
                    "path": state.path,
                    "attempts": state.attempt,
                },
                cause=state.error,
            )
        )
    return Retry(conflict_backoff(state.attempt, base_delay, max_delay))


# ---------------------------------------------------------------------------
# Scheduler
# ---------------------------------------------------------------------------

def _as_bytes(content: str | bytes) -> bytes:
    return content.encode("utf-8") if isinstance(content, str) else content


class ConflictRetryPolicy:
    """Read-token, conditional-write, retry-on-conflict for one path.

    Parameters
    ----------
    store:
        Any :class:`RemoteFileStore`.
    config:
        Supplies ``conflict_max_attempts``, ``conflict_base_delay``,
        ``conflict_max_delay`` and the metrics hook.
    sleep:
        Awaitable used between attempts.  Defaults to :func:`asyncio.sleep`.
    """

    def __init__(
        self,
        store: RemoteFileStore,
        config: SitepressConfig,
        *,
        sleep: Sleep = asyncio.sleep,
    ) -> None:
        self._store = store
        self._config = config
        self._sleep = sleep
        self._metrics = config.metrics if config.metrics is not None else NoopMetricsHook()

    async def put(self, path: str, content: str | bytes, *, message: str) -> WriteResult:
        """Set *path* to *content*, whatever its current revision."""
        return await self.rewrite(path, lambda _current: content, message=message)

    async def rewrite(self, path: str, render: Render, *, message: str) -> WriteResult:
        """Set *path* to ``render(current)``, re-rendering on every retry.

        *render* receives the freshly read :class:`RemoteFile` (which may
        not exist) and returns the full new content.  Exceptions it raises
        propagate without retry.

        Raises
        ------
        SitepressConflictError
            When every allowed attempt lost the race.
        """
        attempt = 0
        while True:
            attempt += 1
            try:
                outcome = await self._attempt(path, render, message, attempt)
                state = AttemptState(path, attempt, outcome=outcome)
            except SitepressConflictError as exc:
                self._metrics.increment("sitepress.conflicts_total")
                state = AttemptState(path, attempt, error=exc)

            step = decide(
                state,
                max_attempts=self._config.conflict_max_attempts,
                base_delay=self._config.conflict_base_delay,
                max_delay=self._config.conflict_max_delay,
            )
            if isinstance(step, Succeed):
                return step.value
            if isinstance(step, Fail):
                log.error(
                    "Version conflict retries exhausted",
                    extra={"extra_fields": {"op": "write", "path": path, "attempts": attempt}},
                )
                raise step.error

            log.warning(
                "Version conflict, retrying",
                extra={
                    "extra_fields": {
                        "op": "write",
                        "path": path,
                        "attempt": attempt,
                        "delay": step.delay,
                    }
                },
            )
            await self._sleep(step.delay)

    async def _attempt(
        self, path: str, render: Render, message: str, attempt: int,
    ) -> WriteResult:
        current = await self._store.read(path)
        new_content = _as_bytes(render(current))

        if current.exists and current.content == new_content:
            assert current.version_token is not None
            return WriteResult(
                path=path,
                version_token=current.version_token,
                changed=False,
                attempts=attempt,
            )

        token = await self._store.write(
            path, new_content, current.version_token, message=message,
        )
        return WriteResult(path=path, version_token=token, changed=True, attempts=attempt)
