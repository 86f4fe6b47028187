"""Batch publisher: write every file of a :class:`PublishUnit` in order.

Files are taken from an explicit FIFO queue and written one at a time, each
completing its own conflict-retry cycle before the next is started.  The
batch is **not** transactional: a failure leaves the earlier files
committed, skips the later ones, and is reported as a
:class:`SitepressPublishError` naming the failing path.
"""

from __future__ import annotations

import time
from collections import deque
from collections.abc import Callable
from dataclasses import replace

from sitepress.config import SitepressConfig
from sitepress.errors import SitepressDeadlineError, SitepressError, SitepressPublishError
from sitepress.models import PublishResult, PublishUnit, SiteFile
from sitepress.observability import NoopMetricsHook, get_logger
from sitepress.utils import normalize_slug

from .retry import ConflictRetryPolicy

log = get_logger("sitepress.publish")


def publish_message(slug: str, relative_path: str) -> str:
    return f"Publish {slug}: {relative_path}"


def _code_name(code: str) -> str:
    return getattr(code, "value", code)


class BatchPublisher:
    """Sequential, non-transactional publisher for one site.

    Parameters
    ----------
    policy:
        The :class:`ConflictRetryPolicy` every write goes through.
    config:
        SDK configuration (metrics hook).
    clock:
        Monotonic clock used for deadlines.  Defaults to
        :func:`time.monotonic`.
    """

    def __init__(
        self,
        policy: ConflictRetryPolicy,
        config: SitepressConfig,
        *,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self._policy = policy
        self._clock = clock
        self._metrics = config.metrics if config.metrics is not None else NoopMetricsHook()

    async def publish(
        self,
        unit: PublishUnit,
        *,
        deadline: float | None = None,
    ) -> PublishResult:
        """Write every file of *unit* under ``{slug}/``.

        The slug is normalized first; an unusable one is rejected before
        any store access.

        Parameters
        ----------
        unit:
            The site to publish.  Files are written in the order given.
        deadline:
            Optional budget in seconds for the whole batch.  It is checked
            before each file; a write already in flight is never
            interrupted.

        Returns
        -------
        PublishResult
            The slug and every path written.

        Raises
        ------
        SitepressValidationError
            If the slug is empty after normalization.
        SitepressPublishError
            On the first failing file.  ``context`` carries ``path``,
            ``index``, ``committed`` and ``error_code``; ``cause`` is the
            underlying error.
        """
        unit = replace(unit, slug=normalize_slug(unit.slug))
        started = self._clock()
        queue: deque[tuple[int, SiteFile]] = deque(enumerate(unit.files))
        result = PublishResult(slug=unit.slug)

        while queue:
            index, site_file = queue.popleft()
            path = unit.path_for(site_file)
            try:
                if deadline is not None:
                    self._check_deadline(started, deadline)
                write = await self._policy.put(
                    path,
                    site_file.content,
                    message=publish_message(unit.slug, site_file.relative_path),
                )
            except SitepressError as exc:
                self._metrics.increment(
                    "sitepress.publish_files_total", tags={"status": "failed"},
                )
                raise self._partial_failure(unit, result, index, path, exc) from exc

            result.paths.append(path)
            result.results.append(write)
            self._metrics.increment(
                "sitepress.publish_files_total",
                tags={"status": "written" if write.changed else "unchanged"},
            )

        log.info(
            "Site published",
            extra={
                "extra_fields": {
                    "op": "publish",
                    "slug": unit.slug,
                    "files": result.files_written,
                    "changed": result.files_changed,
                }
            },
        )
        return result

    def _check_deadline(self, started: float, deadline: float) -> None:
        elapsed = self._clock() - started
        if elapsed >= deadline:
            raise SitepressDeadlineError(
                message=f"Deadline of {deadline}s exceeded after {elapsed:.3f}s",
                context={"deadline_seconds": deadline, "elapsed_seconds": elapsed},
            )

    @staticmethod
    def _partial_failure(
        unit: PublishUnit,
        result: PublishResult,
        index: int,
        path: str,
        exc: SitepressError,
    ) -> SitepressPublishError:
        log.error(
            "Site publish stopped",
            extra={
                "extra_fields": {
                    "op": "publish",
                    "slug": unit.slug,
                    "path": path,
                    "index": index,
                    "committed": len(result.paths),
                    "error_code": _code_name(exc.code),
                }
            },
        )
        return SitepressPublishError(
            message=(
                f"Publishing {unit.slug} failed at {path} "
                f"({len(result.paths)} of {len(unit.files)} files committed): "
                f"{exc.message}"
            ),
            context={
                "slug": unit.slug,
                "path": path,
                "index": index,
                "committed": list(result.paths),
                "error_code": _code_name(exc.code),
            },
            cause=exc,
        )
