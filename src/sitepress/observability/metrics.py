"""Metrics hook protocol and no-op default implementation.

sitepress emits counters and timings around store requests, conflict
retries, batch publishes and section patches.  A :class:`NoopMetricsHook`
is used unless the caller puts an object satisfying :class:`MetricsHook`
on :attr:`SitepressConfig.metrics`.

Emitted metric names:

* ``sitepress.requests_total``          -- counter
* ``sitepress.request_duration_ms``     -- timing
* ``sitepress.retries_total``           -- counter (transport-level)
* ``sitepress.conflicts_total``         -- counter
* ``sitepress.writes_total``            -- counter
* ``sitepress.publish_files_total``     -- counter
* ``sitepress.section_patches_total``   -- counter
"""

from __future__ import annotations

from typing import Protocol, runtime_checkable


@runtime_checkable
class MetricsHook(Protocol):
    """Protocol that any metrics backend must satisfy.

    *tags* keys and values are strings; backends translate them into their
    own labelling scheme.
    """

    def increment(
        self,
        name: str,
        value: int = 1,
        tags: dict[str, str] | None = None,
    ) -> None:
        """Increment a counter metric."""
        ...

    def timing(
        self,
        name: str,
        ms: float,
        tags: dict[str, str] | None = None,
    ) -> None:
        """Record a duration in milliseconds."""
        ...


class NoopMetricsHook:
    """Default metrics implementation that discards all data points."""

    __slots__ = ()

    def increment(
        self,
        name: str,
        value: int = 1,
        tags: dict[str, str] | None = None,
    ) -> None:
        pass

    def timing(
        self,
        name: str,
        ms: float,
        tags: dict[str, str] | None = None,
    ) -> None:
        pass
