"""Tests for publish/batch.py: sequential, non-transactional publishing."""

from __future__ import annotations

from unittest.mock import MagicMock

import pytest
from conftest import MemoryStore, concurrent_writer

from sitepress.config import SitepressConfig
from sitepress.errors import (
    ErrorCode,
    SitepressConflictError,
    SitepressDeadlineError,
    SitepressNetworkError,
    SitepressPublishError,
    SitepressValidationError,
)
from sitepress.models import PublishUnit, SiteFile
from sitepress.publish.batch import BatchPublisher, publish_message

# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def _unit(*names: str, slug: str = "mon-cafe") -> PublishUnit:
    return PublishUnit(
        slug=slug,
        files=tuple(SiteFile(name, f"content of {name}") for name in names),
    )


class _Clock:
    def __init__(self, *ticks: float) -> None:
        self._ticks = list(ticks)

    def __call__(self) -> float:
        return self._ticks.pop(0) if len(self._ticks) > 1 else self._ticks[0]


# =========================================================================
# Success
# =========================================================================


class TestPublishSuccess:
    async def test_writes_every_file_under_slug(self, policy, config, store: MemoryStore):
        publisher = BatchPublisher(policy, config)
        result = await publisher.publish(_unit("index.html", "styles/main.css"))

        assert result.slug == "mon-cafe"
        assert result.paths == ["mon-cafe/index.html", "mon-cafe/styles/main.css"]
        assert result.files_written == 2
        assert store.text("mon-cafe/styles/main.css") == "content of styles/main.css"

    async def test_files_written_in_supplied_order(self, policy, config, store):
        publisher = BatchPublisher(policy, config)
        await publisher.publish(_unit("c.txt", "a.txt", "b.txt"))

        assert [path for path, _ in store.commits] == [
            "mon-cafe/c.txt",
            "mon-cafe/a.txt",
            "mon-cafe/b.txt",
        ]

    async def test_commit_message_names_slug_and_file(self, policy, config, store):
        publisher = BatchPublisher(policy, config)
        await publisher.publish(_unit("index.html"))
        assert store.commits[0][1] == publish_message("mon-cafe", "index.html")
        assert store.commits[0][1] == "Publish mon-cafe: index.html"

    async def test_republish_identical_site_changes_nothing(self, policy, config, store):
        publisher = BatchPublisher(policy, config)
        unit = _unit("index.html", "README.txt")
        await publisher.publish(unit)
        commits_before = list(store.commits)

        result = await publisher.publish(unit)

        assert store.commits == commits_before
        assert result.files_written == 2
        assert result.files_changed == 0

    async def test_each_file_finishes_its_retry_before_next(self, policy, config, store, sleep):
        store.before_write.append(concurrent_writer("someone else"))
        publisher = BatchPublisher(policy, config)

        await publisher.publish(_unit("index.html", "README.txt"))

        assert store.write_attempts == [
            "mon-cafe/index.html",
            "mon-cafe/index.html",
            "mon-cafe/README.txt",
        ]
        assert store.text("mon-cafe/index.html") == "content of index.html"

    async def test_empty_unit_publishes_nothing(self, policy, config, store):
        result = await BatchPublisher(policy, config).publish(PublishUnit(slug="x"))
        assert result.paths == []
        assert store.commits == []

    async def test_metrics_emitted_per_file(self, store, sleep):
        from sitepress.publish.retry import ConflictRetryPolicy

        metrics = MagicMock()
        cfg = SitepressConfig(token="t", owner="o", repo="r", metrics=metrics)
        publisher = BatchPublisher(ConflictRetryPolicy(store, cfg, sleep=sleep), cfg)

        await publisher.publish(_unit("index.html"))

        metrics.increment.assert_any_call(
            "sitepress.publish_files_total", tags={"status": "written"},
        )


# =========================================================================
# Partial failure
# =========================================================================


class TestPublishPartialFailure:
    async def test_second_file_exhausts_retries(self, policy, config, store: MemoryStore):
        store.fail_writes["mon-cafe/b.txt"] = SitepressConflictError("stale")
        publisher = BatchPublisher(policy, config)

        with pytest.raises(SitepressPublishError) as exc_info:
            await publisher.publish(_unit("a.txt", "b.txt", "c.txt"))

        err = exc_info.value
        assert err.path == "mon-cafe/b.txt"
        assert err.context["index"] == 1
        assert err.committed == ["mon-cafe/a.txt"]
        assert err.context["error_code"] == ErrorCode.CONFLICT.value
        assert isinstance(err.cause, SitepressConflictError)
        assert err.cause.context["attempts"] == config.conflict_max_attempts

        # First file stays committed, third never attempted.
        assert store.text("mon-cafe/a.txt") == "content of a.txt"
        assert "mon-cafe/c.txt" not in store.write_attempts
        assert "mon-cafe/c.txt" not in store.files

    async def test_transport_failure_on_first_file(self, policy, config, store):
        store.fail_writes["mon-cafe/a.txt"] = SitepressNetworkError("connection reset")
        publisher = BatchPublisher(policy, config)

        with pytest.raises(SitepressPublishError) as exc_info:
            await publisher.publish(_unit("a.txt", "b.txt"))

        assert exc_info.value.committed == []
        assert exc_info.value.context["error_code"] == ErrorCode.NETWORK_ERROR.value
        assert store.write_attempts == ["mon-cafe/a.txt"]

    async def test_message_reports_progress(self, policy, config, store):
        store.fail_writes["mon-cafe/c.txt"] = SitepressNetworkError("boom")
        with pytest.raises(SitepressPublishError, match=r"2 of 3 files committed"):
            await BatchPublisher(policy, config).publish(_unit("a.txt", "b.txt", "c.txt"))


# =========================================================================
# Deadline
# =========================================================================


class TestPublishDeadline:
    async def test_deadline_stops_before_next_file(self, policy, config, store):
        # start=0, check before file 0 at 0.1, check before file 1 at 5.0
        publisher = BatchPublisher(policy, config, clock=_Clock(0.0, 0.1, 5.0))

        with pytest.raises(SitepressPublishError) as exc_info:
            await publisher.publish(_unit("a.txt", "b.txt"), deadline=2.0)

        err = exc_info.value
        assert err.path == "mon-cafe/b.txt"
        assert err.committed == ["mon-cafe/a.txt"]
        assert isinstance(err.cause, SitepressDeadlineError)
        assert store.write_attempts == ["mon-cafe/a.txt"]

    async def test_no_deadline_never_consults_clock_after_start(self, policy, config, store):
        clock = MagicMock(return_value=0.0)
        publisher = BatchPublisher(policy, config, clock=clock)
        await publisher.publish(_unit("a.txt", "b.txt"))
        assert clock.call_count == 1


# =========================================================================
# Slug handling
# =========================================================================


class TestPublishSlug:
    async def test_raw_slug_normalized_before_paths_built(self, policy, config, store):
        publisher = BatchPublisher(policy, config)
        result = await publisher.publish(_unit("index.html", slug="Mon Café!"))

        assert result.slug == "mon-cafe"
        assert result.paths == ["mon-cafe/index.html"]
        assert store.commits == [
            ("mon-cafe/index.html", publish_message("mon-cafe", "index.html")),
        ]

    @pytest.mark.parametrize("slug", ["", "   ", "!!!"])
    async def test_unusable_slug_rejected_before_store_access(
        self, policy, config, store, slug,
    ):
        publisher = BatchPublisher(policy, config)
        with pytest.raises(SitepressValidationError) as exc_info:
            await publisher.publish(_unit("index.html", slug=slug))

        assert exc_info.value.context["field"] == "slug"
        assert store.reads == []
        assert store.write_attempts == []
