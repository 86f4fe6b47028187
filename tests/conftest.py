"""Shared test fixtures for the sitepress test suite."""

from __future__ import annotations

from collections.abc import Awaitable, Callable

import pytest

from sitepress.config import SitepressConfig
from sitepress.errors import SitepressConflictError
from sitepress.models import RemoteFile
from sitepress.publish.retry import ConflictRetryPolicy


class MemoryStore:
    """In-memory :class:`RemoteFileStore` with compare-and-swap writes.

    ``before_write`` hooks run at the start of a write, after the caller's
    read, which is where a concurrent writer can sneak in.  ``fail_writes``
    maps a path to an exception raised on every write of that path.
    """

    def __init__(self) -> None:
        self.files: dict[str, tuple[bytes, str]] = {}
        self.commits: list[tuple[str, str]] = []
        self.reads: list[str] = []
        self.write_attempts: list[str] = []
        self.fail_writes: dict[str, Exception] = {}
        self.before_write: list[Callable[[MemoryStore, str], Awaitable[None]]] = []
        self._revision = 0

    def _next_token(self) -> str:
        self._revision += 1
        return f"sha-{self._revision}"

    def seed(self, path: str, content: str | bytes) -> str:
        raw = content.encode("utf-8") if isinstance(content, str) else content
        token = self._next_token()
        self.files[path] = (raw, token)
        return token

    def text(self, path: str) -> str:
        return self.files[path][0].decode("utf-8")

    def token(self, path: str) -> str:
        return self.files[path][1]

    async def read(self, path: str) -> RemoteFile:
        self.reads.append(path)
        if path not in self.files:
            return RemoteFile.missing(path)
        content, token = self.files[path]
        return RemoteFile(path=path, content=content, version_token=token)

    async def write(
        self,
        path: str,
        content: str | bytes,
        version_token: str | None = None,
        *,
        message: str,
    ) -> str:
        self.write_attempts.append(path)
        if self.before_write:
            hook = self.before_write.pop(0)
            await hook(self, path)
        if path in self.fail_writes:
            raise self.fail_writes[path]

        current = self.files.get(path)
        current_token = current[1] if current is not None else None
        if version_token != current_token:
            raise SitepressConflictError(
                message=f"Version conflict on PUT {path}",
                context={"path": path, "status_code": 409},
            )

        raw = content.encode("utf-8") if isinstance(content, str) else content
        token = self._next_token()
        self.files[path] = (raw, token)
        self.commits.append((path, message))
        return token


class RecordingSleep:
    """Awaitable stand-in for :func:`asyncio.sleep` that records delays."""

    def __init__(self) -> None:
        self.delays: list[float] = []

    async def __call__(self, delay: float) -> None:
        self.delays.append(delay)


def concurrent_writer(content: str) -> Callable[[MemoryStore, str], Awaitable[None]]:
    """A ``before_write`` hook simulating another writer winning the race."""

    async def hook(store: MemoryStore, path: str) -> None:
        store.seed(path, content)

    return hook


@pytest.fixture
def config() -> SitepressConfig:
    """Test configuration with dummy credentials and fast conflict retry."""
    return SitepressConfig(
        token="test-token-1234",
        owner="acme",
        repo="sites",
        conflict_max_attempts=3,
        conflict_base_delay=0.5,
        conflict_max_delay=5.0,
    )


@pytest.fixture
def store() -> MemoryStore:
    return MemoryStore()


@pytest.fixture
def sleep() -> RecordingSleep:
    return RecordingSleep()


@pytest.fixture
def policy(store: MemoryStore, config: SitepressConfig, sleep: RecordingSleep) -> ConflictRetryPolicy:
    return ConflictRetryPolicy(store, config, sleep=sleep)
