"""The RemoteFileStore protocol.

Anything that reads and conditionally writes path-addressed, versioned
files can back the publishing core.  :class:`~sitepress.github_api.contents.ContentsAPI`
is the GitHub implementation.
"""

from __future__ import annotations

from typing import Protocol, runtime_checkable

from sitepress.models import RemoteFile


@runtime_checkable
class RemoteFileStore(Protocol):
    """Path-addressed, versioned remote file store.

    Implementations must enforce the version token atomically: a write
    carrying a token succeeds only if it still matches the store's current
    token for the path, and a write without one succeeds only if the path
    does not exist yet.
    """

    async def read(self, path: str) -> RemoteFile:
        """Return the current state of *path*.

        A missing path is a normal outcome: the returned
        :class:`RemoteFile` has ``exists == False``.
        """
        ...

    async def write(
        self,
        path: str,
        content: str | bytes,
        version_token: str | None = None,
        *,
        message: str,
    ) -> str:
        """Write *content* to *path* as one attributable change.

        Returns the new version token.  Raises
        :class:`~sitepress.errors.SitepressConflictError` when
        *version_token* is stale (or omitted for an existing path), and a
        :class:`~sitepress.errors.SitepressTransportError` subclass for
        failures unrelated to versioning.
        """
        ...
