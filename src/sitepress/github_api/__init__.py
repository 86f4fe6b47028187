"""sitepress.github_api -- GitHub REST transport and the contents store.

This sub-package provides:

* :mod:`.retries` -- Transport-level retry decision and backoff.
* :mod:`.transport` -- Async HTTP transport with auth and typed errors.
* :mod:`.store` -- The :class:`RemoteFileStore` protocol.
* :mod:`.contents` -- GitHub contents API implementing that protocol.
"""

from __future__ import annotations

from .contents import ContentsAPI
from .retries import compute_backoff, should_retry
from .store import RemoteFileStore
from .transport import AsyncGitHubTransport

__all__ = [
    "AsyncGitHubTransport",
    "ContentsAPI",
    "RemoteFileStore",
    "compute_backoff",
    "should_retry",
]
