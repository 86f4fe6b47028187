"""sitepress -- publish and patch static sites in a Git-backed content store.

Public re-exports
-----------------

* **Client:** :class:`AsyncSitepressClient`
* **Configuration:** :class:`SitepressConfig`
* **Core:** :class:`ConflictRetryPolicy`, :class:`BatchPublisher`,
  :class:`SectionPatcher`, :class:`RemoteFileStore`, :class:`ContentsAPI`
* **Errors:** Every :class:`SitepressError` subclass and :class:`ErrorCode`
* **Models:** All value and result dataclasses

Usage::

    from sitepress import AsyncSitepressClient, SitepressConfig

    async with AsyncSitepressClient(SitepressConfig.from_env()) as client:
        await client.patch_section("mon-cafe", "hero", "<h1>Bienvenue</h1>")
"""

from __future__ import annotations

# ── Client ─────────────────────────────────────────────────────────────
from sitepress.async_client import AsyncSitepressClient

# ── Configuration ───────────────────────────────────────────────────────
from sitepress.config import SitepressConfig

# ── Errors ──────────────────────────────────────────────────────────────
from sitepress.errors import (
    ErrorCode,
    SitepressAuthError,
    SitepressConfigError,
    SitepressConflictError,
    SitepressDeadlineError,
    SitepressError,
    SitepressNetworkError,
    SitepressNotFoundError,
    SitepressPermissionError,
    SitepressPublishError,
    SitepressRetryExhaustedError,
    SitepressSectionNotFoundError,
    SitepressTransportError,
    SitepressValidationError,
)

# ── Store ───────────────────────────────────────────────────────────────
from sitepress.github_api import ContentsAPI, RemoteFileStore

# ── Models ──────────────────────────────────────────────────────────────
from sitepress.models import (
    PatchResult,
    PublishResult,
    PublishUnit,
    RemoteFile,
    SectionMarker,
    SiteFile,
    WriteResult,
)

# ── Core ────────────────────────────────────────────────────────────────
from sitepress.publish import (
    BatchPublisher,
    ConflictRetryPolicy,
    SectionPatcher,
    build_site_files,
    splice_section,
)
from sitepress.utils import normalize_section_name, normalize_slug

__all__ = [
    # Client
    "AsyncSitepressClient",
    # Configuration
    "SitepressConfig",
    # Errors
    "ErrorCode",
    "SitepressError",
    "SitepressValidationError",
    "SitepressConfigError",
    "SitepressNotFoundError",
    "SitepressConflictError",
    "SitepressSectionNotFoundError",
    "SitepressDeadlineError",
    "SitepressPublishError",
    "SitepressTransportError",
    "SitepressAuthError",
    "SitepressPermissionError",
    "SitepressNetworkError",
    "SitepressRetryExhaustedError",
    # Store
    "RemoteFileStore",
    "ContentsAPI",
    # Models
    "RemoteFile",
    "SiteFile",
    "PublishUnit",
    "SectionMarker",
    "WriteResult",
    "PublishResult",
    "PatchResult",
    # Core
    "ConflictRetryPolicy",
    "BatchPublisher",
    "SectionPatcher",
    "build_site_files",
    "splice_section",
    "normalize_slug",
    "normalize_section_name",
]
