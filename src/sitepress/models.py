"""Public data models for sitepress.

This module contains every value and result type referenced by the public
API surface.  All types are plain dataclasses; the frozen ones are safe to
share between coroutines.
"""

from __future__ import annotations

from dataclasses import dataclass, field

# ---------------------------------------------------------------------------
# Store values
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class RemoteFile:
    """A file as last observed in the remote store.

    ``version_token`` is valid only for the exact ``content`` it was read
    with, and is ``None`` exactly when the file does not exist.
    """

    path: str
    content: bytes = b""
    version_token: str | None = None

    @property
    def exists(self) -> bool:
        return self.version_token is not None

    @property
    def text(self) -> str:
        """The content decoded as UTF-8."""
        return self.content.decode("utf-8")

    @classmethod
    def missing(cls, path: str) -> RemoteFile:
        return cls(path=path)


# ---------------------------------------------------------------------------
# Publish units
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class SiteFile:
    """One file of a site, addressed relative to the site's slug."""

    relative_path: str
    content: str | bytes


@dataclass(frozen=True)
class PublishUnit:
    """The ordered set of files representing one deployable site.

    Built per request and never persisted.  :class:`BatchPublisher`
    normalizes ``slug`` with :func:`sitepress.utils.normalize_slug` before
    any path is built from it.
    """

    slug: str
    files: tuple[SiteFile, ...] = ()

    def path_for(self, site_file: SiteFile) -> str:
        return f"{self.slug}/{site_file.relative_path}"

    def paths(self) -> list[str]:
        return [self.path_for(f) for f in self.files]


@dataclass(frozen=True)
class SectionMarker:
    """The literal delimiters bounding a patchable region of a document.

    The markers themselves are preserved verbatim by a patch; only the
    text between them (the *interior*) is replaced.
    """

    name: str

    @property
    def start(self) -> str:
        return f"<!-- SECTION:{self.name}:start -->"

    @property
    def end(self) -> str:
        return f"<!-- SECTION:{self.name}:end -->"


# ---------------------------------------------------------------------------
# Results
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class WriteResult:
    """Outcome of one retry-wrapped write.

    ``changed`` is ``False`` when the stored content was already
    byte-identical and no commit was made; ``version_token`` is then the
    unchanged current token.
    """

    path: str
    version_token: str
    changed: bool = True
    attempts: int = 1


@dataclass
class PublishResult:
    """Returned by :meth:`BatchPublisher.publish` when every file landed."""

    slug: str
    paths: list[str] = field(default_factory=list)
    results: list[WriteResult] = field(default_factory=list)

    @property
    def files_written(self) -> int:
        return len(self.paths)

    @property
    def files_changed(self) -> int:
        return sum(1 for r in self.results if r.changed)


@dataclass(frozen=True)
class PatchResult:
    """Returned by :meth:`SectionPatcher.patch`."""

    slug: str
    section: str
    path: str
    write: WriteResult
