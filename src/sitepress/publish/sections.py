"""Section patcher: replace the interior of one marked section in place.

A published ``index.html`` carries regions delimited by::

    <!-- SECTION:{name}:start --> ... <!-- SECTION:{name}:end -->

Patching a section is a bounded find-and-splice on the document text: the
markers and every byte outside them are kept verbatim, and the replacement
is inserted as-is (it is never parsed, so malformed HTML/CSS/JS inside it
cannot spill into neighbouring sections).

Only the first start marker and the first end marker are considered; a
document repeating the same marker pair is not supported.
"""

from __future__ import annotations

from sitepress.config import SitepressConfig
from sitepress.errors import (
    SitepressNotFoundError,
    SitepressSectionNotFoundError,
    SitepressValidationError,
)
from sitepress.models import PatchResult, RemoteFile, SectionMarker
from sitepress.observability import NoopMetricsHook, get_logger
from sitepress.utils.slug import normalize_section_name, normalize_slug

from .retry import ConflictRetryPolicy

log = get_logger("sitepress.sections")

PRIMARY_DOCUMENT = "index.html"


def splice_section(document: str, marker: SectionMarker, interior: str) -> str:
    """Return *document* with the interior of *marker* replaced.

    Raises
    ------
    SitepressSectionNotFoundError
        If either marker is missing, or the end marker does not strictly
        follow the start marker.  *document* is then left untouched.

    Examples
    --------
    >>> doc = "A<!-- SECTION:x:start -->B<!-- SECTION:x:end -->C"
    >>> splice_section(doc, SectionMarker("x"), "D")
    'A<!-- SECTION:x:start -->D<!-- SECTION:x:end -->C'
    """
    start_at = document.find(marker.start)
    end_at = document.find(marker.end)
    if start_at < 0 or end_at < 0:
        raise SitepressSectionNotFoundError(
            message=f"Section '{marker.name}' markers not found",
            context={
                "section": marker.name,
                "start_found": start_at >= 0,
                "end_found": end_at >= 0,
            },
        )

    interior_at = start_at + len(marker.start)
    if end_at < interior_at:
        raise SitepressSectionNotFoundError(
            message=f"Section '{marker.name}' end marker precedes its start marker",
            context={"section": marker.name, "start_found": True, "end_found": True},
        )

    return document[:interior_at] + interior + document[end_at:]


def patch_message(slug: str, section: str) -> str:
    return f"Patch section '{section}' of {slug}"


class SectionPatcher:
    """Patch one section of a site's primary document.

    Parameters
    ----------
    policy:
        The :class:`ConflictRetryPolicy` the rewritten document goes
        through.
    config:
        SDK configuration (metrics hook).
    """

    def __init__(self, policy: ConflictRetryPolicy, config: SitepressConfig) -> None:
        self._policy = policy
        self._metrics = config.metrics if config.metrics is not None else NoopMetricsHook()

    async def patch(self, slug: str, section: str, content: str) -> PatchResult:
        """Replace the interior of *section* in ``{slug}/index.html``.

        *slug* and *section* are normalized first; both are validated
        before any store access.  On a version conflict the document is
        re-read and the splice recomputed, so concurrent edits to other
        sections are never overwritten.

        Raises
        ------
        SitepressValidationError
            Empty slug or section name, non-string *content*, or a stored
            document that is not valid UTF-8.
        SitepressNotFoundError
            The document does not exist.
        SitepressSectionNotFoundError
            The section markers are absent or misordered.
        """
        safe_slug = normalize_slug(slug)
        name = normalize_section_name(section)
        if not isinstance(content, str):
            raise SitepressValidationError(
                message="Section content must be a string",
                context={"field": "content", "value": type(content).__name__},
            )

        marker = SectionMarker(name)
        path = f"{safe_slug}/{PRIMARY_DOCUMENT}"

        def render(current: RemoteFile) -> str:
            if not current.exists:
                raise SitepressNotFoundError(
                    message=f"Cannot patch {path}: document does not exist",
                    context={"path": path},
                )
            try:
                document = current.text
            except UnicodeDecodeError as exc:
                raise SitepressValidationError(
                    message=f"Cannot patch {path}: document is not valid UTF-8",
                    context={"path": path},
                    cause=exc,
                ) from exc
            try:
                return splice_section(document, marker, content)
            except SitepressSectionNotFoundError as exc:
                exc.context["path"] = path
                raise

        try:
            write = await self._policy.rewrite(
                path, render, message=patch_message(safe_slug, name),
            )
        except SitepressSectionNotFoundError:
            self._metrics.increment(
                "sitepress.section_patches_total", tags={"status": "section_not_found"},
            )
            raise

        self._metrics.increment(
            "sitepress.section_patches_total",
            tags={"status": "patched" if write.changed else "unchanged"},
        )
        log.info(
            "Section patched",
            extra={
                "extra_fields": {
                    "op": "patch_section",
                    "slug": safe_slug,
                    "section": name,
                    "changed": write.changed,
                    "attempts": write.attempts,
                }
            },
        )
        return PatchResult(slug=safe_slug, section=name, path=path, write=write)
