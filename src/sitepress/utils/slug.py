"""Identifier normalization for publish targets and section names.

Two raw inputs that normalize identically address the same publish target,
so every slug and section name goes through these functions before it is
used to build a store path or a marker literal.
"""

from __future__ import annotations

import re
import unicodedata

from sitepress.errors import SitepressValidationError

SLUG_SEPARATOR = "-"

_NON_ALNUM_RE = re.compile(r"[^a-z0-9]+")


def _fold(value: str) -> str:
    """Lowercase *value* and strip accents (``"Café"`` -> ``"cafe"``)."""
    decomposed = unicodedata.normalize("NFKD", value)
    stripped = "".join(ch for ch in decomposed if not unicodedata.combining(ch))
    return stripped.lower()


def normalize_slug(raw: str | None, *, field: str = "slug") -> str:
    """Return the normalized slug for *raw*.

    Lowercases, strips accents, collapses every run of non-alphanumeric
    characters to a single ``-`` and trims leading/trailing separators.

    Raises
    ------
    SitepressValidationError
        If *raw* is not a string or normalizes to an empty slug.

    Examples
    --------
    >>> normalize_slug("Mon Café!")
    'mon-cafe'
    >>> normalize_slug("--mon--cafe--")
    'mon-cafe'
    """
    if not isinstance(raw, str):
        raise SitepressValidationError(
            message=f"{field} must be a string",
            context={"field": field, "value": raw},
        )
    slug = _NON_ALNUM_RE.sub(SLUG_SEPARATOR, _fold(raw)).strip(SLUG_SEPARATOR)
    if not slug:
        raise SitepressValidationError(
            message=f"{field} is empty after normalization",
            context={"field": field, "value": raw},
        )
    return slug


def normalize_section_name(raw: str | None) -> str:
    """Return the marker identifier for a section name.

    Same folding as :func:`normalize_slug`, with separators removed
    entirely: ``"Hero Banner"`` -> ``"herobanner"``.
    """
    return normalize_slug(raw, field="section").replace(SLUG_SEPARATOR, "")
