"""Assemble the files of a static site from a publish request.

Layout under ``{slug}/``:

* ``index.html`` -- always.
* ``README.txt`` -- generated.
* ``styles/main.css`` -- only when a non-blank stylesheet is given.
* ``js/main.js`` -- only when a non-blank script is given.
"""

from __future__ import annotations

from sitepress.errors import SitepressValidationError
from sitepress.models import PublishUnit, SiteFile
from sitepress.utils.slug import normalize_slug

DEFAULT_PROJECT_NAME = "site-web"

_README_TEMPLATE = """\
# {title}

This site was generated and published by sitepress.

Structure:
- index.html
- styles/main.css (if provided)
- js/main.js (if provided)

Quick deploy (Netlify):
1. Download the folder
2. Check that index.html is at the root
3. Drag and drop the folder onto Netlify (Manual deploy)
"""


def render_readme(project_name: str | None) -> str:
    return _README_TEMPLATE.format(title=project_name or "Website")


def _non_blank(value: object) -> bool:
    return isinstance(value, str) and bool(value.strip())


def build_site_files(
    project_name: str | None,
    html: str,
    css: str | None = None,
    js: str | None = None,
) -> PublishUnit:
    """Build the :class:`PublishUnit` for one site.

    Parameters
    ----------
    project_name:
        Human-readable name; its normalization is the slug.  Falls back to
        ``"site-web"`` when missing or when nothing survives normalization.
    html:
        Body of ``index.html``.  Required and non-empty.
    css, js:
        Optional stylesheet and script; blank values are left out.

    Raises
    ------
    SitepressValidationError
        If *html* is missing.
    """
    if not isinstance(html, str) or not html:
        raise SitepressValidationError(
            message="Field 'html' is required (string)",
            context={"field": "html"},
        )

    try:
        slug = normalize_slug(project_name, field="project_name")
    except SitepressValidationError:
        slug = DEFAULT_PROJECT_NAME

    files = [
        SiteFile("index.html", html),
        SiteFile("README.txt", render_readme(project_name)),
    ]
    if _non_blank(css):
        files.append(SiteFile("styles/main.css", css))
    if _non_blank(js):
        files.append(SiteFile("js/main.js", js))

    return PublishUnit(slug=slug, files=tuple(files))
