"""Asynchronous sitepress client.

:class:`AsyncSitepressClient` wires the transport, the contents store, the
conflict retry policy, the batch publisher and the section patcher around a
single :class:`SitepressConfig`.

Usage::

    import asyncio
    from sitepress import AsyncSitepressClient, SitepressConfig

    async def main():
        config = SitepressConfig.from_env()
        async with AsyncSitepressClient(config) as client:
            result = await client.publish_site(
                project_name="Mon Café",
                html="<html>...</html>",
            )
            print(result.slug, result.paths)

    asyncio.run(main())
"""

from __future__ import annotations

from sitepress.config import SitepressConfig
from sitepress.github_api.contents import ContentsAPI
from sitepress.github_api.transport import AsyncGitHubTransport
from sitepress.models import PatchResult, PublishResult, PublishUnit, RemoteFile
from sitepress.publish.batch import BatchPublisher
from sitepress.publish.retry import ConflictRetryPolicy
from sitepress.publish.sections import SectionPatcher
from sitepress.publish.site import build_site_files


class AsyncSitepressClient:
    """Asynchronous sitepress client.

    Parameters
    ----------
    config:
        A fully populated :class:`SitepressConfig`.  The store coordinates
        are checked here, so a misconfigured process fails at startup.
    """

    def __init__(self, config: SitepressConfig) -> None:
        config.require_store()
        self._config = config
        self._transport = AsyncGitHubTransport(config)
        self._store = ContentsAPI(self._transport, config)
        self._policy = ConflictRetryPolicy(self._store, config)
        self._publisher = BatchPublisher(self._policy, config)
        self._patcher = SectionPatcher(self._policy, config)

    # ------------------------------------------------------------------
    # Publishing
    # ------------------------------------------------------------------

    async def publish_site(
        self,
        project_name: str | None,
        html: str,
        css: str | None = None,
        js: str | None = None,
        *,
        deadline: float | None = None,
    ) -> PublishResult:
        """Assemble a site from its parts and publish it under its slug.

        Validation happens before any network call.  See
        :func:`~sitepress.publish.site.build_site_files` and
        :meth:`BatchPublisher.publish`.
        """
        unit = build_site_files(project_name, html, css, js)
        return await self._publisher.publish(unit, deadline=deadline)

    async def publish(
        self, unit: PublishUnit, *, deadline: float | None = None,
    ) -> PublishResult:
        """Publish a pre-built :class:`PublishUnit`."""
        return await self._publisher.publish(unit, deadline=deadline)

    async def patch_section(self, slug: str, section: str, content: str) -> PatchResult:
        """Replace the interior of *section* in the site's ``index.html``."""
        return await self._patcher.patch(slug, section, content)

    async def read_file(self, path: str) -> RemoteFile:
        """Read one store path; a missing file has ``exists == False``."""
        return await self._store.read(path)

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    async def close(self) -> None:
        await self._transport.close()

    async def __aenter__(self) -> AsyncSitepressClient:
        return self

    async def __aexit__(self, *exc: object) -> None:
        await self.close()
