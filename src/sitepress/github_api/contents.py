"""GitHub contents API as a :class:`RemoteFileStore`.

``GET /repos/{owner}/{repo}/contents/{path}?ref={branch}`` returns the
base64 body and blob ``sha``; ``PUT`` on the same path with
``{message, content, sha?, branch}`` commits a new revision.  The blob
``sha`` is the version token.
"""

from __future__ import annotations

import base64
from typing import Any
from urllib.parse import quote

from sitepress.config import SitepressConfig
from sitepress.errors import SitepressNotFoundError, SitepressValidationError
from sitepress.models import RemoteFile
from sitepress.observability import NoopMetricsHook, get_logger

from .transport import AsyncGitHubTransport

log = get_logger("sitepress.contents")


def _encode(content: str | bytes) -> str:
    raw = content.encode("utf-8") if isinstance(content, str) else content
    return base64.b64encode(raw).decode("ascii")


def _decode(encoded: str) -> bytes:
    # GitHub wraps the base64 body at 60 columns; b64decode drops the
    # newlines when validate is off.
    return base64.b64decode(encoded)


def _check_path(path: str) -> str:
    clean = path.strip("/")
    if not clean or any(part in ("", ".", "..") for part in clean.split("/")):
        raise SitepressValidationError(
            message=f"Invalid store path {path!r}",
            context={"field": "path", "value": path},
        )
    return clean


class ContentsAPI:
    """GitHub-backed :class:`~sitepress.github_api.store.RemoteFileStore`.

    Parameters
    ----------
    transport:
        A configured :class:`AsyncGitHubTransport`.
    config:
        Supplies owner, repository, branch and the optional committer.
    """

    def __init__(self, transport: AsyncGitHubTransport, config: SitepressConfig) -> None:
        self._transport = transport
        self._config = config
        self._metrics = config.metrics if config.metrics is not None else NoopMetricsHook()

    def _url(self, path: str) -> str:
        return (
            f"/repos/{quote(self._config.owner, safe='')}/"
            f"{quote(self._config.repo, safe='')}/contents/{quote(path, safe='/')}"
        )

    async def read(self, path: str) -> RemoteFile:
        """Read *path* on the configured branch.

        Returns ``RemoteFile.missing(path)`` for a 404.
        """
        path = _check_path(path)
        try:
            data = await self._transport.request(
                "GET", self._url(path), params={"ref": self._config.branch},
            )
        except SitepressNotFoundError:
            log.debug(
                "Store path absent",
                extra={"extra_fields": {"op": "read", "path": path}},
            )
            return RemoteFile.missing(path)

        if not isinstance(data, dict) or data.get("type", "file") != "file":
            raise SitepressValidationError(
                message=f"Store path {path!r} is not a file",
                context={"field": "path", "value": path},
            )
        return RemoteFile(
            path=path,
            content=_decode(data.get("content", "")),
            version_token=data["sha"],
        )

    async def write(
        self,
        path: str,
        content: str | bytes,
        version_token: str | None = None,
        *,
        message: str,
    ) -> str:
        """Commit *content* to *path*, conditioned on *version_token*.

        Returns the new blob ``sha``.
        """
        path = _check_path(path)
        body: dict[str, Any] = {
            "message": message,
            "content": _encode(content),
            "branch": self._config.branch,
        }
        if version_token is not None:
            body["sha"] = version_token
        committer = self._config.committer
        if committer is not None:
            body["committer"] = committer

        data = await self._transport.request("PUT", self._url(path), json=body)
        new_token: str = data["content"]["sha"]
        self._metrics.increment(
            "sitepress.writes_total",
            tags={"kind": "update" if version_token else "create"},
        )
        log.info(
            "Store write committed",
            extra={
                "extra_fields": {
                    "op": "write",
                    "path": path,
                    "previous_token": version_token,
                    "version_token": new_token,
                    "commit": data.get("commit", {}).get("sha"),
                }
            },
        )
        return new_token
