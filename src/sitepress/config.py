"""Configuration for sitepress.

:class:`SitepressConfig` captures the store credentials, repository
coordinates and every tuneable knob of the publishing core.  It is built
once at startup (directly or via :meth:`SitepressConfig.from_env`) and
passed by reference into :class:`~sitepress.async_client.AsyncSitepressClient`;
nothing below the client reads the process environment.
"""

from __future__ import annotations

import dataclasses
import os
from collections.abc import Mapping
from dataclasses import dataclass
from typing import Any

from sitepress.errors import SitepressConfigError

# Environment variables consulted by :meth:`SitepressConfig.from_env`.
ENV_TOKEN = "GITHUB_TOKEN"
ENV_OWNER = "GITHUB_OWNER"
ENV_REPO = "GITHUB_REPO"
ENV_BRANCH = "GITHUB_BRANCH"
ENV_API_URL = "GITHUB_API_URL"


@dataclass
class SitepressConfig:
    """Complete configuration for a sitepress client.

    Parameters
    ----------
    token:
        GitHub token with ``contents: write`` on the target repository.
        Never logged.
    owner:
        Repository owner (user or organisation).
    repo:
        Repository name.
    branch:
        Branch every read and commit targets.
    base_url:
        API root URL.  Override for GitHub Enterprise or testing.
    api_version:
        Value of the ``X-GitHub-Api-Version`` header.
    conflict_max_attempts:
        Total read-then-write attempts per path before a version conflict
        is surfaced as terminal.
    conflict_base_delay:
        Seconds to wait after the first conflict; attempt *n* waits
        ``n * conflict_base_delay``.
    conflict_max_delay:
        Upper cap (seconds) on the conflict backoff.
    transport_max_attempts:
        Attempts per HTTP request for 429/5xx/network errors.  The default
        of 1 means transport failures surface immediately.
    transport_base_delay:
        Base delay (seconds) for exponential transport backoff.
    transport_max_delay:
        Upper cap (seconds) on transport backoff.
    transport_jitter:
        Add random jitter to transport backoff intervals.
    timeout_seconds:
        HTTP request timeout in seconds.
    http_proxy:
        Optional HTTP/HTTPS proxy URL.
    committer_name, committer_email:
        Optional committer identity attached to every write.  Both must be
        set for it to be sent.
    metrics:
        Optional :class:`~sitepress.observability.MetricsHook`.
    debug_dump_payload:
        Write the (redacted) request/response pair to *stderr*.
    """

    # ── Store ───────────────────────────────────────────────────────────
    token: str = ""

    owner: str = ""

    repo: str = ""

    branch: str = "main"

    base_url: str = "https://api.github.com"

    api_version: str = "2022-11-28"

    # ── Conflict retry ──────────────────────────────────────────────────
    conflict_max_attempts: int = 5

    conflict_base_delay: float = 0.5

    conflict_max_delay: float = 5.0

    # ── Transport retry ─────────────────────────────────────────────────
    transport_max_attempts: int = 1

    transport_base_delay: float = 1.0

    transport_max_delay: float = 30.0

    transport_jitter: bool = True

    # ── HTTP ────────────────────────────────────────────────────────────
    timeout_seconds: float = 30.0

    http_proxy: str | None = None

    # ── Commits ─────────────────────────────────────────────────────────
    committer_name: str | None = None

    committer_email: str | None = None

    # ── Observability ──────────────────────────────────────────────────
    metrics: Any | None = None

    # ── Debug ───────────────────────────────────────────────────────────
    debug_dump_payload: bool = False

    def __post_init__(self) -> None:
        """Validate configuration after initialization."""
        from urllib.parse import urlparse

        parsed = urlparse(self.base_url)
        if parsed.scheme == "http" and parsed.hostname not in (
            "localhost",
            "127.0.0.1",
            "::1",
        ):
            raise ValueError(
                f"base_url uses insecure HTTP for non-local host '{parsed.hostname}'. "
                "Use HTTPS to protect your token, or target localhost for testing."
            )

        if self.conflict_max_attempts < 1:
            raise ValueError(
                f"conflict_max_attempts must be >= 1, got {self.conflict_max_attempts}"
            )
        if self.conflict_base_delay < 0:
            raise ValueError(f"conflict_base_delay must be >= 0, got {self.conflict_base_delay}")
        if self.conflict_max_delay < 0:
            raise ValueError(f"conflict_max_delay must be >= 0, got {self.conflict_max_delay}")
        if self.transport_max_attempts < 1:
            raise ValueError(
                f"transport_max_attempts must be >= 1, got {self.transport_max_attempts}"
            )
        if self.transport_base_delay < 0:
            raise ValueError(
                f"transport_base_delay must be >= 0, got {self.transport_base_delay}"
            )
        if self.transport_max_delay < 0:
            raise ValueError(f"transport_max_delay must be >= 0, got {self.transport_max_delay}")
        if self.timeout_seconds <= 0:
            raise ValueError(f"timeout_seconds must be > 0, got {self.timeout_seconds}")

    @classmethod
    def from_env(
        cls,
        environ: Mapping[str, str] | None = None,
        **overrides: Any,
    ) -> SitepressConfig:
        """Build a config from ``GITHUB_*`` environment variables.

        Intended to be called once at process startup.  Keyword
        *overrides* win over the environment.

        Raises
        ------
        SitepressConfigError
            When the token, owner or repository is missing.
        """
        env = os.environ if environ is None else environ
        values: dict[str, Any] = {
            "token": env.get(ENV_TOKEN, "").strip(),
            "owner": env.get(ENV_OWNER, "").strip(),
            "repo": env.get(ENV_REPO, "").strip(),
        }
        branch = env.get(ENV_BRANCH, "").strip()
        if branch:
            values["branch"] = branch
        api_url = env.get(ENV_API_URL, "").strip()
        if api_url:
            values["base_url"] = api_url
        values.update(overrides)

        config = cls(**values)
        config.require_store()
        return config

    def require_store(self) -> None:
        """Raise :class:`SitepressConfigError` unless the store is usable."""
        missing = [
            name
            for name, value in (
                (ENV_TOKEN, self.token),
                (ENV_OWNER, self.owner),
                (ENV_REPO, self.repo),
            )
            if not value
        ]
        if missing:
            raise SitepressConfigError(
                message=f"Store is not configured; missing {', '.join(missing)}",
                context={"missing": missing},
            )

    @property
    def committer(self) -> dict[str, str] | None:
        if self.committer_name and self.committer_email:
            return {"name": self.committer_name, "email": self.committer_email}
        return None

    def __repr__(self) -> str:
        """Mask the token to prevent accidental credential leakage."""
        parts: list[str] = []
        for f in dataclasses.fields(self):
            val = getattr(self, f.name)
            if f.name == "token":
                masked = f"...{val[-4:]}" if len(val) >= 4 else "****"
                parts.append(f"token='{masked}'")
            else:
                parts.append(f"{f.name}={val!r}")
        return f"SitepressConfig({', '.join(parts)})"
