"""Full error hierarchy for sitepress.

Every public error class inherits from SitepressError. Each carries a
machine-readable ``code`` (from :class:`ErrorCode`), a human-readable
``message``, an optional structured ``context`` dict, and an optional
``cause`` (chained exception).

Error codes are defined as a :class:`str` enum so that they serialise
naturally to JSON and can be matched with simple ``==`` comparisons.

Retry behaviour by family:

* :class:`SitepressConflictError` -- retried by the conflict policy, then
  surfaced.
* :class:`SitepressTransportError` and subclasses -- never retried by the
  conflict policy.
* :class:`SitepressValidationError`, :class:`SitepressConfigError` -- raised
  before any network call.
"""

from __future__ import annotations

from enum import Enum
from typing import Any

# ---------------------------------------------------------------------------
# Error code enum
# ---------------------------------------------------------------------------

class ErrorCode(str, Enum):
    """Machine-readable error codes for every error sitepress can raise."""

    VALIDATION_ERROR = "VALIDATION_ERROR"
    CONFIG_ERROR = "CONFIG_ERROR"
    NOT_FOUND = "NOT_FOUND"
    CONFLICT = "CONFLICT"
    SECTION_NOT_FOUND = "SECTION_NOT_FOUND"
    DEADLINE_EXCEEDED = "DEADLINE_EXCEEDED"
    PUBLISH_FAILED = "PUBLISH_FAILED"
    TRANSPORT_ERROR = "TRANSPORT_ERROR"
    AUTH_ERROR = "AUTH_ERROR"
    PERMISSION_ERROR = "PERMISSION_ERROR"
    NETWORK_ERROR = "NETWORK_ERROR"
    RETRY_EXHAUSTED = "RETRY_EXHAUSTED"


# ---------------------------------------------------------------------------
# Base error
# ---------------------------------------------------------------------------

class SitepressError(Exception):
    """Base exception for all sitepress errors.

    Parameters
    ----------
    code:
        A value from :class:`ErrorCode` (or any string) identifying the
        error category.
    message:
        A developer-friendly description of what went wrong.
    context:
        Arbitrary structured data providing extra diagnostic detail.
        Keys and expected types are documented per subclass.
    cause:
        The underlying exception, if this error wraps another.
    """

    def __init__(
        self,
        code: str,
        message: str,
        context: dict[str, Any] | None = None,
        cause: Exception | None = None,
    ) -> None:
        self.code: str = code
        self.message: str = message
        self.context: dict[str, Any] = context or {}
        self.cause: Exception | None = cause
        super().__init__(message)
        if cause is not None:
            self.__cause__ = cause

    def __repr__(self) -> str:
        ctx = f", context={self.context!r}" if self.context else ""
        return f"{type(self).__name__}(code={self.code!r}, message={self.message!r}{ctx})"


# ---------------------------------------------------------------------------
# Caller-side errors (raised before any network call)
# ---------------------------------------------------------------------------

class SitepressValidationError(SitepressError):
    """Malformed or empty slug / section name, or missing required content.

    Context keys: ``field``, ``value``.
    """

    def __init__(
        self,
        message: str,
        context: dict[str, Any] | None = None,
        cause: Exception | None = None,
    ) -> None:
        super().__init__(
            code=ErrorCode.VALIDATION_ERROR,
            message=message,
            context=context,
            cause=cause,
        )


class SitepressConfigError(SitepressError):
    """Store credentials or repository coordinates are missing or invalid.

    Context keys: ``missing``.
    """

    def __init__(
        self,
        message: str,
        context: dict[str, Any] | None = None,
        cause: Exception | None = None,
    ) -> None:
        super().__init__(
            code=ErrorCode.CONFIG_ERROR,
            message=message,
            context=context,
            cause=cause,
        )


# ---------------------------------------------------------------------------
# Store outcomes
# ---------------------------------------------------------------------------

class SitepressNotFoundError(SitepressError):
    """The read target does not exist.

    Context keys: ``path``.
    """

    def __init__(
        self,
        message: str,
        context: dict[str, Any] | None = None,
        cause: Exception | None = None,
    ) -> None:
        super().__init__(
            code=ErrorCode.NOT_FOUND,
            message=message,
            context=context,
            cause=cause,
        )


class SitepressConflictError(SitepressError):
    """The supplied version token no longer matches the store's current one.

    Context keys: ``path``, ``status_code``, ``attempts`` (only once the
    conflict policy has given up).
    """

    def __init__(
        self,
        message: str,
        context: dict[str, Any] | None = None,
        cause: Exception | None = None,
    ) -> None:
        super().__init__(
            code=ErrorCode.CONFLICT,
            message=message,
            context=context,
            cause=cause,
        )


class SitepressSectionNotFoundError(SitepressError):
    """A section's markers are absent or out of order in the document.

    Context keys: ``path``, ``section``, ``start_found``, ``end_found``.
    """

    def __init__(
        self,
        message: str,
        context: dict[str, Any] | None = None,
        cause: Exception | None = None,
    ) -> None:
        super().__init__(
            code=ErrorCode.SECTION_NOT_FOUND,
            message=message,
            context=context,
            cause=cause,
        )


class SitepressDeadlineError(SitepressError):
    """A caller-imposed deadline elapsed between two sequential steps.

    Context keys: ``deadline_seconds``, ``elapsed_seconds``.
    """

    def __init__(
        self,
        message: str,
        context: dict[str, Any] | None = None,
        cause: Exception | None = None,
    ) -> None:
        super().__init__(
            code=ErrorCode.DEADLINE_EXCEEDED,
            message=message,
            context=context,
            cause=cause,
        )


class SitepressPublishError(SitepressError):
    """A batch stopped part-way through; earlier files remain committed.

    Context keys: ``slug``, ``path`` (the failing one), ``index``,
    ``committed`` (paths written before the failure), ``error_code``.
    """

    def __init__(
        self,
        message: str,
        context: dict[str, Any] | None = None,
        cause: Exception | None = None,
    ) -> None:
        super().__init__(
            code=ErrorCode.PUBLISH_FAILED,
            message=message,
            context=context,
            cause=cause,
        )

    @property
    def path(self) -> str | None:
        return self.context.get("path")

    @property
    def committed(self) -> list[str]:
        return list(self.context.get("committed", []))


# ---------------------------------------------------------------------------
# Transport errors
# ---------------------------------------------------------------------------

class SitepressTransportError(SitepressError):
    """Base class for network, auth and service failures unrelated to
    versioning.

    Context keys: ``status_code``, ``method``, ``path``.
    """

    def __init__(
        self,
        message: str,
        context: dict[str, Any] | None = None,
        cause: Exception | None = None,
        code: str = ErrorCode.TRANSPORT_ERROR,
    ) -> None:
        super().__init__(
            code=code,
            message=message,
            context=context,
            cause=cause,
        )


class SitepressAuthError(SitepressTransportError):
    """The store returned 401 -- the token is invalid or expired."""

    def __init__(
        self,
        message: str,
        context: dict[str, Any] | None = None,
        cause: Exception | None = None,
    ) -> None:
        super().__init__(
            message=message,
            context=context,
            cause=cause,
            code=ErrorCode.AUTH_ERROR,
        )


class SitepressPermissionError(SitepressTransportError):
    """The store returned 403 -- the token lacks access to the repository."""

    def __init__(
        self,
        message: str,
        context: dict[str, Any] | None = None,
        cause: Exception | None = None,
    ) -> None:
        super().__init__(
            message=message,
            context=context,
            cause=cause,
            code=ErrorCode.PERMISSION_ERROR,
        )


class SitepressNetworkError(SitepressTransportError):
    """A transport-level failure occurred (timeout, DNS, connection reset).

    Context keys: ``path``, ``attempt``.
    """

    def __init__(
        self,
        message: str,
        context: dict[str, Any] | None = None,
        cause: Exception | None = None,
    ) -> None:
        super().__init__(
            message=message,
            context=context,
            cause=cause,
            code=ErrorCode.NETWORK_ERROR,
        )


class SitepressRetryExhaustedError(SitepressTransportError):
    """All transport-level attempts failed with retryable statuses.

    Context keys: ``attempts``, ``last_status_code``.
    """

    def __init__(
        self,
        message: str,
        context: dict[str, Any] | None = None,
        cause: Exception | None = None,
    ) -> None:
        super().__init__(
            message=message,
            context=context,
            cause=cause,
            code=ErrorCode.RETRY_EXHAUSTED,
        )
