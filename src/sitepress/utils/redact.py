"""Token / payload redaction for safe logging.

Contents-API payloads are passed through :func:`redact` before they reach a
log line or a debug dump:

* **Sensitive keys** (``authorization``, ``token``, ...) are replaced with a
  masked placeholder showing at most the last four characters of the token.
* **File bodies** (the base64 ``content`` field of a read or write) are
  replaced with ``<base64:N_bytes>`` where *N* is the decoded size.
* **Raw bytes** are replaced with ``<binary:N_bytes>``.
* The full token is never present in the output.
"""

from __future__ import annotations

import copy
import re
from typing import Any

# If any of these appear in a key name (case-insensitive), the value is
# redacted.
_SENSITIVE_KEY_PATTERNS: frozenset[str] = frozenset({
    "token",
    "secret",
    "password",
    "credential",
    "authorization",
    "cookie",
    "private_key",
    "api_key",
})

# Keys whose values are base64 file bodies in the contents API.
_BODY_KEYS: frozenset[str] = frozenset({"content"})

_BEARER_RE = re.compile(r"(Bearer\s+)(?!<redacted)\S+")


def _mask_token(value: str, token: str | None) -> str:
    """Replace bearer / token strings with a safe placeholder."""
    if token and token in value:
        suffix = token[-4:] if len(token) >= 4 else "****"
        placeholder = f"<redacted:...{suffix}>"
        if token in placeholder:
            placeholder = "<redacted>"
        value = value.replace(token, placeholder)
    return _BEARER_RE.sub(lambda m: f"{m.group(1)}<redacted>", value)


def _base64_size(value: str) -> int:
    """Approximate decoded size of a base64 string (newlines ignored)."""
    compact = "".join(value.split())
    padding = compact.count("=")
    return max(len(compact) * 3 // 4 - padding, 0)


def _redact_value(value: Any, token: str | None) -> Any:
    if isinstance(value, dict):
        return _redact_dict(value, token)
    if isinstance(value, list):
        return [_redact_value(item, token) for item in value]
    if isinstance(value, str):
        return _mask_token(value, token) if token else value
    if isinstance(value, (bytes, bytearray)):
        return f"<binary:{len(value)}_bytes>"
    return value


def _redact_dict(d: dict, token: str | None) -> dict:
    result: dict = {}
    for key, value in d.items():
        key_lower = key.lower() if isinstance(key, str) else ""
        if any(pat in key_lower for pat in _SENSITIVE_KEY_PATTERNS):
            if isinstance(value, str):
                result[key] = _mask_token(value, token)
            else:
                result[key] = "<redacted>"
        elif key_lower in _BODY_KEYS and isinstance(value, str):
            result[key] = f"<base64:{_base64_size(value)}_bytes>"
        else:
            result[key] = _redact_value(value, token)
    return result


def redact(payload: dict, token: str | None = None) -> dict:
    """Return a deep copy of *payload* with sensitive data redacted.

    Parameters
    ----------
    payload:
        A request body, response body or header mapping.
    token:
        The store token.  Any occurrence of this exact string anywhere in
        the payload is replaced.

    Examples
    --------
    >>> redact({"Authorization": "Bearer ghp_abc123"})
    {'Authorization': 'Bearer <redacted>'}
    >>> redact({"message": "Publish x", "content": "aGVsbG8="})
    {'message': 'Publish x', 'content': '<base64:5_bytes>'}
    """
    safe = copy.deepcopy(payload)
    return _redact_dict(safe, token)
