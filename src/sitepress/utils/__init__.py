from .redact import redact
from .slug import normalize_section_name, normalize_slug

__all__ = [
    "normalize_section_name",
    "normalize_slug",
    "redact",
]
