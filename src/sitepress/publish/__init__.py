"""sitepress.publish -- the publishing core.

* :mod:`.retry` -- Conflict retry policy around a single path write.
* :mod:`.batch` -- Sequential, non-transactional site publisher.
* :mod:`.sections` -- Marker-delimited section patcher.
* :mod:`.site` -- Site file assembly from a publish request.
"""

from __future__ import annotations

from .batch import BatchPublisher
from .retry import ConflictRetryPolicy, decide
from .sections import SectionPatcher, splice_section
from .site import build_site_files

__all__ = [
    "BatchPublisher",
    "ConflictRetryPolicy",
    "SectionPatcher",
    "build_site_files",
    "decide",
    "splice_section",
]
