"""Input checks shared by the store and the HTTP boundary.

Pure functions with no I/O.
"""

from __future__ import annotations

import re

FALLBACK_FILENAME = "shared_content"
DEFAULT_MAX_FILENAME_LENGTH = 255

# Canonical lowercase UUID4 as produced by str(uuid.uuid4())
_ITEM_ID_RE = re.compile(
    r"^[0-9a-f]{8}-[0-9a-f]{4}-4[0-9a-f]{3}-[89ab][0-9a-f]{3}-[0-9a-f]{12}$"
)

_SEPARATOR_RE = re.compile(r"[/\\]")
_RESERVED_RE = re.compile(r'[<>:"|?*\x00-\x1f\x7f]')


def is_valid_item_id(item_id: object) -> bool:
    """Return True if *item_id* has the shape of an issued handle."""
    return isinstance(item_id, str) and _ITEM_ID_RE.fullmatch(item_id) is not None


def sanitize_filename(name: object, max_length: int = DEFAULT_MAX_FILENAME_LENGTH) -> str:
    """Neutralize a caller-supplied display name.

    Null bytes are dropped; path separators, parent-directory sequences and
    characters reserved on common filesystems become ``_``. The result is
    trimmed and truncated to *max_length*. Anything that is not a non-empty
    string after cleaning maps to ``FALLBACK_FILENAME``.
    """
    if not isinstance(name, str):
        return FALLBACK_FILENAME

    cleaned = name.replace("\x00", "")
    cleaned = _SEPARATOR_RE.sub("_", cleaned)
    cleaned = cleaned.replace("..", "_")
    cleaned = _RESERVED_RE.sub("_", cleaned)
    cleaned = cleaned.strip()[:max_length].strip()

    return cleaned or FALLBACK_FILENAME
