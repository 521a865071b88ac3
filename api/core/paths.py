"""
Filename sanitizing and root containment.

Every externally supplied name passes `sanitize_filename` before it is used
to build a path, and every path we are about to write or delete passes
`resolve_contained`. The two checks are independent; both must hold.
"""

from __future__ import annotations

import os
from pathlib import Path

from .errors import ValidationError

IMAGE_EXTENSIONS = {".jpg", ".jpeg", ".png", ".gif", ".webp", ".svg", ".heic", ".heif"}

_SEPARATORS = ("/", "\\")


def _strip_directories(raw: str) -> str:
    name = raw
    for sep in _SEPARATORS:
        name = name.rsplit(sep, 1)[-1]
    return name


def sanitize_filename(raw: str | None) -> str:
    """
    Return `raw` if it is a plain basename, else raise ValidationError.

    Directory components are stripped first; a name that changed under
    stripping carried a separator and is rejected, as is anything still
    containing a parent-directory marker.
    """
    if raw is None or not raw.strip():
        raise ValidationError("Invalid filename")
    if "\x00" in raw:
        raise ValidationError("Invalid filename")

    name = _strip_directories(raw)
    if name != raw or any(sep in name for sep in _SEPARATORS):
        raise ValidationError("Invalid filename")
    if name in {".", ".."} or ".." in name:
        raise ValidationError("Invalid filename")
    return name


def is_image_name(name: str) -> bool:
    return Path(name).suffix.lower() in IMAGE_EXTENSIONS


def resolve_contained(name: str, root: Path) -> Path:
    """
    Resolve `name` under `root` and verify the result stays strictly inside.

    Containment is checked lexically on the normalized absolute path, so it
    holds before anything touches the filesystem.
    """
    safe = sanitize_filename(name)
    root_abs = os.path.normpath(os.path.abspath(root))
    candidate = os.path.normpath(os.path.join(root_abs, safe))

    try:
        common = os.path.commonpath([root_abs, candidate])
    except ValueError as exc:
        raise ValidationError("Invalid filename") from exc

    if common != root_abs or candidate == root_abs:
        raise ValidationError("Invalid filename")
    return Path(candidate)


# Committed assets and the catalog are served by an external static server.
PUBLIC_FILE_MODE = 0o644
