"""Filesystem path safety — sanitize names for the host platform."""

from __future__ import annotations

import errno
import logging
import ntpath
import os
import posixpath
from typing import BinaryIO

logger = logging.getLogger(__name__)

IS_WINDOWS = os.name == "nt"

# 260 minus the terminating NUL
MAX_PATH_LENGTH = 259
LONG_PATH_PREFIX = "\\\\?\\"

_RESERVED_NAMES = frozenset(
    ["CON", "PRN", "AUX", "NUL"]
    + [f"COM{i}" for i in range(1, 10)]
    + [f"LPT{i}" for i in range(1, 10)]
)
_INVALID_CHARS = '<>:"/\\|?*'


def _flavor():
    return ntpath if IS_WINDOWS else posixpath


def sanitize_filename(name: str) -> str:
    """Return *name* made safe for use as a single path component.

    On Windows, characters that cannot appear in a filename are replaced by
    ``_`` and reserved device names get a trailing ``_`` before the extension
    (``CON.txt`` -> ``CON_.txt``). Elsewhere only surrounding whitespace is
    trimmed.
    """
    name = name.strip()
    if not IS_WINDOWS:
        return name

    for char in _INVALID_CHARS:
        name = name.replace(char, "_")

    stem, ext = ntpath.splitext(name)
    if stem.upper() in _RESERVED_NAMES:
        return f"{stem}_{ext}"
    return name


def sanitize_path(path: str) -> str:
    """Sanitize every component of *path* except the leading drive or root."""
    if not IS_WINDOWS:
        return posixpath.normpath(path)

    if path.startswith(LONG_PATH_PREFIX):
        prefix, path = LONG_PATH_PREFIX, path[len(LONG_PATH_PREFIX):]
    else:
        prefix = ""

    parts = path.replace("/", "\\").split("\\")
    for i, part in enumerate(parts):
        if part and i > 0:
            parts[i] = sanitize_filename(part)
    result = prefix + "\\".join(parts)

    if len(result) > MAX_PATH_LENGTH and not result.startswith(LONG_PATH_PREFIX):
        result = LONG_PATH_PREFIX + result
    return result


def safe_join(*segments: str) -> str:
    """Join *segments* after sanitizing each one on its own.

    A segment such as ``"b/c"`` is a single component here: on Windows its
    separator is replaced, on POSIX it is kept and split by the final
    normalisation. The first segment is an anchor (it may carry a drive or
    root) and is only cleaned as a whole path; later segments lose any
    leading separator so they always land under it.
    """
    if not segments:
        return ""
    head, *rest = segments
    cleaned = [head.strip()] + [sanitize_filename(s.strip().lstrip("/\\")) for s in rest]
    return sanitize_path(_flavor().join(*cleaned))


def ensure_directory_exists(path: str) -> str:
    """Create *path* and its parents if needed and return the sanitized path.

    Raises :class:`NotADirectoryError` when *path* exists but is not a
    directory.
    """
    safe = sanitize_path(path)
    if os.path.exists(safe):
        if not os.path.isdir(safe):
            raise NotADirectoryError(
                errno.ENOTDIR, "path exists but is not a directory", safe
            )
        return safe
    os.makedirs(safe, mode=0o755, exist_ok=True)
    logger.debug("Created directory %s", safe)
    return safe


def safe_create_file(path: str) -> BinaryIO:
    """Open *path* for binary writing, truncating it and creating parents."""
    safe = sanitize_path(path)
    parent = os.path.dirname(safe)
    if parent:
        ensure_directory_exists(parent)
    return open(safe, "wb")


def url_to_local_path(url_path: str) -> str:
    """Convert a slash-separated remote path into a local path."""
    return sanitize_path(url_path.replace("/", _flavor().sep))


def uri_to_local_path(uri: str) -> str:
    """Like :func:`url_to_local_path` but strips a leading ``file://``."""
    if uri.startswith("file://"):
        uri = uri[len("file://"):]
    return url_to_local_path(uri)
