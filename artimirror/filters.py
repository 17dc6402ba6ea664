"""Inclusion filter — decide which index entries are files to download."""

from __future__ import annotations

import logging

from .config import (
    FILTER_BLACKLIST,
    FILTER_NONE,
    FILTER_WHITELIST,
    METADATA_FILENAME,
    CrawlConfig,
)
from .models import DirectoryEntry, EntryKind

logger = logging.getLogger(__name__)

_COMPOUND_SUFFIX = ".tar.gz"


def extension_of(name: str) -> str:
    """Return the extension of the last ``/`` segment of *name*, dot included.

    ``.tar.gz`` is returned whole; an empty string means no extension.
    """
    if name.endswith(_COMPOUND_SUFFIX):
        return _COMPOUND_SUFFIX
    segment = name.rsplit("/", 1)[-1]
    dot = segment.rfind(".")
    return segment[dot:] if dot >= 0 else ""


def _matches(name: str, ext: str, candidates) -> bool:
    return any(ext == c or name.endswith(c) for c in candidates)


def should_include(name: str, config: CrawlConfig) -> bool:
    """Return True if *name* is a file the configured filter accepts."""
    if config.include_maven_metadata and name.endswith(METADATA_FILENAME):
        return True

    ext = extension_of(name)
    if not ext:
        return config.filter_mode != FILTER_WHITELIST

    mode = config.filter_mode
    if mode == FILTER_NONE:
        return any(name.endswith(t) for t in config.file_types)
    if mode == FILTER_WHITELIST:
        return _matches(name, ext, config.extensions)
    if mode == FILTER_BLACKLIST:
        return not _matches(name, ext, config.extensions)

    logger.debug("Unknown filter mode %r, excluding %s", mode, name)
    return False


def classify(entry: DirectoryEntry, config: CrawlConfig) -> EntryKind:
    """Infer whether *entry* is a file or a navigable directory.

    Listings carry no explicit type, so anything the inclusion filter accepts
    is a file unless its label ends with ``/``; everything else is assumed to
    be a subdirectory. An unwanted file can therefore be classified as a
    directory: its sub-index download then fails and the branch is dropped.
    """
    if should_include(entry.href, config) and not entry.label.endswith("/"):
        return EntryKind.FILE
    return EntryKind.DIRECTORY
