"""Failure log and transient index file cleanup."""

from __future__ import annotations

import logging
import os
import shlex
from typing import Iterable, Tuple

from .paths import ensure_directory_exists, sanitize_path

logger = logging.getLogger(__name__)


class FailureLog:
    """Append-only log of failed downloads as ready-to-run ``wget`` commands."""

    def __init__(self, path: str, timeout: int, retry_attempts: int) -> None:
        self._path = sanitize_path(os.path.expanduser(path))
        self._timeout = timeout
        self._retry_attempts = retry_attempts

    @property
    def path(self) -> str:
        return self._path

    def command_for(self, filename: str, url: str) -> str:
        return (
            f"wget --timeout={self._timeout} --tries={self._retry_attempts} "
            f"-O {shlex.quote(filename)} {shlex.quote(url)}"
        )

    def record(self, filename: str, url: str) -> None:
        """Append the retry command for *url*; write errors are only logged."""
        try:
            ensure_directory_exists(os.path.dirname(self._path))
            with open(self._path, "a", encoding="utf-8") as f:
                f.write(self.command_for(filename, url) + "\n")
        except OSError as exc:
            logger.warning("Could not write failure log %s: %s", self._path, exc)


def remove_transient_files(paths: Iterable[str]) -> Tuple[int, int]:
    """Delete every path in *paths*; return (removed, failed) counts."""
    removed = failed = 0
    for path in paths:
        safe = sanitize_path(path)
        try:
            os.remove(safe)
            removed += 1
        except OSError as exc:
            failed += 1
            logger.warning("Failed to remove HTML file %s: %s", safe, exc)
    return removed, failed
