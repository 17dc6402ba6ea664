"""Data models for index entries and mirror results."""

from __future__ import annotations

import enum
from dataclasses import dataclass, field
from typing import List


class EntryKind(enum.Enum):
    FILE = "file"
    DIRECTORY = "directory"


@dataclass(frozen=True)
class DirectoryEntry:
    """One anchor from an index page listing."""

    href: str
    label: str


@dataclass
class CrawlResult:
    """Aggregated result of a mirror run."""

    downloaded: List[str] = field(default_factory=list)
    skipped: List[str] = field(default_factory=list)
    failed: List[dict] = field(default_factory=list)
    failed_repositories: List[dict] = field(default_factory=list)
    index_files_removed: int = 0

    @property
    def total_downloaded(self) -> int:
        return len(self.downloaded)

    @property
    def total_skipped(self) -> int:
        return len(self.skipped)

    @property
    def total_failed(self) -> int:
        return len(self.failed)

    def to_dict(self) -> dict:
        return {
            "total_downloaded": self.total_downloaded,
            "total_skipped": self.total_skipped,
            "total_failed": self.total_failed,
            "downloaded": self.downloaded,
            "failed": self.failed,
            "failed_repositories": self.failed_repositories,
            "index_files_removed": self.index_files_removed,
        }
