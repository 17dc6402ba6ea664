"""Depth-first index crawl engine — the core orchestrator."""

from __future__ import annotations

import logging
import os
import threading
from typing import Iterable, List, Optional

from .config import CrawlConfig
from .fetcher import DownloadError, Fetcher
from .filters import classify
from .models import CrawlResult, DirectoryEntry, EntryKind
from .parser import parse_line
from .paths import ensure_directory_exists, safe_join, sanitize_filename, sanitize_path
from .storage import FailureLog, remove_transient_files

logger = logging.getLogger(__name__)

INDEX_SUFFIX = "-index.html"
_PARENT_REF = ".."


class IndexCrawler:
    """Mirror repositories by walking their index pages.

    Every index page downloaded during a run is recorded in a ledger so it can
    be removed once all repositories have been processed.
    """

    def __init__(
        self,
        config: CrawlConfig,
        fetcher: Optional[Fetcher] = None,
        cancel_event: Optional[threading.Event] = None,
    ) -> None:
        self._config = config
        self._cancel_event = cancel_event or threading.Event()
        self._fetcher = fetcher or Fetcher(config, cancel_event=self._cancel_event)
        self._failure_log = FailureLog(
            config.failure_log_path, config.timeout, config.retry_attempts
        )
        self._ledger: List[str] = []
        self._result = CrawlResult()

    @property
    def ledger(self) -> List[str]:
        return list(self._ledger)

    @property
    def result(self) -> CrawlResult:
        return self._result

    def run(self, repositories: Iterable[str]) -> CrawlResult:
        """Mirror every repository path in *repositories*.

        Raises OSError if the output or export directory cannot be set up; a
        failing repository is logged and the next one is processed.
        """
        base_dir = ensure_directory_exists(self._config.output_dir)
        ensure_directory_exists(os.path.dirname(self._failure_log.path))

        try:
            for repo in repositories:
                if self._cancel_event.is_set():
                    logger.info("Crawl cancelled.")
                    break
                repo = repo.strip()
                if not repo:
                    continue
                self._process_repository(repo, base_dir)
        finally:
            if self._config.clean_html_files:
                self.cleanup()
            self._fetcher.close()
        logger.debug("Run summary: %s", self._result.to_dict())
        return self._result

    def _process_repository(self, repo: str, base_dir: str) -> None:
        repo_url = self._config.base_url + repo
        if not repo_url.endswith("/"):
            repo_url += "/"
        index_path = safe_join(base_dir, repo.replace("/", "_") + INDEX_SUFFIX)

        root = base_dir
        if self._config.mirror_repository_paths:
            root = safe_join(base_dir, *[p for p in repo.split("/") if p])

        logger.info("Downloading main index for repo: %s", repo)
        try:
            ensure_directory_exists(root)
            self._fetcher.download(repo_url, index_path)
        except (OSError, DownloadError) as exc:
            logger.warning("Failed to download index for repo %s: %s", repo, exc)
            self._result.failed_repositories.append({"repository": repo, "error": str(exc)})
            return

        logger.info("Parsing index: %s", index_path)
        try:
            self.parse_index(index_path, root, repo_url)
        except OSError as exc:
            logger.warning("Failed to parse index for repo %s: %s", repo, exc)
            self._result.failed_repositories.append({"repository": repo, "error": str(exc)})

    def parse_index(self, index_file: str, local_dir: str, base_url: str) -> None:
        """Process one downloaded index page, recursing into subdirectories.

        *local_dir* is where entries of this page are written and *base_url*
        the remote URL the page was fetched from. Raises OSError if the page
        cannot be read.
        """
        safe_file = sanitize_path(index_file)
        self._ledger.append(os.path.abspath(safe_file))
        local_dir = sanitize_path(local_dir)

        with open(safe_file, "r", encoding="utf-8", errors="replace") as f:
            for line in f:
                if self._cancel_event.is_set():
                    logger.info("Crawl cancelled.")
                    return
                entry = parse_line(line)
                if entry is None:
                    continue
                self._handle_entry(entry, local_dir, base_url)

    def _handle_entry(self, entry: DirectoryEntry, local_dir: str, base_url: str) -> None:
        if classify(entry, self._config) is EntryKind.FILE:
            self._mirror_file(entry, local_dir, base_url)
        elif _PARENT_REF in entry.label:
            logger.debug("Skipping parent reference %s", entry.label)
        else:
            self._descend(entry, local_dir, base_url)

    def _mirror_file(self, entry: DirectoryEntry, local_dir: str, base_url: str) -> None:
        if _PARENT_REF in entry.label.replace("\\", "/").split("/"):
            logger.debug("Skipping parent reference %s", entry.label)
            return
        target = safe_join(local_dir, entry.label)
        if not self._config.force_replace and os.path.exists(target):
            self._result.skipped.append(target)
            return

        url = base_url + entry.href
        logger.info("Downloading %s in %s", entry.label, local_dir)
        try:
            self._fetcher.download(url, target)
        except DownloadError as exc:
            logger.warning("Download failed for %s: %s", url, exc)
            self._failure_log.record(entry.label, url)
            self._result.failed.append({"url": url, "path": target, "error": str(exc)})
        else:
            self._result.downloaded.append(target)
        self._fetcher.pause(self._config.delay)

    def _descend(self, entry: DirectoryEntry, local_dir: str, base_url: str) -> None:
        url = base_url + entry.href
        try:
            dir_path = ensure_directory_exists(safe_join(local_dir, entry.label))
        except OSError as exc:
            logger.warning("Failed to create directory for %s: %s", entry.label, exc)
            return

        index_name = sanitize_filename(entry.label.replace("/", "") + INDEX_SUFFIX)
        index_path = safe_join(dir_path, index_name)

        logger.info("Downloading index for %s", entry.label)
        try:
            self._fetcher.download(url, index_path)
        except DownloadError as exc:
            logger.warning("Failed to download index %s: %s", index_name, exc)
            return

        logger.info("Parsing: %s / %s in new path: %s", index_name, url, dir_path)
        try:
            self.parse_index(index_path, dir_path, url)
        except OSError as exc:
            logger.warning("Failed to parse index %s: %s", index_name, exc)

    def cleanup(self) -> int:
        """Remove every transient index file recorded so far."""
        ledger, self._ledger = self._ledger, []
        removed, failed = remove_transient_files(ledger)
        if failed:
            logger.warning("Warning: %d HTML index file(s) could not be removed", failed)
        self._result.index_files_removed += removed
        return removed
