"""Command-line interface for the mirror."""

from __future__ import annotations

import argparse
import dataclasses
import logging
import os
import signal
import sys
import threading

from . import __version__
from .config import DEFAULT_CONFIG_FILE, ConfigError, load_config, load_repository_list
from .engine import IndexCrawler
from .fetcher import DownloadCancelled
from .paths import IS_WINDOWS, ensure_directory_exists, sanitize_path

logger = logging.getLogger(__name__)

_LOG_FORMAT = "%(asctime)s [%(levelname)s] %(message)s"


def build_parser() -> argparse.ArgumentParser:
    p = argparse.ArgumentParser(
        prog="artimirror",
        description="Mirror repository manager directory listings to local storage",
    )
    p.add_argument(
        "-c", "--config", default=DEFAULT_CONFIG_FILE,
        help=f"Path to configuration file (default: {DEFAULT_CONFIG_FILE})",
    )
    p.add_argument(
        "-o", "--output-dir", default=None,
        help="Override general.output_dir from the configuration",
    )
    p.add_argument(
        "--force-replace", action="store_true",
        help="Download files even if they already exist locally",
    )
    p.add_argument(
        "--keep-html", action="store_true",
        help="Keep the downloaded *-index.html files",
    )
    p.add_argument(
        "-v", "--verbose", action="store_true",
        help="Enable verbose logging",
    )
    p.add_argument(
        "--version", action="version", version=f"%(prog)s {__version__}",
    )
    return p


def setup_logging(level_name: str, verbose: bool = False, log_path: str = "") -> None:
    level = logging.DEBUG if verbose else getattr(logging, level_name.upper(), logging.INFO)
    logging.basicConfig(level=level, format=_LOG_FORMAT, datefmt="%H:%M:%S")

    if log_path:
        log_path = sanitize_path(log_path)
        ensure_directory_exists(os.path.dirname(log_path) or ".")
        fh = logging.FileHandler(log_path, encoding="utf-8")
        fh.setFormatter(logging.Formatter(_LOG_FORMAT, datefmt="%Y-%m-%d %H:%M:%S"))
        logging.getLogger().addHandler(fh)


def main(argv: list[str] | None = None) -> int:
    args = build_parser().parse_args(argv)

    try:
        config = load_config(args.config)
    except ConfigError as exc:
        print(f"Error loading configuration: {exc}", file=sys.stderr)
        return 1

    overrides = {}
    if args.output_dir:
        overrides["output_dir"] = args.output_dir
    if args.force_replace:
        overrides["force_replace"] = True
    if args.keep_html:
        overrides["clean_html_files"] = False
    overrides["output_dir"] = sanitize_path(overrides.get("output_dir", config.output_dir))
    config = dataclasses.replace(config, **overrides)

    try:
        setup_logging(config.log_level, args.verbose, config.log_path)
    except OSError as exc:
        print(f"Error creating log directory: {exc}", file=sys.stderr)
        return 1

    try:
        ensure_directory_exists(config.output_dir)
        repositories = load_repository_list(config)
    except OSError as exc:
        print(f"Error creating output directory: {exc}", file=sys.stderr)
        return 1
    except ConfigError as exc:
        print(f"Error processing repository list: {exc}", file=sys.stderr)
        return 1

    logger.info("Artimirror starting...")
    logger.info("Repository URL: %s", config.base_url)
    logger.info("Repositories: %d", len(repositories))
    logger.info("Output directory: %s", config.output_dir)
    if IS_WINDOWS:
        logger.info("Running on Windows - Using Windows-compatible path handling")

    cancel_event = threading.Event()
    previous_handler = signal.signal(signal.SIGINT, lambda signum, frame: cancel_event.set())

    crawler = IndexCrawler(config, cancel_event=cancel_event)
    try:
        result = crawler.run(repositories)
    except DownloadCancelled:
        print("\nMirror cancelled", file=sys.stderr)
        return 130
    except OSError as exc:
        print(f"Error processing repository list: {exc}", file=sys.stderr)
        return 1
    finally:
        signal.signal(signal.SIGINT, previous_handler)

    if cancel_event.is_set():
        print("\nMirror cancelled", file=sys.stderr)
        return 130

    print(
        f"\nMirror complete: {result.total_downloaded} downloaded, "
        f"{result.total_skipped} skipped, {result.total_failed} failed"
    )
    if result.total_failed:
        print(f"Retry commands written to {config.failure_log_path}")
    return 0


if __name__ == "__main__":
    sys.exit(main())
