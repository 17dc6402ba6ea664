"""Mirror configuration — TOML loading and validation."""

from __future__ import annotations

import os
import tomllib
from dataclasses import dataclass, field
from typing import Any, List, Optional, Tuple

DEFAULT_CONFIG_FILE = "artimirror.toml"
DEFAULT_FILE_TYPES = ".pom,.jar,.war,.xml,.zip,.tar,.tar.gz"
DEFAULT_EXPORT_DIR = os.path.join("~", "Documents", "EXPORT_ARTI")
DEFAULT_USER_AGENT = (
    "Mozilla/5.0 (Windows NT 10.0; Win64; x64) "
    "AppleWebKit/537.36 (KHTML, like Gecko) "
    "Chrome/91.0.4472.124 Safari/537.36"
)
METADATA_FILENAME = "maven-metadata.xml"

FILTER_NONE = "none"
FILTER_WHITELIST = "whitelist"
FILTER_BLACKLIST = "blacklist"
FILTER_MODES = (FILTER_NONE, FILTER_WHITELIST, FILTER_BLACKLIST)

AUTH_NONE = "none"
AUTH_BASIC = "basic"
AUTH_TOKEN = "token"
AUTH_TYPES = (AUTH_NONE, AUTH_BASIC, AUTH_TOKEN)

LOG_LEVELS = ("debug", "info", "warn", "warning", "error")


class ConfigError(ValueError):
    """Raised when the configuration cannot be loaded or is incoherent."""


@dataclass(frozen=True)
class ProxyConfig:
    enabled: bool = False
    host: str = ""
    port: int = 0
    username: str = ""
    password: str = ""


@dataclass(frozen=True)
class AuthConfig:
    type: str = AUTH_NONE
    username: str = ""
    password: str = ""
    access_token: str = ""


@dataclass(frozen=True)
class CrawlConfig:
    """Settings for one mirror run. Never mutated once built."""

    base_url: str
    output_dir: str = "./downloads"
    export_dir: str = DEFAULT_EXPORT_DIR
    repositories: Tuple[str, ...] = ()
    repo_list: str = "liste_arti.csv"
    retry_attempts: int = 3
    timeout: int = 10
    delay: float = 1.0
    proxy: ProxyConfig = field(default_factory=ProxyConfig)
    auth: AuthConfig = field(default_factory=AuthConfig)
    filter_mode: str = FILTER_NONE
    extensions: Tuple[str, ...] = ()
    file_types: Tuple[str, ...] = tuple(DEFAULT_FILE_TYPES.split(","))
    include_maven_metadata: bool = True
    force_replace: bool = False
    clean_html_files: bool = True
    mirror_repository_paths: bool = False
    concurrent_downloads: int = 4  # accepted for compatibility, not used
    user_agent: str = DEFAULT_USER_AGENT
    log_path: str = ""
    log_level: str = "info"

    @property
    def failure_log_path(self) -> str:
        return os.path.join(os.path.expanduser(self.export_dir), "failed_download.txt")


def validate_config(cfg: CrawlConfig) -> None:
    """Raise :class:`ConfigError` if *cfg* is not usable."""
    if not cfg.base_url:
        raise ConfigError("artifactory URL cannot be empty")
    if not cfg.repositories and not cfg.repo_list:
        raise ConfigError(
            "either 'repositories' or 'repo_list' must be specified in the configuration"
        )
    if cfg.filter_mode not in FILTER_MODES:
        raise ConfigError(
            f"invalid filter mode '{cfg.filter_mode}', "
            f"must be one of: {', '.join(FILTER_MODES)}"
        )
    if cfg.retry_attempts < 0:
        raise ConfigError("retry attempts cannot be negative")
    if cfg.timeout <= 0:
        raise ConfigError("timeout must be greater than 0")
    if cfg.delay < 0:
        raise ConfigError("delay cannot be negative")
    if cfg.concurrent_downloads < 1:
        raise ConfigError("concurrent downloads must be at least 1")
    if cfg.log_level.lower() not in LOG_LEVELS:
        raise ConfigError(f"invalid log level '{cfg.log_level}'")

    if cfg.proxy.enabled:
        if not cfg.proxy.host:
            raise ConfigError("proxy host cannot be empty when proxy is enabled")
        if not 0 < cfg.proxy.port <= 65535:
            raise ConfigError("proxy port must be between 1 and 65535")

    auth = cfg.auth
    if auth.type not in AUTH_TYPES:
        raise ConfigError(
            f"auth type {auth.type} is not supported, "
            f"valid values are: {', '.join(AUTH_TYPES)}"
        )
    if auth.type == AUTH_BASIC:
        if not auth.username:
            raise ConfigError("username cannot be empty for basic authentication")
        if not auth.password:
            raise ConfigError("password cannot be empty for basic authentication")
    if auth.type == AUTH_TOKEN and not auth.access_token:
        raise ConfigError("access token cannot be empty for token authentication")


def _section(data: dict, name: str) -> dict:
    value = data.get(name, {})
    if not isinstance(value, dict):
        raise ConfigError(f"[{name}] must be a table")
    return value


def _split_types(value: Any) -> Tuple[str, ...]:
    if isinstance(value, str):
        value = value.split(",")
    return tuple(v.strip() for v in value if v.strip())


def config_from_dict(data: dict) -> CrawlConfig:
    """Build and validate a :class:`CrawlConfig` from parsed TOML tables."""
    general = _section(data, "general")
    arti = _section(data, "artifactory")
    files = _section(data, "files")
    download = _section(data, "download")
    proxy = _section(data, "proxy")
    auth = _section(data, "auth")

    try:
        cfg = CrawlConfig(
            base_url=arti.get("url", ""),
            output_dir=general.get("output_dir", "./downloads"),
            export_dir=general.get("export_dir", DEFAULT_EXPORT_DIR),
            repositories=tuple(arti.get("repositories", ())),
            repo_list=arti.get("repo_list", "liste_arti.csv"),
            retry_attempts=int(download.get("retry_attempts", 3)),
            timeout=int(download.get("timeout", 10)),
            delay=float(download.get("delay", 1)),
            proxy=ProxyConfig(
                enabled=bool(proxy.get("enabled", False)),
                host=proxy.get("host", ""),
                port=int(proxy.get("port", 0)),
                username=proxy.get("username", ""),
                password=proxy.get("password", ""),
            ),
            auth=AuthConfig(
                type=auth.get("type", AUTH_NONE),
                username=auth.get("username", ""),
                password=auth.get("password", ""),
                access_token=auth.get("access_token", ""),
            ),
            filter_mode=files.get("filter_mode", FILTER_NONE),
            extensions=tuple(files.get("extensions", ())),
            file_types=_split_types(arti.get("file_types") or DEFAULT_FILE_TYPES),
            include_maven_metadata=bool(files.get("include_maven_metadata", True)),
            force_replace=bool(arti.get("force_replace", False)),
            clean_html_files=bool(files.get("clean_html_files", True)),
            mirror_repository_paths=bool(general.get("mirror_repository_paths", False)),
            concurrent_downloads=int(general.get("concurrent_downloads", 4)),
            log_path=general.get("log_path", ""),
            log_level=general.get("log_level", "info"),
        )
    except (TypeError, ValueError) as exc:
        raise ConfigError(f"failed to parse configuration: {exc}") from exc

    validate_config(cfg)
    return cfg


def load_config(path: Optional[str] = None) -> CrawlConfig:
    """Read the TOML file at *path* (default ``artimirror.toml``)."""
    path = path or os.path.abspath(DEFAULT_CONFIG_FILE)
    if not os.path.exists(path):
        raise ConfigError(f"configuration file not found at path: {path}")
    try:
        with open(path, "rb") as f:
            data = tomllib.load(f)
    except (OSError, tomllib.TOMLDecodeError) as exc:
        raise ConfigError(f"failed to read configuration file: {exc}") from exc
    return config_from_dict(data)


def read_repository_list(path: str) -> List[str]:
    """Return the non-blank lines of a repository list file."""
    repos: List[str] = []
    with open(path, "r", encoding="utf-8") as f:
        for line in f:
            repo = line.replace("\r", "").replace("\n", "").strip()
            if repo:
                repos.append(repo)
    return repos


def load_repository_list(cfg: CrawlConfig) -> List[str]:
    """Repositories from the config, else from the ``repo_list`` file.

    A relative ``repo_list`` is resolved against ``output_dir``.
    """
    if cfg.repositories:
        return list(cfg.repositories)
    if not cfg.repo_list:
        raise ConfigError(
            "no repositories configured: neither 'repositories' nor 'repo_list' is set"
        )

    path = cfg.repo_list
    if not os.path.isabs(path):
        path = os.path.join(cfg.output_dir, path)
    try:
        repos = read_repository_list(path)
    except OSError as exc:
        raise ConfigError(f"failed to open repo list file: {exc}") from exc
    if not repos:
        raise ConfigError("no repositories found in repo list file")
    return repos
