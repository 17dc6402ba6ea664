"""HTTP downloading with retries, proxy and authentication."""

from __future__ import annotations

import logging
import os
import threading
from typing import Optional
from urllib.parse import quote

import requests

from .config import AUTH_BASIC, AUTH_TOKEN, CrawlConfig
from .paths import safe_create_file, sanitize_path

logger = logging.getLogger(__name__)

_CHUNK_SIZE = 64 * 1024


class DownloadError(Exception):
    """A resource could not be fetched or written to disk."""

    def __init__(self, message: str, url: str, status_code: Optional[int] = None) -> None:
        super().__init__(message)
        self.url = url
        self.status_code = status_code


class DownloadCancelled(Exception):
    """The cancel event was set while waiting between requests."""


def proxy_url(config: CrawlConfig) -> Optional[str]:
    """Return the proxy URL to use, or None when no proxy is configured."""
    proxy = config.proxy
    if not (proxy.enabled and proxy.host and proxy.port > 0):
        return None
    credentials = ""
    if proxy.username and proxy.password:
        credentials = f"{quote(proxy.username, safe='')}:{quote(proxy.password, safe='')}@"
    return f"http://{credentials}{proxy.host}:{proxy.port}"


class Fetcher:
    """Downloads single resources to local files, retrying on failure."""

    def __init__(
        self,
        config: CrawlConfig,
        cancel_event: Optional[threading.Event] = None,
    ) -> None:
        self._config = config
        self._cancel_event = cancel_event or threading.Event()
        self._session = requests.Session()
        self._session.headers.update({"User-Agent": config.user_agent})

        proxy = proxy_url(config)
        if proxy:
            self._session.proxies.update({"http": proxy, "https": proxy})

        auth = config.auth
        if auth.type == AUTH_BASIC and auth.username and auth.password:
            self._session.auth = (auth.username, auth.password)
        elif auth.type == AUTH_TOKEN and auth.access_token:
            self._session.headers["Authorization"] = f"Bearer {auth.access_token}"

    @property
    def attempts(self) -> int:
        return max(1, self._config.retry_attempts)

    def download(self, url: str, local_path: str) -> str:
        """Fetch *url* into *local_path* and return the path written.

        Raises :class:`DownloadError` once every attempt has failed.
        """
        target = sanitize_path(local_path)
        resp = self._get_with_retries(url)
        try:
            self._write_body(resp, url, target)
        finally:
            resp.close()
        return target

    def _get_with_retries(self, url: str) -> requests.Response:
        transport_error: Optional[requests.RequestException] = None
        status_code: Optional[int] = None
        for attempt in range(1, self.attempts + 1):
            logger.debug("GET %s (attempt %d/%d)", url, attempt, self.attempts)
            transport_error, status_code = None, None
            try:
                resp = self._session.get(url, timeout=self._config.timeout, stream=True)
            except requests.RequestException as exc:
                transport_error = exc
                logger.debug("Request failed for %s: %s", url, exc)
            else:
                if resp.status_code == 200:
                    return resp
                status_code = resp.status_code
                logger.debug("Got status %d for %s", status_code, url)
                resp.close()

            if attempt < self.attempts and self.pause(self._config.delay):
                raise DownloadCancelled(url)

        if transport_error is not None:
            raise DownloadError(
                f"failed to download {url}: {transport_error}", url
            ) from transport_error
        raise DownloadError(
            f"failed to download {url}: status code {status_code}",
            url,
            status_code=status_code,
        )

    def _write_body(self, resp: requests.Response, url: str, target: str) -> None:
        try:
            with safe_create_file(target) as out:
                for chunk in resp.iter_content(chunk_size=_CHUNK_SIZE):
                    if chunk:
                        out.write(chunk)
        except (OSError, requests.RequestException) as exc:
            if os.path.exists(target) and os.path.isfile(target):
                os.remove(target)
            raise DownloadError(f"failed to write {target}: {exc}", url) from exc

    def pause(self, seconds: float) -> bool:
        """Wait *seconds*; return True if the wait was cut short by cancellation."""
        if seconds <= 0:
            return self._cancel_event.is_set()
        return self._cancel_event.wait(seconds)

    def close(self) -> None:
        self._session.close()
