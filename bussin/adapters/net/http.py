"""
HTTP client — fetch with bounded retry, and release listing.

Transient failures (connection errors, timeouts, 408/429/5xx) are
retried with exponential backoff and jitter, up to ``retries`` extra
attempts. Anything left over is raised as ``FetchFailed``; callers
never see a urllib exception.
"""

from __future__ import annotations

import json
import logging
import os
import random
import tempfile
import time
import urllib.error
import urllib.request
from collections.abc import Callable
from pathlib import Path
from typing import Any, TypeVar

from bussin.core.errors import FetchFailed

logger = logging.getLogger(__name__)

T = TypeVar("T")

_RETRY_STATUS = frozenset({408, 429, 500, 502, 503, 504})
_CHUNK = 8192


class HttpClient:
    """Small urllib-based client used by the binary backend.

    Args:
        retries: Extra attempts after the first failure.
        timeout: Per-request timeout in seconds.
        retry_delay: Base backoff delay in seconds.
        api_base: Release API root.
        user_agent: User-Agent header value.
        urlopen: Opener, replaceable in tests.
        sleep: Sleep function, replaceable in tests.
    """

    def __init__(
        self,
        retries: int = 3,
        timeout: float = 60.0,
        retry_delay: float = 1.0,
        api_base: str = "https://api.github.com",
        user_agent: str = "bussin",
        urlopen: Callable[..., Any] = urllib.request.urlopen,
        sleep: Callable[[float], None] = time.sleep,
    ):
        self._retries = retries
        self._timeout = timeout
        self._retry_delay = retry_delay
        self._api_base = api_base.rstrip("/")
        self._user_agent = user_agent
        self._urlopen = urlopen
        self._sleep = sleep

    # ── Capabilities ────────────────────────────────────────────

    def fetch(self, url: str, headers: dict[str, str] | None = None) -> bytes:
        """GET ``url`` and return the body. Raises FetchFailed."""

        def _get() -> bytes:
            with self._open(url, headers) as resp:
                return resp.read()

        return self._with_retry(url, _get)

    def fetch_json(self, url: str) -> Any:
        body = self.fetch(url, headers={"Accept": "application/vnd.github.v3+json"})
        try:
            return json.loads(body)
        except ValueError as e:
            raise FetchFailed(f"Invalid JSON from {url}: {e}") from e

    def download(self, url: str, target: Path) -> int:
        """Stream ``url`` into ``target`` (replaced atomically).

        Returns:
            Number of bytes written.
        """
        try:
            target.parent.mkdir(parents=True, exist_ok=True)
        except OSError as e:
            raise FetchFailed(f"Cannot create {target.parent}: {e}") from e

        def _get() -> int:
            fd, tmp_path = tempfile.mkstemp(dir=target.parent, prefix=f".{target.name}_", suffix=".part")
            tmp = Path(tmp_path)
            try:
                written = 0
                with os.fdopen(fd, "wb") as f, self._open(url, None) as resp:
                    while True:
                        chunk = resp.read(_CHUNK)
                        if not chunk:
                            break
                        f.write(chunk)
                        written += len(chunk)
                os.replace(tmp, target)
                return written
            except BaseException:
                tmp.unlink(missing_ok=True)
                raise

        written = self._with_retry(url, _get)
        logger.debug("Downloaded %s → %s (%d bytes)", url, target, written)
        return written

    def latest_release(self, owner: str, repo: str) -> dict[str, str]:
        """Assets of the latest release as ``{asset_name: download_url}``."""
        api_url = f"{self._api_base}/repos/{owner}/{repo}/releases/latest"
        data = self.fetch_json(api_url)
        if not isinstance(data, dict):
            raise FetchFailed(f"Unexpected release payload for {owner}/{repo}")

        assets: dict[str, str] = {}
        for asset in data.get("assets") or []:
            if not isinstance(asset, dict):
                continue
            name = asset.get("name")
            download_url = asset.get("browser_download_url")
            if name and download_url:
                assets[name] = download_url
        logger.debug(
            "Latest release of %s/%s (%s): %d assets",
            owner, repo, data.get("tag_name", "?"), len(assets),
        )
        return assets

    # ── Helpers ─────────────────────────────────────────────────

    def _open(self, url: str, headers: dict[str, str] | None) -> Any:
        req = urllib.request.Request(
            url,
            headers={"User-Agent": self._user_agent, **(headers or {})},
        )
        return self._urlopen(req, timeout=self._timeout)

    def _with_retry(self, url: str, call: Callable[[], T]) -> T:
        attempt = 0
        while True:
            try:
                return call()
            except urllib.error.HTTPError as e:
                error = f"HTTP {e.code} {e.reason}"
                transient = e.code in _RETRY_STATUS
            except (urllib.error.URLError, TimeoutError, ConnectionError) as e:
                error = str(getattr(e, "reason", e))
                transient = True
            except OSError as e:
                raise FetchFailed(f"Cannot fetch {url}: {e}") from e

            if not transient or attempt >= self._retries:
                raise FetchFailed(f"Failed to fetch {url}: {error}")

            attempt += 1
            delay = self._retry_delay * (2 ** (attempt - 1))
            delay += random.uniform(0, delay * 0.3)
            logger.info(
                "Fetch of %s failed (%s), retry %d/%d in %.1fs",
                url, error, attempt, self._retries, delay,
            )
            self._sleep(delay)
