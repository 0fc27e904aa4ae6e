"""
Binary backend — standalone files fetched over HTTP.

A source shaped like a release download link,

    https://github.com/<owner>/<repo>/releases/download/<tag>/<asset>

always fetches ``<asset>`` from the *latest* release: the stored tag only
tells us which asset name to look for. If the latest release no longer
has an asset with that exact name the call fails with AssetNotFound.

Any other source is a direct download saved under its basename.

Both paths download unconditionally and overwrite the same file name
in the destination directory.
"""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass
from pathlib import PurePosixPath
from urllib.parse import unquote, urlparse

from bussin.adapters.base import Backend, BackendContext
from bussin.adapters.net.http import HttpClient
from bussin.core.errors import AssetNotFound, FetchFailed
from bussin.core.models.receipt import Receipt

logger = logging.getLogger(__name__)

_RELEASE_URL = re.compile(
    r"^https?://(?:www\.)?github\.com/"
    r"(?P<owner>[^/]+)/(?P<repo>[^/]+)/releases/download/"
    r"(?P<tag>[^/]+)/(?P<asset>[^/?#]+)"
)


@dataclass(frozen=True)
class ReleaseRef:
    """Components of a release download URL."""

    owner: str
    repo: str
    tag: str
    asset: str


def parse_release_url(url: str) -> ReleaseRef | None:
    """Split a release download URL, or None if it is not one."""
    match = _RELEASE_URL.match(url.strip())
    if match is None:
        return None
    return ReleaseRef(
        owner=match["owner"],
        repo=match["repo"],
        tag=match["tag"],
        asset=unquote(match["asset"]),
    )


def url_filename(url: str) -> str:
    """Basename of a URL's path, query and fragment ignored."""
    return unquote(PurePosixPath(urlparse(url.strip()).path).name)


class ReleaseAssetBackend(Backend):
    """Download release assets and plain files."""

    def __init__(self, http: HttpClient | None = None):
        self._http = http or HttpClient()

    @property
    def name(self) -> str:
        return "binary"

    def is_available(self) -> bool:
        return True  # urllib ships with Python

    def install(self, context: BackendContext) -> Receipt:
        dest = context.destination
        assert dest is not None  # binary tools always have a destination
        tool = context.tool

        try:
            url, filename = self.resolve(tool.source)
            logger.info("Downloading %s from %s", filename, url)
            size = self._http.download(url, dest / filename)
        except FetchFailed as e:
            return Receipt.failure(
                backend=self.name,
                tool=tool.name,
                error=str(e),
                error_kind=e.kind,
                metadata={"source": tool.source},
            )

        if tool.checksum:
            logger.info("Checksum verification not implemented.")

        return Receipt.success(
            backend=self.name,
            tool=tool.name,
            output=f"Downloaded {filename} to {dest}",
            metadata={
                "url": url,
                "path": str(dest / filename),
                "size_bytes": size,
                "release": parse_release_url(tool.source) is not None,
            },
        )

    def resolve(self, source: str) -> tuple[str, str]:
        """Return ``(download_url, filename)`` for a source.

        Raises:
            AssetNotFound: Latest release lacks the expected asset.
            FetchFailed: Release lookup failed or no file name derivable.
        """
        ref = parse_release_url(source)
        if ref is not None:
            logger.info("Fetching latest release for %s/%s...", ref.owner, ref.repo)
            assets = self._http.latest_release(ref.owner, ref.repo)
            if ref.asset not in assets:
                raise AssetNotFound(
                    f'Could not find asset "{ref.asset}" in the latest release '
                    f"for {ref.owner}/{ref.repo}."
                )
            return assets[ref.asset], ref.asset

        filename = url_filename(source)
        if not filename:
            raise FetchFailed(f"Cannot derive a file name from {source}")
        return source, filename
