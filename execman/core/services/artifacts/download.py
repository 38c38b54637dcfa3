"""
Downloader — stream release assets into the staging area.

Progress is reported through an optional callback
``progress(asset_name, bytes_done, bytes_total)``; ``bytes_total`` is 0
when neither the server nor the release metadata knows the size.
"""

from __future__ import annotations

import http.client
import logging
import urllib.error
import urllib.request
from pathlib import Path
from typing import Callable

from execman.core.errors import NetworkError, StorageError
from execman.core.models.release import Asset
from execman.core.services.release.client import USER_AGENT

logger = logging.getLogger(__name__)

ProgressCallback = Callable[[str, int, int], None]

_CHUNK = 64 * 1024
_SIGNATURE_SUFFIXES = (".sig", ".pem", ".asc")


def find_manifest(assets: list[Asset], asset_name: str) -> Asset | None:
    """Locate a checksum manifest among a release's assets.

    A manifest is any asset whose name contains ``checksum`` or ends
    in ``.sha256``; ``<asset_name>.sha256`` is preferred when present.
    Signatures and certificates for a manifest (``checksums.txt.sig``)
    are not manifests.
    """
    candidates = [
        a for a in assets
        if ("checksum" in a.name.lower() or a.name.lower().endswith(".sha256"))
        and not a.name.lower().endswith(_SIGNATURE_SUFFIXES)
    ]
    for a in candidates:
        if a.name == f"{asset_name}.sha256":
            return a
    # per-asset .sha256 files for other platforms don't describe ours
    for a in candidates:
        if "checksum" in a.name.lower():
            return a
    return None


class Downloader:
    """Fetch assets over HTTPS with progress reporting."""

    def __init__(
        self,
        progress: ProgressCallback | None = None,
        *,
        timeout: int = 180,
    ):
        self._progress = progress
        self._timeout = timeout

    def fetch(self, asset: Asset, destination: Path) -> Path:
        """Download ``asset`` to ``destination``.

        Raises:
            NetworkError: Transport failure, HTTP error, or truncated body.
            StorageError: The destination cannot be written.
        """
        url = asset.download_url
        logger.info("Downloading %s", asset.name)
        request = urllib.request.Request(
            url,
            headers={"User-Agent": USER_AGENT, "Accept": "application/octet-stream"},
        )
        try:
            response = urllib.request.urlopen(request, timeout=self._timeout)
        except urllib.error.HTTPError as e:
            raise NetworkError(url, e.reason or "download failed", status=e.code) from e
        except (urllib.error.URLError, TimeoutError, OSError) as e:
            raise NetworkError(url, str(getattr(e, "reason", None) or e)) from e

        with response:
            total = int(response.headers.get("Content-Length") or asset.size or 0)
            done = self._stream(response, destination, asset, total)

        if total and done < total:
            raise NetworkError(url, f"download truncated at {done} of {total} bytes")

        logger.debug("Downloaded %s (%d bytes) to %s", asset.name, done, destination)
        return destination

    def _stream(self, response, destination: Path, asset: Asset, total: int) -> int:
        try:
            out = destination.open("wb")
        except OSError as e:
            raise StorageError(str(destination), e.strerror or str(e)) from e

        done = 0
        last_logged = -10
        with out:
            while True:
                try:
                    chunk = response.read(_CHUNK)
                except (OSError, http.client.HTTPException) as e:
                    raise NetworkError(asset.download_url, f"connection dropped: {e}") from e
                if not chunk:
                    break
                try:
                    out.write(chunk)
                except OSError as e:
                    raise StorageError(str(destination), e.strerror or str(e)) from e
                done += len(chunk)

                if self._progress is not None:
                    self._progress(asset.name, done, total)
                if total > 0:
                    pct = done * 100 // total
                    if pct >= last_logged + 10:
                        last_logged = pct
                        logger.debug("Download progress %s: %d%%", asset.name, pct)
        return done
