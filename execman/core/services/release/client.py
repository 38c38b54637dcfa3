"""
Release client — the GitHub REST API, and nothing else.

Two lookups:

    get_latest(owner, repo, include_prereleases)
    get_by_tag(owner, repo, tag)

Not-found (HTTP 404, or no release passing the prerelease filter)
raises ReleaseNotFoundError; everything else that goes wrong on the
wire raises NetworkError, so callers can tell "retry later" from
"this doesn't exist".
"""

from __future__ import annotations

import json
import logging
import os
import urllib.error
import urllib.parse
import urllib.request
from abc import ABC, abstractmethod
from typing import Any

from execman import __version__
from execman.core.errors import NetworkError, ReleaseNotFoundError
from execman.core.models.release import Asset, ReleaseDescriptor

logger = logging.getLogger(__name__)

DEFAULT_API_URL = "https://api.github.com"
USER_AGENT = f"execman/{__version__} (+https://github.com/sfkleach/execman)"


class ReleaseSource(ABC):
    """Where releases come from. The engines only talk to this."""

    @abstractmethod
    def get_latest(self, owner: str, repo: str, include_prereleases: bool = False) -> ReleaseDescriptor:
        """Most recent release, optionally counting prereleases."""

    @abstractmethod
    def get_by_tag(self, owner: str, repo: str, tag: str) -> ReleaseDescriptor:
        """The release with exactly this tag."""


class GitHubReleaseClient(ReleaseSource):
    """ReleaseSource backed by the GitHub REST API via urllib."""

    def __init__(
        self,
        api_url: str = DEFAULT_API_URL,
        *,
        token: str | None = None,
        timeout: int = 30,
    ):
        self._api_url = api_url.rstrip("/")
        self._token = token if token is not None else os.environ.get("GITHUB_TOKEN", "").strip()
        self._timeout = timeout

    def get_latest(self, owner: str, repo: str, include_prereleases: bool = False) -> ReleaseDescriptor:
        if not include_prereleases:
            # /releases/latest already skips drafts and prereleases
            data = self._get_json(f"/repos/{_q(owner)}/{_q(repo)}/releases/latest", owner, repo)
            return _to_release(data)

        listing = self._get_json(f"/repos/{_q(owner)}/{_q(repo)}/releases?per_page=30", owner, repo)
        if not isinstance(listing, list):
            raise NetworkError(self._api_url, "unexpected response shape for release list")

        # API order is newest first
        for item in listing:
            if isinstance(item, dict) and not item.get("draft", False):
                return _to_release(item)

        raise ReleaseNotFoundError(owner, repo)

    def get_by_tag(self, owner: str, repo: str, tag: str) -> ReleaseDescriptor:
        data = self._get_json(
            f"/repos/{_q(owner)}/{_q(repo)}/releases/tags/{_q(tag)}", owner, repo, tag
        )
        return _to_release(data)

    # ── HTTP ─────────────────────────────────────────────────────

    def _get_json(self, path: str, owner: str, repo: str, tag: str = "") -> Any:
        url = self._api_url + path
        headers = {
            "Accept": "application/vnd.github+json",
            "User-Agent": USER_AGENT,
        }
        if self._token:
            headers["Authorization"] = f"Bearer {self._token}"

        logger.debug("GET %s", url)
        request = urllib.request.Request(url, headers=headers)
        try:
            with urllib.request.urlopen(request, timeout=self._timeout) as resp:
                body = resp.read()
        except urllib.error.HTTPError as e:
            if e.code == 404:
                raise ReleaseNotFoundError(owner, repo, tag) from e
            raise NetworkError(url, e.reason or "request failed", status=e.code) from e
        except (urllib.error.URLError, TimeoutError, OSError) as e:
            reason = getattr(e, "reason", None) or str(e)
            raise NetworkError(url, str(reason)) from e

        try:
            return json.loads(body.decode("utf-8"))
        except (UnicodeDecodeError, json.JSONDecodeError) as e:
            raise NetworkError(url, f"invalid JSON in response: {e}") from e


def _q(segment: str) -> str:
    return urllib.parse.quote(segment, safe="")


def _to_release(data: Any) -> ReleaseDescriptor:
    if not isinstance(data, dict) or "tag_name" not in data:
        raise NetworkError(DEFAULT_API_URL, "release payload has no tag_name")

    assets = [
        Asset(
            name=item["name"],
            download_url=item.get("browser_download_url", ""),
            size=int(item.get("size") or 0),
        )
        for item in data.get("assets") or []
        if isinstance(item, dict) and item.get("name")
    ]
    return ReleaseDescriptor(
        tag=data["tag_name"],
        is_prerelease=bool(data.get("prerelease", False)),
        assets=assets,
    )
