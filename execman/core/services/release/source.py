"""
Source references — ``host/owner/repo[@version]`` to a structured identity.

Accepted forms::

    github.com/owner/repo
    github.com/owner/repo@v1.2.3
    https://github.com/owner/repo        (the canonical form stored in the registry)
    owner/repo                           (host defaults to github.com)
"""

from __future__ import annotations

import re
from dataclasses import dataclass

from execman.core.errors import MalformedSourceError

DEFAULT_HOST = "github.com"

_SEGMENT_RE = re.compile(r"^[A-Za-z0-9._-]+$")


@dataclass(frozen=True)
class SourceRef:
    host: str
    owner: str
    repo: str
    version: str = ""

    @property
    def url(self) -> str:
        return to_url(self.owner, self.repo, host=self.host)

    @property
    def name(self) -> str:
        """The executable name derived from the repository."""
        return self.repo

    @property
    def slug(self) -> str:
        return f"{self.owner}/{self.repo}"


def to_url(owner: str, repo: str, *, host: str = DEFAULT_HOST) -> str:
    """Canonical repository URL."""
    return f"https://{host}/{owner}/{repo}"


def parse_source(text: str) -> SourceRef:
    """Parse a source reference.

    Raises:
        MalformedSourceError: If owner and repo cannot be extracted, or
            the host is not the supported release host.
    """
    original = text
    text = text.strip()
    if not text:
        raise MalformedSourceError(original, "empty source")

    version = ""
    if "@" in text:
        text, version = text.rsplit("@", 1)
        version = version.strip()
        if not version:
            raise MalformedSourceError(original, "empty version after '@'")

    for scheme in ("https://", "http://"):
        if text.lower().startswith(scheme):
            text = text[len(scheme):]
            break

    parts = [p for p in text.split("/") if p]
    if len(parts) == 2:
        host, owner, repo = DEFAULT_HOST, parts[0], parts[1]
    elif len(parts) == 3:
        host, owner, repo = parts[0].lower(), parts[1], parts[2]
    else:
        raise MalformedSourceError(original)

    if repo.endswith(".git"):
        repo = repo[: -len(".git")]

    if host != DEFAULT_HOST:
        raise MalformedSourceError(original, f"unsupported host '{host}' (only {DEFAULT_HOST})")

    for segment in (owner, repo):
        if not _SEGMENT_RE.match(segment) or segment in (".", ".."):
            raise MalformedSourceError(original, f"invalid owner/repo segment '{segment}'")

    return SourceRef(host=host, owner=owner, repo=repo, version=version)
