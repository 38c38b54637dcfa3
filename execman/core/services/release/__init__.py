"""
Release services — source parsing, release lookup, asset selection.

    from execman.core.services.release import parse_source, GitHubReleaseClient, select_asset
"""

from execman.core.services.release.assets import select_asset  # noqa: F401
from execman.core.services.release.client import (  # noqa: F401
    GitHubReleaseClient,
    ReleaseSource,
)
from execman.core.services.release.source import SourceRef, parse_source, to_url  # noqa: F401
