"""
Artifact services — download, integrity, extraction.

These functions WRITE to local storage, always inside the caller's
staging area; none of them touch an installed executable.
"""

from execman.core.services.artifacts.archive import extract_binary  # noqa: F401
from execman.core.services.artifacts.download import Downloader, find_manifest  # noqa: F401
from execman.core.services.artifacts.integrity import (  # noqa: F401
    find_expected,
    sha256_file,
    verify_checksum,
)
