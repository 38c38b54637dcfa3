"""
Integrity — SHA-256 digests and checksum manifests.

Manifest format (as produced by ``sha256sum`` and GoReleaser)::

    <hex-digest>  <filename>
    <hex-digest> *<filename>      (binary-mode marker, tolerated)

Entries are matched by exact filename.
"""

from __future__ import annotations

import hashlib
import logging
from pathlib import Path

from execman.core.errors import ChecksumMismatchError

logger = logging.getLogger(__name__)

_CHUNK = 1024 * 1024


def sha256_file(path: Path | str) -> str:
    """Hex-encoded SHA-256 of the file at ``path``."""
    h = hashlib.sha256()
    with open(path, "rb") as fh:
        for chunk in iter(lambda: fh.read(_CHUNK), b""):
            h.update(chunk)
    return h.hexdigest()


def parse_manifest(text: str) -> dict[str, str]:
    """Map filename -> lower-cased digest. Blank and ``#`` lines are skipped."""
    out: dict[str, str] = {}
    for line in text.splitlines():
        line = line.strip()
        if not line or line.startswith("#"):
            continue
        parts = line.split(None, 1)
        if len(parts) != 2:
            continue
        digest, filename = parts
        out[filename.strip().lstrip("*")] = digest.lower()
    return out


def find_expected(manifest_path: Path, asset_name: str) -> str | None:
    """Expected digest for ``asset_name``, or None if the manifest has no entry.

    A manifest named ``<asset_name>.sha256`` holding just a digest
    applies to that asset.
    """
    text = manifest_path.read_text(encoding="utf-8", errors="replace")
    entries = parse_manifest(text)
    if asset_name in entries:
        return entries[asset_name]

    if manifest_path.name == f"{asset_name}.sha256":
        tokens = text.split()
        if len(tokens) == 1:
            return tokens[0].lower()

    return None


def verify_checksum(path: Path, expected: str) -> str:
    """Check ``path`` against ``expected``.

    Returns:
        The computed digest.

    Raises:
        ChecksumMismatchError: If the digests differ. The file is left
            in place for inspection.
    """
    actual = sha256_file(path)
    if actual.lower() != expected.lower():
        logger.warning("Checksum mismatch for %s: expected %s, got %s", path, expected, actual)
        raise ChecksumMismatchError(str(path), expected.lower(), actual)
    logger.debug("Checksum verified for %s", path)
    return actual
