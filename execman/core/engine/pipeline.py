"""
Release pipeline — the stages install and update share.

    SelectAsset → Download → VerifyChecksum (optional) → Extract

all inside a staging area (a private temp directory), followed by
``replace_executable`` which is the only function that touches an
installed path.

The staging area is removed when the operation succeeds and kept when
it fails, so a rejected download can be inspected; the error raised
carries its location as ``artifacts_dir``.
"""

from __future__ import annotations

import logging
import os
import shutil
import tempfile
from collections.abc import Iterator
from contextlib import contextmanager
from dataclasses import dataclass
from pathlib import Path

from execman.core.errors import ExecmanError, StorageError, wrap_os_error
from execman.core.models.release import Asset, PlatformTarget, ReleaseDescriptor
from execman.core.services.artifacts.archive import EXECUTABLE_MODE, extract_binary
from execman.core.services.artifacts.download import Downloader, find_manifest
from execman.core.services.artifacts.integrity import (
    find_expected,
    sha256_file,
    verify_checksum,
)
from execman.core.services.release.assets import select_asset

logger = logging.getLogger(__name__)


@dataclass
class StagedBinary:
    """An extracted, verified binary waiting in the staging area."""

    asset: Asset
    archive_path: Path
    binary_path: Path
    checksum: str          # sha256 of the extracted binary
    verified: bool         # archive matched a manifest entry


@contextmanager
def staging_area(prefix: str = "execman-") -> Iterator[Path]:
    """Temporary directory kept on failure, removed on success."""
    try:
        path = Path(tempfile.mkdtemp(prefix=prefix))
    except OSError as e:
        raise StorageError(tempfile.gettempdir(), f"cannot create staging area: {e}") from e

    try:
        yield path
    except ExecmanError as exc:
        exc.context.setdefault("artifacts_dir", str(path))
        logger.info("Keeping downloaded artifacts in %s", path)
        raise
    except BaseException:
        logger.info("Keeping downloaded artifacts in %s", path)
        raise
    shutil.rmtree(path, ignore_errors=True)


class ReleasePipeline:
    """Turns a release into a staged binary for one platform."""

    def __init__(self, downloader: Downloader, target: PlatformTarget):
        self._downloader = downloader
        self._target = target

    @property
    def target(self) -> PlatformTarget:
        return self._target

    def select(self, release: ReleaseDescriptor, name: str) -> Asset:
        return select_asset(release.assets, name, release.tag, self._target)

    def stage(self, release: ReleaseDescriptor, name: str, work_dir: Path) -> StagedBinary:
        """Download, verify, and extract ``name`` from ``release`` into ``work_dir``.

        Raises:
            NoMatchingAssetError, NetworkError, StorageError,
            ChecksumMismatchError, NoExecutableFoundError, ExtractError
        """
        asset = self.select(release, name)
        logger.info("Selected asset %s for %s", asset.name, self._target)

        archive_path = work_dir / asset.name
        self._downloader.fetch(asset, archive_path)

        verified = self._verify(release, asset, archive_path, work_dir)

        binary_path = work_dir / "extracted" / f"{name}{self._target.exe_suffix}"
        extract_binary(archive_path, binary_path, name)

        return StagedBinary(
            asset=asset,
            archive_path=archive_path,
            binary_path=binary_path,
            checksum=sha256_file(binary_path),
            verified=verified,
        )

    def _verify(
        self,
        release: ReleaseDescriptor,
        asset: Asset,
        archive_path: Path,
        work_dir: Path,
    ) -> bool:
        manifest = find_manifest(release.assets, asset.name)
        if manifest is None:
            logger.info("Release %s has no checksum manifest; skipping verification", release.tag)
            return False

        manifest_path = work_dir / "manifests" / manifest.name
        manifest_path.parent.mkdir(parents=True, exist_ok=True)
        self._downloader.fetch(manifest, manifest_path)

        expected = find_expected(manifest_path, asset.name)
        if expected is None:
            logger.warning("%s has no entry for %s; skipping verification", manifest.name, asset.name)
            return False

        verify_checksum(archive_path, expected)
        logger.info("Checksum verified for %s", asset.name)
        return True


def replace_executable(staged: Path, destination: Path, *, backup: bool = False) -> Path | None:
    """Put ``staged`` at ``destination``: remove the old file, then write the new one.

    This is not an atomic rename. If the removal succeeds and the
    write fails, the executable is left absent and nothing is rolled
    back; the backup (when requested) is the way out, and the raised
    error names it.

    Returns:
        The backup path, if one was made.

    Raises:
        InstallPermissionError | StorageError
    """
    try:
        destination.parent.mkdir(parents=True, exist_ok=True)
    except OSError as e:
        raise wrap_os_error(str(destination.parent), e) from e

    backup_path: Path | None = None
    if backup and destination.exists():
        backup_path = destination.with_name(destination.name + ".backup")
        try:
            shutil.copy2(destination, backup_path)
        except OSError as e:
            raise wrap_os_error(str(backup_path), e) from e
        logger.info("Backed up %s → %s", destination, backup_path)

    try:
        os.remove(destination)
    except FileNotFoundError:
        pass
    except OSError as e:
        raise wrap_os_error(str(destination), e) from e

    try:
        shutil.copyfile(staged, destination)
        os.chmod(destination, EXECUTABLE_MODE)
    except OSError as e:
        logger.error("Removed %s but could not write its replacement: %s", destination, e)
        raise StorageError(
            str(destination),
            f"{e.strerror or e}; the previous executable was already removed",
            backup=str(backup_path) if backup_path else None,
        ) from e

    logger.debug("Placed %s", destination)
    return backup_path
