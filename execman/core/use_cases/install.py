"""
Install use case — source reference in, registered executable out.

State machine (each state runs only if the previous succeeded)::

    ResolveSource → FetchRelease → (ConfirmDuplicate) → ConfirmInstall →
    SelectAsset → Download → VerifyChecksum → Extract → PlaceFile →
    ComputeInstalledChecksum → CommitRegistry

Any failure before PlaceFile leaves the filesystem and the registry
untouched. The registry is written once, at the end.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import UTC, datetime
from enum import Enum
from pathlib import Path
from typing import Any

from execman.core.engine.pipeline import replace_executable, staging_area
from execman.core.errors import ExecmanError, NameConflictError, wrap_os_error
from execman.core.models.executable import ExecutableRecord
from execman.core.models.release import ReleaseDescriptor
from execman.core.services.artifacts.integrity import sha256_file
from execman.core.services.release.source import SourceRef, parse_source
from execman.core.use_cases._base import EngineBase

logger = logging.getLogger(__name__)


class InstallStatus(str, Enum):
    INSTALLED = "installed"
    CANCELLED = "cancelled"


@dataclass
class InstallRequest:
    """What the caller asks for."""

    source: str
    target_dir: Path | None = None        # None → configured default
    assume_yes: bool = False
    include_prereleases: bool = False


@dataclass
class InstallResult:
    """Outcome of one install."""

    status: InstallStatus
    name: str
    version: str = ""
    record: ExecutableRecord | None = None
    asset: str = ""
    verified: bool = False

    def to_dict(self) -> dict[str, Any]:
        result: dict[str, Any] = {
            "status": self.status.value,
            "name": self.name,
            "version": self.version,
        }
        if self.record is not None:
            result["record"] = self.record.model_dump(mode="json")
            result["asset"] = self.asset
            result["checksum_verified"] = self.verified
        return result


class InstallEngine(EngineBase):
    """Installs executables from release assets."""

    def install(self, request: InstallRequest) -> InstallResult:
        """Run the install pipeline.

        Returns:
            INSTALLED with the committed record, or CANCELLED if the
            operator declined a confirmation.

        Raises:
            ExecmanError: Any pipeline failure; see ``execman.core.errors``.
        """
        ref = parse_source(request.source)
        try:
            result = self._install(ref, request)
        except ExecmanError as e:
            self._record_audit(
                "install", ref.name, ref.url, status="failed", errors=[e.message]
            )
            raise

        if result.status is InstallStatus.CANCELLED:
            self._record_audit("install", ref.name, ref.url, status="cancelled")
        return result

    def _install(self, ref: SourceRef, request: InstallRequest) -> InstallResult:
        include_pre = request.include_prereleases or self._config.include_prereleases
        target_dir = (
            Path(request.target_dir).expanduser().resolve()
            if request.target_dir
            else self._config.install_dir
        )

        release = self._fetch_release(ref, include_pre)
        version = release.tag
        name = ref.name

        existing = self._registry.get(name)
        if existing is not None and existing.source != ref.url:
            raise NameConflictError(name, existing.source, ref.url)

        if existing is not None and existing.version == version:
            logger.warning("%s %s is already installed at %s", name, version, existing.path)
            if not request.assume_yes:
                self._decisions.notify(
                    f"Warning: {name} version {version} is already installed at {existing.path}"
                )
                if not self._decisions.confirm("Reinstall? [y/N]:"):
                    self._decisions.notify("Installation cancelled.")
                    return InstallResult(InstallStatus.CANCELLED, name, version)

        target_path = target_dir / f"{name}{self.target.exe_suffix}"

        if not request.assume_yes:
            self._decisions.notify("Installation Details:")
            self._decisions.notify(f"  Repository: {ref.url}")
            self._decisions.notify(f"  Version:    {version}")
            self._decisions.notify(f"  Platform:   {self.target}")
            self._decisions.notify(f"  Target:     {target_path}")
            if not self._decisions.confirm("Proceed with installation? [Y/n]:", default=True):
                self._decisions.notify("Installation cancelled.")
                return InstallResult(InstallStatus.CANCELLED, name, version)

        with staging_area(prefix="execman-install-") as work_dir:
            staged = self._pipeline.stage(release, name, work_dir)

            replace_executable(staged.binary_path, target_path)
            try:
                checksum = sha256_file(target_path)
            except OSError as e:
                raise wrap_os_error(str(target_path), e) from e

            record = ExecutableRecord(
                source=ref.url,
                version=version,
                installed_at=datetime.now(UTC),
                path=str(target_path),
                platform=str(self.target),
                checksum=checksum,
            )
            self._commit(name, record, previous=existing)

        logger.info("Installed %s %s to %s", name, version, target_path)
        self._record_audit(
            "install",
            ref.name,
            ref.url,
            status="ok",
            to_version=version,
            from_version=existing.version if existing else None,
            path=str(target_path),
            checksum=checksum,
            verified=staged.verified,
        )
        return InstallResult(
            InstallStatus.INSTALLED,
            name,
            version,
            record=record,
            asset=staged.asset.name,
            verified=staged.verified,
        )

    def _fetch_release(self, ref: SourceRef, include_prereleases: bool) -> ReleaseDescriptor:
        if ref.version:
            logger.info("Fetching release %s from %s", ref.version, ref.slug)
            return self._releases.get_by_tag(ref.owner, ref.repo, ref.version)
        logger.info("Fetching latest release from %s", ref.slug)
        return self._releases.get_latest(ref.owner, ref.repo, include_prereleases)

