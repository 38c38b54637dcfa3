"""
Update use case — move a managed executable to its latest release.

Per executable::

    LoadRecord → (InspectSymlink → DecideSymlink) → FetchLatest →
    Compare/Confirm → (Backup) → SelectAsset → Download → VerifyChecksum →
    Extract → PlaceFile → ComputeInstalledChecksum → CommitRegistry

A recorded path that no longer exists switches to the reinstall
sub-flow, where the operator picks the recorded or the latest version.
Batch updates run the same flow for every managed name, in sorted
order, and a failure on one name never stops the rest.
"""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass, field
from datetime import UTC, datetime
from enum import Enum
from pathlib import Path
from typing import Any

from execman.core.engine.pipeline import replace_executable, staging_area
from execman.core.errors import ExecmanError, NotManagedError, wrap_os_error
from execman.core.models.executable import ExecutableRecord
from execman.core.models.release import ReleaseDescriptor
from execman.core.services import symlink
from execman.core.services.artifacts.integrity import sha256_file
from execman.core.services.release.source import SourceRef, parse_source
from execman.core.services.symlink import SymlinkDecision, SymlinkInfo
from execman.core.use_cases._base import EngineBase

logger = logging.getLogger(__name__)


class UpdateOutcome(str, Enum):
    UPDATED = "updated"
    REINSTALLED = "reinstalled"
    UP_TO_DATE = "up_to_date"
    CANCELLED = "cancelled"


@dataclass
class UpdateRequest:
    name: str
    assume_yes: bool = False
    include_prereleases: bool = False
    backup: bool | None = None        # None → ask (never asked with assume_yes)


@dataclass
class UpdateResult:
    """Outcome of updating one executable."""

    name: str
    outcome: UpdateOutcome
    from_version: str = ""
    to_version: str = ""
    record: ExecutableRecord | None = None
    backup_path: Path | None = None

    def to_dict(self) -> dict[str, Any]:
        result: dict[str, Any] = {
            "name": self.name,
            "outcome": self.outcome.value,
            "from_version": self.from_version,
            "to_version": self.to_version,
        }
        if self.record is not None:
            result["record"] = self.record.model_dump(mode="json")
        if self.backup_path is not None:
            result["backup"] = str(self.backup_path)
        return result


@dataclass
class BatchReport:
    """Tally of an update-all run."""

    results: list[UpdateResult] = field(default_factory=list)
    failures: dict[str, Exception] = field(default_factory=dict)

    def _count(self, *outcomes: UpdateOutcome) -> int:
        return sum(1 for r in self.results if r.outcome in outcomes)

    @property
    def updated(self) -> int:
        return self._count(UpdateOutcome.UPDATED, UpdateOutcome.REINSTALLED)

    @property
    def up_to_date(self) -> int:
        return self._count(UpdateOutcome.UP_TO_DATE)

    @property
    def cancelled(self) -> int:
        return self._count(UpdateOutcome.CANCELLED)

    @property
    def failed(self) -> int:
        return len(self.failures)

    @property
    def summary(self) -> str:
        return (
            f"{self.updated} updated, {self.up_to_date} already up to date, "
            f"{self.cancelled} cancelled, {self.failed} failed."
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "updated": self.updated,
            "up_to_date": self.up_to_date,
            "cancelled": self.cancelled,
            "failed": self.failed,
            "results": [r.to_dict() for r in self.results],
            "failures": {
                name: (e.to_dict() if isinstance(e, ExecmanError) else {"error": str(e)})
                for name, e in self.failures.items()
            },
        }


class UpdateEngine(EngineBase):
    """Updates managed executables in place."""

    def update(self, request: UpdateRequest) -> UpdateResult:
        """Update one managed executable.

        Raises:
            NotManagedError: ``request.name`` has no registry record.
            SymlinkAmbiguityError: The path is a symlink and
                ``assume_yes`` is set.
            ExecmanError: Any pipeline failure.
        """
        record = self._registry.get(request.name)
        if record is None:
            raise NotManagedError(request.name)

        try:
            result = self._update(request, record)
        except ExecmanError as e:
            self._record_audit(
                "update",
                request.name,
                record.source,
                status="failed",
                from_version=record.version,
                errors=[e.message],
            )
            raise

        if result.outcome is UpdateOutcome.CANCELLED:
            self._record_audit("update", request.name, record.source, status="cancelled")
        return result

    def update_all(
        self,
        *,
        assume_yes: bool = False,
        include_prereleases: bool = False,
        backup: bool | None = None,
    ) -> BatchReport:
        """Update every managed executable, in sorted name order.

        Failures are collected per name; nothing raised by one item
        stops the batch.
        """
        report = BatchReport()
        names = sorted(self._registry.list())
        if not names:
            self._decisions.notify("No managed executables to update.")
            return report

        for name in names:
            self._decisions.notify(f"Updating {name}...")
            request = UpdateRequest(
                name,
                assume_yes=assume_yes,
                include_prereleases=include_prereleases,
                backup=backup,
            )
            try:
                report.results.append(self.update(request))
            except (ExecmanError, OSError) as e:
                logger.error("Failed to update %s: %s", name, e)
                self._decisions.notify(f"Failed to update {name}: {e}")
                report.failures[name] = e

        self._decisions.notify(report.summary)
        return report

    # ── Single item ──────────────────────────────────────────────

    def _update(self, request: UpdateRequest, record: ExecutableRecord) -> UpdateResult:
        name = request.name
        missing = not os.path.exists(record.path)
        info = SymlinkInfo(path=record.path)
        decision = SymlinkDecision.REPLACE_SYMLINK

        if not missing:
            info = symlink.inspect(record.path)
            if info.is_symlink:
                decision = symlink.decide(
                    info, interactive=not request.assume_yes, decisions=self._decisions
                )
                if decision is SymlinkDecision.CANCEL:
                    self._decisions.notify("Update cancelled.")
                    return UpdateResult(name, UpdateOutcome.CANCELLED, record.version)
        effective = Path(symlink.effective_path(info, decision))

        ref = parse_source(record.source)
        include_pre = request.include_prereleases or self._config.include_prereleases
        logger.info("Checking for updates from %s", ref.slug)
        release = self._releases.get_latest(ref.owner, ref.repo, include_pre)

        if missing:
            release = self._choose_reinstall(request, record, ref, release)
            if release is None:
                self._decisions.notify("Reinstall cancelled.")
                return UpdateResult(name, UpdateOutcome.CANCELLED, record.version)
            outcome = UpdateOutcome.REINSTALLED
        else:
            if record.version == release.tag:
                self._decisions.notify(f"{name} is already up to date ({record.version}).")
                return UpdateResult(
                    name, UpdateOutcome.UP_TO_DATE, record.version, record.version, record
                )
            self._decisions.notify(f"Current version: {record.version}")
            self._decisions.notify(f"Latest version:  {release.tag}")
            if not request.assume_yes and not self._decisions.confirm(
                f"Update {name} to {release.tag}? [y/N]:"
            ):
                self._decisions.notify("Update cancelled.")
                return UpdateResult(name, UpdateOutcome.CANCELLED, record.version)
            outcome = UpdateOutcome.UPDATED

        backup = self._want_backup(request, missing)

        with staging_area(prefix="execman-update-") as work_dir:
            staged = self._pipeline.stage(release, name, work_dir)
            backup_path = replace_executable(staged.binary_path, effective, backup=backup)
            try:
                checksum = sha256_file(effective)
            except OSError as e:
                raise wrap_os_error(str(effective), e) from e

            updated = record.model_copy(
                update={
                    "version": release.tag,
                    "checksum": checksum,
                    "installed_at": datetime.now(UTC),
                    "platform": str(self.target),
                }
            )
            if info.is_symlink and decision is SymlinkDecision.REPLACE_SYMLINK:
                updated.path = str(effective)
            self._commit(name, updated, previous=record)

        logger.info("Updated %s %s → %s at %s", name, record.version, release.tag, effective)
        self._decisions.notify(f"Successfully updated {name} to {release.tag}")
        self._record_audit(
            "update",
            name,
            record.source,
            status="ok",
            from_version=record.version,
            to_version=release.tag,
            path=str(effective),
            checksum=checksum,
            verified=staged.verified,
            context={"backup": str(backup_path)} if backup_path else {},
        )
        return UpdateResult(
            name,
            outcome,
            from_version=record.version,
            to_version=release.tag,
            record=updated,
            backup_path=backup_path,
        )

    def _choose_reinstall(
        self,
        request: UpdateRequest,
        record: ExecutableRecord,
        ref: SourceRef,
        latest: ReleaseDescriptor,
    ) -> ReleaseDescriptor | None:
        """Pick the release to reinstall a missing executable from, or None."""
        name = request.name
        logger.warning("%s is missing at %s", name, record.path)
        self._decisions.notify(f"Executable file is MISSING at {record.path}")
        self._decisions.notify(f"Recorded version:  {record.version}")
        self._decisions.notify(f"Latest version:    {latest.tag}")

        if request.assume_yes:
            return latest

        if record.version == latest.tag:
            if self._decisions.confirm(f"Reinstall {name} {record.version}? [y/N]:"):
                return latest
            return None

        answer = self._decisions.ask(
            f"Install {name}? [r]ecorded {record.version} / [l]atest {latest.tag} / [N]o:"
        ).strip().lower()
        if answer in ("r", "recorded"):
            return self._releases.get_by_tag(ref.owner, ref.repo, record.version)
        if answer in ("l", "latest"):
            return latest
        return None

    def _want_backup(self, request: UpdateRequest, missing: bool) -> bool:
        if missing:
            return False
        if request.backup is not None:
            return request.backup
        if request.assume_yes:
            return False
        return self._decisions.confirm("Create backup of current executable? [y/N]:")
