"""
Check use case — report file integrity and available updates.

Read-only: nothing is downloaded except release metadata and nothing
is written.
"""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass, field

from execman.core.errors import ExecmanError, NotManagedError
from execman.core.models.executable import FileStatus
from execman.core.persistence.registry_file import Registry
from execman.core.services.artifacts.integrity import sha256_file
from execman.core.services.release.client import ReleaseSource
from execman.core.services.release.source import parse_source

logger = logging.getLogger(__name__)


@dataclass
class CheckEntry:
    """Status of one managed executable."""

    name: str
    current_version: str
    status: FileStatus = FileStatus.OK
    latest_version: str = ""
    update_available: bool = False
    verified: bool = False
    error: str | None = None

    def to_dict(self) -> dict:
        result: dict = {
            "name": self.name,
            "current_version": self.current_version,
            "status": self.status.value,
            "update_available": self.update_available,
        }
        if self.latest_version:
            result["latest_version"] = self.latest_version
        if self.error:
            result["error"] = self.error
        return result


@dataclass
class CheckReport:
    """Aggregated check results."""

    entries: list[CheckEntry] = field(default_factory=list)

    @property
    def updates_available(self) -> int:
        return sum(1 for e in self.entries if e.update_available)

    @property
    def up_to_date(self) -> int:
        return sum(
            1 for e in self.entries
            if e.status is FileStatus.OK and not e.error and not e.update_available
        )

    @property
    def missing(self) -> int:
        return sum(1 for e in self.entries if e.status is FileStatus.MISSING)

    @property
    def modified(self) -> int:
        return sum(1 for e in self.entries if e.status is FileStatus.MODIFIED)

    @property
    def errors(self) -> int:
        return sum(1 for e in self.entries if e.error)

    def to_dict(self) -> dict:
        """Convert to a JSON-serializable dictionary."""
        return {
            "executables": [e.to_dict() for e in self.entries],
            "updates_available": self.updates_available,
            "missing": self.missing,
            "modified": self.modified,
        }


def check_executables(
    registry: Registry,
    releases: ReleaseSource,
    names: list[str] | None = None,
    *,
    include_prereleases: bool = False,
    verify: bool = False,
) -> CheckReport:
    """Check managed executables against their files and latest releases.

    Args:
        names: Names to check; all managed names when empty or None.
        verify: Also compare each file's SHA-256 with the recorded one.

    Raises:
        NotManagedError: A requested name has no registry record.
    """
    if names:
        for name in names:
            if name not in registry:
                raise NotManagedError(name)
        selected = sorted(names)
    else:
        selected = sorted(registry.list())

    report = CheckReport()
    for name in selected:
        record = registry.get(name)
        if record is None:
            continue
        entry = CheckEntry(name=name, current_version=record.version)
        report.entries.append(entry)

        if not os.path.exists(record.path):
            entry.status = FileStatus.MISSING
            continue

        if verify:
            try:
                actual = sha256_file(record.path)
            except OSError as e:
                logger.warning("Cannot read %s for verification: %s", record.path, e)
                entry.error = f"cannot verify {record.path}: {e.strerror or e}"
                continue
            if actual != record.checksum:
                entry.status = FileStatus.MODIFIED
                continue
            entry.verified = True

        try:
            ref = parse_source(record.source)
            release = releases.get_latest(ref.owner, ref.repo, include_prereleases)
        except ExecmanError as e:
            logger.warning("Update check failed for %s: %s", name, e.message)
            entry.error = e.message
            continue

        entry.latest_version = release.tag
        entry.update_available = release.tag != record.version

    return report
