"""
Remove and forget use cases — stop managing an executable.

``remove`` deletes the file and the record; ``forget`` drops only the
record and leaves the file where it is.
"""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass

from execman.adapters.base import DecisionProvider
from execman.core.errors import NotManagedError, wrap_os_error
from execman.core.persistence.audit import AuditEntry, AuditWriter
from execman.core.persistence.registry_file import Registry
from execman.core.services import symlink
from execman.core.services.symlink import SymlinkDecision

logger = logging.getLogger(__name__)


@dataclass
class RemoveResult:
    name: str
    removed: bool                 # False when the operator cancelled
    path: str = ""                # file deleted (or that would have been)
    file_missing: bool = False

    def to_dict(self) -> dict:
        return {
            "name": self.name,
            "removed": self.removed,
            "path": self.path,
            "file_missing": self.file_missing,
        }


def remove_executable(
    registry: Registry,
    name: str,
    *,
    assume_yes: bool = False,
    decisions: DecisionProvider,
    audit: AuditWriter | None = None,
) -> RemoveResult:
    """Delete a managed executable and drop its record.

    When the path is a symlink the operator chooses whether the link's
    target or the link itself goes; with ``assume_yes`` that is an
    error instead. A file already gone is only a warning.

    Raises:
        NotManagedError: ``name`` has no record.
        SymlinkAmbiguityError: Symlink and ``assume_yes``.
        InstallPermissionError | StorageError: The file can't be deleted.
        RegistryIOError: The registry can't be saved.
    """
    record = registry.get(name)
    if record is None:
        raise NotManagedError(name)

    info = symlink.inspect(record.path)
    decision = SymlinkDecision.REPLACE_SYMLINK
    if info.is_symlink:
        decision = symlink.decide(info, interactive=not assume_yes, decisions=decisions)
        if decision is SymlinkDecision.CANCEL:
            decisions.notify("Removal cancelled.")
            return RemoveResult(name, removed=False, path=record.path)
    effective = symlink.effective_path(info, decision)

    if not assume_yes:
        decisions.notify(f"Remove {name}?")
        decisions.notify(f"  Source:       {record.source}")
        decisions.notify(f"  Version:      {record.version}")
        decisions.notify(f"  Path:         {record.path}")
        if info.is_symlink:
            decisions.notify(f"  Symlink to:   {info.target}")
            decisions.notify(f"  Will remove:  {effective}")
        decisions.notify(f"  Installed:    {record.installed_at:%Y-%m-%d}")
        if not decisions.confirm(
            "This will delete the executable file and remove it from management. "
            "Continue? [y/N]:"
        ):
            decisions.notify("Removal cancelled.")
            return RemoveResult(name, removed=False, path=effective)

    file_missing = False
    try:
        os.remove(effective)
    except FileNotFoundError:
        file_missing = True
        logger.warning("Executable file not found at %s", effective)
        decisions.notify(f"Warning: executable file not found at {effective}")
    except OSError as e:
        raise wrap_os_error(effective, e) from e

    if info.is_symlink and decision is SymlinkDecision.REPLACE_TARGET:
        # the link now dangles
        try:
            os.remove(info.path)
        except FileNotFoundError:
            pass
        except OSError as e:
            logger.warning("Failed to remove symlink at %s: %s", info.path, e)
            decisions.notify(f"Warning: failed to remove symlink at {info.path}: {e}")

    registry.remove(name)
    registry.save()
    logger.info("Removed %s (%s)", name, effective)

    if audit is not None:
        audit.write(AuditEntry(
            operation="remove",
            name=name,
            source=record.source,
            from_version=record.version,
            path=effective,
            status="ok",
        ))
    return RemoveResult(name, removed=True, path=effective, file_missing=file_missing)


def forget_executable(
    registry: Registry,
    name: str,
    *,
    assume_yes: bool = False,
    decisions: DecisionProvider,
    audit: AuditWriter | None = None,
) -> RemoveResult:
    """Drop ``name`` from the registry without touching its file.

    Raises:
        NotManagedError: ``name`` has no record.
        RegistryIOError: The registry can't be saved.
    """
    record = registry.get(name)
    if record is None:
        raise NotManagedError(name)

    if not assume_yes:
        decisions.notify(f"Forget {name}?")
        decisions.notify(f"  Source:   {record.source}")
        decisions.notify(f"  Version:  {record.version}")
        decisions.notify(f"  Path:     {record.path}")
        if not decisions.confirm(
            "The file will be kept but no longer managed. Continue? [y/N]:"
        ):
            decisions.notify("Forget cancelled.")
            return RemoveResult(name, removed=False, path=record.path)

    registry.remove(name)
    registry.save()
    logger.info("Forgot %s; %s left in place", name, record.path)

    if audit is not None:
        audit.write(AuditEntry(
            operation="forget",
            name=name,
            source=record.source,
            from_version=record.version,
            path=record.path,
            status="ok",
        ))
    return RemoveResult(name, removed=True, path=record.path)
