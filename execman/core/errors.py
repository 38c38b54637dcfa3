"""
Error taxonomy — the closed set of failures the engine can raise.

Every error carries a ``kind`` from :class:`ErrorKind` and a ``context``
dict of structured fields (paths, asset lists, digests) so callers can
branch on the kind and render the details without parsing messages.
"""

from __future__ import annotations

from enum import Enum
from typing import Any


class ErrorKind(str, Enum):
    """Closed set of engine failure kinds."""

    MALFORMED_SOURCE = "malformed_source"
    RELEASE_NOT_FOUND = "release_not_found"
    NETWORK = "network"
    NO_MATCHING_ASSET = "no_matching_asset"
    CHECKSUM_MISMATCH = "checksum_mismatch"
    NO_EXECUTABLE_FOUND = "no_executable_found"
    EXTRACT = "extract"
    SYMLINK_AMBIGUITY = "symlink_ambiguity"
    PERMISSION = "permission"
    REGISTRY_IO = "registry_io"
    STORAGE = "storage"
    NOT_MANAGED = "not_managed"
    NAME_CONFLICT = "name_conflict"
    CONFIG = "config"


class ExecmanError(Exception):
    """Base class for every error the engine surfaces to its caller."""

    kind: ErrorKind

    def __init__(self, message: str, **context: Any) -> None:
        super().__init__(message)
        self.message = message
        self.context: dict[str, Any] = context

    def to_dict(self) -> dict[str, Any]:
        """Convert to a JSON-serializable dictionary."""
        return {"error": self.message, "kind": self.kind.value, **self.context}


class MalformedSourceError(ExecmanError):
    kind = ErrorKind.MALFORMED_SOURCE

    def __init__(self, source: str, reason: str = "expected host/owner/repo[@version]") -> None:
        super().__init__(f"Invalid source '{source}': {reason}", source=source)


class ReleaseNotFoundError(ExecmanError):
    kind = ErrorKind.RELEASE_NOT_FOUND

    def __init__(self, owner: str, repo: str, version: str = "") -> None:
        what = f"release {version}" if version else "a release"
        super().__init__(
            f"Could not find {what} for {owner}/{repo}",
            owner=owner,
            repo=repo,
            version=version,
        )


class NetworkError(ExecmanError):
    kind = ErrorKind.NETWORK

    def __init__(self, url: str, reason: str, status: int | None = None) -> None:
        detail = f"HTTP {status}: {reason}" if status else reason
        super().__init__(f"Request to {url} failed ({detail})", url=url, status=status)


class NoMatchingAssetError(ExecmanError):
    """No asset (or more than one) fits the current platform."""

    kind = ErrorKind.NO_MATCHING_ASSET

    def __init__(
        self,
        platform: str,
        available: list[str],
        ambiguous: list[str] | None = None,
    ) -> None:
        if ambiguous:
            message = f"Ambiguous assets for {platform}: {', '.join(ambiguous)}"
        else:
            message = f"No matching asset found for {platform}"
        super().__init__(
            message,
            platform=platform,
            available=list(available),
            ambiguous=list(ambiguous or []),
        )

    @property
    def available(self) -> list[str]:
        return self.context["available"]


class ChecksumMismatchError(ExecmanError):
    kind = ErrorKind.CHECKSUM_MISMATCH

    def __init__(self, path: str, expected: str, actual: str) -> None:
        super().__init__(
            f"Checksum verification failed for {path}: expected {expected}, got {actual}",
            path=path,
            expected=expected,
            actual=actual,
        )


class NoExecutableFoundError(ExecmanError):
    kind = ErrorKind.NO_EXECUTABLE_FOUND

    def __init__(self, archive: str, candidates: list[str]) -> None:
        if candidates:
            message = f"Cannot pick the executable in {archive}; candidates: {', '.join(candidates)}"
        else:
            message = f"No executable found in {archive}"
        super().__init__(message, archive=archive, candidates=list(candidates))


class ExtractError(ExecmanError):
    kind = ErrorKind.EXTRACT

    def __init__(self, archive: str, reason: str) -> None:
        super().__init__(f"Failed to extract {archive}: {reason}", archive=archive)


class SymlinkAmbiguityError(ExecmanError):
    kind = ErrorKind.SYMLINK_AMBIGUITY

    def __init__(self, path: str, target: str) -> None:
        super().__init__(
            f"{path} is a symlink to {target}. "
            "Cannot proceed in non-interactive mode. "
            "Run without --yes to choose how to handle symlinks.",
            path=path,
            target=target,
        )


class InstallPermissionError(ExecmanError):
    kind = ErrorKind.PERMISSION

    def __init__(self, path: str, reason: str) -> None:
        super().__init__(f"Permission denied for {path}: {reason}", path=path)


class RegistryIOError(ExecmanError):
    kind = ErrorKind.REGISTRY_IO

    def __init__(self, path: str, reason: str) -> None:
        super().__init__(f"Registry {path}: {reason}", path=path)


class StorageError(ExecmanError):
    """A local file could not be written, copied, or removed."""

    kind = ErrorKind.STORAGE

    def __init__(self, path: str, reason: str, **context: Any) -> None:
        super().__init__(f"Cannot write {path}: {reason}", path=path, **context)


class NotManagedError(ExecmanError):
    kind = ErrorKind.NOT_MANAGED

    def __init__(self, name: str) -> None:
        super().__init__(f"Executable '{name}' is not managed by execman", name=name)


class NameConflictError(ExecmanError):
    kind = ErrorKind.NAME_CONFLICT

    def __init__(self, name: str, recorded_source: str, requested_source: str) -> None:
        super().__init__(
            f"'{name}' is already managed from {recorded_source}; "
            f"refusing to replace it with {requested_source}",
            name=name,
            recorded_source=recorded_source,
            requested_source=requested_source,
        )


class ConfigError(ExecmanError):
    """Raised when the configuration file is invalid."""

    kind = ErrorKind.CONFIG

    def __init__(self, message: str, path: str | None = None) -> None:
        super().__init__(message, path=path)


def wrap_os_error(path: str, exc: OSError) -> ExecmanError:
    """Translate a filesystem error into the engine taxonomy."""
    if isinstance(exc, PermissionError):
        return InstallPermissionError(path, exc.strerror or str(exc))
    return StorageError(path, exc.strerror or str(exc))
