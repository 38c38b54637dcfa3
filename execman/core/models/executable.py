"""
Registry models — the persisted record of every managed executable.

Serialized to ``registry.json`` as::

    {"schema_version": 1,
     "executables": {"<name>": {"source": ..., "version": ..., "installed_at": ...,
                                "path": ..., "platform": ..., "checksum": ...}}}
"""

from __future__ import annotations

from datetime import UTC, datetime
from enum import Enum

from pydantic import BaseModel, Field

REGISTRY_SCHEMA_VERSION = 1


def _now() -> datetime:
    """Current UTC time."""
    return datetime.now(UTC)


class ExecutableRecord(BaseModel):
    """One managed executable, keyed by name in the registry."""

    source: str                     # canonical repository URL, immutable post-install
    version: str                    # release tag
    installed_at: datetime = Field(default_factory=_now)
    path: str                       # absolute install path
    platform: str = ""              # os/arch, e.g. linux/amd64
    checksum: str = ""              # sha256 of the installed binary


class RegistryDocument(BaseModel):
    """Root document of the registry file."""

    schema_version: int = REGISTRY_SCHEMA_VERSION
    executables: dict[str, ExecutableRecord] = Field(default_factory=dict)


class FileStatus(str, Enum):
    """On-disk state of a managed executable relative to its record."""

    OK = "ok"
    MISSING = "missing"
    MODIFIED = "modified"
