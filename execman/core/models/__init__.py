"""
Domain models — Pydantic types for execman.

    from execman.core.models import ExecutableRecord, ReleaseDescriptor, PlatformTarget
"""

from execman.core.models.executable import (
    REGISTRY_SCHEMA_VERSION,
    ExecutableRecord,
    FileStatus,
    RegistryDocument,
)
from execman.core.models.release import Asset, PlatformTarget, ReleaseDescriptor

__all__ = [
    # executable.py
    "ExecutableRecord",
    "FileStatus",
    "REGISTRY_SCHEMA_VERSION",
    "RegistryDocument",
    # release.py
    "Asset",
    "PlatformTarget",
    "ReleaseDescriptor",
]
