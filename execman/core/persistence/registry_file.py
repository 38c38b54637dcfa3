"""
Registry — the durable mapping of managed executables.

The registry is the sole source of truth for what is installed. It is
loaded at the start of a command, mutated in memory, and saved
atomically at the end of a successful mutating operation.

Unlike disposable state, a corrupt registry is never silently reset:
losing it would orphan every managed executable, so load failures
raise :class:`RegistryIOError`.
"""

from __future__ import annotations

import json
import logging
from pathlib import Path

from pydantic import ValidationError

from execman.core.errors import RegistryIOError
from execman.core.models.executable import (
    REGISTRY_SCHEMA_VERSION,
    ExecutableRecord,
    RegistryDocument,
)
from execman.core.persistence.atomic import atomic_write_text

logger = logging.getLogger(__name__)

DEFAULT_REGISTRY_FILE = "registry.json"


class Registry:
    """In-memory registry bound to its backing file.

    Records handed out by :meth:`get` are copies: callers mutate the
    copy and commit it back with :meth:`add`, or drop it on failure.
    """

    def __init__(self, path: Path, document: RegistryDocument | None = None):
        self._path = path
        self._doc = document or RegistryDocument()

    @property
    def path(self) -> Path:
        return self._path

    @property
    def schema_version(self) -> int:
        return self._doc.schema_version

    @classmethod
    def load(cls, path: Path) -> Registry:
        """Load the registry from ``path``.

        A missing file yields an empty registry at the current schema
        version.

        Raises:
            RegistryIOError: If the file cannot be read, is not valid
                JSON, fails validation, or has a newer schema version.
        """
        if not path.exists():
            logger.info("No registry at %s, starting empty", path)
            return cls(path)

        try:
            raw = path.read_text(encoding="utf-8")
        except OSError as e:
            raise RegistryIOError(str(path), f"cannot read: {e}") from e

        try:
            data = json.loads(raw)
        except json.JSONDecodeError as e:
            raise RegistryIOError(str(path), f"invalid JSON: {e}") from e

        if not isinstance(data, dict):
            raise RegistryIOError(str(path), f"expected a JSON object, got {type(data).__name__}")

        version = data.get("schema_version", REGISTRY_SCHEMA_VERSION)
        if not isinstance(version, int) or version > REGISTRY_SCHEMA_VERSION:
            raise RegistryIOError(
                str(path),
                f"unsupported schema version {version!r} (this execman understands "
                f"up to {REGISTRY_SCHEMA_VERSION})",
            )

        try:
            doc = RegistryDocument.model_validate(data)
        except ValidationError as e:
            raise RegistryIOError(str(path), f"invalid contents: {e}") from e

        logger.debug("Loaded registry from %s (%d executables)", path, len(doc.executables))
        return cls(path, doc)

    def save(self) -> None:
        """Persist the registry atomically.

        Raises:
            RegistryIOError: If the file cannot be written. The previous
                registry file is left intact.
        """
        self._doc.schema_version = REGISTRY_SCHEMA_VERSION
        data = self._doc.model_dump(mode="json")
        content = json.dumps(data, indent=2, ensure_ascii=False) + "\n"
        try:
            atomic_write_text(self._path, content, prefix=".registry_")
        except OSError as e:
            logger.error("Failed to save registry to %s: %s", self._path, e)
            raise RegistryIOError(str(self._path), f"cannot write: {e}") from e
        logger.debug("Registry saved to %s", self._path)

    # ── Mapping operations ───────────────────────────────────────

    def get(self, name: str) -> ExecutableRecord | None:
        """Return a copy of the record for ``name``, or None."""
        record = self._doc.executables.get(name)
        return record.model_copy(deep=True) if record else None

    def add(self, name: str, record: ExecutableRecord) -> None:
        """Insert or replace the record for ``name``."""
        self._doc.executables[name] = record.model_copy(deep=True)

    def remove(self, name: str) -> bool:
        """Drop ``name``. Returns True if it was present."""
        return self._doc.executables.pop(name, None) is not None

    def list(self) -> list[str]:
        """All managed names, unordered. Sort before presenting."""
        return list(self._doc.executables)

    def __contains__(self, name: object) -> bool:
        return name in self._doc.executables

    def __len__(self) -> int:
        return len(self._doc.executables)
