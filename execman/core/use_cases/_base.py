"""Shared wiring for the install and update engines."""

from __future__ import annotations

from typing import Any

from execman.adapters.base import DecisionProvider
from execman.core.config.loader import ExecmanConfig
from execman.core.engine.pipeline import ReleasePipeline
from execman.core.errors import ExecmanError
from execman.core.models.executable import ExecutableRecord
from execman.core.models.release import PlatformTarget
from execman.core.persistence.audit import AuditEntry, AuditWriter
from execman.core.persistence.registry_file import Registry
from execman.core.services.artifacts.download import Downloader
from execman.core.services.release.client import ReleaseSource


class EngineBase:
    """Holds the collaborators every mutating engine needs.

    Every collaborator is passed in: the registry handle, where
    releases come from, how files are downloaded, and who answers
    prompts. Nothing is global.
    """

    def __init__(
        self,
        registry: Registry,
        releases: ReleaseSource,
        downloader: Downloader,
        decisions: DecisionProvider,
        *,
        config: ExecmanConfig | None = None,
        target: PlatformTarget | None = None,
        audit: AuditWriter | None = None,
    ):
        self._registry = registry
        self._releases = releases
        self._decisions = decisions
        self._config = config or ExecmanConfig()
        self._pipeline = ReleasePipeline(downloader, target or PlatformTarget.current())
        self._audit = audit

    @property
    def target(self) -> PlatformTarget:
        return self._pipeline.target

    def _commit(self, name: str, record: ExecutableRecord, previous: ExecutableRecord | None) -> None:
        self._registry.add(name, record)
        try:
            self._registry.save()
        except ExecmanError:
            # keep memory consistent with the file that is still on disk
            if previous is None:
                self._registry.remove(name)
            else:
                self._registry.add(name, previous)
            raise

    def _record_audit(
        self, operation: str, name: str, source: str, *, status: str, **fields: Any
    ) -> None:
        if self._audit is None:
            return
        self._audit.write(
            AuditEntry(operation=operation, name=name, source=source, status=status, **fields)
        )
