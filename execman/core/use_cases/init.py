"""
Init use case — set up the config directory for a new install folder.
"""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass
from pathlib import Path

from execman.core.config.loader import (
    default_config_path,
    default_registry_path,
    load_config,
    save_config,
)
from execman.core.errors import wrap_os_error
from execman.core.persistence.registry_file import Registry

logger = logging.getLogger(__name__)


@dataclass
class InitResult:
    install_dir: Path
    config_path: Path
    registry_path: Path
    registry_created: bool
    on_path: bool

    def to_dict(self) -> dict:
        return {
            "install_dir": str(self.install_dir),
            "config_path": str(self.config_path),
            "registry_path": str(self.registry_path),
            "registry_created": self.registry_created,
            "on_path": self.on_path,
        }


def is_on_path(folder: Path, path_env: str | None = None) -> bool:
    """Whether ``folder`` is one of the directories in ``$PATH``."""
    if path_env is None:
        path_env = os.environ.get("PATH", "")
    target = folder.resolve()
    for entry in path_env.split(os.pathsep):
        if entry and Path(entry).expanduser().resolve() == target:
            return True
    return False


def initialize(
    folder: Path,
    config_path: Path | None = None,
    registry_path: Path | None = None,
) -> InitResult:
    """Make ``folder`` the default install directory.

    Existing config settings other than the install directory are
    kept; an existing registry is left untouched.

    Raises:
        ConfigError: The config can't be read or written.
        RegistryIOError: The registry can't be read or written.
        InstallPermissionError | StorageError: ``folder`` can't be created.
    """
    install_dir = Path(folder).expanduser().resolve()
    config_path = config_path or default_config_path()
    registry_path = registry_path or default_registry_path()

    try:
        install_dir.mkdir(parents=True, exist_ok=True)
    except OSError as e:
        raise wrap_os_error(str(install_dir), e) from e

    config = load_config(config_path)
    config.default_install_dir = str(install_dir)
    save_config(config, config_path)

    registry_created = not registry_path.exists()
    registry = Registry.load(registry_path)
    if registry_created:
        registry.save()
        logger.info("Created empty registry at %s", registry_path)

    return InitResult(
        install_dir=install_dir,
        config_path=config_path,
        registry_path=registry_path,
        registry_created=registry_created,
        on_path=is_on_path(install_dir),
    )
