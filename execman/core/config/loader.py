"""
Configuration loader — reads config.json into an ExecmanConfig.

The config file is optional; its absence means the documented
defaults. The file is parsed with ``yaml.safe_load`` so both the JSON
that ``execman init`` writes and hand-edited YAML are accepted.

All execman state lives in one directory, resolved in order:
    $EXECMAN_CONFIG_DIR  >  $XDG_CONFIG_HOME/execman  >  ~/.config/execman
"""

from __future__ import annotations

import json
import logging
import os
from pathlib import Path

import yaml
from pydantic import BaseModel, ValidationError

from execman.core.errors import ConfigError
from execman.core.persistence.atomic import atomic_write_text
from execman.core.persistence.audit import DEFAULT_AUDIT_FILE
from execman.core.persistence.registry_file import DEFAULT_REGISTRY_FILE

logger = logging.getLogger(__name__)

CONFIG_FILE = "config.json"
ENV_CONFIG_DIR = "EXECMAN_CONFIG_DIR"
DEFAULT_INSTALL_DIR = "~/.local/bin"


class ExecmanConfig(BaseModel):
    """User defaults applied when a command doesn't specify them."""

    default_install_dir: str = DEFAULT_INSTALL_DIR
    include_prereleases: bool = False

    @property
    def install_dir(self) -> Path:
        """The default install directory, expanded and absolute."""
        return Path(self.default_install_dir).expanduser().resolve()


def config_dir() -> Path:
    """Directory holding config, registry, and audit ledger."""
    explicit = os.environ.get(ENV_CONFIG_DIR, "").strip()
    if explicit:
        return Path(explicit).expanduser()
    xdg = os.environ.get("XDG_CONFIG_HOME", "").strip()
    if xdg:
        return Path(xdg).expanduser() / "execman"
    return Path.home() / ".config" / "execman"


def default_config_path(base: Path | None = None) -> Path:
    return (base or config_dir()) / CONFIG_FILE


def default_registry_path(base: Path | None = None) -> Path:
    return (base or config_dir()) / DEFAULT_REGISTRY_FILE


def default_audit_path(base: Path | None = None) -> Path:
    return (base or config_dir()) / DEFAULT_AUDIT_FILE


def load_config(path: Path | None = None) -> ExecmanConfig:
    """Load and validate the configuration.

    Args:
        path: Explicit config file. Defaults to ``config.json`` in
            :func:`config_dir`.

    Returns:
        Validated config; defaults if the file doesn't exist.

    Raises:
        ConfigError: If the file exists but is unreadable or invalid.
    """
    path = path or default_config_path()

    if not path.is_file():
        logger.debug("No config at %s, using defaults", path)
        return ExecmanConfig()

    try:
        raw = path.read_text(encoding="utf-8")
    except OSError as e:
        raise ConfigError(f"Cannot read {path}: {e}", path=str(path)) from e

    try:
        data = yaml.safe_load(raw)
    except yaml.YAMLError as e:
        raise ConfigError(f"Invalid config syntax in {path}: {e}", path=str(path)) from e

    if data is None:
        return ExecmanConfig()

    if not isinstance(data, dict):
        raise ConfigError(
            f"Expected a mapping in {path}, got {type(data).__name__}",
            path=str(path),
        )

    try:
        config = ExecmanConfig.model_validate(data)
    except ValidationError as e:
        raise ConfigError(f"Invalid configuration in {path}: {e}", path=str(path)) from e

    logger.debug("Loaded config from %s", path)
    return config


def save_config(config: ExecmanConfig, path: Path | None = None) -> Path:
    """Write the configuration as JSON (atomic write)."""
    path = path or default_config_path()
    content = json.dumps(config.model_dump(mode="json"), indent=2) + "\n"
    try:
        atomic_write_text(path, content, prefix=".config_")
    except OSError as e:
        raise ConfigError(f"Cannot write {path}: {e}", path=str(path)) from e
    logger.info("Config saved to %s", path)
    return path
