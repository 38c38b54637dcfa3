"""
Symlink resolution — decide which physical path an update or removal mutates.

When a managed path is a symlink there are two reasonable readings:
replace the file it points to, or replace the link itself with a
regular file. The resolver never guesses: interactively it asks, and
non-interactively it fails with both paths named.
"""

from __future__ import annotations

import logging
import os
import stat
from dataclasses import dataclass
from enum import Enum

from execman.adapters.base import DecisionProvider
from execman.core.errors import SymlinkAmbiguityError, wrap_os_error

logger = logging.getLogger(__name__)


class SymlinkDecision(Enum):
    REPLACE_TARGET = 1
    REPLACE_SYMLINK = 2
    CANCEL = 3


@dataclass(frozen=True)
class SymlinkInfo:
    path: str                 # the nominal install location
    is_symlink: bool = False
    target: str = ""          # physical destination when is_symlink


def inspect(path: str) -> SymlinkInfo:
    """Describe ``path`` without following it.

    A path that doesn't exist is reported as not a symlink.

    Raises:
        InstallPermissionError | StorageError: If the path can't be examined.
    """
    try:
        st = os.lstat(path)
    except FileNotFoundError:
        return SymlinkInfo(path=path)
    except OSError as e:
        raise wrap_os_error(path, e) from e

    if not stat.S_ISLNK(st.st_mode):
        return SymlinkInfo(path=path)

    target = os.path.realpath(path)
    logger.debug("%s is a symlink to %s", path, target)
    return SymlinkInfo(path=path, is_symlink=True, target=target)


def decide(
    info: SymlinkInfo,
    *,
    interactive: bool,
    decisions: DecisionProvider | None = None,
) -> SymlinkDecision:
    """Choose how to treat ``info``.

    Regular files and missing paths are replaced where they are.

    Raises:
        SymlinkAmbiguityError: ``info`` is a symlink and ``interactive``
            is False.
    """
    if not info.is_symlink:
        return SymlinkDecision.REPLACE_SYMLINK

    if not interactive or decisions is None:
        raise SymlinkAmbiguityError(info.path, info.target)

    decisions.notify(f"Note: {info.path} is a symlink to {info.target}")
    decisions.notify("How would you like to proceed?")
    decisions.notify(f"  [1] Replace the symlink target ({info.target})")
    decisions.notify(f"  [2] Replace the symlink itself ({info.path})")
    decisions.notify("  [3] Cancel")
    answer = decisions.ask("Choice [1/2/3]:").strip()

    if answer == "1":
        return SymlinkDecision.REPLACE_TARGET
    if answer == "2":
        return SymlinkDecision.REPLACE_SYMLINK
    return SymlinkDecision.CANCEL


def effective_path(info: SymlinkInfo, decision: SymlinkDecision) -> str:
    """The path to mutate: the link's target for REPLACE_TARGET, else the path."""
    if decision is SymlinkDecision.REPLACE_TARGET and info.is_symlink:
        return info.target
    return info.path
