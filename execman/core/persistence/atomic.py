"""
Atomic text writes — write to a temp file, then rename over the target.

A concurrent reader or a crash never observes a half-written file:
the temp file lives in the target's directory so the final
``os.replace`` stays on one filesystem.
"""

from __future__ import annotations

import logging
import os
import tempfile
from pathlib import Path

logger = logging.getLogger(__name__)


def atomic_write_text(path: Path, content: str, *, prefix: str = ".execman_") -> None:
    """Replace ``path`` with ``content`` atomically.

    Args:
        path: Target file. Parent directories are created.
        content: Text to write (UTF-8).
        prefix: Temp file name prefix inside ``path.parent``.

    Raises:
        OSError: If the directory cannot be created or the write fails.
            The temp file is removed in that case.
    """
    path.parent.mkdir(parents=True, exist_ok=True)

    fd, tmp_name = tempfile.mkstemp(dir=path.parent, prefix=prefix, suffix=".tmp")
    tmp = Path(tmp_name)
    try:
        with os.fdopen(fd, "w", encoding="utf-8") as f:
            f.write(content)
            f.flush()
            os.fsync(f.fileno())
        os.replace(tmp, path)
        logger.debug("Wrote %s atomically", path)
    except Exception:
        tmp.unlink(missing_ok=True)
        raise
