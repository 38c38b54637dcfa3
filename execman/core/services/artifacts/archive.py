"""
Archive extraction — pull the single executable out of a release archive.

Supported containers: ``.tar.gz`` / ``.tgz`` (tarfile) and ``.zip``
(zipfile). The payload is picked by:

  1. the only regular file in the archive, else
  2. the only file whose basename is the expected executable name
     (with or without ``.exe``).

Anything else is ambiguous and rejected rather than guessed. Member
paths are never used as output paths, so hostile names can't escape.
"""

from __future__ import annotations

import logging
import os
import tarfile
import zipfile
import zlib
from pathlib import Path, PurePosixPath
from typing import IO, Callable

from execman.core.errors import ExtractError, NoExecutableFoundError, StorageError

logger = logging.getLogger(__name__)

EXECUTABLE_MODE = 0o755
_CHUNK = 64 * 1024


def archive_kind(path: Path) -> str:
    """``tar`` or ``zip``, from the file name."""
    lower = path.name.lower()
    if lower.endswith(".tar.gz") or lower.endswith(".tgz"):
        return "tar"
    if lower.endswith(".zip"):
        return "zip"
    raise ExtractError(str(path), "unsupported archive format")


def _pick(archive: Path, members: list[str], expected_name: str) -> str:
    if len(members) == 1:
        return members[0]

    wanted = {expected_name, f"{expected_name}.exe"}
    named = [m for m in members if PurePosixPath(m).name in wanted]
    if len(named) == 1:
        return named[0]

    raise NoExecutableFoundError(str(archive), named or members)


def _write_payload(source: IO[bytes], output_path: Path) -> None:
    # read errors propagate (corrupt archive); write errors are storage failures
    try:
        output_path.parent.mkdir(parents=True, exist_ok=True)
        out = output_path.open("wb")
    except OSError as e:
        raise StorageError(str(output_path), e.strerror or str(e)) from e

    with out:
        while True:
            chunk = source.read(_CHUNK)
            if not chunk:
                break
            try:
                out.write(chunk)
            except OSError as e:
                raise StorageError(str(output_path), e.strerror or str(e)) from e

    try:
        os.chmod(output_path, EXECUTABLE_MODE)
    except OSError as e:
        raise StorageError(str(output_path), e.strerror or str(e)) from e


def _extract_tar(archive: Path, output_path: Path, expected_name: str) -> str:
    with tarfile.open(archive, mode="r:gz") as tar:
        files = {m.name: m for m in tar.getmembers() if m.isfile()}
        chosen = _pick(archive, list(files), expected_name)
        source = tar.extractfile(files[chosen])
        if source is None:
            raise ExtractError(str(archive), f"cannot read member {chosen}")
        with source:
            _write_payload(source, output_path)
    return chosen


def _extract_zip(archive: Path, output_path: Path, expected_name: str) -> str:
    with zipfile.ZipFile(archive) as zf:
        files = [info.filename for info in zf.infolist() if not info.is_dir()]
        chosen = _pick(archive, files, expected_name)
        with zf.open(chosen) as source:
            _write_payload(source, output_path)
    return chosen


_EXTRACTORS: dict[str, Callable[[Path, Path, str], str]] = {
    "tar": _extract_tar,
    "zip": _extract_zip,
}


def extract_binary(archive_path: Path, output_path: Path, expected_name: str) -> Path:
    """Extract the executable from ``archive_path`` to ``output_path``.

    Args:
        archive_path: A ``.tar.gz``, ``.tgz`` or ``.zip`` file.
        output_path: Where to write the binary (mode 0755).
        expected_name: Executable name used to disambiguate.

    Raises:
        NoExecutableFoundError: Zero or several candidate files.
        ExtractError: Corrupt or unsupported archive.
    """
    extractor = _EXTRACTORS[archive_kind(archive_path)]
    try:
        member = extractor(archive_path, output_path, expected_name)
    # zipfile lets zlib.error through on a corrupt deflate stream
    except (tarfile.TarError, zipfile.BadZipFile, zipfile.LargeZipFile, zlib.error, EOFError) as e:
        raise ExtractError(str(archive_path), str(e)) from e
    except OSError as e:
        # gzip raises BadGzipFile (an OSError) on corrupt streams
        raise ExtractError(str(archive_path), str(e)) from e

    logger.info("Extracted %s from %s", member, archive_path.name)
    return output_path
