"""
Release models — what the release API tells us, and where we run.

These are ephemeral: fetched or computed per operation, never persisted.
"""

from __future__ import annotations

import platform as _platform
from dataclasses import dataclass

from pydantic import BaseModel, Field

SUPPORTED_OS = ("linux", "darwin", "windows")
SUPPORTED_ARCH = ("amd64", "arm64", "386")

_ARCH_MAP = {
    "x86_64": "amd64",
    "amd64": "amd64",
    "x64": "amd64",
    "aarch64": "arm64",
    "arm64": "arm64",
    "armv8": "arm64",
    "i386": "386",
    "i686": "386",
    "x86": "386",
    "386": "386",
}


class Asset(BaseModel):
    """A downloadable file attached to a release."""

    name: str
    download_url: str
    size: int = 0


class ReleaseDescriptor(BaseModel):
    """A single release: its tag and assets, in API order."""

    tag: str
    is_prerelease: bool = False
    assets: list[Asset] = Field(default_factory=list)

    @property
    def asset_names(self) -> list[str]:
        return [a.name for a in self.assets]


@dataclass(frozen=True)
class PlatformTarget:
    """An (os, arch) pair in release-asset vocabulary."""

    os_name: str
    arch: str

    def __str__(self) -> str:
        return f"{self.os_name}/{self.arch}"

    @property
    def archive_ext(self) -> str:
        return "zip" if self.os_name == "windows" else "tar.gz"

    @property
    def exe_suffix(self) -> str:
        return ".exe" if self.os_name == "windows" else ""

    @classmethod
    def from_host(cls, system: str, machine: str) -> PlatformTarget:
        s = system.lower()
        if s.startswith("win"):
            os_name = "windows"
        elif s.startswith("darwin") or s.startswith("mac"):
            os_name = "darwin"
        else:
            os_name = "linux"
        m = machine.lower()
        return cls(os_name=os_name, arch=_ARCH_MAP.get(m, m))

    @classmethod
    def current(cls) -> PlatformTarget:
        return cls.from_host(_platform.system(), _platform.machine())
