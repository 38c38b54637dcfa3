"""
Shared test fixtures and configuration.

``hub`` stands in for GitHub: it publishes releases to a fake release
source and serves their assets through a fake downloader, so the
engines run end to end without the network.
"""

import hashlib
import io
import struct
import tarfile
import zipfile
from pathlib import Path

import pytest

from execman.adapters.scripted import ScriptedDecisions
from execman.core.errors import ExecmanError, ReleaseNotFoundError
from execman.core.models.release import Asset, PlatformTarget, ReleaseDescriptor
from execman.core.persistence.audit import AuditWriter
from execman.core.persistence.registry_file import Registry
from execman.core.services.artifacts.download import Downloader
from execman.core.services.release.client import ReleaseSource

LINUX_AMD64 = PlatformTarget("linux", "amd64")


def make_tar_gz(members: dict[str, bytes]) -> bytes:
    buf = io.BytesIO()
    with tarfile.open(fileobj=buf, mode="w:gz") as tar:
        for name, data in members.items():
            info = tarfile.TarInfo(name)
            info.size = len(data)
            info.mode = 0o755
            tar.addfile(info, io.BytesIO(data))
    return buf.getvalue()


def make_zip(members: dict[str, bytes]) -> bytes:
    buf = io.BytesIO()
    with zipfile.ZipFile(buf, "w") as zf:
        for name, data in members.items():
            zf.writestr(name, data)
    return buf.getvalue()


def make_corrupt_zip(name: str) -> bytes:
    """A zip whose central directory is intact but whose deflate stream is not."""
    buf = io.BytesIO()
    with zipfile.ZipFile(buf, "w", compression=zipfile.ZIP_DEFLATED) as zf:
        zf.writestr(name, b"payload " * 512)
    data = bytearray(buf.getvalue())
    name_len, extra_len = struct.unpack_from("<HH", data, 26)
    # BFINAL=1, BTYPE=11: a reserved block type
    data[30 + name_len + extra_len] = 0xFF
    return bytes(data)


class FakeReleases(ReleaseSource):
    """In-memory release source. Releases are kept newest first."""

    def __init__(self):
        self.releases: dict[tuple[str, str], list[ReleaseDescriptor]] = {}
        self.errors: dict[tuple[str, str], ExecmanError] = {}
        self.calls: list[tuple[str, ...]] = []

    def get_latest(self, owner, repo, include_prereleases=False):
        self.calls.append(("latest", owner, repo))
        if (owner, repo) in self.errors:
            raise self.errors[(owner, repo)]
        for release in self.releases.get((owner, repo), []):
            if include_prereleases or not release.is_prerelease:
                return release
        raise ReleaseNotFoundError(owner, repo)

    def get_by_tag(self, owner, repo, tag):
        self.calls.append(("tag", owner, repo, tag))
        if (owner, repo) in self.errors:
            raise self.errors[(owner, repo)]
        for release in self.releases.get((owner, repo), []):
            if release.tag == tag:
                return release
        raise ReleaseNotFoundError(owner, repo, tag)


class FakeDownloader(Downloader):
    """Serves asset bytes from memory; chosen URLs can be made to fail."""

    def __init__(self):
        super().__init__()
        self.files: dict[str, bytes] = {}
        self.errors: dict[str, ExecmanError] = {}
        self.fetched: list[str] = []

    def fetch(self, asset, destination):
        self.fetched.append(asset.name)
        if asset.download_url in self.errors:
            raise self.errors[asset.download_url]
        destination.parent.mkdir(parents=True, exist_ok=True)
        destination.write_bytes(self.files[asset.download_url])
        return destination


class ReleaseHub:
    """Publishes fake releases: archive + optional checksum manifest."""

    def __init__(self, target: PlatformTarget = LINUX_AMD64):
        self.target = target
        self.releases = FakeReleases()
        self.downloader = FakeDownloader()

    def url(self, owner: str, repo: str, tag: str, asset_name: str) -> str:
        return f"https://github.com/{owner}/{repo}/releases/download/{tag}/{asset_name}"

    def asset_name(self, repo: str, tag: str) -> str:
        version = tag[1:] if tag.startswith("v") else tag
        return f"{repo}_{version}_{self.target.os_name}_{self.target.arch}.{self.target.archive_ext}"

    def add_asset(self, release: ReleaseDescriptor, owner: str, repo: str, name: str, data: bytes) -> Asset:
        asset = Asset(name=name, download_url=self.url(owner, repo, release.tag, name), size=len(data))
        release.assets.append(asset)
        self.downloader.files[asset.download_url] = data
        return asset

    def publish(
        self,
        owner: str,
        repo: str,
        tag: str,
        payload: bytes | None = None,
        *,
        manifest: bool = True,
        manifest_digest: str | None = None,
        prerelease: bool = False,
    ) -> ReleaseDescriptor:
        """Publish ``tag`` with a single-binary archive for ``self.target``."""
        payload = payload if payload is not None else f"{repo} {tag}\n".encode()
        binary = repo + self.target.exe_suffix
        if self.target.archive_ext == "zip":
            archive = make_zip({binary: payload})
        else:
            archive = make_tar_gz({binary: payload})

        release = ReleaseDescriptor(tag=tag, is_prerelease=prerelease)
        name = self.asset_name(repo, tag)
        self.add_asset(release, owner, repo, name, archive)
        if manifest:
            digest = manifest_digest or hashlib.sha256(archive).hexdigest()
            self.add_asset(release, owner, repo, "checksums.txt", f"{digest}  {name}\n".encode())

        self.releases.releases.setdefault((owner, repo), []).insert(0, release)
        return release

    def fail_download(self, release: ReleaseDescriptor, error: ExecmanError) -> None:
        for asset in release.assets:
            if asset.name.endswith(self.target.archive_ext):
                self.downloader.errors[asset.download_url] = error


@pytest.fixture
def target() -> PlatformTarget:
    return LINUX_AMD64


@pytest.fixture
def hub(target) -> ReleaseHub:
    return ReleaseHub(target)


@pytest.fixture
def registry(tmp_path: Path) -> Registry:
    return Registry(tmp_path / "state" / "registry.json")


@pytest.fixture
def audit(tmp_path: Path) -> AuditWriter:
    return AuditWriter(tmp_path / "state" / "audit.ndjson")


@pytest.fixture
def install_dir(tmp_path: Path) -> Path:
    path = tmp_path / "bin"
    path.mkdir()
    return path


@pytest.fixture
def scripted():
    """Factory for ScriptedDecisions with canned answers."""
    return lambda *answers: ScriptedDecisions(list(answers))


@pytest.fixture
def archives():
    """Archive builders: ``archives.tar_gz({...})``, ``archives.zip({...})``, ``archives.corrupt_zip(name)``."""

    class _Archives:
        tar_gz = staticmethod(make_tar_gz)
        zip = staticmethod(make_zip)
        corrupt_zip = staticmethod(make_corrupt_zip)

    return _Archives
