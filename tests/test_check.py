"""
Tests for the check use case — integrity and update availability.
"""

from pathlib import Path

import pytest

from execman.core.errors import NetworkError, NotManagedError
from execman.core.models.executable import ExecutableRecord, FileStatus
from execman.core.services.artifacts.integrity import sha256_file
from execman.core.use_cases.check import check_executables


@pytest.fixture
def managed(registry, install_dir: Path):
    """Two managed files: ``alpha`` v1 and ``beta`` v2."""
    for name, version in (("alpha", "v1"), ("beta", "v2")):
        path = install_dir / name
        path.write_bytes(name.encode())
        registry.add(name, ExecutableRecord(
            source=f"https://github.com/o/{name}",
            version=version,
            path=str(path),
            checksum=sha256_file(path),
        ))
    return registry


class TestCheck:
    def test_update_available(self, hub, managed):
        hub.publish("o", "alpha", "v2")
        hub.publish("o", "beta", "v2")

        report = check_executables(managed, hub.releases)

        by_name = {e.name: e for e in report.entries}
        assert [e.name for e in report.entries] == ["alpha", "beta"]
        assert by_name["alpha"].update_available
        assert by_name["alpha"].latest_version == "v2"
        assert not by_name["beta"].update_available
        assert report.updates_available == 1
        assert report.up_to_date == 1

    def test_missing_file(self, hub, managed, install_dir):
        hub.publish("o", "beta", "v2")
        (install_dir / "alpha").unlink()
        report = check_executables(managed, hub.releases)
        alpha = report.entries[0]
        assert alpha.status is FileStatus.MISSING
        assert report.missing == 1
        # missing files are not looked up
        assert ("latest", "o", "alpha") not in hub.releases.calls

    def test_verify_detects_modification(self, hub, managed, install_dir):
        hub.publish("o", "alpha", "v1")
        hub.publish("o", "beta", "v2")
        (install_dir / "beta").write_bytes(b"patched")

        report = check_executables(managed, hub.releases, verify=True)
        statuses = {e.name: e.status for e in report.entries}
        assert statuses == {"alpha": FileStatus.OK, "beta": FileStatus.MODIFIED}
        assert report.entries[0].verified

    def test_modification_ignored_without_verify(self, hub, managed, install_dir):
        hub.publish("o", "alpha", "v1")
        hub.publish("o", "beta", "v2")
        (install_dir / "beta").write_bytes(b"patched")
        report = check_executables(managed, hub.releases)
        assert report.modified == 0

    def test_lookup_error_recorded_per_entry(self, hub, managed):
        hub.publish("o", "beta", "v3")
        hub.releases.errors[("o", "alpha")] = NetworkError("https://api", "timeout")

        report = check_executables(managed, hub.releases)

        alpha, beta = report.entries
        assert "timeout" in alpha.error
        assert beta.update_available
        assert report.errors == 1

    def test_single_name(self, hub, managed):
        hub.publish("o", "beta", "v2")
        report = check_executables(managed, hub.releases, ["beta"])
        assert [e.name for e in report.entries] == ["beta"]

    def test_unknown_name(self, hub, managed):
        with pytest.raises(NotManagedError):
            check_executables(managed, hub.releases, ["ghost"])

    def test_prereleases(self, hub, managed):
        hub.publish("o", "beta", "v2")
        hub.publish("o", "beta", "v3-rc1", prerelease=True)
        hub.publish("o", "alpha", "v1")
        report = check_executables(managed, hub.releases, include_prereleases=True)
        assert report.entries[1].latest_version == "v3-rc1"

    def test_to_dict(self, hub, managed, install_dir):
        hub.publish("o", "beta", "v2")
        (install_dir / "alpha").unlink()
        data = check_executables(managed, hub.releases).to_dict()
        assert data["missing"] == 1
        assert data["executables"][0] == {
            "name": "alpha",
            "current_version": "v1",
            "status": "missing",
            "update_available": False,
        }
