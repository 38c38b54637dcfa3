"""
Tests for CLI commands — global options and every subcommand, offline.
"""

import json
from pathlib import Path
from unittest.mock import patch

import pytest
from click.testing import CliRunner

from execman import __version__
from execman.adapters.console import ConsoleDecisions
from execman.core.models.release import PlatformTarget
from execman.core.persistence.registry_file import Registry
from execman.main import cli


@pytest.fixture
def target() -> PlatformTarget:
    # the CLI always builds for the host platform
    return PlatformTarget.current()


@pytest.fixture
def state_dir(tmp_path: Path) -> Path:
    return tmp_path / "state"


@pytest.fixture
def run(hub, state_dir):
    """Invoke the CLI with the fake hub wired in place of GitHub."""
    runner = CliRunner()

    def _run(*args, input=None):
        parts = (hub.releases, hub.downloader, ConsoleDecisions())
        with patch("execman.ui.cli.helpers.make_engine_parts", return_value=parts):
            return runner.invoke(cli, ["--config-dir", str(state_dir), *args], input=input)

    return _run


@pytest.fixture
def installed(hub, run, install_dir):
    hub.publish("o", "tool", "v1.0.0", b"v1")
    result = run("install", "github.com/o/tool", "--into", str(install_dir), "--yes")
    assert result.exit_code == 0, result.output
    return install_dir.resolve() / ("tool" + hub.target.exe_suffix)


class TestCLIGlobal:
    """Tests for global CLI behavior."""

    def test_help(self):
        runner = CliRunner()
        result = runner.invoke(cli, ["--help"])
        assert result.exit_code == 0
        assert "GitHub releases" in result.output
        for command in ("install", "update", "check", "list", "remove", "forget", "init", "version"):
            assert command in result.output

    def test_version_option(self):
        result = CliRunner().invoke(cli, ["--version"])
        assert result.exit_code == 0
        assert __version__ in result.output

    def test_version_command_json(self):
        result = CliRunner().invoke(cli, ["version", "--json"])
        assert result.exit_code == 0
        data = json.loads(result.output)
        assert data["version"] == __version__


class TestInstallCommand:
    def test_install(self, installed, state_dir):
        assert installed.read_bytes() == b"v1"
        assert "tool" in Registry.load(state_dir / "registry.json")

    def test_install_prompts(self, hub, run, install_dir):
        hub.publish("o", "tool", "v1.0.0")
        result = run("install", "o/tool", "--into", str(install_dir), input="n\n")
        assert result.exit_code == 0
        assert "Proceed with installation?" in result.output
        assert "Installation cancelled." in result.output
        assert not (install_dir / "tool").exists()

    def test_install_json(self, hub, run, install_dir):
        hub.publish("o", "tool", "v1.0.0")
        result = run("install", "o/tool", "--into", str(install_dir), "--yes", "--json")
        assert result.exit_code == 0
        data = json.loads(result.output)
        assert data["status"] == "installed"
        assert data["record"]["version"] == "v1.0.0"

    def test_json_requires_yes(self, run):
        result = run("install", "o/tool", "--json")
        assert result.exit_code == 2

    def test_malformed_source(self, run):
        result = run("install", "not-a-source", "--yes")
        assert result.exit_code == 1
        assert "❌" in result.output
        assert "Invalid source" in result.output

    def test_error_as_json(self, run):
        result = run("install", "o/ghost", "--yes", "--json")
        assert result.exit_code == 1
        assert json.loads(result.output)["kind"] == "release_not_found"

    def test_default_dir_from_init(self, hub, run, tmp_path: Path):
        folder = tmp_path / "mybin"
        assert run("init", str(folder)).exit_code == 0
        hub.publish("o", "tool", "v1.0.0")
        result = run("install", "o/tool", "--yes")
        assert result.exit_code == 0, result.output
        assert (folder / ("tool" + hub.target.exe_suffix)).exists()


class TestUpdateCommand:
    def test_name_and_all_conflict(self, run):
        result = run("update", "tool", "--all")
        assert result.exit_code == 2
        assert "cannot specify both" in result.output

    def test_needs_name_or_all(self, run):
        result = run("update")
        assert result.exit_code == 2
        assert "must specify either" in result.output

    def test_update_one(self, hub, run, installed):
        hub.publish("o", "tool", "v2.0.0", b"v2")
        result = run("update", "tool", "--yes", "--backup")
        assert result.exit_code == 0, result.output
        assert "v1.0.0 → v2.0.0" in result.output
        assert installed.read_bytes() == b"v2"
        assert installed.with_name(installed.name + ".backup").read_bytes() == b"v1"

    def test_update_interactive(self, hub, run, installed):
        hub.publish("o", "tool", "v2.0.0", b"v2")
        result = run("update", "tool", input="y\nn\n")
        assert result.exit_code == 0, result.output
        assert "Update tool to v2.0.0? [y/N]:" in result.output
        assert installed.read_bytes() == b"v2"

    def test_update_all_reports_failures(self, hub, run, installed):
        from execman.core.errors import NetworkError

        release = hub.publish("o", "tool", "v2.0.0")
        hub.fail_download(release, NetworkError("https://x", "reset"))
        result = run("update", "--all", "--yes")
        assert result.exit_code == 1
        assert "0 updated, 0 already up to date, 0 cancelled, 1 failed." in result.output

    def test_not_managed(self, run):
        result = run("update", "ghost", "--yes")
        assert result.exit_code == 1
        assert "not managed" in result.output


class TestCheckAndList:
    def test_check_json(self, hub, run, installed):
        hub.publish("o", "tool", "v1.1.0")
        result = run("check", "--json")
        assert result.exit_code == 0
        data = json.loads(result.output)
        assert data["updates_available"] == 1
        assert data["executables"][0]["latest_version"] == "v1.1.0"

    def test_check_text(self, hub, run, installed):
        installed.write_bytes(b"patched")
        result = run("check", "--verify")
        assert result.exit_code == 0
        assert "MODIFIED" in result.output

    def test_check_up_to_date_hidden_unless_no_skip(self, run, installed):
        assert "up to date (verified)" not in run("check", "--verify").output
        assert "up to date (verified)" in run("check", "--verify", "--no-skip").output

    def test_list(self, run, installed):
        result = run("list")
        assert result.exit_code == 0
        assert "tool" in result.output
        assert "github.com/o/tool" in result.output
        assert "1 executable managed" in result.output

    def test_list_json_long(self, run, installed, target):
        data = json.loads(run("list", "--json", "--long").output)
        entry = data["executables"][0]
        assert entry["name"] == "tool"
        assert entry["platform"] == str(target)
        assert len(entry["checksum"]) == 64

    def test_list_empty(self, run):
        assert "No managed executables." in run("list").output

    def test_list_unknown(self, run):
        assert run("list", "ghost").exit_code == 1


class TestRemoveAndForget:
    def test_remove(self, run, installed, state_dir):
        result = run("remove", "tool", "--yes")
        assert result.exit_code == 0
        assert not installed.exists()
        assert "tool" not in Registry.load(state_dir / "registry.json")

    def test_remove_declined(self, run, installed):
        result = run("remove", "tool", input="n\n")
        assert result.exit_code == 0
        assert "Removal cancelled." in result.output
        assert installed.exists()

    def test_forget(self, run, installed, state_dir):
        result = run("forget", "tool", "--yes")
        assert result.exit_code == 0
        assert installed.exists()
        assert len(Registry.load(state_dir / "registry.json")) == 0


class TestInitCommand:
    def test_init(self, run, tmp_path: Path, state_dir, monkeypatch):
        monkeypatch.setenv("PATH", "/usr/bin")
        result = run("init", str(tmp_path / "bin2"))
        assert result.exit_code == 0
        assert (state_dir / "config.json").is_file()
        assert (state_dir / "registry.json").is_file()
        assert "is not on your $PATH" in result.output


class TestBadState:
    def test_corrupt_registry(self, run, state_dir):
        state_dir.mkdir(parents=True)
        (state_dir / "registry.json").write_text("{broken")
        result = run("list")
        assert result.exit_code == 1
        assert "invalid JSON" in result.output
