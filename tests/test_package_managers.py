"""
Tests for package-manager strategies.
"""

from pathlib import Path

import pytest

from tests.helpers import FakeRunner, make_stub

from dotkit.core.models.resource import OsFamily
from dotkit.core.services.package_managers import (
    Apt,
    Dnf,
    Homebrew,
    Pacman,
    UnknownPlatform,
    get_package_manager,
)
from dotkit.core.services.toolpath import ToolPath


class TestStrategyLookup:
    @pytest.mark.parametrize("family,cls", [
        (OsFamily.MACOS, Homebrew),
        (OsFamily.DEBIAN, Apt),
        (OsFamily.FEDORA, Dnf),
        (OsFamily.ARCH, Pacman),
        (OsFamily.UNKNOWN, UnknownPlatform),
    ])
    def test_family_maps_to_strategy(self, family, cls):
        assert isinstance(get_package_manager(family), cls)


class TestInstallCommands:
    def test_brew(self):
        assert Homebrew().install_command(["fzf"]) == ["brew", "install", "fzf"]
        assert Homebrew().install_command(["kitty"], cask=True) == ["brew", "install", "--cask", "kitty"]

    def test_linux(self):
        assert Apt().install_command(["tmux"]) == ["apt-get", "install", "-y", "tmux"]
        assert Dnf().install_command(["tmux"]) == ["dnf", "install", "-y", "tmux"]
        assert Pacman().install_command(["tmux"]) == ["pacman", "-S", "--noconfirm", "tmux"]

    def test_sudo_policy(self, fake_runner: FakeRunner, tool_path: ToolPath):
        Homebrew(runner=fake_runner).install(["fzf"], tool_path)
        Apt(runner=fake_runner).install(["fzf"], tool_path)
        assert [kw["needs_sudo"] for _, kw in fake_runner.calls] == [False, True]


class TestPackageVersion:
    def test_dpkg_query(self, fake_runner: FakeRunner, tool_path: ToolPath, bin_dir: Path):
        make_stub(bin_dir, "dpkg-query")
        fake_runner.on("dpkg-query", result={"ok": True, "stdout": "3.3a-3\n"})
        assert Apt(runner=fake_runner).package_version("tmux", tool_path) == "3.3a-3"

    def test_pacman_second_field(self, fake_runner: FakeRunner, tool_path: ToolPath, bin_dir: Path):
        make_stub(bin_dir, "pacman")
        fake_runner.on("pacman", result={"ok": True, "stdout": "tmux 3.4-1\n"})
        assert Pacman(runner=fake_runner).package_version("tmux", tool_path) == "3.4-1"

    def test_brew_versions(self, fake_runner: FakeRunner, tool_path: ToolPath, bin_dir: Path):
        make_stub(bin_dir, "brew")
        fake_runner.on("brew", result={"ok": True, "stdout": "tmux 3.4\n"})
        assert Homebrew(runner=fake_runner).package_version("tmux", tool_path) == "3.4"

    def test_not_installed(self, fake_runner: FakeRunner, tool_path: ToolPath, bin_dir: Path):
        make_stub(bin_dir, "rpm")
        fake_runner.on("rpm", result={"ok": False, "error": "Command failed (exit 1)"})
        assert Dnf(runner=fake_runner).package_version("tmux", tool_path) is None

    def test_missing_query_tool(self, fake_runner: FakeRunner, tool_path: ToolPath):
        assert Apt(runner=fake_runner).package_version("tmux", tool_path) is None
        assert fake_runner.calls == []


class TestBootstrap:
    def test_apt_refreshes(self, fake_runner: FakeRunner, tool_path: ToolPath):
        tp, step = Apt(runner=fake_runner).bootstrap(tool_path)
        assert tp is tool_path
        assert step.status == "ok"
        assert fake_runner.calls[0][0] == ["apt-get", "update"]

    def test_apt_refresh_failure_is_warning(self, fake_runner: FakeRunner, tool_path: ToolPath):
        fake_runner.on("apt-get", result={"ok": False, "error": "no network"})
        _, step = Apt(runner=fake_runner).bootstrap(tool_path)
        assert step.status == "warning"
        assert "no network" in step.message

    def test_brew_present_is_skipped(self, fake_runner: FakeRunner, tool_path: ToolPath, bin_dir: Path):
        make_stub(bin_dir, "brew")
        _, step = Homebrew(runner=fake_runner).bootstrap(tool_path)
        assert step.status == "skipped"
        assert fake_runner.calls == []

    def test_pacman_needs_no_bootstrap(self, fake_runner: FakeRunner, tool_path: ToolPath):
        _, step = Pacman(runner=fake_runner).bootstrap(tool_path)
        assert step.status == "skipped"


class TestUnknownPlatform:
    def test_never_acts(self, fake_runner: FakeRunner, tool_path: ToolPath):
        pm = UnknownPlatform(runner=fake_runner)
        result = pm.install(["tmux"], tool_path)
        _, step = pm.bootstrap(tool_path)

        assert result["ok"] is False
        assert result["manual"] is True
        assert step.status == "warning"
        assert pm.package_version("tmux", tool_path) is None
        assert fake_runner.calls == []

    def test_manual_instructions(self):
        text = UnknownPlatform().manual_instructions("Neovim", "https://neovim.io")
        assert text == "Please install Neovim manually: https://neovim.io"
