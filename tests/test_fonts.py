"""
Tests for Hack Nerd Font installation and lookup.
"""

import zipfile
from pathlib import Path

import pytest

from tests.helpers import FakeRunner, make_stub

from dotkit.core.models.resource import HostPlatform, OsFamily
from dotkit.core.services.fonts import FontInstaller, find_font_files
from dotkit.core.services.package_managers import get_package_manager


@pytest.fixture
def linux() -> HostPlatform:
    return HostPlatform(system="Linux", family=OsFamily.DEBIAN)


def _fonts(platform, runner, install_log, home, tmp_path) -> FontInstaller:
    tmp = tmp_path / "work"
    tmp.mkdir(exist_ok=True)
    return FontInstaller(
        platform, get_package_manager(platform.family, runner), runner, install_log, home, tmp,
    )


def _curl_writes(cmd, kwargs):
    """FakeRunner action: ``curl -fLo DEST URL`` writes DEST."""
    Path(cmd[2]).write_bytes(b"ttf")


class TestFindFontFiles:
    def test_linux_pattern(self, home: Path):
        fonts = home / ".local" / "share" / "fonts"
        fonts.mkdir(parents=True)
        (fonts / "HackNerdFont-Regular.ttf").write_bytes(b"")
        (fonts / "DejaVuSans.ttf").write_bytes(b"")
        assert [p.name for p in find_font_files("Linux", home)] == ["HackNerdFont-Regular.ttf"]

    def test_unknown_system(self, home: Path):
        assert find_font_files("Plan9", home) == []


class TestLinuxInstall:
    def test_already_installed(self, linux, fake_runner, install_log, home, tmp_path, tool_path):
        fonts = home / ".local" / "share" / "fonts"
        fonts.mkdir(parents=True)
        (fonts / "Hack Regular Nerd Font Complete.ttf").write_bytes(b"ttf")

        step = _fonts(linux, fake_runner, install_log, home, tmp_path).install(tool_path)
        assert step.status == "skipped"
        assert fake_runner.calls == []

    def test_direct_download(self, linux, fake_runner, install_log, home, tmp_path, tool_path,
                             bin_dir):
        make_stub(bin_dir, "curl")
        make_stub(bin_dir, "fc-cache")
        fake_runner.on("curl", action=_curl_writes)

        step = _fonts(linux, fake_runner, install_log, home, tmp_path).install(tool_path)

        assert step.status == "ok"
        assert step.details["method"] == "direct"
        assert len(find_font_files("Linux", home)) == 4
        assert fake_runner.called("fc-cache", "-f")

    def test_zip_fallback(self, linux, fake_runner, install_log, home, tmp_path, tool_path,
                          bin_dir):
        make_stub(bin_dir, "curl")
        archive_src = tmp_path / "Hack-src.zip"
        with zipfile.ZipFile(archive_src, "w") as zf:
            zf.writestr("HackNerdFont-Regular.ttf", b"ttf")
            zf.writestr("HackNerdFont-Bold.ttf", b"ttf")
            zf.writestr("README.md", b"readme")

        def curl(cmd, kwargs):
            if cmd[-1].endswith("Hack.zip"):
                Path(cmd[2]).write_bytes(archive_src.read_bytes())
                return None
            return {"ok": False, "error": "Command failed (exit 22)"}

        fake_runner.on("curl", action=curl)

        step = _fonts(linux, fake_runner, install_log, home, tmp_path).install(tool_path)

        assert step.details["method"] == "zip"
        names = sorted(p.name for p in find_font_files("Linux", home))
        assert names == ["HackNerdFont-Bold.ttf", "HackNerdFont-Regular.ttf"]
        assert not (tmp_path / "work" / "Hack.zip").exists()

    def test_git_fallback(self, linux, fake_runner, install_log, home, tmp_path, tool_path,
                          bin_dir):
        make_stub(bin_dir, "git")

        def clone(cmd, kwargs):
            regular = Path(cmd[-1]) / "patched-fonts" / "Hack" / "Regular"
            regular.mkdir(parents=True)
            (regular / "HackNerdFont-Regular.ttf").write_bytes(b"ttf")

        fake_runner.on("git", "clone", action=clone)

        step = _fonts(linux, fake_runner, install_log, home, tmp_path).install(tool_path)

        assert step.details["method"] == "git"
        assert fake_runner.called("git", "-C")
        assert [p.name for p in find_font_files("Linux", home)] == ["HackNerdFont-Regular.ttf"]
        assert not (tmp_path / "work" / "nerd-fonts").exists()

    def test_all_methods_fail(self, linux, fake_runner, install_log, home, tmp_path, tool_path):
        step = _fonts(linux, fake_runner, install_log, home, tmp_path).install(tool_path)
        assert step.status == "warning"
        assert install_log.read_all()[-1].status == "failed"


class TestOtherPlatforms:
    def test_macos_cask(self, fake_runner: FakeRunner, install_log, home, tmp_path, tool_path,
                        bin_dir):
        make_stub(bin_dir, "brew")
        fake_runner.on("brew", "list", "--cask", result={"ok": False, "error": "not installed"})
        macos = HostPlatform(system="Darwin", family=OsFamily.MACOS)

        step = _fonts(macos, fake_runner, install_log, home, tmp_path).install(tool_path)

        assert step.status == "ok"
        assert fake_runner.called("brew", "tap", "homebrew/cask-fonts")
        assert fake_runner.called("brew", "install", "--cask", "font-hack-nerd-font")

    def test_linux_without_package_manager_is_manual(self, fake_runner, install_log, home,
                                                     tmp_path, tool_path, bin_dir):
        make_stub(bin_dir, "curl")
        make_stub(bin_dir, "git")
        platform = HostPlatform(system="Linux", family=OsFamily.UNKNOWN)

        step = _fonts(platform, fake_runner, install_log, home, tmp_path).install(tool_path)

        assert step.status == "warning"
        assert "manually" in step.message
        assert fake_runner.calls == []
        assert find_font_files("Linux", home) == []

    def test_unknown_is_manual(self, unknown_os, fake_runner, install_log, home, tmp_path,
                               tool_path):
        step = _fonts(unknown_os, fake_runner, install_log, home, tmp_path).install(tool_path)
        assert step.status == "warning"
        assert "manually" in step.message
        assert fake_runner.calls == []
