"""
Shared test fixtures and configuration.
"""

from __future__ import annotations

from pathlib import Path

import pytest

from dotkit.core.config.loader import Settings
from dotkit.core.data.catalog import SYMLINKS
from dotkit.core.models.resource import HostPlatform, OsFamily
from dotkit.core.persistence.install_log import InstallLog
from dotkit.core.services.toolpath import ToolPath
from tests.helpers import FakeRunner, RecordingReporter


@pytest.fixture
def fake_runner() -> FakeRunner:
    return FakeRunner()


@pytest.fixture
def reporter() -> RecordingReporter:
    return RecordingReporter()


@pytest.fixture
def home(tmp_path: Path) -> Path:
    """An empty home directory."""
    h = tmp_path / "home"
    h.mkdir()
    return h


@pytest.fixture
def dotfiles(home: Path) -> Path:
    """A dotfiles checkout containing every symlink source."""
    root = home / ".dotfiles"
    for resource in SYMLINKS:
        src = resource.source_path(root)
        if resource.kind.value == "config_dir":
            src.mkdir(parents=True, exist_ok=True)
            (src / "placeholder.lua").write_text("-- placeholder\n")
        else:
            src.parent.mkdir(parents=True, exist_ok=True)
            src.write_text(f"# {resource.name}\n")
    return root


@pytest.fixture
def settings(home: Path, dotfiles: Path) -> Settings:
    return Settings(home=home, dotfiles_dir=dotfiles)


@pytest.fixture
def bin_dir(tmp_path: Path) -> Path:
    d = tmp_path / "bin"
    d.mkdir()
    return d


@pytest.fixture
def tool_path(bin_dir: Path) -> ToolPath:
    """Tool path isolated from the host: only the stub dir."""
    return ToolPath((str(bin_dir),))


@pytest.fixture
def debian() -> HostPlatform:
    return HostPlatform(system="Linux", family=OsFamily.DEBIAN)


@pytest.fixture
def unknown_os() -> HostPlatform:
    return HostPlatform(system="Plan9", family=OsFamily.UNKNOWN)


@pytest.fixture
def install_log(tmp_path: Path) -> InstallLog:
    return InstallLog(tmp_path / "backup" / "install.log")
