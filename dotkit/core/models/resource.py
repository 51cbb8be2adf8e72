"""
ManagedResource — a single thing the installer materializes or the
verifier checks.

Definitions are static (see ``dotkit.core.data.catalog``); paths are
stored relative to the home directory or the dotfiles tree and resolved
against the active ``Settings`` at use time.
"""

from __future__ import annotations

from enum import Enum
from pathlib import Path

from pydantic import BaseModel, Field


class ResourceKind(str, Enum):
    """What sort of locator a resource has."""

    BINARY = "binary"
    CONFIG_FILE = "config_file"
    CONFIG_DIR = "config_dir"
    PLUGIN_DIR = "plugin_dir"
    FONT = "font"


class OsFamily(str, Enum):
    """Host families the installer knows how to act on."""

    MACOS = "macos"
    DEBIAN = "debian"
    FEDORA = "fedora"
    ARCH = "arch"
    UNKNOWN = "unknown"

    @property
    def is_linux(self) -> bool:
        return self in (OsFamily.DEBIAN, OsFamily.FEDORA, OsFamily.ARCH)


class HostPlatform(BaseModel):
    """Result of OS detection."""

    system: str = ""                # platform.system(): Darwin, Linux, ...
    family: OsFamily = OsFamily.UNKNOWN
    distro: str = ""                # pretty distribution name on Linux

    @property
    def is_macos(self) -> bool:
        return self.system == "Darwin"

    @property
    def is_linux(self) -> bool:
        return self.system == "Linux"


class ManagedResource(BaseModel):
    """A tool or configuration artifact tracked by install and verify."""

    id: str
    name: str
    kind: ResourceKind
    group: str = ""

    # binary
    command: str | None = None

    # config_file / config_dir (symlinks)
    source: str | None = None       # relative to the dotfiles dir
    target: str | None = None       # relative to home

    # plugin_dir
    path: str | None = None         # relative to home, or "{zsh_custom}/..."
    markers: list[str] = Field(default_factory=list)
    repo: str = ""                  # git URL the plugin is cloned from

    # font
    pattern: str | None = None

    manual_url: str = ""

    @property
    def is_symlink(self) -> bool:
        return self.kind in (ResourceKind.CONFIG_FILE, ResourceKind.CONFIG_DIR)

    def source_path(self, dotfiles_dir: Path) -> Path:
        """Canonical source inside the checked-out configuration tree."""
        if self.source is None:
            raise ValueError(f"{self.id} has no source path")
        return dotfiles_dir / self.source

    def target_path(self, home: Path) -> Path:
        """Destination of the symlink in the user's environment."""
        if self.target is None:
            raise ValueError(f"{self.id} has no target path")
        return home / self.target

    def plugin_path(self, home: Path, zsh_custom: Path) -> Path:
        """Directory a plugin is cloned into."""
        if self.path is None:
            raise ValueError(f"{self.id} has no plugin path")
        if self.path.startswith("{zsh_custom}/"):
            return zsh_custom / self.path.split("/", 1)[1]
        return home / self.path
