"""
Package-manager strategies — one implementation per OS family.

The installer never branches on the OS itself; it asks
``get_package_manager(family)`` for a strategy and calls it. The
``unknown`` family gets a strategy that never acts and only reports
manual instructions.
"""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from pathlib import Path
from typing import Any

from dotkit.core.models.resource import OsFamily
from dotkit.core.models.step import StepResult
from dotkit.core.services.subprocess_runner import Runner, run_command
from dotkit.core.services.toolpath import ToolPath

logger = logging.getLogger(__name__)

HOMEBREW_INSTALLER = "https://raw.githubusercontent.com/Homebrew/install/HEAD/install.sh"

# Where the Homebrew installer puts the binary, and what to call it.
_HOMEBREW_LOCATIONS: list[tuple[str, str]] = [
    ("/opt/homebrew/bin", "Apple Silicon"),
    ("/usr/local/bin", "Intel"),
]


class PackageManager(ABC):
    """Strategy contract for a host family's package manager."""

    family: OsFamily = OsFamily.UNKNOWN
    binary: str = ""
    needs_sudo: bool = True
    can_install: bool = True

    def __init__(self, runner: Runner = run_command):
        self._run = runner

    @property
    def name(self) -> str:
        return self.binary or self.family.value

    @abstractmethod
    def install_command(self, packages: list[str], *, cask: bool = False) -> list[str]:
        """Command that installs ``packages``."""

    @abstractmethod
    def version_command(self, package: str) -> list[str]:
        """Read-only command that reports an installed package's version."""

    def parse_version(self, stdout: str) -> str | None:
        out = stdout.strip()
        return out or None

    def install(
        self,
        packages: list[str],
        tool_path: ToolPath,
        *,
        cask: bool = False,
        timeout: int = 1800,
    ) -> dict[str, Any]:
        """Install packages. Never raises; returns a runner result dict."""
        cmd = self.install_command(packages, cask=cask)
        logger.info("Installing %s via %s", ", ".join(packages), self.name)
        return self._run(
            cmd,
            needs_sudo=self.needs_sudo,
            timeout=timeout,
            env=tool_path.env(),
        )

    def package_version(self, package: str, tool_path: ToolPath) -> str | None:
        """Installed version of ``package`` according to the package database."""
        if not tool_path.which(self.binary):
            return None
        result = self._run(self.version_command(package), timeout=30, env=tool_path.env())
        if not result.get("ok"):
            return None
        return self.parse_version(result.get("stdout", ""))

    def bootstrap(self, tool_path: ToolPath) -> tuple[ToolPath, StepResult]:
        """Make the package manager usable. Returns the (possibly extended) tool path."""
        return tool_path, StepResult.skip(self.name, f"{self.name} needs no bootstrap")

    def manual_instructions(self, label: str, url: str = "") -> str:
        where = f": {url}" if url else ""
        return f"Please install {label} manually{where}"

    def __repr__(self) -> str:
        return f"<{self.__class__.__name__} family={self.family.value!r}>"


class Homebrew(PackageManager):
    family = OsFamily.MACOS
    binary = "brew"
    needs_sudo = False

    def install_command(self, packages: list[str], *, cask: bool = False) -> list[str]:
        if cask:
            return ["brew", "install", "--cask", *packages]
        return ["brew", "install", *packages]

    def version_command(self, package: str) -> list[str]:
        return ["brew", "list", "--versions", package]

    def parse_version(self, stdout: str) -> str | None:
        parts = stdout.strip().split()
        return parts[1] if len(parts) > 1 else None

    def cask_installed(self, cask: str, tool_path: ToolPath) -> bool:
        result = self._run(["brew", "list", "--cask", cask], timeout=60, env=tool_path.env())
        return bool(result.get("ok"))

    def tap(self, name: str, tool_path: ToolPath) -> dict[str, Any]:
        return self._run(["brew", "tap", name], timeout=300, env=tool_path.env())

    def bootstrap(self, tool_path: ToolPath) -> tuple[ToolPath, StepResult]:
        if tool_path.which("brew"):
            return tool_path, StepResult.skip(
                "homebrew", "Homebrew is already installed", label="Homebrew",
            )

        result = self._run(
            ["/bin/bash", "-c", f'NONINTERACTIVE=1 /bin/bash -c "$(curl -fsSL {HOMEBREW_INSTALLER})"'],
            timeout=1800,
            env=tool_path.env(),
        )
        if not result.get("ok"):
            return tool_path, StepResult.warn(
                "homebrew",
                f"Homebrew installation failed: {result.get('error', 'unknown error')}",
                label="Homebrew",
            )

        for directory, arch in _HOMEBREW_LOCATIONS:
            if (Path(directory) / "brew").is_file():
                return tool_path.with_dirs(directory), StepResult.success(
                    "homebrew", f"Homebrew installed ({arch})", label="Homebrew",
                    details={"bin_dir": directory},
                )

        return tool_path, StepResult.warn(
            "homebrew",
            "Homebrew installed but couldn't find the executable",
            label="Homebrew",
        )


class Apt(PackageManager):
    family = OsFamily.DEBIAN
    binary = "apt-get"

    def install_command(self, packages: list[str], *, cask: bool = False) -> list[str]:
        return ["apt-get", "install", "-y", *packages]

    def version_command(self, package: str) -> list[str]:
        return ["dpkg-query", "-W", "-f=${Version}", package]

    def package_version(self, package: str, tool_path: ToolPath) -> str | None:
        if not tool_path.which("dpkg-query"):
            return None
        result = self._run(self.version_command(package), timeout=30, env=tool_path.env())
        if not result.get("ok"):
            return None
        return self.parse_version(result.get("stdout", ""))

    def bootstrap(self, tool_path: ToolPath) -> tuple[ToolPath, StepResult]:
        result = self._run(["apt-get", "update"], needs_sudo=True, timeout=600, env=tool_path.env())
        if result.get("ok"):
            return tool_path, StepResult.success(
                "apt", "Updated package lists", label="apt",
            )
        return tool_path, StepResult.warn(
            "apt",
            f"apt-get update failed: {result.get('error', 'unknown error')}",
            label="apt",
        )


class Dnf(PackageManager):
    family = OsFamily.FEDORA
    binary = "dnf"

    def install_command(self, packages: list[str], *, cask: bool = False) -> list[str]:
        return ["dnf", "install", "-y", *packages]

    def version_command(self, package: str) -> list[str]:
        return ["rpm", "-q", "--qf", "%{VERSION}", package]

    def package_version(self, package: str, tool_path: ToolPath) -> str | None:
        if not tool_path.which("rpm"):
            return None
        result = self._run(self.version_command(package), timeout=30, env=tool_path.env())
        if not result.get("ok"):
            return None
        return self.parse_version(result.get("stdout", ""))


class Pacman(PackageManager):
    family = OsFamily.ARCH
    binary = "pacman"

    def install_command(self, packages: list[str], *, cask: bool = False) -> list[str]:
        return ["pacman", "-S", "--noconfirm", *packages]

    def version_command(self, package: str) -> list[str]:
        return ["pacman", "-Q", package]

    def parse_version(self, stdout: str) -> str | None:
        parts = stdout.strip().split()
        return parts[1] if len(parts) > 1 else None


class UnknownPlatform(PackageManager):
    """Fallback for unrecognized hosts: never runs anything."""

    family = OsFamily.UNKNOWN
    binary = ""
    needs_sudo = False
    can_install = False

    def install_command(self, packages: list[str], *, cask: bool = False) -> list[str]:
        return []

    def version_command(self, package: str) -> list[str]:
        return []

    def install(
        self,
        packages: list[str],
        tool_path: ToolPath,
        *,
        cask: bool = False,
        timeout: int = 1800,
    ) -> dict[str, Any]:
        return {
            "ok": False,
            "manual": True,
            "error": f"No supported package manager; install {', '.join(packages)} manually",
        }

    def package_version(self, package: str, tool_path: ToolPath) -> str | None:
        return None

    def bootstrap(self, tool_path: ToolPath) -> tuple[ToolPath, StepResult]:
        return tool_path, StepResult.warn(
            "package-manager",
            "Unrecognized OS: tools must be installed manually",
            label="Package manager",
        )


_STRATEGIES: dict[OsFamily, type[PackageManager]] = {
    OsFamily.MACOS: Homebrew,
    OsFamily.DEBIAN: Apt,
    OsFamily.FEDORA: Dnf,
    OsFamily.ARCH: Pacman,
    OsFamily.UNKNOWN: UnknownPlatform,
}


def get_package_manager(family: OsFamily, runner: Runner = run_command) -> PackageManager:
    """Strategy for ``family``."""
    return _STRATEGIES[family](runner=runner)
