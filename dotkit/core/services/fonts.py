"""
Hack Nerd Font — install and lookup.

Linux tries three sources in order and stops at the first that yields
the Regular face: direct TTF downloads, the release zip, then a sparse
checkout of the upstream repo. macOS uses the Homebrew cask.
"""

from __future__ import annotations

import logging
import shutil
import zipfile
from pathlib import Path

from dotkit.core.data.catalog import (
    FONT_DIRS,
    HACK_FONT,
    HACK_FONT_CASK,
    HACK_FONT_FILES,
    HACK_FONT_SUBDIRS,
    HACK_FONT_TAP,
    HACK_FONT_ZIP_URL,
    NERD_FONTS_REPO,
)
from dotkit.core.models.resource import HostPlatform, OsFamily
from dotkit.core.models.step import StepResult
from dotkit.core.persistence.install_log import InstallLog
from dotkit.core.services.package_managers import Homebrew, PackageManager
from dotkit.core.services.subprocess_runner import Runner
from dotkit.core.services.toolpath import ToolPath

logger = logging.getLogger(__name__)

LABEL = HACK_FONT.name


def font_dirs(system: str, home: Path) -> list[Path]:
    """Font directories for ``system`` (empty for unknown systems)."""
    return [
        Path(d) if d.startswith("/") else home / d
        for d in FONT_DIRS.get(system, [])
    ]


def find_font_files(system: str, home: Path, pattern: str | None = None) -> list[Path]:
    """Font files matching the Hack pattern, across every font dir."""
    pattern = pattern or HACK_FONT.pattern or "*Hack*"
    found: list[Path] = []
    for directory in font_dirs(system, home):
        if directory.is_dir():
            found.extend(sorted(p for p in directory.glob(pattern) if p.is_file()))
    return found


class FontInstaller:
    """Installs the Hack Nerd Font for one run."""

    def __init__(
        self,
        platform: HostPlatform,
        pm: PackageManager,
        runner: Runner,
        log: InstallLog,
        home: Path,
        tmp: Path,
    ):
        self.platform = platform
        self.pm = pm
        self._run = runner
        self._log = log
        self.home = home
        self.tmp = tmp

    def install(self, tool_path: ToolPath) -> StepResult:
        if self.platform.family is OsFamily.MACOS:
            return self._install_macos(tool_path)
        if self.platform.family.is_linux:
            return self._install_linux(tool_path)
        return StepResult.warn(
            HACK_FONT.id,
            self.pm.manual_instructions(LABEL, HACK_FONT.manual_url),
            label=LABEL,
        )

    # ── macOS ──────────────────────────────────────────────────

    def _install_macos(self, tool_path: ToolPath) -> StepResult:
        if not isinstance(self.pm, Homebrew) or not tool_path.which("brew"):
            return StepResult.warn(
                HACK_FONT.id,
                self.pm.manual_instructions(LABEL, HACK_FONT.manual_url),
                label=LABEL,
            )

        if self.pm.cask_installed(HACK_FONT_CASK, tool_path):
            return StepResult.skip(HACK_FONT.id, f"{LABEL} is already installed", label=LABEL)

        self.pm.tap(HACK_FONT_TAP, tool_path)
        result = self.pm.install([HACK_FONT_CASK], tool_path, cask=True)
        self._log.record(
            "font", resource=HACK_FONT.id,
            status="ok" if result.get("ok") else "failed",
            message=result.get("error", ""), method="brew-cask",
        )
        if result.get("ok"):
            return StepResult.success(HACK_FONT.id, f"{LABEL} installed", label=LABEL)
        return StepResult.warn(
            HACK_FONT.id,
            f"Failed to install {LABEL}: {result.get('error', 'unknown error')}",
            label=LABEL,
        )

    # ── Linux ──────────────────────────────────────────────────

    def _install_linux(self, tool_path: ToolPath) -> StepResult:
        if find_font_files("Linux", self.home):
            return StepResult.skip(HACK_FONT.id, f"{LABEL} is already installed", label=LABEL)

        font_dir = font_dirs("Linux", self.home)[0]
        try:
            font_dir.mkdir(parents=True, exist_ok=True)
        except OSError as e:
            return StepResult.warn(
                HACK_FONT.id, f"Cannot create {font_dir}: {e}", label=LABEL,
            )

        method = None
        for name, attempt in (
            ("direct", self._download_direct),
            ("zip", self._download_zip),
            ("git", self._sparse_checkout),
        ):
            logger.info("Hack font: trying %s download", name)
            if attempt(font_dir, tool_path):
                method = name
                break
            logger.info("Hack font: %s download failed", name)

        if method is None:
            self._log.record(
                "font", resource=HACK_FONT.id, status="failed",
                message="All download methods failed", font_dir=font_dir,
            )
            return StepResult.warn(
                HACK_FONT.id,
                f"Failed to download {LABEL}. Install it manually from "
                f"{HACK_FONT.manual_url}",
                label=LABEL,
            )

        self._log.record("font", resource=HACK_FONT.id, method=method, font_dir=font_dir)

        if tool_path.which("fc-cache"):
            self._run(["fc-cache", "-f"], timeout=300, env=tool_path.env())
        else:
            logger.info("fc-cache not found; font cache not refreshed")

        return StepResult.success(
            HACK_FONT.id, f"{LABEL} installed ({method})", label=LABEL,
            details={"method": method, "font_dir": str(font_dir)},
        )

    def _download_direct(self, font_dir: Path, tool_path: ToolPath) -> bool:
        if not tool_path.which("curl"):
            return False
        for filename, url, required in HACK_FONT_FILES:
            dest = font_dir / filename
            result = self._run(
                ["curl", "-fLo", str(dest), url], timeout=300, env=tool_path.env(),
            )
            if not result.get("ok"):
                if dest.exists():
                    dest.unlink()
                if required:
                    return False
        return (font_dir / HACK_FONT_FILES[0][0]).is_file()

    def _download_zip(self, font_dir: Path, tool_path: ToolPath) -> bool:
        if not tool_path.which("curl"):
            return False
        archive = self.tmp / "Hack.zip"
        result = self._run(
            ["curl", "-fLo", str(archive), HACK_FONT_ZIP_URL],
            timeout=600, env=tool_path.env(),
        )
        if not result.get("ok") or not archive.is_file():
            return False

        extracted = 0
        try:
            with zipfile.ZipFile(archive) as zf:
                for member in zf.namelist():
                    name = Path(member).name
                    if not name.endswith(".ttf") or "Hack" not in name:
                        continue
                    with zf.open(member) as src, (font_dir / name).open("wb") as dst:
                        shutil.copyfileobj(src, dst)
                    extracted += 1
        except (zipfile.BadZipFile, OSError) as e:
            logger.warning("Hack font zip extraction failed: %s", e)
            return False
        finally:
            archive.unlink(missing_ok=True)
        return extracted > 0

    def _sparse_checkout(self, font_dir: Path, tool_path: ToolPath) -> bool:
        if not tool_path.which("git"):
            return False
        checkout = self.tmp / "nerd-fonts"
        env = tool_path.env()
        clone = self._run(
            ["git", "clone", "--depth", "1", "--filter=blob:none", "--sparse",
             NERD_FONTS_REPO, str(checkout)],
            timeout=1800, env=env,
        )
        if not clone.get("ok"):
            return False
        sparse = self._run(
            ["git", "-C", str(checkout), "sparse-checkout", "set", "patched-fonts/Hack"],
            timeout=1800, env=env,
        )
        if not sparse.get("ok"):
            return False

        copied = 0
        try:
            for subdir in HACK_FONT_SUBDIRS:
                for ttf in sorted((checkout / "patched-fonts" / "Hack" / subdir).glob("*.ttf")):
                    shutil.copy2(ttf, font_dir / ttf.name)
                    copied += 1
        except OSError as e:
            logger.warning("Copying Hack font files failed: %s", e)
            return False
        finally:
            shutil.rmtree(checkout, ignore_errors=True)
        return copied > 0
