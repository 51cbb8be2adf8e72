"""
Verifier — read-only audit of an installed host.

Nothing here creates, moves or removes files. Every check is independent
and non-fatal; a missing resource becomes a ``CheckResult`` with status
``missing`` and the run continues to the summary.

Tmux is handled in isolation: its version comes from the package
database first, and when the binary itself has to be invoked it runs
with ``TMUX=""`` and ``TMUX_TMPDIR=/dev/null`` so no server socket can
be created. With the skip toggle on, tmux is never invoked at all.
"""

from __future__ import annotations

import logging
import os
from pathlib import Path

from dotkit.core.config.loader import Settings
from dotkit.core.data.catalog import (
    COMMON_LOCATIONS,
    HACK_FONT,
    OH_MY_ZSH,
    PATH_DIRS,
    PATH_FIX_HELPER,
    RESTART_HINT_TOOLS,
    SMOKE_TESTS,
    SYMLINK_GROUP_LABELS,
    SYMLINKS,
    TMUX_PLUGIN_MARKERS,
    TPM,
    VERIFY_TOOLS,
    ZSH_PLUGINS,
)
from dotkit.core.models.report import CheckResult, NoteLevel, VerifyReport
from dotkit.core.models.resource import HostPlatform, ManagedResource, ResourceKind
from dotkit.core.observability.reporter import Reporter
from dotkit.core.services.backup import list_backup_runs
from dotkit.core.services.fonts import find_font_files, font_dirs
from dotkit.core.services.package_managers import get_package_manager
from dotkit.core.services.subprocess_runner import Runner, run_command
from dotkit.core.services.tool_version import version_output
from dotkit.core.services.toolpath import ToolPath

logger = logging.getLogger(__name__)

TMUX_ISOLATION_ENV = {"TMUX": "", "TMUX_TMPDIR": "/dev/null"}


def needs_path_fix(settings: Settings, env: dict[str, str] | None = None) -> bool:
    """True when ``~/.local/bin`` is off PATH and the container helper exists."""
    env = os.environ if env is None else env
    path_dirs = env.get("PATH", "").split(os.pathsep)
    local_bin = str(settings.home / ".local" / "bin")
    return local_bin not in path_dirs and (settings.dotfiles / PATH_FIX_HELPER).is_file()


def _count_entries(directory: Path) -> int | None:
    """Entry count of ``directory``, or None when it cannot be listed."""
    try:
        return sum(1 for _ in directory.iterdir())
    except OSError as e:
        logger.warning("Cannot list %s: %s", directory, e)
        return None


def _read_first_line(path: Path) -> str | None:
    try:
        text = path.read_text(encoding="utf-8", errors="replace").strip()
    except OSError:
        return None
    return text.splitlines()[0] if text else None


class Verifier:
    """One read-only verification pass."""

    def __init__(
        self,
        settings: Settings,
        platform: HostPlatform,
        *,
        runner: Runner = run_command,
        reporter: Reporter | None = None,
        tool_path: ToolPath | None = None,
        skip_tmux: bool | None = None,
    ):
        self.settings = settings
        self.platform = platform
        self.home = settings.home
        self._run = runner
        self._reporter = reporter or Reporter()
        # Only what the shell would find; user bin dirs off PATH count as missing.
        self.tool_path = tool_path or ToolPath.from_environment(
            settings.home, settings.extra_path, user_dirs=False,
        )
        self.skip_tmux = settings.skip_tmux_checks if skip_tmux is None else skip_tmux
        self.pm = get_package_manager(platform.family, runner)
        self.report = VerifyReport(os_family=platform.family, skipped_tmux=self.skip_tmux)

    def run(self) -> VerifyReport:
        self.check_tools()
        self.check_path()
        self.check_symlinks()
        self.check_oh_my_zsh()
        if self.skip_tmux:
            self._reporter.warning("Skipping tmux checks as requested")
        else:
            self.check_tpm()
        self.check_fonts()
        self.check_backups()
        self.summarize()
        return self.report

    # ── Output helpers ─────────────────────────────────────────

    def _found(self, result: CheckResult, text: str) -> CheckResult:
        result.status = "installed"
        result.note(text, "success")
        self._reporter.success(text)
        return self.report.add(result)

    def _missing(self, result: CheckResult, text: str) -> CheckResult:
        result.status = "missing"
        result.note(text, "error")
        self._reporter.error(text)
        return self.report.add(result)

    def _note(self, result: CheckResult, text: str, level: NoteLevel = "info") -> None:
        result.note(text, level)
        getattr(self._reporter, level)(text)

    # ── 1. Core tools ──────────────────────────────────────────

    def _gem_user_bin(self) -> Path | None:
        if not self.tool_path.which("ruby"):
            return None
        result = self._run(
            ["ruby", "-e", "puts Gem.user_dir"], timeout=10, env=self.tool_path.env(),
        )
        out = (result.get("stdout") or "").strip()
        if not result.get("ok") or not out:
            return None
        return Path(out.splitlines()[0]) / "bin"

    def _common_locations(self) -> list[Path]:
        dirs = [Path(d) if d.startswith("/") else self.home / d for d in COMMON_LOCATIONS]
        gem_bin = self._gem_user_bin()
        if gem_bin is not None:
            dirs.insert(-1, gem_bin)
        return dirs

    def _tool_version(self, tool: ManagedResource) -> str | None:
        if tool.id == "tmux":
            version = self.pm.package_version("tmux", self.tool_path)
            if version:
                return f"tmux {version}"
            return version_output("tmux", self.tool_path, self._run, TMUX_ISOLATION_ENV)
        return version_output(tool.id, self.tool_path, self._run)

    def _smoke_test(self, tool: ManagedResource, result: CheckResult) -> None:
        test = SMOKE_TESTS.get(tool.id)
        if not test:
            return
        if "file" in test:
            ok = (self.home / test["file"]).is_file()
            label = f"{tool.name} configuration file"
            text = f"{label} exists" if ok else f"{label} not found"
        else:
            outcome = self._run(
                test["command"], timeout=15, env=self.tool_path.env(), input=test.get("input"),
            )
            ok = bool(outcome.get("ok"))
            text = f"{tool.id} is functioning properly" if ok else f"{tool.id} has issues running"
        result.details["smoke_test"] = ok
        self._note(result, text, "success" if ok else "error")

    def check_tool(self, tool: ManagedResource) -> CheckResult:
        self._reporter.section(f"Checking {tool.name}")
        result = CheckResult(
            resource=tool.id, name=tool.name, kind=tool.kind, group=tool.group,
        )
        command = tool.command or tool.id
        path = self.tool_path.which(command)

        if path:
            result.details["path"] = path
            self._found(result, f"{tool.name} is installed")
            self._note(result, f"Path: {path}")
            version = self._tool_version(tool)
            if version:
                result.details["version"] = version
                self._note(result, f"Version: {version}")
            self._smoke_test(tool, result)
            return result

        self._missing(result, f"{tool.name} is not installed or not in PATH")
        for directory in self._common_locations():
            candidate = directory / command
            if candidate.is_file() and os.access(candidate, os.X_OK):
                result.details["found_at"] = str(candidate)
                self._note(result, f"Found at: {candidate} (not in PATH)", "warning")
                break
        else:
            self._note(result, "Not found in common locations", "error")
        if tool.id in RESTART_HINT_TOOLS:
            self._note(
                result,
                "Tip: source your shell configuration or restart your terminal after installation",
            )
        return result

    def check_tools(self) -> None:
        self._reporter.header("Checking Core Tools")
        for tool in VERIFY_TOOLS:
            if tool.id == "tmux" and self.skip_tmux:
                continue
            self.check_tool(tool)

    # ── 2. PATH ────────────────────────────────────────────────

    def check_path(self) -> None:
        self._reporter.header("Checking PATH Configuration")
        env_path = os.environ.get("PATH", "").split(os.pathsep)
        entries = []
        for rel in PATH_DIRS:
            directory = self.home / rel
            on_path = str(directory) in env_path
            exists = directory.is_dir()
            files = _count_entries(directory) if exists else None
            entries.append({
                "dir": str(directory), "on_path": on_path,
                "exists": exists, "files": files,
            })
            if on_path:
                self._reporter.success(f"{directory} is in PATH")
            else:
                self._reporter.error(f"{directory} is NOT in PATH")
            if not exists:
                self._reporter.warning("Directory does not exist")
            elif files is None:
                self._reporter.warning("Directory exists but cannot be read")
            else:
                self._reporter.info(f"Directory exists with {files} files")
        self.report.info["path"] = entries

    # ── 3. Symlinks ────────────────────────────────────────────

    def check_symlink(self, resource: ManagedResource) -> CheckResult:
        source = resource.source_path(self.settings.dotfiles)
        target = resource.target_path(self.home)
        result = CheckResult(
            resource=resource.id, name=resource.name, kind=resource.kind, group=resource.group,
            details={"source": str(source), "target": str(target)},
        )
        if target.is_symlink():
            current = os.readlink(target)
            result.details["link"] = current
            if current == str(source):
                return self._found(result, f"Symlink exists: {target} -> {source}")
            self._missing(result, f"Symlink missing or incorrect: {target}")
            self._note(result, f"Current link: {current}")
            return result

        self._missing(result, f"Symlink missing or incorrect: {target}")
        if target.exists():
            self._note(result, "Exists as a regular file/directory")
        else:
            self._note(result, "File does not exist")
        return result

    def check_symlinks(self) -> None:
        self._reporter.header("Checking Configuration Symlinks")
        group = None
        for resource in SYMLINKS:
            if resource.group != group:
                group = resource.group
                label = SYMLINK_GROUP_LABELS.get(group, group)
                self._reporter.section(f"Checking {label} configuration")
            self.check_symlink(resource)

    # ── 4. Oh My Zsh ───────────────────────────────────────────

    def _plugin_commit(self, plugin_dir: Path) -> str | None:
        return _read_first_line(plugin_dir / ".git" / "refs" / "heads" / "master")

    def check_oh_my_zsh(self) -> None:
        self._reporter.header("Checking Oh My Zsh Installation")
        omz_dir = self.home / (OH_MY_ZSH.path or ".oh-my-zsh")
        result = CheckResult(
            resource=OH_MY_ZSH.id, name=OH_MY_ZSH.name, kind=OH_MY_ZSH.kind,
            group=OH_MY_ZSH.group, details={"path": str(omz_dir)},
        )
        if not omz_dir.is_dir():
            self._missing(result, "Oh My Zsh is not installed")
        else:
            self._found(result, "Oh My Zsh is installed")
            version = _read_first_line(omz_dir / "VERSION")
            if version:
                result.details["version"] = version
                self._note(result, f"Oh My Zsh version: {version}")

        self._reporter.section("Checking ZSH plugins")
        for plugin in ZSH_PLUGINS:
            plugin_dir = plugin.plugin_path(self.home, self.settings.zsh_custom_dir)
            check = CheckResult(
                resource=plugin.id, name=plugin.name, kind=plugin.kind, group=plugin.group,
                details={"path": str(plugin_dir)},
            )
            if not plugin_dir.is_dir():
                self._missing(check, f"{plugin.name} plugin is not installed")
                continue
            self._found(check, f"{plugin.name} plugin is installed")
            commit = self._plugin_commit(plugin_dir)
            if commit:
                check.details["commit"] = commit
                self._note(check, f"Version/Commit: {commit}")

    # ── 5. TPM ─────────────────────────────────────────────────

    def _plugin_markers(self, plugin_dir: Path) -> list[str]:
        return [m for m in TMUX_PLUGIN_MARKERS if (plugin_dir / m).exists()]

    def check_tpm(self) -> None:
        self._reporter.header("Checking Tmux Plugin Manager")
        tpm_dir = TPM.plugin_path(self.home, self.settings.zsh_custom_dir)
        result = CheckResult(
            resource=TPM.id, name=TPM.name, kind=TPM.kind, group=TPM.group,
            details={"path": str(tpm_dir)},
        )
        if not tpm_dir.is_dir() or not self._plugin_markers(tpm_dir):
            self._missing(result, "Tmux Plugin Manager is not installed")
            return

        self._found(result, "Tmux Plugin Manager is installed")
        commit = self._plugin_commit(tpm_dir)
        if commit:
            result.details["commit"] = commit[:10]
            self._note(result, f"TPM version/commit: {commit[:10]}")

        plugins: dict[str, list[str]] = {}
        try:
            siblings = sorted(tpm_dir.parent.iterdir())
        except OSError as e:
            logger.warning("Cannot list tmux plugins in %s: %s", tpm_dir.parent, e)
            siblings = []
        for entry in siblings:
            if entry.is_dir() and entry.name != tpm_dir.name:
                markers = self._plugin_markers(entry)
                if markers:
                    plugins[entry.name] = markers
        result.details["plugins"] = plugins
        if plugins:
            self._note(result, f"Installed plugins: {len(plugins)}")
            for name in plugins:
                self._note(result, f"- {name}")
        else:
            self._note(result, "No plugins installed yet", "warning")

    # ── 6. Fonts ───────────────────────────────────────────────

    def check_fonts(self) -> None:
        self._reporter.header("Checking Hack Nerd Font Installation")
        dirs = font_dirs(self.platform.system, self.home)
        if not dirs:
            self.report.info["fonts"] = "unknown"
            self._reporter.warning("Could not determine font installation status on this OS")
            return

        result = CheckResult(
            resource=HACK_FONT.id, name=HACK_FONT.name, kind=ResourceKind.FONT,
        )

        files = find_font_files(self.platform.system, self.home, HACK_FONT.pattern)
        result.details["dirs"] = [str(d) for d in dirs]
        if files:
            result.details["files"] = [str(f) for f in files[:2]]
            self._found(result, "Hack Nerd Font is installed")
            for f in files[:2]:
                self._note(result, str(f))
        else:
            self._missing(result, "Hack Nerd Font does not appear to be installed")

    # ── 7. Backups ─────────────────────────────────────────────

    def check_backups(self) -> None:
        self._reporter.header("Checking for Backup Directory")
        runs = list_backup_runs(self.settings.backups)
        self.report.info["backups"] = runs
        if not runs:
            self._reporter.warning(
                "No backup directory found (this is normal if no files needed backup)"
            )
            return
        self._reporter.success(f"Backup directory exists: {self.settings.backups}")
        for run in runs[:5]:
            if run["files"] is None:
                self._reporter.warning(f"{run['name']}: cannot be read")
            else:
                self._reporter.info(f"{run['name']}: {run['files']} files")
        if len(runs) > 5:
            self._reporter.info("... and more")

    # ── Summary ────────────────────────────────────────────────

    def summarize(self) -> None:
        self._reporter.header("Verification Summary")
        self._reporter.section("Core tools status:")
        for result in self.report.by_kind(ResourceKind.BINARY):
            if result.installed:
                self._reporter.success(f"{result.name}: INSTALLED")
            else:
                self._reporter.error(f"{result.name}: MISSING")
        missing = self.report.missing
        if missing:
            self._reporter.warning(
                f"{len(missing)} of {len(self.report.results)} checks missing: "
                + ", ".join(r.resource for r in missing)
            )
        else:
            self._reporter.success("All checked components are installed")
