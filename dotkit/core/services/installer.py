"""
Installer — brings a host to the desired state.

Ordered phases::

    init      backup root, install.log, package-manager bootstrap
    tools     nvim, tmux, kitty, ruby, colorls, zoxide, fzf, thefuck
    font      Hack Nerd Font
    zsh       Oh My Zsh, config symlinks, plugins
    nvim      packer.nvim, config symlinks, headless PackerSync
    kitty     config symlinks
    tmux      config symlink, TPM, plugin install
    colorls   config symlink

Every phase is idempotent: satisfied resources are skipped and re-running
converges to the same state. Tool and plugin failures are best-effort
warnings. Backup and link failures raise ``InstallAbort`` subclasses and
stop the run.
"""

from __future__ import annotations

import logging
import tempfile
from datetime import datetime
from pathlib import Path
from typing import Callable

from dotkit.core.config.loader import Settings
from dotkit.core.data.catalog import (
    INSTALL_LOG_NAME,
    INSTALL_ORDER,
    OH_MY_ZSH,
    OH_MY_ZSH_INSTALLER,
    PACKER,
    PACKER_SYNC_COMMAND,
    SYMLINK_GROUP_LABELS,
    TOOL_RECIPES,
    TPM,
    ZSH_PLUGINS,
    symlinks_for,
)
from dotkit.core.errors import InstallAbort
from dotkit.core.models.resource import HostPlatform, ManagedResource
from dotkit.core.models.step import InstallReport, StepResult
from dotkit.core.observability.reporter import Reporter
from dotkit.core.persistence.install_log import InstallLog
from dotkit.core.services.backup import BackupManager, create_backup_root
from dotkit.core.services.fonts import FontInstaller
from dotkit.core.services.linker import SymlinkManager
from dotkit.core.services.package_managers import PackageManager, get_package_manager
from dotkit.core.services.steps import execute_steps, select_steps
from dotkit.core.services.subprocess_runner import Runner, run_command
from dotkit.core.services.tool_version import get_tool_version
from dotkit.core.services.toolpath import ToolPath

logger = logging.getLogger(__name__)

Confirm = Callable[[str], bool]


def _always_yes(question: str) -> bool:
    return True


class Installer:
    """One installer run against one host."""

    def __init__(
        self,
        settings: Settings,
        platform: HostPlatform,
        *,
        runner: Runner = run_command,
        reporter: Reporter | None = None,
        confirm: Confirm = _always_yes,
        tool_path: ToolPath | None = None,
        now: datetime | None = None,
    ):
        self.settings = settings
        self.platform = platform
        self.home = settings.home
        self._run = runner
        self._reporter = reporter or Reporter()
        self._confirm = confirm
        self._now = now
        self.tool_path = tool_path or ToolPath.from_environment(
            settings.home, settings.extra_path,
        )
        self.pm: PackageManager = get_package_manager(platform.family, runner)
        self.report = InstallReport(os_family=platform.family)

        # Set in run()
        self.log: InstallLog | None = None
        self.backups: BackupManager | None = None
        self.links: SymlinkManager | None = None
        self._placeholders: dict[str, str] = {}

    # ── Entry point ────────────────────────────────────────────

    def run(self) -> InstallReport:
        """Execute every phase in order.

        Raises:
            BackupError: A pre-existing path could not be moved aside.
            LinkError: A configuration symlink could not be created.
        """
        root = create_backup_root(self.settings.backups, self._now)
        self.log = InstallLog(root / INSTALL_LOG_NAME)
        self.backups = BackupManager(self.home, root, self.log)
        self.links = SymlinkManager(self.home, self.settings.dotfiles, self.backups, self.log)
        self.report.backup_root = str(root)
        self.report.log_path = str(self.log.path)

        self.log.record(
            "run_started",
            os_family=self.platform.family.value,
            system=self.platform.system,
            distro=self.platform.distro,
            home=self.home,
            dotfiles_dir=self.settings.dotfiles,
        )
        detected = self.platform.family.value
        if self.platform.distro:
            detected += f" ({self.platform.distro})"
        self._reporter.info(f"Detected OS: {detected}")
        self._reporter.info(f"Backups: {root}")

        try:
            with tempfile.TemporaryDirectory(prefix="dotkit-") as tmp:
                self._placeholders = {"home": str(self.home), "tmp": tmp}
                self._phase_init()
                self._phase_tools()
                self._phase_font(Path(tmp))
                self._phase_zsh()
                self._phase_nvim()
                self._phase_kitty()
                self._phase_tmux()
                self._phase_colorls()
        except InstallAbort as e:
            self.log.record("run_aborted", status="error", message=str(e))
            raise
        finally:
            self.report.backed_up = [str(p) for p in self.backups.backed_up]
            self.report.removed_links = [str(p) for p in self.backups.removed_links]
            self.report.linked = [str(p) for p in self.links.linked]

        self.log.record(
            "run_finished",
            succeeded=self.report.succeeded,
            warnings=len(self.report.warnings),
        )
        return self.report

    # ── Helpers ────────────────────────────────────────────────

    def _add(self, step: StepResult) -> StepResult:
        """Record a step outcome and narrate it."""
        self.report.add(step)
        text = step.message or step.label or step.resource
        if step.ok:
            self._reporter.success(text)
        elif step.status == "warning":
            self._reporter.warning(text)
        else:
            self._reporter.error(text)
        if step.status != "skipped":
            self.log.record(
                "result", resource=step.resource, status=step.status, message=step.message,
            )
        return step

    def _execute(self, steps: list[dict], resource: str, extra: dict[str, str] | None = None) -> dict:
        return execute_steps(
            steps,
            pm=self.pm,
            tool_path=self.tool_path,
            runner=self._run,
            log=self.log,
            placeholders={**self._placeholders, **(extra or {})},
            resource=resource,
        )

    def _manual(self, resource: str, label: str, url: str = "") -> StepResult:
        return self._add(StepResult.warn(
            resource, self.pm.manual_instructions(label, url), label=label,
        ))

    def _link_group(self, group: str) -> None:
        resources = symlinks_for(group)
        label = SYMLINK_GROUP_LABELS.get(group, group)
        self._reporter.section(f"Linking {label} configuration")
        for resource in resources:
            target = self.links.link_resource(resource)
            self._add(StepResult.success(
                resource.id, f"Linked {target}", label=resource.name,
            ))

    def _clone(self, resource: ManagedResource, dest: Path, *, shallow: bool = False) -> StepResult:
        """Clone a plugin repo unless its directory already exists."""
        if dest.is_dir():
            return self._add(StepResult.skip(
                resource.id, f"{resource.name} is already installed", label=resource.name,
            ))
        if not self.tool_path.which("git"):
            return self._add(StepResult.warn(
                resource.id, f"git not found; cannot install {resource.name}",
                label=resource.name,
            ))

        cmd = ["git", "clone"]
        if shallow:
            cmd += ["--depth", "1"]
        cmd += [resource.repo, str(dest)]
        try:
            dest.parent.mkdir(parents=True, exist_ok=True)
        except OSError as e:
            return self._add(StepResult.warn(
                resource.id, f"Cannot create {dest.parent}: {e}", label=resource.name,
            ))
        result = self._run(cmd, timeout=600, env=self.tool_path.env())
        self.log.record(
            "clone", resource=resource.id,
            status="ok" if result.get("ok") else "failed",
            message=result.get("error", ""), repo=resource.repo, path=dest,
        )
        if result.get("ok"):
            return self._add(StepResult.success(
                resource.id, f"{resource.name} installed", label=resource.name,
            ))
        return self._add(StepResult.warn(
            resource.id,
            f"Failed to install {resource.name}: {result.get('error', 'unknown error')}",
            label=resource.name,
        ))

    # ── Phase: init ────────────────────────────────────────────

    def _phase_init(self) -> None:
        self._reporter.header("Preparing package manager")
        self.tool_path, step = self.pm.bootstrap(self.tool_path)
        self._add(step)

    # ── Phase: tools ───────────────────────────────────────────

    def _phase_tools(self) -> None:
        self._reporter.header("Installing tools")
        for tool_id in INSTALL_ORDER:
            self._install_tool(tool_id, TOOL_RECIPES[tool_id])

    def _probe_bin_dir(self, recipe: dict) -> None:
        """Extend the tool path with a directory reported by a probe command."""
        probe = recipe.get("bin_dir_probe")
        if not probe or not self.tool_path.which(probe["command"][0]):
            return
        result = self._run(probe["command"], timeout=30, env=self.tool_path.env())
        out = (result.get("stdout") or "").strip()
        if result.get("ok") and out:
            directory = Path(out.splitlines()[0]) / probe.get("suffix", "")
            if not self.tool_path.contains(directory):
                logger.info("Adding %s to the tool path", directory)
                self.tool_path = self.tool_path.with_dirs(directory)

    def _pinned_version(self, tool_id: str, recipe: dict) -> str | None:
        if not recipe.get("pin_version"):
            return None
        if tool_id != "nvim" or not self.settings.neovim_version:
            return None
        return self.settings.neovim_version.lstrip("v")

    def _is_satisfied(self, tool_id: str, recipe: dict) -> tuple[bool, str]:
        if not self.tool_path.which(recipe["cli"]):
            return False, f"{recipe['label']} is not installed"
        pinned = self._pinned_version(tool_id, recipe)
        if pinned is None:
            return True, f"{recipe['label']} is already installed"
        found = get_tool_version(tool_id, self.tool_path, self._run)
        if found == pinned:
            return True, f"{recipe['label']} v{pinned} is already installed"
        return False, f"{recipe['label']} version {found or 'unknown'} (expected v{pinned})"

    def _locate_requirement(self, tool_id: str, requires: dict) -> str | None:
        found = self.tool_path.first(requires["cli"])
        if found:
            return found
        steps = select_steps(requires.get("install"), self.platform.family)
        if not steps:
            return None
        self._reporter.info(f"Installing {requires['label']} (needed by {tool_id})")
        self._execute(steps, resource=tool_id)
        return self.tool_path.first(requires["cli"])

    def _install_tool(self, tool_id: str, recipe: dict) -> StepResult:
        label = recipe["label"]
        self._reporter.section(f"Checking {label}")
        self._probe_bin_dir(recipe)

        satisfied, reason = self._is_satisfied(tool_id, recipe)
        if satisfied:
            return self._add(StepResult.skip(tool_id, reason, label=label))

        if not self.pm.can_install:
            return self._manual(tool_id, label, recipe.get("manual_url", ""))

        steps = select_steps(recipe.get("install"), self.platform.family)
        if not steps:
            return self._manual(tool_id, label, recipe.get("manual_url", ""))

        self._reporter.info(reason)
        extra: dict[str, str] = {}
        requires = recipe.get("requires")
        if requires:
            found = self._locate_requirement(tool_id, requires)
            if not found:
                return self._add(StepResult.warn(
                    tool_id,
                    f"{requires['label']} is not available; cannot install {label}",
                    label=label,
                ))
            extra["requires"] = found

        result = self._execute(steps, resource=tool_id, extra=extra)
        self._probe_bin_dir(recipe)

        if not self.tool_path.which(recipe["cli"]):
            fallback = select_steps(recipe.get("fallback"), self.platform.family)
            if fallback:
                self._reporter.info(f"Trying alternative installation for {label}")
                result = self._execute(fallback, resource=tool_id, extra=extra)
                self._probe_bin_dir(recipe)

        if not self.tool_path.which(recipe["cli"]):
            error = result.get("error") or "executable not found after installation"
            return self._add(StepResult.warn(
                tool_id, f"Failed to install {label}: {error}", label=label,
            ))

        pinned = self._pinned_version(tool_id, recipe)
        if pinned:
            found = get_tool_version(tool_id, self.tool_path, self._run)
            if found != pinned:
                return self._add(StepResult.warn(
                    tool_id,
                    f"{label} installed with version {found or 'unknown'} (expected v{pinned})",
                    label=label,
                ))
        return self._add(StepResult.success(tool_id, f"{label} installed", label=label))

    # ── Phase: font ────────────────────────────────────────────

    def _phase_font(self, tmp: Path) -> None:
        self._reporter.header("Installing Hack Nerd Font")
        fonts = FontInstaller(self.platform, self.pm, self._run, self.log, self.home, tmp)
        self._add(fonts.install(self.tool_path))

    # ── Phase: zsh ─────────────────────────────────────────────

    def _install_oh_my_zsh(self) -> StepResult:
        dest = self.home / (OH_MY_ZSH.path or ".oh-my-zsh")
        if dest.is_dir():
            return self._add(StepResult.skip(
                OH_MY_ZSH.id, "Oh My Zsh is already installed", label=OH_MY_ZSH.name,
            ))
        if not self.pm.can_install:
            return self._manual(OH_MY_ZSH.id, OH_MY_ZSH.name, OH_MY_ZSH.manual_url)
        if not self._confirm("Oh My Zsh is not installed. Install it now?"):
            self.log.record("prompt", resource=OH_MY_ZSH.id, status="skipped", message="Declined")
            return self._add(StepResult.warn(
                OH_MY_ZSH.id, "Skipping Oh My Zsh installation", label=OH_MY_ZSH.name,
            ))
        if not self.tool_path.which("curl"):
            return self._manual(OH_MY_ZSH.id, OH_MY_ZSH.name, OH_MY_ZSH.manual_url)

        result = self._run(
            ["sh", "-c", f'sh -c "$(curl -fsSL {OH_MY_ZSH_INSTALLER})" "" --unattended'],
            timeout=600,
            env=self.tool_path.env(),
        )
        self.log.record(
            "install", resource=OH_MY_ZSH.id,
            status="ok" if dest.is_dir() else "failed",
            message=result.get("error", ""),
        )
        if dest.is_dir():
            return self._add(StepResult.success(
                OH_MY_ZSH.id, "Oh My Zsh installed", label=OH_MY_ZSH.name,
            ))
        return self._add(StepResult.warn(
            OH_MY_ZSH.id, "Failed to install Oh My Zsh", label=OH_MY_ZSH.name,
        ))

    def _phase_zsh(self) -> None:
        self._reporter.header("Setting up ZSH")
        self._install_oh_my_zsh()
        self._link_group("zsh")
        for plugin in ZSH_PLUGINS:
            self._clone(plugin, plugin.plugin_path(self.home, self.settings.zsh_custom_dir))

    # ── Phase: nvim ────────────────────────────────────────────

    def _packer_sync(self) -> bool:
        result = self._run(PACKER_SYNC_COMMAND, timeout=1800, env=self.tool_path.env())
        self.log.record(
            "packer_sync", resource=PACKER.id,
            status="ok" if result.get("ok") else "failed",
            message=result.get("error", ""),
        )
        return bool(result.get("ok"))

    def _phase_nvim(self) -> None:
        self._reporter.header("Setting up Neovim")
        packer_dir = PACKER.plugin_path(self.home, self.settings.zsh_custom_dir)
        self._clone(PACKER, packer_dir, shallow=True)
        self._link_group("nvim")

        if not self.tool_path.which("nvim"):
            self._add(StepResult.warn(
                "packer-sync", "Neovim not found; run :PackerSync after installing it",
                label="PackerSync",
            ))
            return

        self._reporter.info("Installing Neovim plugins (this may take a while)")
        if self._packer_sync():
            self._add(StepResult.success("packer-sync", "Neovim plugins installed", label="PackerSync"))
            return

        # One retry, with packer itself re-cloned if it went missing.
        self._reporter.warning("PackerSync failed, retrying once")
        if not packer_dir.is_dir():
            self._clone(PACKER, packer_dir, shallow=True)
        if self._packer_sync():
            self._add(StepResult.success("packer-sync", "Neovim plugins installed", label="PackerSync"))
        else:
            self._add(StepResult.warn(
                "packer-sync",
                "Could not install Neovim plugins; run :PackerSync the first time you open Neovim",
                label="PackerSync",
            ))

    # ── Phase: kitty ───────────────────────────────────────────

    def _phase_kitty(self) -> None:
        self._reporter.header("Setting up Kitty")
        self._link_group("kitty")

    # ── Phase: tmux ────────────────────────────────────────────

    def _install_tmux_plugins(self, tpm_dir: Path) -> StepResult:
        if not self.tool_path.which("tmux") or not tpm_dir.is_dir():
            return self._add(StepResult.warn(
                "tmux-plugins",
                "Tmux or TPM not found; start tmux and press prefix + I to install plugins",
                label="Tmux plugins",
            ))

        env = self.tool_path.env({"TMUX": ""})
        script = tpm_dir / "scripts" / "install_plugins.sh"
        try:
            self._run(["tmux", "start-server"], timeout=30, env=env)
            self._run(["tmux", "new-session", "-d"], timeout=30, env=env)
            result = self._run([str(script)], timeout=900, env=env)
        finally:
            self._run(["tmux", "kill-server"], timeout=30, env=env)

        self.log.record(
            "tmux_plugins", resource=TPM.id,
            status="ok" if result.get("ok") else "failed",
            message=result.get("error", ""),
        )
        if result.get("ok"):
            return self._add(StepResult.success(
                "tmux-plugins", "Tmux plugins installed", label="Tmux plugins",
            ))
        return self._add(StepResult.warn(
            "tmux-plugins",
            f"Tmux plugin install failed ({result.get('error', 'unknown error')}); "
            "start tmux and press prefix + I",
            label="Tmux plugins",
        ))

    def _phase_tmux(self) -> None:
        self._reporter.header("Setting up Tmux")
        self._link_group("tmux")
        tpm_dir = TPM.plugin_path(self.home, self.settings.zsh_custom_dir)
        self._clone(TPM, tpm_dir)
        self._install_tmux_plugins(tpm_dir)

    # ── Phase: colorls ─────────────────────────────────────────

    def _phase_colorls(self) -> None:
        self._reporter.header("Setting up Colorls")
        self._link_group("colorls")

