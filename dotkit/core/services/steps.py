"""
Recipe step executors.

Each ``_execute_*_step`` function handles one step type from
``TOOL_RECIPES``. All external commands go through the injected runner;
every executor returns a runner-style result dict and never raises.
"""

from __future__ import annotations

import logging
import os
from pathlib import Path
from typing import Any

from dotkit.core.models.resource import OsFamily
from dotkit.core.persistence.install_log import InstallLog
from dotkit.core.services.package_managers import PackageManager
from dotkit.core.services.subprocess_runner import Runner
from dotkit.core.services.toolpath import ToolPath

logger = logging.getLogger(__name__)


def expand(value: str, placeholders: dict[str, str]) -> str:
    """Substitute ``{name}`` placeholders.

    Plain replacement, not ``str.format``: shell snippets contain braces.
    """
    for key, replacement in placeholders.items():
        value = value.replace("{" + key + "}", replacement)
    return value


def select_steps(recipe_map: dict | None, family: OsFamily) -> list[dict] | None:
    """Pick the step list for ``family``: exact, then ``_linux``, then ``_any``.

    The unknown family never matches.
    """
    if not recipe_map or family is OsFamily.UNKNOWN:
        return None
    if family.value in recipe_map:
        return recipe_map[family.value]
    if family.is_linux and "_linux" in recipe_map:
        return recipe_map["_linux"]
    return recipe_map.get("_any")


def _evaluate_condition(
    condition: str | None,
    tool_path: ToolPath,
    placeholders: dict[str, str],
) -> bool:
    """Evaluate a step's ``when`` condition.

    Returns:
        True if the condition is met (step should run).
    """
    if condition is None:
        return True
    kind, _, arg = condition.partition(":")
    arg = expand(arg, placeholders)
    if kind == "has_cli":
        return tool_path.which(arg) is not None
    if kind == "missing_cli":
        return tool_path.which(arg) is None
    if kind == "file_exists":
        return os.path.exists(arg)
    if kind == "missing_file":
        return not os.path.exists(arg)
    logger.warning("Unknown step condition: %s", condition)
    return True


def _execute_package_step(
    step: dict,
    *,
    pm: PackageManager,
    tool_path: ToolPath,
) -> dict[str, Any]:
    packages = step.get("packages", [])
    if not packages:
        return {"ok": True, "message": "No packages to install", "skipped": True}
    return pm.install(
        packages,
        tool_path,
        cask=step.get("cask", False),
        timeout=step.get("timeout", 1800),
    )


def _execute_command_step(
    step: dict,
    *,
    runner: Runner,
    tool_path: ToolPath,
    placeholders: dict[str, str],
) -> dict[str, Any]:
    command = [expand(part, placeholders) for part in step["command"]]
    cwd = expand(step["cwd"], placeholders) if step.get("cwd") else None
    return runner(
        command,
        needs_sudo=step.get("needs_sudo", False),
        timeout=step.get("timeout", 600),
        env=tool_path.env(),
        cwd=cwd,
    )


def _execute_write_file_step(step: dict, *, placeholders: dict[str, str]) -> dict[str, Any]:
    """Write a small file, but only if it does not exist yet."""
    path = Path(expand(step["write_file"], placeholders))
    if path.exists():
        return {"ok": True, "message": f"{path} already exists", "skipped": True}
    try:
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(step.get("content", ""), encoding="utf-8")
    except OSError as e:
        return {"ok": False, "error": f"Cannot write {path}: {e}"}
    return {"ok": True, "message": f"Wrote {path}"}


def _execute_link_step(step: dict, *, placeholders: dict[str, str]) -> dict[str, Any]:
    """Create a helper link (e.g. a launcher in ~/.local/bin) if nothing is there."""
    target = Path(expand(step["link"], placeholders))
    source = Path(expand(step["source"], placeholders))
    if target.exists() or target.is_symlink():
        return {"ok": True, "message": f"{target} already exists", "skipped": True}
    if not source.exists():
        return {"ok": False, "error": f"Link source missing: {source}"}
    try:
        target.parent.mkdir(parents=True, exist_ok=True)
        os.symlink(source, target)
    except OSError as e:
        return {"ok": False, "error": f"Cannot link {target}: {e}"}
    return {"ok": True, "message": f"Linked {target} -> {source}"}


def step_kind(step: dict) -> str:
    for kind in ("packages", "command", "write_file", "link"):
        if kind in step:
            return kind
    return "unknown"


def execute_step(
    step: dict,
    *,
    pm: PackageManager,
    tool_path: ToolPath,
    runner: Runner,
    log: InstallLog,
    placeholders: dict[str, str],
    resource: str = "",
) -> dict[str, Any]:
    """Dispatch one recipe step and record it in the install log."""
    if not _evaluate_condition(step.get("when"), tool_path, placeholders):
        return {"ok": True, "skipped": True, "message": f"Condition not met: {step['when']}"}

    kind = step_kind(step)
    if kind == "packages":
        result = _execute_package_step(step, pm=pm, tool_path=tool_path)
    elif kind == "command":
        result = _execute_command_step(
            step, runner=runner, tool_path=tool_path, placeholders=placeholders,
        )
    elif kind == "write_file":
        result = _execute_write_file_step(step, placeholders=placeholders)
    elif kind == "link":
        result = _execute_link_step(step, placeholders=placeholders)
    else:
        logger.warning("Unknown recipe step: %s", step)
        result = {"ok": False, "error": f"Unknown step type: {sorted(step)}"}

    if not result.get("skipped"):
        log.record(
            kind,
            resource=resource,
            status="ok" if result.get("ok") else "failed",
            message=result.get("message") or result.get("error", ""),
            step=_describe(step, placeholders),
        )
    return result


def execute_steps(
    steps: list[dict],
    **kwargs: Any,
) -> dict[str, Any]:
    """Run steps in order; the first failure stops the sequence."""
    last: dict[str, Any] = {"ok": True, "skipped": True, "message": "No steps"}
    ran = False
    for step in steps:
        result = execute_step(step, **kwargs)
        if not result.get("ok"):
            return result
        if not result.get("skipped"):
            ran = True
            last = result
    if ran:
        last = {**last, "skipped": False}
    return last


def _describe(step: dict, placeholders: dict[str, str]) -> str:
    kind = step_kind(step)
    if kind == "packages":
        return "packages: " + " ".join(step["packages"])
    if kind == "command":
        return " ".join(expand(p, placeholders) for p in step["command"])
    if kind in ("write_file", "link"):
        return f"{kind}: {expand(step[kind], placeholders)}"
    return kind
