"""
Tool version probes.

Read-only: runs each tool's version command through the runner and
parses the output.
"""

from __future__ import annotations

import re

from dotkit.core.services.subprocess_runner import Runner
from dotkit.core.services.toolpath import ToolPath

VERSION_COMMANDS: dict[str, tuple[list[str], str]] = {
    "nvim":     (["nvim", "--version"],     r"NVIM v(\d+\.\d+\.\d+)"),
    "tmux":     (["tmux", "-V"],            r"tmux\s+(\S+)"),
    "kitty":    (["kitty", "--version"],    r"kitty\s+(\d+\.\d+\.\d+)"),
    "ruby":     (["ruby", "--version"],     r"ruby\s+(\d+\.\d+\.\d+)"),
    "colorls":  (["colorls", "--version"],  r"(\d+\.\d+\.\d+)"),
    "zoxide":   (["zoxide", "--version"],   r"zoxide\s+v?(\d+\.\d+\.\d+)"),
    "fzf":      (["fzf", "--version"],      r"(\d+\.\d+(?:\.\d+)?)"),
    "thefuck":  (["thefuck", "--version"],  r"The Fuck\s+(\d+\.\d+(?:\.\d+)?)"),
}

_LINE_LIMIT = 80


def _output(result: dict) -> str:
    # Some tools (thefuck) print their version on stderr.
    return (result.get("stdout") or result.get("stderr") or "").strip()


def version_output(
    tool: str,
    tool_path: ToolPath,
    runner: Runner,
    env_overrides: dict[str, str] | None = None,
) -> str | None:
    """First line of the tool's version output, trimmed for display."""
    entry = VERSION_COMMANDS.get(tool)
    cmd = entry[0] if entry else [tool, "--version"]
    if not tool_path.which(cmd[0]):
        return None
    result = runner(cmd, timeout=10, env=tool_path.env(env_overrides))
    if not result.get("ok"):
        return None
    out = _output(result)
    if not out:
        return None
    return out.splitlines()[0][:_LINE_LIMIT]


def get_tool_version(tool: str, tool_path: ToolPath, runner: Runner) -> str | None:
    """Parsed ``X.Y.Z`` version of an installed tool, or None."""
    entry = VERSION_COMMANDS.get(tool)
    if not entry:
        return None
    cmd, pattern = entry
    if not tool_path.which(cmd[0]):
        return None
    result = runner(cmd, timeout=10, env=tool_path.env())
    if not result.get("ok"):
        return None
    m = re.search(pattern, _output(result))
    return m.group(1) if m else None
