"""
Core subprocess runner.

The SINGLE PLACE where ``subprocess.run`` is called. Install and verify
steps receive this function (or a test double with the same signature)
instead of calling subprocess themselves, and it never raises: every
outcome is a result dict.
"""

from __future__ import annotations

import logging
import os
import subprocess
import time
from typing import Any, Callable

logger = logging.getLogger(__name__)

# Signature shared by run_command and its test doubles.
Runner = Callable[..., dict[str, Any]]

_OUTPUT_TAIL = 2000


def _is_root() -> bool:
    geteuid = getattr(os, "geteuid", None)
    return bool(geteuid) and geteuid() == 0


def run_command(
    cmd: list[str],
    *,
    needs_sudo: bool = False,
    timeout: int = 600,
    env: dict[str, str] | None = None,
    cwd: str | None = None,
    input: str | None = None,
) -> dict[str, Any]:
    """Run a command and capture its outcome.

    Args:
        cmd: Command list for ``subprocess.run()``.
        needs_sudo: Prefix ``sudo`` unless already running as root. sudo
            prompts on the controlling terminal, not on captured stdin.
        timeout: Seconds before the command is killed.
        env: Full environment (normally ``ToolPath.env()``).
        cwd: Working directory.
        input: Text piped to stdin.

    Returns:
        ``{"ok": True, "stdout": "...", "stderr": "...", "returncode": 0,
        "elapsed_ms": N}`` on success, ``{"ok": False, "error": "...", ...}``
        on failure.
    """
    if needs_sudo and not _is_root():
        cmd = ["sudo"] + cmd

    logger.debug("Executing: %s (cwd=%s)", cmd, cwd)
    start = time.monotonic()
    try:
        result = subprocess.run(
            cmd,
            capture_output=True,
            text=True,
            timeout=timeout,
            input=input,
            env=env,
            cwd=cwd,
        )
    except subprocess.TimeoutExpired:
        return {"ok": False, "error": f"Command timed out ({timeout}s)", "returncode": None}
    except FileNotFoundError:
        return {"ok": False, "error": f"Command not found: {cmd[0]}", "returncode": None}
    except OSError as e:
        logger.warning("Subprocess error for %s: %s", cmd, e)
        return {"ok": False, "error": str(e), "returncode": None}

    elapsed_ms = int((time.monotonic() - start) * 1000)
    stdout = result.stdout[-_OUTPUT_TAIL:] if result.stdout else ""
    stderr = result.stderr[-_OUTPUT_TAIL:] if result.stderr else ""

    if result.returncode == 0:
        return {
            "ok": True,
            "stdout": stdout,
            "stderr": stderr,
            "returncode": 0,
            "elapsed_ms": elapsed_ms,
        }

    return {
        "ok": False,
        "error": f"Command failed (exit {result.returncode})",
        "stdout": stdout,
        "stderr": stderr,
        "returncode": result.returncode,
        "elapsed_ms": elapsed_ms,
    }
