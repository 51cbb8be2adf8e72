"""
Test doubles and filesystem helpers shared across the suite.

External commands never run in the suite: services receive a
``FakeRunner`` and look binaries up on a ``ToolPath`` that only contains
a temp dir of executable stubs.
"""

from __future__ import annotations

import hashlib
import os
from pathlib import Path
from typing import Any, Callable

from dotkit.core.observability.reporter import Reporter

class FakeRunner:
    """Stand-in for ``run_command`` that records calls and never executes."""

    def __init__(self, default: dict[str, Any] | None = None):
        self.calls: list[tuple[list[str], dict[str, Any]]] = []
        self._rules: list[tuple[tuple[str, ...], Any]] = []
        self.default = default or {"ok": True, "stdout": "", "stderr": "", "returncode": 0}

    def on(self, *prefix: str, result: dict[str, Any] | None = None,
           action: Callable[[list[str], dict[str, Any]], dict[str, Any] | None] | None = None):
        """Respond to commands starting with ``prefix``. Later rules win."""
        self._rules.insert(0, (prefix, action or result))
        return self

    def __call__(self, cmd: list[str], **kwargs: Any) -> dict[str, Any]:
        cmd = list(cmd)
        self.calls.append((cmd, kwargs))
        for prefix, response in self._rules:
            if tuple(cmd[: len(prefix)]) == prefix:
                if callable(response):
                    out = response(cmd, kwargs)
                    return out if out is not None else dict(self.default)
                return dict(response)
        return dict(self.default)

    def commands(self) -> list[list[str]]:
        return [c for c, _ in self.calls]

    def called(self, *prefix: str) -> bool:
        return any(tuple(c[: len(prefix)]) == prefix for c in self.commands())

    def invoked(self, binary: str) -> bool:
        """True if any call started ``binary`` (bare name or absolute path)."""
        return any(Path(c[0]).name == binary for c in self.commands() if c)


class RecordingReporter(Reporter):
    """Reporter that keeps every message for assertions."""

    def __init__(self):
        self.messages: list[tuple[str, str]] = []

    def header(self, text: str) -> None:
        self.messages.append(("header", text))

    def section(self, text: str) -> None:
        self.messages.append(("section", text))

    def success(self, text: str) -> None:
        self.messages.append(("success", text))

    def warning(self, text: str) -> None:
        self.messages.append(("warning", text))

    def error(self, text: str) -> None:
        self.messages.append(("error", text))

    def info(self, text: str) -> None:
        self.messages.append(("info", text))

    def texts(self, level: str) -> list[str]:
        return [t for lvl, t in self.messages if lvl == level]


def make_stub(bin_dir: Path, name: str, body: str = "exit 0") -> Path:
    """Create an executable shell stub named ``name``."""
    bin_dir.mkdir(parents=True, exist_ok=True)
    stub = bin_dir / name
    stub.write_text(f"#!/bin/sh\n{body}\n")
    stub.chmod(0o755)
    return stub


def clone_creates_dir(cmd: list[str], kwargs: dict[str, Any]) -> None:
    """FakeRunner action: ``git clone ... DEST`` creates DEST with a .git dir."""
    dest = Path(cmd[-1])
    (dest / ".git" / "refs" / "heads").mkdir(parents=True, exist_ok=True)
    (dest / ".git" / "refs" / "heads" / "master").write_text("0123456789abcdef\n")
    (dest / "README.md").write_text("plugin\n")


def tree_digest(root: Path) -> dict[str, str]:
    """Map every path under ``root`` to a content hash or link text."""
    digest: dict[str, str] = {}
    for dirpath, dirnames, filenames in os.walk(root):
        for name in dirnames + filenames:
            p = Path(dirpath) / name
            rel = str(p.relative_to(root))
            if p.is_symlink():
                digest[rel] = "link:" + os.readlink(p)
            elif p.is_file():
                digest[rel] = hashlib.sha256(p.read_bytes()).hexdigest()
            else:
                digest[rel] = "dir"
    return digest


