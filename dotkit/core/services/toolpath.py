"""
ToolPath — the resolved tool search path for one run.

Tools installed mid-run often land in directories that are not on the
caller's ``PATH`` (``~/.local/bin``, the Ruby gem user bin, Homebrew's
prefix). Instead of mutating ``os.environ`` the installer threads an
immutable ToolPath through every step and hands ``env()`` to each
subprocess it starts.
"""

from __future__ import annotations

import os
import shutil
from dataclasses import dataclass
from pathlib import Path
from typing import Iterable


@dataclass(frozen=True)
class ToolPath:
    """Ordered, de-duplicated directory list used for command lookup."""

    dirs: tuple[str, ...] = ()

    @classmethod
    def from_environment(
        cls,
        home: Path,
        extra: Iterable[Path | str] = (),
        env: dict[str, str] | None = None,
        user_dirs: bool = True,
    ) -> ToolPath:
        """Start from ``$PATH`` and append the user bin dirs and extras.

        ``user_dirs=False`` leaves out ``~/.local/bin`` and ``~/bin`` so a
        lookup answers "is it on PATH" rather than "is it installed".
        """
        env = os.environ if env is None else env
        base = [d for d in env.get("PATH", "").split(os.pathsep) if d]
        user = [str(home / ".local" / "bin"), str(home / "bin")] if user_dirs else []
        return cls().with_dirs(*base, *user, *(str(e) for e in extra))

    def with_dirs(self, *dirs: Path | str) -> ToolPath:
        """Return a new ToolPath with ``dirs`` appended (duplicates dropped)."""
        merged = list(self.dirs)
        for d in dirs:
            s = str(d)
            if s and s not in merged:
                merged.append(s)
        return ToolPath(tuple(merged))

    @property
    def search_path(self) -> str:
        return os.pathsep.join(self.dirs)

    def which(self, name: str) -> str | None:
        """Locate an executable on this path (absolute names are checked as-is)."""
        if os.sep in name:
            return name if os.access(name, os.X_OK) and os.path.isfile(name) else None
        if not self.dirs:
            return None
        return shutil.which(name, path=self.search_path)

    def first(self, names: Iterable[str]) -> str | None:
        """Locate the first of several candidate executables."""
        for name in names:
            found = self.which(name)
            if found:
                return found
        return None

    def contains(self, directory: Path | str) -> bool:
        return str(directory) in self.dirs

    def env(self, overrides: dict[str, str] | None = None) -> dict[str, str]:
        """Subprocess environment: current environ with PATH replaced."""
        env = os.environ.copy()
        env["PATH"] = self.search_path
        if overrides:
            env.update(overrides)
        return env
