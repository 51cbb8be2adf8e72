"""
Exception hierarchy.

Only fatal conditions are exceptions. Best-effort failures (a package
that did not install, a script download that failed) are captured in
``StepResult`` objects and never raised.
"""

from __future__ import annotations

from pathlib import Path


class DotkitError(Exception):
    """Base class for all dotkit errors."""


class ConfigError(DotkitError):
    """Raised when dotkit.yml is invalid or unreadable."""


class InstallAbort(DotkitError):
    """Fatal installer condition; the whole run stops."""


class InstallDeclined(InstallAbort):
    """The user answered no to the confirmation prompt."""


class BackupError(InstallAbort):
    """A pre-existing path could not be moved aside or removed."""

    def __init__(self, path: Path, reason: str):
        self.path = path
        self.reason = reason
        super().__init__(f"Cannot back up {path}: {reason}")


class LinkError(InstallAbort):
    """A configuration symlink could not be created."""

    def __init__(self, source: Path, target: Path, reason: str):
        self.source = source
        self.target = target
        self.reason = reason
        super().__init__(f"Cannot link {target} -> {source}: {reason}")
