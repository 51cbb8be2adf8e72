"""
Backups — moving pre-existing configuration out of the way.

The asymmetric backup rule:

* a **symlink** at a target path is prior installer output and is
  disposable: it is removed, never copied into the backup tree;
* a **real file or directory** is user data: it is moved to
  ``<backup_root>/<path relative to home>``.
"""

from __future__ import annotations

import logging
import shutil
from datetime import datetime
from enum import Enum
from pathlib import Path

from dotkit.core.data.catalog import BACKUP_TIMESTAMP_FORMAT, INSTALL_LOG_NAME
from dotkit.core.errors import BackupError
from dotkit.core.persistence.install_log import InstallLog

logger = logging.getLogger(__name__)


class BackupOutcome(str, Enum):
    ABSENT = "absent"
    REMOVED_LINK = "removed_link"
    BACKED_UP = "backed_up"


def create_backup_root(parent: Path, now: datetime | None = None) -> Path:
    """Create a fresh ``<parent>/<YYYYMMDD_HHMMSS>`` directory.

    A run in the same second as a previous one gets ``_1``, ``_2``, ...
    so runs never share a backup root.

    Raises:
        BackupError: If the directory cannot be created.
    """
    stamp = (now or datetime.now()).strftime(BACKUP_TIMESTAMP_FORMAT)
    root = parent / stamp
    counter = 0
    while root.exists():
        counter += 1
        root = parent / f"{stamp}_{counter}"
    try:
        root.mkdir(parents=True)
    except OSError as e:
        raise BackupError(root, str(e)) from e
    logger.info("Backup root: %s", root)
    return root


class BackupManager:
    """Applies the asymmetric backup rule for one installer run."""

    def __init__(self, home: Path, root: Path, log: InstallLog):
        self.home = home
        self.root = root
        self._log = log
        self.backed_up: list[Path] = []
        self.removed_links: list[Path] = []

    def destination(self, target: Path) -> Path:
        """Where ``target`` lands inside the backup root."""
        try:
            relative = target.relative_to(self.home)
        except ValueError:
            relative = target.relative_to(target.anchor)
        return self.root / relative

    def prepare(self, target: Path) -> BackupOutcome:
        """Clear ``target`` so a symlink can be created there.

        Raises:
            BackupError: If the path cannot be moved or removed.
        """
        if target.is_symlink():
            try:
                target.unlink()
            except OSError as e:
                self._log.record(
                    "unlink", status="error", message=str(e), target=target,
                )
                raise BackupError(target, str(e)) from e
            self.removed_links.append(target)
            self._log.record("unlink", message="Removed existing symlink", target=target)
            logger.info("Removed existing symlink %s", target)
            return BackupOutcome.REMOVED_LINK

        if not target.exists():
            return BackupOutcome.ABSENT

        dest = self.destination(target)
        try:
            dest.parent.mkdir(parents=True, exist_ok=True)
            shutil.move(str(target), str(dest))
        except OSError as e:
            self._log.record(
                "backup", status="error", message=str(e), target=target, destination=dest,
            )
            raise BackupError(target, str(e)) from e

        self.backed_up.append(target)
        self._log.record("backup", message="Backed up", target=target, destination=dest)
        logger.info("Backed up %s -> %s", target, dest)
        return BackupOutcome.BACKED_UP


def list_backup_runs(parent: Path) -> list[dict]:
    """Backup roots under ``parent``, newest first.

    Returns:
        ``[{"name": ..., "path": ..., "files": N, "has_log": bool}, ...]``
        with ``files`` None when the run cannot be read.
    """
    if not parent.is_dir():
        return []

    try:
        entries = sorted(parent.iterdir(), reverse=True)
    except OSError as e:
        logger.warning("Cannot list backups in %s: %s", parent, e)
        return []

    runs = []
    for entry in entries:
        if not entry.is_dir():
            continue
        try:
            files: int | None = sum(
                1 for p in entry.rglob("*")
                if (p.is_file() or p.is_symlink()) and p.name != INSTALL_LOG_NAME
            )
        except OSError as e:
            logger.warning("Cannot read backup run %s: %s", entry, e)
            files = None
        runs.append({
            "name": entry.name,
            "path": str(entry),
            "files": files,
            "has_log": (entry / INSTALL_LOG_NAME).is_file(),
        })
    return runs
