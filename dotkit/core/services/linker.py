"""
Symlink creation — last writer wins.

Every link goes through ``BackupManager.prepare`` first, so the target is
either absent, a removed stale link, or a real path that was moved into
the backup tree. Failures here are fatal: they mean the filesystem
precondition for the whole install (permissions, read-only home) is
broken.
"""

from __future__ import annotations

import logging
import os
from pathlib import Path

from dotkit.core.errors import LinkError
from dotkit.core.models.resource import ManagedResource
from dotkit.core.persistence.install_log import InstallLog
from dotkit.core.services.backup import BackupManager

logger = logging.getLogger(__name__)


class SymlinkManager:
    """Links configuration from the dotfiles tree into home."""

    def __init__(self, home: Path, dotfiles_dir: Path, backups: BackupManager, log: InstallLog):
        self.home = home
        self.dotfiles_dir = dotfiles_dir
        self._backups = backups
        self._log = log
        self.linked: list[Path] = []

    def link(self, source: Path, target: Path, *, resource: str = "") -> Path:
        """Point ``target`` at ``source``.

        Raises:
            BackupError: If the existing target cannot be moved aside.
            LinkError: If the parent directory or the link cannot be created.
        """
        if not source.exists():
            logger.warning("Link source does not exist (linking anyway): %s", source)
            self._log.record(
                "link", resource=resource, status="warning",
                message="Source missing", source=source, target=target,
            )

        self._backups.prepare(target)

        try:
            target.parent.mkdir(parents=True, exist_ok=True)
            os.symlink(source, target)
        except OSError as e:
            self._log.record(
                "link", resource=resource, status="error", message=str(e),
                source=source, target=target,
            )
            raise LinkError(source, target, str(e)) from e

        self.linked.append(target)
        self._log.record("link", resource=resource, source=source, target=target)
        logger.info("Linked %s -> %s", target, source)
        return target

    def link_resource(self, resource: ManagedResource) -> Path:
        """Link one catalog symlink resource."""
        return self.link(
            resource.source_path(self.dotfiles_dir),
            resource.target_path(self.home),
            resource=resource.id,
        )
