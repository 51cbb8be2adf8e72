"""
Install log — append-only, line-delimited JSON record of one installer run.

Every state-changing action (backup, stale link removal, symlink,
package install, clone, download) appends one object to
``<backup_root>/install.log``. Entries are never modified or deleted, and
postmortem tooling can read them without parsing prose.
"""

from __future__ import annotations

import json
import logging
from datetime import UTC, datetime
from pathlib import Path
from typing import Any

from pydantic import BaseModel, Field

logger = logging.getLogger(__name__)


class LogEntry(BaseModel):
    """A single install log line."""

    timestamp: str = Field(default_factory=lambda: datetime.now(UTC).isoformat())
    event: str = ""               # run_started, backup, unlink, link, install, ...
    resource: str = ""
    status: str = ""              # ok, skipped, warning, failed, error
    message: str = ""
    context: dict[str, Any] = Field(default_factory=dict)


class InstallLog:
    """Append-only NDJSON writer/reader for one backup root."""

    def __init__(self, path: Path):
        self._path = path

    @property
    def path(self) -> Path:
        return self._path

    def write(self, entry: LogEntry) -> None:
        """Append an entry.

        A log that cannot be written is reported but does not stop the run;
        the filesystem precondition it reflects surfaces in the backup or
        link step instead.
        """
        line = json.dumps(entry.model_dump(mode="json"), ensure_ascii=False) + "\n"
        try:
            self._path.parent.mkdir(parents=True, exist_ok=True)
            with self._path.open("a", encoding="utf-8") as f:
                f.write(line)
        except OSError as e:
            logger.error("Failed to write install log entry: %s", e)

    def record(
        self,
        event: str,
        *,
        resource: str = "",
        status: str = "ok",
        message: str = "",
        **context: Any,
    ) -> LogEntry:
        """Build and append an entry in one call."""
        entry = LogEntry(
            event=event,
            resource=resource,
            status=status,
            message=message,
            context={k: str(v) if isinstance(v, Path) else v for k, v in context.items()},
        )
        self.write(entry)
        logger.debug("install.log: %s %s %s", event, resource, status)
        return entry

    def read_all(self) -> list[LogEntry]:
        """Read every entry, oldest first. Corrupt lines are skipped."""
        if not self._path.is_file():
            return []

        entries: list[LogEntry] = []
        try:
            with self._path.open("r", encoding="utf-8") as f:
                for line_num, line in enumerate(f, start=1):
                    line = line.strip()
                    if not line:
                        continue
                    try:
                        entries.append(LogEntry.model_validate(json.loads(line)))
                    except (json.JSONDecodeError, ValueError) as e:
                        logger.warning("Skipping corrupt log entry at line %d: %s", line_num, e)
        except OSError as e:
            logger.error("Failed to read install log: %s", e)

        return entries
