"""
Verification results — per-resource checks and the aggregated summary.
"""

from __future__ import annotations

from datetime import UTC, datetime
from typing import Any, Literal

from pydantic import BaseModel, Field

from dotkit.core.models.resource import OsFamily, ResourceKind

CheckStatus = Literal["installed", "missing"]
NoteLevel = Literal["success", "warning", "error", "info"]


class CheckNote(BaseModel):
    """A single line of detail attached to a check."""

    level: NoteLevel = "info"
    text: str


class CheckResult(BaseModel):
    """Read-only audit outcome for one resource."""

    resource: str
    name: str
    kind: ResourceKind
    group: str = ""
    status: CheckStatus = "missing"
    details: dict[str, Any] = Field(default_factory=dict)
    notes: list[CheckNote] = Field(default_factory=list)

    @property
    def installed(self) -> bool:
        return self.status == "installed"

    def note(self, text: str, level: NoteLevel = "info") -> None:
        self.notes.append(CheckNote(level=level, text=text))


class VerifyReport(BaseModel):
    """All checks from one verifier run."""

    timestamp: str = Field(default_factory=lambda: datetime.now(UTC).isoformat())
    os_family: OsFamily = OsFamily.UNKNOWN
    skipped_tmux: bool = False
    results: list[CheckResult] = Field(default_factory=list)
    # Informational sections (PATH, backups) that never count as missing
    info: dict[str, Any] = Field(default_factory=dict)

    def add(self, result: CheckResult) -> CheckResult:
        self.results.append(result)
        return result

    def get(self, resource_id: str) -> CheckResult | None:
        for r in self.results:
            if r.resource == resource_id:
                return r
        return None

    @property
    def missing(self) -> list[CheckResult]:
        return [r for r in self.results if not r.installed]

    @property
    def all_ok(self) -> bool:
        return not self.missing

    def by_kind(self, kind: ResourceKind) -> list[CheckResult]:
        return [r for r in self.results if r.kind == kind]

    def to_dict(self) -> dict[str, Any]:
        data = self.model_dump(mode="json")
        data["summary"] = {
            "total": len(self.results),
            "installed": len(self.results) - len(self.missing),
            "missing": [r.resource for r in self.missing],
            "ok": self.all_ok,
        }
        return data
