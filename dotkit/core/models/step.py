"""
StepResult and InstallReport — the installer's execution contract.

Every installer step returns a StepResult; best-effort failures are
captured here as ``warning`` (or ``failed``) and never raised. Only the
fatal conditions in ``dotkit.core.errors`` escape as exceptions.
"""

from __future__ import annotations

from datetime import UTC, datetime
from typing import Any, Literal

from pydantic import BaseModel, Field

from dotkit.core.models.resource import OsFamily


def _now_iso() -> str:
    """Current UTC time as ISO string."""
    return datetime.now(UTC).isoformat()


StepStatus = Literal["ok", "skipped", "warning", "failed"]


class StepResult(BaseModel):
    """Outcome of one installer step for one resource."""

    resource: str
    label: str = ""
    status: StepStatus = "ok"
    message: str = ""

    started_at: str = Field(default_factory=_now_iso)
    duration_ms: int = 0

    details: dict[str, Any] = Field(default_factory=dict)

    @property
    def ok(self) -> bool:
        return self.status in ("ok", "skipped")

    @classmethod
    def success(cls, resource: str, message: str = "", **kwargs: Any) -> StepResult:
        return cls(resource=resource, status="ok", message=message, **kwargs)

    @classmethod
    def skip(cls, resource: str, message: str = "", **kwargs: Any) -> StepResult:
        return cls(resource=resource, status="skipped", message=message, **kwargs)

    @classmethod
    def warn(cls, resource: str, message: str, **kwargs: Any) -> StepResult:
        return cls(resource=resource, status="warning", message=message, **kwargs)

    @classmethod
    def failure(cls, resource: str, message: str, **kwargs: Any) -> StepResult:
        return cls(resource=resource, status="failed", message=message, **kwargs)


class InstallReport(BaseModel):
    """Everything one installer run did."""

    os_family: OsFamily = OsFamily.UNKNOWN
    backup_root: str = ""
    log_path: str = ""

    steps: list[StepResult] = Field(default_factory=list)
    backed_up: list[str] = Field(default_factory=list)
    removed_links: list[str] = Field(default_factory=list)
    linked: list[str] = Field(default_factory=list)

    def add(self, step: StepResult) -> StepResult:
        self.steps.append(step)
        return step

    @property
    def warnings(self) -> list[StepResult]:
        return [s for s in self.steps if s.status in ("warning", "failed")]

    @property
    def succeeded(self) -> int:
        return sum(1 for s in self.steps if s.ok)

    def to_dict(self) -> dict[str, Any]:
        data = self.model_dump(mode="json")
        data["summary"] = {
            "total": len(self.steps),
            "succeeded": self.succeeded,
            "warnings": len(self.warnings),
        }
        return data
