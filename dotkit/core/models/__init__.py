"""
Domain models — Pydantic types for dotkit.

All models are re-exported here for convenient access:

    from dotkit.core.models import ManagedResource, StepResult, VerifyReport
"""

from dotkit.core.models.report import CheckNote, CheckResult, VerifyReport
from dotkit.core.models.resource import (
    HostPlatform,
    ManagedResource,
    OsFamily,
    ResourceKind,
)
from dotkit.core.models.step import InstallReport, StepResult

__all__ = [
    # report.py
    "CheckNote",
    "CheckResult",
    # resource.py
    "HostPlatform",
    # step.py
    "InstallReport",
    "ManagedResource",
    "OsFamily",
    "ResourceKind",
    "StepResult",
    "VerifyReport",
]
