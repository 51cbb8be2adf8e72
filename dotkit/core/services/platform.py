"""
Host detection — which OS family (and therefore which package-manager
strategy) applies.

Read-only: looks at ``platform.system()``, the ``distro`` name on Linux,
and at which package-manager binaries are on the tool path.
"""

from __future__ import annotations

import logging
import platform
from pathlib import Path

import distro

from dotkit.core.models.resource import HostPlatform, OsFamily
from dotkit.core.services.toolpath import ToolPath

logger = logging.getLogger(__name__)

# Checked in order; the first binary found decides the Linux family.
_LINUX_PROBES: list[tuple[str, OsFamily]] = [
    ("apt-get", OsFamily.DEBIAN),
    ("dnf", OsFamily.FEDORA),
    ("pacman", OsFamily.ARCH),
]


def detect_platform(
    system: str | None = None,
    tool_path: ToolPath | None = None,
    distro_name: str | None = None,
) -> HostPlatform:
    """Detect the host OS family.

    Args:
        system: ``platform.system()`` override (tests).
        tool_path: Where to look for package managers (default: ``$PATH``).
        distro_name: Distribution name override (default: ``distro.name``).

    Returns:
        HostPlatform with ``family`` set to ``unknown`` when nothing matches.
    """
    system = system if system is not None else platform.system()
    pretty = ""
    if system == "Darwin":
        family = OsFamily.MACOS
    elif system == "Linux":
        tp = tool_path if tool_path is not None else ToolPath.from_environment(Path.home())
        family = OsFamily.UNKNOWN
        for binary, candidate in _LINUX_PROBES:
            if tp.which(binary):
                family = candidate
                break
        pretty = distro_name if distro_name is not None else distro.name(pretty=True)
    else:
        family = OsFamily.UNKNOWN

    logger.info(
        "Detected platform: system=%s family=%s distro=%s",
        system, family.value, pretty or "-",
    )
    return HostPlatform(system=system, family=family, distro=pretty)
