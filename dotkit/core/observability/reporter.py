"""
Progress reporting — the user-facing side channel of install and verify.

Core services narrate what they do through a ``Reporter``; they never
print. The CLI supplies a colored click implementation, tests supply a
recording one, and the base class mirrors everything into the Python
logger so non-interactive callers still get a trace.
"""

from __future__ import annotations

import logging

from dotkit.core.observability.logging_config import PROGRESS_LOGGER

logger = logging.getLogger(PROGRESS_LOGGER)


class Reporter:
    """Base reporter: forwards every message to the ``dotkit.progress`` logger."""

    def header(self, text: str) -> None:
        logger.info("=== %s ===", text)

    def section(self, text: str) -> None:
        logger.info("%s", text)

    def success(self, text: str) -> None:
        logger.info("ok: %s", text)

    def warning(self, text: str) -> None:
        logger.warning("%s", text)

    def error(self, text: str) -> None:
        logger.error("%s", text)

    def info(self, text: str) -> None:
        logger.info("  %s", text)
