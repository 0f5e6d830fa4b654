"""
speechwav.logging - Centralized logging configuration.

Every module logs through a child of the "speechwav" logger, so the level set
here applies to the whole package even when the host application has already
configured the root logger.
"""

from __future__ import annotations

import logging

logger = logging.getLogger("speechwav")


def configure_logging(verbose: bool = False) -> None:
    """Configure logging for the speechwav package.

    Args:
        verbose: If True, enable DEBUG level logging; otherwise WARNING level
    """
    level = logging.DEBUG if verbose else logging.WARNING
    logging.basicConfig(
        level=level,
        format="%(levelname)s: %(message)s",
    )
    logger.setLevel(level)
