"""
audiosplitter.logging - Centralized logging configuration.

Log lines are the only user-visible output of the split hook, so INFO is
the default level.
"""

from __future__ import annotations

import logging

logger = logging.getLogger("audiosplitter")


def configure_logging(verbose: bool = False, quiet: bool = False) -> None:
    """Configure logging for the audiosplitter package.

    Args:
        verbose: If True, enable DEBUG level logging
        quiet: If True, only log warnings and errors (ignored when verbose)
    """
    if verbose:
        level = logging.DEBUG
    elif quiet:
        level = logging.WARNING
    else:
        level = logging.INFO
    logging.basicConfig(
        level=level,
        format="[%(levelname)s] %(message)s",
    )
    logger.setLevel(level)
