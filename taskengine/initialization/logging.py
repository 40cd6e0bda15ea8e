"""
Initialization - Logging Module.

Configures loguru logger for the task engine.
Sets up log rotation and retention policies.
"""

import sys

from loguru import logger


def setup_logging(level: str = "INFO", log_file: str = "logs/taskengine.log") -> None:
    """Configure logger with stderr output and file rotation."""
    logger.remove()
    logger.add(sys.stderr, level=level)
    logger.add(
        log_file,
        rotation="1 day",
        retention="7 days",
        level=level,
        encoding="utf-8",
    )

    logger.info("Starting task engine...")
