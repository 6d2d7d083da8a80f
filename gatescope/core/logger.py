"""
Logging setup for the application.

Library modules only create named loggers; the entry point calls
setup_logging() once.
"""

import logging
import os
from datetime import datetime

LOG_FORMAT = "%(asctime)s [%(levelname)s] %(name)s: %(message)s"


def setup_logging(level: str | None = None, log_dir: str | None = None) -> str:
    """
    Configure console and daily file logging.

    Args:
        level: Log level name (default: $LOG_LEVEL or INFO)
        log_dir: Directory for log files (default: $LOG_DIR or ./logs)

    Returns:
        Path of the log file
    """
    log_dir = log_dir or os.getenv("LOG_DIR", "./logs")
    os.makedirs(log_dir, exist_ok=True)

    log_file = os.path.join(log_dir, f"gatescope_{datetime.now():%Y%m%d}.log")

    logging.basicConfig(
        level=level or os.getenv("LOG_LEVEL", "INFO"),
        format=LOG_FORMAT,
        handlers=[
            logging.FileHandler(log_file),
            logging.StreamHandler()
        ]
    )

    logging.getLogger().info("Logging initialized. Log file: %s", log_file)
    return log_file
