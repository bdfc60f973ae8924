"""
Logging utilities for the DMR exploration package.
"""

import logging
import sys
from pathlib import Path
from typing import Optional


def setup_logger(
    name: str = "dmr_explore",
    level: int = logging.INFO,
    log_file: Optional[str] = None,
    console: bool = True
) -> logging.Logger:
    """
    Set up a logger with console and optional file handlers.

    Args:
        name: Logger name
        level: Logging level (default: INFO)
        log_file: Optional path to log file
        console: Whether to output to console

    Returns:
        Configured logger instance
    """
    logger = logging.getLogger(name)
    logger.setLevel(level)

    # Clear existing handlers
    logger.handlers = []

    formatter = logging.Formatter(
        "%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        datefmt="%d-%m-%Y %H:%M:%S"
    )

    if console:
        console_handler = logging.StreamHandler(sys.stdout)
        console_handler.setLevel(level)
        console_handler.setFormatter(formatter)
        logger.addHandler(console_handler)

    if log_file:
        log_path = Path(log_file)
        log_path.parent.mkdir(parents=True, exist_ok=True)
        file_handler = logging.FileHandler(log_path)
        file_handler.setLevel(level)
        file_handler.setFormatter(formatter)
        logger.addHandler(file_handler)

    return logger


# Third-party loggers that flood DEBUG output while plotting
NOISY_LOGGERS = ("matplotlib", "fontTools", "PIL")


def set_level(logger: logging.Logger, level: int) -> logging.Logger:
    """
    Change the level of a logger and all its handlers.

    Plotting libraries are held at WARNING so that DEBUG output stays
    readable.

    Args:
        logger: Logger returned by setup_logger
        level: New logging level

    Returns:
        The same logger
    """
    logger.setLevel(level)
    for handler in logger.handlers:
        handler.setLevel(level)

    for name in NOISY_LOGGERS:
        logging.getLogger(name).setLevel(max(level, logging.WARNING))
    return logger
