"""
Logging utility for the Catan score bot.

One console handler per logger, plus an optional detailed file handler.
"""

import logging
import sys
from pathlib import Path
from typing import Iterable

# discord.py is chatty at INFO (gateway heartbeats, reconnects)
_NOISY_LOGGERS = (
    "discord.gateway",
    "discord.client",
    "discord.http",
    "uvicorn.access",
)


def setup_logger(name: str, log_file: str = None, level: int = logging.INFO) -> logging.Logger:
    """
    Setup logger with console and optional file output.

    Args:
        name: Logger name (typically __name__)
        log_file: Optional path to log file
        level: Logging level (DEBUG, INFO, WARNING, ERROR)

    Returns:
        Configured logger instance
    """
    logger = logging.getLogger(name)
    logger.setLevel(level)

    if logger.handlers:
        return logger

    console_handler = logging.StreamHandler(sys.stdout)
    console_handler.setLevel(level)
    console_handler.setFormatter(
        logging.Formatter('%(asctime)s - %(levelname)s - %(message)s', datefmt='%H:%M:%S')
    )
    logger.addHandler(console_handler)

    if log_file:
        log_path = Path(log_file)
        log_path.parent.mkdir(parents=True, exist_ok=True)

        file_handler = logging.FileHandler(log_file, encoding='utf-8')
        file_handler.setLevel(logging.DEBUG)
        file_handler.setFormatter(
            logging.Formatter(
                '%(asctime)s - %(name)s - %(levelname)s - %(message)s',
                datefmt='%Y-%m-%d %H:%M:%S',
            )
        )
        logger.addHandler(file_handler)

    # Records are printed by our own handler; don't double-print via root.
    logger.propagate = False
    return logger


def quiet_library_loggers(names: Iterable[str] = _NOISY_LOGGERS, level: int = logging.WARNING) -> None:
    for n in names:
        logging.getLogger(n).setLevel(level)
