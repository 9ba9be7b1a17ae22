"""
Logging setup for the gaze pointer

Module loggers live under the "gaze_pointer" hierarchy and inherit the
handlers installed here: short console messages on stderr, and a detailed
dated log file when a log directory or file is configured.
"""

import logging
import sys
from datetime import datetime
from pathlib import Path
from typing import Optional

from gaze_pointer.utils.config_loader import LoggingConfig

DETAILED_FORMAT = '%(asctime)s - %(name)s - %(levelname)s - %(filename)s:%(lineno)d - %(message)s'
CONSOLE_FORMAT = '%(levelname)s: %(message)s'


def log_file_path(config: LoggingConfig) -> Optional[Path]:
    """Where file logging goes, or None when it is disabled."""
    if not (config.log_directory or config.log_file):
        return None
    directory = Path(config.log_directory or "logs")
    name = config.log_file or f"gaze_pointer_{datetime.now().strftime('%Y%m%d')}.log"
    return directory / name


def setup_logger(config: Optional[LoggingConfig] = None, name: str = "gaze_pointer") -> logging.Logger:
    """
    Install handlers on the package logger

    Args:
        config: Logging section of the configuration (defaults when omitted)
        name: Logger to configure; calling again replaces its handlers

    Returns:
        Configured logger instance
    """
    config = config or LoggingConfig()
    level = getattr(logging, config.level.upper(), logging.INFO)

    logger = logging.getLogger(name)
    logger.setLevel(level)
    for handler in list(logger.handlers):
        logger.removeHandler(handler)
        handler.close()

    if config.console_output:
        # stdout is reserved for emitted gaze points
        console_handler = logging.StreamHandler(sys.stderr)
        console_handler.setLevel(max(level, logging.INFO))
        console_handler.setFormatter(logging.Formatter(CONSOLE_FORMAT))
        logger.addHandler(console_handler)

    log_path = log_file_path(config)
    if log_path is not None:
        log_path.parent.mkdir(parents=True, exist_ok=True)
        file_handler = logging.FileHandler(log_path, mode='a', encoding='utf-8')
        file_handler.setLevel(logging.DEBUG)
        file_handler.setFormatter(logging.Formatter(DETAILED_FORMAT, datefmt='%Y-%m-%d %H:%M:%S'))
        logger.addHandler(file_handler)
        logger.info(f"Logging to file: {log_path}")

    return logger
