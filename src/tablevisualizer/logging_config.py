"""
Logging Configuration
Sets up the 'tablevisualizer' logger for the CLI and the Qt store.

Console output goes to stderr so tables printed on stdout stay pipeable.
A log file, when requested, always records DEBUG regardless of the console level.
"""
import logging
import sys
from typing import Optional, Union

LOG_FORMAT = '%(asctime)s - %(name)s - %(levelname)s - %(message)s'
DATE_FORMAT = '%H:%M:%S'


def _resolve_level(level: Union[int, str]) -> int:
    if isinstance(level, str):
        resolved = logging.getLevelName(level.upper())
        if not isinstance(resolved, int):
            raise ValueError(f"Unknown log level '{level}'.")
        return resolved
    return level


def setup_logging(level: Union[int, str] = logging.INFO, log_file: Optional[str] = None) -> logging.Logger:
    """
    Configures the package logger.

    Args:
        level: Console level, as a number (logging.DEBUG) or a name ("debug").
        log_file: Optional path; the file receives every record from DEBUG up.

    Returns:
        The configured 'tablevisualizer' logger.
    """
    console_level = _resolve_level(level)
    logger = logging.getLogger("tablevisualizer")

    # Re-entry (tests, repeated CLI calls) replaces the handlers
    for handler in list(logger.handlers):
        logger.removeHandler(handler)
        handler.close()

    formatter = logging.Formatter(LOG_FORMAT, datefmt=DATE_FORMAT)

    console_handler = logging.StreamHandler(sys.stderr)
    console_handler.setLevel(console_level)
    console_handler.setFormatter(formatter)
    logger.addHandler(console_handler)

    if log_file:
        file_handler = logging.FileHandler(log_file, mode='w', encoding='utf-8')
        file_handler.setLevel(logging.DEBUG)
        file_handler.setFormatter(formatter)
        logger.addHandler(file_handler)
        logger.setLevel(logging.DEBUG)
    else:
        logger.setLevel(console_level)

    logger.debug(f"Logging initialized (console={logging.getLevelName(console_level)}, file={log_file}).")
    return logger
