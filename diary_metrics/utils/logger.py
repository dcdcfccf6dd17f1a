"""
Logging setup for the diary metrics engine

Console output goes to stderr so the offline runner keeps stdout for its
JSON result. A file handler is added only when a log file or directory is
named, either in the 'logging' config section or on the runner command line.
"""

import logging
import sys
from datetime import datetime
from pathlib import Path
from typing import Any, Dict, Optional

CONSOLE_FORMAT = '%(levelname)s: %(message)s'
FILE_FORMAT = '%(asctime)s - %(name)s - %(levelname)s - %(filename)s:%(lineno)d - %(message)s'


def _console_handler() -> logging.Handler:
    handler = logging.StreamHandler(sys.stderr)
    handler.setLevel(logging.INFO)
    handler.setFormatter(logging.Formatter(CONSOLE_FORMAT))
    return handler


def resolve_log_path(log_dir: Optional[str] = None, log_file: Optional[str] = None) -> Optional[Path]:
    """
    Where file logging should go, or None when it is disabled.

    A log_file with a directory part is used as given; a bare name is
    placed under log_dir (default 'logs'). A log_dir alone gets a dated
    'diary_metrics_YYYYMMDD.log'.
    """
    if not log_dir and not log_file:
        return None
    if log_file and Path(log_file).parent != Path('.'):
        return Path(log_file)
    directory = Path(log_dir) if log_dir else Path('logs')
    name = log_file or f"diary_metrics_{datetime.now().strftime('%Y%m%d')}.log"
    return directory / name


def _file_handler(log_path: Path) -> logging.Handler:
    log_path.parent.mkdir(parents=True, exist_ok=True)
    handler = logging.FileHandler(log_path, mode='a', encoding='utf-8')
    handler.setLevel(logging.DEBUG)
    handler.setFormatter(logging.Formatter(FILE_FORMAT, datefmt='%Y-%m-%d %H:%M:%S'))
    return handler


def setup_logger(
    name: str = "diary_metrics",
    log_level: str = "INFO",
    log_dir: Optional[str] = None,
    log_file: Optional[str] = None,
    console_output: bool = True
) -> logging.Logger:
    """
    Configure the package logger; calling it again replaces earlier handlers.

    Args:
        name: Logger name (child loggers such as 'diary_metrics.keyboard' propagate to it)
        log_level: DEBUG, INFO, WARNING, ERROR or CRITICAL
        log_dir: Directory for the log file
        log_file: Log file name or path
        console_output: Whether to log to stderr

    Returns:
        Configured logger instance
    """
    logger = logging.getLogger(name)
    logger.setLevel(getattr(logging, log_level.upper(), logging.INFO))

    for handler in list(logger.handlers):
        logger.removeHandler(handler)
        handler.close()

    if console_output:
        logger.addHandler(_console_handler())

    log_path = resolve_log_path(log_dir, log_file)
    if log_path is not None:
        logger.addHandler(_file_handler(log_path))
        logger.debug(f"Logging to file: {log_path}")

    return logger


def setup_logger_from_config(
    config: Dict[str, Any],
    name: str = "diary_metrics",
    console_output: bool = True,
    log_file: Optional[str] = None
) -> logging.Logger:
    """
    Setup logger from the 'logging' section of a loaded config dict.

    Args:
        config: Loaded configuration
        name: Logger name
        console_output: Whether to log to stderr
        log_file: Overrides the section's log_file (runner --log-file)
    """
    logging_config = config.get('logging', {}) or {}
    return setup_logger(
        name=name,
        log_level=str(logging_config.get('level', 'INFO')),
        log_dir=logging_config.get('log_directory'),
        log_file=log_file or logging_config.get('log_file'),
        console_output=console_output
    )


def get_logger(name: str = "diary_metrics") -> logging.Logger:
    return logging.getLogger(name)
