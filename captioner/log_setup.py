"""Logging configuration for Captioner."""

import logging
import os
import sys
from logging.handlers import RotatingFileHandler
from typing import Iterable, Optional

from .exceptions import FileSystemError
from .utils import ensure_dir_exists

DEFAULT_LOG_FORMAT = '%(asctime)s - %(levelname)s - [%(name)s:%(lineno)d] - %(message)s'
DEFAULT_DATE_FORMAT = '%Y-%m-%d %H:%M:%S'
# Request bodies for audio uploads are huge at DEBUG
NOISY_LOGGERS = ("urllib3", "requests")

def setup_logging(
    log_level: int = logging.INFO,
    log_dir: Optional[str] = "logs",
    log_file: str = "captioner.log",
    console_level: Optional[int] = None,
    max_bytes: int = 10 * 1024 * 1024, # 10 MB
    backup_count: int = 5,
    quiet_loggers: Iterable[str] = NOISY_LOGGERS
) -> Optional[str]:
    """
    Configures the root logger for a run.

    Console output goes to stderr so tqdm bars and log lines share one stream.
    The rotating file always records at `log_level`; the console may be set
    quieter with `console_level`. Calling it again replaces every handler the
    previous call installed.

    Args:
        log_level: Minimum level for the log file (and console, by default).
        log_dir: Directory for the log file. None disables file logging.
        log_file: Name of the log file inside `log_dir`.
        console_level: Level for the stderr handler. Defaults to `log_level`.
        max_bytes: Size at which the log file rotates.
        backup_count: Rotated files to keep.
        quiet_loggers: Library loggers capped at WARNING.

    Returns:
        Path of the log file, or None if only console logging is active.
    """
    root = logging.getLogger()
    for handler in root.handlers[:]:
        root.removeHandler(handler)
        handler.close()

    root.setLevel(log_level)
    formatter = logging.Formatter(DEFAULT_LOG_FORMAT, datefmt=DEFAULT_DATE_FORMAT)

    console = logging.StreamHandler(sys.stderr)
    console.setFormatter(formatter)
    console.setLevel(log_level if console_level is None else console_level)
    root.addHandler(console)

    for name in quiet_loggers:
        logging.getLogger(name).setLevel(logging.WARNING)

    if not log_dir:
        return None

    log_path = os.path.join(log_dir, log_file)
    try:
        ensure_dir_exists(log_dir)
        file_handler = RotatingFileHandler(log_path, maxBytes=max_bytes, backupCount=backup_count, encoding='utf-8')
    except (FileSystemError, OSError) as e:
        root.error(f"File logging disabled, could not open {log_path}: {e}")
        return None

    file_handler.setFormatter(formatter)
    file_handler.setLevel(log_level)
    root.addHandler(file_handler)
    root.info(f"Logging initialized. Log file: {log_path}")
    return log_path
