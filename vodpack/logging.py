"""Centralized logging configuration for vodpack"""

import logging
from pathlib import Path
from typing import Optional

from rich.logging import RichHandler

from .config import LOG_DIR, LOG_LEVEL
from .utils import get_timestamp

def configure_logging(
    log_level: Optional[str] = None,
    file_logging: bool = True,
    log_dir: Optional[Path] = None
) -> Optional[Path]:
    """
    Central logging configuration for all modules.

    Args:
        log_level: Level name; falls back to VODPACK_LOG_LEVEL
        file_logging: Also write a timestamped log file
        log_dir: Directory for the log file (default LOG_DIR)

    Returns:
        Path of the log file, or None when file logging is disabled
    """
    level = (log_level or LOG_LEVEL).upper()
    logger = logging.getLogger("vodpack")
    logger.setLevel(level)

    # Remove existing handlers
    for handler in logger.handlers[:]:
        logger.removeHandler(handler)
        handler.close()

    console_handler = RichHandler(show_path=False, rich_tracebacks=True)
    console_handler.setFormatter(logging.Formatter("%(message)s"))
    logger.addHandler(console_handler)

    log_file = None
    if file_logging:
        target_dir = Path(log_dir) if log_dir is not None else LOG_DIR
        target_dir.mkdir(parents=True, exist_ok=True)
        log_file = target_dir / f"vodpack_{get_timestamp()}.log"
        file_handler = logging.FileHandler(log_file)
        file_handler.setFormatter(logging.Formatter(
            "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
        ))
        logger.addHandler(file_handler)

    logging.captureWarnings(True)
    return log_file
