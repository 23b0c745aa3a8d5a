"""
Unified logging setup using Loguru.
"""

import sys
from pathlib import Path
from typing import Optional

from loguru import logger

from .config import LoggingConfig, get_data_dir


def get_log_file_path() -> Path:
    """Get the path to the log file."""
    return get_data_dir() / "ampache-minion.log"


def setup_loguru(config: Optional[LoggingConfig] = None) -> None:
    """
    Configure loguru with a rotating file sink and an optional console sink.

    Args:
        config: Logging configuration (defaults used when omitted)
    """
    config = config or LoggingConfig()
    log_file = Path(config.log_file) if config.log_file else get_log_file_path()
    log_file.parent.mkdir(parents=True, exist_ok=True)

    # Remove default handler
    logger.remove()

    logger.add(
        log_file,
        rotation="10 MB",
        retention=5,  # Keep 5 backup files
        level=config.level,
        format="{time:YYYY-MM-DD HH:mm:ss} | {level: <8} | {name}:{line} | {message}",
        enqueue=False,
    )

    if config.console_output:
        logger.add(sys.stderr, level=config.level, format="{level}: {message}")

    logger.info(f"Loguru initialized: {log_file} (level={config.level})")
