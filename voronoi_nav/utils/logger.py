"""
Logging utilities
"""

import sys
from pathlib import Path
from typing import Optional
from loguru import logger


def SetupLogger(log_dir: Optional[str] = "Logs", level: str = "INFO"):
    """
    Setup logger with console output and an optional rotating file sink

    Args:
        log_dir: Directory to save log files, None disables the file sink
        level: Logging level
    """
    logger.remove()

    logger.add(
        sys.stderr,
        format="<green>{time:YYYY-MM-DD HH:mm:ss}</green> | "
               "<level>{level: <8}</level> | "
               "<cyan>{name}</cyan>:<cyan>{function}</cyan>:<cyan>{line}</cyan> - "
               "<level>{message}</level>",
        level=level,
        colorize=True
    )

    if log_dir is None:
        return logger

    log_path = Path(log_dir)
    log_path.mkdir(parents=True, exist_ok=True)

    logger.add(
        log_path / "voronoi_nav_{time:YYYY-MM-DD}.log",
        rotation="00:00",
        retention="7 days",
        level=level,
        format="{time:YYYY-MM-DD HH:mm:ss} | {level: <8} | {name}:{function}:{line} - {message}"
    )

    return logger
