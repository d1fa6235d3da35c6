"""
Logging configuration for screenfuse.
"""
import logging
import sys
from typing import Optional

from screenfuse.core.config import get_settings


def setup_logging(level: Optional[str] = None) -> logging.Logger:
    """Setup library logging (level defaults to settings.log_level)."""
    level = level or get_settings().log_level
    
    # Configure root logger
    logging.basicConfig(
        level=getattr(logging, level.upper()),
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        handlers=[
            logging.StreamHandler(sys.stdout)
        ]
    )
    
    logger = logging.getLogger("screenfuse")
    logger.setLevel(getattr(logging, level.upper()))
    
    return logger


def get_logger(name: Optional[str] = None) -> logging.Logger:
    """Get a logger instance."""
    if name:
        return logging.getLogger(f"screenfuse.{name}")
    return logging.getLogger("screenfuse")
