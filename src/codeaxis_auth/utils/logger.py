"""
Logging configuration for the auth client.
"""
import sys
from loguru import logger as _logger

from ..config.settings import settings


def setup_logging():
    """Configure logging for the application."""
    # Remove default logger
    _logger.remove()

    # Console logging
    _logger.add(
        sys.stderr,
        level=settings.LOG_LEVEL,
        format="<green>{time:YYYY-MM-DD HH:mm:ss}</green> | <level>{level: <8}</level> | <cyan>{name}</cyan>:<cyan>{function}</cyan>:<cyan>{line}</cyan> - <level>{message}</level>",
        colorize=True
    )

    # File logging
    if settings.LOG_TO_FILE:
        try:
            settings.LOG_DIR.mkdir(parents=True, exist_ok=True)
        except OSError as e:
            _logger.warning(f"File logging disabled, cannot create {settings.LOG_DIR}: {e}")
        else:
            _logger.add(
                settings.LOG_DIR / settings.LOG_FILE,
                level=settings.LOG_LEVEL,
                format="{time:YYYY-MM-DD HH:mm:ss} | {level: <8} | {name}:{function}:{line} - {message}",
                rotation=settings.LOG_MAX_SIZE,
                retention=settings.LOG_BACKUP_COUNT,
                compression="gz"
            )

    _logger.debug(f"API base URL: {settings.API_BASE_URL}")


# Setup logging when module is imported
setup_logging()

# Export the configured logger
logger = _logger
