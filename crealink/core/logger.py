"""Logging configuration for the CREALINK backend"""
import sys

from loguru import logger

from crealink.core.config import get_settings

_configured = False


def setup_logging():
    """Configure loguru sinks from settings. Safe to call more than once."""
    global _configured
    if _configured:
        return logger

    settings = get_settings()

    # Remove default handler
    logger.remove()

    logger.add(
        sys.stderr,
        level=settings.log_level,
        format="<green>{time:YYYY-MM-DD HH:mm:ss}</green> | <level>{level: <8}</level> | <cyan>{name}</cyan>:<cyan>{function}</cyan>:<cyan>{line}</cyan> - <level>{message}</level>"
    )

    if settings.log_file:
        log_path = settings.resolve_path(settings.log_file)
        log_path.parent.mkdir(parents=True, exist_ok=True)
        logger.add(
            log_path,
            level=settings.log_level,
            format="{time:YYYY-MM-DD HH:mm:ss} | {level: <8} | {name}:{function}:{line} - {message}",
            rotation=f"{settings.log_max_size_mb} MB",
            retention=settings.log_backup_count,
            compression="zip"
        )

    _configured = True
    return logger