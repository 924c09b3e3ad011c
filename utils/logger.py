"""
============================================================================
DEVICE MONITOR - LOGGING UTILITY
============================================================================
loguru sinks for console and rotating files, configured from settings.

Version: 1.0.0
License: MIT
============================================================================
"""

import sys
from typing import Optional

from loguru import logger

from config.settings import Settings, get_settings


CONSOLE_FORMAT = (
    "<green>{time:YYYY-MM-DD HH:mm:ss}</green> | "
    "<level>{level: <8}</level> | "
    "<cyan>{extra[name]}</cyan>:<cyan>{function}</cyan>:<cyan>{line}</cyan> - "
    "<level>{message}</level>"
)

FILE_FORMAT = "{time:YYYY-MM-DD HH:mm:ss} | {level: <8} | {extra[name]}:{function}:{line} - {message}"


# ============================================================================
# LOGGER CONFIGURATION
# ============================================================================

def setup_logging(settings: Optional[Settings] = None) -> None:
    """
    Configure loguru sinks.

    Removes the default handler, then adds a console sink and, when file
    logging is enabled, a rotating application log plus a separate
    ``errors.log`` next to it.

    Args:
        settings: Application settings (defaults to ``get_settings()``)
    """
    settings = settings or get_settings()
    log_settings = settings.logging
    log_level = log_settings.level.value

    logger.remove()
    logger.configure(extra={"name": settings.app_name})

    # Console Handler
    if log_settings.console_enabled:
        logger.add(
            sys.stdout,
            format=CONSOLE_FORMAT,
            level=log_level,
            colorize=log_settings.colorize,
            backtrace=settings.debug,
            diagnose=settings.debug,
        )

    # File Handlers
    if log_settings.file_enabled:
        log_file_path = log_settings.file_path
        log_file_path.parent.mkdir(parents=True, exist_ok=True)

        logger.add(
            log_file_path,
            format=FILE_FORMAT,
            level=log_level,
            rotation=log_settings.rotation,
            retention=log_settings.retention,
            compression="zip",
            serialize=log_settings.serialize,
            enqueue=True,
        )

        logger.add(
            log_file_path.parent / "errors.log",
            format=FILE_FORMAT,
            level="ERROR",
            rotation="1 day",
            retention="7 days",
            compression="zip",
            enqueue=True,
        )

    logger.info("Logging system initialized")
    logger.info(f"Log level: {log_level}")
    logger.info(f"Console logging: {log_settings.console_enabled}")
    logger.info(f"File logging: {log_settings.file_enabled}")


def get_logger(name: Optional[str] = None):
    """
    Get logger instance with optional name.

    Args:
        name: Logger name (usually __name__)

    Returns:
        Logger instance
    """
    if name:
        return logger.bind(name=name)
    return logger
