# services/refinery_dashboard/utils/logging.py

import sys
from loguru import logger
from config import settings

_configured = False


def setup_logging():
    """
    Configures the loguru logger for the refinery dashboard.

    Logs go to stdout so the container runtime can collect them.
    The level follows LOG_LEVEL from config.py/.env.
    Routers call this at import time, the sink is only installed once.
    """
    global _configured
    if _configured:
        return logger

    logger.remove()

    log_format = (
        "<green>{time:YYYY-MM-DD HH:mm:ss}</green> | "
        "<level>{level: <8}</level> | "
        "<cyan>{name}</cyan>:<cyan>{function}</cyan>:<cyan>{line}</cyan> - "
        "<level>{message}</level>"
    )

    logger.add(
        sys.stdout,
        colorize=True,
        format=log_format,
        level=settings.LOG_LEVEL.upper(),
        enqueue=True,
        backtrace=False,
        diagnose=False,
    )

    _configured = True
    logger.info(
        f"📜 Logging initialized for refinery_dashboard (level={settings.LOG_LEVEL.upper()})"
    )
    return logger
