from loguru import logger
import sys
import os

from rulebook_rag.core.config import settings

logger.remove()
logger.add(
    sys.stderr,
    format="<green>{time}</green> | <level>{level}</level> | <cyan>{message}</cyan>",
    level=settings.LOG_LEVEL,
)

if settings.LOG_TO_FILE:
    os.makedirs(settings.LOG_DIR, exist_ok=True)
    logger.add(
        f"{settings.LOG_DIR}/app.log",
        level=settings.LOG_LEVEL,
        rotation="1 day",
        retention="7 days",
        compression="zip",
        format="{time} | {level} | {message}",
    )

__all__ = ["logger"]
