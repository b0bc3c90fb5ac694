from loguru import logger
import os
import sys
import logging

from tgupdater.config import settings

LOG_FORMAT = "{time:YYYY-MM-DD HH:mm:ss} | {level: <8} | {name}:{function}:{line} - {message}"

logger.remove()
logger.add(
    sys.stdout,
    level=settings.logging.LOGGING_LEVEL.value,
    serialize=settings.logging.LOGGING_SERIALIZE,
    backtrace=True,
    diagnose=True,   # только для dev
    enqueue=True
)

if settings.logging.LOGGING_TO_FILE:
    # Логи INFO, DEBUG, WARNING - в отдельный файл
    logger.add(
        os.path.join(settings.logging.LOGGING_DIR, "app.log"),
        rotation="10 MB",
        retention="10 days",
        compression="zip",
        level="DEBUG",
        backtrace=True,
        diagnose=True,   # только для dev
        enqueue=True,
        filter=lambda record: record["level"].name in ["DEBUG", "INFO", "WARNING"],
        format=LOG_FORMAT
    )

    # Логи ERROR и CRITICAL - в отдельный файл для ошибок
    logger.add(
        os.path.join(settings.logging.LOGGING_DIR, "error.log"),
        rotation="5 MB",
        retention="30 days",
        compression="zip",
        level="ERROR",
        backtrace=True,
        diagnose=True,   # только для dev
        enqueue=True,
        format=LOG_FORMAT
    )


class InterceptHandler(logging.Handler):
    def emit(self, record):
        try:
            level = logger.level(record.levelname).name
        except ValueError:
            level = record.levelno
        logger.opt(exception=record.exc_info, depth=6).log(level, record.getMessage())


def setup_logging():
    """Перехватываем все логи Python, httpx и Uvicorn в Loguru"""
    logging.basicConfig(handlers=[InterceptHandler()], level=0, force=True)

    for name in logging.root.manager.loggerDict.keys():
        logging.getLogger(name).handlers = [InterceptHandler()]
        logging.getLogger(name).propagate = False

    for name in ("uvicorn", "uvicorn.error", "uvicorn.access", "httpx"):
        logging.getLogger(name).handlers = [InterceptHandler()]
        logging.getLogger(name).propagate = False
