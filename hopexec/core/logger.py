import logging
from logging.handlers import RotatingFileHandler
from hopexec.core.config import settings


def setup_logger():
    logger = logging.getLogger("hopexec")
    logger.setLevel(settings.LOG_LEVEL)

    formatter = logging.Formatter(settings.LOG_FORMAT)

    file_handler = RotatingFileHandler(
        settings.LOG_PATH, maxBytes=settings.LOG_MAX_BYTES, backupCount=settings.LOG_BACKUP_COUNT
    )
    file_handler.setFormatter(formatter)

    logger.addHandler(file_handler)
    return logger


logger = setup_logger()
