import logging
from logging.handlers import RotatingFileHandler

from .config import settings


def configure_logging() -> None:
    logger = logging.getLogger()
    logger.setLevel(settings.log_level.upper())

    fmt = logging.Formatter(
        "%(asctime)s %(levelname)s %(name)s - %(message)s"
    )

    # Console
    ch = logging.StreamHandler()
    ch.setFormatter(fmt)
    logger.addHandler(ch)

    # Rotating file, the loop logs every commit and adjustment
    if settings.log_file:
        fh = RotatingFileHandler(
            settings.log_file, maxBytes=2_000_000, backupCount=5
        )
        fh.setFormatter(fmt)
        logger.addHandler(fh)

    # Silence noisy access logging
    logging.getLogger("uvicorn.access").setLevel(logging.WARNING)
