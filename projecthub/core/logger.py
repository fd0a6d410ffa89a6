import logging

from pythonjsonlogger import jsonlogger

from projecthub.core.config import settings

LOGGER_PREFIX = "projecthub"


def get_logger(name: str) -> logging.Logger:
    """
    Return a JSON logger named ``projecthub.<name>``.

    The handler is attached once per logger, so calling this at import time
    from several modules does not duplicate output.
    """
    logger = logging.getLogger(f"{LOGGER_PREFIX}.{name}")
    if not logger.handlers:
        log_handler = logging.StreamHandler()
        formatter = jsonlogger.JsonFormatter(
            fmt="%(asctime)s %(levelname)s %(name)s %(message)s",
            datefmt="%Y-%m-%dT%H:%M:%SZ"
        )
        log_handler.setFormatter(formatter)
        logger.addHandler(log_handler)
        logger.setLevel(settings.LOG_LEVEL.upper())
    return logger
