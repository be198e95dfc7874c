import logging

LOG_FORMAT = "[%(asctime)s] %(levelname)s - %(name)s: %(message)s"
DATE_FORMAT = "%Y-%m-%d %H:%M:%S"


def get_logger(name: str, level=None):
    """
    Logger with a single stream handler.

    `level` accepts a name ("DEBUG") or a number and is applied on every
    call, so a scenario config can retune a logger created at import time.
    """
    logger = logging.getLogger(name)

    if not logger.handlers:
        logger.setLevel(logging.INFO)
        handler = logging.StreamHandler()
        handler.setFormatter(logging.Formatter(LOG_FORMAT, datefmt=DATE_FORMAT))
        logger.addHandler(handler)

    if level is not None:
        logger.setLevel(level.upper() if isinstance(level, str) else level)

    return logger


def configure_logging(config: dict, name: str):
    """Apply the `logging.level` section of a loaded config to `name`."""
    level = (config.get("logging") or {}).get("level", "INFO")
    return get_logger(name, level)
