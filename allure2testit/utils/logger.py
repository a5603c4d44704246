import logging
import sys
from typing import Optional, TextIO

LOG_FORMAT = '%(asctime)s - %(name)s - %(levelname)s - %(message)s'

def setup_logger(name: str = "allure2testit", verbose: bool = False, stream: Optional[TextIO] = None) -> logging.Logger:
    """
    Configures the import logger; child loggers (reader, client, ...) share its handler.
    Calling it again returns the already configured logger.
    """
    logger = logging.getLogger(name)
    if logger.handlers:
        return logger

    logger.setLevel(logging.DEBUG if verbose else logging.INFO)

    handler = logging.StreamHandler(stream or sys.stdout)
    handler.setFormatter(logging.Formatter(LOG_FORMAT, datefmt='%H:%M:%S'))
    logger.addHandler(handler)

    # aiohttp only gets a say when something goes wrong on the wire
    logging.getLogger("aiohttp").setLevel(logging.DEBUG if verbose else logging.WARNING)

    return logger
