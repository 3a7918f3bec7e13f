import logging
import sys
from typing import Union

LOG_FORMAT = "%(asctime)s | %(levelname)-8s | %(name)s: %(message)s"
PACKAGE_LOGGER = "llm_chat_kit"


def _uvicorn_handlers():
    return list(logging.getLogger("uvicorn.error").handlers)


def setup_logger(name: str = PACKAGE_LOGGER, level: Union[str, int] = "INFO") -> logging.Logger:
    """Configure the package logger once; module loggers below it inherit the handlers.

    Under uvicorn the records go to uvicorn's own console handlers, otherwise
    to stdout with :data:`LOG_FORMAT`. Calling it again only changes the level.
    """
    logger = logging.getLogger(name)
    logger.setLevel(level.upper() if isinstance(level, str) else level)
    if logger.handlers:
        return logger

    handlers = _uvicorn_handlers()
    if not handlers:
        stdout = logging.StreamHandler(sys.stdout)
        stdout.setFormatter(logging.Formatter(LOG_FORMAT))
        handlers = [stdout]
    for handler in handlers:
        logger.addHandler(handler)
    # keep records out of the root logger so uvicorn does not print them twice
    logger.propagate = False
    return logger
