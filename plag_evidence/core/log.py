"""Logging helpers for plag-evidence."""

import logging
from typing import Optional, Union

base_logger = logging.getLogger('plag_evidence')


def set_logger(
    name: str,
    level: Union[int, str] = logging.INFO,
    fmt: Optional[str] = None,
    remove_handlers: bool = False,
    propagate: bool = False,
) -> logging.Logger:
    """
    Attach a stream handler to a named logger.

    Args:
        name: Logger name, e.g. 'plag_evidence' or 'plag_evidence.matcher'
        level: Logging level as int or name ('DEBUG', 'INFO', ...)
        fmt: Format string for the handler
        remove_handlers: Drop any handlers already attached to the logger
        propagate: Whether records also reach ancestor loggers

    Returns:
        The configured logger
    """
    logger = logging.getLogger(name)
    if isinstance(level, str):
        level = logging.getLevelName(level.upper())

    if remove_handlers:
        for handler in list(logger.handlers):
            logger.removeHandler(handler)

    handler = logging.StreamHandler()
    handler.setFormatter(logging.Formatter(fmt or '%(asctime)s - %(name)s - %(levelname)s - %(message)s'))
    logger.addHandler(handler)
    logger.setLevel(level)
    logger.propagate = propagate
    return logger
