# =============================================================================
# LOGGING: Package Logger Setup
# =============================================================================
"""
Console and optional file logging for the ``dipolefield`` namespace.

Every module logs through ``logging.getLogger(__name__)``; only entry points
(the viewer script, notebooks) call ``setup_logging``. Records still
propagate to the root logger so pytest's ``caplog`` sees them.
"""

import logging
import sys
from typing import Optional, Union

PACKAGE_LOGGER = "dipolefield"
LOG_FORMAT = '%(asctime)s - %(name)s - %(levelname)s - %(message)s'
DATE_FORMAT = '%H:%M:%S'

# Third-party loggers that flood DEBUG output (font lookup, worker startup)
NOISY_LOGGERS = ('matplotlib', 'PIL', 'joblib')


def resolve_level(level: Union[int, str]) -> int:
    """Accept a level number or a name such as ``'debug'``."""
    if isinstance(level, int):
        return level
    value = logging.getLevelName(str(level).upper())
    if not isinstance(value, int):
        raise ValueError(f"Unknown log level '{level}'")
    return value


def setup_logging(level: Union[int, str] = logging.INFO,
                  log_file: Optional[str] = None) -> logging.Logger:
    """
    Attach a stdout handler (and a file handler if ``log_file`` is given)
    to the package logger. Calling it again replaces the previous handlers.

    Returns:
        The package logger
    """
    level = resolve_level(level)
    logger = logging.getLogger(PACKAGE_LOGGER)
    logger.setLevel(level)

    for handler in list(logger.handlers):
        logger.removeHandler(handler)
        handler.close()

    formatter = logging.Formatter(LOG_FORMAT, datefmt=DATE_FORMAT)
    handlers = [logging.StreamHandler(sys.stdout)]
    if log_file:
        handlers.append(logging.FileHandler(log_file, mode='w', encoding='utf-8'))
    for handler in handlers:
        handler.setLevel(level)
        handler.setFormatter(formatter)
        logger.addHandler(handler)

    for name in NOISY_LOGGERS:
        logging.getLogger(name).setLevel(max(level, logging.WARNING))

    logger.debug("Logging to stdout%s at %s",
                 f" and {log_file}" if log_file else "", logging.getLevelName(level))
    return logger


__all__ = ['PACKAGE_LOGGER', 'resolve_level', 'setup_logging']
