"""
logging_config.py — Package Logger

Every module logs through logging.getLogger(__name__), so attaching handlers
to the 'nirs_cnn' logger routes the whole pipeline's progress messages.
"""

import logging
import sys

PACKAGE_LOGGER = 'nirs_cnn'
LOG_FORMAT     = '%(asctime)s %(levelname)-7s [%(name)s] %(message)s'
DATE_FORMAT    = '%Y-%m-%d %H:%M:%S'


def _make_handler(handler, level):
    handler.setLevel(level)
    handler.setFormatter(logging.Formatter(LOG_FORMAT, datefmt=DATE_FORMAT))
    return handler


def setup_logging(level=logging.INFO, log_file=None):
    """
    Attach console (and optionally file) output to the package logger.

    Calling it again replaces the previous handlers, so repeated runs in one
    interpreter session do not print every record twice.

    Parameters
    ----------
    level    : int or str — threshold, e.g. logging.DEBUG or 'INFO'
    log_file : str        — also write records to this file (overwritten)

    Returns
    -------
    logger : logging.Logger — the 'nirs_cnn' logger
    """
    logger = logging.getLogger(PACKAGE_LOGGER)
    for old in list(logger.handlers):
        logger.removeHandler(old)
        old.close()

    logger.setLevel(level)
    logger.addHandler(_make_handler(logging.StreamHandler(sys.stdout), level))
    if log_file:
        logger.addHandler(_make_handler(
            logging.FileHandler(log_file, mode='w', encoding='utf-8'), level))

    logger.debug("Logging to stdout%s at level %s",
                 f" and {log_file}" if log_file else '', logging.getLevelName(logger.level))
    return logger
