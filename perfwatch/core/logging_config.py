"""
Logging configuration for production use.

Handlers live on the package logger only; module loggers are its children
and propagate to it, so the process writes a single rotating log file.
"""

import logging
import logging.handlers

from .config import config

PACKAGE_LOGGER = "perfwatch"
LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"


def _configure_package_logger(logger: logging.Logger) -> None:
    logger.setLevel(config.log_level)
    formatter = logging.Formatter(fmt=LOG_FORMAT, datefmt="%Y-%m-%d %H:%M:%S")

    handlers = [
        logging.StreamHandler(),
        logging.handlers.RotatingFileHandler(
            config.logs_dir / f"{PACKAGE_LOGGER}.log",
            maxBytes=10 * 1024 * 1024,  # 10MB
            backupCount=5,
        ),
    ]
    for handler in handlers:
        handler.setLevel(config.log_level)
        handler.setFormatter(formatter)
        logger.addHandler(handler)


def setup_logging(logger_name: str = PACKAGE_LOGGER) -> logging.Logger:
    """
    Return a logger under the package logger, configuring the latter once.

    Args:
        logger_name: Name of the logger (typically the module name)

    Returns:
        Logger instance
    """
    package_logger = logging.getLogger(PACKAGE_LOGGER)

    # Don't add handlers if the package logger is already configured
    if not package_logger.handlers:
        _configure_package_logger(package_logger)

    return logging.getLogger(logger_name)
