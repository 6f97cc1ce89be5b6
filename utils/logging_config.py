"""
Logging setup: console output plus optional Google Cloud Logging.
"""
import atexit
import logging
import sys
from typing import Optional

from google.cloud import logging as cloud_logging

from config import get_config

APP_LOGGER_NAME = 'fitness_sync'
LOG_FORMAT = '%(asctime)s - %(name)s - %(levelname)s - %(message)s'
DATE_FORMAT = '%Y-%m-%d %H:%M:%S'

_cloud_logging_client = None


def _console_handler(level: int) -> logging.Handler:
    handler = logging.StreamHandler(sys.stdout)
    handler.setLevel(level)
    handler.setFormatter(logging.Formatter(LOG_FORMAT, datefmt=DATE_FORMAT))
    return handler


def _attach_cloud_handler(root_logger: logging.Logger, credentials_path: str,
                          level: int, logger: logging.Logger) -> None:
    """Add a Cloud Logging handler; any failure leaves console logging in place."""
    global _cloud_logging_client

    try:
        _cloud_logging_client = cloud_logging.Client.from_service_account_json(credentials_path)
        handler = _cloud_logging_client.get_default_handler()
        handler.setLevel(level)
        root_logger.addHandler(handler)
        atexit.register(_cleanup_cloud_logging)
        logger.info("Google Cloud Logging initialized successfully")
    except Exception as e:
        _cloud_logging_client = None
        logger.warning(f"Failed to initialize Google Cloud Logging: {e}")
        logger.info("Continuing with console logging only")


def setup_logging(use_cloud_logging: bool = True) -> logging.Logger:
    """
    Configure the root logger from the application config.

    Handlers are installed on the root logger so module loggers created
    with ``logging.getLogger(__name__)`` share the same output. Calling this
    again replaces the previous handlers.

    Args:
        use_cloud_logging: Also ship logs to Google Cloud when credentials exist

    Returns:
        The application logger
    """
    config = get_config()
    level = getattr(logging, config.log_level.upper(), logging.INFO)

    root_logger = logging.getLogger()
    root_logger.handlers.clear()
    root_logger.setLevel(level)
    root_logger.addHandler(_console_handler(level))

    logger = logging.getLogger(APP_LOGGER_NAME)
    logger.setLevel(level)

    if not use_cloud_logging:
        return logger

    if config.gcs_credentials_path:
        _attach_cloud_handler(root_logger, config.gcs_credentials_path, level, logger)
    else:
        logger.info("Google Cloud Logging disabled - no credentials file specified")

    return logger


def get_logger(name: Optional[str] = None) -> logging.Logger:
    """Logger under the application namespace, e.g. ``fitness_sync.sync``."""
    if name:
        return logging.getLogger(f'{APP_LOGGER_NAME}.{name}')
    return logging.getLogger(APP_LOGGER_NAME)


def _cleanup_cloud_logging() -> None:
    """Flush and close the Cloud Logging client at interpreter exit."""
    global _cloud_logging_client
    if _cloud_logging_client is None:
        return
    try:
        flush_logs()
        _cloud_logging_client.close()
    except Exception:
        # Shutdown-time transport errors are not actionable
        pass
    _cloud_logging_client = None


def flush_logs() -> None:
    """Flush every root handler; call before exiting."""
    for handler in logging.getLogger().handlers:
        handler.flush()
