"""
Logging Configuration
Handlers for the ``momopay`` logger namespace and per-request access logging.

Library modules only call ``logging.getLogger(__name__)``; nothing is
attached until an application (or the CLI) configures the namespace.
"""

import logging
import os
import sys
import time
from logging.handlers import RotatingFileHandler

LOG_DIR = 'logs'
NAMESPACE = 'momopay'
DATE_FORMAT = '%Y-%m-%d %H:%M:%S'

CONSOLE_FORMAT = '%(levelname)s - %(name)s - %(message)s'
FILE_FORMAT = '%(asctime)s - %(name)s - %(levelname)s - %(message)s'
ERROR_FORMAT = FILE_FORMAT + '\n%(pathname)s:%(lineno)d'

MAX_BYTES = 10485760  # 10MB
BACKUP_COUNT = 10


def _rotating_handler(filename, level, fmt):
    if not os.path.isdir(LOG_DIR):
        try:
            os.makedirs(LOG_DIR)
        except OSError:
            return None

    handler = RotatingFileHandler(os.path.join(LOG_DIR, filename), maxBytes=MAX_BYTES, backupCount=BACKUP_COUNT)
    handler.setLevel(level)
    handler.setFormatter(logging.Formatter(fmt, datefmt=DATE_FORMAT))
    return handler


def get_logger(name: str, level: int = logging.INFO) -> logging.Logger:
    """
    Get a logger under the momopay namespace, configuring the namespace
    with console and file output on first use

    Args:
        name: Logger name, e.g. 'momopay.api'
        level: Level for the namespace when it is first configured

    Returns:
        Logger instance
    """
    package_logger = logging.getLogger(NAMESPACE)

    if not package_logger.handlers:
        package_logger.setLevel(level)

        console_handler = logging.StreamHandler(sys.stdout)
        console_handler.setFormatter(logging.Formatter(CONSOLE_FORMAT))
        package_logger.addHandler(console_handler)

        for handler in (
            _rotating_handler('momopay.log', logging.INFO, FILE_FORMAT),
            _rotating_handler('error.log', logging.ERROR, ERROR_FORMAT),
        ):
            if handler is not None:
                package_logger.addHandler(handler)

    return logging.getLogger(name)


def configure_app_logging(app):
    """
    Configure logging for the Flask application

    Test apps keep the namespace level but attach no handlers, so pytest's
    log capture sees every record.

    Args:
        app: Flask application instance
    """
    level = logging.DEBUG if app.config.get('DEBUG') else logging.INFO
    app.logger.setLevel(level)

    if app.config.get('TESTING'):
        logging.getLogger(NAMESPACE).setLevel(level)
        return

    get_logger(NAMESPACE, level)

    error_handler = _rotating_handler('error.log', logging.ERROR, ERROR_FORMAT)
    if error_handler is not None:
        app.logger.addHandler(error_handler)


class RequestLogger:
    """Middleware logging one access line per API request"""

    def __init__(self, app=None):
        self.app = app
        if app is not None:
            self.init_app(app)

    def init_app(self, app):
        """Initialize request logging"""
        logger = logging.getLogger(f'{NAMESPACE}.access')

        @app.before_request
        def start_timer():
            from flask import g
            g.request_started = time.monotonic()

        @app.after_request
        def log_response(response):
            from flask import g, request
            started = g.get('request_started')
            duration_ms = (time.monotonic() - started) * 1000 if started is not None else 0.0
            logger.info(
                '%s %s - Status: %s - %.1fms - IP: %s',
                request.method, request.path, response.status_code, duration_ms, request.remote_addr
            )
            return response
