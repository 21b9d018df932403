"""
Logging setup for the bot process.

The app, uvicorn and slack_sdk all log through the root handlers configured
here; uvicorn is started with log_config=None so it adds none of its own.
"""

import logging
import logging.handlers
from pathlib import Path
from typing import Optional


LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
VERBOSE_LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(filename)s:%(lineno)d - %(message)s"
DATE_FORMAT = "%Y-%m-%d %H:%M:%S"

# Library loggers at normal verbosity. --verbose lowers each to at most INFO.
LIBRARY_LOG_LEVELS = {
    "urllib3": logging.WARNING,
    "msal": logging.WARNING,
    "aiohttp": logging.WARNING,
    "slack_sdk": logging.WARNING,
    "slack_sdk.socket_mode": logging.INFO,  # connect/reconnect notices
    "uvicorn.error": logging.INFO,
    "uvicorn.access": logging.WARNING,  # Slack retries make this noisy
}


def setup_logging(verbose: bool = False, log_file: Optional[str] = None):
    """
    Configure root logging for the CLI.

    Args:
        verbose: DEBUG for the bot's own modules, file/line in each record
        log_file: Also write to this file, rotated at 5MB
    """
    formatter = logging.Formatter(VERBOSE_LOG_FORMAT if verbose else LOG_FORMAT, datefmt=DATE_FORMAT)

    handlers = [logging.StreamHandler()]
    if log_file:
        Path(log_file).parent.mkdir(parents=True, exist_ok=True)
        handlers.append(logging.handlers.RotatingFileHandler(
            log_file,
            maxBytes=5 * 1024 * 1024,
            backupCount=3,
            encoding="utf-8",
        ))

    root_logger = logging.getLogger()
    root_logger.handlers.clear()
    root_logger.setLevel(logging.DEBUG if verbose else logging.INFO)
    for handler in handlers:
        handler.setFormatter(formatter)
        root_logger.addHandler(handler)

    for name, level in LIBRARY_LOG_LEVELS.items():
        logging.getLogger(name).setLevel(min(level, logging.INFO) if verbose else level)

    logging.getLogger(__name__).debug(f"Logging configured (verbose={verbose}, file={log_file})")
