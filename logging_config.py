"""
Logging Configuration
Sets up centralized logging for the API, writing to the console and,
when a log directory is configured, to a rotating file.
"""

import logging
import logging.config
import os
import sys
from pathlib import Path


def setup_logging(log_level: str = "INFO", log_dir: str | None = None) -> None:
    """
    Configure logging for the application.

    Args:
        log_level: Logging level (default: INFO)
        log_dir: Optional directory to store ``api.log`` in.
    """
    handlers = {
        "console": {
            "class": "logging.StreamHandler",
            "stream": sys.stdout,
            "formatter": "default",
            "level": log_level,
        },
    }

    log_file_path = None
    if log_dir:
        Path(log_dir).mkdir(parents=True, exist_ok=True)
        log_file_path = os.path.join(log_dir, "api.log")
        handlers["file"] = {
            "class": "logging.handlers.RotatingFileHandler",
            "filename": log_file_path,
            "maxBytes": 10 * 1024 * 1024,  # 10 MB
            "backupCount": 5,
            "formatter": "default",
            "level": log_level,
            "encoding": "utf8",
        }

    logging_config = {
        "version": 1,
        "disable_existing_loggers": False,
        "formatters": {
            "default": {
                "format": "%(asctime)s - %(name)s - %(levelname)s - %(message)s",
                "datefmt": "%Y-%m-%d %H:%M:%S",
            },
        },
        "handlers": handlers,
        "loggers": {
            "": {  # Root logger
                "handlers": list(handlers),
                "level": log_level,
            },
            "werkzeug": {
                "level": "INFO",
            },
        },
    }

    logging.config.dictConfig(logging_config)

    if log_file_path:
        logging.getLogger(__name__).info("Logging initialized. Writing logs to %s", log_file_path)
