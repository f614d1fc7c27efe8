import logging
import logging.config
import os


# Define base directories
BASE_DIR = os.path.abspath(os.path.join(os.path.dirname(__file__), "../../../"))
LOG_DIR = os.path.join(BASE_DIR, "logs")
CORE_LOG_DIR = os.path.join(LOG_DIR, "core")

# Ensure log directories exist
os.makedirs(CORE_LOG_DIR, exist_ok=True)

# Log file paths
CORE_LOG_FILE = os.path.join(CORE_LOG_DIR, "core.log")
CORE_ERROR_LOG_FILE = os.path.join(CORE_LOG_DIR, "core.error.log")

LOGGING_CONFIG = {
    "version": 1,
    "disable_existing_loggers": False,
    "formatters": {
        "standard": {
            "format": "[%(asctime)s] [%(levelname)s] [%(name)s] [%(filename)s:%(lineno)d] %(message)s",
            "datefmt": "%Y-%m-%d %H:%M:%S",
        },
    },
    "handlers": {
        "console": {
            "level": "INFO",
            "class": "logging.StreamHandler",
            "formatter": "standard",
        },
        "file_core": {
            "level": "DEBUG",
            "class": "logging.handlers.TimedRotatingFileHandler",
            "filename": CORE_LOG_FILE,
            "when": "midnight",
            "interval": 1,
            "backupCount": 30,
            "encoding": "utf-8",
            "formatter": "standard",
        },
        "file_error": {
            "level": "ERROR",
            "class": "logging.handlers.TimedRotatingFileHandler",
            "filename": CORE_ERROR_LOG_FILE,
            "when": "midnight",
            "interval": 1,
            "backupCount": 30,
            "encoding": "utf-8",
            "formatter": "standard",
        },
    },
    "loggers": {
        "aip": {
            "level": "DEBUG",
            "propagate": True,
        },
    },
    "root": {
        "handlers": ["console", "file_core", "file_error"],
        "level": "INFO",
    },
}


def setup_logging():
    """Apply default logging configuration."""
    logging.config.dictConfig(LOGGING_CONFIG)


def get_logger(name: str) -> logging.Logger:
    """Get a logger instance with standard configuration."""
    # Ensure configuration is applied at least once
    if not logging.getLogger().handlers:
        setup_logging()

    return logging.getLogger(name)
