"""
Logging configuration.
"""
import logging.config


def setup_logging(level: str = "INFO") -> None:
    """Configure leveled logging for the application and uvicorn loggers."""
    logging.config.dictConfig({
        "version": 1,
        "disable_existing_loggers": False,
        "formatters": {
            "default": {
                "format": "%(asctime)s %(levelname)s [%(name)s] %(message)s",
            },
        },
        "handlers": {
            "console": {
                "class": "logging.StreamHandler",
                "formatter": "default",
            },
        },
        "loggers": {
            "app": {"handlers": ["console"], "level": level.upper(), "propagate": False},
        },
        "root": {"handlers": ["console"], "level": "WARNING"},
    })
