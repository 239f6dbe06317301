import logging
import logging.config
from pathlib import Path
from typing import Any, Dict

from app.core.config import settings

_ROTATE_BYTES = 10 * 1024 * 1024
_ROTATE_COUNT = 5


def _rotating(filename: str, level: str, log_dir: str) -> Dict[str, Any]:
    return {
        "class": "logging.handlers.RotatingFileHandler",
        "level": level,
        "formatter": "verbose",
        "filename": str(Path(log_dir) / filename),
        "maxBytes": _ROTATE_BYTES,
        "backupCount": _ROTATE_COUNT,
        "encoding": "utf-8",
    }


def build_logging_config(level: str, log_dir: str) -> Dict[str, Any]:
    """dictConfig for the API.

    ``consistency.log`` receives the aggregate service output only, so
    repaired course counters can be audited without the request noise.
    """
    app_handlers = ["console", "app_file", "error_file"]
    return {
        "version": 1,
        "disable_existing_loggers": False,
        "formatters": {
            "plain": {"format": "%(asctime)s %(levelname)-8s %(name)s: %(message)s"},
            "verbose": {"format": "%(asctime)s %(levelname)-8s %(name)s [%(module)s:%(lineno)d] %(message)s"},
        },
        "handlers": {
            "console": {
                "class": "logging.StreamHandler",
                "level": level,
                "formatter": "plain",
                "stream": "ext://sys.stdout",
            },
            "app_file": _rotating("elearning.log", "INFO", log_dir),
            "error_file": _rotating("errors.log", "ERROR", log_dir),
            "consistency_file": _rotating("consistency.log", "INFO", log_dir),
        },
        "root": {"level": "WARNING", "handlers": ["console"]},
        "loggers": {
            "app": {"level": level, "handlers": app_handlers, "propagate": False},
            "app.services.course_aggregate": {
                "level": "INFO",
                "handlers": app_handlers + ["consistency_file"],
                "propagate": False,
            },
            "sqlalchemy.engine": {"level": "WARNING", "handlers": ["console"], "propagate": False},
            "alembic": {"level": "INFO", "handlers": ["console"], "propagate": False},
            "uvicorn.access": {"level": "WARNING", "handlers": ["console"], "propagate": False},
        },
    }


def configure_logging():
    Path(settings.LOG_DIR).mkdir(parents=True, exist_ok=True)
    logging.config.dictConfig(build_logging_config(settings.LOG_LEVEL, settings.LOG_DIR))
