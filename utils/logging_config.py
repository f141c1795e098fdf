# utils/logging_config.py
"""
Logging centralizado de la aplicación.

- Consola + archivo rotativo
- Nivel según settings (LOG_LEVEL / APP_DEBUG)
"""

from __future__ import annotations

from logging.config import dictConfig
from pathlib import Path

from config.settings import settings


BASE_DIR = Path(__file__).resolve().parent.parent


def setup_logging() -> None:
    """
    Configura logging global de la aplicación.
    """
    log_level = settings.LOG_LEVEL or "INFO"
    log_dir = BASE_DIR / settings.LOG_DIR
    log_dir.mkdir(parents=True, exist_ok=True)

    dictConfig(
        {
            "version": 1,
            "disable_existing_loggers": False,

            # ----------------------------
            # FORMATTERS
            # ----------------------------
            "formatters": {
                "default": {
                    "format": "%(asctime)s | %(levelname)s | %(name)s | %(message)s",
                },
                "verbose": {
                    "format": (
                        "%(asctime)s | %(levelname)s | "
                        "%(name)s | %(module)s:%(lineno)d | %(message)s"
                    ),
                },
            },

            # ----------------------------
            # HANDLERS
            # ----------------------------
            "handlers": {
                "console": {
                    "class": "logging.StreamHandler",
                    "formatter": "default",
                    "level": log_level,
                },
                "file": {
                    "class": "logging.handlers.RotatingFileHandler",
                    "formatter": "verbose",
                    "filename": str(log_dir / "app.log"),
                    "maxBytes": 5 * 1024 * 1024,  # 5 MB
                    "backupCount": 5,
                    "encoding": "utf-8",
                    "level": log_level,
                },
            },

            "root": {
                "level": log_level,
                "handlers": ["console", "file"],
            },

            "loggers": {
                "uvicorn.access": {"level": "WARNING"},
                "urllib3": {"level": "WARNING"},
            },
        }
    )
