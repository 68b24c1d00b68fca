"""
Logging estructurado en JSON por líneas.

Cada categoría escribe su propio archivo dentro de LOG_DIR; el servicio de
logs (`logs_service.get_file_system_logs`) lee exactamente estos archivos.
"""

import json
import logging
import logging.config
from datetime import datetime, timezone
from pathlib import Path

from app.config import Settings, get_settings

SECURITY_LOGGER = "oficri.security"
EXCEPTIONS_LOGGER = "oficri.exceptions"
REJECTIONS_LOGGER = "oficri.rejections"
REQUESTS_LOGGER = "oficri.requests"

# Atributos estándar de LogRecord que no se copian como campos extra
_RESERVED_ATTRS = set(vars(logging.LogRecord("", 0, "", 0, "", None, None))) | {
    "message",
    "asctime",
    "taskName",
}


class JsonFormatter(logging.Formatter):
    """Formatter que convierte cada registro en una línea JSON."""

    def format(self, record: logging.LogRecord) -> str:
        log_obj = {
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }

        for key, value in record.__dict__.items():
            if key not in _RESERVED_ATTRS and not key.startswith("_"):
                log_obj[key] = value

        if record.exc_info:
            log_obj["exception"] = self.formatException(record.exc_info)

        return json.dumps(log_obj, ensure_ascii=False, default=str)


def _file_handler(path: Path, level: str = "INFO") -> dict:
    return {
        "class": "logging.FileHandler",
        "filename": str(path),
        "encoding": "utf-8",
        "formatter": "json",
        "level": level,
    }


def setup_logging(settings: Settings | None = None) -> None:
    """Configura consola + un archivo JSON por categoría."""
    settings = settings or get_settings()
    log_dir = settings.log_path
    log_dir.mkdir(parents=True, exist_ok=True)

    logging.config.dictConfig({
        "version": 1,
        "disable_existing_loggers": False,
        "formatters": {
            "json": {"()": JsonFormatter},
            "console": {
                "format": "%(asctime)s | %(levelname)s | %(name)s | %(message)s",
            },
        },
        "handlers": {
            "console": {
                "class": "logging.StreamHandler",
                "formatter": "console",
                "level": settings.LOG_LEVEL,
            },
            "app_file": _file_handler(log_dir / "app.log", settings.LOG_LEVEL),
            "error_file": _file_handler(log_dir / "error.log", "ERROR"),
            "security_file": _file_handler(log_dir / "security.log"),
            "exceptions_file": _file_handler(log_dir / "exceptions.log", "ERROR"),
            "rejections_file": _file_handler(log_dir / "rejections.log"),
        },
        "loggers": {
            SECURITY_LOGGER: {"handlers": ["security_file"]},
            EXCEPTIONS_LOGGER: {"handlers": ["exceptions_file"]},
            REJECTIONS_LOGGER: {"handlers": ["rejections_file"]},
        },
        "root": {
            "handlers": ["console", "app_file", "error_file"],
            "level": settings.LOG_LEVEL,
        },
    })
