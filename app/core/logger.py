"""
Logging estructurado de Deudas a Cero.

Una línea JSON por evento con `case_id` (expediente) y `action` como
claves de correlación. Los campos con credenciales o contenido de
documentos nunca llegan al log: se sustituyen por REDACTED.
"""
import json
import logging
import sys
from datetime import datetime
from pathlib import Path
from typing import Any, Optional

REDACTED = "***"

# Claves que pueden transportar secretos o datos personales sensibles
SENSITIVE_KEYS = frozenset({
    "password",
    "new_password",
    "current_password",
    "password_hash",
    "token",
    "jwt",
    "api_key",
    "contenido",
    "firma_data",
})


def redact(data: dict[str, Any]) -> dict[str, Any]:
    return {
        k: (REDACTED if k.lower() in SENSITIVE_KEYS else v)
        for k, v in data.items()
        if v is not None
    }


class StructuredLogger:
    """
    Envoltorio sobre `logging` con campos de contexto fijos.

    `bind()` devuelve un logger hijo que añade sus campos a cada evento
    (p. ej. el usuario de la petición) sin tocar al padre.
    """

    def __init__(self, logger: logging.Logger, context: Optional[dict[str, Any]] = None):
        self.logger = logger
        self.context = context or {}

    def bind(self, **context) -> "StructuredLogger":
        return StructuredLogger(self.logger, {**self.context, **context})

    def debug(self, message: str, case_id: Optional[str] = None, action: Optional[str] = None, **extra):
        self._log(logging.DEBUG, message, case_id, action, extra)

    def info(self, message: str, case_id: Optional[str] = None, action: Optional[str] = None, **extra):
        self._log(logging.INFO, message, case_id, action, extra)

    def warning(self, message: str, case_id: Optional[str] = None, action: Optional[str] = None, **extra):
        self._log(logging.WARNING, message, case_id, action, extra)

    def error(
        self,
        message: str,
        case_id: Optional[str] = None,
        action: Optional[str] = None,
        error: Optional[Exception] = None,
        **extra,
    ):
        if error is not None:
            extra["error_type"] = type(error).__name__
            extra["error_message"] = str(error)
        self._log(logging.ERROR, message, case_id, action, extra)

    def _log(
        self,
        level: int,
        message: str,
        case_id: Optional[str],
        action: Optional[str],
        extra: dict[str, Any],
    ):
        data = redact({**self.context, "case_id": case_id, "action": action, **extra})
        self.logger.log(level, message, extra={"data": data})


class JsonFormatter(logging.Formatter):

    def format(self, record: logging.LogRecord) -> str:
        log_obj = {
            "timestamp": datetime.utcnow().isoformat() + "Z",
            "level": record.levelname,
            "message": record.getMessage(),
            "logger": record.name,
        }
        log_obj.update(getattr(record, "data", {}))

        if record.exc_info:
            log_obj["exception"] = self.formatException(record.exc_info)

        return json.dumps(log_obj, ensure_ascii=False, default=str)


def configure_logging(name: str, level: str = "INFO", log_file: Optional[Path] = None) -> logging.Logger:
    """
    Handlers JSON a stdout y, si se indica, a fichero.

    Reconfigurar sustituye los handlers previos (no se duplican líneas).
    """
    base = logging.getLogger(name)
    base.setLevel(level)
    base.propagate = False
    for handler in list(base.handlers):
        base.removeHandler(handler)
        handler.close()

    console = logging.StreamHandler(sys.stdout)
    console.setFormatter(JsonFormatter())
    base.addHandler(console)

    if log_file:
        log_file.parent.mkdir(parents=True, exist_ok=True)
        file_handler = logging.FileHandler(log_file, encoding="utf-8")
        file_handler.setFormatter(JsonFormatter())
        base.addHandler(file_handler)

    return base


_default_logger: Optional[StructuredLogger] = None


def get_logger(name: str = "deudasacero") -> StructuredLogger:
    """
    Logger estructurado del proceso (singleton).

    Nivel y fichero salen de LOG_LEVEL y LOG_FILE.
    """
    global _default_logger

    if _default_logger is None:
        from app.core.config import get_settings

        settings = get_settings()
        _default_logger = StructuredLogger(
            configure_logging(name, settings.log_level, settings.log_file)
        )

    return _default_logger
