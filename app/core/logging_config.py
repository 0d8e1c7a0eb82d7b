"""
Structured logging configuration with request IDs
"""
import contextvars
import logging
import uuid
from datetime import datetime, timezone
from typing import Any, Dict

from pythonjsonlogger import jsonlogger

from app.core.config import Settings

# Request ID shared by every log record emitted while handling one request
request_id_var = contextvars.ContextVar("request_id", default=None)

_HANDLER_MARK = "_cruise_voyager_handler"


class CustomJsonFormatter(jsonlogger.JsonFormatter):
    """JSON formatter adding timestamp, request id and service info"""

    def __init__(self, *args, service: str = "cruise-voyager", environment: str = "local", **kwargs):
        super().__init__(*args, **kwargs)
        self.service = service
        self.environment = environment

    def add_fields(self, log_record: Dict[str, Any], record: logging.LogRecord, message_dict: Dict[str, Any]) -> None:
        super().add_fields(log_record, record, message_dict)
        log_record["timestamp"] = datetime.now(timezone.utc).isoformat()
        log_record["level"] = record.levelname
        log_record["logger"] = record.name

        request_id = request_id_var.get()
        if request_id:
            log_record["request_id"] = request_id

        log_record["service"] = self.service
        log_record["environment"] = self.environment


def setup_logging(settings: Settings) -> logging.Logger:
    """Configure the root logger. Safe to call more than once."""
    if settings.LOG_JSON:
        formatter: logging.Formatter = CustomJsonFormatter(
            "%(timestamp)s %(level)s %(name)s %(message)s",
            environment=settings.ENV,
        )
    else:
        formatter = logging.Formatter("%(asctime)s %(levelname)s %(name)s %(message)s")

    root_logger = logging.getLogger()
    for h in list(root_logger.handlers):
        if getattr(h, _HANDLER_MARK, False):
            root_logger.removeHandler(h)

    handlers: list[logging.Handler] = [logging.StreamHandler()]
    if settings.LOG_FILE:
        handlers.append(logging.FileHandler(settings.LOG_FILE))
    for h in handlers:
        h.setFormatter(formatter)
        setattr(h, _HANDLER_MARK, True)
        root_logger.addHandler(h)

    root_logger.setLevel(settings.LOG_LEVEL.upper())

    # Reduce noise from libraries
    logging.getLogger("uvicorn.access").setLevel(logging.WARNING)
    logging.getLogger("stripe").setLevel(logging.WARNING)

    return root_logger


def set_request_id(request_id: str):
    request_id_var.set(request_id)


def generate_request_id() -> str:
    return str(uuid.uuid4())
