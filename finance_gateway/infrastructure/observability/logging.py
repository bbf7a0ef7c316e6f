"""Structured JSON logging for production observability"""

import logging
import sys
from datetime import datetime, timezone
from typing import Any, Dict
from pythonjsonlogger import jsonlogger

from finance_gateway.config import settings


class CustomJsonFormatter(jsonlogger.JsonFormatter):
    """Custom JSON formatter with timestamp and service metadata"""

    def add_fields(self, log_record: Dict[str, Any], record: logging.LogRecord, message_dict: Dict[str, Any]) -> None:
        super().add_fields(log_record, record, message_dict)
        log_record["timestamp"] = datetime.now(timezone.utc).isoformat()
        log_record["level"] = record.levelname
        log_record["service"] = settings.service_name


def setup_logging(level: str = "INFO") -> None:
    """Configure structured JSON logging"""
    logger = logging.getLogger()
    logger.setLevel(level)

    # Remove existing handlers
    logger.handlers.clear()

    # JSON handler for stdout
    handler = logging.StreamHandler(sys.stdout)
    formatter = CustomJsonFormatter(
        "%(timestamp)s %(level)s %(name)s %(message)s"
    )
    handler.setFormatter(formatter)
    logger.addHandler(handler)


class LoggingObserver:
    """Forwards engine events to the log, tagged with the request that caused them"""

    def __init__(self, request_id: str, user_id: str, logger: logging.Logger | None = None):
        self.request_id = request_id
        self.user_id = user_id
        self.logger = logger or logging.getLogger("finance_gateway.engine")

    def event(self, name: str, **data: Any) -> None:
        self.logger.info(
            name,
            extra={"request_id": self.request_id, "user_id": self.user_id, "step": name, **data},
        )


def log_transaction_created(
    request_id: str,
    user_id: str,
    kind: str,
    rows_written: int,
    duration_ms: float,
) -> None:
    """Log structured transaction outcome for analysis"""
    logging.info(
        "Transaction created",
        extra={
            "request_id": request_id,
            "user_id": user_id,
            "step": "transaction_created",
            "kind": kind,
            "rows_written": rows_written,
            "duration_ms": duration_ms,
        },
    )


def log_budget_saved(request_id: str, user_id: str, month: str, rescaled: bool) -> None:
    """Log a monthly budget save, flagging requests whose percentages had to be rescaled"""
    logging.info(
        "Budget saved",
        extra={
            "request_id": request_id,
            "user_id": user_id,
            "step": "budget_saved",
            "month": month,
            "rescaled": rescaled,
        },
    )
