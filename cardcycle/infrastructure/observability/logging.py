"""Structured JSON logging for production observability"""

import logging
import sys
from datetime import datetime, timezone
from typing import Any, Dict
from pythonjsonlogger import jsonlogger


class CustomJsonFormatter(jsonlogger.JsonFormatter):
    """Custom JSON formatter with timestamp and service metadata"""

    def add_fields(self, log_record: Dict[str, Any], record: logging.LogRecord, message_dict: Dict[str, Any]) -> None:
        super().add_fields(log_record, record, message_dict)
        log_record["timestamp"] = datetime.now(timezone.utc).isoformat()
        log_record["level"] = record.levelname
        log_record["service"] = "cardcycle"


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


def log_regeneration(
    card_id: str,
    as_of: str,
    cycle_count: int,
    deleted_count: int,
    duration_ms: float,
    request_id: str = "unknown",
) -> None:
    """Log structured regeneration outcome for analysis"""
    logging.info(
        "Billing cycles regenerated",
        extra={
            "request_id": request_id,
            "card_id": card_id,
            "step": "regeneration_complete",
            "as_of": as_of,
            "cycles_created": cycle_count,
            "cycles_deleted": deleted_count,
            "duration_ms": duration_ms,
        },
    )
