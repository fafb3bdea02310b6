"""Structured JSON logging for ledger operations"""

import logging
import sys
from datetime import datetime, timezone
from typing import Any, Dict

from pythonjsonlogger import jsonlogger


class CustomJsonFormatter(jsonlogger.JsonFormatter):
    """JSON formatter adding timestamp, level and service name"""

    def add_fields(self, log_record: Dict[str, Any], record: logging.LogRecord, message_dict: Dict[str, Any]) -> None:
        super().add_fields(log_record, record, message_dict)
        log_record["timestamp"] = datetime.now(timezone.utc).isoformat()
        log_record["level"] = record.levelname
        log_record["service"] = "pocket-ledger"


def setup_logging(level: str = "INFO") -> None:
    """Configure structured JSON logging on the root logger"""
    logger = logging.getLogger()
    logger.setLevel(level)

    # Remove existing handlers
    logger.handlers.clear()

    handler = logging.StreamHandler(sys.stdout)
    formatter = CustomJsonFormatter(
        "%(timestamp)s %(level)s %(name)s %(message)s"
    )
    handler.setFormatter(formatter)
    logger.addHandler(handler)


def log_mutation(
    request_id: str,
    operation: str,
    outcome: str,
    duration_ms: float,
    error_code: str | None = None,
) -> None:
    """Log the outcome of a snapshot mutation"""
    extra = {
        "request_id": request_id,
        "operation": operation,
        "outcome": outcome,
        "duration_ms": duration_ms,
    }
    if error_code is not None:
        extra["error_code"] = error_code
        logging.warning("Mutation rejected", extra=extra)
    else:
        logging.info("Mutation completed", extra=extra)


def log_projection(
    request_id: str,
    months: int,
    event_count: int,
    lowest_balance: str,
    first_danger_date: str | None,
    duration_ms: float,
) -> None:
    """Log a projection summary for analysis"""
    logging.info(
        "Projection completed",
        extra={
            "request_id": request_id,
            "step": "projection_complete",
            "months": months,
            "event_count": event_count,
            "lowest_balance": lowest_balance,
            "first_danger_date": first_danger_date,
            "duration_ms": duration_ms,
        },
    )
