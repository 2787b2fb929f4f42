"""Structured JSON logging for calculation faults and lifecycle transitions"""

import logging
import sys
from datetime import datetime, timezone
from typing import Any, Dict, Optional
from pythonjsonlogger import jsonlogger

from instrument_engine.config import settings

logger = logging.getLogger("instrument_engine")


class CustomJsonFormatter(jsonlogger.JsonFormatter):
    """Custom JSON formatter with timestamp and service metadata"""

    def add_fields(self, log_record: Dict[str, Any], record: logging.LogRecord, message_dict: Dict[str, Any]) -> None:
        super().add_fields(log_record, record, message_dict)
        log_record["timestamp"] = datetime.now(timezone.utc).isoformat()
        log_record["level"] = record.levelname
        log_record["service"] = settings.service_name


def setup_logging(level: Optional[str] = None) -> None:
    """Configure structured JSON logging"""
    root = logging.getLogger()
    root.setLevel(level or settings.log_level)

    # Remove existing handlers
    root.handlers.clear()

    # JSON handler for stdout
    handler = logging.StreamHandler(sys.stdout)
    formatter = CustomJsonFormatter(
        "%(timestamp)s %(level)s %(name)s %(message)s"
    )
    handler.setFormatter(formatter)
    root.addHandler(handler)


def log_calculation_fault(calculator: str, inputs: Dict[str, Any], fallback: float) -> None:
    """Log a non-finite calculation that was resolved to its fallback value"""
    logger.warning(
        "Calculation fault resolved to fallback",
        extra={
            "step": "calculation_fault",
            "calculator": calculator,
            "inputs": inputs,
            "fallback": fallback,
        },
    )


def log_transition(
    instrument_type: str,
    instrument_id: str,
    from_status: str,
    to_status: str,
    event: str,
) -> None:
    """Log an applied status change"""
    logger.info(
        "Lifecycle transition applied",
        extra={
            "step": "lifecycle_transition",
            "instrument_type": instrument_type,
            "instrument_id": instrument_id,
            "from_status": from_status,
            "to_status": to_status,
            "event": event,
        },
    )
