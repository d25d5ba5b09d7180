"""Structured JSON logging for client-side observability"""

import logging
import sys
from datetime import datetime, timezone
from typing import Any, Dict, Optional
from pythonjsonlogger import jsonlogger
from firstlend_core.config import settings


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


def log_auth_event(event: str, success: bool, user_id: Optional[str] = None, code: Optional[str] = None) -> None:
    """Log a session lifecycle step (login, refresh, logout). Never pass tokens here."""
    logging.info(
        f"Auth {event} {'succeeded' if success else 'failed'}",
        extra={
            "step": f"auth_{event}",
            "outcome": "success" if success else "failure",
            "user_id": user_id,
            "code": code,
        },
    )


def log_eligibility(outcome: str, credit_score: Optional[float], threshold: float, duration_ms: float) -> None:
    """Log structured eligibility outcome for analysis"""
    logging.info(
        "Eligibility check completed",
        extra={
            "step": "eligibility_complete",
            "eligibility_outcome": outcome,
            "credit_score": credit_score,
            "threshold": threshold,
            "duration_ms": duration_ms,
        },
    )
