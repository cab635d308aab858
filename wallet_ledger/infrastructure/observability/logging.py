"""Structured JSON logging for wallet state transitions"""

import logging
import sys
from datetime import date, datetime, timezone
from decimal import Decimal
from typing import Any, Dict
from pythonjsonlogger.json import JsonFormatter

from wallet_ledger.config import settings


class CustomJsonFormatter(JsonFormatter):
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

    handler = logging.StreamHandler(sys.stdout)
    formatter = CustomJsonFormatter("%(timestamp)s %(level)s %(name)s %(message)s")
    handler.setFormatter(formatter)
    logger.addHandler(handler)


def log_payment(
    request_id: str,
    wallet_id: str,
    amount: Decimal,
    billing_cycle_date: date | None,
    remaining_bill: Decimal,
) -> None:
    """Log a payment applied to a credit wallet statement"""
    logging.info(
        "Payment applied",
        extra={
            "request_id": request_id,
            "wallet_id": wallet_id,
            "step": "payment_applied",
            "amount": str(amount),
            "billing_cycle_date": billing_cycle_date.isoformat() if billing_cycle_date else None,
            "remaining_bill": str(remaining_bill),
        },
    )


def log_cycle_advance(
    wallet_id: str,
    last_billing_date: date,
    last_billed_amount: Decimal,
    cycles_advanced: int,
) -> None:
    """Log statement generation when a billing boundary is crossed"""
    logging.info(
        "Billing cycle advanced",
        extra={
            "wallet_id": wallet_id,
            "step": "cycle_advanced",
            "last_billing_date": last_billing_date.isoformat(),
            "last_billed_amount": str(last_billed_amount),
            "cycles_advanced": cycles_advanced,
        },
    )
