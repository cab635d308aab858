"""Prometheus metrics for payments, statement generation and request latency"""

from decimal import Decimal
from prometheus_client import Counter, Histogram

# Ledger activity
transaction_counter = Counter(
    "wallet_ledger_transactions_total",
    "Transactions recorded",
    ["type"],  # expense | income | transfer
)

payment_counter = Counter(
    "wallet_ledger_payments_total",
    "Payments applied to credit wallet statements",
)

payment_amount_histogram = Histogram(
    "wallet_ledger_payment_amount",
    "Payment amounts applied to statements",
    buckets=[10, 50, 100, 250, 500, 1000, 2500, 5000, 10000],
)

cycles_advanced_counter = Counter(
    "wallet_ledger_cycles_advanced_total",
    "Billing statements generated by cycle advancement",
)

# Service health
request_duration_histogram = Histogram(
    "http_request_duration_seconds",
    "HTTP request latency",
    ["method", "endpoint", "status"],
)


def record_payment(amount: Decimal) -> None:
    """Record a payment against a statement"""
    payment_counter.inc()
    payment_amount_histogram.observe(float(amount))


def record_cycle_advance(cycles_advanced: int) -> None:
    """Record generated statements; several when a wallet catches up on missed boundaries"""
    cycles_advanced_counter.inc(cycles_advanced)
