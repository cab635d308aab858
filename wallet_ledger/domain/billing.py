"""Billing-cycle engine - statement boundaries, cycle history and carry-forward"""

from datetime import date, timedelta
from decimal import Decimal, ROUND_FLOOR
from typing import Iterable, List, Optional, Sequence, Tuple

from wallet_ledger.domain.models import (
    ZERO,
    BillingCycle,
    BillingCycleDates,
    BillingHistorySummary,
    Payment,
    Transaction,
    Wallet,
)
from wallet_ledger.utils.date_utils import add_billing_months, billing_date_in_month, days_between, to_date

DEFAULT_DUE_DATE_DURATION = 20
MAX_HISTORY_CYCLES = 24  # Bound against runaway walks over malformed data

_HALF = Decimal("0.5")


def is_valid_billing_day(billing_day) -> bool:
    """Billing day must be an integer day-of-month in [1, 31]"""
    return isinstance(billing_day, int) and not isinstance(billing_day, bool) and 1 <= billing_day <= 31


def round_half_up(amount: Decimal) -> Decimal:
    """Round to whole currency units, halves toward positive infinity"""
    return (amount + _HALF).to_integral_value(rounding=ROUND_FLOOR)


def cycle_start_on_or_before(day: date, billing_day: int) -> date:
    """Most recent billing date that is not after `day`"""
    start = billing_date_in_month(day.year, day.month, billing_day)
    if start > day:
        start = add_billing_months(start, billing_day, -1)
    return start


def wallet_transactions(wallet: Wallet, transactions: Iterable[Transaction]) -> List[Transaction]:
    """Transactions owned by the wallet, oldest first"""
    owned = [t for t in transactions if str(t.wallet_id) == str(wallet.id)]
    return sorted(owned, key=lambda t: to_date(t.date))


def get_billing_cycle_dates(
    billing_day: Optional[int],
    last_billing_date: Optional[date] = None,
    due_date_duration: Optional[int] = DEFAULT_DUE_DATE_DURATION,
    today: Optional[date] = None,
) -> Optional[BillingCycleDates]:
    """
    Resolve the statement boundaries around today.

    Without a stored `last_billing_date` the last statement is this month's
    billing date once today has reached it, otherwise last month's. The next
    statement is one calendar month after the last one.

    Returns None for a missing or out-of-range billing day; callers treat such
    wallets as having no cycle structure.
    """
    if not is_valid_billing_day(billing_day):
        return None

    today = to_date(today) if today else date.today()
    duration = due_date_duration or DEFAULT_DUE_DATE_DURATION

    if last_billing_date is not None:
        last_billing = to_date(last_billing_date)
    else:
        last_billing = cycle_start_on_or_before(today, billing_day)

    next_billing = add_billing_months(last_billing, billing_day)

    return BillingCycleDates(
        last_billing_date=last_billing,
        next_billing_date=next_billing,
        current_bill_due_date=last_billing + timedelta(days=duration),
        next_bill_due_date=next_billing + timedelta(days=duration),
    )


def is_between_billing_and_due(
    billing_day: Optional[int],
    due_date_duration: Optional[int] = DEFAULT_DUE_DATE_DURATION,
    last_billing_date: Optional[date] = None,
    today: Optional[date] = None,
) -> bool:
    """True while today sits between the last statement and its due date (inclusive)"""
    today = to_date(today) if today else date.today()
    dates = get_billing_cycle_dates(billing_day, last_billing_date, due_date_duration, today)
    if dates is None:
        return False
    return dates.last_billing_date <= today <= dates.current_bill_due_date


def tally_cycle_transactions(transactions: Iterable[Transaction]) -> Tuple[Decimal, Decimal, Decimal]:
    """
    Split a cycle's transactions into (expenses, income, transfers).

    - expenses: non-transfer expenses plus interest charged through transfers
    - income: refunds/credits, excluding transfers and bill payments, which
      are settled through the payments ledger instead
    - transfers: full transfers reduce the bill, source_debit legs add back
    """
    expenses = ZERO
    income = ZERO
    transfers = ZERO

    for txn in transactions:
        if txn.type == "expense" and (not txn.is_transfer or txn.transfer_type == "interest"):
            expenses += txn.amount
        elif txn.type == "income" and not txn.is_transfer and not txn.is_bill_payment:
            income += txn.amount

        if txn.type == "transfer":
            transfers += txn.amount
        elif txn.is_transfer and txn.transfer_type == "source_debit":
            transfers -= txn.amount

    return expenses, income, transfers


def payments_for_cycle(payments: Iterable[Payment], cycle_start: date, cycle_end: date) -> List[Payment]:
    """Payments settling the cycle: explicit cycle link first, payment date otherwise"""
    matched = []
    for payment in payments:
        if payment.billing_cycle_date is not None:
            if to_date(payment.billing_cycle_date) == cycle_start:
                matched.append(payment)
        elif cycle_start <= to_date(payment.date) < cycle_end:
            matched.append(payment)
    return matched


def build_billing_history(
    wallet: Wallet,
    transactions: Sequence[Transaction],
    today: Optional[date] = None,
    max_cycles: int = MAX_HISTORY_CYCLES,
) -> List[BillingCycle]:
    """
    Walk the wallet's billing cycles from its first transaction up to today.

    Cycles are computed oldest first because each cycle's rounding remainder
    feeds the next one, then returned most recent first. The wallet's initial
    debt is billed in the first cycle only.

    Returns an empty list for cash wallets and credit wallets without a valid
    billing day.
    """
    if not wallet.is_credit or not is_valid_billing_day(wallet.billing_date):
        return []

    today = to_date(today) if today else date.today()
    billing_day = wallet.billing_date
    duration = wallet.due_date_duration or DEFAULT_DUE_DATE_DURATION
    owned = wallet_transactions(wallet, transactions)
    initial_debt = wallet.balance if wallet.balance > 0 else ZERO

    anchor = to_date(owned[0].date) if owned else today
    cycle_start = cycle_start_on_or_before(anchor, billing_day)

    history: List[BillingCycle] = []
    carryforward = ZERO

    while cycle_start <= today and len(history) < max_cycles:
        cycle_end = add_billing_months(cycle_start, billing_day)
        due_date = cycle_start + timedelta(days=duration)

        window = [t for t in owned if cycle_start <= to_date(t.date) < cycle_end]
        expenses, income, transfers = tally_cycle_transactions(window)

        cycle_debt = initial_debt if not history else ZERO
        carried_in = carryforward
        exact_billed = max(ZERO, expenses - (income + transfers)) + cycle_debt + carried_in
        billed = round_half_up(exact_billed)
        carryforward = exact_billed - billed

        payments = payments_for_cycle(wallet.payment_history, cycle_start, cycle_end)
        total_payments = sum((p.amount for p in payments), ZERO)
        remaining = max(ZERO, billed - total_payments)

        history.append(
            BillingCycle(
                billing_date=cycle_start,
                next_billing_date=cycle_end,
                due_date=due_date,
                expenses=expenses,
                income=income,
                transfers=transfers,
                initial_debt=cycle_debt,
                carried_in=carried_in,
                exact_billed_amount=exact_billed,
                billed_amount=billed,
                carryforward=carryforward,
                transactions=window,
                payments=payments,
                total_payments=total_payments,
                remaining_balance=remaining,
                is_settled=remaining == 0 and billed > 0,
                is_partially_paid=total_payments > 0 and remaining > 0,
                is_past_due=due_date < today and remaining > 0,
                is_current=cycle_start <= today < cycle_end,
                days_until_due=days_between(today, due_date),
            )
        )
        cycle_start = cycle_end

    history.reverse()
    return history


def summarize_billing_history(history: Sequence[BillingCycle]) -> BillingHistorySummary:
    """Totals and settlement rate across a billing history"""
    settled_cycles = sum(1 for c in history if c.is_settled)
    total_cycles = sum(1 for c in history if c.billed_amount > 0)

    return BillingHistorySummary(
        total_billed=sum((c.billed_amount for c in history), ZERO),
        total_paid=sum((c.total_payments for c in history), ZERO),
        total_outstanding=sum((c.remaining_balance for c in history), ZERO),
        settled_cycles=settled_cycles,
        total_cycles=total_cycles,
        settlement_rate=(settled_cycles / total_cycles) * 100 if total_cycles > 0 else 0.0,
    )
