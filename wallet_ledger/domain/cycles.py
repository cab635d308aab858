"""Billing cycle advancement - statement generation when a boundary is crossed"""

from dataclasses import replace
from datetime import date, timedelta
from typing import List, Optional, Sequence

from wallet_ledger.domain.billing import DEFAULT_DUE_DATE_DURATION, get_billing_cycle_dates
from wallet_ledger.domain.models import CycleAdvance, Payment, Transaction, Wallet
from wallet_ledger.domain.summary import get_wallet_summary
from wallet_ledger.utils.date_utils import add_billing_months, to_date


def process_billing_cycle(
    wallet: Wallet,
    transactions: Sequence[Transaction],
    today: Optional[date] = None,
    max_cycles: int = 24,
) -> Optional[CycleAdvance]:
    """
    Generate the statements due since the wallet's last billing date.

    Each crossed boundary bills whatever was unbilled before it and moves
    last_billing_date forward. Only payments dated before a boundary count
    against the statement it closes, matching the bill-payment credits that
    fall before it. The caller settles the open payments once the advance is
    stored. Loops until the next billing date is in the
    future, so a wallet left untouched for several months catches up in one
    call.

    Returns None when no boundary has been reached, which makes repeated
    calls within a cycle a no-op. Cash wallets and wallets without a billing
    day never advance.
    """
    if not wallet.is_credit:
        return None

    today = to_date(today) if today else date.today()
    dates = get_billing_cycle_dates(
        wallet.billing_date,
        wallet.last_billing_date,
        wallet.due_date_duration,
        today,
    )
    if dates is None or today < dates.next_billing_date:
        return None

    last_billing = dates.last_billing_date
    next_billing = dates.next_billing_date
    billed = wallet.last_billed_amount
    open_payments: List[Payment] = list(wallet.payments)
    cycles_advanced = 0

    while next_billing <= today and cycles_advanced < max_cycles:
        # Payments and their bill-payment credits are cut at the same boundary
        closing = [p for p in open_payments if to_date(p.date) < next_billing]
        open_payments = [p for p in open_payments if to_date(p.date) >= next_billing]
        snapshot = replace(
            wallet,
            last_billing_date=last_billing,
            last_billed_amount=billed,
            payments=closing,
        )
        # Spending on or after the boundary belongs to the next statement
        before_boundary = [t for t in transactions if to_date(t.date) < next_billing]
        billed = get_wallet_summary(snapshot, before_boundary, today=next_billing).unbilled_amount

        last_billing = next_billing
        next_billing = add_billing_months(last_billing, wallet.billing_date)
        cycles_advanced += 1

    duration = wallet.due_date_duration or DEFAULT_DUE_DATE_DURATION

    return CycleAdvance(
        wallet_id=wallet.id,
        last_billing_date=last_billing,
        last_billed_amount=billed,
        next_billing_date=next_billing,
        due_date=last_billing + timedelta(days=duration),
        cycles_advanced=cycles_advanced,
    )
