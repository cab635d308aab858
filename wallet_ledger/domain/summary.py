"""Wallet summary projector - balances, credit usage and statement status"""

from datetime import date
from typing import Optional, Sequence

from wallet_ledger.domain.billing import get_billing_cycle_dates, wallet_transactions
from wallet_ledger.domain.models import ZERO, Transaction, Wallet, WalletSummary
from wallet_ledger.utils.date_utils import days_between, to_date


def get_wallet_summary(
    wallet: Wallet,
    transactions: Sequence[Transaction],
    today: Optional[date] = None,
) -> WalletSummary:
    """
    Project a wallet and its transactions into a display snapshot.

    Cash wallets: initial balance + income - expenses.

    Credit wallets:
    1. credit_used = max(0, initial debt + expenses - income), lifetime, where
       income includes bill-payment credits
    2. unpaid_bill_amount = max(0, last billed amount - payments on the wallet)
    3. unbilled_amount = max(0, credit_used - unpaid_bill_amount)
    4. due date is the current statement's while it is unpaid, else the next one's
    5. days_until_due is signed, negative once overdue

    Credit wallets without a valid billing day degrade to a running balance
    with no statement dates.
    """
    today = to_date(today) if today else date.today()
    owned = wallet_transactions(wallet, transactions)

    total_income = sum((t.amount for t in owned if t.type == "income"), ZERO)
    total_expenses = sum((t.amount for t in owned if t.type == "expense"), ZERO)

    if not wallet.is_credit:
        return WalletSummary(
            wallet_id=wallet.id,
            wallet_type=wallet.type,
            calculated_balance=wallet.balance + total_income - total_expenses,
            total_income=total_income,
            total_expenses=total_expenses,
        )

    credit_used = max(ZERO, wallet.balance + total_expenses - total_income)
    total_payments = sum((p.amount for p in wallet.payments), ZERO)
    # All stored payments are attributed to the single outstanding statement
    unpaid_bill = max(ZERO, wallet.last_billed_amount - total_payments)
    unbilled = max(ZERO, credit_used - unpaid_bill)

    credit_limit = wallet.credit_limit
    available_credit = max(ZERO, credit_limit - credit_used)
    utilization = float(credit_used / credit_limit * 100) if credit_limit > 0 else 0.0

    summary = WalletSummary(
        wallet_id=wallet.id,
        wallet_type=wallet.type,
        calculated_balance=-credit_used,
        total_income=total_income,
        total_expenses=total_expenses,
        credit_limit=credit_limit,
        credit_used=credit_used,
        available_credit=available_credit,
        utilization=utilization,
        last_billed_amount=wallet.last_billed_amount,
        total_payments=total_payments,
        unpaid_bill_amount=unpaid_bill,
        unbilled_amount=unbilled,
        current_statement_balance=unpaid_bill,
    )

    dates = get_billing_cycle_dates(
        wallet.billing_date,
        wallet.last_billing_date,
        wallet.due_date_duration,
        today,
    )
    if dates is None:
        return summary

    summary.last_billing_date = dates.last_billing_date
    summary.next_billing_date = dates.next_billing_date
    summary.due_date = dates.current_bill_due_date if unpaid_bill > 0 else dates.next_bill_due_date
    summary.days_until_due = days_between(today, summary.due_date)
    return summary
