"""Unit tests for the wallet summary projector"""

from dataclasses import replace
from datetime import date, datetime
from decimal import Decimal
from wallet_ledger.domain.models import Payment, Wallet
from wallet_ledger.domain.summary import get_wallet_summary

TODAY = date(2024, 6, 20)


def test_new_card_with_initial_debt(credit_wallet):
    """Initial debt counts as credit used and is unbilled until the first statement"""
    wallet = replace(credit_wallet, balance=Decimal("500"))

    summary = get_wallet_summary(wallet, [], today=TODAY)

    assert summary.credit_used == 500
    assert summary.available_credit == 4500
    assert summary.unpaid_bill_amount == 0
    assert summary.unbilled_amount == 500
    assert summary.utilization == 10.0
    assert summary.calculated_balance == -500


def test_no_unpaid_bill_shows_next_due_date(credit_wallet):
    """Test the next statement's due date is shown when nothing is owed"""
    summary = get_wallet_summary(credit_wallet, [], today=TODAY)

    assert summary.last_billing_date == date(2024, 6, 15)
    assert summary.next_billing_date == date(2024, 7, 15)
    assert summary.due_date == date(2024, 8, 4)
    assert summary.days_until_due == 45


def test_empty_wallet_is_all_zero(credit_wallet):
    """Test a wallet with no activity reports zeros"""
    summary = get_wallet_summary(credit_wallet, [], today=TODAY)

    assert summary.credit_used == 0
    assert summary.unpaid_bill_amount == 0
    assert summary.unbilled_amount == 0
    assert summary.total_payments == 0


def test_partial_payment_of_last_statement(credit_wallet, make_txn):
    """Test a partial payment leaves the rest of the statement unpaid"""
    wallet = replace(
        credit_wallet,
        last_billing_date=date(2024, 6, 15),
        last_billed_amount=Decimal("1000"),
        payments=[
            Payment(id="p1", amount=Decimal("600"), date=datetime(2024, 6, 18), billing_cycle_date=date(2024, 6, 15))
        ],
    )
    transactions = [
        make_txn("expense", "1800", date(2024, 5, 20)),
        make_txn("income", "600", date(2024, 6, 18), tag="bill-payment", is_transfer=True,
                 transfer_type="destination_credit"),
    ]

    summary = get_wallet_summary(wallet, transactions, today=TODAY)

    assert summary.credit_used == 1200
    assert summary.unpaid_bill_amount == 400
    assert summary.unbilled_amount == 800
    assert summary.current_statement_balance == 400
    assert summary.due_date == date(2024, 7, 5)
    assert summary.days_until_due == 15


def test_overdue_statement_has_negative_days(credit_wallet, make_txn):
    """Test an unpaid statement past its due date"""
    wallet = replace(
        credit_wallet,
        last_billing_date=date(2024, 5, 15),
        last_billed_amount=Decimal("300"),
    )
    transactions = [make_txn("expense", "300", date(2024, 5, 1))]

    summary = get_wallet_summary(wallet, transactions, today=TODAY)

    assert summary.unpaid_bill_amount == 300
    assert summary.unbilled_amount == 0
    assert summary.due_date == date(2024, 6, 4)
    assert summary.days_until_due == -16


def test_payments_never_change_initial_debt(credit_wallet, make_txn):
    """Test paying the statement leaves the stored initial debt alone"""
    wallet = replace(
        credit_wallet,
        balance=Decimal("500"),
        last_billing_date=date(2024, 6, 15),
        last_billed_amount=Decimal("500"),
        payments=[Payment(id="p1", amount=Decimal("500"), date=datetime(2024, 6, 16))],
    )
    transactions = [make_txn("income", "500", date(2024, 6, 16), tag="bill-payment")]

    summary = get_wallet_summary(wallet, transactions, today=TODAY)

    assert wallet.balance == 500
    assert summary.credit_used == 0
    assert summary.unpaid_bill_amount == 0
    assert summary.unbilled_amount == 0


def test_overpaid_card_clamps_to_zero(credit_wallet, make_txn):
    """Test credits beyond spending never make credit used negative"""
    transactions = [make_txn("income", "250", date(2024, 6, 16), category="Refund")]

    summary = get_wallet_summary(credit_wallet, transactions, today=TODAY)

    assert summary.credit_used == 0
    assert summary.available_credit == 5000


def test_card_without_billing_day_is_running_balance(credit_wallet, make_txn):
    """Test a card without a billing day has no statement dates"""
    wallet = replace(credit_wallet, billing_date=None)
    transactions = [make_txn("expense", "120", date(2024, 6, 1))]

    summary = get_wallet_summary(wallet, transactions, today=TODAY)

    assert summary.credit_used == 120
    assert summary.unbilled_amount == 120
    assert summary.due_date is None
    assert summary.days_until_due is None
    assert summary.next_billing_date is None


def test_card_without_limit_has_no_utilization(credit_wallet, make_txn):
    """Test a zero credit limit reports zero utilization"""
    wallet = replace(credit_wallet, credit_limit=Decimal("0"))
    transactions = [make_txn("expense", "50", date(2024, 6, 16))]

    summary = get_wallet_summary(wallet, transactions, today=TODAY)

    assert summary.utilization == 0.0
    assert summary.available_credit == 0


def test_cash_wallet_balance(make_txn):
    """Test cash balance is starting balance plus income minus expenses"""
    wallet = Wallet(id="cash", name="Checking", type="cash", balance=Decimal("100"))
    transactions = [
        make_txn("income", "50", date(2024, 6, 1), wallet_id="cash"),
        make_txn("expense", "30", date(2024, 6, 2), wallet_id="cash"),
        make_txn("expense", "999", date(2024, 6, 2), wallet_id="card"),
    ]

    summary = get_wallet_summary(wallet, transactions, today=TODAY)

    assert summary.calculated_balance == 120
    assert summary.credit_used == 0
    assert summary.due_date is None
