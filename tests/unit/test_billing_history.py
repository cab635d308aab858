"""Unit tests for the billing cycle walker"""

from dataclasses import replace
from datetime import date, datetime
from decimal import Decimal
from wallet_ledger.domain.billing import (
    build_billing_history,
    round_half_up,
    summarize_billing_history,
    tally_cycle_transactions,
)
from wallet_ledger.domain.models import Payment

TODAY = date(2024, 6, 20)


def _history_transactions(make_txn):
    return [
        make_txn("expense", "100.40", date(2024, 3, 20)),
        make_txn("expense", "50.30", date(2024, 4, 2)),
        make_txn("income", "20.00", date(2024, 4, 10), category="Refund"),
        make_txn("expense", "200.45", date(2024, 4, 15)),  # First day of the April cycle
        make_txn("expense", "99.50", date(2024, 5, 20)),
    ]


def test_round_half_up():
    """Test halves round up and small negatives round to zero"""
    assert round_half_up(Decimal("130.70")) == 131
    assert round_half_up(Decimal("200.15")) == 200
    assert round_half_up(Decimal("2.5")) == 3
    assert round_half_up(Decimal("-0.35")) == 0
    assert round_half_up(Decimal("-0.5")) == 0


def test_history_walks_from_first_transaction_to_today(credit_wallet, make_txn):
    """Test cycles run from the first transaction's cycle to today, newest first"""
    history = build_billing_history(credit_wallet, _history_transactions(make_txn), today=TODAY)

    assert [c.billing_date for c in history] == [
        date(2024, 6, 15),
        date(2024, 5, 15),
        date(2024, 4, 15),
        date(2024, 3, 15),
    ]
    assert history[0].is_current
    assert not any(c.is_current for c in history[1:])
    assert history[-1].next_billing_date == date(2024, 4, 15)
    assert history[-1].due_date == date(2024, 4, 4)


def test_cycle_totals_and_carryforward(credit_wallet, make_txn):
    """Test each cycle's totals and the remainder it passes on"""
    history = build_billing_history(credit_wallet, _history_transactions(make_txn), today=TODAY)
    march, april, may, june = reversed(history)

    assert march.expenses == Decimal("150.70")
    assert march.income == Decimal("20.00")
    assert march.exact_billed_amount == Decimal("130.70")
    assert march.billed_amount == 131
    assert march.carryforward == Decimal("-0.30")

    assert april.carried_in == Decimal("-0.30")
    assert april.exact_billed_amount == Decimal("200.15")
    assert april.billed_amount == 200
    assert april.carryforward == Decimal("0.15")

    assert may.billed_amount == 100
    assert may.carryforward == Decimal("-0.35")

    assert june.billed_amount == 0
    assert june.carryforward == Decimal("-0.35")


def test_carryforward_conserves_total(credit_wallet, make_txn):
    """Rounded totals plus the final remainder equal the exact spending"""
    history = build_billing_history(credit_wallet, _history_transactions(make_txn), today=TODAY)

    billed = sum(c.billed_amount for c in history)
    exact = sum(c.exact_billed_amount - c.carried_in for c in history)

    assert billed + history[0].carryforward == exact
    assert exact == Decimal("430.65")


def test_history_is_idempotent(credit_wallet, make_txn):
    """Test rebuilding the history gives the same cycles"""
    transactions = _history_transactions(make_txn)

    first = build_billing_history(credit_wallet, transactions, today=TODAY)
    second = build_billing_history(credit_wallet, transactions, today=TODAY)

    assert first == second


def test_payment_with_cycle_link_ignores_its_date(credit_wallet, make_txn):
    """Test a linked payment lands on its cycle whatever its date"""
    wallet = replace(
        credit_wallet,
        payments=[
            Payment(
                id="p1",
                amount=Decimal("200"),
                date=datetime(2024, 6, 1, 9, 0),  # Inside the May cycle
                billing_cycle_date=date(2024, 4, 15),
            )
        ],
    )

    history = build_billing_history(wallet, _history_transactions(make_txn), today=TODAY)
    by_start = {c.billing_date: c for c in history}

    assert [p.id for p in by_start[date(2024, 4, 15)].payments] == ["p1"]
    assert by_start[date(2024, 5, 15)].payments == []
    assert by_start[date(2024, 4, 15)].is_settled
    assert by_start[date(2024, 4, 15)].remaining_balance == 0


def test_unlinked_payment_matches_by_date(credit_wallet, make_txn):
    """Test an unlinked payment lands on the cycle containing its date"""
    wallet = replace(
        credit_wallet,
        payments=[Payment(id="p2", amount=Decimal("40"), date=datetime(2024, 5, 20, 8, 0))],
    )

    history = build_billing_history(wallet, _history_transactions(make_txn), today=TODAY)
    may = next(c for c in history if c.billing_date == date(2024, 5, 15))

    assert may.total_payments == Decimal("40")
    assert may.remaining_balance == Decimal("60")
    assert may.is_partially_paid
    assert may.is_past_due  # Due Jun 4
    assert may.days_until_due == -16


def test_history_summary(credit_wallet, make_txn):
    """Test totals and settlement rate across cycles"""
    wallet = replace(
        credit_wallet,
        payments=[
            Payment(id="p1", amount=Decimal("200"), date=datetime(2024, 6, 1), billing_cycle_date=date(2024, 4, 15)),
            Payment(id="p2", amount=Decimal("40"), date=datetime(2024, 5, 20)),
        ],
    )

    summary = summarize_billing_history(
        build_billing_history(wallet, _history_transactions(make_txn), today=TODAY)
    )

    assert summary.total_billed == Decimal("431")
    assert summary.total_paid == Decimal("240")
    assert summary.total_outstanding == Decimal("191")
    assert summary.settled_cycles == 1
    assert summary.total_cycles == 3
    assert round(summary.settlement_rate, 2) == 33.33


def test_initial_debt_billed_in_first_cycle_only(credit_wallet, make_txn):
    """Test initial debt is added to the oldest cycle only"""
    wallet = replace(credit_wallet, balance=Decimal("500"))
    transactions = [
        make_txn("expense", "10", date(2024, 5, 16)),
        make_txn("expense", "20", date(2024, 6, 16)),
    ]

    history = build_billing_history(wallet, transactions, today=TODAY)

    assert [c.initial_debt for c in history] == [Decimal("0"), Decimal("500")]
    assert [c.billed_amount for c in history] == [Decimal("20"), Decimal("510")]


def test_wallet_without_transactions_starts_at_current_cycle(credit_wallet):
    """Test an empty wallet has only today's cycle"""
    wallet = replace(credit_wallet, balance=Decimal("500"))

    history = build_billing_history(wallet, [], today=TODAY)

    assert len(history) == 1
    assert history[0].billing_date == date(2024, 6, 15)
    assert history[0].billed_amount == 500
    assert history[0].is_current


def test_other_wallets_transactions_are_ignored(credit_wallet, make_txn):
    """Test transactions of other wallets are skipped"""
    transactions = [
        make_txn("expense", "75", date(2024, 6, 16)),
        make_txn("expense", "999", date(2024, 6, 17), wallet_id="other"),
    ]

    history = build_billing_history(credit_wallet, transactions, today=TODAY)

    assert history[0].expenses == Decimal("75")


def test_history_capped_at_max_cycles(credit_wallet, make_txn):
    """Test the walk stops after 24 cycles"""
    transactions = [make_txn("expense", "5", date(2020, 1, 20))]

    history = build_billing_history(credit_wallet, transactions, today=TODAY)

    assert len(history) == 24
    assert history[-1].billing_date == date(2020, 1, 15)
    assert history[0].billing_date == date(2021, 12, 15)


def test_month_end_billing_day(credit_wallet, make_txn):
    """Test day 31 cycles through a leap February"""
    wallet = replace(credit_wallet, billing_date=31)
    transactions = [make_txn("expense", "10", date(2024, 2, 10))]

    history = build_billing_history(wallet, transactions, today=date(2024, 4, 5))

    assert [c.billing_date for c in history] == [
        date(2024, 3, 31),
        date(2024, 2, 29),
        date(2024, 1, 31),
    ]


def test_cash_and_unscheduled_wallets_have_no_history(credit_wallet, make_txn):
    """Test cash wallets and invalid billing days give no cycles"""
    transactions = [make_txn("expense", "10", date(2024, 6, 16))]

    assert build_billing_history(replace(credit_wallet, type="cash"), transactions, today=TODAY) == []
    assert build_billing_history(replace(credit_wallet, billing_date=None), transactions, today=TODAY) == []
    assert build_billing_history(replace(credit_wallet, billing_date=40), transactions, today=TODAY) == []


def test_tally_classifies_transfers_and_bill_payments(make_txn):
    """Test interest counts as spending while bill payments and transfer legs do not count as income"""
    on = date(2024, 6, 16)
    transactions = [
        make_txn("expense", "100", on),
        make_txn("expense", "10", on, is_transfer=True, transfer_type="interest"),
        make_txn("expense", "30", on, is_transfer=True, transfer_type="source_debit"),
        make_txn("income", "25", on, category="Refund"),
        make_txn("income", "200", on, tag="bill-payment"),
        make_txn("income", "60", on, category="Bill Payment"),
        make_txn("income", "50", on, is_transfer=True, transfer_type="destination_credit"),
        make_txn("transfer", "40", on),
    ]

    expenses, income, transfers = tally_cycle_transactions(transactions)

    assert expenses == Decimal("110")
    assert income == Decimal("25")
    assert transfers == Decimal("10")


def test_refunds_never_make_a_negative_bill(credit_wallet, make_txn):
    """Test refunds larger than spending bill zero"""
    transactions = [
        make_txn("expense", "20", date(2024, 6, 16)),
        make_txn("income", "80", date(2024, 6, 17), category="Refund"),
    ]

    history = build_billing_history(credit_wallet, transactions, today=TODAY)

    assert history[0].exact_billed_amount == 0
    assert history[0].billed_amount == 0


def test_settled_payments_stay_in_history(credit_wallet, make_txn):
    """Test payments of closed statements still settle their cycles"""
    wallet = replace(
        credit_wallet,
        settled_payments=[
            Payment(id="p1", amount=Decimal("200"), date=datetime(2024, 6, 1), billing_cycle_date=date(2024, 4, 15))
        ],
    )

    history = build_billing_history(wallet, _history_transactions(make_txn), today=TODAY)
    april = next(c for c in history if c.billing_date == date(2024, 4, 15))

    assert [p.id for p in april.payments] == ["p1"]
    assert april.is_settled
    assert not april.is_past_due
