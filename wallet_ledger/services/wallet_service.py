"""Wallet service - the single owner of wallet state and billing invariants

Every mutation of persisted wallet fields (payments, statement generation,
initial debt) goes through an explicit command here, so no caller
read-modify-writes wallet rows directly.
"""

import logging
import uuid
from datetime import date, datetime
from decimal import Decimal
from typing import Callable, Iterable, List, Optional, Tuple

from wallet_ledger.config import settings
from wallet_ledger.domain.billing import (
    build_billing_history,
    get_billing_cycle_dates,
    is_between_billing_and_due,
    is_valid_billing_day,
    summarize_billing_history,
)
from wallet_ledger.domain.cycles import process_billing_cycle
from wallet_ledger.domain.exceptions import (
    InvalidPaymentError,
    InvalidTransactionDataError,
    InvalidWalletDataError,
    NotACreditWalletError,
    TransactionNotFoundError,
    WalletNotFoundError,
)
from wallet_ledger.domain.models import (
    BILL_PAYMENT_CATEGORY,
    BILL_PAYMENT_TAG,
    TRANSACTION_TYPES,
    TRANSFER_TYPES,
    ZERO,
    BillingCycle,
    BillingCycleDates,
    BillingHistorySummary,
    CycleAdvance,
    Payment,
    Transaction,
    Wallet,
    WalletSummary,
    to_decimal,
)
from wallet_ledger.domain.summary import get_wallet_summary
from wallet_ledger.infrastructure.database.repositories import TransactionRepository, WalletRepository
from wallet_ledger.infrastructure.observability.logging import log_cycle_advance
from wallet_ledger.infrastructure.observability.metrics import record_cycle_advance, transaction_counter
from wallet_ledger.utils.date_utils import add_billing_months

logger = logging.getLogger(__name__)

_EDITABLE_FIELDS = (
    "wallet_id",
    "type",
    "amount",
    "date",
    "category",
    "tag",
    "description",
    "is_transfer",
    "transfer_type",
)


class WalletService:
    """Commands and queries over wallets, transactions and credit statements"""

    def __init__(
        self,
        wallets: WalletRepository,
        transactions: TransactionRepository,
        clock: Callable[[], date] = date.today,
    ):
        self._wallets = wallets
        self._transactions = transactions
        self._clock = clock

    # ── Wallets ──────────────────────────────────────────────────────────────

    def create_wallet(
        self,
        name: str,
        wallet_type: str = "cash",
        balance=ZERO,
        credit_limit=ZERO,
        billing_date: Optional[int] = None,
        due_date_duration: Optional[int] = None,
        last_billed_amount=ZERO,
    ) -> Wallet:
        """
        Create a wallet, normalising its settings.

        Non-credit wallets drop every credit field. A billing day outside 1-31
        is discarded, leaving a credit wallet without cycle structure. Credit
        wallets with a billing day start with last_billing_date set to the
        most recent statement date, and `last_billed_amount` records a
        statement still unpaid at setup.
        """
        name = (name or "").strip()
        if not name:
            raise InvalidWalletDataError("Wallet name cannot be empty")

        balance = to_decimal(balance)
        wallet_type = "credit" if wallet_type == "credit" else "cash"

        if wallet_type != "credit":
            return self._wallets.create_wallet(
                name=name,
                wallet_type=wallet_type,
                balance=balance,
                credit_limit=ZERO,
                billing_date=None,
                due_date_duration=None,
                last_billing_date=None,
                last_billed_amount=ZERO,
            )

        credit_limit = to_decimal(credit_limit)
        last_billed_amount = to_decimal(last_billed_amount)
        if balance < 0:
            raise InvalidWalletDataError("Initial debt must be 0 or greater")
        if credit_limit < 0 or last_billed_amount < 0:
            raise InvalidWalletDataError("Credit limit and last billed amount must be 0 or greater")

        billing_date = billing_date if is_valid_billing_day(billing_date) else None
        due_date_duration = due_date_duration or settings.default_due_date_duration
        dates = get_billing_cycle_dates(billing_date, None, due_date_duration, self._clock())

        return self._wallets.create_wallet(
            name=name,
            wallet_type=wallet_type,
            balance=balance,
            credit_limit=credit_limit,
            billing_date=billing_date,
            due_date_duration=due_date_duration,
            last_billing_date=dates.last_billing_date if dates else None,
            last_billed_amount=last_billed_amount if dates else ZERO,
        )

    def get_wallet(self, wallet_id: str) -> Wallet:
        wallet = self._wallets.get_wallet(wallet_id)
        if wallet is None:
            raise WalletNotFoundError(f"Wallet {wallet_id} not found")
        return wallet

    def list_wallets(self) -> List[Wallet]:
        return self._wallets.list_wallets()

    def check_setup(
        self,
        billing_day: int,
        due_date_duration: Optional[int] = None,
    ) -> Tuple[Optional[BillingCycleDates], bool]:
        """Statement dates for a prospective billing day and whether the last bill may still be open"""
        today = self._clock()
        due_date_duration = due_date_duration or settings.default_due_date_duration
        dates = get_billing_cycle_dates(billing_day, None, due_date_duration, today)
        return dates, is_between_billing_and_due(billing_day, due_date_duration, today=today)

    def edit_initial_debt(self, wallet_id: str, amount) -> Wallet:
        """Change a credit wallet's initial debt, the only sanctioned write to its balance"""
        wallet = self.get_wallet(wallet_id)
        if not wallet.is_credit:
            raise NotACreditWalletError(f"Wallet {wallet_id} is not a credit wallet")

        amount = to_decimal(amount)
        if amount < 0:
            raise InvalidWalletDataError("Initial debt must be 0 or greater")

        return self._wallets.update_balance(wallet.id, amount)

    # ── Transactions ─────────────────────────────────────────────────────────

    def add_transaction(
        self,
        wallet_id: str,
        type: str,
        amount,
        date=None,
        category: str = "",
        tag: Optional[str] = None,
        description: Optional[str] = None,
        is_transfer: bool = False,
        transfer_type: Optional[str] = None,
    ) -> Transaction:
        """Record a transaction, then generate any statement its wallet is due"""
        wallet = self.get_wallet(wallet_id)
        amount = to_decimal(amount)
        self._validate(type, amount, transfer_type)

        transaction = self._transactions.create_transaction(
            wallet_id=wallet.id,
            type=type,
            amount=amount,
            date=self._parse_timestamp(date),
            category=category or "",
            tag=tag,
            description=description,
            is_transfer=is_transfer,
            transfer_type=transfer_type,
        )
        transaction_counter.labels(type=type).inc()

        self._advance_wallets([wallet.id])
        return transaction

    def edit_transaction(self, transaction_id: str, **changes) -> Transaction:
        """
        Apply an explicit edit; moving to another wallet re-evaluates both wallets.

        Bill-payment legs belong to their payment and are rejected.
        """
        current = self._transactions.get_transaction(transaction_id)
        if current is None:
            raise TransactionNotFoundError(f"Transaction {transaction_id} not found")
        self._ensure_not_payment_leg(current)

        unknown = set(changes) - set(_EDITABLE_FIELDS)
        if unknown:
            raise InvalidTransactionDataError(f"Cannot edit fields: {', '.join(sorted(unknown))}")

        if "wallet_id" in changes:
            changes["wallet_id"] = self.get_wallet(changes["wallet_id"]).id
        if "amount" in changes:
            changes["amount"] = to_decimal(changes["amount"])
        if "date" in changes:
            changes["date"] = self._parse_timestamp(changes["date"])

        self._validate(
            changes.get("type", current.type),
            changes.get("amount", current.amount),
            changes.get("transfer_type", current.transfer_type),
        )

        updated = self._transactions.update_transaction(transaction_id, **changes)
        self._advance_wallets([current.wallet_id, updated.wallet_id])
        return updated

    def delete_transaction(self, transaction_id: str) -> None:
        current = self._transactions.get_transaction(transaction_id)
        if current is None:
            raise TransactionNotFoundError(f"Transaction {transaction_id} not found")
        self._ensure_not_payment_leg(current)

        self._transactions.delete_transaction(transaction_id)
        self._advance_wallets([current.wallet_id])

    def list_transactions(self, wallet_id: Optional[str] = None) -> List[Transaction]:
        if wallet_id is None:
            return self._transactions.list_all()
        return self._transactions.list_by_wallet(self.get_wallet(wallet_id).id)

    # ── Credit statements ────────────────────────────────────────────────────

    def get_summary(self, wallet_id: str) -> WalletSummary:
        wallet = self.get_wallet(wallet_id)
        transactions = self._transactions.list_by_wallet(wallet.id)
        return get_wallet_summary(wallet, transactions, today=self._clock())

    def get_billing_history(self, wallet_id: str) -> Tuple[List[BillingCycle], BillingHistorySummary]:
        """Billing cycles most recent first, with totals across them"""
        wallet = self.get_wallet(wallet_id)
        if not wallet.is_credit:
            raise NotACreditWalletError(f"Wallet {wallet_id} is not a credit wallet")

        transactions = self._transactions.list_by_wallet(wallet.id)
        history = build_billing_history(
            wallet,
            transactions,
            today=self._clock(),
            max_cycles=settings.max_history_cycles,
        )
        return history, summarize_billing_history(history)

    def apply_payment(
        self,
        wallet_id: str,
        amount,
        source_wallet_id: Optional[str] = None,
        date=None,
        description: str = "Credit card bill payment",
    ) -> Tuple[Payment, Decimal]:
        """
        Pay down the current statement of a credit wallet.

        Any billing boundary already passed is closed first, so the amount is
        checked against the statement that is actually outstanding. The
        payment is linked to the cycle that statement billed (the one ending
        at last_billing_date) and mirrored as a bill-payment credit on the
        card and, when a source wallet is given, a matching debit there. Both
        legs carry the payment id. The card's initial debt is left untouched.

        Returns the stored payment and the bill amount still unpaid.
        """
        wallet = self.get_wallet(wallet_id)
        if not wallet.is_credit:
            raise NotACreditWalletError(f"Wallet {wallet_id} is not a credit wallet")

        amount = to_decimal(amount)
        if amount <= 0:
            raise InvalidPaymentError("Payment amount must be greater than 0")

        self._advance_wallets([wallet.id])
        wallet = self.get_wallet(wallet.id)
        summary = self.get_summary(wallet.id)
        if amount > summary.unpaid_bill_amount:
            raise InvalidPaymentError(
                f"Payment cannot exceed unpaid bill amount: {summary.unpaid_bill_amount}"
            )

        source = None
        if source_wallet_id is not None:
            source = self.get_wallet(source_wallet_id)
            if source.id == wallet.id:
                raise InvalidPaymentError("A wallet cannot pay its own bill")

        paid_at = self._parse_timestamp(date)
        payment = self._wallets.add_payment(
            wallet.id,
            Payment(
                id=str(uuid.uuid4()),
                amount=amount,
                date=paid_at,
                billing_cycle_date=self._billed_cycle_start(wallet, summary.last_billing_date),
                source_wallet_id=source.id if source else None,
                description=description,
            ),
        )

        self._transactions.create_transaction(
            wallet_id=wallet.id,
            type="income",
            amount=amount,
            date=paid_at,
            category=BILL_PAYMENT_CATEGORY,
            tag=BILL_PAYMENT_TAG,
            description=description,
            is_transfer=True,
            transfer_type="destination_credit",
            payment_id=payment.id,
        )
        if source is not None:
            self._transactions.create_transaction(
                wallet_id=source.id,
                type="expense",
                amount=amount,
                date=paid_at,
                category=BILL_PAYMENT_CATEGORY,
                tag=BILL_PAYMENT_TAG,
                description=f"{description} ({wallet.name})",
                is_transfer=True,
                transfer_type="source_debit",
                payment_id=payment.id,
            )

        return payment, summary.unpaid_bill_amount - amount

    def advance_cycle(self, wallet_id: str) -> Optional[CycleAdvance]:
        """Generate statements for every billing boundary reached since the last one"""
        wallet = self.get_wallet(wallet_id)
        transactions = self._transactions.list_by_wallet(wallet.id)
        advance = process_billing_cycle(
            wallet,
            transactions,
            today=self._clock(),
            max_cycles=settings.max_catchup_cycles,
        )
        if advance is None:
            return None

        self._wallets.apply_cycle_advance(advance)
        record_cycle_advance(advance.cycles_advanced)
        log_cycle_advance(
            advance.wallet_id,
            advance.last_billing_date,
            advance.last_billed_amount,
            advance.cycles_advanced,
        )
        return advance

    # ── Helpers ──────────────────────────────────────────────────────────────

    @staticmethod
    def _billed_cycle_start(wallet: Wallet, statement_date: Optional[date]) -> Optional[date]:
        """Start of the cycle billed by the statement generated on `statement_date`"""
        statement_date = wallet.last_billing_date or statement_date
        if statement_date is None or not is_valid_billing_day(wallet.billing_date):
            return None
        return add_billing_months(statement_date, wallet.billing_date, -1)

    @staticmethod
    def _ensure_not_payment_leg(transaction: Transaction) -> None:
        if transaction.payment_id is not None:
            raise InvalidTransactionDataError(
                f"Transaction {transaction.id} records payment {transaction.payment_id} and cannot be changed"
            )

    def _advance_wallets(self, wallet_ids: Iterable[str]) -> None:
        for wallet_id in dict.fromkeys(wallet_ids):
            wallet = self._wallets.get_wallet(wallet_id)
            if wallet is not None and wallet.is_credit:
                self.advance_cycle(wallet.id)

    def _parse_timestamp(self, value) -> datetime:
        """Accept datetimes, dates or ISO strings; anything unparseable falls back to now"""
        if isinstance(value, datetime):
            return value
        if isinstance(value, date):
            return datetime.combine(value, datetime.min.time())
        if isinstance(value, str) and value.strip():
            try:
                return datetime.fromisoformat(value.strip())
            except ValueError:
                logger.warning("Unparseable transaction date %r, using now", value)
        return datetime.combine(self._clock(), datetime.now().time())

    @staticmethod
    def _validate(type_: str, amount: Decimal, transfer_type: Optional[str]) -> None:
        if type_ not in TRANSACTION_TYPES:
            raise InvalidTransactionDataError(
                f"Invalid transaction type '{type_}'. Must be one of: {', '.join(TRANSACTION_TYPES)}"
            )
        if amount <= 0:
            raise InvalidTransactionDataError("Amount must be greater than 0")
        if transfer_type is not None and transfer_type not in TRANSFER_TYPES:
            raise InvalidTransactionDataError(
                f"Invalid transfer type '{transfer_type}'. Must be one of: {', '.join(TRANSFER_TYPES)}"
            )
