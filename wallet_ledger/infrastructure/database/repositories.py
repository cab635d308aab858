"""Data access layer for wallets, payments and transactions"""

import uuid
from datetime import date, datetime
from decimal import Decimal
from typing import List, Optional
from sqlalchemy.orm import Session
from wallet_ledger.infrastructure.database.models import WalletRecord, PaymentRecord, TransactionRecord
from wallet_ledger.domain.models import CycleAdvance, Payment, Transaction, Wallet


def parse_id(value) -> Optional[uuid.UUID]:
    """Parse an external identifier, None when it is not a UUID"""
    if value is None:
        return None
    if isinstance(value, uuid.UUID):
        return value
    try:
        return uuid.UUID(str(value))
    except ValueError:
        return None


def _str_id(value) -> Optional[str]:
    return str(value) if value is not None else None


def payment_to_domain(record: PaymentRecord) -> Payment:
    return Payment(
        id=str(record.id),
        amount=record.amount,
        date=record.date,
        billing_cycle_date=record.billing_cycle_date,
        source_wallet_id=_str_id(record.source_wallet_id),
        description=record.description or "",
    )


def wallet_to_domain(record: WalletRecord) -> Wallet:
    return Wallet(
        id=str(record.id),
        name=record.name,
        type=record.type,
        balance=record.balance,
        credit_limit=record.credit_limit,
        billing_date=record.billing_date,
        due_date_duration=record.due_date_duration,
        last_billing_date=record.last_billing_date,
        last_billed_amount=record.last_billed_amount,
        payments=[payment_to_domain(p) for p in record.payments if not p.settled],
        settled_payments=[payment_to_domain(p) for p in record.payments if p.settled],
    )


def transaction_to_domain(record: TransactionRecord) -> Transaction:
    return Transaction(
        id=str(record.id),
        wallet_id=str(record.wallet_id),
        type=record.type,
        amount=record.amount,
        date=record.date,
        category=record.category or "",
        tag=record.tag,
        description=record.description,
        is_transfer=bool(record.is_transfer),
        transfer_type=record.transfer_type,
        payment_id=_str_id(record.payment_id),
    )


class WalletRepository:
    """Repository for wallets and their payments"""

    def __init__(self, db: Session):
        self.db = db

    def _get_record(self, wallet_id: str) -> Optional[WalletRecord]:
        wallet_uuid = parse_id(wallet_id)
        if wallet_uuid is None:
            return None
        return self.db.query(WalletRecord).filter(WalletRecord.id == wallet_uuid).first()

    def create_wallet(
        self,
        name: str,
        wallet_type: str,
        balance: Decimal,
        credit_limit: Decimal,
        billing_date: Optional[int],
        due_date_duration: Optional[int],
        last_billing_date: Optional[date],
        last_billed_amount: Decimal,
    ) -> Wallet:
        """Persist a new wallet"""
        record = WalletRecord(
            name=name,
            type=wallet_type,
            balance=balance,
            credit_limit=credit_limit,
            billing_date=billing_date,
            due_date_duration=due_date_duration,
            last_billing_date=last_billing_date,
            last_billed_amount=last_billed_amount,
        )
        self.db.add(record)
        self.db.flush()  # Get ID without committing
        return wallet_to_domain(record)

    def get_wallet(self, wallet_id: str) -> Optional[Wallet]:
        """Fetch wallet with its payments"""
        record = self._get_record(wallet_id)
        return wallet_to_domain(record) if record else None

    def list_wallets(self) -> List[Wallet]:
        """Fetch all wallets, oldest first"""
        records = self.db.query(WalletRecord).order_by(WalletRecord.created_at, WalletRecord.name).all()
        return [wallet_to_domain(r) for r in records]

    def add_payment(self, wallet_id: str, payment: Payment) -> Payment:
        """Append a payment to the wallet's outstanding statement"""
        wallet_record = self._get_record(wallet_id)
        record = PaymentRecord(
            id=parse_id(payment.id) or uuid.uuid4(),
            amount=payment.amount,
            date=payment.date,
            billing_cycle_date=payment.billing_cycle_date,
            source_wallet_id=parse_id(payment.source_wallet_id),
            description=payment.description,
            settled=False,
        )
        wallet_record.payments.append(record)
        self.db.flush()
        return payment_to_domain(record)

    def apply_cycle_advance(self, advance: CycleAdvance) -> Wallet:
        """Store a generated statement and settle the payments dated before it"""
        record = self._get_record(advance.wallet_id)
        record.last_billing_date = advance.last_billing_date
        record.last_billed_amount = advance.last_billed_amount
        for payment in record.payments:
            if payment.date.date() < advance.last_billing_date:
                payment.settled = True
        self.db.flush()
        return wallet_to_domain(record)

    def update_balance(self, wallet_id: str, balance: Decimal) -> Wallet:
        """Overwrite the initial balance (initial debt for credit wallets)"""
        record = self._get_record(wallet_id)
        record.balance = balance
        self.db.flush()
        return wallet_to_domain(record)


class TransactionRepository:
    """Repository for wallet transactions"""

    def __init__(self, db: Session):
        self.db = db

    def _get_record(self, transaction_id: str) -> Optional[TransactionRecord]:
        transaction_uuid = parse_id(transaction_id)
        if transaction_uuid is None:
            return None
        return self.db.query(TransactionRecord).filter(TransactionRecord.id == transaction_uuid).first()

    def create_transaction(
        self,
        wallet_id: str,
        type: str,
        amount: Decimal,
        date: datetime,
        category: str = "",
        tag: Optional[str] = None,
        description: Optional[str] = None,
        is_transfer: bool = False,
        transfer_type: Optional[str] = None,
        payment_id: Optional[str] = None,
    ) -> Transaction:
        """Persist a transaction"""
        record = TransactionRecord(
            wallet_id=parse_id(wallet_id),
            type=type,
            amount=amount,
            date=date,
            category=category,
            tag=tag,
            description=description,
            is_transfer=is_transfer,
            transfer_type=transfer_type,
            payment_id=parse_id(payment_id),
        )
        self.db.add(record)
        self.db.flush()
        return transaction_to_domain(record)

    def get_transaction(self, transaction_id: str) -> Optional[Transaction]:
        record = self._get_record(transaction_id)
        return transaction_to_domain(record) if record else None

    def update_transaction(self, transaction_id: str, **fields) -> Transaction:
        """Apply an explicit edit; wallet reassignment is just another field"""
        record = self._get_record(transaction_id)
        for name, value in fields.items():
            if name == "wallet_id":
                value = parse_id(value)
            setattr(record, name, value)
        self.db.flush()
        return transaction_to_domain(record)

    def delete_transaction(self, transaction_id: str) -> None:
        record = self._get_record(transaction_id)
        self.db.delete(record)
        self.db.flush()

    def list_by_wallet(self, wallet_id: str) -> List[Transaction]:
        """Fetch a wallet's transactions, oldest first"""
        wallet_uuid = parse_id(wallet_id)
        if wallet_uuid is None:
            return []
        records = (
            self.db.query(TransactionRecord)
            .filter(TransactionRecord.wallet_id == wallet_uuid)
            .order_by(TransactionRecord.date)
            .all()
        )
        return [transaction_to_domain(r) for r in records]

    def list_all(self) -> List[Transaction]:
        records = self.db.query(TransactionRecord).order_by(TransactionRecord.date).all()
        return [transaction_to_domain(r) for r in records]
