"""SQLAlchemy ORM models for wallets, payments and transactions"""

import uuid
from sqlalchemy import Column, String, Boolean, Date, DateTime, Integer, Numeric, ForeignKey, Text, Uuid
from sqlalchemy.orm import declarative_base, relationship
from sqlalchemy.sql import func

Base = declarative_base()

MONEY = Numeric(14, 2)


class WalletRecord(Base):
    """Cash or credit wallet with its persisted billing state"""

    __tablename__ = "wallet"

    id = Column(Uuid(as_uuid=True), primary_key=True, default=uuid.uuid4)
    name = Column(Text, nullable=False)
    type = Column(String(16), nullable=False, default="cash")
    balance = Column(MONEY, nullable=False, default=0)  # Initial debt for credit wallets
    credit_limit = Column(MONEY, nullable=False, default=0)
    billing_date = Column(Integer, nullable=True)
    due_date_duration = Column(Integer, nullable=True)
    last_billing_date = Column(Date, nullable=True)
    last_billed_amount = Column(MONEY, nullable=False, default=0)
    created_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now())

    payments = relationship(
        "PaymentRecord",
        back_populates="wallet",
        cascade="all, delete-orphan",
        order_by="PaymentRecord.date",
    )
    transactions = relationship("TransactionRecord", back_populates="wallet", cascade="all, delete-orphan")


class PaymentRecord(Base):
    """Payment against the outstanding statement of a credit wallet"""

    __tablename__ = "wallet_payment"

    id = Column(Uuid(as_uuid=True), primary_key=True, default=uuid.uuid4)
    wallet_id = Column(Uuid(as_uuid=True), ForeignKey("wallet.id", ondelete="CASCADE"), nullable=False, index=True)
    amount = Column(MONEY, nullable=False)
    date = Column(DateTime, nullable=False)
    billing_cycle_date = Column(Date, nullable=True)
    source_wallet_id = Column(Uuid(as_uuid=True), nullable=True)
    description = Column(Text, nullable=False, default="")
    settled = Column(Boolean, nullable=False, default=False)  # Set once its statement is closed

    wallet = relationship("WalletRecord", back_populates="payments")


class TransactionRecord(Base):
    """Expense, income or transfer leg owned by one wallet"""

    __tablename__ = "wallet_transaction"

    id = Column(Uuid(as_uuid=True), primary_key=True, default=uuid.uuid4)
    wallet_id = Column(Uuid(as_uuid=True), ForeignKey("wallet.id", ondelete="CASCADE"), nullable=False, index=True)
    type = Column(String(16), nullable=False)
    amount = Column(MONEY, nullable=False)
    date = Column(DateTime, nullable=False, index=True)
    category = Column(Text, nullable=False, default="")
    tag = Column(Text, nullable=True)
    description = Column(Text, nullable=True)
    is_transfer = Column(Boolean, nullable=False, default=False)
    transfer_type = Column(String(32), nullable=True)
    payment_id = Column(Uuid(as_uuid=True), nullable=True)
    created_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now())

    wallet = relationship("WalletRecord", back_populates="transactions")
