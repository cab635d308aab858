"""Domain models - pure Python dataclasses representing wallets and billing state"""

from dataclasses import dataclass, field
from datetime import date, datetime
from decimal import Decimal
from typing import List, Optional

TRANSACTION_TYPES = ("expense", "income", "transfer")
TRANSFER_TYPES = ("source_debit", "destination_credit", "interest")
WALLET_TYPES = ("cash", "credit")

BILL_PAYMENT_TAG = "bill-payment"
BILL_PAYMENT_CATEGORY = "Bill Payment"

ZERO = Decimal("0")


def to_decimal(value) -> Decimal:
    """Coerce int/float/str amounts without binary float artifacts"""
    if value is None:
        return ZERO
    if isinstance(value, Decimal):
        return value
    return Decimal(str(value))


@dataclass
class Transaction:
    """Dated money movement owned by a single wallet"""

    id: str
    wallet_id: str
    type: str  # "expense" | "income" | "transfer"
    amount: Decimal
    date: datetime
    category: str = ""
    tag: Optional[str] = None
    description: Optional[str] = None
    is_transfer: bool = False
    transfer_type: Optional[str] = None  # "source_debit" | "destination_credit" | "interest"
    payment_id: Optional[str] = None

    def __post_init__(self):
        self.amount = to_decimal(self.amount)

    @property
    def is_bill_payment(self) -> bool:
        return self.tag == BILL_PAYMENT_TAG or self.category == BILL_PAYMENT_CATEGORY


@dataclass
class Payment:
    """Payment settling a credit wallet statement"""

    id: str
    amount: Decimal
    date: datetime
    billing_cycle_date: Optional[date] = None  # Start of the cycle this payment settles
    source_wallet_id: Optional[str] = None
    description: str = ""

    def __post_init__(self):
        self.amount = to_decimal(self.amount)


@dataclass
class Wallet:
    """
    Cash or credit wallet.

    For credit wallets `balance` is the initial debt at creation. Payments
    never touch it; they live in `payments` and in bill-payment transactions.
    `payments` holds those against the outstanding statement only; payments
    of closed statements move to `settled_payments` and stay in the history.
    """

    id: str
    name: str
    type: str = "cash"
    balance: Decimal = ZERO
    credit_limit: Decimal = ZERO
    billing_date: Optional[int] = None  # Day of month, 1-31
    due_date_duration: Optional[int] = None  # Days from statement to due date
    last_billing_date: Optional[date] = None
    last_billed_amount: Decimal = ZERO
    payments: List[Payment] = field(default_factory=list)
    settled_payments: List[Payment] = field(default_factory=list)

    def __post_init__(self):
        self.balance = to_decimal(self.balance)
        self.credit_limit = to_decimal(self.credit_limit)
        self.last_billed_amount = to_decimal(self.last_billed_amount)

    @property
    def is_credit(self) -> bool:
        return self.type == "credit"

    @property
    def payment_history(self) -> List[Payment]:
        """Every payment ever made on the wallet, oldest first"""
        return sorted(self.settled_payments + self.payments, key=lambda p: p.date)


@dataclass
class BillingCycleDates:
    """Statement boundaries around today for a billing day"""

    last_billing_date: date
    next_billing_date: date
    current_bill_due_date: date  # Due date of the statement generated at last_billing_date
    next_bill_due_date: date  # Due date of the statement to be generated at next_billing_date


@dataclass
class BillingCycle:
    """One monthly statement window, derived on every read"""

    billing_date: date
    next_billing_date: date
    due_date: date
    expenses: Decimal
    income: Decimal
    transfers: Decimal
    initial_debt: Decimal
    carried_in: Decimal  # Carry-forward received from the previous cycle
    exact_billed_amount: Decimal
    billed_amount: Decimal  # Whole units
    carryforward: Decimal  # exact_billed_amount - billed_amount
    transactions: List[Transaction]
    payments: List[Payment]
    total_payments: Decimal
    remaining_balance: Decimal
    is_settled: bool
    is_partially_paid: bool
    is_past_due: bool
    is_current: bool
    days_until_due: int


@dataclass
class BillingHistorySummary:
    """Aggregates across a billing history"""

    total_billed: Decimal
    total_paid: Decimal
    total_outstanding: Decimal
    settled_cycles: int
    total_cycles: int
    settlement_rate: float  # Percent of billed cycles fully settled


@dataclass
class WalletSummary:
    """Display-ready snapshot of a wallet"""

    wallet_id: str
    wallet_type: str
    calculated_balance: Decimal
    total_income: Decimal
    total_expenses: Decimal
    credit_limit: Decimal = ZERO
    credit_used: Decimal = ZERO
    available_credit: Decimal = ZERO
    utilization: float = 0.0
    last_billed_amount: Decimal = ZERO
    total_payments: Decimal = ZERO
    unpaid_bill_amount: Decimal = ZERO
    unbilled_amount: Decimal = ZERO
    current_statement_balance: Decimal = ZERO
    last_billing_date: Optional[date] = None
    next_billing_date: Optional[date] = None
    due_date: Optional[date] = None
    days_until_due: Optional[int] = None


@dataclass
class CycleAdvance:
    """Wallet field updates produced by crossing one or more billing boundaries"""

    wallet_id: str
    last_billing_date: date
    last_billed_amount: Decimal
    next_billing_date: date
    due_date: date
    cycles_advanced: int
