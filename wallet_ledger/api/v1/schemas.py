"""Pydantic schemas for API request/response validation"""

from datetime import date, datetime
from decimal import Decimal
from typing import Annotated, List, Literal, Optional
from pydantic import BaseModel, ConfigDict, Field, PlainSerializer

# Decimal internally, JSON number on the wire
Money = Annotated[Decimal, PlainSerializer(float, return_type=float, when_used="json")]

TransactionType = Literal["expense", "income", "transfer"]
TransferType = Literal["source_debit", "destination_credit", "interest"]


class PaymentSchema(BaseModel):
    """Payment recorded against a credit wallet statement"""

    model_config = ConfigDict(from_attributes=True)

    id: str
    amount: Money
    date: datetime
    billing_cycle_date: Optional[date] = None
    source_wallet_id: Optional[str] = None
    description: str = ""


class WalletCreateRequest(BaseModel):
    """Request body for POST /v1/wallets"""

    name: str = Field(..., min_length=1, description="Display name")
    type: Literal["cash", "credit"] = "cash"
    balance: Decimal = Field(Decimal("0"), description="Starting balance, or initial debt for credit wallets")
    credit_limit: Decimal = Field(Decimal("0"), ge=0)
    billing_date: Optional[int] = Field(None, description="Statement day of month (1-31)")
    due_date_duration: Optional[int] = Field(None, ge=1, description="Days from statement to due date")
    last_billed_amount: Decimal = Field(Decimal("0"), ge=0, description="Statement still unpaid at setup")


class WalletResponse(BaseModel):
    """Persisted wallet state"""

    model_config = ConfigDict(from_attributes=True)

    id: str
    name: str
    type: str
    balance: Money
    credit_limit: Money
    billing_date: Optional[int] = None
    due_date_duration: Optional[int] = None
    last_billing_date: Optional[date] = None
    last_billed_amount: Money
    payments: List[PaymentSchema] = []
    settled_payments: List[PaymentSchema] = []


class SetupCheckResponse(BaseModel):
    """Response for GET /v1/wallets/setup-check"""

    billing_date: int
    valid: bool
    last_billing_date: Optional[date] = None
    next_billing_date: Optional[date] = None
    current_bill_due_date: Optional[date] = None
    next_bill_due_date: Optional[date] = None
    between_billing_and_due: bool = False


class WalletSummaryResponse(BaseModel):
    """Response for GET /v1/wallets/{wallet_id}/summary"""

    model_config = ConfigDict(from_attributes=True)

    wallet_id: str
    wallet_type: str
    calculated_balance: Money
    total_income: Money
    total_expenses: Money
    credit_limit: Money
    credit_used: Money
    available_credit: Money
    utilization: float
    last_billed_amount: Money
    total_payments: Money
    unpaid_bill_amount: Money
    unbilled_amount: Money
    current_statement_balance: Money
    last_billing_date: Optional[date] = None
    next_billing_date: Optional[date] = None
    due_date: Optional[date] = None
    days_until_due: Optional[int] = None


class TransactionCreateRequest(BaseModel):
    """Request body for POST /v1/transactions"""

    wallet_id: str = Field(..., min_length=1)
    type: TransactionType
    amount: Decimal = Field(..., gt=0)
    date: Optional[str] = Field(None, description="ISO timestamp; unparseable values fall back to now")
    category: str = ""
    tag: Optional[str] = None
    description: Optional[str] = None
    is_transfer: bool = False
    transfer_type: Optional[TransferType] = None


class TransactionUpdateRequest(BaseModel):
    """Request body for PUT /v1/transactions/{transaction_id}; only sent fields change"""

    wallet_id: Optional[str] = None
    type: Optional[TransactionType] = None
    amount: Optional[Decimal] = Field(None, gt=0)
    date: Optional[str] = None
    category: Optional[str] = None
    tag: Optional[str] = None
    description: Optional[str] = None
    is_transfer: Optional[bool] = None
    transfer_type: Optional[TransferType] = None


class TransactionResponse(BaseModel):
    """Stored transaction"""

    model_config = ConfigDict(from_attributes=True)

    id: str
    wallet_id: str
    type: str
    amount: Money
    date: datetime
    category: str = ""
    tag: Optional[str] = None
    description: Optional[str] = None
    is_transfer: bool = False
    transfer_type: Optional[str] = None
    payment_id: Optional[str] = None


class TransactionListResponse(BaseModel):
    """Response for GET /v1/transactions"""

    transactions: List[TransactionResponse]


class BillingCycleSchema(BaseModel):
    """Single billing cycle in a wallet's history"""

    model_config = ConfigDict(from_attributes=True)

    billing_date: date
    next_billing_date: date
    due_date: date
    expenses: Money
    income: Money
    transfers: Money
    initial_debt: Money
    carried_in: Money
    exact_billed_amount: Money
    billed_amount: Money
    carryforward: Money
    total_payments: Money
    remaining_balance: Money
    is_settled: bool
    is_partially_paid: bool
    is_past_due: bool
    is_current: bool
    days_until_due: int
    payments: List[PaymentSchema]
    transactions: List[TransactionResponse]


class BillingHistorySummarySchema(BaseModel):
    """Totals across a billing history"""

    model_config = ConfigDict(from_attributes=True)

    total_billed: Money
    total_paid: Money
    total_outstanding: Money
    settled_cycles: int
    total_cycles: int
    settlement_rate: float


class BillingHistoryResponse(BaseModel):
    """Response for GET /v1/wallets/{wallet_id}/billing-history"""

    wallet_id: str
    cycles: List[BillingCycleSchema]
    summary: BillingHistorySummarySchema


class PaymentRequest(BaseModel):
    """Request body for POST /v1/wallets/{wallet_id}/payments"""

    amount: Decimal = Field(..., gt=0, description="Amount paid toward the current statement")
    source_wallet_id: Optional[str] = Field(None, description="Wallet the money comes from")
    date: Optional[str] = None
    description: str = "Credit card bill payment"


class PaymentResponse(BaseModel):
    """Response for POST /v1/wallets/{wallet_id}/payments"""

    payment: PaymentSchema
    remaining_bill_amount: Money
    summary: WalletSummaryResponse


class InitialDebtRequest(BaseModel):
    """Request body for PUT /v1/wallets/{wallet_id}/initial-debt"""

    amount: Decimal = Field(..., ge=0)


class AdvanceResponse(BaseModel):
    """Response for POST /v1/wallets/{wallet_id}/advance"""

    wallet_id: str
    advanced: bool
    cycles_advanced: int = 0
    last_billing_date: Optional[date] = None
    last_billed_amount: Optional[Money] = None
    next_billing_date: Optional[date] = None
    due_date: Optional[date] = None
