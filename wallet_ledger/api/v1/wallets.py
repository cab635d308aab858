"""Wallet endpoints - creation, summaries, billing history and statement commands"""

import logging
from fastapi import APIRouter, Depends, HTTPException, Query, Request
from sqlalchemy.orm import Session

from wallet_ledger.api.v1.schemas import (
    AdvanceResponse,
    BillingCycleSchema,
    BillingHistoryResponse,
    BillingHistorySummarySchema,
    InitialDebtRequest,
    PaymentRequest,
    PaymentResponse,
    PaymentSchema,
    SetupCheckResponse,
    WalletCreateRequest,
    WalletResponse,
    WalletSummaryResponse,
)
from wallet_ledger.api.dependencies import get_request_id, get_wallet_service
from wallet_ledger.infrastructure.database.session import get_db
from wallet_ledger.services.wallet_service import WalletService
from wallet_ledger.domain.exceptions import (
    InvalidPaymentError,
    InvalidWalletDataError,
    NotACreditWalletError,
    WalletNotFoundError,
)
from wallet_ledger.infrastructure.observability.metrics import record_payment
from wallet_ledger.infrastructure.observability.logging import log_payment

router = APIRouter()


@router.post("/wallets", response_model=WalletResponse, status_code=201)
def create_wallet(
    request_body: WalletCreateRequest,
    request: Request,
    db: Session = Depends(get_db),
    service: WalletService = Depends(get_wallet_service),
):
    """
    Create a cash or credit wallet.

    Credit wallets with a billing day start at the most recent statement date;
    pass `last_billed_amount` when that statement is still unpaid.
    """
    request_id = get_request_id(request)

    try:
        wallet = service.create_wallet(
            name=request_body.name,
            wallet_type=request_body.type,
            balance=request_body.balance,
            credit_limit=request_body.credit_limit,
            billing_date=request_body.billing_date,
            due_date_duration=request_body.due_date_duration,
            last_billed_amount=request_body.last_billed_amount,
        )
        db.commit()
        return WalletResponse.model_validate(wallet)

    except InvalidWalletDataError as e:
        db.rollback()
        logging.warning(f"Invalid wallet: {e}", extra={"request_id": request_id})
        raise HTTPException(status_code=422, detail=str(e))


@router.get("/wallets", response_model=list[WalletResponse])
def list_wallets(service: WalletService = Depends(get_wallet_service)):
    return [WalletResponse.model_validate(w) for w in service.list_wallets()]


@router.get("/wallets/setup-check", response_model=SetupCheckResponse)
def check_wallet_setup(
    billing_date: int = Query(..., description="Statement day of month"),
    due_date_duration: int | None = Query(None, ge=1, description="Days from statement to due date"),
    service: WalletService = Depends(get_wallet_service),
):
    """
    Preview statement dates for a prospective credit wallet.

    `between_billing_and_due` tells the client whether to ask if the last
    bill has already been paid.
    """
    dates, between = service.check_setup(billing_date, due_date_duration)
    if dates is None:
        return SetupCheckResponse(billing_date=billing_date, valid=False)

    return SetupCheckResponse(
        billing_date=billing_date,
        valid=True,
        last_billing_date=dates.last_billing_date,
        next_billing_date=dates.next_billing_date,
        current_bill_due_date=dates.current_bill_due_date,
        next_bill_due_date=dates.next_bill_due_date,
        between_billing_and_due=between,
    )


@router.get("/wallets/{wallet_id}", response_model=WalletResponse)
def get_wallet(wallet_id: str, service: WalletService = Depends(get_wallet_service)):
    try:
        return WalletResponse.model_validate(service.get_wallet(wallet_id))
    except WalletNotFoundError:
        raise HTTPException(status_code=404, detail="Wallet not found")


@router.get("/wallets/{wallet_id}/summary", response_model=WalletSummaryResponse)
def get_wallet_summary(wallet_id: str, service: WalletService = Depends(get_wallet_service)):
    """
    Balance snapshot for a wallet.

    For credit wallets: credit used, available credit, unpaid statement,
    unbilled spending and the due date that currently matters.
    """
    try:
        return WalletSummaryResponse.model_validate(service.get_summary(wallet_id))
    except WalletNotFoundError:
        raise HTTPException(status_code=404, detail="Wallet not found")


@router.get("/wallets/{wallet_id}/billing-history", response_model=BillingHistoryResponse)
def get_billing_history(wallet_id: str, service: WalletService = Depends(get_wallet_service)):
    """
    Billing cycles of a credit wallet, most recent first.

    Returns:
        Cycles with billed amounts, matched payments and status flags, plus
        totals and the settlement rate across them
    """
    try:
        history, summary = service.get_billing_history(wallet_id)
    except WalletNotFoundError:
        raise HTTPException(status_code=404, detail="Wallet not found")
    except NotACreditWalletError as e:
        raise HTTPException(status_code=422, detail=str(e))

    return BillingHistoryResponse(
        wallet_id=wallet_id,
        cycles=[BillingCycleSchema.model_validate(c) for c in history],
        summary=BillingHistorySummarySchema.model_validate(summary),
    )


@router.post("/wallets/{wallet_id}/payments", response_model=PaymentResponse, status_code=201)
def apply_payment(
    wallet_id: str,
    request_body: PaymentRequest,
    request: Request,
    db: Session = Depends(get_db),
    service: WalletService = Depends(get_wallet_service),
):
    """
    Pay the current statement of a credit wallet.

    Flow:
    1. Validate the amount against the unpaid statement
    2. Link the payment to the statement's billing date
    3. Record the bill-payment credit (and the source wallet debit)
    4. Commit and return the refreshed summary
    """
    request_id = get_request_id(request)

    try:
        payment, remaining = service.apply_payment(
            wallet_id,
            request_body.amount,
            source_wallet_id=request_body.source_wallet_id,
            date=request_body.date,
            description=request_body.description,
        )
        db.commit()

        record_payment(payment.amount)
        log_payment(request_id, wallet_id, payment.amount, payment.billing_cycle_date, remaining)

        return PaymentResponse(
            payment=PaymentSchema.model_validate(payment),
            remaining_bill_amount=remaining,
            summary=WalletSummaryResponse.model_validate(service.get_summary(wallet_id)),
        )

    except WalletNotFoundError as e:
        db.rollback()
        raise HTTPException(status_code=404, detail=str(e))

    except (InvalidPaymentError, NotACreditWalletError) as e:
        db.rollback()
        logging.warning(f"Payment rejected: {e}", extra={"request_id": request_id})
        raise HTTPException(status_code=422, detail=str(e))

    except Exception as e:
        db.rollback()
        logging.error(f"Unexpected error: {e}", extra={"request_id": request_id})
        raise HTTPException(status_code=500, detail="Internal server error")


@router.post("/wallets/{wallet_id}/advance", response_model=AdvanceResponse)
def advance_billing_cycle(
    wallet_id: str,
    request: Request,
    db: Session = Depends(get_db),
    service: WalletService = Depends(get_wallet_service),
):
    """Generate any statements due; `advanced` is false when no boundary has been reached"""
    request_id = get_request_id(request)

    try:
        advance = service.advance_cycle(wallet_id)
        db.commit()
    except WalletNotFoundError:
        db.rollback()
        raise HTTPException(status_code=404, detail="Wallet not found")
    except Exception as e:
        db.rollback()
        logging.error(f"Unexpected error: {e}", extra={"request_id": request_id})
        raise HTTPException(status_code=500, detail="Internal server error")

    if advance is None:
        return AdvanceResponse(wallet_id=wallet_id, advanced=False)

    return AdvanceResponse(
        wallet_id=wallet_id,
        advanced=True,
        cycles_advanced=advance.cycles_advanced,
        last_billing_date=advance.last_billing_date,
        last_billed_amount=advance.last_billed_amount,
        next_billing_date=advance.next_billing_date,
        due_date=advance.due_date,
    )


@router.put("/wallets/{wallet_id}/initial-debt", response_model=WalletResponse)
def edit_initial_debt(
    wallet_id: str,
    request_body: InitialDebtRequest,
    request: Request,
    db: Session = Depends(get_db),
    service: WalletService = Depends(get_wallet_service),
):
    """Correct the debt a credit wallet carried when it was created"""
    request_id = get_request_id(request)

    try:
        wallet = service.edit_initial_debt(wallet_id, request_body.amount)
        db.commit()
        return WalletResponse.model_validate(wallet)

    except WalletNotFoundError:
        db.rollback()
        raise HTTPException(status_code=404, detail="Wallet not found")

    except (NotACreditWalletError, InvalidWalletDataError) as e:
        db.rollback()
        logging.warning(f"Initial debt rejected: {e}", extra={"request_id": request_id})
        raise HTTPException(status_code=422, detail=str(e))
