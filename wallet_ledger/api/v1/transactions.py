"""Transaction endpoints - every change re-evaluates the owning credit wallet's cycle"""

import logging
from fastapi import APIRouter, Depends, HTTPException, Query, Request, Response
from sqlalchemy.orm import Session

from wallet_ledger.api.v1.schemas import (
    TransactionCreateRequest,
    TransactionListResponse,
    TransactionResponse,
    TransactionUpdateRequest,
)
from wallet_ledger.api.dependencies import get_request_id, get_wallet_service
from wallet_ledger.infrastructure.database.session import get_db
from wallet_ledger.services.wallet_service import WalletService
from wallet_ledger.domain.exceptions import (
    InvalidTransactionDataError,
    TransactionNotFoundError,
    WalletNotFoundError,
)

router = APIRouter()


@router.post("/transactions", response_model=TransactionResponse, status_code=201)
def create_transaction(
    request_body: TransactionCreateRequest,
    request: Request,
    db: Session = Depends(get_db),
    service: WalletService = Depends(get_wallet_service),
):
    request_id = get_request_id(request)

    try:
        transaction = service.add_transaction(**request_body.model_dump())
        db.commit()
        return TransactionResponse.model_validate(transaction)

    except WalletNotFoundError as e:
        db.rollback()
        raise HTTPException(status_code=404, detail=str(e))

    except InvalidTransactionDataError as e:
        db.rollback()
        logging.warning(f"Invalid transaction: {e}", extra={"request_id": request_id})
        raise HTTPException(status_code=422, detail=str(e))

    except Exception as e:
        db.rollback()
        logging.error(f"Unexpected error: {e}", extra={"request_id": request_id})
        raise HTTPException(status_code=500, detail="Internal server error")


@router.get("/transactions", response_model=TransactionListResponse)
def list_transactions(
    wallet_id: str | None = Query(None, description="Restrict to one wallet"),
    service: WalletService = Depends(get_wallet_service),
):
    try:
        transactions = service.list_transactions(wallet_id)
    except WalletNotFoundError:
        raise HTTPException(status_code=404, detail="Wallet not found")

    return TransactionListResponse(
        transactions=[TransactionResponse.model_validate(t) for t in transactions]
    )


@router.put("/transactions/{transaction_id}", response_model=TransactionResponse)
def update_transaction(
    transaction_id: str,
    request_body: TransactionUpdateRequest,
    request: Request,
    db: Session = Depends(get_db),
    service: WalletService = Depends(get_wallet_service),
):
    """Edit a transaction; reassigning `wallet_id` moves it to another wallet"""
    request_id = get_request_id(request)

    try:
        transaction = service.edit_transaction(transaction_id, **request_body.model_dump(exclude_unset=True))
        db.commit()
        return TransactionResponse.model_validate(transaction)

    except (TransactionNotFoundError, WalletNotFoundError) as e:
        db.rollback()
        raise HTTPException(status_code=404, detail=str(e))

    except InvalidTransactionDataError as e:
        db.rollback()
        logging.warning(f"Invalid transaction edit: {e}", extra={"request_id": request_id})
        raise HTTPException(status_code=422, detail=str(e))

    except Exception as e:
        db.rollback()
        logging.error(f"Unexpected error: {e}", extra={"request_id": request_id})
        raise HTTPException(status_code=500, detail="Internal server error")


@router.delete("/transactions/{transaction_id}", status_code=204)
def delete_transaction(
    transaction_id: str,
    request: Request,
    db: Session = Depends(get_db),
    service: WalletService = Depends(get_wallet_service),
):
    """Remove a transaction; bill-payment legs are rejected with 422"""
    request_id = get_request_id(request)

    try:
        service.delete_transaction(transaction_id)
        db.commit()

    except TransactionNotFoundError:
        db.rollback()
        raise HTTPException(status_code=404, detail="Transaction not found")

    except InvalidTransactionDataError as e:
        db.rollback()
        logging.warning(f"Transaction delete rejected: {e}", extra={"request_id": request_id})
        raise HTTPException(status_code=422, detail=str(e))

    except Exception as e:
        db.rollback()
        logging.error(f"Unexpected error: {e}", extra={"request_id": request_id})
        raise HTTPException(status_code=500, detail="Internal server error")

    return Response(status_code=204)
