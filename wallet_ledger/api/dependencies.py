"""Dependency injection for FastAPI endpoints"""

from datetime import date
from fastapi import Depends, Request
from sqlalchemy.orm import Session
from wallet_ledger.infrastructure.database.session import get_db
from wallet_ledger.infrastructure.database.repositories import TransactionRepository, WalletRepository
from wallet_ledger.services.wallet_service import WalletService


def get_request_id(request: Request) -> str:
    """Extract request ID from request state"""
    return getattr(request.state, "request_id", "unknown")


def get_today() -> date:
    """Reference date for billing computations"""
    return date.today()


def get_wallet_service(db: Session = Depends(get_db), today: date = Depends(get_today)) -> WalletService:
    """Provide a wallet service bound to the request's session"""
    return WalletService(WalletRepository(db), TransactionRepository(db), clock=lambda: today)
