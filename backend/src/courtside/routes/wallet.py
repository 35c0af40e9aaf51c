"""
Wallet API Routes
Balance, ledger and top-ups
"""

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from courtside.config import settings
from courtside.database import get_db
from courtside.dependencies.auth import get_current_user
from courtside.models.user import User
from courtside.schemas.wallet import AddFundsRequest, WalletResponse
from courtside.services.wallet_service import WalletService

router = APIRouter(prefix="/wallet", tags=["Wallet"])


def _wallet_view(db: Session, user: User, limit: int = 10) -> dict:
    db.refresh(user)
    return {
        "balance": WalletService.get_balance(db, user.id),
        "reward_points": user.reward_points or 0,
        "currency": settings.CURRENCY,
        "transactions": WalletService.list_transactions(db, user.id, limit=limit),
    }


@router.get("/", response_model=WalletResponse)
def get_wallet(
    limit: int = Query(10, ge=1, le=100),
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    """Current balance, reward points and latest transactions"""
    return _wallet_view(db, current_user, limit)


@router.post("/add-funds", response_model=WalletResponse)
def add_funds(
    payload: AddFundsRequest,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    """Top up the wallet"""
    WalletService.top_up(db, current_user.id, payload.amount)
    return _wallet_view(db, current_user)
