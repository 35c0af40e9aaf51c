"""
Wallet Schemas
"""

from datetime import datetime
from decimal import Decimal
from typing import List, Optional
from uuid import UUID

from pydantic import BaseModel, Field

from courtside.models.wallet import TransactionType


class AddFundsRequest(BaseModel):
    """Request schema for a wallet top-up"""

    amount: Decimal = Field(..., gt=0, max_digits=10, decimal_places=2)


class WalletTransactionResponse(BaseModel):
    id: UUID
    sequence: int
    type: TransactionType
    amount: Decimal
    description: Optional[str] = None
    reference_id: Optional[str] = None
    balance_after: Decimal
    created_at: datetime

    class Config:
        from_attributes = True


class WalletResponse(BaseModel):
    """Balance, reward points and most recent ledger entries"""

    balance: Decimal
    reward_points: int
    currency: str
    transactions: List[WalletTransactionResponse]
