"""
Wallet Transaction Model
Append-only ledger of wallet balance changes
"""

import enum
import uuid
from datetime import datetime

from sqlalchemy import CheckConstraint, Column, DateTime
from sqlalchemy import Enum as SQLEnum
from sqlalchemy import ForeignKey, Integer, Numeric, String, Text, UniqueConstraint, Uuid
from sqlalchemy.orm import relationship

from courtside.database import Base


class TransactionType(str, enum.Enum):
    CREDIT = "credit"
    DEBIT = "debit"


class WalletTransaction(Base):
    """
    Wallet Transaction Model
    balance_after is the user's balance immediately after this change.
    Rows are written once and never updated or deleted.
    """

    __tablename__ = "wallet_transactions"
    __table_args__ = (
        CheckConstraint("amount > 0", name="ck_wallet_transactions_amount_positive"),
        CheckConstraint("balance_after >= 0", name="ck_wallet_transactions_balance_non_negative"),
        UniqueConstraint("user_id", "sequence", name="uq_wallet_transactions_user_sequence"),
    )

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    user_id = Column(Uuid, ForeignKey("users.id"), nullable=False, index=True)
    sequence = Column(Integer, nullable=False)  # per-user position in the ledger, starting at 1

    type = Column(
        SQLEnum(TransactionType, values_callable=lambda x: [e.value for e in x]),
        nullable=False,
    )
    amount = Column(Numeric(10, 2), nullable=False)
    description = Column(Text, nullable=False)
    reference_id = Column(String(100), index=True)  # booking id, payment id, etc.
    balance_after = Column(Numeric(10, 2), nullable=False)

    created_at = Column(DateTime, default=datetime.utcnow, nullable=False, index=True)

    user = relationship("User", back_populates="wallet_transactions")

    def __repr__(self):
        return f"<WalletTransaction(type='{self.type}', amount={self.amount}, balance_after={self.balance_after})>"
