"""
Wallet Ledger
Per-user balance with an append-only transaction log
"""

import logging
from decimal import ROUND_HALF_UP, Decimal
from typing import List, Optional, Union
from uuid import UUID

from sqlalchemy import func, select, update
from sqlalchemy.orm import Session

from courtside.errors import InsufficientFunds, InvalidAmount, NotFound
from courtside.models.user import User
from courtside.models.wallet import TransactionType, WalletTransaction
from courtside.utils.timeslots import utcnow

logger = logging.getLogger(__name__)

ZERO = Decimal("0.00")
CENT = Decimal("0.01")


def to_money(value: Union[Decimal, float, int, str, None]) -> Decimal:
    """Quantize to two decimals; floats go through str to avoid binary noise"""
    if value is None:
        return ZERO
    if isinstance(value, float):
        value = str(value)
    return Decimal(value).quantize(CENT, rounding=ROUND_HALF_UP)


class WalletService:
    """
    Wallet operations.

    debit/credit flush but never commit: the caller owns the transaction, so a
    booking insert and its wallet debit commit or roll back together.
    """

    @staticmethod
    def get_balance(db: Session, user_id: UUID) -> Decimal:
        """Current balance, 0 for users without wallet activity"""
        balance = db.execute(select(User.wallet_balance).where(User.id == user_id)).scalar_one_or_none()
        return to_money(balance)

    @staticmethod
    def ledger_balance(db: Session, user_id: UUID) -> Decimal:
        """Balance reconstructed from the ledger: balance_after of the latest entry"""
        latest = db.execute(
            select(WalletTransaction.balance_after)
            .where(WalletTransaction.user_id == user_id)
            .order_by(WalletTransaction.sequence.desc())
            .limit(1)
        ).scalar_one_or_none()
        return to_money(latest)

    @staticmethod
    def list_transactions(db: Session, user_id: UUID, limit: int = 10) -> List[WalletTransaction]:
        return (
            db.query(WalletTransaction)
            .filter(WalletTransaction.user_id == user_id)
            .order_by(WalletTransaction.sequence.desc())
            .limit(limit)
            .all()
        )

    @classmethod
    def debit(
        cls,
        db: Session,
        user_id: UUID,
        amount: Union[Decimal, float, int, str],
        description: str,
        reference_id: Optional[str] = None,
    ) -> WalletTransaction:
        """
        Take ``amount`` from the wallet.

        Raises:
            InvalidAmount: amount is zero or negative
            InsufficientFunds: amount exceeds the current balance
        """
        amount = cls._validate_amount(amount)
        user = cls._lock_wallet(db, user_id)

        # Guarded relative update: never reads a stale balance, never goes negative
        result = db.execute(
            update(User)
            .where(User.id == user_id, User.wallet_balance >= amount)
            .values(wallet_balance=User.wallet_balance - amount, updated_at=utcnow())
            .execution_options(synchronize_session=False)
        )
        if result.rowcount != 1:
            balance = cls.get_balance(db, user_id)
            logger.warning(f"Wallet debit refused for user {user_id}: balance {balance}, requested {amount}")
            raise InsufficientFunds(
                details={"balance": str(balance), "amount": str(amount), "shortfall": str(amount - balance)}
            )

        return cls._append(db, user, TransactionType.DEBIT, amount, description, reference_id)

    @classmethod
    def credit(
        cls,
        db: Session,
        user_id: UUID,
        amount: Union[Decimal, float, int, str],
        description: str,
        reference_id: Optional[str] = None,
    ) -> WalletTransaction:
        """
        Add ``amount`` to the wallet.

        Raises:
            InvalidAmount: amount is zero or negative
        """
        amount = cls._validate_amount(amount)
        user = cls._lock_wallet(db, user_id)

        db.execute(
            update(User)
            .where(User.id == user_id)
            .values(wallet_balance=User.wallet_balance + amount, updated_at=utcnow())
            .execution_options(synchronize_session=False)
        )

        return cls._append(db, user, TransactionType.CREDIT, amount, description, reference_id)

    @classmethod
    def top_up(cls, db: Session, user_id: UUID, amount: Union[Decimal, float, int, str]) -> WalletTransaction:
        """Add funds to the wallet and commit"""
        try:
            transaction = cls.credit(db, user_id, amount, "Wallet top-up")
            db.commit()
        except Exception:
            db.rollback()
            raise
        db.refresh(transaction)
        logger.info(f"Wallet top-up of {transaction.amount} for user {user_id}")
        return transaction

    @staticmethod
    def _validate_amount(amount) -> Decimal:
        try:
            value = to_money(amount)
        except (ArithmeticError, ValueError, TypeError):
            raise InvalidAmount(f"Invalid amount: {amount!r}")
        if value <= ZERO:
            raise InvalidAmount()
        return value

    @staticmethod
    def _lock_wallet(db: Session, user_id: UUID) -> User:
        """Row-lock the user's wallet state for the rest of the transaction"""
        user = db.get(User, user_id, with_for_update=True, populate_existing=True)
        if user is None:
            raise NotFound(f"User {user_id} not found")
        return user

    @staticmethod
    def _append(
        db: Session,
        user: User,
        tx_type: TransactionType,
        amount: Decimal,
        description: str,
        reference_id: Optional[str],
    ) -> WalletTransaction:
        db.refresh(user, attribute_names=["wallet_balance"])
        last_sequence = db.execute(
            select(func.max(WalletTransaction.sequence)).where(WalletTransaction.user_id == user.id)
        ).scalar()

        transaction = WalletTransaction(
            user_id=user.id,
            sequence=(last_sequence or 0) + 1,
            type=tx_type,
            amount=amount,
            description=description,
            reference_id=reference_id,
            balance_after=to_money(user.wallet_balance),
        )
        db.add(transaction)
        db.flush()
        return transaction
