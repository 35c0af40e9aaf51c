"""
Coupon Catalog
Lookup and validation of discount coupons
"""

from datetime import datetime
from decimal import Decimal
from typing import List, Optional
from uuid import UUID

from sqlalchemy import or_, update
from sqlalchemy.orm import Session

from courtside.errors import CouponInvalid
from courtside.models.coupon import Coupon
from courtside.utils.timeslots import utcnow


class CouponCatalog:
    """Coupons stored in the database. Anything with a ``get(code)`` works as a catalog."""

    def __init__(self, db: Session):
        self.db = db

    def get(self, code: str) -> Optional[Coupon]:
        return self.db.query(Coupon).filter(Coupon.code == code).first()

    def list_active(self, facility_id: Optional[UUID] = None, now: Optional[datetime] = None) -> List[Coupon]:
        """Active coupons inside their validity window; platform-wide ones plus the facility's own"""
        now = now or utcnow()
        query = self.db.query(Coupon).filter(
            Coupon.is_active.is_(True),
            Coupon.valid_from <= now,
            Coupon.valid_until >= now,
        )
        if facility_id:
            query = query.filter(or_(Coupon.facility_id.is_(None), Coupon.facility_id == facility_id))
        else:
            query = query.filter(Coupon.facility_id.is_(None))
        return query.order_by(Coupon.valid_until).all()

    def redeem(self, coupon: Coupon) -> None:
        """
        Count one use of the coupon inside the caller's transaction.
        The guard re-checks the usage limit so concurrent redemptions cannot exceed it.
        """
        result = self.db.execute(
            update(Coupon)
            .where(
                Coupon.id == coupon.id,
                Coupon.is_active.is_(True),
                or_(Coupon.usage_limit.is_(None), Coupon.used_count < Coupon.usage_limit),
            )
            .values(used_count=Coupon.used_count + 1)
            .execution_options(synchronize_session=False)
        )
        if result.rowcount != 1:
            raise CouponInvalid("Coupon usage limit reached", details={"code": coupon.code})
        self.db.refresh(coupon, attribute_names=["used_count"])


def rejection_reason(
    coupon: Optional[Coupon],
    amount: Decimal,
    facility_id: Optional[UUID] = None,
    now: Optional[datetime] = None,
) -> Optional[str]:
    """Why the coupon cannot be applied to ``amount``, or None when it can"""
    now = now or utcnow()
    if coupon is None:
        return "Coupon not found"
    if not coupon.is_active:
        return "Coupon is no longer active"
    if coupon.valid_from and now < coupon.valid_from:
        return "Coupon is not valid yet"
    if coupon.valid_until and now > coupon.valid_until:
        return "Coupon has expired"
    if coupon.min_amount is not None and amount < Decimal(str(coupon.min_amount)):
        return f"Minimum booking amount for this coupon is {coupon.min_amount}"
    if coupon.usage_limit is not None and (coupon.used_count or 0) >= coupon.usage_limit:
        return "Coupon usage limit reached"
    if coupon.facility_id is not None and facility_id is not None and coupon.facility_id != facility_id:
        return "Coupon is not valid for this facility"
    return None


def validate_coupon(
    catalog,
    code: str,
    amount: Decimal,
    facility_id: Optional[UUID] = None,
    now: Optional[datetime] = None,
) -> Coupon:
    """
    Look up and validate a coupon.

    Raises:
        CouponInvalid: unknown, inactive, outside its window, below minimum,
            exhausted or scoped to another facility
    """
    code = (code or "").strip()
    coupon = catalog.get(code) if code else None
    reason = rejection_reason(coupon, amount, facility_id, now)
    if reason:
        raise CouponInvalid(f"Coupon invalid or expired: {reason}", details={"code": code, "reason": reason})
    return coupon
