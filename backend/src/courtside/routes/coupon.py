"""
Coupon API Routes
"""

from typing import List, Optional
from uuid import UUID

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from courtside.database import get_db
from courtside.schemas.coupon import CouponResponse, CouponValidateRequest, CouponValidateResponse
from courtside.services.coupon_service import CouponCatalog, validate_coupon
from courtside.services.pricing_service import coupon_discount
from courtside.services.wallet_service import to_money

router = APIRouter(prefix="/coupons", tags=["Coupons"])


@router.get("/", response_model=List[CouponResponse])
def list_coupons(facility_id: Optional[UUID] = None, db: Session = Depends(get_db)):
    """Coupons currently redeemable, optionally including one facility's own"""
    return CouponCatalog(db).list_active(facility_id=facility_id)


@router.post("/validate", response_model=CouponValidateResponse)
def validate(payload: CouponValidateRequest, db: Session = Depends(get_db)):
    """Check a coupon against an amount and preview the discount"""
    amount = to_money(payload.amount)
    code = payload.code.strip().upper()
    coupon = validate_coupon(CouponCatalog(db), code, amount, facility_id=payload.facility_id)
    discount = coupon_discount(coupon, amount)
    return {
        "valid": True,
        "code": coupon.code,
        "discount_amount": discount,
        "final_amount": amount - discount,
        "coupon": coupon,
    }
