"""
Pricing & Discount Resolver
Turns court price, duration, reward points and coupon into the payable amount
"""

import math
from dataclasses import dataclass
from datetime import datetime
from decimal import ROUND_HALF_UP, Decimal
from typing import Optional
from uuid import UUID

from courtside.config import settings
from courtside.models.coupon import Coupon, DiscountType
from courtside.services.coupon_service import validate_coupon
from courtside.services.wallet_service import ZERO, to_money


@dataclass
class PriceBreakdown:
    total_amount: Decimal
    reward_discount: Decimal
    coupon_discount: Decimal
    discount_amount: Decimal
    final_amount: Decimal
    reward_points_redeemed: int = 0
    coupon: Optional[Coupon] = None


def coupon_discount(coupon: Coupon, total_amount: Decimal) -> Decimal:
    """Discount granted by an already validated coupon, never above the total"""
    value = Decimal(str(coupon.discount_value))
    if coupon.discount_type == DiscountType.PERCENTAGE:
        discount = total_amount * value / Decimal(100)
        if coupon.max_discount is not None:
            discount = min(discount, Decimal(str(coupon.max_discount)))
    else:
        discount = value
    return min(to_money(discount), total_amount)


def reward_discount(total_amount: Decimal, user_reward_points: int):
    """
    Discount from redeeming reward points and the number of points it uses.

    Each point is worth REWARD_POINT_VALUE; the discount is capped at
    REWARD_REDEMPTION_CAP of the total.
    """
    points = max(int(user_reward_points or 0), 0)
    if points == 0:
        return ZERO, 0
    point_value = Decimal(settings.REWARD_POINT_VALUE)
    cap = total_amount * Decimal(settings.REWARD_REDEMPTION_CAP)
    discount = to_money(min(cap, points * point_value))
    used = min(points, math.ceil(discount / point_value))
    return discount, used


def compute_final_amount(
    base_price,
    duration_hours,
    reward_points_requested: bool,
    user_reward_points: int,
    coupon_code: Optional[str] = None,
    coupon_catalog=None,
    facility_id: Optional[UUID] = None,
    now: Optional[datetime] = None,
) -> PriceBreakdown:
    """
    Compute total, discount and final amount of a booking.

    Args:
        base_price: Court price per hour
        duration_hours: Booked hours (may be fractional)
        reward_points_requested: Whether the user redeems reward points
        user_reward_points: Points the user currently holds
        coupon_code: Optional coupon to apply
        coupon_catalog: Object with ``get(code)`` returning a Coupon or None
        facility_id: Facility of the court, for facility-scoped coupons
        now: Reference time for the coupon validity window

    Raises:
        CouponInvalid: an explicit coupon code does not validate
    """
    total = to_money(Decimal(str(base_price)) * Decimal(str(duration_hours)))

    points_discount, points_used = ZERO, 0
    if reward_points_requested:
        points_discount, points_used = reward_discount(total, user_reward_points)

    coupon = None
    discount_from_coupon = ZERO
    if coupon_code:
        coupon = validate_coupon(coupon_catalog or {}, coupon_code, total, facility_id, now)
        discount_from_coupon = coupon_discount(coupon, total)

    discount = min(points_discount + discount_from_coupon, total)
    final = max(total - discount, ZERO)

    return PriceBreakdown(
        total_amount=total,
        reward_discount=points_discount,
        coupon_discount=discount_from_coupon,
        discount_amount=discount,
        final_amount=final.quantize(Decimal("0.01"), rounding=ROUND_HALF_UP),
        reward_points_redeemed=points_used,
        coupon=coupon,
    )
