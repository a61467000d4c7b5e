"""
Coupon resolution for incoming conversions.

An unknown coupon never fails a conversion: it just grants no discount.
"""

import logging
from datetime import datetime, timezone
from decimal import Decimal
from typing import Optional, Tuple

from sqlalchemy import select, update
from sqlalchemy.ext.asyncio import AsyncSession

from affiliatehub.models import Coupon, CouponStatus
from affiliatehub.services.commission import ZERO, Number, calculate_coupon_discount
from affiliatehub.services.commission_rules import as_utc

logger = logging.getLogger(__name__)


async def get_coupon_by_code(db: AsyncSession, code: str) -> Optional[Coupon]:
    result = await db.execute(select(Coupon).where(Coupon.code == code.strip()))
    return result.scalar_one_or_none()


def is_coupon_redeemable(coupon: Coupon, now: datetime) -> bool:
    """Active, not past its expiry and under its usage limit."""
    if coupon.status != CouponStatus.ACTIVE:
        return False
    expires_at = as_utc(coupon.expires_at)
    if expires_at is not None and now > expires_at:
        return False
    if coupon.usage_limit is not None and coupon.usage_count >= coupon.usage_limit:
        return False
    return True


async def resolve_coupon_discount(
    db: AsyncSession,
    partner_id: int,
    coupon_code: Optional[str],
    order_value: Number,
    now: Optional[datetime] = None,
) -> Tuple[Optional[Coupon], Decimal]:
    """
    Find the partner's coupon for a conversion and the discount it grants.

    Returns:
        (coupon, discount). coupon is None and discount is zero when the
        code is missing, unknown, owned by another partner or not
        redeemable.
    """
    if not coupon_code:
        return None, ZERO

    now = now or datetime.now(timezone.utc)
    coupon = await get_coupon_by_code(db, coupon_code)

    if coupon is None or coupon.partner_id != partner_id:
        logger.warning(f"Coupon {coupon_code} not found for partner {partner_id}, no discount applied")
        return None, ZERO

    if not is_coupon_redeemable(coupon, now):
        logger.warning(f"Coupon {coupon_code} is not redeemable, no discount applied")
        return None, ZERO

    discount = calculate_coupon_discount(order_value, coupon.discount_type, coupon.discount_value)
    return coupon, discount


async def record_coupon_redemption(db: AsyncSession, coupon_id: int) -> None:
    """Increment a coupon's usage counter."""
    await db.execute(
        update(Coupon)
        .where(Coupon.id == coupon_id)
        .values(usage_count=Coupon.usage_count + 1)
        .execution_options(synchronize_session=False)
    )
