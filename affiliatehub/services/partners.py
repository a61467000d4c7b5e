"""
Partner lookups and aggregate counters.

Counters are incremented in a single UPDATE so concurrent conversions
for the same partner can't lose each other's increments.
"""

from decimal import Decimal
from typing import Optional

from sqlalchemy import select, update
from sqlalchemy.ext.asyncio import AsyncSession

from affiliatehub.models import Partner


async def get_partner_by_referral_code(db: AsyncSession, referral_code: str) -> Optional[Partner]:
    """Resolve the partner behind a referral code."""
    result = await db.execute(
        select(Partner).where(Partner.referral_code == referral_code.strip())
    )
    return result.scalar_one_or_none()


async def record_conversion_stats(
    db: AsyncSession,
    partner_id: int,
    order_value: Decimal,
    commission_amount: Decimal,
) -> None:
    """Add one conversion, its revenue and its commission to a partner."""
    await db.execute(
        update(Partner)
        .where(Partner.id == partner_id)
        .values(
            conversion_count=Partner.conversion_count + 1,
            total_revenue=Partner.total_revenue + order_value,
            total_commissions=Partner.total_commissions + commission_amount,
        )
        .execution_options(synchronize_session=False)
    )


async def record_click(db: AsyncSession, partner_id: int) -> None:
    """Increment a partner's click counter."""
    await db.execute(
        update(Partner)
        .where(Partner.id == partner_id)
        .values(click_count=Partner.click_count + 1)
        .execution_options(synchronize_session=False)
    )
