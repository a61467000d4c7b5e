"""
Create a partner (and optionally a coupon) for local webhook testing.

Usage:
    python scripts/seed_partner.py --code ACME10 --rate 10

Or with custom DATABASE_URL:
    DATABASE_URL="postgresql://..." python scripts/seed_partner.py --code ACME10 --new-customers-only
"""

import asyncio
import os
import sys
from decimal import Decimal

# Add parent directory to path for imports
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from sqlalchemy import select

from affiliatehub.db import engine, get_db_context
from affiliatehub.models import (
    CommissionType,
    Coupon,
    CouponStatus,
    DiscountType,
    Partner,
    PartnerStatus,
)


async def seed(args) -> None:
    async with get_db_context() as db:
        result = await db.execute(select(Partner).where(Partner.referral_code == args.code))
        partner = result.scalar_one_or_none()

        if partner:
            print(f"Partner with referral code {args.code} already exists (#{partner.id})")
        else:
            partner = Partner(
                name=args.name,
                email=args.email,
                status=PartnerStatus.ACTIVE,
                commission_rate=Decimal(args.rate),
                commission_type=CommissionType(args.type),
                referral_code=args.code,
                new_customers_only=args.new_customers_only,
                commission_period_months=args.months,
                require_coupon_usage=args.require_coupon_usage,
            )
            db.add(partner)
            await db.flush()
            print(f"Created partner #{partner.id} ({args.code}, {args.rate} {args.type})")

        if args.coupon:
            db.add(
                Coupon(
                    code=args.coupon,
                    partner_id=partner.id,
                    discount_type=DiscountType.FIXED,
                    discount_value=Decimal(args.coupon_value),
                    status=CouponStatus.ACTIVE,
                )
            )
            print(f"Created coupon {args.coupon} worth {args.coupon_value}")

    await engine.dispose()


if __name__ == "__main__":
    import argparse

    parser = argparse.ArgumentParser(description="Seed a partner for affiliatehub")
    parser.add_argument("--code", required=True, help="Referral code")
    parser.add_argument("--name", default="Test Partner")
    parser.add_argument("--email", default="partner@example.com")
    parser.add_argument("--rate", default="10", help="Percent or fixed amount")
    parser.add_argument("--type", default="percentage", choices=["percentage", "fixed"])
    parser.add_argument("--months", type=int, default=12, help="Commission period in months")
    parser.add_argument("--new-customers-only", action="store_true")
    parser.add_argument("--require-coupon-usage", action="store_true")
    parser.add_argument("--coupon", help="Also create a fixed-value coupon with this code")
    parser.add_argument("--coupon-value", default="20")

    asyncio.run(seed(parser.parse_args()))
