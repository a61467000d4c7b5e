"""
Conversion and coupon-usage webhooks.

Called by the storefront when an order completes and, later, when the
customer consumes coupon value. Business rule outcomes (blocked
commissions) are normal 200 responses; only invalid requests and
storage failures are errors.
"""

import logging

from fastapi import APIRouter, Depends, HTTPException, Request
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from affiliatehub.config import settings
from affiliatehub.db import get_db
from affiliatehub.models import Commission, CommissionStatus
from affiliatehub.schemas import (
    CommissionResponse,
    ConversionWebhookRequest,
    ConversionWebhookResponse,
    CouponUsageRequest,
    CouponUsageResponse,
)
from affiliatehub.services.commission_processor import (
    apply_coupon_usage,
    approve_commission,
    get_latest_commission_for_order,
    process_commission,
)
from affiliatehub.services.coupons import record_coupon_redemption, resolve_coupon_discount
from affiliatehub.services.exceptions import PartnerNotFoundError
from affiliatehub.services.partners import get_partner_by_referral_code, record_conversion_stats
from affiliatehub.utils.signature import verify_webhook_signature

logger = logging.getLogger(__name__)

SIGNATURE_HEADER = "X-Webhook-Signature"


async def verify_signature(request: Request) -> None:
    """Reject unsigned webhook calls when a webhook secret is configured."""
    if not settings.webhook_secret:
        return

    body = await request.body()
    signature = request.headers.get(SIGNATURE_HEADER, "")

    if not verify_webhook_signature(body, signature, settings.webhook_secret):
        logger.warning(f"Invalid webhook signature on {request.url.path}: {signature[:20]}...")
        raise HTTPException(status_code=401, detail="Invalid signature")


router = APIRouter(
    prefix="/webhook",
    tags=["Webhooks"],
    dependencies=[Depends(verify_signature)],
)


def _conversion_response(
    commission: Commission,
    should_pay: bool,
    reason,
    duplicate: bool = False,
) -> dict:
    return ConversionWebhookResponse(
        commission=CommissionResponse.model_validate(commission),
        should_pay=should_pay,
        reason=reason,
        duplicate=duplicate,
    ).model_dump(mode="json", by_alias=True)


def _duplicate_response(existing: Commission) -> dict:
    return _conversion_response(
        existing,
        should_pay=existing.status != CommissionStatus.BLOCKED,
        reason=existing.status_reason,
        duplicate=True,
    )


@router.post("/conversion")
async def conversion_webhook(
    payload: ConversionWebhookRequest,
    db: AsyncSession = Depends(get_db),
):
    """
    Record a conversion and its commission.

    Returns the commission, whether it is payable and, if not, why.
    A repeated orderId for the same partner returns the stored commission
    with duplicate=true and changes nothing.
    """
    partner = await get_partner_by_referral_code(db, payload.referral_code)
    if not partner:
        raise HTTPException(status_code=404, detail="Partner not found")

    if not partner.is_active:
        logger.info(f"Conversion {payload.order_id} rejected: partner {partner.id} is {partner.status.value}")
        raise HTTPException(status_code=400, detail="Partner is not active")

    partner_id = partner.id

    existing = await get_latest_commission_for_order(db, payload.order_id, partner_id=partner_id)
    if existing:
        logger.info(f"Duplicate conversion {payload.order_id} for partner {partner_id}")
        return _duplicate_response(existing)

    try:
        coupon, discount = await resolve_coupon_discount(
            db, partner_id, payload.coupon_code, payload.order_value
        )
        if coupon:
            await record_coupon_redemption(db, coupon.id)

        result = await process_commission(
            db,
            partner_id=partner_id,
            order_id=payload.order_id,
            customer_email=payload.customer_email,
            order_value=payload.order_value,
            coupon_code=coupon.code if coupon else None,
            coupon_discount=discount,
        )

        if result.should_pay:
            await approve_commission(db, result.commission)

        await record_conversion_stats(
            db,
            partner_id,
            result.commission.order_value,
            result.commission.commission_amount,
        )

        await db.commit()
        await db.refresh(result.commission)
    except PartnerNotFoundError:
        await db.rollback()
        raise HTTPException(status_code=404, detail="Partner not found")
    except IntegrityError:
        # A concurrent delivery of the same order committed first
        await db.rollback()
        existing = await get_latest_commission_for_order(db, payload.order_id, partner_id=partner_id)
        if existing is None:
            logger.exception(f"Failed to process conversion {payload.order_id}")
            raise HTTPException(status_code=500, detail="Failed to process conversion")
        logger.info(f"Concurrent duplicate conversion {payload.order_id} for partner {partner_id}")
        return _duplicate_response(existing)
    except SQLAlchemyError:
        await db.rollback()
        logger.exception(f"Failed to process conversion {payload.order_id}")
        raise HTTPException(status_code=500, detail="Failed to process conversion")

    logger.info(
        f"Conversion recorded: order={payload.order_id}, partner={partner_id}, "
        f"commission={result.commission.commission_amount}, pay={result.should_pay}"
    )

    return _conversion_response(result.commission, result.should_pay, result.reason)


@router.post("/coupon-usage")
async def coupon_usage_webhook(
    payload: CouponUsageRequest,
    db: AsyncSession = Depends(get_db),
):
    """Apply consumed coupon value to the commission of an order."""
    try:
        commission = await apply_coupon_usage(db, payload.order_id, payload.amount)
        if commission is None:
            raise HTTPException(status_code=404, detail="Commission not found")

        await db.commit()
        await db.refresh(commission)
    except SQLAlchemyError:
        await db.rollback()
        logger.exception(f"Failed to apply coupon usage for order {payload.order_id}")
        raise HTTPException(status_code=500, detail="Failed to apply coupon usage")

    return CouponUsageResponse(
        commission=CommissionResponse.model_validate(commission),
    ).model_dump(mode="json", by_alias=True)
