"""
Commission lifecycle.

For each conversion:
1. Load the partner (PartnerNotFoundError if missing)
2. Record the order in the customer history ledger, learning whether
   the customer was new before this order
3. Calculate the amount with the partner's current rate (snapshotted)
4. Set the validity window: now + partner.commission_period_months
5. Store a pending commission and run the rule chain
6. Block it (with reason) when a rule fails

Approval of payable commissions is left to the caller. The only other
route to approval is coupon usage catching up, see apply_coupon_usage.
"""

import logging
from dataclasses import dataclass
from datetime import datetime, timezone
from decimal import Decimal
from typing import Optional

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from affiliatehub.config import settings
from affiliatehub.models import (
    Commission,
    CommissionStatus,
    EventSeverity,
    Partner,
    SystemEventType,
)
from affiliatehub.services.commission import (
    ZERO,
    Number,
    add_months,
    calculate_commission_amount,
    to_money,
)
from affiliatehub.services.commission_rules import (
    CommissionSnapshot,
    PartnerPolicy,
    as_utc,
    evaluate_commission,
)
from affiliatehub.services.customer_history import normalize_email, record_customer_order
from affiliatehub.services.exceptions import PartnerNotFoundError
from affiliatehub.utils.events import log_event

logger = logging.getLogger(__name__)

# Statuses coupon progress may no longer change
FINAL_STATUSES = (CommissionStatus.PAID, CommissionStatus.REFUNDED)


@dataclass
class ProcessedCommission:
    """Result of processing one conversion."""
    commission: Commission
    should_pay: bool
    reason: Optional[str] = None


async def process_commission(
    db: AsyncSession,
    partner_id: int,
    order_id: str,
    customer_email: str,
    order_value: Number,
    coupon_code: Optional[str] = None,
    coupon_discount: Number = 0,
    now: Optional[datetime] = None,
) -> ProcessedCommission:
    """
    Create the commission for a conversion and decide if it is payable.

    Everything happens in the caller's session; nothing is committed here,
    so a failure at any step leaves no partial writes once the caller
    rolls back.

    Args:
        db: Database session
        partner_id: Referring partner
        order_id: External order id
        customer_email: Customer email
        order_value: Order total
        coupon_code: Coupon redeemed with the order, if any
        coupon_discount: Discount the coupon granted
        now: Processing time (defaults to current UTC time)

    Returns:
        ProcessedCommission with the stored commission, payability and
        the blocking reason (None when payable)

    Raises:
        PartnerNotFoundError: partner_id does not exist
    """
    now = now or datetime.now(timezone.utc)

    partner = await db.get(Partner, partner_id)
    if partner is None:
        raise PartnerNotFoundError(partner_id)

    policy = PartnerPolicy.from_partner(partner)
    email = normalize_email(customer_email)
    order_value = to_money(order_value)
    coupon_discount = to_money(coupon_discount or 0)
    coupon_code = coupon_code or None

    # Newness reflects the ledger before this order, read under the row lock
    history, is_new_customer = await record_customer_order(
        db,
        customer_email=email,
        order_date=now,
        order_id=order_id,
        partner_id=partner.id,
        order_value=order_value,
    )

    amount = calculate_commission_amount(
        order_value,
        partner.commission_rate,
        partner.commission_type,
    )
    period_months = policy.commission_period_months or settings.default_commission_period_months

    commission = Commission(
        partner_id=partner.id,
        order_id=order_id,
        customer_email=email,
        order_value=order_value,
        commission_amount=amount,
        commission_rate=Decimal(partner.commission_rate),
        commission_type=partner.commission_type,
        coupon_code=coupon_code,
        coupon_discount=coupon_discount,
        # Usage starts at zero and has to reach the discount granted
        coupon_value_used=ZERO,
        coupon_value_required=coupon_discount if coupon_code else ZERO,
        status=CommissionStatus.PENDING,
        is_new_customer=is_new_customer,
        customer_first_order_date=as_utc(history.first_order_date),
        commission_valid_until=add_months(now, period_months),
    )
    db.add(commission)
    await db.flush()

    decision = evaluate_commission(
        policy,
        CommissionSnapshot.from_commission(commission),
        is_new_customer,
        now=now,
    )

    if decision.payable:
        logger.info(
            f"Commission {commission.id} for order {order_id} is payable: "
            f"partner={partner.id}, amount={amount}"
        )
        await log_event(
            db,
            SystemEventType.COMMISSION_PROCESSED,
            f"Commission for order {order_id} processed",
            target_type="commission",
            target_id=commission.id,
            event_metadata={"partner_id": partner.id, "amount": str(amount)},
        )
    else:
        commission.status = CommissionStatus.BLOCKED
        commission.status_reason = decision.reason
        await db.flush()

        logger.warning(
            f"Commission {commission.id} for order {order_id} blocked: {decision.reason}"
        )
        await log_event(
            db,
            SystemEventType.COMMISSION_BLOCKED,
            decision.reason,
            severity=EventSeverity.WARNING,
            target_type="commission",
            target_id=commission.id,
            event_metadata={"partner_id": partner.id, "amount": str(amount)},
        )

    return ProcessedCommission(
        commission=commission,
        should_pay=decision.payable,
        reason=decision.reason,
    )


async def approve_commission(db: AsyncSession, commission: Commission) -> Commission:
    """Mark a payable commission approved."""
    commission.status = CommissionStatus.APPROVED
    commission.status_reason = None
    await db.flush()

    await log_event(
        db,
        SystemEventType.COMMISSION_APPROVED,
        f"Commission for order {commission.order_id} approved",
        target_type="commission",
        target_id=commission.id,
    )
    return commission


async def get_latest_commission_for_order(
    db: AsyncSession,
    order_id: str,
    partner_id: Optional[int] = None,
    for_update: bool = False,
) -> Optional[Commission]:
    """Most recently created commission for an order id."""
    query = select(Commission).where(Commission.order_id == order_id)
    if partner_id is not None:
        query = query.where(Commission.partner_id == partner_id)
    if for_update:
        query = query.with_for_update()

    result = await db.execute(query.order_by(Commission.id.desc()).limit(1))
    return result.scalar_one_or_none()


async def apply_coupon_usage(
    db: AsyncSession,
    order_id: str,
    additional_amount: Number,
    now: Optional[datetime] = None,
) -> Optional[Commission]:
    """
    Add coupon redemption progress to the commission of an order.

    Once usage reaches the required value on a partner that requires
    coupon usage, the whole rule chain runs again with the commission's
    snapshotted newness: the commission becomes approved if every rule
    passes, otherwise it stays blocked with the current reason (e.g. the
    commission period ran out while the coupon was being used).

    Args:
        db: Database session
        order_id: External order id
        additional_amount: Newly used coupon value
        now: Evaluation time (defaults to current UTC time)

    Returns:
        The updated commission, or None if the order has no commission
    """
    commission = await get_latest_commission_for_order(db, order_id, for_update=True)
    if commission is None:
        logger.warning(f"Coupon usage for unknown order {order_id}")
        return None

    added = to_money(additional_amount)
    commission.coupon_value_used = to_money(Decimal(commission.coupon_value_used) + added)
    await db.flush()

    await log_event(
        db,
        SystemEventType.COUPON_USAGE_APPLIED,
        f"Coupon usage of {added} applied to order {order_id}",
        target_type="commission",
        target_id=commission.id,
        event_metadata={
            "used": str(commission.coupon_value_used),
            "required": str(commission.coupon_value_required),
        },
    )

    partner = await db.get(Partner, commission.partner_id)
    if partner is None or not partner.require_coupon_usage:
        return commission

    if commission.coupon_value_used < Decimal(commission.coupon_value_required):
        logger.debug(
            f"Order {order_id} coupon usage {commission.coupon_value_used}"
            f"/{commission.coupon_value_required}"
        )
        return commission

    if commission.status in FINAL_STATUSES or commission.status == CommissionStatus.APPROVED:
        return commission

    decision = evaluate_commission(
        PartnerPolicy.from_partner(partner),
        CommissionSnapshot.from_commission(commission),
        commission.is_new_customer,
        now=now,
    )

    if decision.payable:
        logger.info(f"Coupon fully used, commission {commission.id} for order {order_id} approved")
        return await approve_commission(db, commission)

    commission.status = CommissionStatus.BLOCKED
    commission.status_reason = decision.reason
    await db.flush()

    logger.warning(
        f"Coupon fully used but commission {commission.id} still blocked: {decision.reason}"
    )
    return commission
