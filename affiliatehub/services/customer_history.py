"""
Customer history ledger.

One row per customer email, shared by all partners. It answers
"is this a new customer" and keeps running order totals.
"""

import logging
from datetime import datetime
from decimal import Decimal
from typing import Optional, Tuple

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from affiliatehub.models import CustomerHistory
from affiliatehub.services.commission import Number, to_money

logger = logging.getLogger(__name__)


def normalize_email(email: str) -> str:
    return email.strip().lower()


async def get_customer_history(
    db: AsyncSession,
    customer_email: str,
    for_update: bool = False,
) -> Optional[CustomerHistory]:
    """Fetch the history row for an email, optionally row-locked."""
    query = select(CustomerHistory).where(
        CustomerHistory.customer_email == normalize_email(customer_email)
    )
    if for_update:
        query = query.with_for_update()

    result = await db.execute(query.limit(1))
    return result.scalar_one_or_none()


async def is_new_customer(db: AsyncSession, customer_email: str) -> bool:
    """True if no order has ever been recorded for this email."""
    return await get_customer_history(db, customer_email) is None


async def record_customer_order(
    db: AsyncSession,
    customer_email: str,
    order_date: datetime,
    order_id: str,
    partner_id: int,
    order_value: Number,
) -> Tuple[CustomerHistory, bool]:
    """
    Create or update the history row for a customer's order.

    Call exactly once per conversion, otherwise totals are double counted.

    Concurrency:
    The existing row is read with SELECT ... FOR UPDATE. A missing row is
    inserted inside a SAVEPOINT; if a concurrent first order for the same
    email wins the insert, the unique constraint on customer_email rejects
    ours and we fall through to updating the winner's row.

    Args:
        db: Database session
        customer_email: Customer email (normalized before use)
        order_date: When the order happened
        order_id: External order id
        partner_id: Referring partner
        order_value: Order total

    Returns:
        (history, created). created is True when no order had been
        recorded for the email before this one, i.e. a new customer.
    """
    email = normalize_email(customer_email)
    amount = to_money(order_value)

    history = await get_customer_history(db, email, for_update=True)

    if history is None:
        history = CustomerHistory(
            customer_email=email,
            first_order_date=order_date,
            first_order_id=order_id,
            first_partner_id=partner_id,
            total_orders=1,
            total_spent=amount,
            last_order_date=order_date,
        )
        try:
            async with db.begin_nested():
                db.add(history)
                await db.flush()
        except IntegrityError:
            logger.info(f"Concurrent first order for {email}, updating existing history")
            history = await get_customer_history(db, email, for_update=True)
            if history is None:
                raise
        else:
            logger.debug(f"Customer history created for {email} (order {order_id})")
            return history, True

    history.total_orders = history.total_orders + 1
    history.total_spent = Decimal(history.total_spent) + amount
    history.last_order_date = order_date
    await db.flush()

    logger.debug(f"Customer history updated for {email}: {history.total_orders} orders")
    return history, False
