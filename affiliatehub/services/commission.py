"""
Commission amount calculation.

Rules:
- percentage partner: order_value * rate / 100
- fixed partner: the rate itself, whatever the order value
- all money is Decimal, rounded half-up to cents
"""

from datetime import datetime
from decimal import ROUND_HALF_UP, Decimal
from typing import Union

from dateutil.relativedelta import relativedelta

from affiliatehub.models.coupon import DiscountType
from affiliatehub.models.partner import CommissionType

CENT = Decimal("0.01")
ZERO = Decimal("0.00")

Number = Union[Decimal, int, float, str]


def to_money(value: Number) -> Decimal:
    """Convert a numeric value to a cent-rounded Decimal.

    Floats go through str() so 19.99 stays 19.99 instead of its binary
    approximation.
    """
    if isinstance(value, float):
        value = str(value)
    return Decimal(value).quantize(CENT, rounding=ROUND_HALF_UP)


def calculate_commission_amount(
    order_value: Number,
    rate: Number,
    commission_type: Union[CommissionType, str],
) -> Decimal:
    """Calculate the commission owed for an order.

    The partner's rate is read at call time; callers snapshot it onto
    the commission so later rate changes don't alter this result.

    Args:
        order_value: Order total
        rate: Partner commission_rate (percent, or flat amount)
        commission_type: "percentage" or "fixed"

    Returns:
        Commission amount rounded to cents

    Raises:
        ValueError: commission_type is not a known type
    """
    commission_type = CommissionType(commission_type)
    rate = Decimal(str(rate)) if isinstance(rate, float) else Decimal(rate)

    if commission_type == CommissionType.PERCENTAGE:
        order_value = Decimal(str(order_value)) if isinstance(order_value, float) else Decimal(order_value)
        return to_money(order_value * rate / Decimal("100"))

    return to_money(rate)


def calculate_coupon_discount(
    order_value: Number,
    discount_type: Union[DiscountType, str],
    discount_value: Number,
) -> Decimal:
    """Discount a coupon grants on an order, never more than the order itself."""
    discount_type = DiscountType(discount_type)
    order_value = to_money(order_value)

    if discount_type == DiscountType.PERCENTAGE:
        discount = to_money(order_value * to_money(discount_value) / Decimal("100"))
    else:
        discount = to_money(discount_value)

    return min(discount, order_value)


def add_months(moment: datetime, months: int) -> datetime:
    """Shift a datetime by calendar months (Jan 31 + 1 month = Feb 28/29)."""
    return moment + relativedelta(months=months)
