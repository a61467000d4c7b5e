"""
Commission schemas.
"""

from datetime import datetime
from decimal import Decimal
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field

from affiliatehub.models.commission import CommissionStatus
from affiliatehub.models.partner import CommissionType


class CommissionResponse(BaseModel):
    """A stored commission as returned by the webhooks."""

    model_config = ConfigDict(from_attributes=True)

    id: int
    partner_id: int = Field(serialization_alias="partnerId")
    order_id: str = Field(serialization_alias="orderId")
    customer_email: str = Field(serialization_alias="customerEmail")

    order_value: Decimal = Field(serialization_alias="orderValue")
    commission_amount: Decimal = Field(serialization_alias="commissionAmount")
    commission_rate: Decimal = Field(serialization_alias="commissionRate")
    commission_type: CommissionType = Field(serialization_alias="commissionType")

    coupon_code: Optional[str] = Field(None, serialization_alias="couponCode")
    coupon_discount: Decimal = Field(serialization_alias="couponDiscount")
    coupon_value_used: Decimal = Field(serialization_alias="couponValueUsed")
    coupon_value_required: Decimal = Field(serialization_alias="couponValueRequired")

    status: CommissionStatus
    status_reason: Optional[str] = Field(None, serialization_alias="statusReason")

    is_new_customer: bool = Field(serialization_alias="isNewCustomer")
    customer_first_order_date: Optional[datetime] = Field(
        None, serialization_alias="customerFirstOrderDate"
    )
    commission_valid_until: Optional[datetime] = Field(
        None, serialization_alias="commissionValidUntil"
    )
    created_at: Optional[datetime] = Field(None, serialization_alias="createdAt")
