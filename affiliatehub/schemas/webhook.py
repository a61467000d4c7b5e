"""
Webhook request/response schemas.

Webhook senders post camelCase JSON; snake_case field names are accepted
as well.
"""

from decimal import Decimal
from typing import Optional

from pydantic import BaseModel, ConfigDict, EmailStr, Field, field_validator

from affiliatehub.schemas.commission import CommissionResponse


class ConversionWebhookRequest(BaseModel):
    """A completed order attributed to a partner."""

    model_config = ConfigDict(populate_by_name=True, str_strip_whitespace=True)

    order_id: str = Field(..., alias="orderId", min_length=1, max_length=255)
    customer_email: EmailStr = Field(..., alias="customerEmail")
    order_value: Decimal = Field(..., alias="orderValue", gt=0, max_digits=12, decimal_places=2)
    referral_code: str = Field(..., alias="referralCode", min_length=1, max_length=64)
    coupon_code: Optional[str] = Field(None, alias="couponCode", max_length=64)

    @field_validator("coupon_code")
    @classmethod
    def empty_coupon_is_none(cls, v: Optional[str]) -> Optional[str]:
        return v or None


class ConversionWebhookResponse(BaseModel):
    """Outcome of a processed conversion."""

    success: bool = True
    commission: CommissionResponse
    should_pay: bool = Field(serialization_alias="shouldPay")
    reason: Optional[str] = None
    duplicate: bool = False


class CouponUsageRequest(BaseModel):
    """Coupon value consumed by the customer of an order."""

    model_config = ConfigDict(populate_by_name=True, str_strip_whitespace=True)

    order_id: str = Field(..., alias="orderId", min_length=1, max_length=255)
    amount: Decimal = Field(..., gt=0, max_digits=12, decimal_places=2)


class CouponUsageResponse(BaseModel):
    """Commission state after applying coupon usage."""

    success: bool = True
    commission: CommissionResponse
