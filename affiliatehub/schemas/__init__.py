"""Pydantic schemas for request/response validation."""

from affiliatehub.schemas.commission import CommissionResponse
from affiliatehub.schemas.webhook import (
    ConversionWebhookRequest,
    ConversionWebhookResponse,
    CouponUsageRequest,
    CouponUsageResponse,
)

__all__ = [
    "CommissionResponse",
    "ConversionWebhookRequest",
    "ConversionWebhookResponse",
    "CouponUsageRequest",
    "CouponUsageResponse",
]
