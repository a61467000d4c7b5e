"""
Database models for affiliatehub.

All models are exported here for convenient imports:
    from affiliatehub.models import Partner, Commission, CustomerHistory, etc.
"""

from affiliatehub.models.base import Base, TimestampMixin
from affiliatehub.models.click import Click
from affiliatehub.models.commission import Commission, CommissionStatus
from affiliatehub.models.coupon import Coupon, CouponStatus, DiscountType
from affiliatehub.models.customer_history import CustomerHistory
from affiliatehub.models.partner import CommissionType, Partner, PartnerStatus
from affiliatehub.models.system_event import EventSeverity, SystemEvent, SystemEventType

__all__ = [
    # Base
    "Base",
    "TimestampMixin",
    # Partner
    "Partner",
    "PartnerStatus",
    "CommissionType",
    # Commission
    "Commission",
    "CommissionStatus",
    # Coupon
    "Coupon",
    "CouponStatus",
    "DiscountType",
    # Customers
    "CustomerHistory",
    # Tracking
    "Click",
    # Events
    "SystemEvent",
    "SystemEventType",
    "EventSeverity",
]
