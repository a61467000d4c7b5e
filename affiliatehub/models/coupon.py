"""
Coupon model for partner-scoped discount codes.
"""

from datetime import datetime
from decimal import Decimal
from enum import Enum
from typing import TYPE_CHECKING, Optional

from sqlalchemy import DateTime, ForeignKey, Integer, Numeric, String
from sqlalchemy import Enum as SQLAlchemyEnum
from sqlalchemy.orm import Mapped, mapped_column, relationship

from affiliatehub.models.base import Base, TimestampMixin

if TYPE_CHECKING:
    from affiliatehub.models.partner import Partner


class CouponStatus(str, Enum):
    """Availability of a coupon."""
    ACTIVE = "active"
    INACTIVE = "inactive"
    EXPIRED = "expired"


class DiscountType(str, Enum):
    """How discount_value is applied to an order."""
    PERCENTAGE = "percentage"
    FIXED = "fixed"


class Coupon(Base, TimestampMixin):
    """A discount code owned by one partner."""

    __tablename__ = "coupons"

    id: Mapped[int] = mapped_column(primary_key=True)
    code: Mapped[str] = mapped_column(
        String(64),
        unique=True,
        index=True,
        nullable=False,
    )
    partner_id: Mapped[int] = mapped_column(
        ForeignKey("partners.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    discount_type: Mapped[DiscountType] = mapped_column(
        SQLAlchemyEnum(
            DiscountType,
            values_callable=lambda x: [e.value for e in x],
        ),
        nullable=False,
    )
    discount_value: Mapped[Decimal] = mapped_column(
        Numeric(12, 2),
        nullable=False,
    )
    usage_limit: Mapped[Optional[int]] = mapped_column(
        Integer,
        nullable=True,
        comment="Max redemptions, NULL for unlimited",
    )
    usage_count: Mapped[int] = mapped_column(
        Integer,
        default=0,
        server_default="0",
        nullable=False,
    )
    status: Mapped[CouponStatus] = mapped_column(
        SQLAlchemyEnum(
            CouponStatus,
            values_callable=lambda x: [e.value for e in x],
        ),
        default=CouponStatus.ACTIVE,
        nullable=False,
    )
    expires_at: Mapped[Optional[datetime]] = mapped_column(
        DateTime(timezone=True),
        nullable=True,
    )

    # Relationships
    partner: Mapped["Partner"] = relationship(
        "Partner",
        back_populates="coupons",
    )

    def __repr__(self) -> str:
        return f"<Coupon(id={self.id}, code='{self.code}', partner_id={self.partner_id})>"
