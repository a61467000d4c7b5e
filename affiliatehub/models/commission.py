"""
Commission model: the credit owed to a partner for one conversion.
"""

from datetime import datetime
from decimal import Decimal
from enum import Enum
from typing import TYPE_CHECKING, Optional

from sqlalchemy import Boolean, DateTime, ForeignKey, Numeric, String, UniqueConstraint
from sqlalchemy import Enum as SQLAlchemyEnum
from sqlalchemy.orm import Mapped, mapped_column, relationship

from affiliatehub.models.base import Base, TimestampMixin
from affiliatehub.models.partner import CommissionType

if TYPE_CHECKING:
    from affiliatehub.models.partner import Partner


class CommissionStatus(str, Enum):
    """Payment state of a commission."""
    PENDING = "pending"      # Created, not yet confirmed payable
    APPROVED = "approved"    # Payable
    PAID = "paid"            # Included in a payout
    REFUNDED = "refunded"    # Order refunded, nothing owed
    BLOCKED = "blocked"      # A commission rule failed, see status_reason


class Commission(Base, TimestampMixin):
    """
    One commission per conversion event.

    commission_rate, commission_type and is_new_customer are snapshots
    taken when the commission is created. Later partner edits must never
    rewrite them.
    """

    __tablename__ = "commissions"
    __table_args__ = (
        # One commission per order and partner, even under concurrent deliveries
        UniqueConstraint("partner_id", "order_id", name="uq_commissions_partner_order"),
    )

    id: Mapped[int] = mapped_column(primary_key=True)
    partner_id: Mapped[int] = mapped_column(
        ForeignKey("partners.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    order_id: Mapped[str] = mapped_column(
        String(255),
        nullable=False,
        index=True,
    )
    customer_email: Mapped[str] = mapped_column(
        String(255),
        nullable=False,
        index=True,
    )

    # Money
    order_value: Mapped[Decimal] = mapped_column(
        Numeric(12, 2),
        nullable=False,
    )
    commission_amount: Mapped[Decimal] = mapped_column(
        Numeric(12, 2),
        nullable=False,
    )
    commission_rate: Mapped[Decimal] = mapped_column(
        Numeric(10, 2),
        nullable=False,
        comment="Partner rate at calculation time",
    )
    commission_type: Mapped[CommissionType] = mapped_column(
        SQLAlchemyEnum(
            CommissionType,
            values_callable=lambda x: [e.value for e in x],
        ),
        nullable=False,
        comment="Partner commission type at calculation time",
    )

    # Coupon
    coupon_code: Mapped[Optional[str]] = mapped_column(
        String(64),
        nullable=True,
    )
    coupon_discount: Mapped[Decimal] = mapped_column(
        Numeric(12, 2),
        default=Decimal("0"),
        server_default="0",
        nullable=False,
    )
    coupon_value_used: Mapped[Decimal] = mapped_column(
        Numeric(12, 2),
        default=Decimal("0"),
        server_default="0",
        nullable=False,
    )
    coupon_value_required: Mapped[Decimal] = mapped_column(
        Numeric(12, 2),
        default=Decimal("0"),
        server_default="0",
        nullable=False,
    )

    # Status
    status: Mapped[CommissionStatus] = mapped_column(
        SQLAlchemyEnum(
            CommissionStatus,
            values_callable=lambda x: [e.value for e in x],
        ),
        default=CommissionStatus.PENDING,
        nullable=False,
        index=True,
    )
    status_reason: Mapped[Optional[str]] = mapped_column(
        String(255),
        nullable=True,
        comment="Why the commission is blocked",
    )

    # Eligibility snapshot
    is_new_customer: Mapped[bool] = mapped_column(
        Boolean,
        default=True,
        nullable=False,
    )
    customer_first_order_date: Mapped[Optional[datetime]] = mapped_column(
        DateTime(timezone=True),
        nullable=True,
    )
    commission_valid_until: Mapped[Optional[datetime]] = mapped_column(
        DateTime(timezone=True),
        nullable=True,
    )

    # Relationships
    partner: Mapped["Partner"] = relationship(
        "Partner",
        back_populates="commissions",
    )

    def __repr__(self) -> str:
        return f"<Commission(id={self.id}, order_id='{self.order_id}', status={self.status})>"
