"""
Partner model: a referring affiliate and its commission policy.
"""

from decimal import Decimal
from enum import Enum
from typing import TYPE_CHECKING, List, Optional

from sqlalchemy import Boolean, Integer, Numeric, String
from sqlalchemy import Enum as SQLAlchemyEnum
from sqlalchemy.orm import Mapped, mapped_column, relationship

from affiliatehub.models.base import Base, TimestampMixin

if TYPE_CHECKING:
    from affiliatehub.models.click import Click
    from affiliatehub.models.commission import Commission
    from affiliatehub.models.coupon import Coupon


class PartnerStatus(str, Enum):
    """Approval state of a partner."""
    ACTIVE = "active"      # Admin-created or approved, earns commissions
    PENDING = "pending"    # Self-registered, waiting for approval
    INACTIVE = "inactive"  # Disabled by admin


class CommissionType(str, Enum):
    """How a partner's commission_rate is interpreted."""
    PERCENTAGE = "percentage"  # rate is a percent of order value
    FIXED = "fixed"            # rate is a flat amount per conversion


class Partner(Base, TimestampMixin):
    """
    A referring affiliate.

    The three policy fields (new_customers_only, commission_period_months,
    require_coupon_usage) parameterize the commission rule chain.
    Aggregate counters are only ever changed with atomic UPDATEs,
    see services.partners.
    """

    __tablename__ = "partners"

    id: Mapped[int] = mapped_column(primary_key=True)
    name: Mapped[str] = mapped_column(
        String(255),
        nullable=False,
    )
    email: Mapped[str] = mapped_column(
        String(255),
        unique=True,
        index=True,
        nullable=False,
    )
    company_name: Mapped[Optional[str]] = mapped_column(
        String(255),
        nullable=True,
    )
    website: Mapped[Optional[str]] = mapped_column(
        String(500),
        nullable=True,
    )
    status: Mapped[PartnerStatus] = mapped_column(
        SQLAlchemyEnum(
            PartnerStatus,
            values_callable=lambda x: [e.value for e in x],
        ),
        default=PartnerStatus.ACTIVE,
        nullable=False,
        index=True,
    )

    # Commission configuration
    commission_rate: Mapped[Decimal] = mapped_column(
        Numeric(10, 2),
        nullable=False,
        comment="Percent of order value, or flat amount for fixed partners",
    )
    commission_type: Mapped[CommissionType] = mapped_column(
        SQLAlchemyEnum(
            CommissionType,
            values_callable=lambda x: [e.value for e in x],
        ),
        default=CommissionType.PERCENTAGE,
        nullable=False,
    )
    referral_code: Mapped[str] = mapped_column(
        String(64),
        unique=True,
        index=True,
        nullable=False,
    )

    # Commission policy
    new_customers_only: Mapped[bool] = mapped_column(
        Boolean,
        default=False,
        server_default="false",
        nullable=False,
    )
    commission_period_months: Mapped[int] = mapped_column(
        Integer,
        default=12,
        server_default="12",
        nullable=False,
    )
    require_coupon_usage: Mapped[bool] = mapped_column(
        Boolean,
        default=False,
        server_default="false",
        nullable=False,
    )

    # Aggregates
    click_count: Mapped[int] = mapped_column(
        Integer,
        default=0,
        server_default="0",
        nullable=False,
    )
    conversion_count: Mapped[int] = mapped_column(
        Integer,
        default=0,
        server_default="0",
        nullable=False,
    )
    total_revenue: Mapped[Decimal] = mapped_column(
        Numeric(12, 2),
        default=Decimal("0"),
        server_default="0",
        nullable=False,
    )
    total_commissions: Mapped[Decimal] = mapped_column(
        Numeric(12, 2),
        default=Decimal("0"),
        server_default="0",
        nullable=False,
    )

    # Relationships (hard delete removes dependents at the database level)
    commissions: Mapped[List["Commission"]] = relationship(
        "Commission",
        back_populates="partner",
        cascade="all, delete-orphan",
        passive_deletes=True,
    )
    coupons: Mapped[List["Coupon"]] = relationship(
        "Coupon",
        back_populates="partner",
        cascade="all, delete-orphan",
        passive_deletes=True,
    )
    clicks: Mapped[List["Click"]] = relationship(
        "Click",
        back_populates="partner",
        cascade="all, delete-orphan",
        passive_deletes=True,
    )

    @property
    def is_active(self) -> bool:
        return self.status == PartnerStatus.ACTIVE

    def __repr__(self) -> str:
        return f"<Partner(id={self.id}, referral_code='{self.referral_code}', status={self.status})>"
