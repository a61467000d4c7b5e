"""
CustomerHistory model: one row per customer email across all partners.
"""

from datetime import datetime
from decimal import Decimal
from typing import Optional

from sqlalchemy import DateTime, ForeignKey, Integer, Numeric, String
from sqlalchemy.orm import Mapped, mapped_column

from affiliatehub.models.base import Base, TimestampMixin


class CustomerHistory(Base, TimestampMixin):
    """
    Order history of a customer, keyed by email.

    A row existing for an email means that customer is no longer new.
    The unique constraint on customer_email is what serializes two
    concurrent first orders for the same customer.
    """

    __tablename__ = "customer_history"

    id: Mapped[int] = mapped_column(primary_key=True)
    customer_email: Mapped[str] = mapped_column(
        String(255),
        unique=True,
        index=True,
        nullable=False,
    )
    first_order_date: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
    )
    first_order_id: Mapped[str] = mapped_column(
        String(255),
        nullable=False,
    )
    first_partner_id: Mapped[Optional[int]] = mapped_column(
        ForeignKey("partners.id", ondelete="SET NULL"),
        nullable=True,
    )
    total_orders: Mapped[int] = mapped_column(
        Integer,
        default=1,
        nullable=False,
    )
    total_spent: Mapped[Decimal] = mapped_column(
        Numeric(14, 2),
        default=Decimal("0"),
        nullable=False,
    )
    last_order_date: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
    )

    def __repr__(self) -> str:
        return f"<CustomerHistory(id={self.id}, customer_email='{self.customer_email}', total_orders={self.total_orders})>"
