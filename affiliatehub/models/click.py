"""
Click model for referral link tracking.
"""

from datetime import datetime
from typing import TYPE_CHECKING, Optional

from sqlalchemy import DateTime, ForeignKey, String, func
from sqlalchemy.orm import Mapped, mapped_column, relationship

from affiliatehub.models.base import Base

if TYPE_CHECKING:
    from affiliatehub.models.partner import Partner


class Click(Base):
    """A single visit through a partner's referral link."""

    __tablename__ = "clicks"

    id: Mapped[int] = mapped_column(primary_key=True)
    partner_id: Mapped[int] = mapped_column(
        ForeignKey("partners.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    ip_address: Mapped[Optional[str]] = mapped_column(
        String(45),
        nullable=True,
        comment="IPv4 or IPv6 address",
    )
    user_agent: Mapped[Optional[str]] = mapped_column(
        String(500),
        nullable=True,
    )
    referrer: Mapped[Optional[str]] = mapped_column(
        String(1000),
        nullable=True,
    )
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        server_default=func.now(),
        nullable=False,
        index=True,
    )

    # Relationships
    partner: Mapped["Partner"] = relationship(
        "Partner",
        back_populates="clicks",
    )

    def __repr__(self) -> str:
        return f"<Click(id={self.id}, partner_id={self.partner_id})>"
