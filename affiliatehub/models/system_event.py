"""
SystemEvent model: operator-facing trail of commission decisions.
"""

from datetime import datetime
from enum import Enum
from typing import Optional

from sqlalchemy import JSON, DateTime, Integer, String, Text, func
from sqlalchemy import Enum as SQLAlchemyEnum
from sqlalchemy.orm import Mapped, mapped_column

from affiliatehub.models.base import Base


class SystemEventType(str, Enum):
    """Kinds of recorded events."""
    COMMISSION_PROCESSED = "commission_processed"
    COMMISSION_BLOCKED = "commission_blocked"
    COMMISSION_APPROVED = "commission_approved"
    COUPON_USAGE_APPLIED = "coupon_usage_applied"


class EventSeverity(str, Enum):
    """Severity shown next to an event."""
    INFO = "info"
    WARNING = "warning"
    ERROR = "error"


class SystemEvent(Base):
    """
    Append-only record of commission processing outcomes.

    Blocked commissions carry their rule reason here as well as on the
    commission row, so the decision survives later status changes.
    """

    __tablename__ = "system_events"

    id: Mapped[int] = mapped_column(primary_key=True)
    event_type: Mapped[SystemEventType] = mapped_column(
        SQLAlchemyEnum(
            SystemEventType,
            values_callable=lambda x: [e.value for e in x],
        ),
        nullable=False,
        index=True,
    )
    severity: Mapped[EventSeverity] = mapped_column(
        SQLAlchemyEnum(
            EventSeverity,
            values_callable=lambda x: [e.value for e in x],
        ),
        default=EventSeverity.INFO,
        nullable=False,
    )
    description: Mapped[str] = mapped_column(
        Text,
        nullable=False,
    )
    target_type: Mapped[Optional[str]] = mapped_column(
        String(50),
        nullable=True,
        comment="Type of entity affected (commission, partner, coupon)",
    )
    target_id: Mapped[Optional[int]] = mapped_column(
        Integer,
        nullable=True,
        comment="ID of the affected entity",
    )
    event_metadata: Mapped[Optional[dict]] = mapped_column(
        JSON,
        nullable=True,
        comment="Additional context about the event",
    )
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        server_default=func.now(),
        nullable=False,
        index=True,
    )

    def __repr__(self) -> str:
        return f"<SystemEvent(id={self.id}, event_type={self.event_type})>"
