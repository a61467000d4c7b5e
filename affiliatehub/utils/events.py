"""
System event utilities.

Commission decisions are recorded here so operators can see why a
commission was blocked or approved.
"""

from typing import Any, Optional

from sqlalchemy.ext.asyncio import AsyncSession

from affiliatehub.models.system_event import EventSeverity, SystemEvent, SystemEventType


async def log_event(
    db: AsyncSession,
    event_type: SystemEventType,
    description: str,
    severity: EventSeverity = EventSeverity.INFO,
    target_type: Optional[str] = None,
    target_id: Optional[int] = None,
    event_metadata: Optional[dict[str, Any]] = None,
) -> SystemEvent:
    """
    Record a system event.

    Args:
        db: Database session
        event_type: Kind of event
        description: Human-readable summary
        severity: info, warning or error
        target_type: Type of entity affected (e.g., "commission")
        target_id: ID of the affected entity
        event_metadata: Additional JSON-serializable context

    Returns:
        Created SystemEvent
    """
    event = SystemEvent(
        event_type=event_type,
        severity=severity,
        description=description,
        target_type=target_type,
        target_id=target_id,
        event_metadata=event_metadata,
    )
    db.add(event)
    # Note: commit should happen in the calling context
    return event
