from enum import Enum
from typing import Any, Dict, List, Optional
from pydantic import BaseModel, Field


class NotificationType(str, Enum):
    DOCTOR_APPLICATION = "doctor-application"
    NEW_APPOINTMENT = "new-appointment"
    APPOINTMENT_STATUS_UPDATED = "appointment-status-updated"
    DOCTOR_APPLICATION_REVIEWED = "doctor-application-reviewed"


class NotificationEvent(BaseModel):
    """A mailbox entry. Position in the mailbox is its only timestamp."""
    type: NotificationType
    message: str
    data: Optional[Dict[str, Any]] = None


class MailboxResponse(BaseModel):
    notifications: List[NotificationEvent] = []
    seen_notifications: List[NotificationEvent] = []


class MailboxRequest(BaseModel):
    user_id: int = Field(..., alias="userId")

    class Config:
        populate_by_name = True
