from pydantic import BaseModel, Field
from typing import Any, Dict, Optional
from datetime import datetime

from ..models.appointment import AppointmentStatus


class AppointmentDocument(BaseModel):
    filename: str
    path: str


class StatusUpdate(BaseModel):
    user_id: int = Field(..., alias="userId")
    appointment_id: int = Field(..., alias="appointmentId")
    status: str

    class Config:
        populate_by_name = True


class AppointmentResponse(BaseModel):
    id: int
    user_id: int
    doctor_id: int
    user_info: Dict[str, Any]
    doctor_info: Dict[str, Any]
    date: str
    document: Optional[AppointmentDocument] = None
    status: AppointmentStatus
    created_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class PatientAppointmentResponse(AppointmentResponse):
    # Resolved from the doctor's current profile, not the booking snapshot
    doc_name: str = ""
