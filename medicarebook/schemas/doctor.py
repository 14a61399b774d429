from pydantic import BaseModel, EmailStr, Field
from typing import Optional
from datetime import datetime

from ..models.doctor import DoctorStatus


class DoctorProfileFields(BaseModel):
    full_name: str = Field(..., min_length=1, max_length=200, alias="fullName")
    email: EmailStr
    phone: str = Field(..., min_length=1, max_length=20)
    address: Optional[str] = Field(None, max_length=255)
    specialization: str = Field(..., min_length=1, max_length=100)
    experience: Optional[str] = Field(None, max_length=50)
    fees: Optional[int] = Field(None, ge=0)
    timings: Optional[str] = Field(None, max_length=100)

    class Config:
        populate_by_name = True


class DoctorApplication(BaseModel):
    user_id: int = Field(..., alias="userId")
    doctor: DoctorProfileFields

    class Config:
        populate_by_name = True


class DoctorReview(BaseModel):
    doctor_id: int = Field(..., alias="doctorId")
    status: DoctorStatus

    class Config:
        populate_by_name = True


class DoctorProfileResponse(BaseModel):
    id: int
    user_id: int
    full_name: str
    email: str
    phone: str
    address: Optional[str] = None
    specialization: str
    experience: Optional[str] = None
    fees: Optional[int] = None
    timings: Optional[str] = None
    status: DoctorStatus
    created_at: Optional[datetime] = None

    class Config:
        from_attributes = True
