from sqlalchemy import Column, Integer, String, ForeignKey, DateTime, Enum as SQLEnum
from sqlalchemy.sql import func
from sqlalchemy.orm import relationship
import enum

from ..core.database import Base

class DoctorStatus(str, enum.Enum):
    PENDING = "pending"
    APPROVED = "approved"
    REJECTED = "rejected"

class DoctorProfile(Base):
    __tablename__ = "doctor_profiles"

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(Integer, ForeignKey("users.id"), unique=True, nullable=False)

    # Display information
    full_name = Column(String(200), nullable=False)
    specialization = Column(String(100), nullable=False)
    experience = Column(String(50), nullable=True)
    fees = Column(Integer, nullable=True)
    timings = Column(String(100), nullable=True)

    # Contact information
    email = Column(String(255), nullable=False)
    phone = Column(String(20), nullable=False)
    address = Column(String(255), nullable=True)

    # Approval; rejected is terminal and kept for audit
    status = Column(SQLEnum(DoctorStatus), nullable=False, default=DoctorStatus.PENDING, index=True)

    # Timestamps
    created_at = Column(DateTime, server_default=func.now())
    updated_at = Column(DateTime, server_default=func.now(), onupdate=func.now())

    # Relationships
    user = relationship("User", back_populates="doctor_profile")
    appointments = relationship("Appointment", back_populates="doctor")

    def __repr__(self):
        return f"<DoctorProfile(id={self.id}, name='{self.full_name}', status='{self.status}')>"
