from .user import User
from .doctor import DoctorProfile, DoctorStatus
from .appointment import Appointment, AppointmentStatus

__all__ = ["User", "DoctorProfile", "DoctorStatus", "Appointment", "AppointmentStatus"]
