"""
Appointment workflow: booking, status changes, listings and document access.

Bookings carry snapshots of the patient and doctor details as submitted by
the client. The patient listing additionally resolves the doctor's current
display name, so that one field follows later profile edits while the
snapshots keep what was true at booking time.

Bookings are not checked for overlapping dates.
"""
import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Any, BinaryIO, Dict, List, Optional, Tuple

from sqlalchemy.orm import Session

from ..core.exceptions import (
    DeliveryPartialFailure, NotFoundError, PersistenceError, ValidationError
)
from ..models.appointment import Appointment, AppointmentStatus
from ..models.doctor import DoctorProfile
from ..models.user import User
from ..schemas.appointment import AppointmentResponse, PatientAppointmentResponse
from ..schemas.notification import NotificationEvent, NotificationType
from .base import BaseService, ServiceResult
from .file_storage import LocalFileStorage, get_file_storage
from .mailbox import Mailbox

logger = logging.getLogger(__name__)


@dataclass
class DocumentUpload:
    filename: str
    content: BinaryIO


class AppointmentService(BaseService):
    def __init__(
        self,
        db: Session,
        mailbox: Optional[Mailbox] = None,
        storage: Optional[LocalFileStorage] = None
    ):
        super().__init__(db)
        self.mailbox = mailbox or Mailbox(db)
        self.storage = storage or get_file_storage()

    def book(
        self,
        patient_id: int,
        patient_info: Dict[str, Any],
        doctor_id: int,
        doctor_info: Dict[str, Any],
        date: str,
        document: Optional[DocumentUpload] = None
    ) -> ServiceResult:
        """Record a pending appointment and notify the doctor.

        The appointment is kept even when the notification cannot be
        delivered; the result then carries a warning.
        """
        if not patient_id or not doctor_id:
            raise ValidationError("userId and doctorId are required")
        if not isinstance(patient_info, dict) or not patient_info:
            raise ValidationError("userInfo is required")
        if not isinstance(doctor_info, dict) or not doctor_info:
            raise ValidationError("doctorInfo is required")
        if not date or not str(date).strip():
            raise ValidationError("date is required")

        patient = self.db.query(User).filter(User.id == patient_id).first()
        if not patient:
            raise NotFoundError("User not found")

        doctor = self.db.query(DoctorProfile).filter(DoctorProfile.id == doctor_id).first()
        if not doctor:
            raise NotFoundError("Doctor not found")

        appointment = Appointment(
            user_id=patient_id,
            doctor_id=doctor_id,
            user_info=patient_info,
            doctor_info=doctor_info,
            date=str(date).strip(),
            status=AppointmentStatus.PENDING,
        )

        stored = None
        if document is not None:
            stored = self.storage.save(document.filename, document.content)
            appointment.document_filename = stored.filename
            appointment.document_path = stored.path

        self.db.add(appointment)
        try:
            self._commit()
        except PersistenceError:
            if stored is not None:
                self.storage.delete(stored.path)
            raise
        self.db.refresh(appointment)

        logger.info(
            f"Appointment {appointment.id} booked by user {patient_id} with doctor {doctor_id}"
        )

        patient_name = patient_info.get("fullName") or patient.full_name
        warning = self._notify(doctor.user_id, NotificationEvent(
            type=NotificationType.NEW_APPOINTMENT,
            message=f"New Appointment request from {patient_name}",
            data={
                "appointmentId": appointment.id,
                "userId": patient_id,
                "onClickPath": "/userhome/userappointments",
            },
        ))

        return ServiceResult(appointment, warning)

    def set_status(self, patient_id: int, appointment_id: int, new_status: str) -> ServiceResult:
        """Change an appointment's status and notify the patient.

        Repeating a call with the same status saves and notifies again.
        The patient id is taken as supplied by the caller.
        """
        try:
            status = AppointmentStatus(new_status)
        except ValueError:
            raise ValidationError(f"Invalid appointment status: {new_status}")

        appointment = self.db.query(Appointment).filter(
            Appointment.id == appointment_id
        ).first()
        if not appointment:
            raise NotFoundError("Appointment not found")

        appointment.status = status
        self._commit()
        self.db.refresh(appointment)

        logger.info(f"Appointment {appointment.id} set to {status.value}")

        warning = self._notify(patient_id, NotificationEvent(
            type=NotificationType.APPOINTMENT_STATUS_UPDATED,
            message=f"Your appointment has been {status.value}",
            data={
                "appointmentId": appointment.id,
                "status": status.value,
                "onClickPath": "/userhome/userappointments",
            },
        ))

        return ServiceResult(appointment, warning)

    def list_for_patient(self, patient_id: int) -> List[PatientAppointmentResponse]:
        appointments = self.db.query(Appointment).filter(
            Appointment.user_id == patient_id
        ).order_by(Appointment.id).all()

        doctor_ids = {a.doctor_id for a in appointments}
        names = {}
        if doctor_ids:
            names = dict(
                self.db.query(DoctorProfile.id, DoctorProfile.full_name).filter(
                    DoctorProfile.id.in_(doctor_ids)
                ).all()
            )

        rows = []
        for appointment in appointments:
            row = PatientAppointmentResponse.model_validate(appointment)
            row.doc_name = names.get(appointment.doctor_id, "")
            rows.append(row)
        return rows

    def list_for_doctor(self, doctor_user_id: int) -> List[AppointmentResponse]:
        doctor = self.db.query(DoctorProfile).filter(
            DoctorProfile.user_id == doctor_user_id
        ).first()
        if not doctor:
            raise NotFoundError("Doctor not found")

        appointments = self.db.query(Appointment).filter(
            Appointment.doctor_id == doctor.id
        ).order_by(Appointment.id).all()

        return [AppointmentResponse.model_validate(a) for a in appointments]

    def fetch_document(self, appointment_id: int) -> Tuple[Path, str]:
        """Return the stored file and its download name."""
        appointment = self.db.query(Appointment).filter(
            Appointment.id == appointment_id
        ).first()
        if not appointment:
            raise NotFoundError("Appointment not found")

        if not appointment.document_filename:
            raise NotFoundError("No document attached to this appointment")

        return self.storage.resolve(appointment.document_path), appointment.document_filename

    def _notify(self, user_id: int, event: NotificationEvent) -> Optional[str]:
        try:
            self.mailbox.deliver(user_id, event)
        except DeliveryPartialFailure as e:
            return e.message
        return None
