import logging
from typing import List, Optional

from sqlalchemy.orm import Session

from ..core.exceptions import DeliveryPartialFailure, NotFoundError, ValidationError
from ..core.security import UserRole
from ..models.doctor import DoctorProfile, DoctorStatus
from ..models.user import User
from ..schemas.doctor import DoctorProfileFields
from ..schemas.notification import NotificationEvent, NotificationType
from .admin_directory import AdminDirectory
from .base import BaseService, ServiceResult
from .mailbox import Mailbox

logger = logging.getLogger(__name__)

class DoctorService(BaseService):
    def __init__(
        self,
        db: Session,
        admin_directory: AdminDirectory,
        mailbox: Optional[Mailbox] = None
    ):
        super().__init__(db)
        self.admin_directory = admin_directory
        self.mailbox = mailbox or Mailbox(db)

    def apply(self, applicant_user_id: int, fields: DoctorProfileFields) -> DoctorProfile:
        """Submit a doctor application and alert the administrator."""
        applicant = self.db.query(User).filter(User.id == applicant_user_id).first()
        if not applicant:
            raise NotFoundError("User not found")

        existing = self.db.query(DoctorProfile).filter(
            DoctorProfile.user_id == applicant_user_id
        ).first()
        if existing:
            raise ValidationError("Doctor application already submitted")

        admin_id = self.admin_directory.resolve_admin()

        profile = DoctorProfile(
            user_id=applicant_user_id,
            status=DoctorStatus.PENDING,
            **fields.model_dump()
        )
        self.db.add(profile)
        self._commit()
        self.db.refresh(profile)

        logger.info(f"Doctor application {profile.id} submitted by user {applicant_user_id}")

        self.mailbox.enqueue(admin_id, NotificationEvent(
            type=NotificationType.DOCTOR_APPLICATION,
            message=f"{profile.full_name} has applied for doctor registration",
            data={
                "doctorId": profile.id,
                "userId": applicant_user_id,
                "fullName": profile.full_name,
                "onClickPath": "/admin/doctors",
            },
        ))

        return profile

    def list_approved(self) -> List[DoctorProfile]:
        """Public doctor listing; pending and rejected profiles never appear."""
        return self.db.query(DoctorProfile).filter(
            DoctorProfile.status == DoctorStatus.APPROVED
        ).order_by(DoctorProfile.id).all()

    def list_applications(self, status: Optional[DoctorStatus] = None) -> List[DoctorProfile]:
        query = self.db.query(DoctorProfile)
        if status is not None:
            query = query.filter(DoctorProfile.status == status)
        return query.order_by(DoctorProfile.id).all()

    def review(self, doctor_id: int, new_status: DoctorStatus) -> ServiceResult:
        """Approve or reject a pending application.

        Approval grants the doctor role to the owning user. The applicant is
        notified on a best-effort basis.
        """
        if new_status == DoctorStatus.PENDING:
            raise ValidationError("Status must be approved or rejected")

        profile = self.db.query(DoctorProfile).filter(DoctorProfile.id == doctor_id).first()
        if not profile:
            raise NotFoundError("Doctor not found")

        if profile.status != DoctorStatus.PENDING:
            raise ValidationError(f"Doctor application already {profile.status.value}")

        profile.status = new_status
        if new_status == DoctorStatus.APPROVED and profile.user:
            if profile.user.role == UserRole.PATIENT:
                profile.user.role = UserRole.DOCTOR

        self._commit()
        self.db.refresh(profile)

        logger.info(f"Doctor application {profile.id} {new_status.value}")

        warning = None
        try:
            self.mailbox.deliver(profile.user_id, NotificationEvent(
                type=NotificationType.DOCTOR_APPLICATION_REVIEWED,
                message=f"Your doctor account application has been {new_status.value}",
                data={
                    "doctorId": profile.id,
                    "status": new_status.value,
                    "onClickPath": "/notification",
                },
            ))
        except DeliveryPartialFailure as e:
            warning = e.message

        return ServiceResult(profile, warning)
