import pytest

from medicarebook.core.exceptions import NotFoundError, ValidationError
from medicarebook.core.security import UserRole
from medicarebook.models import DoctorProfile, DoctorStatus
from medicarebook.schemas.doctor import DoctorProfileFields
from medicarebook.services.admin_directory import (
    ConfiguredAdminDirectory, RoleScanAdminDirectory
)
from medicarebook.services.doctor_service import DoctorService

profile_fields = {
    "fullName": "Dr. Meredith Grey",
    "email": "grey@example.com",
    "phone": "555-0101",
    "address": "1 Hospital Way",
    "specialization": "General Surgery",
    "experience": "10 years",
    "fees": 150,
    "timings": "09:00-17:00"
}


def _service(db):
    return DoctorService(db, RoleScanAdminDirectory(db))


class TestDoctorApplication:

    def test_apply_without_admin_fails(self, db_session, create_user):
        applicant = create_user()

        with pytest.raises(NotFoundError) as exc_info:
            _service(db_session).apply(applicant.id, DoctorProfileFields(**profile_fields))

        assert exc_info.value.status_code == 404
        assert db_session.query(DoctorProfile).count() == 0

    def test_apply_notifies_admin_once(self, db_session, create_user):
        admin = create_user(role=UserRole.ADMIN)
        applicant = create_user()

        profile = _service(db_session).apply(applicant.id, DoctorProfileFields(**profile_fields))

        assert profile.status == DoctorStatus.PENDING
        assert profile.user_id == applicant.id

        db_session.refresh(admin)
        assert len(admin.notifications) == 1
        event = admin.notifications[0]
        assert event["type"] == "doctor-application"
        assert event["message"] == "Dr. Meredith Grey has applied for doctor registration"
        assert event["data"]["onClickPath"] == "/admin/doctors"
        assert event["data"]["doctorId"] == profile.id

    def test_apply_twice_is_rejected(self, db_session, create_user):
        create_user(role=UserRole.ADMIN)
        applicant = create_user()
        service = _service(db_session)
        service.apply(applicant.id, DoctorProfileFields(**profile_fields))

        with pytest.raises(ValidationError):
            service.apply(applicant.id, DoctorProfileFields(**profile_fields))

    def test_apply_unknown_applicant(self, db_session, create_user):
        create_user(role=UserRole.ADMIN)
        with pytest.raises(NotFoundError) as exc_info:
            _service(db_session).apply(4242, DoctorProfileFields(**profile_fields))
        assert exc_info.value.status_code == 400


class TestAdminDirectory:

    def test_role_scan_picks_lowest_id(self, db_session, create_user):
        first = create_user(role=UserRole.ADMIN)
        create_user(role=UserRole.ADMIN)
        assert RoleScanAdminDirectory(db_session).resolve_admin() == first.id

    def test_configured_admin(self, db_session, create_user):
        create_user(role=UserRole.ADMIN)
        chosen = create_user(role=UserRole.ADMIN, email="boss@example.com")
        directory = ConfiguredAdminDirectory(db_session, "boss@example.com")
        assert directory.resolve_admin() == chosen.id

    def test_configured_admin_missing(self, db_session, create_user):
        create_user(email="boss@example.com")
        with pytest.raises(NotFoundError):
            ConfiguredAdminDirectory(db_session, "boss@example.com").resolve_admin()


class TestDirectoryAndReview:

    def test_list_approved_excludes_other_statuses(self, db_session, create_user, create_doctor):
        statuses = [
            DoctorStatus.APPROVED, DoctorStatus.PENDING, DoctorStatus.REJECTED,
            DoctorStatus.APPROVED, DoctorStatus.PENDING
        ]
        for status in statuses:
            create_doctor(create_user().id, status=status)

        approved = _service(db_session).list_approved()

        assert len(approved) == 2
        assert all(p.status == DoctorStatus.APPROVED for p in approved)

    def test_approve_grants_doctor_role(self, db_session, create_user, create_doctor):
        applicant = create_user()
        profile = create_doctor(applicant.id, status=DoctorStatus.PENDING)

        result = _service(db_session).review(profile.id, DoctorStatus.APPROVED)

        assert result.warning is None
        assert result.value.status == DoctorStatus.APPROVED
        db_session.refresh(applicant)
        assert applicant.role == UserRole.DOCTOR
        assert applicant.notifications[-1]["type"] == "doctor-application-reviewed"

    def test_rejected_is_terminal(self, db_session, create_user, create_doctor):
        profile = create_doctor(create_user().id, status=DoctorStatus.PENDING)
        service = _service(db_session)
        service.review(profile.id, DoctorStatus.REJECTED)

        with pytest.raises(ValidationError):
            service.review(profile.id, DoctorStatus.APPROVED)

        db_session.refresh(profile)
        assert profile.status == DoctorStatus.REJECTED

    def test_review_to_pending_is_invalid(self, db_session, create_user, create_doctor):
        profile = create_doctor(create_user().id, status=DoctorStatus.PENDING)
        with pytest.raises(ValidationError):
            _service(db_session).review(profile.id, DoctorStatus.PENDING)


class TestDoctorApi:

    def test_apply_without_admin_is_404(self, client, create_user, headers_for):
        applicant = create_user()
        response = client.post(
            "/api/v1/doctor-application",
            json={"userId": applicant.id, "doctor": profile_fields},
            headers=headers_for(applicant)
        )
        assert response.status_code == 404
        assert response.json() == {"success": False, "message": "Admin user not found"}

    def test_apply_success(self, client, create_user, headers_for):
        create_user(role=UserRole.ADMIN)
        applicant = create_user()
        response = client.post(
            "/api/v1/doctor-application",
            json={"userId": applicant.id, "doctor": profile_fields},
            headers=headers_for(applicant)
        )
        assert response.status_code == 201
        body = response.json()
        assert body["success"] is True
        assert body["data"]["status"] == "pending"
        assert body["data"]["full_name"] == "Dr. Meredith Grey"

    def test_apply_invalid_fields(self, client, create_user, headers_for):
        create_user(role=UserRole.ADMIN)
        applicant = create_user()
        fields = dict(profile_fields)
        del fields["specialization"]
        response = client.post(
            "/api/v1/doctor-application",
            json={"userId": applicant.id, "doctor": fields},
            headers=headers_for(applicant)
        )
        assert response.status_code == 400
        assert response.json()["success"] is False

    def test_approved_doctors(self, client, create_user, create_doctor, headers_for):
        patient = create_user()
        create_doctor(create_user().id, status=DoctorStatus.APPROVED, full_name="Dr. Yes")
        create_doctor(create_user().id, status=DoctorStatus.PENDING, full_name="Dr. Maybe")

        response = client.get("/api/v1/approved-doctors", headers=headers_for(patient))

        assert response.status_code == 200
        names = [d["full_name"] for d in response.json()["data"]]
        assert names == ["Dr. Yes"]

    def test_admin_routes_require_admin(self, client, create_user, create_doctor, headers_for):
        patient = create_user()
        profile = create_doctor(create_user().id, status=DoctorStatus.PENDING)

        response = client.post(
            "/api/v1/admin/doctor-status",
            json={"doctorId": profile.id, "status": "approved"},
            headers=headers_for(patient)
        )
        assert response.status_code == 403

    def test_admin_review_flow(self, client, create_user, create_doctor, headers_for):
        admin = create_user(role=UserRole.ADMIN)
        profile = create_doctor(create_user().id, status=DoctorStatus.PENDING)

        listing = client.get(
            "/api/v1/admin/doctors",
            params={"status": "pending"},
            headers=headers_for(admin)
        )
        assert [d["id"] for d in listing.json()["data"]] == [profile.id]

        response = client.post(
            "/api/v1/admin/doctor-status",
            json={"doctorId": profile.id, "status": "approved"},
            headers=headers_for(admin)
        )
        assert response.status_code == 200
        assert response.json()["data"]["status"] == "approved"
