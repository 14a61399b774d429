from fastapi import APIRouter, Depends
from typing import Optional

from ...api.deps import get_admin_user, get_current_user, get_doctor_service
from ...models.doctor import DoctorStatus
from ...models.user import User
from ...schemas.common import ApiResponse, ok
from ...schemas.doctor import DoctorApplication, DoctorProfileResponse, DoctorReview
from ...services.doctor_service import DoctorService

router = APIRouter(tags=["Doctors"])
admin_router = APIRouter(prefix="/admin", tags=["Admin"])

def _dump(profile) -> dict:
    return DoctorProfileResponse.model_validate(profile).model_dump(mode="json")

@router.post("/doctor-application", response_model=ApiResponse, status_code=201)
async def apply_as_doctor(
    application: DoctorApplication,
    service: DoctorService = Depends(get_doctor_service),
    _: User = Depends(get_current_user)
):
    """Submit a doctor application for admin approval."""
    profile = service.apply(application.user_id, application.doctor)
    return ok("Doctor Registration request sent successfully", _dump(profile))

@router.get("/approved-doctors", response_model=ApiResponse)
async def approved_doctors(
    service: DoctorService = Depends(get_doctor_service),
    _: User = Depends(get_current_user)
):
    """List doctors patients can book with."""
    return ok("Doctor Users data list", [_dump(p) for p in service.list_approved()])

@admin_router.get("/doctors", response_model=ApiResponse)
async def list_doctor_applications(
    status: Optional[DoctorStatus] = None,
    service: DoctorService = Depends(get_doctor_service),
    _: User = Depends(get_admin_user)
):
    """List doctor profiles of any status (admin only)."""
    return ok("Doctor applications listed", [_dump(p) for p in service.list_applications(status)])

@admin_router.post("/doctor-status", response_model=ApiResponse)
async def review_doctor_application(
    review: DoctorReview,
    service: DoctorService = Depends(get_doctor_service),
    _: User = Depends(get_admin_user)
):
    """Approve or reject a pending doctor application (admin only)."""
    result = service.review(review.doctor_id, review.status)
    return ok(
        f"Doctor application {review.status.value}",
        _dump(result.value),
        result.warning
    )
