from fastapi import APIRouter, Depends, File, Form, Query, UploadFile
from fastapi.responses import FileResponse
from typing import Any, Dict, Optional
import json

from ...api.deps import get_appointment_service, get_current_user
from ...core.exceptions import ValidationError
from ...models.user import User
from ...schemas.appointment import AppointmentResponse, StatusUpdate
from ...schemas.common import ApiResponse, ok
from ...services.appointment_service import AppointmentService, DocumentUpload

router = APIRouter(tags=["Appointments"])

def _parse_snapshot(raw: str, field: str) -> Dict[str, Any]:
    """Snapshots arrive as JSON text inside the multipart form."""
    try:
        value = json.loads(raw)
    except json.JSONDecodeError:
        raise ValidationError(f"{field} must be valid JSON")

    if not isinstance(value, dict):
        raise ValidationError(f"{field} must be a JSON object")
    return value

@router.post("/booking", response_model=ApiResponse)
async def book_appointment(
    user_id: int = Form(..., alias="userId"),
    doctor_id: int = Form(..., alias="doctorId"),
    user_info: str = Form(..., alias="userInfo"),
    doctor_info: str = Form(..., alias="doctorInfo"),
    date: str = Form(...),
    document: Optional[UploadFile] = File(None),
    service: AppointmentService = Depends(get_appointment_service),
    _: User = Depends(get_current_user)
):
    """Book an appointment, optionally attaching a document."""
    upload = None
    if document is not None and document.filename:
        upload = DocumentUpload(filename=document.filename, content=document.file)

    result = service.book(
        user_id,
        _parse_snapshot(user_info, "userInfo"),
        doctor_id,
        _parse_snapshot(doctor_info, "doctorInfo"),
        date,
        upload
    )

    return ok(
        "Appointment booked successfully",
        AppointmentResponse.model_validate(result.value).model_dump(mode="json"),
        result.warning
    )

@router.get("/user-appointments", response_model=ApiResponse)
async def user_appointments(
    user_id: int = Query(..., alias="userId"),
    service: AppointmentService = Depends(get_appointment_service),
    _: User = Depends(get_current_user)
):
    """List a patient's appointments with the doctor's current name."""
    rows = service.list_for_patient(user_id)
    return ok("All appointments listed", [row.model_dump(mode="json") for row in rows])

@router.get("/doctor-appointments", response_model=ApiResponse)
async def doctor_appointments(
    user_id: int = Query(..., alias="userId"),
    service: AppointmentService = Depends(get_appointment_service),
    _: User = Depends(get_current_user)
):
    """List appointments booked with the doctor owned by this user."""
    rows = service.list_for_doctor(user_id)
    return ok("All doctor appointments listed", [row.model_dump(mode="json") for row in rows])

@router.post("/status-update", response_model=ApiResponse)
async def update_status(
    body: StatusUpdate,
    service: AppointmentService = Depends(get_appointment_service),
    _: User = Depends(get_current_user)
):
    """Change an appointment's status and notify the patient."""
    result = service.set_status(body.user_id, body.appointment_id, body.status)
    return ok(
        "Appointment status updated",
        AppointmentResponse.model_validate(result.value).model_dump(mode="json"),
        result.warning
    )

@router.get("/document-download")
async def document_download(
    appoint_id: int = Query(..., alias="appointId"),
    service: AppointmentService = Depends(get_appointment_service),
    _: User = Depends(get_current_user)
):
    """Stream the document attached to an appointment."""
    path, filename = service.fetch_document(appoint_id)
    return FileResponse(path, filename=filename, media_type="application/octet-stream")
