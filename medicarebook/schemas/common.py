from typing import Any, Optional
from pydantic import BaseModel


class ApiResponse(BaseModel):
    """Envelope shared by every endpoint."""
    success: bool
    message: str
    data: Optional[Any] = None
    warning: Optional[str] = None


def ok(message: str, data: Any = None, warning: Optional[str] = None) -> ApiResponse:
    return ApiResponse(success=True, message=message, data=data, warning=warning)


def fail(message: str) -> dict:
    return ApiResponse(success=False, message=message).model_dump(exclude_none=True)
