from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from ...core.database import get_db
from ...api.deps import get_current_user, rate_limit_check
from ...services.auth_service import AuthService
from ...schemas.auth import UserLogin, UserRegister, UserResponse, UserDetailResponse
from ...schemas.common import ApiResponse, ok
from ...models.user import User

router = APIRouter(prefix="/auth", tags=["Authentication"])

@router.post("/register", response_model=ApiResponse, status_code=201)
async def register(
    user_data: UserRegister,
    db: Session = Depends(get_db),
    _: None = Depends(rate_limit_check)
):
    """Register a new patient account."""
    auth_service = AuthService(db)
    user = auth_service.register_user(user_data)
    return ok(
        "Registered successfully",
        UserResponse.model_validate(user).model_dump(mode="json")
    )

@router.post("/login", response_model=ApiResponse)
async def login(
    login_data: UserLogin,
    db: Session = Depends(get_db),
    _: None = Depends(rate_limit_check)
):
    """Authenticate user and return an access token."""
    auth_service = AuthService(db)
    token = auth_service.authenticate_user(login_data)
    return ok("Login successful", token.model_dump(mode="json"))

@router.get("/me", response_model=ApiResponse)
async def get_current_user_info(
    current_user: User = Depends(get_current_user)
):
    """Get current user information, including both notification lists."""
    return ok(
        "User fetched",
        UserDetailResponse.model_validate(current_user).model_dump(mode="json")
    )
