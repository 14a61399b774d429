from sqlalchemy.orm import Session
from fastapi import HTTPException, status
import logging

from ..models.user import User
from ..core.security import (
    verify_password, get_password_hash, create_user_token, UserRole
)
from ..schemas.auth import (
    UserLogin, UserRegister, TokenResponse, UserDetailResponse
)
from .base import BaseService

logger = logging.getLogger(__name__)

class AuthService(BaseService):
    def __init__(self, db: Session):
        super().__init__(db)

    def register_user(self, user_data: UserRegister) -> User:
        """Register a new patient account."""
        existing_user = self.db.query(User).filter(
            User.email == user_data.email
        ).first()

        if existing_user:
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail="Email already registered"
            )

        # Doctor and admin roles are never self-assigned
        new_user = User(
            email=user_data.email,
            password_hash=get_password_hash(user_data.password),
            full_name=user_data.full_name,
            phone=user_data.phone,
            role=UserRole.PATIENT,
            is_active=True,
            notifications=[],
            seen_notifications=[]
        )

        self.db.add(new_user)
        self._commit()
        self.db.refresh(new_user)

        return new_user

    def authenticate_user(self, login_data: UserLogin) -> TokenResponse:
        """Authenticate user and return an access token."""
        user = self.db.query(User).filter(
            User.email == login_data.email
        ).first()

        if not user or not verify_password(login_data.password, user.password_hash):
            raise HTTPException(
                status_code=status.HTTP_401_UNAUTHORIZED,
                detail="Invalid email or password"
            )

        if not user.is_active:
            raise HTTPException(
                status_code=status.HTTP_401_UNAUTHORIZED,
                detail="Account is deactivated"
            )

        token = create_user_token(user.id, user.email, user.role)

        return TokenResponse(
            access_token=token.access_token,
            token_type=token.token_type,
            expires_in=token.expires_in,
            user=UserDetailResponse.model_validate(user)
        )

    def ensure_admin(self, email: str, password: str, full_name: str = "Administrator") -> User:
        """Create the administrator account unless it already exists."""
        user = self.db.query(User).filter(User.email == email).first()
        if user:
            if user.role != UserRole.ADMIN:
                logger.warning(f"Configured admin {email} exists without the admin role")
            return user

        admin = User(
            email=email,
            password_hash=get_password_hash(password),
            full_name=full_name,
            role=UserRole.ADMIN,
            is_active=True,
            notifications=[],
            seen_notifications=[]
        )
        self.db.add(admin)
        self._commit()
        self.db.refresh(admin)

        logger.info(f"Created admin account {email}")
        return admin
