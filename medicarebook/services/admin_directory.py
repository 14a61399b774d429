"""
Resolution of the administrator account that receives doctor applications.
"""
import logging
from typing import Protocol

from fastapi import status
from sqlalchemy.orm import Session

from ..core.config import settings
from ..core.exceptions import NotFoundError
from ..core.security import UserRole
from ..models.user import User

logger = logging.getLogger(__name__)

ADMIN_NOT_FOUND = "Admin user not found"


class AdminDirectory(Protocol):
    def resolve_admin(self) -> int:
        """Return the administrator's user id or raise ``NotFoundError``."""
        ...


class RoleScanAdminDirectory:
    """Finds the administrator by scanning users for the admin role."""

    def __init__(self, db: Session):
        self.db = db

    def resolve_admin(self) -> int:
        admins = self.db.query(User.id).filter(
            User.role == UserRole.ADMIN
        ).order_by(User.id).all()

        if not admins:
            raise NotFoundError(ADMIN_NOT_FOUND, status_code=status.HTTP_404_NOT_FOUND)

        if len(admins) > 1:
            logger.warning(
                f"{len(admins)} admin users found, routing to user {admins[0].id}"
            )

        return admins[0].id


class ConfiguredAdminDirectory:
    """Finds the administrator by a configured email address."""

    def __init__(self, db: Session, email: str):
        self.db = db
        self.email = email

    def resolve_admin(self) -> int:
        admin = self.db.query(User).filter(
            User.email == self.email,
            User.role == UserRole.ADMIN
        ).first()

        if not admin:
            raise NotFoundError(ADMIN_NOT_FOUND, status_code=status.HTTP_404_NOT_FOUND)

        return admin.id


def get_admin_directory(db: Session) -> AdminDirectory:
    if settings.ADMIN_EMAIL:
        return ConfiguredAdminDirectory(db, settings.ADMIN_EMAIL)
    return RoleScanAdminDirectory(db)
