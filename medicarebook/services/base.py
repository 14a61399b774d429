import logging
from dataclasses import dataclass
from typing import Any, Optional

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from ..core.exceptions import PersistenceError

logger = logging.getLogger(__name__)


class BaseService:
    def __init__(self, db: Session):
        self.db = db

    def _commit(self):
        """Commit the session, translating storage failures."""
        try:
            self.db.commit()
        except SQLAlchemyError as e:
            self.db.rollback()
            logger.error(f"Database commit failed: {str(e)}")
            raise PersistenceError("Something went wrong while saving") from e


@dataclass
class ServiceResult:
    """Outcome of a write whose follow-up notification is best effort."""
    value: Any
    warning: Optional[str] = None
