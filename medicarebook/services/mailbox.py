"""
Per-user notification mailbox.

Each user row carries two ordered partitions: ``notifications`` (unseen) and
``seen_notifications`` (acknowledged). Every mutation is a read-modify-write
of the whole user row, run inside a per-user lock so that concurrent
requests in this process cannot overwrite each other's changes. Writers in
other processes are not covered; across processes the last write wins.
A user's lock lives only while some request holds or waits on it.
"""
import logging
import threading
import weakref
from contextlib import contextmanager
from typing import List

from sqlalchemy.orm.attributes import flag_modified

from ..core.exceptions import DeliveryPartialFailure, NotFoundError, PersistenceError
from ..models.user import User
from ..schemas.notification import MailboxResponse, NotificationEvent
from .base import BaseService

logger = logging.getLogger(__name__)

_user_locks: "weakref.WeakValueDictionary[int, threading.Lock]" = weakref.WeakValueDictionary()
_user_locks_guard = threading.Lock()


@contextmanager
def user_scope(user_id: int):
    """Hold the exclusive mailbox lock for one user."""
    with _user_locks_guard:
        lock = _user_locks.get(user_id)
        if lock is None:
            lock = _user_locks[user_id] = threading.Lock()
    with lock:
        yield


class Mailbox(BaseService):

    def enqueue(self, user_id: int, event: NotificationEvent) -> None:
        """Append an event to the user's unseen notifications.

        Identical events are not merged and the queue is unbounded.
        """
        with user_scope(user_id):
            user = self._load(user_id)
            user.notifications = list(user.notifications or []) + [
                event.model_dump(mode="json", exclude_none=True)
            ]
            flag_modified(user, "notifications")
            self._commit()

        logger.info(f"Queued '{event.type.value}' notification for user {user_id}")

    def deliver(self, user_id: int, event: NotificationEvent) -> None:
        """Enqueue as the follow-up of a write that has already succeeded.

        Raises ``DeliveryPartialFailure`` so the caller can report the
        primary operation as successful with a warning.
        """
        try:
            self.enqueue(user_id, event)
        except (NotFoundError, PersistenceError) as e:
            logger.warning(
                f"Could not deliver '{event.type.value}' notification to user {user_id}: {e.message}"
            )
            raise DeliveryPartialFailure(
                f"Notification could not be delivered: {e.message}"
            ) from e

    def mark_all_seen(self, user_id: int) -> User:
        """Move every unseen event, in order, to the end of the seen list."""
        with user_scope(user_id):
            user = self._load(user_id)
            unseen = list(user.notifications or [])
            user.seen_notifications = list(user.seen_notifications or []) + unseen
            user.notifications = []
            flag_modified(user, "notifications")
            flag_modified(user, "seen_notifications")
            self._commit()

        self.db.refresh(user)
        return user

    def clear_all(self, user_id: int) -> User:
        """Empty both partitions. Irreversible."""
        with user_scope(user_id):
            user = self._load(user_id)
            user.notifications = []
            user.seen_notifications = []
            flag_modified(user, "notifications")
            flag_modified(user, "seen_notifications")
            self._commit()

        self.db.refresh(user)
        return user

    def read(self, user_id: int) -> MailboxResponse:
        user = self._load(user_id)
        return MailboxResponse(
            notifications=_events(user.notifications),
            seen_notifications=_events(user.seen_notifications),
        )

    def _load(self, user_id: int) -> User:
        # populate_existing discards any copy cached in the session so the
        # modification starts from the stored row
        user = self.db.query(User).populate_existing().filter(
            User.id == user_id
        ).first()

        if not user:
            raise NotFoundError("User not found")

        return user


def _events(raw) -> List[NotificationEvent]:
    return [NotificationEvent(**item) for item in raw or []]
