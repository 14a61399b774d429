import threading

import pydantic
import pytest

from medicarebook.core.exceptions import DeliveryPartialFailure, NotFoundError
from medicarebook.schemas.notification import NotificationEvent, NotificationType
from medicarebook.services.mailbox import Mailbox, _user_locks, user_scope

from .conftest import TestingSessionLocal


def _event(n):
    return NotificationEvent(type="new-appointment", message=f"Request {n}")


class TestMailboxService:

    def test_enqueue_appends_in_order(self, db_session, create_user):
        user = create_user()
        mailbox = Mailbox(db_session)

        for n in range(3):
            mailbox.enqueue(user.id, _event(n))

        messages = [e.message for e in mailbox.read(user.id).notifications]
        assert messages == ["Request 0", "Request 1", "Request 2"]

    def test_identical_events_accumulate(self, db_session, create_user):
        user = create_user()
        mailbox = Mailbox(db_session)

        mailbox.enqueue(user.id, _event(1))
        mailbox.enqueue(user.id, _event(1))

        assert len(mailbox.read(user.id).notifications) == 2

    def test_mark_all_seen_moves_events(self, db_session, create_user):
        user = create_user()
        mailbox = Mailbox(db_session)
        mailbox.enqueue(user.id, _event(0))
        mailbox.mark_all_seen(user.id)

        for n in range(1, 4):
            mailbox.enqueue(user.id, _event(n))
        updated = mailbox.mark_all_seen(user.id)

        assert updated.notifications == []
        assert [e["message"] for e in updated.seen_notifications] == [
            "Request 0", "Request 1", "Request 2", "Request 3"
        ]

    def test_mark_all_seen_on_empty_mailbox(self, db_session, create_user):
        user = create_user()
        updated = Mailbox(db_session).mark_all_seen(user.id)
        assert updated.notifications == []
        assert updated.seen_notifications == []

    def test_clear_all_empties_both_partitions(self, db_session, create_user):
        user = create_user()
        mailbox = Mailbox(db_session)
        mailbox.enqueue(user.id, _event(1))
        mailbox.mark_all_seen(user.id)
        mailbox.enqueue(user.id, _event(2))

        updated = mailbox.clear_all(user.id)

        assert updated.notifications == []
        assert updated.seen_notifications == []

    def test_clear_all_when_already_empty(self, db_session, create_user):
        user = create_user()
        mailbox = Mailbox(db_session)

        mailbox.clear_all(user.id)
        updated = mailbox.clear_all(user.id)

        assert updated.notifications == []
        assert updated.seen_notifications == []

    def test_unknown_user(self, db_session, test_db):
        with pytest.raises(NotFoundError):
            Mailbox(db_session).enqueue(12345, _event(1))

    def test_deliver_reports_partial_failure(self, db_session, test_db):
        with pytest.raises(DeliveryPartialFailure):
            Mailbox(db_session).deliver(12345, _event(1))

    def test_concurrent_enqueues_are_not_lost(self, create_user):
        user = create_user()
        errors = []

        def worker(n):
            db = TestingSessionLocal()
            try:
                Mailbox(db).enqueue(user.id, _event(n))
            except Exception as e:
                errors.append(e)
            finally:
                db.close()

        threads = [threading.Thread(target=worker, args=(n,)) for n in range(8)]
        for t in threads:
            t.start()
        for t in threads:
            t.join()

        assert errors == []
        db = TestingSessionLocal()
        try:
            assert len(Mailbox(db).read(user.id).notifications) == 8
        finally:
            db.close()

    def test_event_type_is_restricted(self):
        assert _event(1).type == NotificationType.NEW_APPOINTMENT
        with pytest.raises(pydantic.ValidationError):
            NotificationEvent(type="birthday", message="Happy birthday")

    def test_user_lock_released_after_use(self):
        with user_scope(4321):
            assert 4321 in _user_locks
        assert 4321 not in _user_locks


class TestMailboxApi:

    def test_mark_seen_endpoint(self, client, db_session, create_user, headers_for):
        user = create_user()
        Mailbox(db_session).enqueue(user.id, _event(1))

        response = client.post(
            "/api/v1/notifications/mark-seen",
            json={"userId": user.id},
            headers=headers_for(user)
        )
        assert response.status_code == 200
        body = response.json()
        assert body["success"] is True
        assert body["message"] == "All notifications marked as read"
        assert body["data"]["notifications"] == []
        assert body["data"]["seen_notifications"] == [
            {"type": "new-appointment", "message": "Request 1"}
        ]

    def test_clear_endpoint(self, client, db_session, create_user, headers_for):
        user = create_user()
        Mailbox(db_session).enqueue(user.id, _event(1))

        response = client.post(
            "/api/v1/notifications/clear",
            json={"userId": user.id},
            headers=headers_for(user)
        )
        assert response.status_code == 200
        assert response.json()["data"] == {"notifications": [], "seen_notifications": []}

    def test_read_endpoint(self, client, db_session, create_user, headers_for):
        user = create_user()
        Mailbox(db_session).enqueue(user.id, _event(1))

        response = client.get(
            "/api/v1/notifications",
            params={"userId": user.id},
            headers=headers_for(user)
        )
        assert response.status_code == 200
        assert len(response.json()["data"]["notifications"]) == 1

    def test_unknown_user_is_400(self, client, create_user, headers_for):
        user = create_user()
        response = client.post(
            "/api/v1/notifications/clear",
            json={"userId": 9999},
            headers=headers_for(user)
        )
        assert response.status_code == 400
        assert response.json() == {"success": False, "message": "User not found"}

    def test_missing_user_id_is_400(self, client, create_user, headers_for):
        user = create_user()
        response = client.post(
            "/api/v1/notifications/mark-seen",
            json={},
            headers=headers_for(user)
        )
        assert response.status_code == 400
