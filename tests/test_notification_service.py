from datetime import time

import pytest

from assessment_engine.core.config import settings
from assessment_engine.models.notification import Notification, NotificationPreference
from assessment_engine.schemas.notification import PreferencesUpdate
from assessment_engine.services import notification_service
from assessment_engine.services.errors import NotificationNotFound
from assessment_engine.workers import queue as notification_queue


# ─── Preferences ────────────────────────────────────────────────

def test_preferences_default_when_missing(db_session, student):
    prefs = notification_service.get_preferences(db_session, student.id)

    assert prefs.user_id == student.id
    assert prefs.session_reminders is True
    assert prefs.marketing is True
    assert prefs.quiet_hours_start is None
    assert db_session.get(NotificationPreference, student.id) is None


def test_partial_update_preserves_untouched_fields(db_session, student):
    notification_service.update_preferences(
        db_session, user_id=student.id, obj_in=PreferencesUpdate(marketing=False)
    )
    prefs = notification_service.update_preferences(
        db_session, user_id=student.id, obj_in=PreferencesUpdate(sms_enabled=False)
    )

    assert prefs.marketing is False
    assert prefs.sms_enabled is False
    assert prefs.session_reminders is True
    assert prefs.homework_alerts is True
    assert prefs.payment_alerts is True


def test_null_toggle_is_ignored(db_session, student):
    notification_service.update_preferences(
        db_session, user_id=student.id, obj_in=PreferencesUpdate(homework_alerts=False)
    )
    prefs = notification_service.update_preferences(
        db_session, user_id=student.id, obj_in=PreferencesUpdate(homework_alerts=None)
    )

    assert prefs.homework_alerts is False


def test_quiet_hours_set_and_cleared(db_session, student):
    prefs = notification_service.update_preferences(
        db_session,
        user_id=student.id,
        obj_in=PreferencesUpdate(quiet_hours_start=time(22, 0), quiet_hours_end=time(7, 30)),
    )
    assert prefs.quiet_hours_start == time(22, 0)
    assert prefs.quiet_hours_end == time(7, 30)

    prefs = notification_service.update_preferences(
        db_session, user_id=student.id, obj_in=PreferencesUpdate(quiet_hours_start=None)
    )
    assert prefs.quiet_hours_start is None
    assert prefs.quiet_hours_end == time(7, 30)


def test_empty_update_creates_default_row(db_session, student):
    prefs = notification_service.update_preferences(
        db_session, user_id=student.id, obj_in=PreferencesUpdate()
    )

    assert prefs.marketing is True
    assert db_session.query(NotificationPreference).filter_by(user_id=student.id).count() == 1


# ─── In-app notifications ───────────────────────────────────────

def _store(db, user, n):
    return [
        notification_service.create_notification(
            db, user_id=user.id, notif_type="homework_assigned", title=f"Homework {i}", body="New work"
        )
        for i in range(n)
    ]


def test_list_and_mark_read(db_session, student, other_student):
    stored = _store(db_session, student, 3)
    _store(db_session, other_student, 1)

    items, total = notification_service.list_notifications(db_session, user_id=student.id)
    assert total == 3
    assert [n.id for n in items] == sorted((n.id for n in stored), reverse=True)

    notification_service.mark_read(db_session, user_id=student.id, notification_id=stored[0].id)

    unread, unread_total = notification_service.list_notifications(
        db_session, user_id=student.id, unread_only=True
    )
    assert unread_total == 2
    assert stored[0].id not in [n.id for n in unread]


def test_mark_read_of_someone_else(db_session, student, other_student):
    [theirs] = _store(db_session, other_student, 1)

    with pytest.raises(NotificationNotFound):
        notification_service.mark_read(db_session, user_id=student.id, notification_id=theirs.id)

    db_session.expire_all()
    assert db_session.get(Notification, theirs.id).is_read is False


# ─── Outbound ───────────────────────────────────────────────────

def test_notify_enqueues(sent_notifications):
    notification_service.notify(5, "new_review", "New review", "body", {"review_id": 1})

    assert sent_notifications.calls == [
        {"user_id": 5, "type": "new_review", "title": "New review", "body": "body", "data": {"review_id": 1}}
    ]


def test_notify_disabled(sent_notifications, monkeypatch):
    monkeypatch.setattr(settings, "NOTIFICATIONS_ENABLED", False)

    notification_service.notify(5, "new_review", "New review", "body")

    assert sent_notifications.calls == []


def test_notify_swallows_enqueue_failure(monkeypatch, caplog):
    def broken(*args, **kwargs):
        raise ConnectionError("redis is down")

    monkeypatch.setattr(notification_queue, "enqueue_notification_task", broken)

    notification_service.notify(5, "homework_graded", "Graded", "body")

    assert "Could not enqueue homework_graded notification" in caplog.text
