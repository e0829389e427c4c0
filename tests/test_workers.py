import pytest
from sqlalchemy.exc import OperationalError

from assessment_engine.core.config import settings
from assessment_engine.models.notification import Notification
from assessment_engine.workers import queue, tasks
from assessment_engine.workers.queue import enqueue_notification_task as real_enqueue


def test_enqueue_targets_notification_queue(monkeypatch):
    captured = {}

    def fake_enqueue_job(func, *args, queue_name, description=None):
        captured.update(func=func, args=args, queue_name=queue_name, description=description)
        return "job-1"

    monkeypatch.setattr(queue, "enqueue_job", fake_enqueue_job)

    job_id = real_enqueue(3, "homework_graded", "Graded", "Your work was graded", {"submission_id": 9})

    assert job_id == "job-1"
    assert captured["func"] is tasks.notification_task
    assert captured["queue_name"] == settings.NOTIFICATION_QUEUE_NAME
    assert captured["args"] == (3, "homework_graded", "Graded", "Your work was graded", {"submission_id": 9})
    assert captured["description"] == "homework_graded -> user 3"


def test_notification_task_stores_row(monkeypatch, session_factory, db_session, student):
    monkeypatch.setattr(tasks, "SessionLocal", session_factory)

    result = tasks.notification_task(student.id, "new_review", "New review", "5 stars", {"review_id": 1})

    assert result["status"] == "success"
    stored = db_session.get(Notification, result["notification_id"])
    assert stored.user_id == student.id
    assert stored.data == {"review_id": 1}
    assert stored.channel == "in_app"
    assert stored.is_read is False


def test_notification_task_reraises_store_errors(monkeypatch, session_factory):
    def broken(*args, **kwargs):
        raise OperationalError("INSERT", {}, Exception("database is locked"))

    monkeypatch.setattr(tasks, "SessionLocal", session_factory)
    monkeypatch.setattr(tasks.notification_service, "create_notification", broken)

    with pytest.raises(OperationalError):
        tasks.notification_task(1, "new_review", "New review", "body")
