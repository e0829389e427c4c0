"""
Shared fixtures: a fresh in-memory SQLite database per test, a handful of
users and tutoring sessions, and a recorder in place of the notification
queue so no test needs Redis.
"""

import os
from datetime import datetime, timezone

# must be set before assessment_engine.core.config is imported
os.environ.setdefault("DATABASE_URL", "sqlite://")
# the app-wide limiter would throttle the suite; it is exercised on its own app
os.environ.setdefault("RATE_LIMIT_ENABLED", "false")

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from assessment_engine.core.security import (
    ROLE_PARENT,
    ROLE_STUDENT,
    ROLE_TEACHER,
)
from assessment_engine.db.base import Base
from assessment_engine.db.session import get_db
from assessment_engine.models.catalog import Level, Subject
from assessment_engine.models.tutoring_session import (
    SESSION_COMPLETED,
    SessionParticipant,
    TutoringSession,
)
from assessment_engine.models.user import User
from assessment_engine.workers import queue as notification_queue

TEST_DATABASE_URL = "sqlite://"


@pytest.fixture
def engine():
    engine = create_engine(
        TEST_DATABASE_URL,
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(bind=engine)
    yield engine
    Base.metadata.drop_all(bind=engine)
    engine.dispose()


@pytest.fixture
def session_factory(engine):
    return sessionmaker(autocommit=False, autoflush=False, bind=engine)


@pytest.fixture
def db_session(session_factory):
    session = session_factory()
    try:
        yield session
    finally:
        session.close()


class EnqueueRecorder:
    def __init__(self):
        self.calls = []

    def __call__(self, user_id, notif_type, title, body, data=None):
        self.calls.append(
            {"user_id": user_id, "type": notif_type, "title": title, "body": body, "data": data}
        )
        return f"job-{len(self.calls)}"

    def of_type(self, notif_type):
        return [c for c in self.calls if c["type"] == notif_type]


@pytest.fixture(autouse=True)
def sent_notifications(monkeypatch):
    recorder = EnqueueRecorder()
    monkeypatch.setattr(notification_queue, "enqueue_notification_task", recorder)
    return recorder


def _make_user(db, email, first_name, last_name, role):
    user = User(email=email, first_name=first_name, last_name=last_name, role=role)
    db.add(user)
    db.commit()
    db.refresh(user)
    return user


@pytest.fixture
def teacher(db_session):
    return _make_user(db_session, "teacher@example.com", "Ada", "Lovelace", ROLE_TEACHER)


@pytest.fixture
def other_teacher(db_session):
    return _make_user(db_session, "teacher2@example.com", "Alan", "Turing", ROLE_TEACHER)


@pytest.fixture
def student(db_session):
    return _make_user(db_session, "student@example.com", "Grace", "Hopper", ROLE_STUDENT)


@pytest.fixture
def other_student(db_session):
    return _make_user(db_session, "student2@example.com", "Linus", "Pauling", ROLE_STUDENT)


@pytest.fixture
def parent(db_session):
    return _make_user(db_session, "parent@example.com", "Marie", "Curie", ROLE_PARENT)


@pytest.fixture
def subject_and_level(db_session):
    subject = Subject(name="Mathematics")
    level = Level(name="Grade 10")
    db_session.add_all([subject, level])
    db_session.commit()
    return subject, level


def _make_session(db, teacher, students, status):
    session = TutoringSession(
        teacher_id=teacher.id,
        title="Algebra review",
        status=status,
        start_time=datetime(2025, 1, 10, 15, 0, tzinfo=timezone.utc),
        end_time=datetime(2025, 1, 10, 16, 0, tzinfo=timezone.utc),
    )
    db.add(session)
    db.commit()
    for s in students:
        db.add(SessionParticipant(session_id=session.id, student_id=s.id))
    db.commit()
    db.refresh(session)
    return session


@pytest.fixture
def completed_session(db_session, teacher, student):
    return _make_session(db_session, teacher, [student], SESSION_COMPLETED)


@pytest.fixture
def scheduled_session(db_session, teacher, student):
    return _make_session(db_session, teacher, [student], "scheduled")


@pytest.fixture
def client(db_session):
    from assessment_engine.main import app

    def override_get_db():
        yield db_session

    app.dependency_overrides[get_db] = override_get_db
    with TestClient(app) as c:
        yield c
    app.dependency_overrides.clear()
