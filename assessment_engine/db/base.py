# assessment_engine/db/base.py
from sqlalchemy.orm import declarative_base

Base = declarative_base()

from assessment_engine.models.user import User  # noqa
from assessment_engine.models.catalog import Subject, Level  # noqa
from assessment_engine.models.tutoring_session import TutoringSession, SessionParticipant  # noqa
from assessment_engine.models.homework import Homework, HomeworkAssignment, HomeworkSubmission  # noqa
from assessment_engine.models.quiz import Quiz, QuizAttempt  # noqa
from assessment_engine.models.review import Review  # noqa
from assessment_engine.models.notification import Notification, NotificationPreference  # noqa
