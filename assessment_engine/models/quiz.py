# assessment_engine/models/quiz.py
from sqlalchemy import (
    Boolean,
    Column,
    Integer,
    String,
    Text,
    DateTime,
    Float,
    ForeignKey,
    JSON,
    UniqueConstraint,
)
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func
from assessment_engine.db.base import Base


class Quiz(Base):
    __tablename__ = "quizzes"

    id = Column(Integer, primary_key=True, index=True)
    teacher_id = Column(Integer, ForeignKey("users.id"), nullable=False, index=True)

    title = Column(String(255), nullable=False)
    description = Column(Text, nullable=True)
    subject_id = Column(Integer, ForeignKey("subjects.id"), nullable=True)
    level_id = Column(Integer, ForeignKey("levels.id"), nullable=True)

    time_limit_minutes = Column(Integer, nullable=True)
    # stored for the client, not enforced server side
    randomize_questions = Column(Boolean, nullable=False, default=False)
    randomize_options = Column(Boolean, nullable=False, default=False)
    show_answers_after = Column(Boolean, nullable=False, default=False)

    max_attempts = Column(Integer, nullable=False, default=1)
    questions = Column(JSON, nullable=False, default=list)

    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(
        DateTime(timezone=True),
        server_default=func.now(),
        onupdate=func.now(),
    )

    teacher = relationship("User")
    subject = relationship("Subject")
    level = relationship("Level")

    @property
    def question_count(self) -> int:
        return len(self.questions) if isinstance(self.questions, list) else 0


class QuizAttempt(Base):
    __tablename__ = "quiz_attempts"
    __table_args__ = (
        # bounded counter: attempt_number is 1..max_attempts, one row per slot
        UniqueConstraint("quiz_id", "student_id", "attempt_number", name="uq_quiz_attempt_slot"),
    )

    id = Column(Integer, primary_key=True, index=True)
    quiz_id = Column(Integer, ForeignKey("quizzes.id"), nullable=False, index=True)
    student_id = Column(Integer, ForeignKey("users.id"), nullable=False, index=True)
    attempt_number = Column(Integer, nullable=False)

    answers = Column(JSON, nullable=False, default=list)
    score = Column(Float, nullable=True)
    max_score = Column(Float, nullable=True)
    is_graded = Column(Boolean, nullable=False, default=False)

    started_at = Column(DateTime(timezone=True), nullable=False)
    completed_at = Column(DateTime(timezone=True), nullable=True)

    quiz = relationship("Quiz")
    student = relationship("User")
