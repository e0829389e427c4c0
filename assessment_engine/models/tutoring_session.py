# assessment_engine/models/tutoring_session.py
from sqlalchemy import (
    Column,
    Integer,
    String,
    DateTime,
    ForeignKey,
    UniqueConstraint,
)
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func
from assessment_engine.db.base import Base

SESSION_COMPLETED = "completed"


class TutoringSession(Base):
    """Owned by the booking service; only read here for review preconditions."""
    __tablename__ = "tutoring_sessions"

    id = Column(Integer, primary_key=True, index=True)
    teacher_id = Column(Integer, ForeignKey("users.id"), nullable=False, index=True)
    title = Column(String(255), nullable=True)

    # scheduled / live / completed / cancelled
    status = Column(String(20), nullable=False, default="scheduled", index=True)

    start_time = Column(DateTime(timezone=True), nullable=True)
    end_time = Column(DateTime(timezone=True), nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now())

    participants = relationship("SessionParticipant", back_populates="session")


class SessionParticipant(Base):
    __tablename__ = "session_participants"
    __table_args__ = (
        UniqueConstraint("session_id", "student_id", name="uq_session_participant"),
    )

    id = Column(Integer, primary_key=True, index=True)
    session_id = Column(Integer, ForeignKey("tutoring_sessions.id"), nullable=False, index=True)
    student_id = Column(Integer, ForeignKey("users.id"), nullable=False, index=True)

    session = relationship("TutoringSession", back_populates="participants")
