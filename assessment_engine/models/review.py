# assessment_engine/models/review.py
from sqlalchemy import (
    Column,
    Integer,
    Text,
    DateTime,
    ForeignKey,
    UniqueConstraint,
)
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func
from assessment_engine.db.base import Base


class Review(Base):
    __tablename__ = "reviews"
    __table_args__ = (
        UniqueConstraint("session_id", "reviewer_id", name="uq_review_session_reviewer"),
    )

    id = Column(Integer, primary_key=True, index=True)
    session_id = Column(Integer, ForeignKey("tutoring_sessions.id"), nullable=False, index=True)
    reviewer_id = Column(Integer, ForeignKey("users.id"), nullable=False, index=True)
    teacher_id = Column(Integer, ForeignKey("users.id"), nullable=False, index=True)

    # 1..5
    overall_rating = Column(Integer, nullable=False)
    teaching_quality = Column(Integer, nullable=True)
    communication = Column(Integer, nullable=True)
    punctuality = Column(Integer, nullable=True)
    content_quality = Column(Integer, nullable=True)
    review_text = Column(Text, nullable=True)

    teacher_response = Column(Text, nullable=True)
    teacher_responded_at = Column(DateTime(timezone=True), nullable=True)

    created_at = Column(DateTime(timezone=True), server_default=func.now())

    reviewer = relationship("User", foreign_keys=[reviewer_id])
    teacher = relationship("User", foreign_keys=[teacher_id])
