# assessment_engine/models/homework.py
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

# assignment status: assigned -> submitted -> graded, never backwards
ASSIGNMENT_ASSIGNED = "assigned"
ASSIGNMENT_SUBMITTED = "submitted"
ASSIGNMENT_GRADED = "graded"


class Homework(Base):
    __tablename__ = "homework"

    id = Column(Integer, primary_key=True, index=True)
    teacher_id = Column(Integer, ForeignKey("users.id"), nullable=False, index=True)

    title = Column(String(255), nullable=False)
    description = Column(Text, nullable=True)
    instructions = Column(Text, nullable=True)
    file_urls = Column(JSON, nullable=False, default=list)

    subject_id = Column(Integer, ForeignKey("subjects.id"), nullable=True)
    level_id = Column(Integer, ForeignKey("levels.id"), nullable=True)

    deadline = Column(DateTime(timezone=True), nullable=True)
    allow_late = Column(Boolean, nullable=False, default=False)
    late_penalty_percent = Column(Float, nullable=False, default=0)

    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(
        DateTime(timezone=True),
        server_default=func.now(),
        onupdate=func.now(),
    )

    teacher = relationship("User")
    subject = relationship("Subject")
    level = relationship("Level")
    assignments = relationship("HomeworkAssignment", back_populates="homework")


class HomeworkAssignment(Base):
    __tablename__ = "homework_assignments"
    __table_args__ = (
        UniqueConstraint("homework_id", "student_id", name="uq_homework_assignment"),
    )

    id = Column(Integer, primary_key=True, index=True)
    homework_id = Column(Integer, ForeignKey("homework.id"), nullable=False, index=True)
    student_id = Column(Integer, ForeignKey("users.id"), nullable=False, index=True)

    status = Column(String(20), nullable=False, default=ASSIGNMENT_ASSIGNED, index=True)

    created_at = Column(DateTime(timezone=True), server_default=func.now())

    homework = relationship("Homework", back_populates="assignments")


class HomeworkSubmission(Base):
    __tablename__ = "homework_submissions"

    id = Column(Integer, primary_key=True, index=True)
    homework_id = Column(Integer, ForeignKey("homework.id"), nullable=False, index=True)
    student_id = Column(Integer, ForeignKey("users.id"), nullable=False, index=True)

    text_content = Column(Text, nullable=True)
    file_urls = Column(JSON, nullable=False, default=list)

    # computed once at submission time, never recomputed
    is_late = Column(Boolean, nullable=False, default=False)
    submitted_at = Column(DateTime(timezone=True), nullable=False)

    # teacher grading
    grade = Column(Float, nullable=True)
    max_grade = Column(Float, nullable=True)
    feedback = Column(Text, nullable=True)
    graded_at = Column(DateTime(timezone=True), nullable=True)

    homework = relationship("Homework")
    student = relationship("User")
