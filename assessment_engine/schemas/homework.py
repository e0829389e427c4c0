# assessment_engine/schemas/homework.py
from datetime import datetime
from typing import List

from pydantic import BaseModel, Field

from assessment_engine.schemas.common import PageMeta


class HomeworkCreate(BaseModel):
    title: str = Field(min_length=3, max_length=255)
    description: str | None = Field(default=None, max_length=5000)
    instructions: str | None = Field(default=None, max_length=5000)
    file_urls: List[str] = Field(default_factory=list)
    subject_id: int | None = None
    level_id: int | None = None
    deadline: datetime | None = None
    allow_late: bool = False
    late_penalty_percent: float = Field(default=0, ge=0, le=100)
    student_ids: List[int] = Field(default_factory=list)


class HomeworkPublic(BaseModel):
    id: int
    teacher_id: int
    teacher_name: str
    title: str
    description: str | None = None
    instructions: str | None = None
    file_urls: List[str] = Field(default_factory=list)
    subject_id: int | None = None
    subject_name: str | None = None
    level_id: int | None = None
    level_name: str | None = None
    deadline: datetime | None = None
    allow_late: bool
    late_penalty_percent: float
    assignment_count: int = 0
    created_at: datetime | None = None
    updated_at: datetime | None = None


class HomeworkPage(BaseModel):
    data: List[HomeworkPublic]
    meta: PageMeta


class SubmissionCreate(BaseModel):
    text_content: str | None = Field(default=None, max_length=10000)
    # pre-uploaded object storage urls
    file_urls: List[str] = Field(default_factory=list)


class GradeUpdate(BaseModel):
    """Teacher grading of one submission"""
    grade: float = Field(ge=0)
    max_grade: float = Field(gt=0)
    feedback: str | None = Field(default=None, max_length=5000)


class SubmissionPublic(BaseModel):
    id: int
    homework_id: int
    student_id: int
    student_name: str
    text_content: str | None = None
    file_urls: List[str] = Field(default_factory=list)
    is_late: bool
    submitted_at: datetime

    # filled once graded
    grade: float | None = None
    max_grade: float | None = None
    feedback: str | None = None
    graded_at: datetime | None = None
