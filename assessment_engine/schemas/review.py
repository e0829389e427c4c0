# assessment_engine/schemas/review.py
from datetime import datetime
from typing import List

from pydantic import BaseModel, Field


class ReviewCreate(BaseModel):
    session_id: int
    overall_rating: int = Field(ge=1, le=5)
    teaching_quality: int | None = Field(default=None, ge=1, le=5)
    communication: int | None = Field(default=None, ge=1, le=5)
    punctuality: int | None = Field(default=None, ge=1, le=5)
    content_quality: int | None = Field(default=None, ge=1, le=5)
    review_text: str | None = Field(default=None, max_length=5000)


class ReviewRespond(BaseModel):
    response: str = Field(min_length=1, max_length=5000)


class ReviewPublic(BaseModel):
    id: int
    session_id: int
    reviewer_id: int
    reviewer_name: str
    teacher_id: int
    teacher_name: str
    overall_rating: int
    teaching_quality: int | None = None
    communication: int | None = None
    punctuality: int | None = None
    content_quality: int | None = None
    review_text: str | None = None
    teacher_response: str | None = None
    teacher_responded_at: datetime | None = None
    created_at: datetime | None = None


class TeacherReviewSummary(BaseModel):
    total_reviews: int
    average_rating: float
    average_teaching: float
    average_communication: float
    average_punctuality: float
    average_content: float


class TeacherReviews(BaseModel):
    summary: TeacherReviewSummary
    reviews: List[ReviewPublic]
