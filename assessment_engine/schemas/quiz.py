# assessment_engine/schemas/quiz.py
from datetime import datetime
from typing import Any, List

from pydantic import BaseModel, ConfigDict, Field

from assessment_engine.schemas.common import PageMeta


class QuizQuestion(BaseModel):
    """
    Only ``type`` and ``correct_answer`` mean anything to the engine; every
    other key (prompt, options, points...) is kept as sent.
    """
    model_config = ConfigDict(extra="allow")

    type: str
    correct_answer: Any = None


class QuizCreate(BaseModel):
    title: str = Field(min_length=3, max_length=255)
    description: str | None = Field(default=None, max_length=5000)
    subject_id: int | None = None
    level_id: int | None = None
    time_limit_minutes: int | None = Field(default=None, ge=1)
    randomize_questions: bool = False
    randomize_options: bool = False
    show_answers_after: bool = False
    max_attempts: int = Field(default=1, ge=1)
    questions: List[QuizQuestion]


class QuizPublic(BaseModel):
    id: int
    teacher_id: int
    teacher_name: str
    title: str
    description: str | None = None
    subject_id: int | None = None
    subject_name: str | None = None
    level_id: int | None = None
    level_name: str | None = None
    time_limit_minutes: int | None = None
    randomize_questions: bool
    randomize_options: bool
    show_answers_after: bool
    max_attempts: int
    questions: List[dict]
    question_count: int
    created_at: datetime | None = None
    updated_at: datetime | None = None


class QuizPage(BaseModel):
    data: List[QuizPublic]
    meta: PageMeta


class AttemptAnswer(BaseModel):
    question_index: int = Field(ge=0)
    answer: Any = None


class AttemptCreate(BaseModel):
    answers: List[AttemptAnswer]


class AttemptPublic(BaseModel):
    id: int
    quiz_id: int
    student_id: int
    student_name: str
    attempt_number: int
    answers: List[dict]
    score: float | None = None
    max_score: float | None = None
    is_graded: bool
    started_at: datetime
    completed_at: datetime | None = None


class QuizResults(BaseModel):
    quiz_id: int
    quiz_title: str
    total_attempts: int
    average_score: float
    attempts: List[AttemptPublic]
