# assessment_engine/api/v1/endpoints/quizzes.py
from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session

from assessment_engine.core.security import (
    Principal,
    get_current_principal,
    get_current_student,
    get_current_teacher,
)
from assessment_engine.db.session import get_db
from assessment_engine.schemas.common import PageMeta
from assessment_engine.schemas.quiz import (
    AttemptCreate,
    AttemptPublic,
    QuizCreate,
    QuizPage,
    QuizPublic,
    QuizResults,
)
from assessment_engine.services import quiz_service
from assessment_engine.services.homework_service import clamp_pagination

router = APIRouter(prefix="/quizzes", tags=["quizzes"])


@router.post("/", response_model=QuizPublic, status_code=status.HTTP_201_CREATED)
def create_quiz(
    obj_in: QuizCreate,
    db: Session = Depends(get_db),
    current_teacher: Principal = Depends(get_current_teacher),
):
    return quiz_service.create_quiz(db, teacher_id=current_teacher.user_id, obj_in=obj_in)


@router.get("/", response_model=QuizPage)
def list_my_quizzes(
    page: int = 1,
    limit: int = 20,
    db: Session = Depends(get_db),
    current_teacher: Principal = Depends(get_current_teacher),
):
    """
    Teacher lists the quizzes they created.
    """
    page, limit = clamp_pagination(page, limit)
    items, total = quiz_service.list_quizzes(
        db, teacher_id=current_teacher.user_id, page=page, limit=limit
    )
    return QuizPage(data=items, meta=PageMeta.build(page=page, limit=limit, total=total))


@router.get("/{quiz_id}", response_model=QuizPublic)
def get_quiz(
    quiz_id: int,
    db: Session = Depends(get_db),
    principal: Principal = Depends(get_current_principal),
):
    return quiz_service.get_quiz(db, quiz_id)


@router.post(
    "/{quiz_id}/attempt",
    response_model=AttemptPublic,
    status_code=status.HTTP_201_CREATED,
)
def attempt_quiz(
    quiz_id: int,
    obj_in: AttemptCreate,
    db: Session = Depends(get_db),
    current_student: Principal = Depends(get_current_student),
):
    return quiz_service.attempt_quiz(
        db, quiz_id=quiz_id, student_id=current_student.user_id, obj_in=obj_in
    )


@router.get("/{quiz_id}/results", response_model=QuizResults)
def get_quiz_results(
    quiz_id: int,
    db: Session = Depends(get_db),
    principal: Principal = Depends(get_current_principal),
):
    return quiz_service.get_quiz_results(db, quiz_id=quiz_id, principal=principal)
