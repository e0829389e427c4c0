# assessment_engine/api/v1/endpoints/homework.py
from typing import List

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
from assessment_engine.schemas.homework import (
    GradeUpdate,
    HomeworkCreate,
    HomeworkPage,
    HomeworkPublic,
    SubmissionCreate,
    SubmissionPublic,
)
from assessment_engine.services import homework_service

router = APIRouter(prefix="/homework", tags=["homework"])


@router.post("/", response_model=HomeworkPublic, status_code=status.HTTP_201_CREATED)
def create_homework(
    obj_in: HomeworkCreate,
    db: Session = Depends(get_db),
    current_teacher: Principal = Depends(get_current_teacher),
):
    """
    Teacher creates homework and assigns it to the listed students.
    """
    return homework_service.create_homework(db, teacher_id=current_teacher.user_id, obj_in=obj_in)


@router.get("/", response_model=HomeworkPage)
def list_homework(
    page: int = 1,
    limit: int = 20,
    db: Session = Depends(get_db),
    principal: Principal = Depends(get_current_principal),
):
    page, limit = homework_service.clamp_pagination(page, limit)
    items, total = homework_service.list_homework(db, principal=principal, page=page, limit=limit)
    return HomeworkPage(data=items, meta=PageMeta.build(page=page, limit=limit, total=total))


@router.get("/{homework_id}", response_model=HomeworkPublic)
def get_homework(
    homework_id: int,
    db: Session = Depends(get_db),
    principal: Principal = Depends(get_current_principal),
):
    return homework_service.get_homework(db, homework_id)


@router.post(
    "/{homework_id}/submit",
    response_model=SubmissionPublic,
    status_code=status.HTTP_201_CREATED,
)
def submit_homework(
    homework_id: int,
    obj_in: SubmissionCreate,
    db: Session = Depends(get_db),
    current_student: Principal = Depends(get_current_student),
):
    return homework_service.submit_homework(
        db,
        homework_id=homework_id,
        student_id=current_student.user_id,
        obj_in=obj_in,
    )


@router.get("/{homework_id}/submissions", response_model=List[SubmissionPublic])
def list_submissions(
    homework_id: int,
    db: Session = Depends(get_db),
    principal: Principal = Depends(get_current_principal),
):
    """
    Owning teacher sees every submission; a student sees their own.
    """
    return homework_service.list_submissions(db, homework_id=homework_id, principal=principal)


@router.put("/submissions/{submission_id}/grade", response_model=SubmissionPublic)
def grade_submission(
    submission_id: int,
    obj_in: GradeUpdate,
    db: Session = Depends(get_db),
    current_teacher: Principal = Depends(get_current_teacher),
):
    return homework_service.grade_homework(
        db,
        submission_id=submission_id,
        teacher_id=current_teacher.user_id,
        obj_in=obj_in,
    )
