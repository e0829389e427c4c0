# assessment_engine/api/v1/endpoints/reviews.py
from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.orm import Session

from assessment_engine.core.security import Principal, get_current_principal, get_current_teacher
from assessment_engine.db.session import get_db
from assessment_engine.schemas.review import (
    ReviewCreate,
    ReviewPublic,
    ReviewRespond,
    TeacherReviews,
)
from assessment_engine.services import review_service

router = APIRouter(prefix="/reviews", tags=["reviews"])


@router.post("/", response_model=ReviewPublic, status_code=status.HTTP_201_CREATED)
def create_review(
    obj_in: ReviewCreate,
    db: Session = Depends(get_db),
    principal: Principal = Depends(get_current_principal),
):
    """
    A participant reviews a completed session.
    """
    return review_service.create_review(db, reviewer_id=principal.user_id, obj_in=obj_in)


# public listing, no token required
@router.get("/teacher/{teacher_id}", response_model=TeacherReviews)
def get_teacher_reviews(
    teacher_id: int,
    limit: int = Query(20, ge=1, le=50),
    offset: int = Query(0, ge=0),
    db: Session = Depends(get_db),
):
    return review_service.get_teacher_reviews(db, teacher_id=teacher_id, limit=limit, offset=offset)


@router.post("/{review_id}/respond", response_model=ReviewPublic)
def respond_to_review(
    review_id: int,
    obj_in: ReviewRespond,
    db: Session = Depends(get_db),
    current_teacher: Principal = Depends(get_current_teacher),
):
    return review_service.respond_to_review(
        db,
        teacher_id=current_teacher.user_id,
        review_id=review_id,
        response=obj_in.response,
    )
