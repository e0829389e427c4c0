# assessment_engine/services/review_service.py
import logging
from datetime import datetime, timezone

from sqlalchemy import func
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from assessment_engine.models.review import Review
from assessment_engine.models.tutoring_session import (
    SESSION_COMPLETED,
    SessionParticipant,
    TutoringSession,
)
from assessment_engine.schemas.review import (
    ReviewCreate,
    ReviewPublic,
    TeacherReviews,
    TeacherReviewSummary,
)
from assessment_engine.services import notification_service
from assessment_engine.services.errors import (
    AlreadyReviewed,
    NotAuthorized,
    ReviewNotFound,
    SessionNotDone,
    SessionNotFound,
)

logger = logging.getLogger(__name__)


def _review_view(review: Review) -> ReviewPublic:
    return ReviewPublic(
        id=review.id,
        session_id=review.session_id,
        reviewer_id=review.reviewer_id,
        reviewer_name=review.reviewer.full_name if review.reviewer else "",
        teacher_id=review.teacher_id,
        teacher_name=review.teacher.full_name if review.teacher else "",
        overall_rating=review.overall_rating,
        teaching_quality=review.teaching_quality,
        communication=review.communication,
        punctuality=review.punctuality,
        content_quality=review.content_quality,
        review_text=review.review_text,
        teacher_response=review.teacher_response,
        teacher_responded_at=review.teacher_responded_at,
        created_at=review.created_at,
    )


def _already_reviewed(db: Session, *, session_id: int, reviewer_id: int) -> bool:
    return (
        db.query(Review.id)
        .filter(Review.session_id == session_id, Review.reviewer_id == reviewer_id)
        .first()
    ) is not None


def create_review(
    db: Session,
    *,
    reviewer_id: int,
    obj_in: ReviewCreate,
) -> ReviewPublic:
    """
    A participant reviews a completed session, at most once.

    The reviewed teacher is always the session's teacher. The one-review
    rule is enforced by the (session_id, reviewer_id) unique constraint;
    any other integrity failure propagates unchanged.
    """
    session = db.get(TutoringSession, obj_in.session_id)
    if session is None:
        raise SessionNotFound()
    if session.status != SESSION_COMPLETED:
        raise SessionNotDone()

    participant = (
        db.query(SessionParticipant.id)
        .filter(
            SessionParticipant.session_id == session.id,
            SessionParticipant.student_id == reviewer_id,
        )
        .first()
    )
    if participant is None:
        logger.warning(f"User {reviewer_id} is not a participant of session {session.id}")
        raise NotAuthorized("only participants may review a session")

    teacher_id = session.teacher_id
    review = Review(
        session_id=session.id,
        reviewer_id=reviewer_id,
        teacher_id=teacher_id,
        overall_rating=obj_in.overall_rating,
        teaching_quality=obj_in.teaching_quality,
        communication=obj_in.communication,
        punctuality=obj_in.punctuality,
        content_quality=obj_in.content_quality,
        review_text=obj_in.review_text,
    )
    db.add(review)
    try:
        db.commit()
    except IntegrityError:
        db.rollback()
        if not _already_reviewed(db, session_id=obj_in.session_id, reviewer_id=reviewer_id):
            raise
        logger.info(f"User {reviewer_id} already reviewed session {obj_in.session_id}")
        raise AlreadyReviewed()
    db.refresh(review)

    logger.info(
        f"Review {review.id} created for teacher {teacher_id} "
        f"(session {review.session_id}, rating {review.overall_rating})"
    )
    notification_service.notify(
        teacher_id,
        "new_review",
        "New review",
        f"You received a {review.overall_rating}-star review",
        {"review_id": review.id, "session_id": review.session_id},
    )
    return _review_view(review)


def get_teacher_reviews(
    db: Session,
    *,
    teacher_id: int,
    limit: int = 20,
    offset: int = 0,
) -> TeacherReviews:
    total, avg_overall, avg_teaching, avg_comm, avg_punct, avg_content = (
        db.query(
            func.count(Review.id),
            func.coalesce(func.avg(Review.overall_rating), 0),
            func.coalesce(func.avg(Review.teaching_quality), 0),
            func.coalesce(func.avg(Review.communication), 0),
            func.coalesce(func.avg(Review.punctuality), 0),
            func.coalesce(func.avg(Review.content_quality), 0),
        )
        .filter(Review.teacher_id == teacher_id)
        .one()
    )

    reviews = (
        db.query(Review)
        .filter(Review.teacher_id == teacher_id)
        .order_by(Review.created_at.desc(), Review.id.desc())
        .offset(offset)
        .limit(limit)
        .all()
    )

    return TeacherReviews(
        summary=TeacherReviewSummary(
            total_reviews=total or 0,
            average_rating=float(avg_overall),
            average_teaching=float(avg_teaching),
            average_communication=float(avg_comm),
            average_punctuality=float(avg_punct),
            average_content=float(avg_content),
        ),
        reviews=[_review_view(r) for r in reviews],
    )


def respond_to_review(
    db: Session,
    *,
    teacher_id: int,
    review_id: int,
    response: str,
) -> ReviewPublic:
    review = db.get(Review, review_id)
    if review is None:
        raise ReviewNotFound()
    if review.teacher_id != teacher_id:
        logger.warning(f"Teacher {teacher_id} may not respond to review {review_id}")
        raise NotAuthorized()

    # a later response replaces the earlier one
    review.teacher_response = response
    review.teacher_responded_at = datetime.now(timezone.utc)
    db.add(review)
    db.commit()
    db.refresh(review)

    logger.info(f"Teacher {teacher_id} responded to review {review_id}")
    notification_service.notify(
        review.reviewer_id,
        "review_response",
        "Teacher responded",
        "The teacher responded to your review",
        {"review_id": review.id},
    )
    return _review_view(review)
