# assessment_engine/services/homework_service.py
import logging
from datetime import datetime, timezone
from typing import List

from sqlalchemy import select, update
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from assessment_engine.core.config import settings
from assessment_engine.core.security import ROLE_STUDENT, Principal
from assessment_engine.db.upsert import insert_or_ignore
from assessment_engine.models.homework import (
    ASSIGNMENT_ASSIGNED,
    ASSIGNMENT_GRADED,
    ASSIGNMENT_SUBMITTED,
    Homework,
    HomeworkAssignment,
    HomeworkSubmission,
)
from assessment_engine.schemas.homework import (
    GradeUpdate,
    HomeworkCreate,
    HomeworkPublic,
    SubmissionCreate,
    SubmissionPublic,
)
from assessment_engine.services import notification_service
from assessment_engine.services.errors import (
    AlreadySubmitted,
    HomeworkNotFound,
    NotAuthorized,
    SubmissionNotFound,
)
from assessment_engine.services.policy import compute_is_late

logger = logging.getLogger(__name__)


def clamp_pagination(page: int, limit: int) -> tuple[int, int]:
    """page >= 1; a limit outside [1, MAX_PAGE_SIZE] falls back to the default."""
    if page < 1:
        page = 1
    if limit < 1 or limit > settings.MAX_PAGE_SIZE:
        limit = settings.DEFAULT_PAGE_SIZE
    return page, limit


def _homework_view(hw: Homework) -> HomeworkPublic:
    return HomeworkPublic(
        id=hw.id,
        teacher_id=hw.teacher_id,
        teacher_name=hw.teacher.full_name if hw.teacher else "",
        title=hw.title,
        description=hw.description,
        instructions=hw.instructions,
        file_urls=hw.file_urls or [],
        subject_id=hw.subject_id,
        subject_name=hw.subject.name if hw.subject else None,
        level_id=hw.level_id,
        level_name=hw.level.name if hw.level else None,
        deadline=hw.deadline,
        allow_late=hw.allow_late,
        late_penalty_percent=hw.late_penalty_percent,
        assignment_count=len(hw.assignments),
        created_at=hw.created_at,
        updated_at=hw.updated_at,
    )


def _submission_view(sub: HomeworkSubmission) -> SubmissionPublic:
    return SubmissionPublic(
        id=sub.id,
        homework_id=sub.homework_id,
        student_id=sub.student_id,
        student_name=sub.student.full_name if sub.student else "",
        text_content=sub.text_content,
        file_urls=sub.file_urls or [],
        is_late=sub.is_late,
        submitted_at=sub.submitted_at,
        grade=sub.grade,
        max_grade=sub.max_grade,
        feedback=sub.feedback,
        graded_at=sub.graded_at,
    )


# ─── Homework CRUD ──────────────────────────────────────────────

def create_homework(
    db: Session,
    *,
    teacher_id: int,
    obj_in: HomeworkCreate,
) -> HomeworkPublic:
    """
    Teacher creates homework, then assigns it to each listed student.

    Assignment fan-out is best effort: duplicates are ignored and a failing
    insert for one student is logged and skipped without undoing the rest.
    """
    hw = Homework(
        teacher_id=teacher_id,
        title=obj_in.title,
        description=obj_in.description,
        instructions=obj_in.instructions,
        file_urls=list(obj_in.file_urls),
        subject_id=obj_in.subject_id,
        level_id=obj_in.level_id,
        deadline=obj_in.deadline,
        allow_late=obj_in.allow_late,
        late_penalty_percent=obj_in.late_penalty_percent,
    )
    db.add(hw)
    db.commit()
    db.refresh(hw)

    assigned_ids = []
    for student_id in obj_in.student_ids:
        try:
            inserted = insert_or_ignore(
                db,
                HomeworkAssignment,
                {
                    "homework_id": hw.id,
                    "student_id": student_id,
                    "status": ASSIGNMENT_ASSIGNED,
                },
                conflict_columns=["homework_id", "student_id"],
            )
            db.commit()
            if inserted:
                assigned_ids.append(student_id)
        except SQLAlchemyError as e:
            db.rollback()
            logger.warning(f"Skipping assignment of homework {hw.id} to student {student_id}: {e}")

    logger.info(f"Homework {hw.id} created by teacher {teacher_id}, assigned to {len(assigned_ids)} student(s)")

    # skipped and duplicate ids get no notification
    for student_id in assigned_ids:
        notification_service.notify(
            student_id,
            "homework_assigned",
            "New homework",
            f"You have been assigned \"{hw.title}\"",
            {"homework_id": hw.id},
        )

    return get_homework(db, hw.id)


def get_homework(db: Session, homework_id: int) -> HomeworkPublic:
    hw = db.get(Homework, homework_id)
    if hw is None:
        raise HomeworkNotFound()
    return _homework_view(hw)


def list_homework(
    db: Session,
    *,
    principal: Principal,
    page: int = 1,
    limit: int = 20,
) -> tuple[List[HomeworkPublic], int]:
    """
    Teachers see the homework they own; any other role sees the homework
    assigned to them.
    """
    page, limit = clamp_pagination(page, limit)

    query = db.query(Homework)
    if principal.is_teacher:
        query = query.filter(Homework.teacher_id == principal.user_id)
    else:
        assigned_ids = select(HomeworkAssignment.homework_id).where(
            HomeworkAssignment.student_id == principal.user_id
        )
        query = query.filter(Homework.id.in_(assigned_ids))

    total = query.count()
    rows = (
        query.order_by(Homework.created_at.desc(), Homework.id.desc())
        .offset((page - 1) * limit)
        .limit(limit)
        .all()
    )
    return [_homework_view(hw) for hw in rows], total


# ─── Submit ─────────────────────────────────────────────────────

def submit_homework(
    db: Session,
    *,
    homework_id: int,
    student_id: int,
    obj_in: SubmissionCreate,
) -> SubmissionPublic:
    hw = db.get(Homework, homework_id)
    if hw is None:
        raise HomeworkNotFound()

    if not settings.ALLOW_HOMEWORK_RESUBMISSION:
        existing = (
            db.query(HomeworkSubmission.id)
            .filter(
                HomeworkSubmission.homework_id == homework_id,
                HomeworkSubmission.student_id == student_id,
            )
            .first()
        )
        if existing is not None:
            logger.warning(f"Student {student_id} already submitted homework {homework_id}")
            raise AlreadySubmitted()

    submitted_at = datetime.now(timezone.utc)
    sub = HomeworkSubmission(
        homework_id=homework_id,
        student_id=student_id,
        text_content=obj_in.text_content,
        file_urls=list(obj_in.file_urls),
        is_late=compute_is_late(hw.deadline, submitted_at),
        submitted_at=submitted_at,
    )
    db.add(sub)

    # only assigned -> submitted; a graded assignment never moves back
    db.execute(
        update(HomeworkAssignment)
        .where(
            HomeworkAssignment.homework_id == homework_id,
            HomeworkAssignment.student_id == student_id,
            HomeworkAssignment.status == ASSIGNMENT_ASSIGNED,
        )
        .values(status=ASSIGNMENT_SUBMITTED)
    )
    db.commit()
    db.refresh(sub)

    logger.info(
        f"Student {student_id} submitted homework {homework_id} "
        f"(submission {sub.id}, late={sub.is_late})"
    )
    notification_service.notify(
        hw.teacher_id,
        "homework_submitted",
        "Homework submitted",
        f"A submission was received for \"{hw.title}\"",
        {"homework_id": homework_id, "submission_id": sub.id},
    )
    return _submission_view(sub)


# ─── Grade ──────────────────────────────────────────────────────

def grade_homework(
    db: Session,
    *,
    submission_id: int,
    teacher_id: int,
    obj_in: GradeUpdate,
) -> SubmissionPublic:
    """
    Only the teacher who owns the parent homework may grade. Grade fields
    and the assignment flip to ``graded`` are committed together.
    """
    row = (
        db.query(HomeworkSubmission, Homework.teacher_id, Homework.title)
        .join(Homework, Homework.id == HomeworkSubmission.homework_id)
        .filter(HomeworkSubmission.id == submission_id)
        .first()
    )
    if row is None:
        raise SubmissionNotFound()
    sub, owner_id, title = row
    if owner_id != teacher_id:
        logger.warning(f"Teacher {teacher_id} may not grade submission {submission_id}")
        raise NotAuthorized()

    sub.grade = obj_in.grade
    sub.max_grade = obj_in.max_grade
    sub.feedback = obj_in.feedback
    sub.graded_at = datetime.now(timezone.utc)

    db.execute(
        update(HomeworkAssignment)
        .where(
            HomeworkAssignment.homework_id == sub.homework_id,
            HomeworkAssignment.student_id == sub.student_id,
        )
        .values(status=ASSIGNMENT_GRADED)
    )
    db.add(sub)
    db.commit()
    db.refresh(sub)

    logger.info(f"Submission {submission_id} graded {sub.grade}/{sub.max_grade} by teacher {teacher_id}")
    notification_service.notify(
        sub.student_id,
        "homework_graded",
        "Homework graded",
        f"Your submission for \"{title}\" has been graded",
        {"homework_id": sub.homework_id, "submission_id": sub.id},
    )
    return _submission_view(sub)


def list_submissions(
    db: Session,
    *,
    homework_id: int,
    principal: Principal,
) -> List[SubmissionPublic]:
    """Owning teacher sees every submission, a student only their own."""
    hw = db.get(Homework, homework_id)
    if hw is None:
        raise HomeworkNotFound()

    query = db.query(HomeworkSubmission).filter(HomeworkSubmission.homework_id == homework_id)
    if principal.is_teacher:
        if hw.teacher_id != principal.user_id:
            raise NotAuthorized()
    elif principal.role == ROLE_STUDENT:
        query = query.filter(HomeworkSubmission.student_id == principal.user_id)
    else:
        raise NotAuthorized()

    rows = query.order_by(HomeworkSubmission.submitted_at.desc(), HomeworkSubmission.id.desc()).all()
    return [_submission_view(sub) for sub in rows]
