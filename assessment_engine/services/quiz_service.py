# assessment_engine/services/quiz_service.py
import logging
from datetime import datetime, timezone
from typing import List

from sqlalchemy import func
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from assessment_engine.core.security import ROLE_STUDENT, Principal
from assessment_engine.models.quiz import Quiz, QuizAttempt
from assessment_engine.schemas.quiz import (
    AttemptCreate,
    AttemptPublic,
    QuizCreate,
    QuizPublic,
    QuizResults,
)
from assessment_engine.services.errors import (
    MaxAttemptsReached,
    NotAuthorized,
    QuizNotFound,
)
from assessment_engine.services.homework_service import clamp_pagination
from assessment_engine.services.policy import auto_grade, mean

logger = logging.getLogger(__name__)


def _quiz_view(quiz: Quiz) -> QuizPublic:
    return QuizPublic(
        id=quiz.id,
        teacher_id=quiz.teacher_id,
        teacher_name=quiz.teacher.full_name if quiz.teacher else "",
        title=quiz.title,
        description=quiz.description,
        subject_id=quiz.subject_id,
        subject_name=quiz.subject.name if quiz.subject else None,
        level_id=quiz.level_id,
        level_name=quiz.level.name if quiz.level else None,
        time_limit_minutes=quiz.time_limit_minutes,
        randomize_questions=quiz.randomize_questions,
        randomize_options=quiz.randomize_options,
        show_answers_after=quiz.show_answers_after,
        max_attempts=quiz.max_attempts,
        questions=quiz.questions or [],
        question_count=quiz.question_count,
        created_at=quiz.created_at,
        updated_at=quiz.updated_at,
    )


def _attempt_view(attempt: QuizAttempt) -> AttemptPublic:
    return AttemptPublic(
        id=attempt.id,
        quiz_id=attempt.quiz_id,
        student_id=attempt.student_id,
        student_name=attempt.student.full_name if attempt.student else "",
        attempt_number=attempt.attempt_number,
        answers=attempt.answers or [],
        score=attempt.score,
        max_score=attempt.max_score,
        is_graded=attempt.is_graded,
        started_at=attempt.started_at,
        completed_at=attempt.completed_at,
    )


# ─── Quiz CRUD ──────────────────────────────────────────────────

def create_quiz(
    db: Session,
    *,
    teacher_id: int,
    obj_in: QuizCreate,
) -> QuizPublic:
    quiz = Quiz(
        teacher_id=teacher_id,
        title=obj_in.title,
        description=obj_in.description,
        subject_id=obj_in.subject_id,
        level_id=obj_in.level_id,
        time_limit_minutes=obj_in.time_limit_minutes,
        randomize_questions=obj_in.randomize_questions,
        randomize_options=obj_in.randomize_options,
        show_answers_after=obj_in.show_answers_after,
        max_attempts=obj_in.max_attempts,
        # stored verbatim, unknown question keys included
        questions=[q.model_dump(exclude_unset=True) for q in obj_in.questions],
    )
    db.add(quiz)
    db.commit()
    db.refresh(quiz)

    logger.info(
        f"Quiz {quiz.id} created by teacher {teacher_id} "
        f"({quiz.question_count} questions, max_attempts={quiz.max_attempts})"
    )
    return _quiz_view(quiz)


def get_quiz(db: Session, quiz_id: int) -> QuizPublic:
    quiz = db.get(Quiz, quiz_id)
    if quiz is None:
        raise QuizNotFound()
    return _quiz_view(quiz)


def list_quizzes(
    db: Session,
    *,
    teacher_id: int,
    page: int = 1,
    limit: int = 20,
) -> tuple[List[QuizPublic], int]:
    page, limit = clamp_pagination(page, limit)

    query = db.query(Quiz).filter(Quiz.teacher_id == teacher_id)
    total = query.count()
    rows = (
        query.order_by(Quiz.created_at.desc(), Quiz.id.desc())
        .offset((page - 1) * limit)
        .limit(limit)
        .all()
    )
    return [_quiz_view(q) for q in rows], total


# ─── Attempt ────────────────────────────────────────────────────

def count_attempts(db: Session, *, quiz_id: int, student_id: int) -> int:
    return (
        db.query(func.count(QuizAttempt.id))
        .filter(QuizAttempt.quiz_id == quiz_id, QuizAttempt.student_id == student_id)
        .scalar()
    ) or 0


def _slot_taken(db: Session, *, quiz_id: int, student_id: int, attempt_number: int) -> bool:
    return (
        db.query(QuizAttempt.id)
        .filter(
            QuizAttempt.quiz_id == quiz_id,
            QuizAttempt.student_id == student_id,
            QuizAttempt.attempt_number == attempt_number,
        )
        .first()
    ) is not None


def attempt_quiz(
    db: Session,
    *,
    quiz_id: int,
    student_id: int,
    obj_in: AttemptCreate,
) -> AttemptPublic:
    """
    Record one auto-graded attempt.

    The attempt takes slot ``count + 1``. Slots are unique per
    (quiz, student) and never exceed ``max_attempts``, so two concurrent
    requests that read the same count cannot both store the same slot. The
    loser recounts and takes the next free slot, and is rejected as
    MaxAttemptsReached only once every slot is used. Any other integrity
    failure propagates unchanged.
    """
    quiz = db.get(Quiz, quiz_id)
    if quiz is None:
        raise QuizNotFound()

    answers = [a.model_dump() for a in obj_in.answers]
    score, max_score = auto_grade(quiz.questions, answers)
    max_attempts = quiz.max_attempts

    # each lost slot means another attempt was stored, so at most
    # max_attempts rounds are needed
    attempt = None
    for _ in range(max_attempts):
        existing = count_attempts(db, quiz_id=quiz_id, student_id=student_id)
        if existing >= max_attempts:
            break
        slot = existing + 1

        # grading is synchronous, so the attempt completes the moment it starts
        now = datetime.now(timezone.utc)
        candidate = QuizAttempt(
            quiz_id=quiz_id,
            student_id=student_id,
            attempt_number=slot,
            answers=answers,
            score=score,
            max_score=max_score,
            is_graded=True,
            started_at=now,
            completed_at=now,
        )
        db.add(candidate)
        try:
            db.commit()
        except IntegrityError:
            db.rollback()
            if not _slot_taken(db, quiz_id=quiz_id, student_id=student_id, attempt_number=slot):
                raise
            logger.info(
                f"Slot {slot} on quiz {quiz_id} for student {student_id} was taken concurrently, recounting"
            )
            continue
        attempt = candidate
        break

    if attempt is None:
        logger.warning(
            f"Student {student_id} reached max attempts ({max_attempts}) on quiz {quiz_id}"
        )
        raise MaxAttemptsReached()
    db.refresh(attempt)

    logger.info(
        f"Student {student_id} attempt {attempt.attempt_number}/{quiz.max_attempts} "
        f"on quiz {quiz_id} scored {score}/{max_score}"
    )
    return _attempt_view(attempt)


def get_quiz_results(
    db: Session,
    *,
    quiz_id: int,
    principal: Principal,
) -> QuizResults:
    """
    The owning teacher sees every attempt, a student only their own.
    ``average_score`` is the mean of the non-null scores in that set.
    """
    quiz = db.get(Quiz, quiz_id)
    if quiz is None:
        raise QuizNotFound()

    query = db.query(QuizAttempt).filter(QuizAttempt.quiz_id == quiz_id)
    if principal.is_teacher:
        if quiz.teacher_id != principal.user_id:
            raise NotAuthorized()
    elif principal.role == ROLE_STUDENT:
        query = query.filter(QuizAttempt.student_id == principal.user_id)
    else:
        raise NotAuthorized()

    attempts = query.order_by(QuizAttempt.started_at.desc(), QuizAttempt.id.desc()).all()

    return QuizResults(
        quiz_id=quiz.id,
        quiz_title=quiz.title,
        total_attempts=len(attempts),
        average_score=mean(a.score for a in attempts),
        attempts=[_attempt_view(a) for a in attempts],
    )
