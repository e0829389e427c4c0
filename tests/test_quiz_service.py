import pytest
from sqlalchemy.exc import IntegrityError

from assessment_engine.models.quiz import QuizAttempt
from assessment_engine.schemas.quiz import AttemptCreate, QuizCreate
from assessment_engine.services import quiz_service
from assessment_engine.services.errors import MaxAttemptsReached, NotAuthorized, QuizNotFound
from tests.utils import principal_of

QUESTIONS = [
    {"type": "multiple_choice", "prompt": "2 + 2?", "options": ["3", "4"], "correct_answer": "4"},
    {"type": "essay", "prompt": "Explain why."},
    {"type": "true_false", "prompt": "Zero is even.", "correct_answer": True},
]


def _create(db, teacher, max_attempts=1, questions=QUESTIONS):
    obj_in = QuizCreate(title="Arithmetic check", max_attempts=max_attempts, questions=questions)
    return quiz_service.create_quiz(db, teacher_id=teacher.id, obj_in=obj_in)


def _answers(*pairs):
    return AttemptCreate(answers=[{"question_index": i, "answer": a} for i, a in pairs])


def _attempt(db, quiz, student, *pairs):
    return quiz_service.attempt_quiz(
        db, quiz_id=quiz.id, student_id=student.id, obj_in=_answers(*pairs)
    )


def _stored_attempts(db, quiz, student):
    return db.query(QuizAttempt).filter_by(quiz_id=quiz.id, student_id=student.id).count()


def test_create_quiz_keeps_question_payload(db_session, teacher):
    quiz = _create(db_session, teacher, max_attempts=2)

    assert quiz.question_count == 3
    assert quiz.max_attempts == 2
    assert quiz.teacher_name == "Ada Lovelace"
    assert quiz.questions[0]["options"] == ["3", "4"]
    assert quiz.questions[1]["prompt"] == "Explain why."
    # keys the author did not send are not added
    assert "correct_answer" not in quiz.questions[1]


def test_get_quiz_not_found(db_session):
    with pytest.raises(QuizNotFound):
        quiz_service.get_quiz(db_session, 777)


def test_list_quizzes_only_own(db_session, teacher, other_teacher):
    _create(db_session, teacher)
    _create(db_session, teacher)
    _create(db_session, other_teacher)

    items, total = quiz_service.list_quizzes(db_session, teacher_id=teacher.id)
    assert total == 2
    assert all(q.teacher_id == teacher.id for q in items)


def test_attempt_is_auto_graded(db_session, teacher, student):
    quiz = _create(db_session, teacher)

    attempt = _attempt(db_session, quiz, student, (0, "4"), (1, "because"), (2, "true"))

    assert attempt.score == 2
    assert attempt.max_score == 3
    assert attempt.is_graded is True
    assert attempt.attempt_number == 1
    assert attempt.completed_at is not None
    assert attempt.student_name == "Grace Hopper"


def test_attempt_unknown_quiz(db_session, student):
    with pytest.raises(QuizNotFound):
        quiz_service.attempt_quiz(db_session, quiz_id=1, student_id=student.id, obj_in=_answers())


def test_attempt_cap_sequential(db_session, teacher, student):
    quiz = _create(db_session, teacher, max_attempts=2)

    first = _attempt(db_session, quiz, student, (0, "3"))
    second = _attempt(db_session, quiz, student, (0, "4"))
    assert [first.attempt_number, second.attempt_number] == [1, 2]

    with pytest.raises(MaxAttemptsReached):
        _attempt(db_session, quiz, student, (0, "4"))

    assert _stored_attempts(db_session, quiz, student) == 2


def test_attempt_cap_is_per_student(db_session, teacher, student, other_student):
    quiz = _create(db_session, teacher, max_attempts=1)

    _attempt(db_session, quiz, student, (0, "4"))
    _attempt(db_session, quiz, other_student, (0, "4"))

    with pytest.raises(MaxAttemptsReached):
        _attempt(db_session, quiz, student, (0, "4"))


def test_attempt_cap_holds_when_count_is_stale(db_session, teacher, student, monkeypatch):
    """
    Two racing requests both read the attempt count before either inserts.
    Simulate that by pinning the count at zero: the second insert must still
    be rejected and leave a single stored attempt.
    """
    quiz = _create(db_session, teacher, max_attempts=1)
    monkeypatch.setattr(quiz_service, "count_attempts", lambda db, **kw: 0)

    _attempt(db_session, quiz, student, (0, "4"))
    with pytest.raises(MaxAttemptsReached):
        _attempt(db_session, quiz, student, (0, "4"))

    assert _stored_attempts(db_session, quiz, student) == 1


def test_lost_slot_under_cap_takes_next_slot(db_session, teacher, student, monkeypatch):
    """
    A request that read a stale count loses its slot to a concurrent attempt;
    with attempts left it recounts and is stored in the next free slot.
    """
    quiz = _create(db_session, teacher, max_attempts=3)
    _attempt(db_session, quiz, student, (0, "4"))

    real_count = quiz_service.count_attempts
    reads = []

    def stale_first_read(db, **kw):
        reads.append(kw)
        return 0 if len(reads) == 1 else real_count(db, **kw)

    monkeypatch.setattr(quiz_service, "count_attempts", stale_first_read)

    second = _attempt(db_session, quiz, student, (0, "4"))

    assert second.attempt_number == 2
    assert len(reads) == 2
    assert _stored_attempts(db_session, quiz, student) == 2


def test_other_integrity_errors_are_not_reported_as_cap(db_session, teacher, student, monkeypatch):
    quiz = _create(db_session, teacher, max_attempts=3)

    def fk_violation():
        raise IntegrityError("INSERT INTO quiz_attempts", {}, Exception("FOREIGN KEY constraint failed"))

    monkeypatch.setattr(db_session, "commit", fk_violation)

    with pytest.raises(IntegrityError):
        _attempt(db_session, quiz, student, (0, "4"))


def test_quiz_results_for_owner(db_session, teacher, student, other_student):
    quiz = _create(db_session, teacher, max_attempts=2)
    _attempt(db_session, quiz, student, (0, "4"), (2, True))
    _attempt(db_session, quiz, other_student, (0, "4"))

    results = quiz_service.get_quiz_results(
        db_session, quiz_id=quiz.id, principal=principal_of(teacher)
    )

    assert results.quiz_title == "Arithmetic check"
    assert results.total_attempts == 2
    assert results.average_score == 1.5


def test_quiz_results_student_sees_only_own(db_session, teacher, student, other_student):
    quiz = _create(db_session, teacher, max_attempts=2)
    _attempt(db_session, quiz, student, (0, "4"))
    _attempt(db_session, quiz, other_student, (0, "4"), (2, True))

    results = quiz_service.get_quiz_results(
        db_session, quiz_id=quiz.id, principal=principal_of(student)
    )

    assert results.total_attempts == 1
    assert results.attempts[0].student_id == student.id
    assert results.average_score == 1.0


def test_quiz_results_rejects_other_teacher_and_parent(db_session, teacher, other_teacher, parent):
    quiz = _create(db_session, teacher)

    for outsider in (other_teacher, parent):
        with pytest.raises(NotAuthorized):
            quiz_service.get_quiz_results(
                db_session, quiz_id=quiz.id, principal=principal_of(outsider)
            )


def test_quiz_results_without_attempts(db_session, teacher):
    quiz = _create(db_session, teacher)

    results = quiz_service.get_quiz_results(
        db_session, quiz_id=quiz.id, principal=principal_of(teacher)
    )
    assert results.total_attempts == 0
    assert results.average_score == 0.0
