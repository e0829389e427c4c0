# assessment_engine/services/errors.py
"""
Classified errors raised by the lifecycle services.

The API layer maps each kind to a response; services never build HTTP
responses themselves. Store failures are not wrapped and surface as
``sqlalchemy.exc.SQLAlchemyError``.
"""


class AssessmentError(Exception):
    code = "ASSESSMENT_ERROR"
    message = "assessment error"

    def __init__(self, message: str | None = None):
        super().__init__(message or self.message)
        self.message = message or self.message


class NotFoundError(AssessmentError):
    code = "NOT_FOUND"
    message = "not found"


class HomeworkNotFound(NotFoundError):
    code = "HOMEWORK_NOT_FOUND"
    message = "homework not found"


class SubmissionNotFound(NotFoundError):
    code = "SUBMISSION_NOT_FOUND"
    message = "submission not found"


class QuizNotFound(NotFoundError):
    code = "QUIZ_NOT_FOUND"
    message = "quiz not found"


class AttemptNotFound(NotFoundError):
    code = "ATTEMPT_NOT_FOUND"
    message = "attempt not found"


class ReviewNotFound(NotFoundError):
    code = "REVIEW_NOT_FOUND"
    message = "review not found"


class SessionNotFound(NotFoundError):
    code = "SESSION_NOT_FOUND"
    message = "session not found"


class NotificationNotFound(NotFoundError):
    code = "NOTIFICATION_NOT_FOUND"
    message = "notification not found"


class NotAuthorized(AssessmentError):
    code = "NOT_AUTHORIZED"
    message = "not authorized"


class ConflictError(AssessmentError):
    code = "CONFLICT"
    message = "conflict"


class AlreadySubmitted(ConflictError):
    code = "ALREADY_SUBMITTED"
    message = "already submitted"


class AlreadyReviewed(ConflictError):
    code = "ALREADY_REVIEWED"
    message = "already reviewed this session"


class MaxAttemptsReached(ConflictError):
    code = "MAX_ATTEMPTS_REACHED"
    message = "max attempts reached"


class PreconditionFailed(AssessmentError):
    code = "PRECONDITION_FAILED"
    message = "precondition failed"


class SessionNotDone(PreconditionFailed):
    code = "SESSION_NOT_DONE"
    message = "session must be completed before reviewing"
