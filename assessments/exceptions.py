"""
Errors raised by the exam session lifecycle.

Every error carries the authoritative session ``state`` and, once known, the
recorded ``submitted_at`` and ``result`` so the request layer can always tell
the client where the session stands.
"""


class SessionError(Exception):
    code = "session_error"
    default_message = "The exam session request failed."

    def __init__(self, message=None, state=None, submitted_at=None, result=None):
        super().__init__(message or self.default_message)
        self.message = message or self.default_message
        self.state = state
        self.submitted_at = submitted_at
        self.result = result


class PreconditionViolation(SessionError):
    """Caller-correctable; never retried by the core."""
    code = "precondition_violation"


class WindowClosed(PreconditionViolation):
    code = "window_closed"
    default_message = "The exam window has closed."


class ExamNotStarted(PreconditionViolation):
    code = "exam_not_started"
    default_message = "The exam has not started yet."


class SessionNotInProgress(PreconditionViolation):
    code = "session_not_in_progress"
    default_message = "The exam session is not in progress."


class QuestionNotInExam(PreconditionViolation):
    code = "question_not_in_exam"
    default_message = "The question does not belong to this exam."


class InvalidOption(PreconditionViolation):
    code = "invalid_option"
    default_message = "The selected option is not a valid choice."


class ExamNotAssigned(PreconditionViolation):
    code = "exam_not_assigned"
    default_message = "The participant is not assigned to this exam."


class ExamNotFound(PreconditionViolation):
    code = "exam_not_found"
    default_message = "Exam not found."


class AlreadySubmitted(SessionError):
    """Benign: the session was finalized earlier. Carries the recorded result."""
    code = "already_submitted"
    default_message = "The exam has already been submitted."


class PersistenceFailure(SessionError):
    """The store could not complete the operation; safe for the caller to retry."""
    code = "persistence_failure"
    default_message = "The exam session could not be saved. Please retry."
