"""
Error taxonomy shared by services and routes.

Services raise these; routes translate them into HTTP responses
(NotFoundError -> 404, ValidationFailed -> 400). Locked lessons are not
errors and never appear here, see services.entitlement_service.
"""


class NotFoundError(LookupError):
    """A referenced test, lesson, enrollment, subscription or user is missing."""


class ValidationFailed(ValueError):
    """The request cannot be applied as given. Nothing is written."""


class MalformedAnswerError(ValidationFailed):
    def __init__(self, question_id, question_type: str, expected: str):
        self.question_id = question_id
        self.question_type = question_type
        super().__init__(
            f"Answer for question {question_id} ({question_type}) must be {expected}"
        )


class UnexpectedQuestionTypeError(ValidationFailed):
    def __init__(self, question_id, question_type):
        self.question_id = question_id
        self.question_type = question_type
        super().__init__(f"Question {question_id} has unexpected type {question_type!r}")


class InvalidTransitionError(ValidationFailed):
    """A forward-only state machine was asked to move backwards or sideways."""
