"""
RentalQ&A Backend — Custom Exception Hierarchy
================================================

What:  Application-specific exceptions for the read and write paths.
Why:   Global exception handlers (registered in main.py) map each type to an
       HTTP status code and a consistent JSON error body.
How:   Each exception carries a user-facing message and a context dict.
       Data-store failures keep the original exception untouched on
       `.original` (and as `__cause__` when raised with `from`), so callers
       can still inspect the driver error.

Exception Hierarchy:
    RentalQAError (base)
    ├── ValidationError   → 400 Bad Request
    ├── DataStoreError    → 503 Service Unavailable (a list fetch failed)
    └── SubmissionError   → 500 Internal Server Error (an insert step failed)
"""

from typing import Any, Dict, Optional


class RentalQAError(Exception):
    """
    Base exception for all RentalQ&A application errors.

    Attributes:
        message:  User-facing error description (safe to return in API response)
        context:  Additional debug info (logged, returned only where safe)
    """

    def __init__(
        self,
        message: str = "An unexpected error occurred",
        context: Optional[Dict[str, Any]] = None,
    ):
        self.message = message
        self.context = context or {}
        super().__init__(self.message)


class ValidationError(RentalQAError):
    """
    Raised when client input fails a business rule the schema cannot express.

    HTTP: 400 Bad Request
    """

    def __init__(
        self,
        message: str = "Validation failed",
        field: Optional[str] = None,
        context: Optional[Dict[str, Any]] = None,
    ):
        ctx = context or {}
        if field:
            ctx["field"] = field
        super().__init__(message=message, context=ctx)
        self.field = field


class DataStoreError(RentalQAError):
    """
    Raised when one of the three aggregation fetches fails.

    What:    The whole aggregation is abandoned; nothing partial is returned
             or cached.
    stage:   "questions", "expected_responses" or "actual_responses"
    HTTP:    503 Service Unavailable (the list is retryable as-is)
    """

    def __init__(
        self,
        stage: str,
        original: BaseException,
        context: Optional[Dict[str, Any]] = None,
    ):
        ctx = context or {}
        ctx["stage"] = stage
        ctx["error_type"] = type(original).__name__
        super().__init__(
            message=f"Could not load questions (fetching {stage} failed). Please try again.",
            context=ctx,
        )
        self.stage = stage
        self.original = original


class SubmissionError(RentalQAError):
    """
    Raised when a step of a question submission fails.

    What:    Steps run in order (question, expected_response, actual_response)
             and earlier inserts are NOT rolled back. When `question` is set,
             that row exists in the store even though the submission failed.
    HTTP:    500 Internal Server Error
    """

    STEP_MESSAGES = {
        "question": "question creation failed",
        "expected_response": "expected response creation failed",
        "actual_response": "actual response creation failed",
    }

    def __init__(
        self,
        step: str,
        original: BaseException,
        question: Optional[Any] = None,
        context: Optional[Dict[str, Any]] = None,
    ):
        ctx = context or {}
        ctx["step"] = step
        ctx["error_type"] = type(original).__name__
        if question is not None:
            ctx["question_id"] = str(question.id)
        super().__init__(
            message=self.STEP_MESSAGES.get(step, f"{step} failed"),
            context=ctx,
        )
        self.step = step
        self.question = question
        self.original = original
