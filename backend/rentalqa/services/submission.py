"""
RentalQ&A Backend — Question Submission (Mutation + Cache Sync)
=================================================================

What:  Creates a question and its optional first responses, then
       invalidates the cached aggregation.
Why:   The write side of the list page. After a successful submission the
       next list read must include the new question.
How:   Three inserts, strictly in order, each committed on its own:

    ┌──────────────┐    ┌─────────────────────┐    ┌───────────────────┐
    │ 1. question  │───▶│ 2. expected response│───▶│ 3. actual response│
    └──────────────┘    │   (if text given)   │    │  (if text given,  │
                        └─────────────────────┘    │  outcome=neutral) │
                                                   └───────────────────┘
    Step 1 fails → nothing else runs.
    Step 2/3 fails → the rows already inserted stay; there is no
    compensating delete.

    Success → invalidate QUESTIONS_KEY once, success notification.
    Failure → cache untouched, error notification.

Each call produces a new Submission (idle → submitting → succeeded | failed)
recording which step failed and the unmodified store error, so partial
outcomes like "question created, expected response failed" are observable.
"""

import logging
from dataclasses import dataclass
from enum import Enum
from typing import Callable, Optional

from rentalqa.exceptions import SubmissionError
from rentalqa.models.question import ResponseOutcome
from rentalqa.schemas.question import (
    ActualResponseRecord,
    CreateQuestionRequest,
    ExpectedResponseRecord,
    Notification,
    QuestionRecord,
)
from rentalqa.services.aggregation import QUESTIONS_KEY
from rentalqa.services.query_cache import QueryCache
from rentalqa.services.store import QuestionStore

logger = logging.getLogger(__name__)


class MutationStatus(str, Enum):
    IDLE = "idle"
    SUBMITTING = "submitting"
    SUCCEEDED = "succeeded"
    FAILED = "failed"


class SubmissionStep(str, Enum):
    QUESTION = "question"
    EXPECTED_RESPONSE = "expected_response"
    ACTUAL_RESPONSE = "actual_response"


SUCCESS_NOTIFICATION = Notification(
    title="Success!",
    description="Your question has been submitted successfully.",
)

ERROR_NOTIFICATION = Notification(
    title="Error",
    description="Failed to submit your question. Please try again.",
    variant="destructive",
)


@dataclass
class Submission:
    """
    Outcome of one submission attempt. Terminal once status is
    SUCCEEDED or FAILED; a retry is a new Submission.

    Observable partial states:
        failed_step=QUESTION:           nothing was written
        failed_step=EXPECTED_RESPONSE:  question exists, no responses
        failed_step=ACTUAL_RESPONSE:    question (+ expected response) exist
    """
    request: CreateQuestionRequest
    status: MutationStatus = MutationStatus.IDLE
    question: Optional[QuestionRecord] = None
    expected_response: Optional[ExpectedResponseRecord] = None
    actual_response: Optional[ActualResponseRecord] = None
    failed_step: Optional[SubmissionStep] = None
    error: Optional[Exception] = None
    notification: Optional[Notification] = None

    @property
    def succeeded(self) -> bool:
        return self.status == MutationStatus.SUCCEEDED

    def raise_for_status(self) -> None:
        """Raises SubmissionError if this submission failed."""
        if self.status != MutationStatus.FAILED:
            return
        raise SubmissionError(
            step=self.failed_step.value,
            original=self.error,
            question=self.question,
        ) from self.error


Notifier = Callable[[Notification], None]


def log_notification(notification: Notification) -> None:
    """Default notifier: the toast goes to the log."""
    level = logging.WARNING if notification.variant == "destructive" else logging.INFO
    logger.log(level, "%s %s", notification.title, notification.description)


class CreateQuestionMutation:
    """
    The write side. Shares its QueryCache with QuestionsQuery.

    Concurrency:
        No locking. Concurrent submissions interleave freely and identical
        question texts are accepted. `is_pending` is true while any
        submission made through this instance is running.
    """

    def __init__(
        self,
        store: QuestionStore,
        cache: QueryCache,
        notify: Notifier = log_notification,
    ):
        self.store = store
        self.cache = cache
        self.notify = notify
        self._pending = 0

    @property
    def is_pending(self) -> bool:
        return self._pending > 0

    async def mutate(self, request: CreateQuestionRequest) -> QuestionRecord:
        """
        Submits and returns the created question.

        Raises:
            SubmissionError: a step failed; `.step` names it, `.original` is
                             the store error, `.question` is set when the
                             question row was already created
        """
        submission = await self.submit(request)
        submission.raise_for_status()
        return submission.question

    async def submit(self, request: CreateQuestionRequest) -> Submission:
        """Runs one submission and returns its terminal Submission. Store errors are captured, not raised."""
        submission = Submission(request=request)
        submission.status = MutationStatus.SUBMITTING
        logger.info("Creating question (category=%s)", request.category.value)

        self._pending += 1
        try:
            await self._run_steps(submission)
        finally:
            self._pending -= 1

        if submission.failed_step is None:
            submission.status = MutationStatus.SUCCEEDED
            submission.notification = SUCCESS_NOTIFICATION
            self.cache.invalidate(QUESTIONS_KEY)
            logger.info("Created question %s", submission.question.id)
        else:
            submission.status = MutationStatus.FAILED
            submission.notification = ERROR_NOTIFICATION
            logger.error(
                "Error submitting question: %s failed: %s",
                submission.failed_step.value,
                submission.error,
            )

        self.notify(submission.notification)
        return submission

    async def _run_steps(self, submission: Submission) -> None:
        request = submission.request

        try:
            submission.question = await self.store.insert_question(
                question=request.question,
                category=request.category,
                tags=request.tags,
            )
        except Exception as e:
            self._fail(submission, SubmissionStep.QUESTION, e)
            return

        question_id = submission.question.id

        if request.expected_response:
            try:
                submission.expected_response = await self.store.insert_expected_response(
                    question_id=question_id,
                    response=request.expected_response,
                )
            except Exception as e:
                self._fail(submission, SubmissionStep.EXPECTED_RESPONSE, e)
                return

        if request.actual_response:
            try:
                submission.actual_response = await self.store.insert_actual_response(
                    question_id=question_id,
                    response=request.actual_response,
                    outcome=ResponseOutcome.NEUTRAL,
                )
            except Exception as e:
                self._fail(submission, SubmissionStep.ACTUAL_RESPONSE, e)
                return

    @staticmethod
    def _fail(submission: Submission, step: SubmissionStep, error: Exception) -> None:
        submission.failed_step = step
        submission.error = error
        logger.error("Error creating %s: %s", step.value.replace("_", " "), error)
