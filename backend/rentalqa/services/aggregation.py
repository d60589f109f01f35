"""
RentalQ&A Backend — Questions Aggregation Query
=================================================

What:  Builds the denormalized list the frontend renders: every question
       with its expected and actual responses.
Why:   The three tables are fetched independently and joined in memory by
       foreign key, so the join itself is a pure function that can be tested
       with fixed collections.
How:   QuestionsQuery fetches questions, expected responses and actual
       responses (in that order) through the QuestionStore, joins them with
       aggregate(), and caches the result under QUESTIONS_KEY.

Flow:
    fetch_questions ──▶ fetch_expected_responses ──▶ fetch_actual_responses
          │                     │                            │
          └──── any failure ────┴──────── DataStoreError(stage) ──▶ caller
                                                             │
                                                   aggregate() ──▶ QueryCache
"""

import logging
import uuid
from collections import defaultdict
from typing import Dict, List, Sequence

from rentalqa.exceptions import DataStoreError, ValidationError
from rentalqa.models.question import QuestionCategory
from rentalqa.schemas.question import (
    ActualResponseRecord,
    ExpectedResponseRecord,
    QuestionRecord,
    QuestionWithResponses,
)
from rentalqa.services.query_cache import QueryCache, QueryState
from rentalqa.services.store import QuestionStore

logger = logging.getLogger(__name__)

# Fixed cache key shared by the query (reads) and the mutation (invalidation)
QUESTIONS_KEY = ("questions",)

ALL_CATEGORIES = "all"

_QUESTION_FIELDS = set(QuestionRecord.model_fields)


def aggregate(
    questions: Sequence[QuestionRecord],
    expected: Sequence[ExpectedResponseRecord],
    actual: Sequence[ActualResponseRecord],
) -> List[QuestionWithResponses]:
    """
    Joins responses onto their questions.

    Guarantees:
        - Output order is the order of `questions`.
        - Every question appears, with possibly empty response lists.
        - Each response list is the subsequence of its input whose
          question_id matches, in input order.
        - Responses pointing at a question not in `questions` are dropped.
    """
    expected_by_question: Dict[uuid.UUID, List[ExpectedResponseRecord]] = defaultdict(list)
    for response in expected:
        expected_by_question[response.question_id].append(response)

    actual_by_question: Dict[uuid.UUID, List[ActualResponseRecord]] = defaultdict(list)
    for response in actual:
        actual_by_question[response.question_id].append(response)

    return [
        QuestionWithResponses(
            **question.model_dump(include=_QUESTION_FIELDS),
            expected_responses=expected_by_question.get(question.id, []),
            actual_responses=actual_by_question.get(question.id, []),
        )
        for question in questions
    ]


def filter_questions(
    questions: Sequence[QuestionWithResponses],
    search: str = "",
    category: str = ALL_CATEGORIES,
) -> List[QuestionWithResponses]:
    """
    Category tab + search box filtering over an aggregated list.

    A question matches when the category is "all" or equal to its own, and
    the search term (case-insensitive) occurs in its text or in any tag.

    Raises:
        ValidationError: unknown category value
    """
    valid = {ALL_CATEGORIES} | {c.value for c in QuestionCategory}
    if category not in valid:
        raise ValidationError(
            message=f"Unknown category '{category}'. Must be one of: {sorted(valid)}",
            field="category",
        )

    term = (search or "").strip().lower()

    def matches(q: QuestionWithResponses) -> bool:
        if category != ALL_CATEGORIES and q.category.value != category:
            return False
        if not term:
            return True
        return term in q.question.lower() or any(term in tag.lower() for tag in q.tags)

    return [q for q in questions if matches(q)]


class QuestionsQuery:
    """
    The read side: one cached, single-flight aggregation of all questions.

    Args:
        store: where the three collections come from
        cache: shared with CreateQuestionMutation, which invalidates QUESTIONS_KEY
    """

    def __init__(self, store: QuestionStore, cache: QueryCache):
        self.store = store
        self.cache = cache

    async def fetch(self) -> List[QuestionWithResponses]:
        """
        Returns the aggregated list, from cache when fresh.

        Raises:
            DataStoreError: one of the three fetches failed; nothing is cached
        """
        return await self.cache.fetch(QUESTIONS_KEY, self.load)

    def state(self) -> QueryState:
        return self.cache.state(QUESTIONS_KEY)

    async def load(self) -> List[QuestionWithResponses]:
        """Uncached fetch-and-join. No retries."""
        logger.info("Fetching questions from database")
        questions = await self._fetch_stage("questions", self.store.fetch_questions)
        logger.debug("Fetched %d questions", len(questions))

        expected = await self._fetch_stage(
            "expected_responses", self.store.fetch_expected_responses
        )
        actual = await self._fetch_stage(
            "actual_responses", self.store.fetch_actual_responses
        )

        result = aggregate(questions, expected, actual)
        logger.info(
            "Aggregated %d questions (%d expected, %d actual responses)",
            len(result),
            len(expected),
            len(actual),
        )
        return result

    async def _fetch_stage(self, stage, fetch):
        try:
            return await fetch()
        except Exception as e:
            logger.error("Error fetching %s: %s", stage, e)
            raise DataStoreError(stage=stage, original=e) from e
