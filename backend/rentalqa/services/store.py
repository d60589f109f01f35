"""
RentalQ&A Backend — Question Store (Data-Store Boundary)
==========================================================

What:  Abstract interface for the three tables plus its SQLAlchemy
       implementation.
Why:   The aggregation query and the submission mutation only need
       "fetch everything, ordered" and "insert one row". Keeping that behind
       an interface lets both be tested with an in-memory store.
How:   Every operation opens its own session and, for inserts, commits
       before returning. A submission is therefore a sequence of independent
       commits: a later failing insert never rolls back an earlier one.

Ordering contract (documented tie-breaks):
    questions:           created_at DESC, id DESC
    expected_responses:  votes DESC (NULL as 0), created_at ASC, id ASC
    actual_responses:    votes DESC (NULL as 0), created_at ASC, id ASC

Errors:
    Driver/ORM exceptions propagate unmodified. Callers decide how to
    report them.
"""

import logging
import uuid
from abc import ABC, abstractmethod
from typing import List, Optional, Sequence

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from rentalqa.models.question import (
    ActualResponse,
    ExpectedResponse,
    Question,
    QuestionCategory,
    ResponseOutcome,
)
from rentalqa.schemas.question import (
    ActualResponseRecord,
    ExpectedResponseRecord,
    QuestionRecord,
)

logger = logging.getLogger(__name__)


class QuestionStore(ABC):
    """
    Interface every question store must implement.

    Contract:
        - fetch_* return complete collections in the documented order
        - insert_* persist one row durably before returning it
        - no method retries, and no method translates errors
    """

    @abstractmethod
    async def fetch_questions(self) -> List[QuestionRecord]:
        """All questions, newest first."""
        ...

    @abstractmethod
    async def fetch_expected_responses(self) -> List[ExpectedResponseRecord]:
        """All expected responses, most votes first."""
        ...

    @abstractmethod
    async def fetch_actual_responses(self) -> List[ActualResponseRecord]:
        """All actual responses, most votes first."""
        ...

    @abstractmethod
    async def insert_question(
        self,
        question: str,
        category: QuestionCategory,
        tags: Sequence[str] = (),
        votes: Optional[int] = None,
    ) -> QuestionRecord:
        """Insert a question; returns the row with its generated id."""
        ...

    @abstractmethod
    async def insert_expected_response(
        self,
        question_id: uuid.UUID,
        response: str,
        votes: Optional[int] = None,
    ) -> ExpectedResponseRecord:
        ...

    @abstractmethod
    async def insert_actual_response(
        self,
        question_id: uuid.UUID,
        response: str,
        outcome: ResponseOutcome = ResponseOutcome.NEUTRAL,
        context: Optional[str] = None,
        votes: Optional[int] = None,
    ) -> ActualResponseRecord:
        ...

    @abstractmethod
    async def count_questions(self) -> int:
        ...


class SqlAlchemyQuestionStore(QuestionStore):
    """
    QuestionStore backed by async SQLAlchemy.

    Args:
        session_factory: async_sessionmaker producing AsyncSession objects.
                         Must use expire_on_commit=False so rows stay
                         readable after commit.
    """

    def __init__(self, session_factory: async_sessionmaker[AsyncSession]):
        self._session_factory = session_factory

    async def fetch_questions(self) -> List[QuestionRecord]:
        query = select(Question).order_by(Question.created_at.desc(), Question.id.desc())
        async with self._session_factory() as session:
            result = await session.execute(query)
            return [QuestionRecord.model_validate(row) for row in result.scalars().all()]

    async def fetch_expected_responses(self) -> List[ExpectedResponseRecord]:
        query = select(ExpectedResponse).order_by(
            func.coalesce(ExpectedResponse.votes, 0).desc(),
            ExpectedResponse.created_at.asc(),
            ExpectedResponse.id.asc(),
        )
        async with self._session_factory() as session:
            result = await session.execute(query)
            return [ExpectedResponseRecord.model_validate(row) for row in result.scalars().all()]

    async def fetch_actual_responses(self) -> List[ActualResponseRecord]:
        query = select(ActualResponse).order_by(
            func.coalesce(ActualResponse.votes, 0).desc(),
            ActualResponse.created_at.asc(),
            ActualResponse.id.asc(),
        )
        async with self._session_factory() as session:
            result = await session.execute(query)
            return [ActualResponseRecord.model_validate(row) for row in result.scalars().all()]

    async def insert_question(
        self,
        question: str,
        category: QuestionCategory,
        tags: Sequence[str] = (),
        votes: Optional[int] = None,
    ) -> QuestionRecord:
        row = Question(question=question, category=category, tags=list(tags))
        if votes is not None:
            row.votes = votes
        await self._commit(row)
        return QuestionRecord.model_validate(row)

    async def insert_expected_response(
        self,
        question_id: uuid.UUID,
        response: str,
        votes: Optional[int] = None,
    ) -> ExpectedResponseRecord:
        row = ExpectedResponse(question_id=question_id, response=response)
        if votes is not None:
            row.votes = votes
        await self._commit(row)
        return ExpectedResponseRecord.model_validate(row)

    async def insert_actual_response(
        self,
        question_id: uuid.UUID,
        response: str,
        outcome: ResponseOutcome = ResponseOutcome.NEUTRAL,
        context: Optional[str] = None,
        votes: Optional[int] = None,
    ) -> ActualResponseRecord:
        row = ActualResponse(
            question_id=question_id,
            response=response,
            outcome=outcome,
            context=context,
        )
        if votes is not None:
            row.votes = votes
        await self._commit(row)
        return ActualResponseRecord.model_validate(row)

    async def count_questions(self) -> int:
        async with self._session_factory() as session:
            result = await session.execute(select(func.count(Question.id)))
            return result.scalar() or 0

    async def _commit(self, row) -> None:
        # One row, one transaction. Rolled back only if this INSERT fails.
        async with self._session_factory() as session:
            async with session.begin():
                session.add(row)
        logger.debug("Inserted %r", row)
