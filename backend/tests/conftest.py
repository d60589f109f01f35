"""
RentalQ&A Backend — Test Configuration (conftest.py)
======================================================

What:  Shared pytest fixtures for the entire test suite.
How:   pytest auto-discovers conftest.py and makes fixtures available to all tests.

Fixture Hierarchy:
    Function-scoped:
    ├── memory_store: in-memory QuestionStore with failure injection
    ├── query_cache: fresh QueryCache (60s staleness)
    ├── sample_records: a fixed question/response set, including an orphan
    ├── notifications: list collecting submission toasts
    └── test_client: HTTPX AsyncClient on an app wired to memory_store
"""

import os
import uuid
from datetime import datetime, timedelta, timezone
from typing import Dict, List, Optional, Sequence

# Override settings for testing BEFORE any rentalqa imports
os.environ["DATABASE_URL"] = "sqlite+aiosqlite:///:memory:"
os.environ["LOG_LEVEL"] = "WARNING"
os.environ["SEED_SAMPLE_DATA"] = "false"

import pytest
import pytest_asyncio
from httpx import AsyncClient, ASGITransport

from rentalqa.models.question import QuestionCategory, ResponseOutcome
from rentalqa.schemas.question import (
    ActualResponseRecord,
    ExpectedResponseRecord,
    QuestionRecord,
)
from rentalqa.services.query_cache import QueryCache
from rentalqa.services.store import QuestionStore


BASE_TIME = datetime(2025, 1, 15, 12, 0, tzinfo=timezone.utc)


class StoreFailure(Exception):
    """Stands in for a driver error (connection reset, constraint violation)."""


class InMemoryQuestionStore(QuestionStore):
    """
    QuestionStore keeping rows in lists, ordered like the SQL store.

    Failure injection:
        store.fail_on["insert_expected_response"] = StoreFailure("boom")
    makes that operation raise until the key is removed.

    `calls` records every operation name in order.
    """

    def __init__(self):
        self.questions: List[QuestionRecord] = []
        self.expected: List[ExpectedResponseRecord] = []
        self.actual: List[ActualResponseRecord] = []
        self.fail_on: Dict[str, Exception] = {}
        self.calls: List[str] = []
        self._tick = 0

    def _enter(self, name: str) -> None:
        self.calls.append(name)
        if name in self.fail_on:
            raise self.fail_on[name]

    def _now(self) -> datetime:
        self._tick += 1
        return BASE_TIME + timedelta(seconds=self._tick)

    @staticmethod
    def _by_votes(rows):
        # votes DESC, then created_at ASC, then id ASC
        return sorted(rows, key=lambda r: (-r.votes, r.created_at, str(r.id)))

    async def fetch_questions(self) -> List[QuestionRecord]:
        self._enter("fetch_questions")
        return sorted(
            self.questions, key=lambda q: (q.created_at, str(q.id)), reverse=True,
        )

    async def fetch_expected_responses(self) -> List[ExpectedResponseRecord]:
        self._enter("fetch_expected_responses")
        return self._by_votes(self.expected)

    async def fetch_actual_responses(self) -> List[ActualResponseRecord]:
        self._enter("fetch_actual_responses")
        return self._by_votes(self.actual)

    async def insert_question(
        self,
        question: str,
        category: QuestionCategory,
        tags: Sequence[str] = (),
        votes: Optional[int] = None,
    ) -> QuestionRecord:
        self._enter("insert_question")
        now = self._now()
        record = QuestionRecord(
            id=uuid.uuid4(),
            category=category,
            question=question,
            tags=list(tags),
            votes=votes,
            created_at=now,
            updated_at=now,
        )
        self.questions.append(record)
        return record

    async def insert_expected_response(
        self,
        question_id: uuid.UUID,
        response: str,
        votes: Optional[int] = None,
    ) -> ExpectedResponseRecord:
        self._enter("insert_expected_response")
        record = ExpectedResponseRecord(
            id=uuid.uuid4(),
            question_id=question_id,
            response=response,
            votes=votes,
            created_at=self._now(),
        )
        self.expected.append(record)
        return record

    async def insert_actual_response(
        self,
        question_id: uuid.UUID,
        response: str,
        outcome: ResponseOutcome = ResponseOutcome.NEUTRAL,
        context: Optional[str] = None,
        votes: Optional[int] = None,
    ) -> ActualResponseRecord:
        self._enter("insert_actual_response")
        record = ActualResponseRecord(
            id=uuid.uuid4(),
            question_id=question_id,
            response=response,
            outcome=outcome,
            context=context,
            votes=votes,
            created_at=self._now(),
        )
        self.actual.append(record)
        return record

    async def count_questions(self) -> int:
        self._enter("count_questions")
        return len(self.questions)


def make_question(**overrides) -> QuestionRecord:
    data = {
        "id": uuid.uuid4(),
        "category": QuestionCategory.TENANT_TO_LANDLORD,
        "question": "Is parking included?",
        "tags": [],
        "votes": 0,
        "created_at": BASE_TIME,
        "updated_at": BASE_TIME,
    }
    data.update(overrides)
    return QuestionRecord(**data)


def make_expected(question_id, **overrides) -> ExpectedResponseRecord:
    data = {
        "id": uuid.uuid4(),
        "question_id": question_id,
        "response": "Yes, one space per unit.",
        "votes": 0,
        "created_at": BASE_TIME,
    }
    data.update(overrides)
    return ExpectedResponseRecord(**data)


def make_actual(question_id, **overrides) -> ActualResponseRecord:
    data = {
        "id": uuid.uuid4(),
        "question_id": question_id,
        "response": "Street parking only.",
        "outcome": ResponseOutcome.NEUTRAL,
        "context": None,
        "votes": 0,
        "created_at": BASE_TIME,
    }
    data.update(overrides)
    return ActualResponseRecord(**data)


@pytest.fixture
def memory_store() -> InMemoryQuestionStore:
    return InMemoryQuestionStore()


@pytest.fixture
def query_cache() -> QueryCache:
    return QueryCache(stale_after=60)


@pytest.fixture
def sample_records():
    """
    Two questions (newest first) with responses already in vote order,
    plus one expected response whose question no longer exists.
    """
    newer = make_question(
        question="Do you allow pets?",
        tags=["Pets", "deposit"],
        created_at=BASE_TIME + timedelta(days=1),
        updated_at=BASE_TIME + timedelta(days=1),
    )
    older = make_question(
        category=QuestionCategory.LANDLORD_TO_TENANT,
        question="Why are you moving?",
        tags=["history"],
    )
    orphan_question_id = uuid.uuid4()

    expected = [
        make_expected(older.id, response="Job relocation.", votes=9),
        make_expected(newer.id, response="Yes, with a deposit.", votes=5),
        make_expected(orphan_question_id, response="Orphaned.", votes=3),
        make_expected(newer.id, response="Cats only.", votes=1),
    ]
    actual = [
        make_actual(newer.id, response="No pets ever.", outcome=ResponseOutcome.NEGATIVE, votes=4),
        make_actual(newer.id, response="Sure, small dogs.", outcome=ResponseOutcome.POSITIVE, votes=2),
    ]
    return {"questions": [newer, older], "expected": expected, "actual": actual}


@pytest.fixture
def notifications():
    return []


@pytest_asyncio.fixture
async def test_client(memory_store, query_cache, notifications):
    """
    HTTPX AsyncClient routed straight into an app wired to memory_store.

    Usage:
        async def test_health(test_client):
            response = await test_client.get("/health")
    """
    from rentalqa.main import create_app

    app = create_app(store=memory_store, cache=query_cache, notify=notifications.append)
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as client:
        yield client
