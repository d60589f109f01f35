"""
RentalQ&A Backend — Question and Response SQLAlchemy Models
=============================================================

What:  ORM models for the `questions`, `expected_responses` and
       `actual_responses` tables.
Why:   Maps Python objects to rows for the SQLAlchemy question store;
       Alembic reads the metadata for migrations.
Who:   Used by SqlAlchemyQuestionStore and alembic/env.py.

Table Design Rationale:
    - UUID primary keys, generated client-side so the new id is known
      before the INSERT returns.
    - tags: PostgreSQL TEXT[] (JSON on SQLite so the test suite can run
      against an in-memory database).
    - Enum types are named to match the migration (`question_category`,
      `response_outcome`) and store the hyphenated values, not the member names.
    - Responses reference questions by foreign key; the join happens in
      memory (services/aggregation.py), so no ORM relationship() is declared.
"""

import enum
import uuid
from datetime import datetime, timezone
from typing import List, Optional

from sqlalchemy import JSON, DateTime, Enum, ForeignKey, Index, Integer, String, Text, Uuid
from sqlalchemy.dialects.postgresql import ARRAY
from sqlalchemy.orm import Mapped, mapped_column

from rentalqa.database import Base


class QuestionCategory(str, enum.Enum):
    """Who asks whom."""
    TENANT_TO_LANDLORD = "tenant-to-landlord"
    LANDLORD_TO_TENANT = "landlord-to-tenant"


class ResponseOutcome(str, enum.Enum):
    """How an actual response turned out for the person who asked."""
    POSITIVE = "positive"
    NEGATIVE = "negative"
    NEUTRAL = "neutral"


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def _enum_values(enum_cls) -> List[str]:
    return [member.value for member in enum_cls]


TagList = ARRAY(String).with_variant(JSON(), "sqlite")


class Question(Base):
    """
    A question one side of a rental asks the other.

    Lifecycle:
        Created by a submission; never updated or deleted by this service.
    """

    __tablename__ = "questions"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)

    category: Mapped[QuestionCategory] = mapped_column(
        Enum(
            QuestionCategory,
            name="question_category",
            values_callable=_enum_values,
        ),
        nullable=False,
    )

    question: Mapped[str] = mapped_column(Text, nullable=False)

    # Order-preserving; NULL is read back as []
    tags: Mapped[Optional[List[str]]] = mapped_column(TagList, nullable=True, default=list)

    votes: Mapped[Optional[int]] = mapped_column(Integer, nullable=True, default=0)

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=_utcnow,
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=_utcnow, onupdate=_utcnow,
    )

    def __repr__(self) -> str:
        return f"<Question(id={self.id}, category='{self.category}')>"


class ExpectedResponse(Base):
    """The answer the community considers a good one for a question."""

    __tablename__ = "expected_responses"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    question_id: Mapped[uuid.UUID] = mapped_column(
        Uuid, ForeignKey("questions.id", ondelete="CASCADE"), nullable=False,
    )
    response: Mapped[str] = mapped_column(Text, nullable=False)
    votes: Mapped[Optional[int]] = mapped_column(Integer, nullable=True, default=0)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=_utcnow,
    )

    def __repr__(self) -> str:
        return f"<ExpectedResponse(id={self.id}, question_id={self.question_id})>"


class ActualResponse(Base):
    """An answer someone really received, with how it turned out."""

    __tablename__ = "actual_responses"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    question_id: Mapped[uuid.UUID] = mapped_column(
        Uuid, ForeignKey("questions.id", ondelete="CASCADE"), nullable=False,
    )
    response: Mapped[str] = mapped_column(Text, nullable=False)
    outcome: Mapped[ResponseOutcome] = mapped_column(
        Enum(
            ResponseOutcome,
            name="response_outcome",
            values_callable=_enum_values,
        ),
        nullable=False,
        default=ResponseOutcome.NEUTRAL,
    )
    context: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    votes: Mapped[Optional[int]] = mapped_column(Integer, nullable=True, default=0)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=_utcnow,
    )

    def __repr__(self) -> str:
        return (
            f"<ActualResponse(id={self.id}, question_id={self.question_id}, "
            f"outcome='{self.outcome}')>"
        )


# Names match the initial migration
Index("idx_questions_created_at", Question.created_at.desc())
Index("idx_expected_responses_question_id", ExpectedResponse.question_id)
Index("idx_expected_responses_votes", ExpectedResponse.votes.desc())
Index("idx_actual_responses_question_id", ActualResponse.question_id)
Index("idx_actual_responses_votes", ActualResponse.votes.desc())
