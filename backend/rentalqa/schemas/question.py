"""
RentalQ&A Backend — Pydantic Record and Request/Response Schemas
==================================================================

What:  Immutable record types read from the store, the derived
       QuestionWithResponses view, and the HTTP request/response contracts.
Why:   The aggregation and mutation layers work on plain validated values,
       never on live ORM rows, so they can be tested without a database.
How:   Records are built from ORM rows with `model_validate(row)`
       (from_attributes). Response lists serialize as camelCase
       (`expectedResponses`, `actualResponses`) to match the frontend.
"""

import uuid
from datetime import datetime
from typing import List, Literal, Optional

from pydantic import BaseModel, Field, field_validator

from rentalqa.models.question import QuestionCategory, ResponseOutcome


DEFAULT_CATEGORY = QuestionCategory.TENANT_TO_LANDLORD


# ══════════════════════════════════════════════════════════════════════════
# Records: rows as fetched from the store
# ══════════════════════════════════════════════════════════════════════════


class QuestionRecord(BaseModel):
    """A question as stored. `tags` and `votes` are never None once read."""
    id: uuid.UUID
    category: QuestionCategory
    question: str
    tags: List[str] = Field(default_factory=list)
    votes: int = 0
    created_at: datetime
    updated_at: datetime

    model_config = {"from_attributes": True, "frozen": True}

    @field_validator("tags", mode="before")
    @classmethod
    def tags_default(cls, v):
        return [] if v is None else v

    @field_validator("votes", mode="before")
    @classmethod
    def votes_default(cls, v):
        return 0 if v is None else v


class ExpectedResponseRecord(BaseModel):
    id: uuid.UUID
    question_id: uuid.UUID
    response: str
    votes: int = 0
    created_at: datetime

    model_config = {"from_attributes": True, "frozen": True}

    @field_validator("votes", mode="before")
    @classmethod
    def votes_default(cls, v):
        return 0 if v is None else v


class ActualResponseRecord(BaseModel):
    id: uuid.UUID
    question_id: uuid.UUID
    response: str
    outcome: ResponseOutcome = ResponseOutcome.NEUTRAL
    context: Optional[str] = None
    votes: int = 0
    created_at: datetime

    model_config = {"from_attributes": True, "frozen": True}

    @field_validator("votes", mode="before")
    @classmethod
    def votes_default(cls, v):
        return 0 if v is None else v


class QuestionWithResponses(QuestionRecord):
    """
    What:  A question plus its responses, each list ordered by votes descending.
    Who:   Produced by services.aggregation.aggregate(); the only shape the
           list endpoint returns.
    When:  Recomputed on every fetch; never persisted.
    """
    expected_responses: List[ExpectedResponseRecord] = Field(
        default_factory=list, serialization_alias="expectedResponses",
    )
    actual_responses: List[ActualResponseRecord] = Field(
        default_factory=list, serialization_alias="actualResponses",
    )


# ══════════════════════════════════════════════════════════════════════════
# Request Models
# ══════════════════════════════════════════════════════════════════════════


class CreateQuestionRequest(BaseModel):
    """
    What:  Body of POST /api/questions.
    How:   Accepts the frontend's camelCase keys and snake_case alike.

    `expected_response` is optional here: the submission form requires it,
    the store does not, and a submission without it creates a bare question.
    """
    question: str = Field(description="The question text")
    expected_response: Optional[str] = Field(
        default=None, alias="expectedResponse",
        description="First expected response (inserted when non-empty)",
    )
    actual_response: Optional[str] = Field(
        default=None, alias="actualResponse",
        description="First actual response (inserted with outcome 'neutral' when non-empty)",
    )
    category: QuestionCategory = Field(default=DEFAULT_CATEGORY)
    tags: List[str] = Field(default_factory=list)

    model_config = {"populate_by_name": True}

    @field_validator("question")
    @classmethod
    def question_not_blank(cls, v: str) -> str:
        stripped = v.strip()
        if not stripped:
            raise ValueError("Question text must not be empty")
        return stripped


# ══════════════════════════════════════════════════════════════════════════
# Response Models
# ══════════════════════════════════════════════════════════════════════════


class Notification(BaseModel):
    """
    What:  User-visible toast emitted by a submission.
    variant: "default" on success, "destructive" on failure.
    """
    title: str
    description: str
    variant: Literal["default", "destructive"] = "default"


class QuestionListResponse(BaseModel):
    questions: List[QuestionWithResponses] = Field(
        description="Questions newest first, with their responses"
    )
    total_count: int = Field(description="Number of questions after filtering")


class CreateQuestionResponse(BaseModel):
    message: str = Field(default="Question submitted successfully")
    question: QuestionRecord = Field(description="The created question row")
    notification: Notification


class ErrorResponse(BaseModel):
    """
    What:  Standardized error response format for all API errors.

    Example:
        {
            "error": "submission_failed",
            "message": "expected response creation failed",
            "details": {"step": "expected_response", "question_id": "..."},
            "request_id": "1f3a9c2e"
        }
    """
    error: str = Field(description="Machine-readable error code")
    message: str = Field(description="Human-readable error description")
    details: Optional[dict] = Field(default=None, description="Additional error context")
    request_id: Optional[str] = Field(default=None, description="Request correlation ID")


class HealthResponse(BaseModel):
    status: str = Field(description="Overall service status: healthy, unhealthy")
    version: str = Field(description="Application version")
    database: str = Field(description="Database connectivity: connected, disconnected")
    questions_cache: str = Field(
        description="Cached aggregation state: empty, loading, fresh, stale, error"
    )
    uptime_seconds: float = Field(description="Seconds since service started")
