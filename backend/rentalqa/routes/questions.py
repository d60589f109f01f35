"""
RentalQ&A Backend — Question Route Handlers
=============================================

What:  GET /api/questions (aggregated list, filtered) and
       POST /api/questions (submit a question).
How:   Thin handlers. The query and the mutation are built once in
       create_app() and read from app.state through the dependencies below.

Caching:
    The aggregation is cached in-process (QueryCache); filtering runs on the
    cached list, so every search/category combination shares one fetch.
    HTTP responses are sent with Cache-Control: no-store so a browser never
    shows a list older than the server's cache.
"""

import logging

from fastapi import APIRouter, Depends, Query, Request, Response

from rentalqa.schemas.question import (
    CreateQuestionRequest,
    CreateQuestionResponse,
    ErrorResponse,
    QuestionListResponse,
)
from rentalqa.services.aggregation import ALL_CATEGORIES, QuestionsQuery, filter_questions
from rentalqa.services.submission import CreateQuestionMutation

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api", tags=["Questions"])


def get_questions_query(request: Request) -> QuestionsQuery:
    return request.app.state.questions_query


def get_create_question(request: Request) -> CreateQuestionMutation:
    return request.app.state.create_question


@router.get(
    "/questions",
    response_model=QuestionListResponse,
    responses={
        200: {"description": "Questions with their responses", "model": QuestionListResponse},
        400: {"description": "Unknown category", "model": ErrorResponse},
        503: {"description": "A data-store fetch failed", "model": ErrorResponse},
    },
    summary="List questions with expected and actual responses",
)
async def list_questions(
    response: Response,
    search: str = Query(
        default="",
        max_length=200,
        description="Case-insensitive match against question text and tags",
    ),
    category: str = Query(
        default=ALL_CATEGORIES,
        description="'all', 'tenant-to-landlord' or 'landlord-to-tenant'",
    ),
    query: QuestionsQuery = Depends(get_questions_query),
) -> QuestionListResponse:
    """
    Newest questions first; each response list ordered by votes.

    Errors (global handlers):
        400: unknown category (ValidationError)
        503: one of the three fetches failed (DataStoreError); no partial list
    """
    questions = await query.fetch()
    filtered = filter_questions(questions, search=search, category=category)

    response.headers["X-Total-Count"] = str(len(filtered))
    response.headers["Cache-Control"] = "no-store"

    return QuestionListResponse(questions=filtered, total_count=len(filtered))


@router.post(
    "/questions",
    status_code=201,
    response_model=CreateQuestionResponse,
    responses={
        201: {"description": "Question submitted", "model": CreateQuestionResponse},
        500: {"description": "An insert step failed", "model": ErrorResponse},
    },
    summary="Submit a question with its first responses",
)
async def create_question(
    body: CreateQuestionRequest,
    mutation: CreateQuestionMutation = Depends(get_create_question),
) -> CreateQuestionResponse:
    """
    Inserts the question, then the expected response and the actual response
    (outcome 'neutral') when their text is given.

    A failure after the question insert leaves the question stored; the
    500 body carries `details.step` and `details.question_id`.
    """
    submission = await mutation.submit(body)
    submission.raise_for_status()

    return CreateQuestionResponse(
        message="Question submitted successfully",
        question=submission.question,
        notification=submission.notification,
    )
