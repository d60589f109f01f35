"""
RentalQ&A Backend — Sample Questions
======================================

What:  The starter content shown on a fresh installation.
When:  Inserted at startup when SEED_SAMPLE_DATA=true and the questions
       table is empty.
How:   Goes through the QuestionStore insert methods, so votes and outcomes
       are stored exactly as listed here.
"""

import logging
from typing import Any, Dict, List

from rentalqa.models.question import QuestionCategory, ResponseOutcome
from rentalqa.services.store import QuestionStore

logger = logging.getLogger(__name__)


SAMPLE_QUESTIONS: List[Dict[str, Any]] = [
    {
        "category": QuestionCategory.TENANT_TO_LANDLORD,
        "question": "What is your policy on repairs and maintenance response times?",
        "expected_response": (
            "Emergency repairs within 24 hours, urgent repairs within 3-5 days, "
            "non-urgent repairs within 2 weeks. I provide a written maintenance policy."
        ),
        "actual_responses": [
            {
                "response": "I handle everything within 24-48 hours max. Here's my maintenance policy document.",
                "outcome": ResponseOutcome.POSITIVE,
                "context": "Landlord provided detailed policy, followed through consistently",
            },
            {
                "response": "I get to it when I get to it. Don't be so demanding.",
                "outcome": ResponseOutcome.NEGATIVE,
                "context": "Multiple maintenance issues took weeks to resolve",
            },
            {
                "response": "Emergency repairs same day, others within a week usually.",
                "outcome": ResponseOutcome.NEUTRAL,
                "context": "Generally responsive but no formal policy",
            },
        ],
        "tags": ["maintenance", "repairs", "timeline"],
        "votes": 127,
    },
    {
        "category": QuestionCategory.LANDLORD_TO_TENANT,
        "question": "How do you plan to care for the property and respect neighbors?",
        "expected_response": (
            "I keep my living space clean, follow noise guidelines especially during quiet "
            "hours, communicate proactively about any issues, and treat the property with respect."
        ),
        "actual_responses": [
            {
                "response": "I'm very clean and quiet. I work from home so I'm usually around to keep an eye on things.",
                "outcome": ResponseOutcome.POSITIVE,
                "context": "Excellent tenant, no issues in 2 years",
            },
            {
                "response": "I'll do whatever I want, it's my home while I pay rent.",
                "outcome": ResponseOutcome.NEGATIVE,
                "context": "Multiple noise complaints, property damage",
            },
            {
                "response": "I keep things tidy and try to be considerate of neighbors.",
                "outcome": ResponseOutcome.NEUTRAL,
                "context": "Generally good tenant with minor issues",
            },
        ],
        "tags": ["property-care", "neighbors", "respect"],
        "votes": 89,
    },
    {
        "category": QuestionCategory.TENANT_TO_LANDLORD,
        "question": "Can you provide references from previous tenants?",
        "expected_response": (
            "Yes, I can provide contact information for 2-3 previous tenants (with their "
            "permission) who can speak about their rental experience."
        ),
        "actual_responses": [
            {
                "response": "Absolutely! Here are three references from tenants who lived here in the past two years.",
                "outcome": ResponseOutcome.POSITIVE,
                "context": "All references were positive, landlord was transparent",
            },
            {
                "response": "I don't give out personal information about my tenants.",
                "outcome": ResponseOutcome.NEGATIVE,
                "context": "Red flag - wouldn't provide any references",
            },
        ],
        "tags": ["references", "transparency", "verification"],
        "votes": 156,
    },
]


async def seed_sample_questions(store: QuestionStore) -> int:
    """
    Inserts SAMPLE_QUESTIONS unless the store already has questions.

    Actual responses get descending vote counts in listed order so they
    display in the order above.

    Returns:
        Number of questions inserted (0 when the store was not empty).
    """
    existing = await store.count_questions()
    if existing:
        logger.info("Skipping sample data: %d questions already stored", existing)
        return 0

    for sample in SAMPLE_QUESTIONS:
        question = await store.insert_question(
            question=sample["question"],
            category=sample["category"],
            tags=sample["tags"],
            votes=sample["votes"],
        )
        await store.insert_expected_response(
            question_id=question.id,
            response=sample["expected_response"],
        )
        count = len(sample["actual_responses"])
        for rank, actual in enumerate(sample["actual_responses"]):
            await store.insert_actual_response(
                question_id=question.id,
                response=actual["response"],
                outcome=actual["outcome"],
                context=actual["context"],
                votes=count - rank,
            )

    logger.info("Seeded %d sample questions", len(SAMPLE_QUESTIONS))
    return len(SAMPLE_QUESTIONS)
