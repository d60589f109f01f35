"""
RentalQ&A Backend — Sample Data Tests
=======================================

What:  Tests for seed_sample_questions().

What we test:
    ✅ Empty store gets all sample questions with their responses
    ✅ Actual responses keep their listed order after the vote sort
    ✅ Non-empty store is left alone
"""

import pytest

from rentalqa.models.question import QuestionCategory, ResponseOutcome
from rentalqa.services.aggregation import QuestionsQuery
from rentalqa.services.seed import SAMPLE_QUESTIONS, seed_sample_questions


class TestSeedSampleQuestions:

    @pytest.mark.asyncio
    async def test_seeds_empty_store(self, memory_store):
        inserted = await seed_sample_questions(memory_store)

        assert inserted == len(SAMPLE_QUESTIONS) == 3
        assert len(memory_store.questions) == 3
        assert len(memory_store.expected) == 3
        assert len(memory_store.actual) == 8
        assert {q.votes for q in memory_store.questions} == {127, 89, 156}

    @pytest.mark.asyncio
    async def test_seeded_list_renders_in_listed_order(self, memory_store, query_cache):
        await seed_sample_questions(memory_store)

        questions = await QuestionsQuery(memory_store, query_cache).fetch()

        # Inserted in listed order, so the last sample is the newest
        references = questions[0]
        assert references.question == "Can you provide references from previous tenants?"
        assert references.category == QuestionCategory.TENANT_TO_LANDLORD
        assert [a.outcome for a in references.actual_responses] == [
            ResponseOutcome.POSITIVE,
            ResponseOutcome.NEGATIVE,
        ]
        assert len(references.expected_responses) == 1

        repairs = questions[2]
        assert [a.outcome for a in repairs.actual_responses] == [
            ResponseOutcome.POSITIVE,
            ResponseOutcome.NEGATIVE,
            ResponseOutcome.NEUTRAL,
        ]
        assert repairs.actual_responses[0].context.startswith("Landlord provided")

    @pytest.mark.asyncio
    async def test_skips_non_empty_store(self, memory_store):
        await memory_store.insert_question(
            "Existing question?", QuestionCategory.LANDLORD_TO_TENANT
        )

        inserted = await seed_sample_questions(memory_store)

        assert inserted == 0
        assert len(memory_store.questions) == 1
        assert "insert_expected_response" not in memory_store.calls
