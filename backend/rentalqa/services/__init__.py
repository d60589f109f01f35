# Services package init
"""
RentalQ&A Backend — Services Layer
====================================

What:  Everything between the HTTP routes and the database.

Service Inventory:
    - QuestionStore (abstract) / SqlAlchemyQuestionStore: the three tables
    - QueryCache: keyed, single-flight cache with explicit invalidation
    - QuestionsQuery: cached fetch-and-join of questions and responses
    - CreateQuestionMutation: ordered inserts + cache invalidation
    - seed_sample_questions: starter content for empty databases

Wiring:
    main.create_app() builds one store and one cache and hands both to the
    query and the mutation; nothing here holds module-level state.
"""
