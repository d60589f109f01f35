"""Create questions, expected_responses and actual_responses

Revision ID: 001
Revises: None
Create Date: 2025-06-02 00:00:00.000000+00:00

What:  Initial schema: the two enum types, the three tables and their indexes.
How:   PostgreSQL-specific: UUID keys with gen_random_uuid() defaults,
       TEXT[] tags, TIMESTAMP WITH TIME ZONE.

Rollback: downgrade() drops all three tables and both enum types.
"""

from typing import Sequence, Union
from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects import postgresql

revision: str = "001"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


question_category = postgresql.ENUM(
    "tenant-to-landlord", "landlord-to-tenant",
    name="question_category",
    create_type=False,
)
response_outcome = postgresql.ENUM(
    "positive", "negative", "neutral",
    name="response_outcome",
    create_type=False,
)


def upgrade() -> None:
    question_category.create(op.get_bind(), checkfirst=True)
    response_outcome.create(op.get_bind(), checkfirst=True)

    op.create_table(
        "questions",
        sa.Column(
            "id",
            postgresql.UUID(as_uuid=True),
            server_default=sa.text("gen_random_uuid()"),
            nullable=False,
        ),
        sa.Column("category", question_category, nullable=False),
        sa.Column("question", sa.Text(), nullable=False),
        sa.Column(
            "tags",
            postgresql.ARRAY(sa.Text()),
            server_default=sa.text("'{}'::text[]"),
            nullable=True,
        ),
        sa.Column("votes", sa.Integer(), server_default=sa.text("0"), nullable=True),
        sa.Column(
            "created_at",
            sa.TIMESTAMP(timezone=True),
            server_default=sa.text("now()"),
            nullable=False,
        ),
        sa.Column(
            "updated_at",
            sa.TIMESTAMP(timezone=True),
            server_default=sa.text("now()"),
            nullable=False,
        ),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("idx_questions_created_at", "questions", [sa.text("created_at DESC")])

    op.create_table(
        "expected_responses",
        sa.Column(
            "id",
            postgresql.UUID(as_uuid=True),
            server_default=sa.text("gen_random_uuid()"),
            nullable=False,
        ),
        sa.Column("question_id", postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column("response", sa.Text(), nullable=False),
        sa.Column("votes", sa.Integer(), server_default=sa.text("0"), nullable=True),
        sa.Column(
            "created_at",
            sa.TIMESTAMP(timezone=True),
            server_default=sa.text("now()"),
            nullable=False,
        ),
        sa.PrimaryKeyConstraint("id"),
        sa.ForeignKeyConstraint(
            ["question_id"], ["questions.id"],
            name="expected_responses_question_id_fkey",
            ondelete="CASCADE",
        ),
    )
    op.create_index(
        "idx_expected_responses_question_id", "expected_responses", ["question_id"]
    )
    op.create_index(
        "idx_expected_responses_votes", "expected_responses", [sa.text("votes DESC")]
    )

    op.create_table(
        "actual_responses",
        sa.Column(
            "id",
            postgresql.UUID(as_uuid=True),
            server_default=sa.text("gen_random_uuid()"),
            nullable=False,
        ),
        sa.Column("question_id", postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column("response", sa.Text(), nullable=False),
        sa.Column(
            "outcome",
            response_outcome,
            server_default=sa.text("'neutral'"),
            nullable=False,
        ),
        sa.Column("context", sa.Text(), nullable=True),
        sa.Column("votes", sa.Integer(), server_default=sa.text("0"), nullable=True),
        sa.Column(
            "created_at",
            sa.TIMESTAMP(timezone=True),
            server_default=sa.text("now()"),
            nullable=False,
        ),
        sa.PrimaryKeyConstraint("id"),
        sa.ForeignKeyConstraint(
            ["question_id"], ["questions.id"],
            name="actual_responses_question_id_fkey",
            ondelete="CASCADE",
        ),
    )
    op.create_index(
        "idx_actual_responses_question_id", "actual_responses", ["question_id"]
    )
    op.create_index(
        "idx_actual_responses_votes", "actual_responses", [sa.text("votes DESC")]
    )


def downgrade() -> None:
    """Destructive: drops every question and response."""
    op.drop_index("idx_actual_responses_votes", table_name="actual_responses")
    op.drop_index("idx_actual_responses_question_id", table_name="actual_responses")
    op.drop_table("actual_responses")
    op.drop_index("idx_expected_responses_votes", table_name="expected_responses")
    op.drop_index("idx_expected_responses_question_id", table_name="expected_responses")
    op.drop_table("expected_responses")
    op.drop_index("idx_questions_created_at", table_name="questions")
    op.drop_table("questions")
    response_outcome.drop(op.get_bind(), checkfirst=True)
    question_category.drop(op.get_bind(), checkfirst=True)
