"""add book reports, journey comments and notification preferences

Revision ID: 1c4e7a9b2d30
Revises: 000000000000
Create Date: 2026-02-01 00:00:00.000000

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision: str = "1c4e7a9b2d30"
down_revision: Union[str, None] = "000000000000"
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    op.create_table(
        "journey_comments",
        sa.Column("id", sa.String(36), primary_key=True, nullable=False),
        sa.Column(
            "book_of_month_id",
            sa.String(36),
            sa.ForeignKey("book_of_the_month.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column("author_email", sa.String(), nullable=False),
        sa.Column("content", sa.Text(), nullable=False),
        sa.Column(
            "parent_id",
            sa.String(36),
            sa.ForeignKey("journey_comments.id", ondelete="CASCADE"),
            nullable=True,
        ),
        sa.Column("created_at", sa.DateTime(), nullable=False),
        sa.Column("updated_at", sa.DateTime(), nullable=False),
    )
    op.create_index("ix_journey_comments_book_of_month_id", "journey_comments", ["book_of_month_id"])

    op.create_table(
        "journey_comment_reactions",
        sa.Column("id", sa.String(36), primary_key=True, nullable=False),
        sa.Column(
            "comment_id",
            sa.String(36),
            sa.ForeignKey("journey_comments.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column("user_email", sa.String(), nullable=False),
        sa.Column("emoji", sa.String(), nullable=False),
        sa.Column("created_at", sa.DateTime(), nullable=False),
        sa.UniqueConstraint("comment_id", "user_email", "emoji", name="uq_journey_reaction_user_emoji"),
    )
    op.create_index("ix_journey_comment_reactions_comment_id", "journey_comment_reactions", ["comment_id"])

    op.create_table(
        "journey_comment_mentions",
        sa.Column("id", sa.String(36), primary_key=True, nullable=False),
        sa.Column(
            "comment_id",
            sa.String(36),
            sa.ForeignKey("journey_comments.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column("mentioned_email", sa.String(), nullable=False),
        sa.Column("created_at", sa.DateTime(), nullable=False),
    )
    op.create_index("ix_journey_comment_mentions_comment_id", "journey_comment_mentions", ["comment_id"])

    op.create_table(
        "book_reports",
        sa.Column("id", sa.String(36), primary_key=True, nullable=False),
        sa.Column("user_email", sa.String(), nullable=False),
        sa.Column("title", sa.String(), nullable=False),
        sa.Column("book_title", sa.String(), nullable=False),
        sa.Column("book_author", sa.String(), nullable=True),
        sa.Column("book_cover_url", sa.String(), nullable=True),
        sa.Column("content", sa.Text(), nullable=False),
        sa.Column(
            "status",
            sa.Enum("draft", "published", name="bookreportstatus"),
            nullable=False,
        ),
        sa.Column("created_at", sa.DateTime(), nullable=False),
        sa.Column("updated_at", sa.DateTime(), nullable=False),
    )
    op.create_index("ix_book_reports_user_email", "book_reports", ["user_email"])
    op.create_index("ix_book_reports_status", "book_reports", ["status"])

    op.create_table(
        "notification_preferences",
        sa.Column("user_email", sa.String(), primary_key=True, nullable=False),
        sa.Column("email_on_mention", sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.Column("email_on_all_comments", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("updated_at", sa.DateTime(), nullable=False),
    )


def downgrade() -> None:
    op.drop_table("notification_preferences")
    op.drop_index("ix_book_reports_status", table_name="book_reports")
    op.drop_index("ix_book_reports_user_email", table_name="book_reports")
    op.drop_table("book_reports")
    sa.Enum(name="bookreportstatus").drop(op.get_bind(), checkfirst=True)
    op.drop_index("ix_journey_comment_mentions_comment_id", table_name="journey_comment_mentions")
    op.drop_table("journey_comment_mentions")
    op.drop_index("ix_journey_comment_reactions_comment_id", table_name="journey_comment_reactions")
    op.drop_table("journey_comment_reactions")
    op.drop_index("ix_journey_comments_book_of_month_id", table_name="journey_comments")
    op.drop_table("journey_comments")
