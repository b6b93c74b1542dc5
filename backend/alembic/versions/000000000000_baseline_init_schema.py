"""baseline_init_schema

Revision ID: 000000000000
Revises: 
Create Date: 2026-01-01 00:00:00.000000

Creates every table. Later migrations should depend on this revision.
"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision: str = '000000000000'
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    op.create_table(
        "books",
        sa.Column("id", sa.String(36), primary_key=True, nullable=False),
        sa.Column("member_email", sa.String(), nullable=False),
        sa.Column(
            "status",
            sa.Enum("current", "completed", "wishlist", name="bookstatus"),
            nullable=False,
        ),
        sa.Column("title", sa.String(), nullable=False),
        sa.Column("author", sa.String(), nullable=False),
        sa.Column("comment", sa.Text(), nullable=True),
        sa.Column("cover_url", sa.String(), nullable=True),
        sa.Column("genre", sa.String(), nullable=True),
        sa.Column("in_library", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("top_ten", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("top_ten_rank", sa.Integer(), nullable=True),
        sa.Column("rating", sa.Integer(), nullable=True),
        sa.Column("reading_challenge_year", sa.Integer(), nullable=True),
        sa.Column("created_at", sa.DateTime(), nullable=False),
        sa.Column("completed_at", sa.DateTime(), nullable=True),
    )
    op.create_index("ix_books_member_email", "books", ["member_email"])
    op.create_index("ix_books_reading_challenge_year", "books", ["reading_challenge_year"])

    op.create_table(
        "profiles",
        sa.Column("email", sa.String(), primary_key=True, nullable=False),
        sa.Column("display_name", sa.String(), nullable=False),
        sa.Column("avatar_url", sa.String(), nullable=True),
        sa.Column("created_at", sa.DateTime(), nullable=False),
        sa.Column("updated_at", sa.DateTime(), nullable=False),
    )

    op.create_table(
        "book_comments",
        sa.Column("id", sa.String(36), primary_key=True, nullable=False),
        sa.Column("book_identifier", sa.String(), nullable=False),
        sa.Column("author_email", sa.String(), nullable=False),
        sa.Column("content", sa.Text(), nullable=False),
        sa.Column(
            "parent_id",
            sa.String(36),
            sa.ForeignKey("book_comments.id", ondelete="CASCADE"),
            nullable=True,
        ),
        sa.Column("created_at", sa.DateTime(), nullable=False),
        sa.Column("updated_at", sa.DateTime(), nullable=False),
    )
    op.create_index("ix_book_comments_book_identifier", "book_comments", ["book_identifier"])

    op.create_table(
        "book_comment_reactions",
        sa.Column("id", sa.String(36), primary_key=True, nullable=False),
        sa.Column(
            "comment_id",
            sa.String(36),
            sa.ForeignKey("book_comments.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column("user_email", sa.String(), nullable=False),
        sa.Column("emoji", sa.String(), nullable=False),
        sa.Column("created_at", sa.DateTime(), nullable=False),
        sa.UniqueConstraint("comment_id", "user_email", "emoji", name="uq_comment_reaction_user_emoji"),
    )
    op.create_index("ix_book_comment_reactions_comment_id", "book_comment_reactions", ["comment_id"])

    op.create_table(
        "book_comment_mentions",
        sa.Column("id", sa.String(36), primary_key=True, nullable=False),
        sa.Column(
            "comment_id",
            sa.String(36),
            sa.ForeignKey("book_comments.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column("mentioned_email", sa.String(), nullable=False),
        sa.Column("created_at", sa.DateTime(), nullable=False),
    )
    op.create_index("ix_book_comment_mentions_comment_id", "book_comment_mentions", ["comment_id"])

    op.create_table(
        "book_of_the_month",
        sa.Column("id", sa.String(36), primary_key=True, nullable=False),
        sa.Column("year_month", sa.String(7), nullable=False, unique=True),
        sa.Column("picker_email", sa.String(), nullable=False),
        sa.Column("book_title", sa.String(), nullable=False),
        sa.Column("book_author", sa.String(), nullable=False),
        sa.Column("book_cover_url", sa.String(), nullable=True),
        sa.Column("book_summary", sa.Text(), nullable=True),
        sa.Column("book_genre", sa.String(), nullable=True),
        sa.Column("why_picked", sa.Text(), nullable=True),
        sa.Column("created_at", sa.DateTime(), nullable=False),
        sa.Column("updated_at", sa.DateTime(), nullable=False),
    )

    op.create_table(
        "recommendation_sessions",
        sa.Column("id", sa.String(36), primary_key=True, nullable=False),
        sa.Column("member_email", sa.String(), nullable=False),
        sa.Column("mode", sa.String(), nullable=False),
        sa.Column("created_at", sa.DateTime(), nullable=True),
        sa.Column("request_payload", sa.JSON(), nullable=True),
        sa.Column("results", sa.JSON(), nullable=True),
    )
    op.create_index("ix_recommendation_sessions_member_email", "recommendation_sessions", ["member_email"])

    op.create_table(
        "event_logs",
        sa.Column("id", sa.String(36), primary_key=True, nullable=False),
        sa.Column(
            "created_at",
            sa.DateTime(timezone=True),
            server_default=sa.func.now(),
            nullable=False,
        ),
        sa.Column("member_email", sa.String(), nullable=True),
        sa.Column("event_name", sa.String(), nullable=False),
        sa.Column("properties", sa.JSON(), nullable=True),
    )
    op.create_index("ix_event_logs_created_at", "event_logs", ["created_at"])
    op.create_index("ix_event_logs_event_name", "event_logs", ["event_name"])
    op.create_index("ix_event_logs_member_email", "event_logs", ["member_email"])


def downgrade() -> None:
    op.drop_index("ix_event_logs_member_email", table_name="event_logs")
    op.drop_index("ix_event_logs_event_name", table_name="event_logs")
    op.drop_index("ix_event_logs_created_at", table_name="event_logs")
    op.drop_table("event_logs")
    op.drop_index("ix_recommendation_sessions_member_email", table_name="recommendation_sessions")
    op.drop_table("recommendation_sessions")
    op.drop_table("book_of_the_month")
    op.drop_index("ix_book_comment_mentions_comment_id", table_name="book_comment_mentions")
    op.drop_table("book_comment_mentions")
    op.drop_index("ix_book_comment_reactions_comment_id", table_name="book_comment_reactions")
    op.drop_table("book_comment_reactions")
    op.drop_index("ix_book_comments_book_identifier", table_name="book_comments")
    op.drop_table("book_comments")
    op.drop_table("profiles")
    op.drop_index("ix_books_reading_challenge_year", table_name="books")
    op.drop_index("ix_books_member_email", table_name="books")
    op.drop_table("books")
    sa.Enum(name="bookstatus").drop(op.get_bind(), checkfirst=True)
