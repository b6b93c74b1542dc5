from sqlalchemy import Column, String, Integer, Text, Boolean, DateTime, ForeignKey, Enum as SQLEnum, JSON, UniqueConstraint
from sqlalchemy.orm import relationship
import enum
import uuid
from datetime import datetime
import sqlalchemy as sa
from bookbros.database import Base
from bookbros.services.book_records import BookStatus


def _new_id() -> str:
    return str(uuid.uuid4())


class Book(Base):
    """
    One row per (member, book-ownership-context).

    status and in_library are independent: a completed book may or may not
    be on the member's library shelf, and a wishlist book gets promoted into
    the library without losing its row.
    """
    __tablename__ = "books"
    
    id = Column(String(36), primary_key=True, default=_new_id)
    member_email = Column(String, nullable=False, index=True)
    status = Column(
        SQLEnum(
            BookStatus,
            name="bookstatus",
            values_callable=lambda enum: [e.value for e in enum],
        ),
        nullable=False,
    )
    title = Column(String, nullable=False, default="")
    author = Column(String, nullable=False, default="")
    comment = Column(Text, nullable=True)
    cover_url = Column(String, nullable=True)
    genre = Column(String, nullable=True)
    in_library = Column(Boolean, nullable=False, default=False)
    top_ten = Column(Boolean, nullable=False, default=False)
    top_ten_rank = Column(Integer, nullable=True)  # 1-10
    rating = Column(Integer, nullable=True)  # 1-5
    reading_challenge_year = Column(Integer, nullable=True, index=True)
    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)
    completed_at = Column(DateTime, nullable=True)


class Profile(Base):
    __tablename__ = "profiles"
    
    email = Column(String, primary_key=True)
    display_name = Column(String, nullable=False)
    avatar_url = Column(String, nullable=True)
    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow, nullable=False)


class BookComment(Base):
    __tablename__ = "book_comments"
    
    id = Column(String(36), primary_key=True, default=_new_id)
    book_identifier = Column(String, nullable=False, index=True)  # "title::author", normalized
    author_email = Column(String, nullable=False)
    content = Column(Text, nullable=False)
    parent_id = Column(String(36), ForeignKey("book_comments.id", ondelete="CASCADE"), nullable=True)
    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow, nullable=False)
    
    # Relationships
    replies = relationship("BookComment", cascade="all, delete-orphan", order_by="BookComment.created_at")
    reactions = relationship(
        "CommentReaction",
        back_populates="comment",
        cascade="all, delete-orphan",
        order_by="CommentReaction.created_at",
    )
    mentions = relationship("CommentMention", back_populates="comment", cascade="all, delete-orphan")


class CommentReaction(Base):
    __tablename__ = "book_comment_reactions"
    
    id = Column(String(36), primary_key=True, default=_new_id)
    comment_id = Column(String(36), ForeignKey("book_comments.id", ondelete="CASCADE"), nullable=False, index=True)
    user_email = Column(String, nullable=False)
    emoji = Column(String, nullable=False)
    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)
    
    __table_args__ = (
        UniqueConstraint('comment_id', 'user_email', 'emoji', name='uq_comment_reaction_user_emoji'),
    )
    
    comment = relationship("BookComment", back_populates="reactions")


class CommentMention(Base):
    __tablename__ = "book_comment_mentions"
    
    id = Column(String(36), primary_key=True, default=_new_id)
    comment_id = Column(String(36), ForeignKey("book_comments.id", ondelete="CASCADE"), nullable=False, index=True)
    mentioned_email = Column(String, nullable=False)
    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)
    
    comment = relationship("BookComment", back_populates="mentions")


class BookOfTheMonth(Base):
    __tablename__ = "book_of_the_month"
    
    id = Column(String(36), primary_key=True, default=_new_id)
    year_month = Column(String(7), nullable=False, unique=True)  # "2026-01"
    picker_email = Column(String, nullable=False)
    book_title = Column(String, nullable=False)
    book_author = Column(String, nullable=False, default="")
    book_cover_url = Column(String, nullable=True)
    book_summary = Column(Text, nullable=True)
    book_genre = Column(String, nullable=True)
    why_picked = Column(Text, nullable=True)
    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow, nullable=False)


class JourneyComment(Base):
    """Discussion of a book of the month while the club reads it."""
    __tablename__ = "journey_comments"
    
    id = Column(String(36), primary_key=True, default=_new_id)
    book_of_month_id = Column(String(36), ForeignKey("book_of_the_month.id", ondelete="CASCADE"), nullable=False, index=True)
    author_email = Column(String, nullable=False)
    content = Column(Text, nullable=False)
    parent_id = Column(String(36), ForeignKey("journey_comments.id", ondelete="CASCADE"), nullable=True)
    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow, nullable=False)
    
    replies = relationship("JourneyComment", cascade="all, delete-orphan", order_by="JourneyComment.created_at")
    reactions = relationship(
        "JourneyCommentReaction",
        back_populates="comment",
        cascade="all, delete-orphan",
        order_by="JourneyCommentReaction.created_at",
    )
    mentions = relationship("JourneyCommentMention", back_populates="comment", cascade="all, delete-orphan")


class JourneyCommentReaction(Base):
    __tablename__ = "journey_comment_reactions"
    
    id = Column(String(36), primary_key=True, default=_new_id)
    comment_id = Column(String(36), ForeignKey("journey_comments.id", ondelete="CASCADE"), nullable=False, index=True)
    user_email = Column(String, nullable=False)
    emoji = Column(String, nullable=False)
    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)
    
    __table_args__ = (
        UniqueConstraint('comment_id', 'user_email', 'emoji', name='uq_journey_reaction_user_emoji'),
    )
    
    comment = relationship("JourneyComment", back_populates="reactions")


class JourneyCommentMention(Base):
    __tablename__ = "journey_comment_mentions"
    
    id = Column(String(36), primary_key=True, default=_new_id)
    comment_id = Column(String(36), ForeignKey("journey_comments.id", ondelete="CASCADE"), nullable=False, index=True)
    mentioned_email = Column(String, nullable=False)
    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)
    
    comment = relationship("JourneyComment", back_populates="mentions")


class BookReportStatus(str, enum.Enum):
    DRAFT = "draft"
    PUBLISHED = "published"


class BookReport(Base):
    """A long-form write-up of a book; only published reports are public."""
    __tablename__ = "book_reports"
    
    id = Column(String(36), primary_key=True, default=_new_id)
    user_email = Column(String, nullable=False, index=True)
    title = Column(String, nullable=False)
    book_title = Column(String, nullable=False)
    book_author = Column(String, nullable=True)
    book_cover_url = Column(String, nullable=True)
    content = Column(Text, nullable=False, default="")
    status = Column(
        SQLEnum(BookReportStatus, name="bookreportstatus", values_callable=lambda e: [m.value for m in e]),
        nullable=False,
        default=BookReportStatus.DRAFT,
        index=True,
    )
    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow, nullable=False)


class NotificationPreference(Base):
    __tablename__ = "notification_preferences"
    
    user_email = Column(String, primary_key=True)
    email_on_mention = Column(Boolean, nullable=False, default=True)
    email_on_all_comments = Column(Boolean, nullable=False, default=False)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow, nullable=False)


class RecommendationSession(Base):
    __tablename__ = "recommendation_sessions"
    
    id = Column(String(36), primary_key=True, default=_new_id)
    member_email = Column(String, nullable=False, index=True)
    mode = Column(String, nullable=False)  # instant | conversational
    created_at = Column(DateTime, default=datetime.utcnow)
    request_payload = Column(JSON, nullable=True)
    results = Column(JSON, nullable=True)


class EventLog(Base):
    __tablename__ = "event_logs"
    
    id = Column(String(36), primary_key=True, default=_new_id)
    created_at = Column(DateTime(timezone=True), server_default=sa.func.now(), nullable=False, index=True)
    member_email = Column(String, nullable=True, index=True)
    event_name = Column(String, nullable=False, index=True)
    properties = Column(JSON, nullable=True)
