"""
Threaded comments with emoji reactions and member mentions.

Two kinds of thread share this code. Book comments are keyed by a book
identifier ("title::author", normalized) so every copy of a book across
members shares one discussion. Journey comments are keyed by the book of
the month they discuss. A `CommentThread` names the models and the scope
column of each kind.
"""
import logging
from collections import OrderedDict
from dataclasses import dataclass
from typing import Any, Callable, Dict, Iterable, List, Optional

from sqlalchemy.orm import Session
from sqlalchemy.exc import IntegrityError

from bookbros.core.members import Member, normalize_email
from bookbros.core.profile_helpers import display_name_for, get_profiles
from bookbros.models import (
    BookComment,
    BookOfTheMonth,
    CommentMention,
    CommentReaction,
    JourneyComment,
    JourneyCommentMention,
    JourneyCommentReaction,
    Profile,
)
from bookbros.schemas.comment import CommentResponse, ReactionGroup
from bookbros.services.book_records import normalize_text

logger = logging.getLogger(__name__)


class CommentNotFoundError(LookupError):
    pass


class CommentPermissionError(PermissionError):
    pass


class InvalidCommentError(ValueError):
    pass


def book_identifier(title: str, author: Optional[str]) -> str:
    return f"{normalize_text(title)}::{normalize_text(author)}"


def _check_book_identifier(db: Session, identifier: str) -> None:
    if not identifier or "::" not in identifier:
        raise InvalidCommentError("book_identifier is required")


def _check_book_of_month(db: Session, book_of_month_id: str) -> None:
    if not book_of_month_id:
        raise InvalidCommentError("book_of_month_id is required")
    if db.get(BookOfTheMonth, book_of_month_id) is None:
        raise CommentNotFoundError(f"Book of the month {book_of_month_id} not found")


@dataclass(frozen=True)
class CommentThread:
    comment_model: Any
    reaction_model: Any
    mention_model: Any
    scope_field: str
    check_scope: Callable[[Session, str], None]
    
    @property
    def scope_column(self):
        return getattr(self.comment_model, self.scope_field)
    
    def scope_of(self, comment) -> str:
        return getattr(comment, self.scope_field)


BOOK_COMMENTS = CommentThread(
    comment_model=BookComment,
    reaction_model=CommentReaction,
    mention_model=CommentMention,
    scope_field="book_identifier",
    check_scope=_check_book_identifier,
)

JOURNEY_COMMENTS = CommentThread(
    comment_model=JourneyComment,
    reaction_model=JourneyCommentReaction,
    mention_model=JourneyCommentMention,
    scope_field="book_of_month_id",
    check_scope=_check_book_of_month,
)


def group_reactions(reactions: Iterable[Any]) -> Dict[str, List[ReactionGroup]]:
    """Reactions per comment, one group per emoji in first-seen order."""
    grouped: Dict[str, "OrderedDict[str, ReactionGroup]"] = {}
    for reaction in reactions:
        groups = grouped.setdefault(reaction.comment_id, OrderedDict())
        group = groups.get(reaction.emoji)
        if group is None:
            groups[reaction.emoji] = ReactionGroup(emoji=reaction.emoji, count=1, users=[reaction.user_email])
        else:
            group.count += 1
            group.users.append(reaction.user_email)
    return {comment_id: list(groups.values()) for comment_id, groups in grouped.items()}


def _to_response(
    comment: Any,
    profiles: Dict[str, Profile],
    reactions: List[ReactionGroup],
    mentions: List[str],
    thread: CommentThread,
) -> CommentResponse:
    profile = profiles.get(comment.author_email)
    return CommentResponse(
        id=comment.id,
        author_email=comment.author_email,
        author_name=display_name_for(comment.author_email, profiles),
        author_avatar=profile.avatar_url if profile else None,
        content=comment.content,
        parent_id=comment.parent_id,
        created_at=comment.created_at,
        updated_at=comment.updated_at,
        reactions=reactions,
        mentions=mentions,
        replies=[],
        **{thread.scope_field: thread.scope_of(comment)},
    )


def build_comment_tree(
    comments: List[Any],
    reactions: Iterable[Any],
    mentions: Iterable[Any],
    profiles: Dict[str, Profile],
    thread: CommentThread = BOOK_COMMENTS,
) -> List[CommentResponse]:
    """
    Enrich comments and nest replies under their parent.

    `comments` must be in display order (oldest first); replies keep it.
    Replies whose parent is not in `comments` are dropped.
    """
    reactions_by_comment = group_reactions(reactions)
    mentions_by_comment: Dict[str, List[str]] = {}
    for mention in mentions:
        mentions_by_comment.setdefault(mention.comment_id, []).append(mention.mentioned_email)
    
    enriched = {
        comment.id: _to_response(
            comment,
            profiles,
            reactions_by_comment.get(comment.id, []),
            mentions_by_comment.get(comment.id, []),
            thread,
        )
        for comment in comments
    }
    
    top_level: List[CommentResponse] = []
    for comment in comments:
        node = enriched[comment.id]
        if not comment.parent_id:
            top_level.append(node)
        elif comment.parent_id in enriched:
            enriched[comment.parent_id].replies.append(node)
    return top_level


def list_comments(db: Session, scope: str, thread: CommentThread = BOOK_COMMENTS) -> List[CommentResponse]:
    Comment, Reaction, Mention = thread.comment_model, thread.reaction_model, thread.mention_model
    comments = (
        db.query(Comment)
        .filter(thread.scope_column == scope)
        .order_by(Comment.created_at.asc())
        .all()
    )
    if not comments:
        return []
    
    comment_ids = [c.id for c in comments]
    reactions = (
        db.query(Reaction)
        .filter(Reaction.comment_id.in_(comment_ids))
        .order_by(Reaction.created_at.asc())
        .all()
    )
    mentions = db.query(Mention).filter(Mention.comment_id.in_(comment_ids)).all()
    profiles = get_profiles(db, {c.author_email for c in comments})
    return build_comment_tree(comments, reactions, mentions, profiles, thread)


def _get_comment(db: Session, comment_id: str, thread: CommentThread):
    comment = db.get(thread.comment_model, comment_id)
    if comment is None:
        raise CommentNotFoundError(f"Comment {comment_id} not found")
    return comment


def _get_own_comment(db: Session, comment_id: str, member: Member, thread: CommentThread):
    comment = _get_comment(db, comment_id, thread)
    if comment.author_email != member.email:
        raise CommentPermissionError("Only the author can change this comment")
    return comment


def _single(db: Session, comment, thread: CommentThread) -> CommentResponse:
    profiles = get_profiles(db, [comment.author_email])
    return _to_response(
        comment,
        profiles,
        group_reactions(comment.reactions).get(comment.id, []),
        [m.mentioned_email for m in comment.mentions],
        thread,
    )


def create_comment(
    db: Session,
    author: Member,
    scope: str,
    content: str,
    roster: List[Member],
    parent_id: Optional[str] = None,
    mentions: Iterable[str] = (),
    thread: CommentThread = BOOK_COMMENTS,
) -> CommentResponse:
    """
    Post a comment or reply. Mentions of anyone outside the roster are dropped.
    """
    content = (content or "").strip()
    if not content:
        raise InvalidCommentError("content is required")
    thread.check_scope(db, scope)
    
    if parent_id:
        parent = _get_comment(db, parent_id, thread)
        if thread.scope_of(parent) != scope:
            raise InvalidCommentError("Reply must belong to the same thread as its parent")
    
    roster_emails = {m.email for m in roster}
    mentioned: List[str] = []
    for email in mentions:
        email = normalize_email(email)
        if email in roster_emails and email not in mentioned:
            mentioned.append(email)
    
    comment = thread.comment_model(
        author_email=author.email,
        content=content,
        parent_id=parent_id or None,
        **{thread.scope_field: scope},
    )
    db.add(comment)
    try:
        db.flush()
        for email in mentioned:
            db.add(thread.mention_model(comment_id=comment.id, mentioned_email=email))
        db.commit()
    except Exception:
        db.rollback()
        raise
    db.refresh(comment)
    
    if mentioned:
        logger.info("Comment %s by %s mentions %s", comment.id, author.email, ", ".join(mentioned))
    return _single(db, comment, thread)


def update_comment(
    db: Session,
    comment_id: str,
    member: Member,
    content: str,
    thread: CommentThread = BOOK_COMMENTS,
) -> CommentResponse:
    comment = _get_own_comment(db, comment_id, member, thread)
    content = (content or "").strip()
    if not content:
        raise InvalidCommentError("content is required")
    
    comment.content = content
    db.commit()
    db.refresh(comment)
    return _single(db, comment, thread)


def delete_comment(db: Session, comment_id: str, member: Member, thread: CommentThread = BOOK_COMMENTS) -> None:
    """Delete a comment with its replies, reactions and mentions."""
    comment = _get_own_comment(db, comment_id, member, thread)
    db.delete(comment)
    db.commit()
    logger.info("Comment %s deleted by %s", comment_id, member.email)


def _clean_emoji(emoji: Optional[str]) -> str:
    emoji = (emoji or "").strip()
    if not emoji:
        raise InvalidCommentError("emoji is required")
    return emoji


def add_reaction(
    db: Session,
    comment_id: str,
    member: Member,
    emoji: str,
    thread: CommentThread = BOOK_COMMENTS,
) -> CommentResponse:
    """Idempotent: reacting twice with the same emoji keeps one reaction."""
    emoji = _clean_emoji(emoji)
    comment = _get_comment(db, comment_id, thread)
    Reaction = thread.reaction_model
    
    existing = (
        db.query(Reaction)
        .filter(
            Reaction.comment_id == comment_id,
            Reaction.user_email == member.email,
            Reaction.emoji == emoji,
        )
        .first()
    )
    if existing is None:
        db.add(Reaction(comment_id=comment_id, user_email=member.email, emoji=emoji))
        try:
            db.commit()
        except IntegrityError:
            # Concurrent insert of the same reaction
            db.rollback()
    db.refresh(comment)
    return _single(db, comment, thread)


def remove_reaction(
    db: Session,
    comment_id: str,
    member: Member,
    emoji: str,
    thread: CommentThread = BOOK_COMMENTS,
) -> CommentResponse:
    emoji = _clean_emoji(emoji)
    comment = _get_comment(db, comment_id, thread)
    Reaction = thread.reaction_model
    (
        db.query(Reaction)
        .filter(
            Reaction.comment_id == comment_id,
            Reaction.user_email == member.email,
            Reaction.emoji == emoji,
        )
        .delete(synchronize_session=False)
    )
    db.commit()
    db.refresh(comment)
    return _single(db, comment, thread)
