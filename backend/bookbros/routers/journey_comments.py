"""
Journey comments: the club's running discussion of a book of the month.

Same threading, reactions and mentions as book comments, keyed by the
book of the month row instead of a book identifier.
"""
from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.orm import Session
import logging

from bookbros.database import get_db
from bookbros.core.auth import get_current_member
from bookbros.core.config import settings
from bookbros.core.members import Member
from bookbros.routers.comments import raise_for_comment_error
from bookbros.schemas.comment import (
    CommentResponse,
    CommentsResponse,
    CommentUpdate,
    JourneyCommentCreate,
    ReactionCreate,
)
from bookbros.services import comment_service
from bookbros.services.comment_service import (
    JOURNEY_COMMENTS,
    CommentNotFoundError,
    CommentPermissionError,
    InvalidCommentError,
)
from bookbros.utils.instrumentation import log_event

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/journey-comments", tags=["journey-comments"])


@router.get("", response_model=CommentsResponse)
def get_journey_comments(
    book_of_month_id: str = Query(...),
    member: Member = Depends(get_current_member),
    db: Session = Depends(get_db),
):
    return CommentsResponse(comments=comment_service.list_comments(db, book_of_month_id, JOURNEY_COMMENTS))


@router.post("", response_model=CommentResponse, status_code=status.HTTP_201_CREATED)
def create_journey_comment(
    payload: JourneyCommentCreate,
    member: Member = Depends(get_current_member),
    db: Session = Depends(get_db),
):
    try:
        comment = comment_service.create_comment(
            db,
            member,
            payload.book_of_month_id,
            payload.content,
            settings.members,
            parent_id=payload.parent_id,
            mentions=payload.mentions,
            thread=JOURNEY_COMMENTS,
        )
    except (CommentNotFoundError, InvalidCommentError) as e:
        raise_for_comment_error(e)
    
    log_event(
        db,
        "journey_comment_created",
        member.email,
        {"comment_id": comment.id, "book_of_month_id": payload.book_of_month_id, "mentions": len(comment.mentions)},
    )
    return comment


@router.put("/{comment_id}", response_model=CommentResponse)
def update_journey_comment(
    comment_id: str,
    payload: CommentUpdate,
    member: Member = Depends(get_current_member),
    db: Session = Depends(get_db),
):
    try:
        return comment_service.update_comment(db, comment_id, member, payload.content, JOURNEY_COMMENTS)
    except (CommentNotFoundError, CommentPermissionError, InvalidCommentError) as e:
        raise_for_comment_error(e)


@router.delete("/{comment_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_journey_comment(
    comment_id: str,
    member: Member = Depends(get_current_member),
    db: Session = Depends(get_db),
):
    try:
        comment_service.delete_comment(db, comment_id, member, JOURNEY_COMMENTS)
    except (CommentNotFoundError, CommentPermissionError) as e:
        raise_for_comment_error(e)


@router.post("/{comment_id}/reactions", response_model=CommentResponse)
def add_journey_reaction(
    comment_id: str,
    payload: ReactionCreate,
    member: Member = Depends(get_current_member),
    db: Session = Depends(get_db),
):
    try:
        return comment_service.add_reaction(db, comment_id, member, payload.emoji, JOURNEY_COMMENTS)
    except (CommentNotFoundError, InvalidCommentError) as e:
        raise_for_comment_error(e)


@router.delete("/{comment_id}/reactions", response_model=CommentResponse)
def remove_journey_reaction(
    comment_id: str,
    emoji: str = Query(...),
    member: Member = Depends(get_current_member),
    db: Session = Depends(get_db),
):
    try:
        return comment_service.remove_reaction(db, comment_id, member, emoji, JOURNEY_COMMENTS)
    except (CommentNotFoundError, InvalidCommentError) as e:
        raise_for_comment_error(e)
