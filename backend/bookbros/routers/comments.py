from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy.orm import Session
from typing import Optional
import logging

from bookbros.database import get_db
from bookbros.core.auth import get_current_member
from bookbros.core.config import settings
from bookbros.core.members import Member
from bookbros.schemas.comment import (
    CommentCreate,
    CommentResponse,
    CommentsResponse,
    CommentUpdate,
    ReactionCreate,
)
from bookbros.services import comment_service
from bookbros.services.comment_service import (
    CommentNotFoundError,
    CommentPermissionError,
    InvalidCommentError,
)
from bookbros.utils.instrumentation import log_event

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/book-comments", tags=["comments"])


def _resolve_identifier(
    book_identifier: Optional[str],
    title: Optional[str],
    author: Optional[str],
) -> str:
    if book_identifier:
        return book_identifier.strip().lower()
    if title and title.strip():
        return comment_service.book_identifier(title, author)
    raise HTTPException(
        status_code=status.HTTP_400_BAD_REQUEST,
        detail="book_identifier or title is required",
    )


def raise_for_comment_error(error: Exception) -> None:
    """Map comment service errors onto 404, 403 and 400."""
    if isinstance(error, CommentNotFoundError):
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(error))
    if isinstance(error, CommentPermissionError):
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail=str(error))
    raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(error))


@router.get("", response_model=CommentsResponse)
def get_comments(
    book_identifier: Optional[str] = Query(None),
    title: Optional[str] = Query(None),
    author: Optional[str] = Query(None),
    member: Member = Depends(get_current_member),
    db: Session = Depends(get_db),
):
    identifier = _resolve_identifier(book_identifier, title, author)
    return CommentsResponse(comments=comment_service.list_comments(db, identifier))


@router.post("", response_model=CommentResponse, status_code=status.HTTP_201_CREATED)
def create_comment(
    payload: CommentCreate,
    member: Member = Depends(get_current_member),
    db: Session = Depends(get_db),
):
    identifier = _resolve_identifier(payload.book_identifier, payload.book_title, payload.book_author)
    try:
        comment = comment_service.create_comment(
            db,
            member,
            identifier,
            payload.content,
            settings.members,
            parent_id=payload.parent_id,
            mentions=payload.mentions,
        )
    except (CommentNotFoundError, InvalidCommentError) as e:
        raise_for_comment_error(e)
    
    log_event(
        db,
        "comment_created",
        member.email,
        {"comment_id": comment.id, "is_reply": bool(payload.parent_id), "mentions": len(comment.mentions)},
    )
    return comment


@router.put("/{comment_id}", response_model=CommentResponse)
def update_comment(
    comment_id: str,
    payload: CommentUpdate,
    member: Member = Depends(get_current_member),
    db: Session = Depends(get_db),
):
    try:
        return comment_service.update_comment(db, comment_id, member, payload.content)
    except (CommentNotFoundError, CommentPermissionError, InvalidCommentError) as e:
        raise_for_comment_error(e)


@router.delete("/{comment_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_comment(
    comment_id: str,
    member: Member = Depends(get_current_member),
    db: Session = Depends(get_db),
):
    try:
        comment_service.delete_comment(db, comment_id, member)
    except (CommentNotFoundError, CommentPermissionError) as e:
        raise_for_comment_error(e)


@router.post("/{comment_id}/reactions", response_model=CommentResponse)
def add_reaction(
    comment_id: str,
    payload: ReactionCreate,
    member: Member = Depends(get_current_member),
    db: Session = Depends(get_db),
):
    try:
        return comment_service.add_reaction(db, comment_id, member, payload.emoji)
    except (CommentNotFoundError, InvalidCommentError) as e:
        raise_for_comment_error(e)


@router.delete("/{comment_id}/reactions", response_model=CommentResponse)
def remove_reaction(
    comment_id: str,
    emoji: str = Query(...),
    member: Member = Depends(get_current_member),
    db: Session = Depends(get_db),
):
    try:
        return comment_service.remove_reaction(db, comment_id, member, emoji)
    except (CommentNotFoundError, InvalidCommentError) as e:
        raise_for_comment_error(e)
