"""
Reading challenge endpoints: the yearly leaderboard and each member's current book.
"""
from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.orm import Session
from typing import Optional
import logging

from bookbros.database import get_db
from bookbros.core.auth import get_current_member
from bookbros.core.config import settings
from bookbros.core.errors import require_owner, unwrap
from bookbros.core.members import Member
from bookbros.schemas.book import BookResponse, CurrentBookCreate, CurrentBookUpdate, LeaderboardResponse
from bookbros.services import lifecycle
from bookbros.services.book_gateway import BookGateway, RecordFilter
from bookbros.services.reading_views import build_leaderboard
from bookbros.utils.instrumentation import log_event

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/reading-challenge", tags=["reading-challenge"])


@router.get("", response_model=LeaderboardResponse)
def get_reading_challenge(
    year: Optional[int] = Query(None, description="Challenge year, defaults to the active one"),
    db: Session = Depends(get_db),
):
    """Leaderboard for one challenge year. Public, like the page it feeds."""
    challenge_year = year or settings.CHALLENGE_YEAR
    members = settings.members
    records = BookGateway(db).fetch_records(
        [m.email for m in members],
        RecordFilter(reading_challenge_year=challenge_year),
    )
    return build_leaderboard(records, members, year=challenge_year)


@router.post("/books", response_model=BookResponse, status_code=status.HTTP_201_CREATED)
def add_challenge_book(
    payload: CurrentBookCreate,
    member: Member = Depends(get_current_member),
    db: Session = Depends(get_db),
):
    """
    Add the book the member is reading, or with `mark_completed` a book they
    already finished (which also lands in their library).
    """
    gateway = BookGateway(db)
    challenge_year = settings.CHALLENGE_YEAR
    
    if payload.mark_completed:
        result = lifecycle.create_completed(
            member.email,
            payload.title,
            payload.author,
            rating=payload.rating,
            comment=payload.comment,
            cover_url=payload.cover_url,
            challenge_year=challenge_year,
        )
    else:
        existing = gateway.fetch_records([member.email], RecordFilter(reading_challenge_year=challenge_year))
        result = lifecycle.create_current(
            member.email,
            payload.title,
            payload.author,
            comment=payload.comment,
            cover_url=payload.cover_url,
            challenge_year=challenge_year,
            existing=existing,
        )
    
    record = gateway.apply(unwrap(result))[0]
    log_event(db, "challenge_book_added", member.email, {"book_id": record.id, "status": record.status.value})
    return record


@router.put("/books/{book_id}", response_model=BookResponse)
def update_challenge_book(
    book_id: str,
    payload: CurrentBookUpdate,
    member: Member = Depends(get_current_member),
    db: Session = Depends(get_db),
):
    """
    Edit the member's current book, optionally marking it completed.

    Completing here does not create a replacement current book.
    """
    gateway = BookGateway(db)
    record = require_owner(gateway.get_record(book_id), member)
    
    changes = payload.model_dump(exclude_unset=True, include={"author", "comment", "cover_url"})
    result = lifecycle.edit(record, payload.title, challenge_edit=True, **changes)
    if payload.mark_completed:
        result = lifecycle.combine(result, lifecycle.mark_completed(record, rating=payload.rating))
    
    gateway.apply(unwrap(result))
    if payload.mark_completed:
        log_event(db, "challenge_book_completed", member.email, {"book_id": book_id})
    return gateway.get_record(book_id)


@router.delete("/books/{book_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_challenge_book(
    book_id: str,
    member: Member = Depends(get_current_member),
    db: Session = Depends(get_db),
):
    gateway = BookGateway(db)
    record = require_owner(gateway.get_record(book_id), member)
    gateway.apply(unwrap(lifecycle.delete(record)))
    logger.info("Member %s deleted challenge book %s", member.email, book_id)
