"""
Home (admin) view: every member's current book and all completed books.
"""
from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session
import logging

from bookbros.database import get_db
from bookbros.core.auth import get_current_member
from bookbros.core.config import settings
from bookbros.core.errors import unwrap
from bookbros.core.members import Member
from bookbros.schemas.book import BookResponse, CurrentBookUpdate, LeaderboardResponse
from bookbros.services import lifecycle
from bookbros.services.book_gateway import BookGateway, RecordFilter
from bookbros.services.book_records import BookStatus
from bookbros.services.ranking import bucket
from bookbros.services.reading_views import build_leaderboard
from bookbros.utils.instrumentation import log_event

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/home", tags=["home"])


@router.get("", response_model=LeaderboardResponse)
def get_home(db: Session = Depends(get_db)):
    members = settings.members
    records = BookGateway(db).fetch_records([m.email for m in members])
    return build_leaderboard(records, members)


@router.put("/current", response_model=list[BookResponse])
def update_home_current(
    payload: CurrentBookUpdate,
    member: Member = Depends(get_current_member),
    db: Session = Depends(get_db),
):
    """
    Edit the member's current book. With `mark_completed` the book is
    finished and a blank current book is created in the same commit.

    Returns the written records, the edited book first.
    """
    gateway = BookGateway(db)
    records = gateway.fetch_records([member.email], RecordFilter(status=BookStatus.CURRENT))
    current = bucket(records, [member.email])[member.email].current
    
    changes = payload.model_dump(exclude_unset=True, include={"author", "comment", "cover_url"})
    result = lifecycle.edit(current, payload.title, challenge_edit=True, **changes)
    if payload.mark_completed:
        result = lifecycle.combine(
            result,
            lifecycle.mark_completed(current, rating=payload.rating, replace_current=True),
        )
    
    written = gateway.apply(unwrap(result))
    if payload.mark_completed:
        log_event(db, "current_book_completed", member.email, {"book_id": current.id})
    return written
