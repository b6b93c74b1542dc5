"""
Member libraries: every book a member has on their shelf.
"""
from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session
from typing import List
import logging

from bookbros.database import get_db
from bookbros.core.auth import get_current_member
from bookbros.core.config import settings
from bookbros.core.errors import require_owner, unwrap
from bookbros.core.members import Member
from bookbros.schemas.book import BookResponse, LibraryBookCreate, LibraryBookUpdate, MemberShelf
from bookbros.services import lifecycle
from bookbros.services.book_gateway import BookGateway, RecordFilter
from bookbros.services.dedupe import dedupe

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/libraries", tags=["libraries"])


@router.get("", response_model=List[MemberShelf])
def get_libraries(db: Session = Depends(get_db)):
    """In-library books per member, duplicates merged, sorted by title."""
    members = settings.members
    records = BookGateway(db).fetch_records(
        [m.email for m in members],
        RecordFilter(in_library=True),
        order_by_title=True,
    )
    kept = dedupe(records)
    return [
        MemberShelf(
            email=m.email,
            name=m.name,
            books=[BookResponse.model_validate(r) for r in kept if r.member_email == m.email],
        )
        for m in members
    ]


@router.post("", response_model=BookResponse, status_code=status.HTTP_201_CREATED)
def add_library_book(
    payload: LibraryBookCreate,
    member: Member = Depends(get_current_member),
    db: Session = Depends(get_db),
):
    gateway = BookGateway(db)
    library = gateway.fetch_records([member.email], RecordFilter(in_library=True))
    result = lifecycle.create_completed(
        member.email,
        payload.title,
        payload.author,
        rating=payload.rating,
        comment=payload.comment,
        cover_url=payload.cover_url,
        genre=payload.genre,
        library=library,
    )
    record = gateway.apply(unwrap(result))[0]
    logger.info("Member %s added %r to their library", member.email, record.title)
    return record


@router.put("/{book_id}", response_model=BookResponse)
def update_library_book(
    book_id: str,
    payload: LibraryBookUpdate,
    member: Member = Depends(get_current_member),
    db: Session = Depends(get_db),
):
    gateway = BookGateway(db)
    record = require_owner(gateway.get_record(book_id), member)
    changes = payload.model_dump(exclude_unset=True, include={"author", "comment", "cover_url", "rating"})
    result = lifecycle.edit(record, payload.title, **changes)
    gateway.apply(unwrap(result))
    return gateway.get_record(book_id)


@router.delete("/{book_id}", response_model=BookResponse)
def remove_library_book(
    book_id: str,
    member: Member = Depends(get_current_member),
    db: Session = Depends(get_db),
):
    """Take the book off the shelf without deleting its history."""
    gateway = BookGateway(db)
    record = require_owner(gateway.get_record(book_id), member)
    gateway.apply(unwrap(lifecycle.remove_from_library(record)))
    return gateway.get_record(book_id)
