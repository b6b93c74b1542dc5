from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session
from typing import List
import logging

from bookbros.database import get_db
from bookbros.core.auth import get_current_member
from bookbros.core.errors import require_owner, unwrap
from bookbros.core.members import Member
from bookbros.schemas.book import BookResponse, WishlistCreate
from bookbros.services import lifecycle
from bookbros.services.book_gateway import BookGateway, RecordFilter
from bookbros.services.book_records import BookStatus
from bookbros.utils.instrumentation import log_event

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/wishlist", tags=["wishlist"])


@router.get("", response_model=List[BookResponse])
def get_wishlist(
    member: Member = Depends(get_current_member),
    db: Session = Depends(get_db),
):
    return BookGateway(db).fetch_records([member.email], RecordFilter(status=BookStatus.WISHLIST))


@router.post("", response_model=BookResponse, status_code=status.HTTP_201_CREATED)
def add_to_wishlist(
    payload: WishlistCreate,
    member: Member = Depends(get_current_member),
    db: Session = Depends(get_db),
):
    gateway = BookGateway(db)
    result = lifecycle.create_wishlist(
        member.email,
        payload.title,
        payload.author,
        existing=gateway.fetch_records([member.email]),
        cover_url=payload.cover_url,
        genre=payload.genre,
    )
    record = gateway.apply(unwrap(result))[0]
    log_event(db, "wishlist_book_added", member.email, {"book_id": record.id})
    return record


@router.post("/{book_id}/promote", response_model=BookResponse)
def promote_to_library(
    book_id: str,
    member: Member = Depends(get_current_member),
    db: Session = Depends(get_db),
):
    gateway = BookGateway(db)
    record = require_owner(gateway.get_record(book_id), member)
    result = lifecycle.promote_wishlist(record, gateway.fetch_records([member.email]))
    gateway.apply(unwrap(result))
    return gateway.get_record(book_id)


@router.delete("/{book_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_wishlist_book(
    book_id: str,
    member: Member = Depends(get_current_member),
    db: Session = Depends(get_db),
):
    gateway = BookGateway(db)
    record = require_owner(gateway.get_record(book_id), member)
    gateway.apply(unwrap(lifecycle.delete(record)))
