from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session
from typing import List

from bookbros.database import get_db
from bookbros.core.auth import get_current_member
from bookbros.core.config import settings
from bookbros.core.errors import require_owner, unwrap
from bookbros.core.members import Member
from bookbros.schemas.book import BookResponse, MemberShelf, TopTenUpdate
from bookbros.services import lifecycle
from bookbros.services.book_gateway import BookGateway, RecordFilter

router = APIRouter(prefix="/top-tens", tags=["top-tens"])


@router.get("", response_model=List[MemberShelf])
def get_top_tens(db: Session = Depends(get_db)):
    """Each member's top ten, ordered by rank."""
    members = settings.members
    records = BookGateway(db).fetch_records([m.email for m in members], RecordFilter(top_ten=True))
    shelves = []
    for m in members:
        mine = sorted(
            (r for r in records if r.member_email == m.email),
            key=lambda r: r.top_ten_rank if r.top_ten_rank is not None else 999,
        )
        shelves.append(MemberShelf(email=m.email, name=m.name, books=[BookResponse.model_validate(r) for r in mine]))
    return shelves


@router.put("/{book_id}", response_model=BookResponse)
def set_top_ten(
    book_id: str,
    payload: TopTenUpdate,
    member: Member = Depends(get_current_member),
    db: Session = Depends(get_db),
):
    gateway = BookGateway(db)
    record = require_owner(gateway.get_record(book_id), member)
    result = lifecycle.set_top_ten(
        record,
        payload.enabled,
        gateway.fetch_records([member.email]),
        rating=payload.rating,
    )
    gateway.apply(unwrap(result))
    return gateway.get_record(book_id)
