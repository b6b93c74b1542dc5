"""
Book of the month: one pick per calendar month, made by that month's picker.
"""
from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy.orm import Session
from typing import Optional
from datetime import datetime
import logging

from bookbros.database import get_db
from bookbros.core.auth import get_current_member, get_optional_member
from bookbros.core.config import settings
from bookbros.core.members import Member, find_member
from bookbros.models import BookOfTheMonth
from bookbros.schemas.book_of_the_month import BookOfTheMonthResponse, BookOfTheMonthUpdate, MonthPickResponse
from bookbros.services.rotation import current_year_month, format_year_month, parse_year_month, picker_for
from bookbros.utils.instrumentation import log_event

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/book-of-the-month", tags=["book-of-the-month"])


def _picker_for_month(year_month: str) -> tuple[str, Optional[str]]:
    """Normalized "YYYY-MM" and the member picking for that month."""
    try:
        year, month = parse_year_month(year_month)
    except ValueError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))
    return format_year_month(year, month), picker_for(year, month, settings.rotation_config)


@router.get("", response_model=MonthPickResponse)
def get_book_of_the_month(
    year_month: Optional[str] = Query(None, description="YYYY-MM, defaults to the current month"),
    viewer: Optional[Member] = Depends(get_optional_member),
    db: Session = Depends(get_db),
):
    """Picker and pick for a month; `is_current_picker` reflects the signed-in viewer."""
    year_month, picker_email = _picker_for_month(year_month or current_year_month())
    picker = find_member(settings.members, picker_email) if picker_email else None
    pick = db.query(BookOfTheMonth).filter(BookOfTheMonth.year_month == year_month).one_or_none()
    
    return MonthPickResponse(
        year_month=year_month,
        picker_email=picker_email,
        picker_name=picker.name if picker else None,
        is_current_picker=bool(
            viewer
            and picker_email
            and year_month == current_year_month()
            and viewer.email == picker_email
        ),
        pick=BookOfTheMonthResponse.model_validate(pick) if pick else None,
    )


@router.put("", response_model=BookOfTheMonthResponse)
def set_book_of_the_month(
    payload: BookOfTheMonthUpdate,
    member: Member = Depends(get_current_member),
    db: Session = Depends(get_db),
):
    """Create or replace this month's pick. Only this month's picker may edit it."""
    year_month, picker_email = _picker_for_month(current_year_month())
    if member.email != picker_email:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Only this month's picker can choose the book of the month",
        )
    
    title = payload.book_title.strip()
    if not title:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="book_title is required")
    
    pick = db.query(BookOfTheMonth).filter(BookOfTheMonth.year_month == year_month).one_or_none()
    if pick is None:
        pick = BookOfTheMonth(year_month=year_month, picker_email=picker_email, book_title=title)
        db.add(pick)
    
    pick.picker_email = picker_email
    pick.book_title = title
    pick.book_author = (payload.book_author or "").strip()
    pick.book_cover_url = payload.book_cover_url
    pick.book_summary = payload.book_summary
    pick.book_genre = payload.book_genre
    pick.why_picked = (payload.why_picked or "").strip() or None
    pick.updated_at = datetime.utcnow()
    
    try:
        db.commit()
    except Exception:
        db.rollback()
        logger.exception("Failed to save book of the month for %s", year_month)
        raise
    db.refresh(pick)
    
    log_event(db, "book_of_the_month_set", member.email, {"year_month": year_month, "title": title})
    return pick
